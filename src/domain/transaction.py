from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.base_types import AccountId, AssetId, Signature


class TokenTransfer(BaseModel):
    """A single SPL token movement inside a transaction.

    `amount` is the absolute quantity moved, already scaled by the mint decimals.
    Direction is given by the two account fields.
    """

    model_config = ConfigDict(frozen=True)

    asset_id: AssetId
    amount: Decimal
    from_account: AccountId
    to_account: AccountId

    @model_validator(mode="after")
    def _validate_amount(self) -> TokenTransfer:
        if self.amount < 0:
            raise ValueError("TokenTransfer.amount must be >= 0")
        return self


class NativeTransfer(BaseModel):
    """A native base-asset movement, expressed in base-asset units (not lamports)."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal
    from_account: AccountId
    to_account: AccountId

    @model_validator(mode="after")
    def _validate_amount(self) -> NativeTransfer:
        if self.amount < 0:
            raise ValueError("NativeTransfer.amount must be >= 0")
        return self


class ParsedTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    signature: Signature
    block_time: int
    fee: Decimal = Decimal(0)
    type: str | None = None
    source: str | None = None
    token_transfers: list[TokenTransfer] = Field(default_factory=list)
    native_transfers: list[NativeTransfer] = Field(default_factory=list)
    program_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_fields(self) -> ParsedTransaction:
        if not self.signature:
            raise ValueError("ParsedTransaction.signature must be non-empty")
        if self.block_time <= 0:
            raise ValueError("ParsedTransaction.block_time must be positive")
        if self.fee < 0:
            raise ValueError("ParsedTransaction.fee must be >= 0")
        return self
