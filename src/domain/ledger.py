from __future__ import annotations

from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, computed_field, model_validator

from domain.base_types import BASE_ASSET_ID, AssetId, Signature


class TradeDirection(StrEnum):
    BUY = "buy"
    SELL = "sell"


class ClosedTradeKind(StrEnum):
    MATCHED = "MATCHED"
    MISSING_BUY = "MISSING_BUY"
    OVERSELL = "OVERSELL"


class Swap(BaseModel):
    """A trade of `traded_asset_id` against the base asset, derived from one transaction."""

    model_config = ConfigDict(frozen=True)

    signature: Signature
    timestamp: int
    fee: Decimal = Decimal(0)
    base_asset_id: AssetId = BASE_ASSET_ID
    traded_asset_id: AssetId
    traded_asset_amount: Decimal
    base_asset_amount: Decimal
    direction: TradeDirection
    platform: str = "unknown"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unit_price(self) -> Decimal:
        return self.base_asset_amount / self.traded_asset_amount

    @model_validator(mode="after")
    def _validate_amounts(self) -> Swap:
        if self.traded_asset_amount <= 0:
            raise ValueError("Swap.traded_asset_amount must be > 0")
        if self.base_asset_amount <= 0:
            raise ValueError("Swap.base_asset_amount must be > 0")
        if self.traded_asset_id == self.base_asset_id:
            raise ValueError("Swap.traded_asset_id must differ from base_asset_id")
        return self


class Lot(BaseModel):
    quantity: Decimal
    cost_per_unit: Decimal
    timestamp: int
    signature: Signature

    @model_validator(mode="after")
    def _validate_fields(self) -> Lot:
        if self.quantity <= 0:
            raise ValueError("Lot.quantity must be > 0")
        if self.cost_per_unit < 0:
            raise ValueError("Lot.cost_per_unit must be >= 0")
        return self


class Holding(BaseModel):
    asset_id: AssetId
    purchase_lots: list[Lot]
    total_quantity: Decimal
    average_cost_per_unit: Decimal

    @property
    def cost_basis(self) -> Decimal:
        return sum((lot.quantity * lot.cost_per_unit for lot in self.purchase_lots), start=Decimal(0))


class ClosedTrade(BaseModel):
    """Realized outcome of a sell, or of one portion of a split sell.

    `pnl_percent` is None when the cost basis is zero (missing buy or oversell
    portion); those records also carry a realized PnL of exactly zero.
    """

    asset_id: AssetId
    kind: ClosedTradeKind
    signature: Signature
    cost_basis: Decimal
    proceeds: Decimal
    realized_pnl: Decimal
    pnl_percent: Decimal | None
    holding_duration_seconds: int
    buy_timestamp: int
    sell_timestamp: int
    quantity: Decimal

    @model_validator(mode="after")
    def _validate(self) -> ClosedTrade:
        if self.quantity <= 0:
            raise ValueError("ClosedTrade.quantity must be > 0")
        if self.cost_basis < 0:
            raise ValueError("ClosedTrade.cost_basis must be >= 0")
        if self.proceeds < 0:
            raise ValueError("ClosedTrade.proceeds must be >= 0")
        return self


class LedgerSummary(BaseModel):
    total_swaps: int = 0
    valid_swaps: int = 0
    buy_count: int = 0
    sell_count: int = 0
    oversell_count: int = 0
    zero_profit_count: int = 0
    buy_volume: Decimal = Decimal(0)
    sell_volume: Decimal = Decimal(0)
    invariant_corrections: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def net_base_asset(self) -> Decimal:
        return self.sell_volume - self.buy_volume
