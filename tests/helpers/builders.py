from __future__ import annotations

from decimal import Decimal
from itertools import count
from typing import Callable, Iterable

from domain.base_types import AccountId, AssetId, Signature
from domain.ledger import Swap, TradeDirection
from domain.transaction import NativeTransfer, ParsedTransaction, TokenTransfer
from tests.helpers.time_utils import DEFAULT_TIME_GEN

_SIGNATURE_COUNTER = count()


def next_signature() -> Signature:
    return Signature(f"test-signature-{next(_SIGNATURE_COUNTER)}")


def make_swap(
    *,
    direction: TradeDirection,
    asset_id: AssetId,
    traded: Decimal | str,
    base: Decimal | str,
    timestamp: int | None = None,
    ts_gen: Callable[[], int] | None = None,
    signature: Signature | None = None,
    platform: str = "raydium",
    fee: Decimal | str = Decimal(0),
) -> Swap:
    """Helper to create a Swap with an auto-generated timestamp and signature."""
    if timestamp is None:
        timestamp = (ts_gen or DEFAULT_TIME_GEN)()

    return Swap(
        signature=signature or next_signature(),
        timestamp=timestamp,
        fee=Decimal(fee),
        traded_asset_id=asset_id,
        traded_asset_amount=Decimal(traded),
        base_asset_amount=Decimal(base),
        direction=direction,
        platform=platform,
    )


def buy(
    asset_id: AssetId,
    traded: Decimal | str,
    base: Decimal | str,
    *,
    timestamp: int | None = None,
    platform: str = "raydium",
) -> Swap:
    return make_swap(
        direction=TradeDirection.BUY,
        asset_id=asset_id,
        traded=traded,
        base=base,
        timestamp=timestamp,
        platform=platform,
    )


def sell(
    asset_id: AssetId,
    traded: Decimal | str,
    base: Decimal | str,
    *,
    timestamp: int | None = None,
    platform: str = "raydium",
) -> Swap:
    return make_swap(
        direction=TradeDirection.SELL,
        asset_id=asset_id,
        traded=traded,
        base=base,
        timestamp=timestamp,
        platform=platform,
    )


def token(asset_id: str, amount: Decimal | str, from_account: str, to_account: str) -> TokenTransfer:
    return TokenTransfer(
        asset_id=AssetId(asset_id),
        amount=Decimal(amount),
        from_account=AccountId(from_account),
        to_account=AccountId(to_account),
    )


def native(amount: Decimal | str, from_account: str, to_account: str) -> NativeTransfer:
    return NativeTransfer(
        amount=Decimal(amount),
        from_account=AccountId(from_account),
        to_account=AccountId(to_account),
    )


def make_transaction(
    *,
    token_transfers: Iterable[TokenTransfer] = (),
    native_transfers: Iterable[NativeTransfer] = (),
    block_time: int | None = None,
    signature: Signature | None = None,
    fee: Decimal | str = Decimal("0.000005"),
    source: str | None = None,
    program_ids: Iterable[str] = (),
) -> ParsedTransaction:
    if block_time is None:
        block_time = DEFAULT_TIME_GEN()

    return ParsedTransaction(
        signature=signature or next_signature(),
        block_time=block_time,
        fee=Decimal(fee),
        type="SWAP",
        source=source,
        token_transfers=list(token_transfers),
        native_transfers=list(native_transfers),
        program_ids=list(program_ids),
    )
