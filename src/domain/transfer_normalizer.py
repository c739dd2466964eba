"""Reduce a transaction's raw transfers to per-asset net deltas for one account."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from domain.base_types import BASE_ASSET_ID, WRAPPED_BASE_MINT, AccountId, AssetId
from domain.transaction import ParsedTransaction


@dataclass(frozen=True)
class BaseAssetFlow:
    """Largest base-asset amounts the account sent and received in one transaction."""

    largest_sent: Decimal
    largest_received: Decimal


def normalize_asset_id(
    asset_id: str,
    *,
    base_asset_id: str = BASE_ASSET_ID,
    wrapped_base_mint: str = WRAPPED_BASE_MINT,
) -> AssetId:
    if asset_id == wrapped_base_mint:
        return AssetId(base_asset_id)
    return AssetId(asset_id)


def compute_net_deltas(
    transaction: ParsedTransaction,
    account: AccountId,
    *,
    epsilon: Decimal = Decimal("0.000000001"),
    base_asset_id: str = BASE_ASSET_ID,
    wrapped_base_mint: str = WRAPPED_BASE_MINT,
) -> dict[AssetId, Decimal]:
    """Return `received - sent` per asset for `account`.

    Native and wrapped base asset collapse into `base_asset_id`. Assets that
    net to roughly zero (intermediate routing hops) are dropped. Keys keep the
    order in which each asset first appears: token transfers, then native.
    """
    deltas: dict[AssetId, Decimal] = {}

    for transfer in transaction.token_transfers:
        asset_id = normalize_asset_id(
            transfer.asset_id,
            base_asset_id=base_asset_id,
            wrapped_base_mint=wrapped_base_mint,
        )
        deltas[asset_id] = deltas.get(asset_id, Decimal(0)) + _signed(
            transfer.amount, transfer.from_account, transfer.to_account, account
        )

    for native in transaction.native_transfers:
        base_id = AssetId(base_asset_id)
        deltas[base_id] = deltas.get(base_id, Decimal(0)) + _signed(
            native.amount, native.from_account, native.to_account, account
        )

    return {asset_id: delta for asset_id, delta in deltas.items() if abs(delta) > epsilon}


def base_asset_flows(
    transaction: ParsedTransaction,
    account: AccountId,
    *,
    wrapped_base_mint: str = WRAPPED_BASE_MINT,
) -> BaseAssetFlow:
    """Find the largest single base-asset transfer the account sent and received.

    Native and wrapped transfers are compared, never summed: wrapping moves the
    same value once in each representation. Priority tips and rent refunds are
    separate smaller transfers and do not inflate the traded amount.
    """
    sent: list[Decimal] = []
    received: list[Decimal] = []

    for transfer in transaction.token_transfers:
        if transfer.asset_id != wrapped_base_mint:
            continue
        if transfer.from_account == account:
            sent.append(transfer.amount)
        if transfer.to_account == account:
            received.append(transfer.amount)

    for native in transaction.native_transfers:
        if native.from_account == account:
            sent.append(native.amount)
        if native.to_account == account:
            received.append(native.amount)

    return BaseAssetFlow(
        largest_sent=max(sent, default=Decimal(0)),
        largest_received=max(received, default=Decimal(0)),
    )


def _signed(amount: Decimal, from_account: str, to_account: str, account: str) -> Decimal:
    delta = Decimal(0)
    if to_account == account:
        delta += amount
    if from_account == account:
        delta -= amount
    return delta
