from __future__ import annotations

import logging
from collections import Counter
from decimal import Decimal
from enum import StrEnum
from typing import Iterable

from pydantic import BaseModel, Field

from config import EngineSettings, TieBreak, config
from domain.base_types import AccountId, AssetId
from domain.ledger import Swap, TradeDirection
from domain.platforms import PlatformResolver
from domain.transaction import ParsedTransaction
from domain.transfer_normalizer import base_asset_flows, compute_net_deltas

logger = logging.getLogger(__name__)


class ExclusionReason(StrEnum):
    NO_TRADED_ASSET = "NO_TRADED_ASSET"
    TRADED_AMOUNT_DUST = "TRADED_AMOUNT_DUST"
    BASE_AMOUNT_DUST = "BASE_AMOUNT_DUST"


class ClassificationResult(BaseModel):
    swaps: list[Swap]
    transaction_count: int
    exclusions: dict[ExclusionReason, int] = Field(default_factory=dict)

    @property
    def excluded_count(self) -> int:
        return sum(self.exclusions.values())


class SwapClassifier:
    """Turn a transaction into at most one `Swap` for the analyzed account.

    The traded asset is the non-base asset with the largest absolute net delta.
    The base-asset side is measured from the largest base amount moved in the
    matching direction rather than the net delta, which tolerates routers that
    pass the base asset through intermediate accounts.
    """

    def __init__(
        self,
        *,
        settings: EngineSettings | None = None,
        platform_resolver: PlatformResolver | None = None,
    ) -> None:
        self._settings = settings or config()
        self._platform_resolver = platform_resolver or PlatformResolver()

    def classify(self, transaction: ParsedTransaction, account: AccountId) -> Swap | None:
        swap, _ = self._classify(transaction, account)
        return swap

    def classify_many(self, transactions: Iterable[ParsedTransaction], account: AccountId) -> ClassificationResult:
        swaps: list[Swap] = []
        exclusions: Counter[ExclusionReason] = Counter()
        transaction_count = 0

        for transaction in transactions:
            transaction_count += 1
            swap, reason = self._classify(transaction, account)
            if swap is not None:
                swaps.append(swap)
                continue
            assert reason is not None
            exclusions[reason] += 1
            logger.debug("Transaction %s is not a swap: %s", transaction.signature, reason)

        logger.info(
            "Classified %d swaps out of %d transactions for %s (%d excluded)",
            len(swaps),
            transaction_count,
            account,
            transaction_count - len(swaps),
        )
        return ClassificationResult(
            swaps=swaps,
            transaction_count=transaction_count,
            exclusions=dict(exclusions),
        )

    def _classify(
        self, transaction: ParsedTransaction, account: AccountId
    ) -> tuple[Swap | None, ExclusionReason | None]:
        settings = self._settings
        deltas = compute_net_deltas(
            transaction,
            account,
            epsilon=settings.net_delta_epsilon,
            base_asset_id=settings.base_asset_id,
            wrapped_base_mint=settings.wrapped_base_mint,
        )
        candidates = {asset_id: delta for asset_id, delta in deltas.items() if asset_id != settings.base_asset_id}
        if not candidates:
            return None, ExclusionReason.NO_TRADED_ASSET

        asset_id, delta = self._dominant_asset(candidates)
        direction = TradeDirection.BUY if delta > 0 else TradeDirection.SELL
        traded_amount = abs(delta)
        if traded_amount <= settings.min_traded_amount:
            return None, ExclusionReason.TRADED_AMOUNT_DUST

        flows = base_asset_flows(transaction, account, wrapped_base_mint=settings.wrapped_base_mint)
        base_amount = flows.largest_sent if direction == TradeDirection.BUY else flows.largest_received
        if base_amount <= settings.min_base_amount:
            return None, ExclusionReason.BASE_AMOUNT_DUST

        swap = Swap(
            signature=transaction.signature,
            timestamp=transaction.block_time,
            fee=transaction.fee,
            base_asset_id=AssetId(settings.base_asset_id),
            traded_asset_id=asset_id,
            traded_asset_amount=traded_amount,
            base_asset_amount=base_amount,
            direction=direction,
            platform=self._platform_resolver.resolve(transaction),
        )
        return swap, None

    def _dominant_asset(self, candidates: dict[AssetId, Decimal]) -> tuple[AssetId, Decimal]:
        largest = max(abs(delta) for delta in candidates.values())
        # Dict order is first appearance in the transfer list.
        tied = [
            (asset_id, delta)
            for asset_id, delta in candidates.items()
            if largest - abs(delta) <= self._settings.net_delta_epsilon
        ]
        if self._settings.tie_break == TieBreak.ASSET_ID:
            return min(tied, key=lambda item: item[0])
        return tied[0]
