from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Iterator

from pydantic import BaseModel

from config import EngineSettings, config
from domain.base_types import AssetId, Signature
from domain.ledger import ClosedTrade, ClosedTradeKind, Holding, LedgerSummary, Lot, Swap, TradeDirection

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


@dataclass
class _OpenLotState:
    quantity: Decimal
    cost_per_unit: Decimal
    timestamp: int
    signature: Signature


@dataclass
class _HoldingState:
    asset_id: AssetId
    lots: deque[_OpenLotState] = field(default_factory=deque)
    total_quantity: Decimal = Decimal(0)
    average_cost_per_unit: Decimal = Decimal(0)

    def lots_cost(self) -> Decimal:
        return sum((lot.quantity * lot.cost_per_unit for lot in self.lots), start=Decimal(0))

    def lots_quantity(self) -> Decimal:
        return sum((lot.quantity for lot in self.lots), start=Decimal(0))


class InventoryResult(BaseModel):
    closed_trades: list[ClosedTrade]
    open_holdings: list[Holding]
    summary: LedgerSummary


class FifoLedgerEngine:
    """Match sells against purchase lots oldest-first and realize PnL in the base asset.

    Holdings and counters live on the instance and are cleared at the start of
    every `process` call, so one instance must not serve overlapping runs.
    Use a separate instance per analyzed account.
    """

    def __init__(self, *, settings: EngineSettings | None = None) -> None:
        self._settings = settings or config()
        self._holdings: dict[AssetId, _HoldingState] = {}
        self._closed_trades: list[ClosedTrade] = []
        self._summary = LedgerSummary()

    def process(self, swaps: Iterable[Swap]) -> InventoryResult:
        if swaps is None:
            raise TypeError("swaps must be an iterable of Swap, not None")

        self._reset()
        swap_list = list(swaps)
        self._summary.total_swaps = len(swap_list)

        valid_swaps = [swap for swap in swap_list if self._is_valid(swap)]
        self._summary.valid_swaps = len(valid_swaps)

        # Stable: swaps sharing a timestamp keep their input order.
        for swap in sorted(valid_swaps, key=lambda s: s.timestamp):
            if swap.direction == TradeDirection.BUY:
                self._process_buy(swap)
                self._summary.buy_count += 1
                self._summary.buy_volume += swap.base_asset_amount
            else:
                self._process_sell(swap)
                self._summary.sell_count += 1
                self._summary.sell_volume += swap.base_asset_amount

        open_holdings = self._verified_open_holdings()

        logger.info(
            "FIFO ledger processed %d/%d swaps: %d closed trades, %d open holdings, %d oversells, %d missing buys",
            self._summary.valid_swaps,
            self._summary.total_swaps,
            len(self._closed_trades),
            len(open_holdings),
            self._summary.oversell_count,
            self._summary.zero_profit_count,
        )

        return InventoryResult(
            closed_trades=list(self._closed_trades),
            open_holdings=open_holdings,
            summary=self._summary.model_copy(),
        )

    def _reset(self) -> None:
        self._holdings = {}
        self._closed_trades = []
        self._summary = LedgerSummary()

    def _is_valid(self, swap: Swap) -> bool:
        if swap.traded_asset_amount <= self._settings.quantity_epsilon:
            logger.debug("Skipping swap %s: traded amount %s below dust", swap.signature, swap.traded_asset_amount)
            return False
        return True

    def _process_buy(self, swap: Swap) -> None:
        holding = self._holdings.get(swap.traded_asset_id)
        if holding is None:
            holding = _HoldingState(asset_id=swap.traded_asset_id)
            self._holdings[swap.traded_asset_id] = holding

        holding.lots.append(
            _OpenLotState(
                quantity=swap.traded_asset_amount,
                cost_per_unit=swap.unit_price,
                timestamp=swap.timestamp,
                signature=swap.signature,
            )
        )
        holding.total_quantity += swap.traded_asset_amount
        holding.average_cost_per_unit = holding.lots_cost() / holding.total_quantity

    def _process_sell(self, swap: Swap) -> None:
        eps = self._settings.quantity_epsilon
        holding = self._holdings.get(swap.traded_asset_id)
        available = holding.total_quantity if holding is not None else Decimal(0)
        requested = swap.traded_asset_amount

        if holding is None or available <= eps or not holding.lots:
            self._record_missing_buy(swap)
            return

        if requested > available * (1 + self._settings.oversell_tolerance):
            self._record_oversell(swap, holding, available)
            return

        self._record_matched_sell(
            swap,
            holding,
            quantity=requested,
            proceeds=swap.base_asset_amount,
        )

    def _record_missing_buy(self, swap: Swap) -> None:
        logger.warning(
            "Sell %s of %s %s without recorded buys; booking zero realized PnL",
            swap.signature,
            swap.traded_asset_amount,
            swap.traded_asset_id,
        )
        self._closed_trades.append(
            self._zero_cost_trade(
                swap,
                ClosedTradeKind.MISSING_BUY,
                swap.traded_asset_amount,
                swap.base_asset_amount,
            )
        )
        self._summary.zero_profit_count += 1

    def _record_oversell(self, swap: Swap, holding: _HoldingState, available: Decimal) -> None:
        requested = swap.traded_asset_amount
        matched_fraction = available / requested
        matched_proceeds = swap.base_asset_amount * matched_fraction
        unmatched_quantity = requested - available
        unmatched_proceeds = swap.base_asset_amount - matched_proceeds

        logger.warning(
            "Oversell of %s in %s: requested=%s available=%s unmatched=%s",
            swap.traded_asset_id,
            swap.signature,
            requested,
            available,
            unmatched_quantity,
        )

        self._record_matched_sell(swap, holding, quantity=available, proceeds=matched_proceeds)
        self._closed_trades.append(
            self._zero_cost_trade(swap, ClosedTradeKind.OVERSELL, unmatched_quantity, unmatched_proceeds)
        )
        self._summary.oversell_count += 1

    def _record_matched_sell(
        self,
        swap: Swap,
        holding: _HoldingState,
        *,
        quantity: Decimal,
        proceeds: Decimal,
    ) -> None:
        cost_basis = Decimal(0)
        quantity_sold = Decimal(0)
        buy_timestamp: int | None = None

        for lot_state, take_quantity in self._consume_lots(holding, quantity):
            if buy_timestamp is None:
                buy_timestamp = lot_state.timestamp
            cost_basis += take_quantity * lot_state.cost_per_unit
            quantity_sold += take_quantity

        holding.total_quantity -= quantity_sold
        if holding.total_quantity <= self._settings.quantity_epsilon:
            del self._holdings[holding.asset_id]
        else:
            holding.average_cost_per_unit = holding.lots_cost() / holding.total_quantity

        if buy_timestamp is None:
            buy_timestamp = swap.timestamp

        realized_pnl = proceeds - cost_basis
        self._closed_trades.append(
            ClosedTrade(
                asset_id=swap.traded_asset_id,
                kind=ClosedTradeKind.MATCHED,
                signature=swap.signature,
                cost_basis=cost_basis,
                proceeds=proceeds,
                realized_pnl=realized_pnl,
                pnl_percent=realized_pnl / cost_basis * HUNDRED if cost_basis > self._settings.cost_epsilon else None,
                holding_duration_seconds=swap.timestamp - buy_timestamp,
                buy_timestamp=buy_timestamp,
                sell_timestamp=swap.timestamp,
                quantity=quantity_sold,
            )
        )

    def _consume_lots(self, holding: _HoldingState, quantity_needed: Decimal) -> Iterator[tuple[_OpenLotState, Decimal]]:
        eps = self._settings.quantity_epsilon
        open_lots = holding.lots
        remaining = quantity_needed
        while remaining > eps and open_lots:
            lot_state = open_lots[0]
            take_quantity = min(remaining, lot_state.quantity)
            if take_quantity >= lot_state.quantity - eps:
                # Dust left in a lot is sold with it.
                take_quantity = lot_state.quantity
                open_lots.popleft()
            else:
                lot_state.quantity -= take_quantity
            remaining -= take_quantity
            yield lot_state, take_quantity

    def _zero_cost_trade(
        self,
        swap: Swap,
        kind: ClosedTradeKind,
        quantity: Decimal,
        proceeds: Decimal,
    ) -> ClosedTrade:
        return ClosedTrade(
            asset_id=swap.traded_asset_id,
            kind=kind,
            signature=swap.signature,
            cost_basis=Decimal(0),
            proceeds=proceeds,
            realized_pnl=Decimal(0),
            pnl_percent=None,
            holding_duration_seconds=0,
            buy_timestamp=swap.timestamp,
            sell_timestamp=swap.timestamp,
            quantity=quantity,
        )

    def _verified_open_holdings(self) -> list[Holding]:
        eps = self._settings.quantity_epsilon
        snapshots: list[Holding] = []

        for holding in self._holdings.values():
            if holding.total_quantity <= eps:
                continue

            lots_quantity = holding.lots_quantity()
            if abs(lots_quantity - holding.total_quantity) > eps:
                logger.warning(
                    "Holding quantity mismatch for %s: lots=%s stored=%s; using lot total",
                    holding.asset_id,
                    lots_quantity,
                    holding.total_quantity,
                )
                holding.total_quantity = lots_quantity
                self._summary.invariant_corrections += 1
                if holding.total_quantity <= eps:
                    continue

            average_cost = holding.lots_cost() / holding.total_quantity
            if abs(average_cost - holding.average_cost_per_unit) > self._settings.cost_epsilon:
                logger.warning(
                    "Average cost drift for %s: recomputed=%s stored=%s",
                    holding.asset_id,
                    average_cost,
                    holding.average_cost_per_unit,
                )
                holding.average_cost_per_unit = average_cost
                self._summary.invariant_corrections += 1

            snapshots.append(
                Holding(
                    asset_id=holding.asset_id,
                    purchase_lots=[
                        Lot(
                            quantity=lot.quantity,
                            cost_per_unit=lot.cost_per_unit,
                            timestamp=lot.timestamp,
                            signature=lot.signature,
                        )
                        for lot in holding.lots
                    ],
                    total_quantity=holding.total_quantity,
                    average_cost_per_unit=holding.average_cost_per_unit,
                )
            )

        snapshots.sort(key=lambda snap: snap.asset_id)
        return snapshots
