from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from db import models
from domain.base_types import AccountId, AssetId, Signature
from domain.ledger import ClosedTrade, ClosedTradeKind, Swap, TradeDirection


class SwapRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, account: AccountId, swap: Swap) -> Swap:
        orm_swap = self._to_orm(account, swap)
        self._session.add(orm_swap)
        self._session.commit()
        self._session.refresh(orm_swap)
        return self._to_domain(orm_swap)

    def create_many(self, account: AccountId, swaps: Iterable[Swap]) -> None:
        self._session.add_all([self._to_orm(account, swap) for swap in swaps])
        self._session.commit()

    def list(self, account: AccountId) -> list[Swap]:
        orm_swaps = (
            self._session.query(models.SwapOrm)
            .filter(models.SwapOrm.account == account)
            .order_by(models.SwapOrm.timestamp.asc())
            .all()
        )
        return [self._to_domain(swap) for swap in orm_swaps]

    @staticmethod
    def _to_orm(account: AccountId, swap: Swap) -> models.SwapOrm:
        return models.SwapOrm(
            account=account,
            signature=swap.signature,
            timestamp=swap.timestamp,
            fee=swap.fee,
            base_asset_id=swap.base_asset_id,
            traded_asset_id=swap.traded_asset_id,
            traded_asset_amount=swap.traded_asset_amount,
            base_asset_amount=swap.base_asset_amount,
            direction=swap.direction.value,
            platform=swap.platform,
        )

    @staticmethod
    def _to_domain(orm_swap: models.SwapOrm) -> Swap:
        return Swap(
            signature=Signature(orm_swap.signature),
            timestamp=orm_swap.timestamp,
            fee=orm_swap.fee,
            base_asset_id=AssetId(orm_swap.base_asset_id),
            traded_asset_id=AssetId(orm_swap.traded_asset_id),
            traded_asset_amount=orm_swap.traded_asset_amount,
            base_asset_amount=orm_swap.base_asset_amount,
            direction=TradeDirection(orm_swap.direction),
            platform=orm_swap.platform,
        )


class ClosedTradeRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_many(self, account: AccountId, trades: Iterable[ClosedTrade]) -> None:
        # `position` preserves the order the ledger produced the trades in.
        self._session.add_all(
            [
                models.ClosedTradeOrm(
                    account=account,
                    position=position,
                    asset_id=trade.asset_id,
                    kind=trade.kind.value,
                    signature=trade.signature,
                    cost_basis=trade.cost_basis,
                    proceeds=trade.proceeds,
                    realized_pnl=trade.realized_pnl,
                    pnl_percent=trade.pnl_percent,
                    holding_duration_seconds=trade.holding_duration_seconds,
                    buy_timestamp=trade.buy_timestamp,
                    sell_timestamp=trade.sell_timestamp,
                    quantity=trade.quantity,
                )
                for position, trade in enumerate(trades)
            ]
        )
        self._session.commit()

    def list(self, account: AccountId) -> list[ClosedTrade]:
        orm_trades = (
            self._session.query(models.ClosedTradeOrm)
            .filter(models.ClosedTradeOrm.account == account)
            .order_by(models.ClosedTradeOrm.position.asc())
            .all()
        )
        return [self._to_domain(trade) for trade in orm_trades]

    @staticmethod
    def _to_domain(orm_trade: models.ClosedTradeOrm) -> ClosedTrade:
        return ClosedTrade(
            asset_id=AssetId(orm_trade.asset_id),
            kind=ClosedTradeKind(orm_trade.kind),
            signature=Signature(orm_trade.signature),
            cost_basis=orm_trade.cost_basis,
            proceeds=orm_trade.proceeds,
            realized_pnl=orm_trade.realized_pnl,
            pnl_percent=orm_trade.pnl_percent,
            holding_duration_seconds=orm_trade.holding_duration_seconds,
            buy_timestamp=orm_trade.buy_timestamp,
            sell_timestamp=orm_trade.sell_timestamp,
            quantity=orm_trade.quantity,
        )
