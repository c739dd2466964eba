from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Integer, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    pass


class SwapOrm(Base):
    __tablename__ = "swaps"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    account: Mapped[str] = mapped_column(String, nullable=False, index=True)
    signature: Mapped[str] = mapped_column(String, nullable=False)
    timestamp: Mapped[int] = mapped_column(Integer, nullable=False)
    fee: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    base_asset_id: Mapped[str] = mapped_column(String, nullable=False)
    traded_asset_id: Mapped[str] = mapped_column(String, nullable=False)
    traded_asset_amount: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    base_asset_amount: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    direction: Mapped[str] = mapped_column(String, nullable=False)
    platform: Mapped[str] = mapped_column(String, nullable=False)


class ClosedTradeOrm(Base):
    __tablename__ = "closed_trades"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    account: Mapped[str] = mapped_column(String, nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    asset_id: Mapped[str] = mapped_column(String, nullable=False)
    kind: Mapped[str] = mapped_column(String, nullable=False)
    signature: Mapped[str] = mapped_column(String, nullable=False)
    cost_basis: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    proceeds: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    realized_pnl: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    pnl_percent: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    holding_duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    buy_timestamp: Mapped[int] = mapped_column(Integer, nullable=False)
    sell_timestamp: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
