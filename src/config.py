from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from functools import cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.base_types import BASE_ASSET_ID, WRAPPED_BASE_MINT


class TieBreak(StrEnum):
    """How the classifier picks between traded assets with equal |delta|."""

    ASSET_ID = "ASSET_ID"
    TRANSFER_ORDER = "TRANSFER_ORDER"


class EngineSettings(BaseSettings):
    base_asset_id: str = BASE_ASSET_ID
    wrapped_base_mint: str = WRAPPED_BASE_MINT

    # Floating noise tolerances, not business thresholds.
    quantity_epsilon: Decimal = Decimal("0.000001")
    cost_epsilon: Decimal = Decimal("0.00000001")
    net_delta_epsilon: Decimal = Decimal("0.000000001")

    # Dust filters applied by the swap classifier.
    min_traded_amount: Decimal = Decimal("0.000001")
    min_base_amount: Decimal = Decimal("0.000001")
    tie_break: TieBreak = TieBreak.ASSET_ID

    # Fraction of the available quantity a sell may exceed before it is split as an oversell.
    oversell_tolerance: Decimal = Decimal("0.001")

    outlier_pnl_percent: Decimal = Decimal(10000)
    outlier_pnl_ceiling: Decimal = Decimal(1000)
    min_detection_rate: float = 0.1
    max_unknown_platform_ratio: float = 0.2
    max_zero_profit_ratio: float = 0.1
    rapid_trade_seconds: int = 5
    large_gap_hours: int = 168

    model_config = SettingsConfigDict(
        env_prefix="WALLET_PNL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@cache
def config() -> EngineSettings:
    return EngineSettings()
