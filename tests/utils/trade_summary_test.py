from decimal import Decimal

import pytest

from domain.inventory import FifoLedgerEngine
from domain.ledger import TradeDirection
from domain.quality import QualityAssessor
from tests.constants import BONK, WIF
from tests.helpers.builders import buy, make_swap, sell
from utils.formatting import format_amount, format_decimal
from utils.trade_summary import compute_trade_summary, render_quality_report, render_trade_summary


def test_compute_trade_summary(ledger_engine: FifoLedgerEngine) -> None:
    swaps = [
        buy(BONK, "10", "0.1", timestamp=1_000),
        sell(BONK, "10", "0.15", timestamp=1_600),
        buy(WIF, "10", "1", timestamp=2_000),
        sell(WIF, "5", "0.3", timestamp=2_100),
        sell(BONK, "3", "0.05", timestamp=2_200),
        make_swap(direction=TradeDirection.BUY, asset_id=WIF, traded="1", base="0.1", timestamp=2_300, fee="0.01"),
    ]
    result = ledger_engine.process(swaps)

    summary = compute_trade_summary(swaps, result)

    assert summary.total_trades == 3
    assert summary.winners == 1
    assert summary.losses == 1
    assert summary.token_winners == 1
    assert summary.token_losers == 1
    assert summary.unique_assets_traded == 2
    assert summary.open_positions == 1
    assert summary.total_realized_pnl == Decimal("-0.15")
    assert summary.base_spent_buying == Decimal("1.2")
    assert summary.base_received_selling == Decimal("0.5")
    assert summary.total_fees == Decimal("0.01")
    assert summary.pnl_distribution.min == Decimal("-0.2")
    assert summary.pnl_distribution.max == Decimal("0.05")
    assert summary.pnl_distribution.p50 == Decimal(0)
    assert summary.holding_duration_distribution.max == Decimal(600)


def test_compute_trade_summary_without_trades(ledger_engine: FifoLedgerEngine) -> None:
    summary = compute_trade_summary([], ledger_engine.process([]))

    assert summary.total_trades == 0
    assert summary.win_rate == Decimal(0)
    assert summary.average_fee_per_swap == Decimal(0)
    assert summary.pnl_distribution.p90 == Decimal(0)


def test_render_trade_summary(ledger_engine: FifoLedgerEngine, capsys: pytest.CaptureFixture[str]) -> None:
    swaps = [
        buy(BONK, "10", "0.1", timestamp=1_000),
        sell(BONK, "10", "0.15", timestamp=2_000),
    ]
    render_trade_summary(compute_trade_summary(swaps, ledger_engine.process(swaps)))

    out = capsys.readouterr().out
    assert out.startswith("Trade summary:")
    assert "Realized PnL SOL" in out
    assert "0.050000" in out
    assert "100.0%" in out


def test_render_quality_report(
    ledger_engine: FifoLedgerEngine,
    assessor: QualityAssessor,
    capsys: pytest.CaptureFixture[str],
) -> None:
    swaps = [sell(BONK, "10", "1", timestamp=1_000)]
    report = assessor.assess(1, swaps, ledger_engine.process(swaps))

    render_quality_report(report)

    out = capsys.readouterr().out
    assert "Data quality:" in out
    assert "[WARNING]" in out
    assert BONK in out


def test_formatting() -> None:
    assert format_decimal(Decimal("12.500")) == "12.5"
    assert format_decimal(Decimal("1E+3")) == "1000"
    assert format_amount(Decimal("0.1234567")) == "0.123457"
    assert format_amount(Decimal(3), places=1) == "3.0"
