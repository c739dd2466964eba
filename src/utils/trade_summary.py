from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

from domain.base_types import AssetId
from domain.inventory import InventoryResult
from domain.ledger import Swap
from domain.quality import QualityReport

from .formatting import format_amount, format_decimal


@dataclass
class Distribution:
    min: Decimal = Decimal(0)
    p10: Decimal = Decimal(0)
    p25: Decimal = Decimal(0)
    p50: Decimal = Decimal(0)
    p75: Decimal = Decimal(0)
    p90: Decimal = Decimal(0)
    max: Decimal = Decimal(0)


@dataclass
class TradeSummary:
    total_trades: int
    winners: int
    losses: int
    win_rate: Decimal
    total_realized_pnl: Decimal
    average_realized_pnl: Decimal
    token_winners: int
    token_losers: int
    unique_assets_traded: int
    open_positions: int
    base_spent_buying: Decimal
    base_received_selling: Decimal
    total_fees: Decimal
    average_fee_per_swap: Decimal
    pnl_distribution: Distribution = field(default_factory=Distribution)
    holding_duration_distribution: Distribution = field(default_factory=Distribution)


def compute_trade_summary(swaps: Sequence[Swap], result: InventoryResult) -> TradeSummary:
    """Aggregate closed trades into win/loss, PnL and distribution statistics."""
    trades = result.closed_trades
    total_trades = len(trades)
    winners = sum(1 for trade in trades if trade.realized_pnl > 0)
    losses = sum(1 for trade in trades if trade.realized_pnl < 0)
    total_pnl = sum((trade.realized_pnl for trade in trades), start=Decimal(0))

    pnl_by_asset: dict[AssetId, Decimal] = defaultdict(Decimal)
    for trade in trades:
        pnl_by_asset[trade.asset_id] += trade.realized_pnl

    total_fees = sum((swap.fee for swap in swaps), start=Decimal(0))

    return TradeSummary(
        total_trades=total_trades,
        winners=winners,
        losses=losses,
        win_rate=Decimal(winners * 100) / total_trades if total_trades else Decimal(0),
        total_realized_pnl=total_pnl,
        average_realized_pnl=total_pnl / total_trades if total_trades else Decimal(0),
        token_winners=sum(1 for pnl in pnl_by_asset.values() if pnl > 0),
        token_losers=sum(1 for pnl in pnl_by_asset.values() if pnl < 0),
        unique_assets_traded=len({trade.asset_id for trade in trades} | {h.asset_id for h in result.open_holdings}),
        open_positions=len(result.open_holdings),
        base_spent_buying=result.summary.buy_volume,
        base_received_selling=result.summary.sell_volume,
        total_fees=total_fees,
        average_fee_per_swap=total_fees / len(swaps) if swaps else Decimal(0),
        pnl_distribution=_distribution([trade.realized_pnl for trade in trades]),
        holding_duration_distribution=_distribution(
            [Decimal(trade.holding_duration_seconds) for trade in trades]
        ),
    )


def _distribution(values: list[Decimal]) -> Distribution:
    if not values:
        return Distribution()
    ordered = sorted(values)

    def percentile(pct: int) -> Decimal:
        # Lower nearest-rank.
        return ordered[(pct * (len(ordered) - 1)) // 100]

    return Distribution(
        min=ordered[0],
        p10=percentile(10),
        p25=percentile(25),
        p50=percentile(50),
        p75=percentile(75),
        p90=percentile(90),
        max=ordered[-1],
    )


def render_trade_summary(summary: TradeSummary, *, base_asset_id: str = "SOL") -> None:
    net = summary.base_received_selling - summary.base_spent_buying
    rows = [
        ("Closed trades", str(summary.total_trades)),
        ("Winners / losers", f"{summary.winners} / {summary.losses}"),
        ("Win rate", f"{format_amount(summary.win_rate, places=1)}%"),
        ("Token winners / losers", f"{summary.token_winners} / {summary.token_losers}"),
        ("Unique assets traded", str(summary.unique_assets_traded)),
        ("Open positions", str(summary.open_positions)),
        (f"Realized PnL {base_asset_id}", format_amount(summary.total_realized_pnl)),
        (f"Average PnL {base_asset_id}", format_amount(summary.average_realized_pnl)),
        (f"{base_asset_id} spent buying", format_amount(summary.base_spent_buying)),
        (f"{base_asset_id} received selling", format_amount(summary.base_received_selling)),
        (f"Net {base_asset_id}", format_amount(net)),
        (f"Fees {base_asset_id}", format_amount(summary.total_fees)),
        (f"Median PnL {base_asset_id}", format_amount(summary.pnl_distribution.p50)),
        ("Median holding seconds", format_decimal(summary.holding_duration_distribution.p50)),
    ]

    label_width = max(len(label) for label, _ in rows)
    value_width = max(len(value) for _, value in rows)
    print("Trade summary:")
    for label, value in rows:
        print(f"  {label:<{label_width}} {value:>{value_width}}")


def render_quality_report(report: QualityReport) -> None:
    print("Data quality:")
    print(f"  Overall score:     {report.overall_score:.1f}/100 ({report.confidence_level})")
    print(f"  Classification:    {report.classification_score:.1f}/100")
    print(f"  Ledger integrity:  {report.ledger_integrity_score:.1f}/100")
    print(f"  Completeness:      {report.completeness_score:.1f}/100")
    if report.issues:
        print("  Issues:")
        for issue in report.issues:
            print(f"    [{issue.severity}] {issue.description}")
            if issue.affected_assets:
                print(f"      assets: {', '.join(issue.affected_assets)}")
    print("  Recommendations:")
    for recommendation in report.recommendations:
        print(f"    - {recommendation}")
