"""Data-quality scoring over classified swaps and FIFO ledger output.

The assessor is diagnostic only: it reads the ledger result and never
changes it. Each component starts at 100 and loses points per detected
problem; the overall score is their weighted mean clamped to [0, 100].
"""

from __future__ import annotations

from collections import defaultdict
from enum import StrEnum
from typing import Sequence

from pydantic import BaseModel, Field

from config import EngineSettings, config
from domain.base_types import AssetId
from domain.inventory import InventoryResult
from domain.ledger import ClosedTradeKind, Swap
from domain.platforms import UNKNOWN_PLATFORM

CLASSIFICATION_WEIGHT = 0.35
LEDGER_INTEGRITY_WEIGHT = 0.40
COMPLETENESS_WEIGHT = 0.25

LOW_CONFIDENCE_BELOW = 60.0
HIGH_CONFIDENCE_ABOVE = 80.0
MAX_WARNINGS_FOR_HIGH = 3
MAX_OVERSOLD_ASSETS_FOR_WARNING = 5


class Severity(StrEnum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class IssueCategory(StrEnum):
    SWAP_DETECTION = "SWAP_DETECTION"
    OVERSELL = "OVERSELL"
    PNL_CALCULATION = "PNL_CALCULATION"
    LEDGER_INTEGRITY = "LEDGER_INTEGRITY"
    MISSING_DATA = "MISSING_DATA"


class ConfidenceLevel(StrEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class QualityIssue(BaseModel):
    severity: Severity
    category: IssueCategory
    description: str
    impact: str
    recommendation: str
    affected_assets: list[AssetId] = Field(default_factory=list)


class QualityReport(BaseModel):
    overall_score: float
    classification_score: float
    ledger_integrity_score: float
    completeness_score: float
    confidence_level: ConfidenceLevel
    issues: list[QualityIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class QualityAssessor:
    def __init__(self, *, settings: EngineSettings | None = None) -> None:
        self._settings = settings or config()

    def assess(
        self,
        transaction_count: int,
        swaps: Sequence[Swap],
        result: InventoryResult,
        *,
        transaction_timestamps: Sequence[int] | None = None,
        rejected_transactions: int = 0,
    ) -> QualityReport:
        issues: list[QualityIssue] = []

        classification_score = self._assess_classification(transaction_count, swaps, issues)
        ledger_integrity_score = self._assess_ledger_integrity(result, issues)
        completeness_score = self._assess_completeness(transaction_timestamps or [], rejected_transactions, issues)

        overall_score = _clamp(
            classification_score * CLASSIFICATION_WEIGHT
            + ledger_integrity_score * LEDGER_INTEGRITY_WEIGHT
            + completeness_score * COMPLETENESS_WEIGHT
        )

        return QualityReport(
            overall_score=round(overall_score, 1),
            classification_score=classification_score,
            ledger_integrity_score=ledger_integrity_score,
            completeness_score=completeness_score,
            confidence_level=self._confidence_level(overall_score, issues, result),
            issues=issues,
            recommendations=_recommendations(issues, overall_score),
        )

    def _assess_classification(
        self,
        transaction_count: int,
        swaps: Sequence[Swap],
        issues: list[QualityIssue],
    ) -> float:
        settings = self._settings
        score = 100.0

        if transaction_count > 0:
            detection_rate = len(swaps) / transaction_count
            if detection_rate < settings.min_detection_rate:
                issues.append(
                    QualityIssue(
                        severity=Severity.WARNING,
                        category=IssueCategory.SWAP_DETECTION,
                        description=f"Low swap detection rate: {detection_rate * 100:.1f}%",
                        impact="Legitimate trading activity may be missing from the ledger",
                        recommendation="Review the transaction source and classifier thresholds",
                    )
                )
                score -= 20

        if swaps:
            unknown = sum(1 for swap in swaps if swap.platform == UNKNOWN_PLATFORM)
            unknown_ratio = unknown / len(swaps)
            if unknown_ratio > settings.max_unknown_platform_ratio:
                issues.append(
                    QualityIssue(
                        severity=Severity.WARNING,
                        category=IssueCategory.SWAP_DETECTION,
                        description=f"High unknown platform rate: {unknown_ratio * 100:.1f}%",
                        impact="Platform attribution may be inaccurate",
                        recommendation="Extend the program and source platform mappings",
                    )
                )
                score -= 15

        rapid = _count_rapid_trades(swaps, settings.rapid_trade_seconds)
        if rapid:
            issues.append(
                QualityIssue(
                    severity=Severity.INFO,
                    category=IssueCategory.SWAP_DETECTION,
                    description=f"Found {rapid} rapid trades (< {settings.rapid_trade_seconds} seconds apart)",
                    impact="May indicate MEV bots or arbitrage activity",
                    recommendation="Consider whether these represent deliberate trading",
                )
            )
            score -= 5

        return _clamp(score)

    def _assess_ledger_integrity(self, result: InventoryResult, issues: list[QualityIssue]) -> float:
        settings = self._settings
        summary = result.summary
        closed_count = len(result.closed_trades)
        score = 100.0

        if summary.oversell_count > 0:
            oversell_ratio = summary.oversell_count / closed_count if closed_count else 1.0
            oversold_assets = sorted(
                {trade.asset_id for trade in result.closed_trades if trade.kind == ClosedTradeKind.OVERSELL}
            )
            severity = Severity.ERROR if len(oversold_assets) > MAX_OVERSOLD_ASSETS_FOR_WARNING else Severity.WARNING
            issues.append(
                QualityIssue(
                    severity=severity,
                    category=IssueCategory.OVERSELL,
                    description=(
                        f"Oversell detected in {len(oversold_assets)} assets "
                        f"({summary.oversell_count} of {closed_count} closed trades)"
                    ),
                    impact="Part of the sold quantity has no recorded buy; those portions carry zero PnL",
                    recommendation="Extend the history window for the affected assets",
                    affected_assets=oversold_assets,
                )
            )
            score -= 15 + 45 * oversell_ratio

        if summary.zero_profit_count > 0 and closed_count:
            zero_profit_ratio = summary.zero_profit_count / closed_count
            missing_buy_assets = sorted(
                {trade.asset_id for trade in result.closed_trades if trade.kind == ClosedTradeKind.MISSING_BUY}
            )
            if zero_profit_ratio > settings.max_zero_profit_ratio:
                issues.append(
                    QualityIssue(
                        severity=Severity.WARNING,
                        category=IssueCategory.PNL_CALCULATION,
                        description=f"High zero-profit trade ratio: {zero_profit_ratio * 100:.1f}%",
                        impact="Sells without recorded buys (airdrops or missing history) contribute no PnL",
                        recommendation="Investigate whether the affected assets were airdropped",
                        affected_assets=missing_buy_assets,
                    )
                )
                score -= 10 + 30 * zero_profit_ratio
            else:
                issues.append(
                    QualityIssue(
                        severity=Severity.INFO,
                        category=IssueCategory.PNL_CALCULATION,
                        description=f"{summary.zero_profit_count} sells without recorded buys",
                        impact="These sells contribute proceeds but no realized PnL",
                        recommendation="Check whether the affected assets were airdropped",
                        affected_assets=missing_buy_assets,
                    )
                )
                score -= 5

        outliers = [
            trade
            for trade in result.closed_trades
            if (trade.pnl_percent is not None and abs(trade.pnl_percent) > settings.outlier_pnl_percent)
            or abs(trade.realized_pnl) > settings.outlier_pnl_ceiling
        ]
        if outliers:
            issues.append(
                QualityIssue(
                    severity=Severity.WARNING,
                    category=IssueCategory.PNL_CALCULATION,
                    description=f"Found {len(outliers)} trades with extreme PnL values",
                    impact="May indicate misclassified swaps or exceptional market events",
                    recommendation="Manually verify the extreme trades",
                    affected_assets=sorted({trade.asset_id for trade in outliers}),
                )
            )
            score -= 10

        if summary.invariant_corrections:
            issues.append(
                QualityIssue(
                    severity=Severity.WARNING,
                    category=IssueCategory.LEDGER_INTEGRITY,
                    description=f"{summary.invariant_corrections} holding consistency corrections applied",
                    impact="Open position quantities or average costs were recomputed from lots",
                    recommendation="Report the input swaps so the drift can be reproduced",
                )
            )
            score -= min(20, 5 * summary.invariant_corrections)

        return _clamp(score)

    def _assess_completeness(
        self,
        transaction_timestamps: Sequence[int],
        rejected_transactions: int,
        issues: list[QualityIssue],
    ) -> float:
        score = 100.0

        if rejected_transactions > 0:
            issues.append(
                QualityIssue(
                    severity=Severity.ERROR,
                    category=IssueCategory.MISSING_DATA,
                    description=f"{rejected_transactions} transactions rejected as malformed (e.g. missing block time)",
                    impact="Rejected transactions cannot be ordered and are absent from the ledger",
                    recommendation="Re-fetch the affected transactions",
                )
            )
            score -= 30

        gap_seconds = self._settings.large_gap_hours * 3600
        ordered = sorted(transaction_timestamps)
        large_gaps = sum(1 for earlier, later in zip(ordered, ordered[1:]) if later - earlier > gap_seconds)
        if large_gaps:
            issues.append(
                QualityIssue(
                    severity=Severity.WARNING,
                    category=IssueCategory.MISSING_DATA,
                    description=(
                        f"Found {large_gaps} time gaps longer than {self._settings.large_gap_hours} hours "
                        "between transactions"
                    ),
                    impact="Transactions may be missing during these periods",
                    recommendation="Verify history completeness for the gap periods",
                )
            )
            score -= 20

        return _clamp(score)

    def _confidence_level(
        self,
        overall_score: float,
        issues: Sequence[QualityIssue],
        result: InventoryResult,
    ) -> ConfidenceLevel:
        if overall_score < LOW_CONFIDENCE_BELOW:
            return ConfidenceLevel.LOW

        level = ConfidenceLevel.HIGH if overall_score > HIGH_CONFIDENCE_ABOVE else ConfidenceLevel.MEDIUM
        has_errors = any(issue.severity == Severity.ERROR for issue in issues)
        warnings = sum(1 for issue in issues if issue.severity == Severity.WARNING)
        if has_errors or result.summary.oversell_count > 0 or warnings > MAX_WARNINGS_FOR_HIGH:
            level = ConfidenceLevel.MEDIUM
        return level


def _count_rapid_trades(swaps: Sequence[Swap], threshold_seconds: int) -> int:
    by_asset: dict[AssetId, list[int]] = defaultdict(list)
    for swap in swaps:
        by_asset[swap.traded_asset_id].append(swap.timestamp)

    rapid = 0
    for timestamps in by_asset.values():
        timestamps.sort()
        rapid += sum(1 for earlier, later in zip(timestamps, timestamps[1:]) if later - earlier < threshold_seconds)
    return rapid


def _recommendations(issues: Sequence[QualityIssue], overall_score: float) -> list[str]:
    recommendations: list[str] = []
    categories = {issue.category for issue in issues if issue.severity != Severity.INFO}

    if overall_score < 70:
        recommendations.append("Data quality concerns: use results with caution")
    if IssueCategory.OVERSELL in categories:
        recommendations.append("Oversell detected: verify transaction history completeness")
    if IssueCategory.MISSING_DATA in categories:
        recommendations.append("Missing data: extend the analysis period or re-fetch rejected transactions")
    if IssueCategory.SWAP_DETECTION in categories:
        recommendations.append("Swap detection: review platform mappings and classifier thresholds")
    if IssueCategory.PNL_CALCULATION in categories:
        recommendations.append("PnL calculation: verify extreme values and zero-profit trades")
    if IssueCategory.LEDGER_INTEGRITY in categories:
        recommendations.append("Ledger integrity: holdings were corrected during processing")
    if not recommendations:
        recommendations.append("Data appears reliable and complete")
    return recommendations


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, score))
