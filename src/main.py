from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from config import config
from db.db import init_db
from db.repositories import ClosedTradeRepository, SwapRepository
from domain.base_types import AccountId
from domain.inventory import FifoLedgerEngine, InventoryResult
from domain.quality import QualityAssessor
from domain.swap_classifier import SwapClassifier
from importers.helius import HeliusImporter
from utils.trade_summary import compute_trade_summary, render_quality_report, render_trade_summary


def run(transactions_path: Path, account: AccountId, *, db_file: Path | None = None) -> None:
    settings = config()

    importer = HeliusImporter(transactions_path)
    classifier = SwapClassifier(settings=settings)
    engine = FifoLedgerEngine(settings=settings)
    assessor = QualityAssessor(settings=settings)

    # Get data
    transactions = importer.load_transactions()

    # Process stuff
    classification = classifier.classify_many(transactions, account)
    swaps = classification.swaps
    result = engine.process(swaps)
    report = assessor.assess(
        classification.transaction_count,
        swaps,
        result,
        transaction_timestamps=[tx.block_time for tx in transactions],
        rejected_transactions=importer.rejected_count,
    )

    if db_file is not None:
        session = init_db(db_file, reset=True)
        SwapRepository(session).create_many(account, swaps)
        ClosedTradeRepository(session).create_many(account, result.closed_trades)

    # Print summary
    print(f"Imported {len(transactions)} transactions from {transactions_path}")
    print(f"Classified {len(swaps)} swaps ({classification.excluded_count} excluded)")
    print_base_ledger_summary(result)
    render_trade_summary(compute_trade_summary(swaps, result), base_asset_id=settings.base_asset_id)
    render_quality_report(report)


def print_base_ledger_summary(result: InventoryResult) -> None:
    print("Ledger summary:")
    print(f"  Buys / sells:    {result.summary.buy_count} / {result.summary.sell_count}")
    print(f"  Closed trades:   {len(result.closed_trades)}")
    print(f"  Open holdings:   {len(result.open_holdings)}")
    print(f"  Oversells:       {result.summary.oversell_count}")
    print(f"  Missing buys:    {result.summary.zero_profit_count}")


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Classify wallet swaps and compute FIFO realized PnL.")
    parser.add_argument("--transactions", type=Path, default=Path("data/transactions.json"))
    parser.add_argument("--account", required=True, help="Wallet address to analyze")
    parser.add_argument("--db", type=Path, default=None, help="Persist swaps and closed trades to this sqlite file")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    run(args.transactions, AccountId(args.account), db_file=args.db)


if __name__ == "__main__":
    main()
