import json
from decimal import Decimal
from pathlib import Path

import pytest

from db.db import init_db
from db.repositories import ClosedTradeRepository, SwapRepository
from domain.base_types import WRAPPED_BASE_MINT
from main import main, run
from tests.constants import BONK, POOL, WALLET


def _write_history(tmp_path: Path) -> Path:
    history = [
        {
            "signature": "sig-buy",
            "timestamp": 1_700_000_000,
            "fee": 5000,
            "source": "RAYDIUM",
            "tokenTransfers": [
                {"mint": BONK, "tokenAmount": 1000, "fromUserAccount": POOL, "toUserAccount": WALLET},
            ],
            "nativeTransfers": [
                {"amount": 1_000_000_000, "fromUserAccount": WALLET, "toUserAccount": POOL},
            ],
        },
        {
            "signature": "sig-sell",
            "timestamp": 1_700_003_600,
            "fee": 5000,
            "source": "RAYDIUM",
            "tokenTransfers": [
                {"mint": BONK, "tokenAmount": 1000, "fromUserAccount": WALLET, "toUserAccount": POOL},
                {"mint": WRAPPED_BASE_MINT, "tokenAmount": 1.5, "fromUserAccount": POOL, "toUserAccount": WALLET},
            ],
        },
        {"signature": "sig-broken", "tokenTransfers": []},
    ]
    path = tmp_path / "transactions.json"
    path.write_text(json.dumps(history))
    return path


def test_run_prints_summary_and_persists(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db_file = tmp_path / "wallet.db"

    run(_write_history(tmp_path), WALLET, db_file=db_file)

    out = capsys.readouterr().out
    assert "Imported 2 transactions" in out
    assert "Classified 2 swaps (0 excluded)" in out
    assert "Trade summary:" in out
    assert "Data quality:" in out

    session = init_db(db_file)
    swaps = SwapRepository(session).list(WALLET)
    trades = ClosedTradeRepository(session).list(WALLET)
    assert [swap.signature for swap in swaps] == ["sig-buy", "sig-sell"]
    assert len(trades) == 1
    assert trades[0].realized_pnl == Decimal("0.5")


def test_main_requires_account(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        main(["--transactions", str(_write_history(tmp_path))])
