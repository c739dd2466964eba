from __future__ import annotations

from decimal import Decimal

from config import EngineSettings, TieBreak
from domain.base_types import WRAPPED_BASE_MINT, AssetId
from domain.ledger import TradeDirection
from domain.swap_classifier import ExclusionReason, SwapClassifier
from tests.constants import BONK, OTHER_WALLET, POOL, WALLET, WIF, WSOL_ACCOUNT
from tests.helpers.builders import make_transaction, native, token


def test_buy_with_native_base_asset(classifier: SwapClassifier) -> None:
    tx = make_transaction(
        token_transfers=[token(BONK, "1000", POOL, WALLET)],
        native_transfers=[native("2.0", WALLET, POOL)],
        block_time=1_700_000_000,
        fee="0.000005",
    )

    swap = classifier.classify(tx, WALLET)

    assert swap is not None
    assert swap.direction == TradeDirection.BUY
    assert swap.traded_asset_id == BONK
    assert swap.traded_asset_amount == Decimal(1000)
    assert swap.base_asset_amount == Decimal("2.0")
    assert swap.unit_price == Decimal("0.002")
    assert swap.base_asset_id == "SOL"
    assert swap.signature == tx.signature
    assert swap.timestamp == 1_700_000_000
    assert swap.fee == Decimal("0.000005")


def test_sell_for_wrapped_base_asset(classifier: SwapClassifier) -> None:
    tx = make_transaction(
        token_transfers=[
            token(BONK, "500", WALLET, POOL),
            token(WRAPPED_BASE_MINT, "1.5", POOL, WALLET),
        ],
    )

    swap = classifier.classify(tx, WALLET)

    assert swap is not None
    assert swap.direction == TradeDirection.SELL
    assert swap.traded_asset_id == BONK
    assert swap.traded_asset_amount == Decimal(500)
    assert swap.base_asset_amount == Decimal("1.5")


def test_wrapping_is_not_double_counted(classifier: SwapClassifier) -> None:
    # Native SOL is wrapped first, then the wrapped SOL goes to the pool.
    tx = make_transaction(
        token_transfers=[
            token(WRAPPED_BASE_MINT, "1.0", WALLET, POOL),
            token(WIF, "100", POOL, WALLET),
        ],
        native_transfers=[native("1.0", WALLET, WSOL_ACCOUNT)],
    )

    swap = classifier.classify(tx, WALLET)

    assert swap is not None
    assert swap.traded_asset_id == WIF
    assert swap.base_asset_amount == Decimal("1.0")


def test_routing_hops_are_ignored(classifier: SwapClassifier) -> None:
    tx = make_transaction(
        token_transfers=[
            token(WIF, "50", POOL, WALLET),
            token(WIF, "50", WALLET, POOL),
            token(BONK, "10", POOL, WALLET),
        ],
        native_transfers=[native("0.5", WALLET, POOL)],
    )

    swap = classifier.classify(tx, WALLET)

    assert swap is not None
    assert swap.traded_asset_id == BONK
    assert swap.traded_asset_amount == Decimal(10)


def test_dominant_asset_wins(classifier: SwapClassifier) -> None:
    tx = make_transaction(
        token_transfers=[
            token(WIF, "3", POOL, WALLET),
            token(BONK, "700", POOL, WALLET),
        ],
        native_transfers=[native("1", WALLET, POOL)],
    )

    swap = classifier.classify(tx, WALLET)

    assert swap is not None
    assert swap.traded_asset_id == BONK


def test_tie_break_by_asset_id() -> None:
    first, second = AssetId("Zeta1111"), AssetId("Alpha111")
    tx = make_transaction(
        token_transfers=[
            token(first, "10", POOL, WALLET),
            token(second, "10", POOL, WALLET),
        ],
        native_transfers=[native("1", WALLET, POOL)],
    )

    by_asset_id = SwapClassifier(settings=EngineSettings(_env_file=None, tie_break=TieBreak.ASSET_ID))
    by_order = SwapClassifier(settings=EngineSettings(_env_file=None, tie_break=TieBreak.TRANSFER_ORDER))

    swap_by_asset_id = by_asset_id.classify(tx, WALLET)
    swap_by_order = by_order.classify(tx, WALLET)

    assert swap_by_asset_id is not None and swap_by_asset_id.traded_asset_id == second
    assert swap_by_order is not None and swap_by_order.traded_asset_id == first


def test_base_only_transaction_is_not_a_swap(classifier: SwapClassifier) -> None:
    tx = make_transaction(native_transfers=[native("3", WALLET, POOL)])

    assert classifier.classify(tx, WALLET) is None


def test_unrelated_account_is_not_a_swap(classifier: SwapClassifier) -> None:
    tx = make_transaction(
        token_transfers=[token(BONK, "1000", POOL, WSOL_ACCOUNT)],
        native_transfers=[native("2.0", WSOL_ACCOUNT, POOL)],
    )

    assert classifier.classify(tx, WALLET) is None


def test_classify_many_counts_exclusions(classifier: SwapClassifier) -> None:
    transactions = [
        make_transaction(
            token_transfers=[token(BONK, "1000", POOL, WALLET)],
            native_transfers=[native("2", WALLET, POOL)],
        ),
        make_transaction(native_transfers=[native("3", WALLET, POOL)]),
        make_transaction(
            token_transfers=[token(BONK, "0.0000005", POOL, WALLET)],
            native_transfers=[native("2", WALLET, POOL)],
        ),
        make_transaction(
            token_transfers=[token(BONK, "1000", POOL, WALLET)],
            native_transfers=[native("0.0000001", WALLET, POOL)],
        ),
        # Airdrop: tokens arrive with no base asset leaving the wallet.
        make_transaction(token_transfers=[token(WIF, "25", POOL, WALLET)]),
    ]

    result = classifier.classify_many(transactions, WALLET)

    assert result.transaction_count == 5
    assert len(result.swaps) == 1
    assert result.excluded_count == 4
    assert result.exclusions == {
        ExclusionReason.NO_TRADED_ASSET: 1,
        ExclusionReason.TRADED_AMOUNT_DUST: 1,
        ExclusionReason.BASE_AMOUNT_DUST: 2,
    }


def test_platform_is_resolved(classifier: SwapClassifier) -> None:
    tx = make_transaction(
        token_transfers=[token(BONK, "1000", POOL, WALLET)],
        native_transfers=[native("2", WALLET, POOL)],
        source="RAYDIUM",
    )

    swap = classifier.classify(tx, WALLET)

    assert swap is not None
    assert swap.platform == "raydium"


def test_priority_tip_is_not_part_of_base_amount(classifier: SwapClassifier) -> None:
    tx = make_transaction(
        token_transfers=[token(BONK, "1000", POOL, WALLET)],
        native_transfers=[
            native("2.0", WALLET, POOL),
            native("0.001", WALLET, OTHER_WALLET),
        ],
    )

    swap = classifier.classify(tx, WALLET)

    assert swap is not None
    assert swap.base_asset_amount == Decimal("2.0")
    assert swap.unit_price == Decimal("0.002")
