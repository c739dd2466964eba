"""Domain models and engines for wallet PnL reconstruction.

This package contains the in-memory (Pydantic) models describing parsed
transactions, swaps, lots and closed trades, plus the pure engines that turn
one into the other. They are independent from persistence models so that
business logic and testing can evolve without DB coupling.
"""

__all__ = [
    "inventory",
    "ledger",
    "quality",
    "swap_classifier",
    "transfer_normalizer",
]
