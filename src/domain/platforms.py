from __future__ import annotations

from typing import Mapping

from domain.transaction import ParsedTransaction

UNKNOWN_PLATFORM = "unknown"

PROGRAM_PLATFORMS: dict[str, str] = {
    "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P": "pumpfun",
    "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA": "pumpswap",
    "JUP6LkbZbjS1jKKwapdHch49T4B9iFPE9Z1b6dpVRfC": "jupiter",
    "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB": "jupiter",
    "JUP3c2Uh3WA4Ng34tw6kPd2G4C5BB21Xo36Je1s32Ph": "jupiter",
    "JUP2jxvXaqu7NQY1GmNF4m1vodw12LVXYxbFL2uJvfo": "jupiter",
    "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN": "jupiter",
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8": "raydium",
    "CPMMoo8L3F4NbTegBCKVNunggL7H1ZpdTHKxQB5qKP1C": "raydium",
    "LanMV9sAd7wArD4vJFi2qDdfnVhFxYSUg6eADduJ3uj": "raydium",
    "whirLbMiFpS623VTM7grqDMLGj1joXNReeMvjt2M5B": "orca",
    "METEorah8AIxagb27F2nXa5n2t4aenrNzz6u2sMv1": "meteora",
}

# Matched as lowercase substrings of the indexer's `source` hint, in order.
SOURCE_PLATFORMS: tuple[tuple[str, str], ...] = (
    ("pump_amm", "pumpswap"),
    ("pump_fun", "pumpfun"),
    ("pumpfun", "pumpfun"),
    ("raydium", "raydium"),
    ("jupiter", "jupiter"),
    ("orca", "orca"),
    ("meteora", "meteora"),
)


class PlatformResolver:
    """Best-effort attribution of a transaction to a trading venue."""

    def __init__(
        self,
        *,
        program_platforms: Mapping[str, str] | None = None,
        source_platforms: tuple[tuple[str, str], ...] | None = None,
    ) -> None:
        self._program_platforms = dict(PROGRAM_PLATFORMS if program_platforms is None else program_platforms)
        self._source_platforms = SOURCE_PLATFORMS if source_platforms is None else source_platforms

    def resolve(self, transaction: ParsedTransaction) -> str:
        source = (transaction.source or "").lower()
        if source:
            for needle, platform in self._source_platforms:
                if needle in source:
                    return platform

        for program_id in transaction.program_ids:
            platform = self._program_platforms.get(program_id)
            if platform is not None:
                return platform

        return UNKNOWN_PLATFORM
