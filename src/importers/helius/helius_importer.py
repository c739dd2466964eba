from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, cast

from pydantic import ValidationError

from domain.base_types import AccountId, AssetId, Signature
from domain.transaction import NativeTransfer, ParsedTransaction, TokenTransfer

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = Decimal(10) ** 9


class HeliusImportError(ValueError):
    pass


def _parse_decimal(raw: object) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def _decode_token_amount(entry: dict[str, Any]) -> Decimal | None:
    """Return the UI amount of a token transfer.

    Prefers the already-scaled `tokenAmount`; falls back to scaling
    `rawTokenAmount.tokenAmount` by its `decimals`.
    """
    amount = _parse_decimal(entry.get("tokenAmount"))
    if amount is not None:
        return abs(amount)

    raw = entry.get("rawTokenAmount")
    if not isinstance(raw, dict):
        return None
    raw_amount = _parse_decimal(raw.get("tokenAmount"))
    if raw_amount is None:
        return None
    try:
        decimals = int(raw.get("decimals") or 0)
    except (TypeError, ValueError):
        decimals = 0
    return abs(raw_amount / (Decimal(10) ** decimals))


def _lamports_to_sol(raw: object) -> Decimal:
    lamports = _parse_decimal(raw)
    if lamports is None:
        return Decimal(0)
    return abs(lamports) / LAMPORTS_PER_SOL


def _entries(raw: object) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [cast(dict[str, Any], entry) for entry in raw if isinstance(entry, dict)]


def _block_time(tx: dict[str, Any]) -> int | None:
    for key in ("blockTime", "timestamp"):
        value = tx.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return int(value)
    return None


class HeliusImporter:
    """Load a saved Helius enhanced-transactions dump (a JSON list) as ParsedTransactions.

    Transactions without a block time cannot be ordered and are rejected;
    `rejected_count` reports how many were dropped by the last `load_transactions`.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.rejected_count = 0

    def load_transactions(self) -> list[ParsedTransaction]:
        try:
            payload = json.loads(self.path.read_text())
        except json.JSONDecodeError as err:
            raise HeliusImportError(f"{self.path} is not valid JSON: {err}") from err
        if not isinstance(payload, list):
            raise HeliusImportError(f"{self.path} must contain a JSON list of transactions")

        self.rejected_count = 0
        transactions: list[ParsedTransaction] = []
        seen: set[str] = set()

        for raw_tx in payload:
            if not isinstance(raw_tx, dict):
                self.rejected_count += 1
                continue
            tx = self._build_transaction(cast(dict[str, Any], raw_tx))
            if tx is None:
                self.rejected_count += 1
                continue
            if tx.signature in seen:
                logger.debug("Dropping duplicate transaction %s", tx.signature)
                continue
            seen.add(tx.signature)
            transactions.append(tx)

        transactions.sort(key=lambda t: t.block_time)
        logger.info(
            "Loaded %d transactions from %s (%d rejected)",
            len(transactions),
            self.path,
            self.rejected_count,
        )
        return transactions

    def _build_transaction(self, tx: dict[str, Any]) -> ParsedTransaction | None:
        signature = str(tx.get("signature") or "")
        block_time = _block_time(tx)
        if not signature or block_time is None:
            logger.info("Rejecting transaction without signature or block time: %s", signature or "<missing>")
            return None

        token_transfers: list[TokenTransfer] = []
        for entry in _entries(tx.get("tokenTransfers")):
            amount = _decode_token_amount(entry)
            mint = entry.get("mint")
            if amount is None or amount == 0 or not mint:
                continue
            token_transfers.append(
                TokenTransfer(
                    asset_id=AssetId(str(mint)),
                    amount=amount,
                    from_account=AccountId(str(entry.get("fromUserAccount") or "")),
                    to_account=AccountId(str(entry.get("toUserAccount") or "")),
                )
            )

        native_transfers: list[NativeTransfer] = []
        for entry in _entries(tx.get("nativeTransfers")):
            amount = _lamports_to_sol(entry.get("amount"))
            if amount == 0:
                continue
            native_transfers.append(
                NativeTransfer(
                    amount=amount,
                    from_account=AccountId(str(entry.get("fromUserAccount") or "")),
                    to_account=AccountId(str(entry.get("toUserAccount") or "")),
                )
            )

        program_ids = [
            str(instruction["programId"])
            for instruction in _entries(tx.get("instructions"))
            if instruction.get("programId")
        ]

        try:
            return ParsedTransaction(
                signature=Signature(signature),
                block_time=block_time,
                fee=_lamports_to_sol(tx.get("fee")),
                type=tx.get("type"),
                source=tx.get("source"),
                token_transfers=token_transfers,
                native_transfers=native_transfers,
                program_ids=program_ids,
            )
        except ValidationError as err:
            logger.info("Rejecting malformed transaction %s: %s", signature, err)
            return None
