from __future__ import annotations

from typing import NewType

AssetId = NewType("AssetId", str)
AccountId = NewType("AccountId", str)
Signature = NewType("Signature", str)

BASE_ASSET_ID = AssetId("SOL")
WRAPPED_BASE_MINT = AssetId("So11111111111111111111111111111111111111112")
