"""Asset collaborators: the contract the engine consumes and an in-memory ledger."""

from pairpool.tokens.base import AssetContract
from pairpool.tokens.memory import CallerBoundAsset, InMemoryAsset

__all__ = [
    "AssetContract",
    "CallerBoundAsset",
    "InMemoryAsset",
]
