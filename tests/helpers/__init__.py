"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Asset/account addresses and a fixed clock time
- factories: Pool, asset and failing-collaborator factories
"""

from tests.helpers.constants import ALICE, BOB, DEADLINE, GOLD, NOW, OTHER, OWNER, POOL, SILVER
from tests.helpers.factories import (
    FixedClock,
    FlakyAsset,
    fund,
    make_assets,
    make_flaky_pool,
    make_pool,
)

__all__ = [
    # Constants
    "GOLD",
    "SILVER",
    "OTHER",
    "POOL",
    "OWNER",
    "ALICE",
    "BOB",
    "NOW",
    "DEADLINE",
    # Factories
    "FixedClock",
    "FlakyAsset",
    "fund",
    "make_assets",
    "make_pool",
    "make_flaky_pool",
]
