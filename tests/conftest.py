"""Pytest configuration and fixtures."""

import pytest

from pairpool.engine import PoolEngine
from pairpool.tokens.memory import InMemoryAsset
from tests.helpers import ALICE, FixedClock, fund, make_pool


@pytest.fixture
def clock() -> FixedClock:
    """A clock frozen at NOW."""
    return FixedClock()


@pytest.fixture
def seeded(clock: FixedClock) -> tuple[PoolEngine, InMemoryAsset, InMemoryAsset]:
    """A GOLD/SILVER pool seeded by OWNER with reserves (1000, 1000)."""
    return make_pool(1000, 1000, clock=clock)


@pytest.fixture
def pool(seeded: tuple[PoolEngine, InMemoryAsset, InMemoryAsset]) -> PoolEngine:
    """The seeded pool engine."""
    return seeded[0]


@pytest.fixture
def gold(seeded: tuple[PoolEngine, InMemoryAsset, InMemoryAsset]) -> InMemoryAsset:
    """Asset A of the seeded pool."""
    return seeded[1]


@pytest.fixture
def silver(seeded: tuple[PoolEngine, InMemoryAsset, InMemoryAsset]) -> InMemoryAsset:
    """Asset B of the seeded pool."""
    return seeded[2]


@pytest.fixture
def alice(gold: InMemoryAsset, silver: InMemoryAsset) -> str:
    """ALICE holding 10,000 of each asset, with the pool approved."""
    fund(gold, ALICE, 10_000)
    fund(silver, ALICE, 10_000)
    return ALICE
