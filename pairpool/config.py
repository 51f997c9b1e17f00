"""Pool configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from pairpool.constants import PRICE_SCALE


class FirstDepositPolicy(str, Enum):
    """How shares are issued when the pool has no shares outstanding."""

    # isqrt(amount_a * amount_b): independent of the initial price
    GEOMETRIC_MEAN = "geometric_mean"
    # amount_a + amount_b: reference issuance, shares track raw amounts
    RESERVE_SUM = "reserve_sum"


@dataclass(frozen=True)
class PoolConfig:
    """Centralized configuration for a pool instance.

    Attributes:
        price_scale: Fixed-point scale for spot prices (default: 1e18)
        first_deposit_policy: Share issuance rule for the first deposit
            (default: geometric mean)
    """

    price_scale: int = PRICE_SCALE
    first_deposit_policy: FirstDepositPolicy = FirstDepositPolicy.GEOMETRIC_MEAN

    @classmethod
    def from_env(cls) -> PoolConfig:
        """Build a config from environment variables.

        - POOL_FIRST_DEPOSIT_POLICY: geometric_mean | reserve_sum
          (default: geometric_mean)

        Raises:
            ValueError: If the policy name is unknown
        """
        raw = os.environ.get("POOL_FIRST_DEPOSIT_POLICY", FirstDepositPolicy.GEOMETRIC_MEAN.value)
        try:
            policy = FirstDepositPolicy(raw.strip().lower())
        except ValueError as err:
            valid = ", ".join(p.value for p in FirstDepositPolicy)
            raise ValueError(f"Invalid POOL_FIRST_DEPOSIT_POLICY: {raw!r} (expected one of {valid})") from err
        return cls(first_deposit_policy=policy)


# Default configuration instance
DEFAULT_POOL_CONFIG = PoolConfig()
