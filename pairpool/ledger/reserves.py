"""Reserve bookkeeping and constant-product pricing.

The pool prices trades with the zero-fee constant product formula:

    amount_out = amount_in * reserve_out / (reserve_in + amount_in)

All arithmetic runs through SafeInt, so an intermediate product that does
not fit in uint256 raises ArithmeticOverflow instead of wrapping.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from pairpool.constants import PRICE_SCALE
from pairpool.errors import ArithmeticUnderflow, DivisionByZero, InvalidInput
from pairpool.models.types import normalize_address
from pairpool.safe_int import S

logger = structlog.get_logger()


@dataclass(frozen=True)
class Reserves:
    """Snapshot of both reserves."""

    reserve_a: int
    reserve_b: int

    @property
    def is_empty(self) -> bool:
        return self.reserve_a == 0 and self.reserve_b == 0

    @property
    def product(self) -> int:
        """Constant-product invariant k = reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b


def quote(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Calculate swap output using the constant product formula.

    Formula: amount_out = floor(amount_in * reserve_out / (reserve_in + amount_in))

    Args:
        amount_in: Input asset amount
        reserve_in: Reserve of the input asset
        reserve_out: Reserve of the output asset

    Returns:
        Output asset amount, always strictly below reserve_out

    Raises:
        InvalidInput: If any argument is not positive
        ArithmeticOverflow: If amount_in * reserve_out exceeds uint256
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        raise InvalidInput(
            f"Invalid reserves or amount: amount_in={amount_in}, "
            f"reserve_in={reserve_in}, reserve_out={reserve_out}"
        )

    a = S(amount_in)
    numerator = a * S(reserve_out)
    denominator = S(reserve_in) + a

    return (numerator // denominator).value


def spot_price(reserve_x: int, reserve_y: int, scale: int = PRICE_SCALE) -> int:
    """Price of X in units of Y, scaled by ``scale`` (1e18 by default).

    Raises:
        DivisionByZero: If reserve_x is zero
    """
    if reserve_x == 0:
        raise DivisionByZero("Cannot price against an empty reserve")
    return ((S(reserve_y) * S(scale)) // S(reserve_x)).value


class ReserveLedger:
    """Authoritative record of how much of each asset the pool controls."""

    def __init__(self, asset_a: str, asset_b: str, reserve_a: int = 0, reserve_b: int = 0) -> None:
        """Create a ledger for an asset pair.

        Raises:
            InvalidInput: If both assets are the same
        """
        self.asset_a = normalize_address(asset_a)
        self.asset_b = normalize_address(asset_b)
        if self.asset_a == self.asset_b:
            raise InvalidInput(f"Pool assets must differ, got {asset_a} twice")
        self._reserves = {self.asset_a: S(reserve_a).value, self.asset_b: S(reserve_b).value}

    def __repr__(self) -> str:
        return f"ReserveLedger(a={self.reserve_a}, b={self.reserve_b})"

    @property
    def reserve_a(self) -> int:
        return self._reserves[self.asset_a]

    @property
    def reserve_b(self) -> int:
        return self._reserves[self.asset_b]

    def snapshot(self) -> Reserves:
        return Reserves(reserve_a=self.reserve_a, reserve_b=self.reserve_b)

    def has(self, asset: str) -> bool:
        return normalize_address(asset) in self._reserves

    def other(self, asset: str) -> str:
        """The pool's other asset.

        Raises:
            InvalidInput: If asset is not in the pool
        """
        asset_norm = self._require(asset)
        return self.asset_b if asset_norm == self.asset_a else self.asset_a

    def reserve_of(self, asset: str) -> int:
        """Reserve of one asset.

        Raises:
            InvalidInput: If asset is not in the pool
        """
        return self._reserves[self._require(asset)]

    def reserves_for(self, asset_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        return self.reserve_of(asset_in), self.reserve_of(self.other(asset_in))

    def quote(self, asset_in: str, amount_in: int) -> int:
        """Quote a swap of ``amount_in`` of ``asset_in`` against current reserves."""
        reserve_in, reserve_out = self.reserves_for(asset_in)
        return quote(amount_in, reserve_in, reserve_out)

    def spot_price(self, asset_x: str, asset_y: str, scale: int = PRICE_SCALE) -> int:
        """Price of ``asset_x`` in ``asset_y``, scaled by ``scale``."""
        return spot_price(self.reserve_of(asset_x), self.reserve_of(asset_y), scale)

    def apply_delta(self, asset: str, delta: int) -> int:
        """Add a signed delta to one reserve.

        Returns:
            The new reserve

        Raises:
            InvalidInput: If asset is not in the pool
            ArithmeticUnderflow: If the reserve would go negative
            ArithmeticOverflow: If the reserve would exceed uint256
        """
        asset_norm = self._require(asset)
        current = S(self._reserves[asset_norm])
        if delta >= 0:
            updated = current + S(delta)
        else:
            if current < -delta:
                raise ArithmeticUnderflow(
                    f"Reserve of {asset_norm} would go negative: {current.value} + ({delta})"
                )
            updated = current - S(-delta)
        self._reserves[asset_norm] = updated.value
        return updated.value

    def sync(self, balance_a: int, balance_b: int) -> None:
        """Overwrite both reserves with observed balances."""
        new_a, new_b = S(balance_a).value, S(balance_b).value
        if (new_a, new_b) != (self.reserve_a, self.reserve_b):
            logger.debug(
                "reserves_synced",
                reserve_a_before=self.reserve_a,
                reserve_b_before=self.reserve_b,
                reserve_a=new_a,
                reserve_b=new_b,
            )
        self._reserves[self.asset_a] = new_a
        self._reserves[self.asset_b] = new_b

    def _require(self, asset: str) -> str:
        asset_norm = normalize_address(asset)
        if asset_norm not in self._reserves:
            raise InvalidInput(f"Asset {asset} not in pool")
        return asset_norm
