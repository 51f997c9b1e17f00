"""Share accounting.

Share ownership lives in exactly one place, the pool's share ledger.
ShareAccounting reads balances from it and routes credits and debits to
its mint and burn, so per-owner balances and the total supply cannot drift
apart.
"""

from __future__ import annotations

import structlog

from pairpool.config import FirstDepositPolicy
from pairpool.errors import InsufficientShares, InvalidInput
from pairpool.models.types import normalize_address
from pairpool.safe_int import S
from pairpool.tokens.memory import InMemoryAsset

logger = structlog.get_logger()


def shares_for_deposit(
    amount_a: int,
    amount_b: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
    policy: FirstDepositPolicy = FirstDepositPolicy.GEOMETRIC_MEAN,
) -> int:
    """Shares issued for depositing ``(amount_a, amount_b)``.

    With shares outstanding, the deposit is priced against the smaller of
    its two proportional contributions:

        min(amount_a * total / reserve_a, amount_b * total / reserve_b)

    With no shares outstanding, ``policy`` decides:
    - GEOMETRIC_MEAN: isqrt(amount_a * amount_b)
    - RESERVE_SUM: amount_a + amount_b

    Raises:
        DivisionByZero: If shares exist but a reserve is zero
        ArithmeticOverflow: If an intermediate product exceeds uint256
    """
    a, b, total = S(amount_a), S(amount_b), S(total_shares)

    if not total:
        if policy is FirstDepositPolicy.RESERVE_SUM:
            return (a + b).value
        return (a * b).sqrt().value

    by_a = (a * total) // S(reserve_a)
    by_b = (b * total) // S(reserve_b)
    return by_a.min(by_b).value


def amounts_for_withdrawal(
    shares: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
) -> tuple[int, int]:
    """Asset amounts redeemed by burning ``shares``, rounded down.

    Raises:
        InvalidInput: If shares or total_shares is zero
    """
    if shares <= 0 or total_shares <= 0:
        raise InvalidInput(f"Cannot redeem {shares} of {total_shares} shares")

    s, total = S(shares), S(total_shares)
    amount_a = (s * S(reserve_a)) // total
    amount_b = (s * S(reserve_b)) // total
    return amount_a.value, amount_b.value


class ShareAccounting:
    """Derived view of per-owner shares over the pool's share ledger."""

    def __init__(self, ledger: InMemoryAsset, pool_address: str) -> None:
        """Wrap a share ledger owned by the pool.

        Raises:
            InvalidInput: If the ledger is not owned by pool_address
        """
        self._pool = normalize_address(pool_address)
        if ledger.owner != self._pool:
            raise InvalidInput(f"Share ledger must be owned by the pool {self._pool}, not {ledger.owner}")
        self._ledger = ledger

    @property
    def ledger(self) -> InMemoryAsset:
        return self._ledger

    @property
    def total_shares(self) -> int:
        return self._ledger.total_supply

    def balance_of(self, owner: str) -> int:
        return self._ledger.balance_of(owner)

    def accounts(self) -> dict[str, int]:
        """Owners holding a non-zero share balance."""
        return self._ledger.holders()

    def credit(self, owner: str, shares: int) -> None:
        """Issue ``shares`` to ``owner``."""
        self._ledger.mint(self._pool, owner, shares)

    def debit(self, owner: str, shares: int) -> None:
        """Redeem ``shares`` from ``owner``.

        Raises:
            InsufficientShares: If owner holds fewer than shares
        """
        balance = self.balance_of(owner)
        if balance < shares:
            raise InsufficientShares(f"{owner} holds {balance} shares, requested {shares}")
        self._ledger.burn(self._pool, owner, shares)
