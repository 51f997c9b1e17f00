"""Pool engine: deposit, withdraw and swap against a two-asset pool.

PoolEngine is the only component with externally observable side effects.
Each operation validates everything it can, moves assets through the asset
collaborators, and only then commits reserve and share state. Inbound
transfers already made are refunded when a later step fails, so a failed
operation leaves the pool as it found it. The one exception is a withdraw
whose second payout fails after the first was sent; it settles the burn
against the pool's actual balances before raising.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import NamedTuple

import structlog

from pairpool.config import DEFAULT_POOL_CONFIG, PoolConfig
from pairpool.constants import UINT256_MAX
from pairpool.errors import (
    ArithmeticOverflow,
    Expired,
    InsufficientLiquidityMinted,
    InsufficientOutput,
    InsufficientShares,
    InvalidInput,
    InvalidSwapDirection,
    SlippageExceeded,
    TransferFailed,
)
from pairpool.ledger.reserves import ReserveLedger, Reserves, quote
from pairpool.ledger.shares import ShareAccounting, amounts_for_withdrawal, shares_for_deposit
from pairpool.models.types import is_valid_address, normalize_address
from pairpool.safe_int import S
from pairpool.tokens.base import AssetContract
from pairpool.tokens.memory import InMemoryAsset

logger = structlog.get_logger()


class DepositResult(NamedTuple):
    """Amounts actually deposited and shares issued, in the caller's asset order."""

    used_a: int
    used_b: int
    shares_issued: int


class WithdrawResult(NamedTuple):
    """Amounts paid out, in the caller's asset order."""

    amount_a: int
    amount_b: int


class _InboundLegs:
    """Inbound transfers made during one operation, refundable as a group."""

    def __init__(self, pool: str, sender: str, operation: str) -> None:
        self._pool = pool
        self._sender = sender
        self._operation = operation
        self._received: list[tuple[AssetContract, int]] = []

    def pull(self, asset: AssetContract, amount: int) -> None:
        """Pull ``amount`` of ``asset`` from the sender into the pool.

        Raises:
            TransferFailed: If the collaborator reports failure
        """
        if not asset.transfer_from(self._sender, self._pool, amount):
            raise TransferFailed(f"Transfer of {amount} {asset.address} from {self._sender} failed")
        self._received.append((asset, amount))

    def record(self, asset: AssetContract, amount: int) -> None:
        """Register an amount that arrived without a successful ``pull``."""
        self._received.append((asset, amount))

    def refund(self) -> None:
        for asset, amount in reversed(self._received):
            if amount == 0:
                continue
            if not asset.transfer(self._sender, amount):
                logger.error(
                    "refund_failed",
                    operation=self._operation,
                    asset=asset.address,
                    recipient=self._sender,
                    amount=amount,
                )
        self._received.clear()


class PoolEngine:
    """Two-asset constant-product pool.

    The engine owns its reserve ledger and share accounting. Asset
    collaborators must act as the pool's own address: ``transfer`` pays out
    of the pool and ``transfer_from`` spends allowances granted to the pool.

    Operations are serialized per instance; none of them interleave.
    """

    def __init__(
        self,
        address: str,
        asset_a: AssetContract,
        asset_b: AssetContract,
        share_ledger: InMemoryAsset,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Create an empty pool.

        Args:
            address: The pool's own account address
            asset_a: Collaborator for asset A, calling as the pool
            asset_b: Collaborator for asset B, calling as the pool
            share_ledger: Fungible ledger for pool shares, owned by the pool
            config: Pool configuration
            clock: Returns the current time in seconds, for deadline checks

        Raises:
            InvalidInput: If an address is malformed or the assets coincide
        """
        self.address = _account(address, "pool")
        self._assets = {
            normalize_address(asset_a.address): asset_a,
            normalize_address(asset_b.address): asset_b,
        }
        self._reserves = ReserveLedger(asset_a.address, asset_b.address)
        self._shares = ShareAccounting(share_ledger, self.address)
        self.config = config
        self._clock = clock
        self._lock = threading.Lock()

    @classmethod
    def in_memory(
        cls,
        address: str,
        asset_a: InMemoryAsset,
        asset_b: InMemoryAsset,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        clock: Callable[[], float] = time.time,
    ) -> PoolEngine:
        """Build a pool over two in-memory assets.

        The share ledger lives at the pool's own address, with the pool as
        its owner.
        """
        share_ledger = InMemoryAsset(address=address, owner=address, symbol="SHARE")
        return cls(
            address,
            asset_a.as_caller(address),
            asset_b.as_caller(address),
            share_ledger,
            config=config,
            clock=clock,
        )

    def __repr__(self) -> str:
        return f"PoolEngine({self.address}, {self._reserves!r}, shares={self.total_shares})"

    # --- Read views ---

    @property
    def asset_a(self) -> str:
        return self._reserves.asset_a

    @property
    def asset_b(self) -> str:
        return self._reserves.asset_b

    @property
    def share_ledger(self) -> InMemoryAsset:
        return self._shares.ledger

    @property
    def total_shares(self) -> int:
        return self._shares.total_shares

    def reserves(self) -> Reserves:
        return self._reserves.snapshot()

    def share_balance(self, owner: str) -> int:
        return self._shares.balance_of(owner)

    def share_accounts(self) -> dict[str, int]:
        return self._shares.accounts()

    def get_price(self, asset_x: str, asset_y: str) -> int:
        """Spot price of ``asset_x`` in ``asset_y``, scaled by ``config.price_scale``.

        Priced from the stored reserves, not live balances: assets sent to the
        pool directly only move this price once the next swap syncs reserves.

        Raises:
            InvalidInput: If the assets are not the pool's two distinct assets
            DivisionByZero: If the reserve of asset_x is zero
        """
        x, y = self._ordered_pair(asset_x, asset_y)
        return self._reserves.spot_price(x, y, self.config.price_scale)

    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        """Constant-product quote for arbitrary reserves (see ledger.reserves.quote)."""
        return quote(amount_in, reserve_in, reserve_out)

    # --- Liquidity ---

    def seed(self, owner: str, amount_a: int, amount_b: int) -> int:
        """Bootstrap the pool with its first deposit, made by ``owner``.

        Returns:
            Shares issued to owner

        Raises:
            InvalidInput: If the pool already holds reserves or shares
        """
        with self._lock:
            if self.total_shares or not self._reserves.snapshot().is_empty:
                raise InvalidInput("Pool is already seeded")
            owner = _account(owner, "owner")
            used_a, used_b, shares = self._add_liquidity(
                owner, amount_a, amount_b, amount_a, amount_b, owner
            )
            logger.info(
                "pool_seeded",
                pool=self.address,
                owner=owner,
                amount_a=used_a,
                amount_b=used_b,
                shares=shares,
                policy=self.config.first_deposit_policy.value,
            )
            return shares

    def deposit(
        self,
        sender: str,
        asset_a: str,
        asset_b: str,
        desired_a: int,
        desired_b: int,
        min_a: int,
        min_b: int,
        recipient: str,
        deadline: int,
    ) -> DepositResult:
        """Deposit a pair of assets at the current ratio and issue shares.

        ``asset_a``/``asset_b`` may name the pool's assets in either order;
        amounts follow that order, and so does the result.

        Returns:
            DepositResult(used_a, used_b, shares_issued)

        Raises:
            Expired: If the deadline has passed
            InvalidInput: If an asset, address or amount is invalid
            SlippageExceeded: If the matched amount falls below its minimum
            InsufficientLiquidityMinted: If no shares would be issued
            TransferFailed: If pulling either asset fails
        """
        with self._lock:
            self._check_deadline(deadline, "deposit")
            first, _ = self._ordered_pair(asset_a, asset_b)
            flipped = first != self.asset_a
            sender = _account(sender, "sender")
            recipient = _account(recipient, "recipient")
            if flipped:
                desired_a, desired_b, min_a, min_b = desired_b, desired_a, min_b, min_a

            used_a, used_b, shares = self._add_liquidity(
                sender, desired_a, desired_b, min_a, min_b, recipient
            )
            logger.info(
                "liquidity_added",
                pool=self.address,
                sender=sender,
                recipient=recipient,
                amount_a=used_a,
                amount_b=used_b,
                shares=shares,
            )
            if flipped:
                return DepositResult(used_b, used_a, shares)
            return DepositResult(used_a, used_b, shares)

    def withdraw(
        self,
        sender: str,
        asset_a: str,
        asset_b: str,
        shares: int,
        min_a: int,
        min_b: int,
        recipient: str,
        deadline: int,
    ) -> WithdrawResult:
        """Burn ``sender``'s shares and pay out the proportional reserves.

        Returns:
            WithdrawResult(amount_a, amount_b) in the caller's asset order

        Raises:
            Expired: If the deadline has passed
            InvalidInput: If an asset, address or amount is invalid
            InsufficientShares: If sender holds fewer than shares
            SlippageExceeded: If either payout is below its minimum
            TransferFailed: If the pool cannot pay out either asset. When the
                second payout fails after the first was sent, the shares are
                still burned and reserves are resynced from the pool's balances.
        """
        with self._lock:
            self._check_deadline(deadline, "withdraw")
            first, _ = self._ordered_pair(asset_a, asset_b)
            flipped = first != self.asset_a
            sender = _account(sender, "sender")
            recipient = _account(recipient, "recipient")
            _require_amount("shares", shares, positive=True)
            _require_amount("min_a", min_a)
            _require_amount("min_b", min_b)
            if flipped:
                min_a, min_b = min_b, min_a

            held = self._shares.balance_of(sender)
            if held < shares:
                raise InsufficientShares(f"{sender} holds {held} shares, requested {shares}")

            reserves = self._reserves.snapshot()
            amount_a, amount_b = amounts_for_withdrawal(
                shares, reserves.reserve_a, reserves.reserve_b, self.total_shares
            )
            if amount_a < min_a:
                raise SlippageExceeded(f"Insufficient A amount: {amount_a} < {min_a}")
            if amount_b < min_b:
                raise SlippageExceeded(f"Insufficient B amount: {amount_b} < {min_b}")

            payouts = [(self.asset_a, amount_a), (self.asset_b, amount_b)]
            for asset, amount in payouts:
                available = self._assets[asset].balance_of(self.address)
                if available < amount:
                    raise TransferFailed(f"Pool holds {available} of {asset}, cannot pay {amount}")

            for index, (asset, amount) in enumerate(payouts):
                if not self._assets[asset].transfer(recipient, amount):
                    if index > 0:
                        # Earlier payouts cannot be recalled: the shares are spent and
                        # the unpaid leg stays in the reserves for remaining holders
                        self._shares.debit(sender, shares)
                        self._sync_reserves()
                        logger.error(
                            "withdraw_payout_incomplete",
                            pool=self.address,
                            sender=sender,
                            recipient=recipient,
                            shares=shares,
                            paid=payouts[:index],
                            failed_asset=asset,
                        )
                    raise TransferFailed(f"Transfer of {amount} {asset} to {recipient} failed")

            self._shares.debit(sender, shares)
            self._reserves.apply_delta(self.asset_a, -amount_a)
            self._reserves.apply_delta(self.asset_b, -amount_b)

            logger.info(
                "liquidity_removed",
                pool=self.address,
                sender=sender,
                recipient=recipient,
                shares=shares,
                amount_a=amount_a,
                amount_b=amount_b,
            )
            if flipped:
                return WithdrawResult(amount_b, amount_a)
            return WithdrawResult(amount_a, amount_b)

    # --- Swaps ---

    def swap(
        self,
        sender: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        recipient: str,
        deadline: int,
    ) -> int:
        """Swap an exact input amount along ``path = [asset_in, asset_out]``.

        The pool's balances of both assets are sampled around the inbound
        transfer: only the named input asset may increase. After the payout,
        reserves are overwritten with the observed balances, so assets sent to
        the pool outside the engine are absorbed into future prices.

        Returns:
            Amount of asset_out paid to recipient

        Raises:
            Expired: If the deadline has passed
            InvalidInput: If the path, an address or an amount is invalid
            InvalidSwapDirection: If the named input asset did not arrive
            SlippageExceeded: If the output is below amount_out_min
            InsufficientOutput: If the output is zero
            TransferFailed: If the inbound or outbound transfer fails
        """
        with self._lock:
            self._check_deadline(deadline, "swap")
            asset_in, asset_out = self._swap_path(path)
            sender = _account(sender, "sender")
            recipient = _account(recipient, "recipient")
            _require_amount("amount_in", amount_in, positive=True)
            _require_amount("amount_out_min", amount_out_min)

            token_in = self._assets[asset_in]
            token_out = self._assets[asset_out]

            with self._inbound(sender, "swap") as legs:
                before_in = token_in.balance_of(self.address)
                before_out = token_out.balance_of(self.address)
                if not token_in.transfer_from(sender, self.address, amount_in):
                    raise TransferFailed(f"Transfer of {amount_in} {asset_in} from {sender} failed")
                received = token_in.balance_of(self.address) - before_in
                if received > 0:
                    legs.record(token_in, received)
                if received <= 0 or token_out.balance_of(self.address) != before_out:
                    raise InvalidSwapDirection(
                        f"Expected only {asset_in} to increase; received {received}"
                    )

                effective_in = min(received, amount_in)
                amount_out = self._reserves.quote(asset_in, effective_in)
                if amount_out < amount_out_min:
                    raise SlippageExceeded(f"Insufficient output amount: {amount_out} < {amount_out_min}")
                if amount_out == 0:
                    raise InsufficientOutput(f"Swap of {effective_in} {asset_in} yields nothing")

                if not token_out.transfer(recipient, amount_out):
                    raise TransferFailed(f"Transfer of {amount_out} {asset_out} to {recipient} failed")

            before = self._reserves.snapshot()
            self._sync_reserves()

            logger.info(
                "swap_executed",
                pool=self.address,
                sender=sender,
                recipient=recipient,
                token_in=asset_in,
                token_out=asset_out,
                amount_in=effective_in,
                amount_out=amount_out,
                k_before=before.product,
                k_after=self._reserves.snapshot().product,
            )
            return amount_out

    # --- Internals ---

    def _add_liquidity(
        self,
        sender: str,
        desired_a: int,
        desired_b: int,
        min_a: int,
        min_b: int,
        recipient: str,
    ) -> tuple[int, int, int]:
        """Match, price, pull and commit a deposit in pool (A, B) order."""
        for name, value in (
            ("desired_a", desired_a),
            ("desired_b", desired_b),
            ("min_a", min_a),
            ("min_b", min_b),
        ):
            _require_amount(name, value)

        reserves = self._reserves.snapshot()
        used_a, used_b = self._matched_amounts(reserves, desired_a, desired_b, min_a, min_b)

        shares = shares_for_deposit(
            used_a,
            used_b,
            reserves.reserve_a,
            reserves.reserve_b,
            self.total_shares,
            self.config.first_deposit_policy,
        )
        if shares == 0:
            raise InsufficientLiquidityMinted(f"Deposit of ({used_a}, {used_b}) issues no shares")

        if max(reserves.reserve_a + used_a, reserves.reserve_b + used_b, self.total_shares + shares) > UINT256_MAX:
            raise ArithmeticOverflow(f"Deposit of ({used_a}, {used_b}) overflows pool state")

        with self._inbound(sender, "deposit") as legs:
            legs.pull(self._assets[self.asset_a], used_a)
            legs.pull(self._assets[self.asset_b], used_b)

        self._shares.credit(recipient, shares)
        self._reserves.apply_delta(self.asset_a, used_a)
        self._reserves.apply_delta(self.asset_b, used_b)
        return used_a, used_b, shares

    @staticmethod
    def _matched_amounts(
        reserves: Reserves,
        desired_a: int,
        desired_b: int,
        min_a: int,
        min_b: int,
    ) -> tuple[int, int]:
        """Largest amounts at the current ratio within the desired bounds.

        The A-desired amount is matched first; the B-desired branch is only
        tried when the matching B amount exceeds desired_b.
        """
        if reserves.is_empty:
            if desired_a == 0 or desired_b == 0:
                raise InvalidInput("First deposit needs both assets")
            if desired_a < min_a:
                raise SlippageExceeded(f"Insufficient A amount: {desired_a} < {min_a}")
            if desired_b < min_b:
                raise SlippageExceeded(f"Insufficient B amount: {desired_b} < {min_b}")
            return desired_a, desired_b

        b_optimal = ((S(desired_a) * S(reserves.reserve_b)) // S(reserves.reserve_a)).value
        if b_optimal <= desired_b:
            if b_optimal < min_b:
                raise SlippageExceeded(f"Insufficient B amount: {b_optimal} < {min_b}")
            return desired_a, b_optimal

        a_optimal = ((S(desired_b) * S(reserves.reserve_a)) // S(reserves.reserve_b)).value
        if a_optimal > desired_a or a_optimal < min_a:
            raise SlippageExceeded(f"Insufficient A amount: {a_optimal} (min {min_a}, max {desired_a})")
        return a_optimal, desired_b

    def _sync_reserves(self) -> None:
        self._reserves.sync(
            self._assets[self.asset_a].balance_of(self.address),
            self._assets[self.asset_b].balance_of(self.address),
        )

    @contextmanager
    def _inbound(self, sender: str, operation: str) -> Iterator[_InboundLegs]:
        legs = _InboundLegs(self.address, sender, operation)
        try:
            yield legs
        except Exception:
            legs.refund()
            raise

    def _check_deadline(self, deadline: int, operation: str) -> None:
        now = self._clock()
        if now > deadline:
            raise Expired(f"Transaction expired: {operation} deadline {deadline} < now {int(now)}")

    def _ordered_pair(self, asset_x: str, asset_y: str) -> tuple[str, str]:
        x, y = normalize_address(asset_x), normalize_address(asset_y)
        if x == y or x not in self._assets or y not in self._assets:
            raise InvalidInput(f"Assets ({asset_x}, {asset_y}) are not this pool's pair")
        return x, y

    def _swap_path(self, path: Sequence[str]) -> tuple[str, str]:
        if len(path) != 2:
            raise InvalidInput(f"Swap path must name exactly two assets, got {len(path)}")
        return self._ordered_pair(path[0], path[1])


def _require_amount(name: str, value: int, *, positive: bool = False) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidInput(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise InvalidInput(f"{name} out of uint256 range: {value}")
    if positive and value == 0:
        raise InvalidInput(f"{name} must be positive")


def _account(address: str, name: str) -> str:
    if not is_valid_address(address):
        raise InvalidInput(f"Invalid {name} address: {address}")
    return normalize_address(address)
