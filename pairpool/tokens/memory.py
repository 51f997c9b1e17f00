"""In-memory fungible-asset ledger.

Implements the asset contract with ERC20-style allowances. The same class
backs the two pool assets and the pool's own share ledger; the pool is the
owner of its share ledger, so only the pool can mint or burn shares.
"""

from __future__ import annotations

from collections import defaultdict

import structlog

from pairpool.constants import UINT256_MAX
from pairpool.errors import InsufficientBalance, InvalidInput, Unauthorized
from pairpool.models.types import is_valid_address, normalize_address

logger = structlog.get_logger()


class InMemoryAsset:
    """Fungible-asset ledger kept in process memory.

    Transfers report failure by returning False (insufficient balance or
    allowance, out-of-range amount). Owner-gated calls raise Unauthorized.
    """

    def __init__(self, address: str, owner: str, symbol: str = "") -> None:
        """Create an empty ledger.

        Args:
            address: Address identifying the asset
            owner: Account allowed to mint and burn
            symbol: Display symbol (for logs)

        Raises:
            InvalidInput: If either address is malformed
        """
        self._address = _checked_address(address, "asset")
        self._owner = _checked_address(owner, "owner")
        self.symbol = symbol
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)
        self._total_supply = 0

    def __repr__(self) -> str:
        return f"InMemoryAsset({self.symbol or self._address}, supply={self._total_supply})"

    @property
    def address(self) -> str:
        return self._address

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def holders(self) -> dict[str, int]:
        """Accounts with a non-zero balance."""
        return {account: balance for account, balance in self._balances.items() if balance > 0}

    # --- Holder operations ---

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set ``spender``'s allowance over ``owner``'s balance."""
        if not _is_amount(amount):
            return False
        self._allowances[(normalize_address(owner), normalize_address(spender))] = amount
        return True

    def transfer(self, sender: str, dest: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``dest``."""
        return self._move(normalize_address(sender), normalize_address(dest), amount)

    def transfer_from(self, spender: str, owner: str, dest: str, amount: int) -> bool:
        """Move ``amount`` from ``owner`` to ``dest`` on ``spender``'s allowance."""
        key = (normalize_address(owner), normalize_address(spender))
        if not _is_amount(amount) or self._allowances.get(key, 0) < amount:
            logger.debug(
                "transfer_from_rejected",
                asset=self.symbol or self._address,
                owner=key[0],
                spender=key[1],
                amount=amount,
                allowance=self._allowances.get(key, 0),
            )
            return False
        if not self._move(key[0], normalize_address(dest), amount):
            return False
        self._allowances[key] -= amount
        return True

    # --- Owner operations ---

    def mint(self, caller: str, to: str, amount: int) -> None:
        """Create ``amount`` new units for ``to``.

        Raises:
            Unauthorized: If caller is not the ledger owner
            InvalidInput: If amount is negative or supply would exceed uint256
        """
        self._require_owner(caller, "mint")
        if not _is_amount(amount) or self._total_supply + amount > UINT256_MAX:
            raise InvalidInput(f"Invalid mint amount: {amount}")
        self._balances[normalize_address(to)] += amount
        self._total_supply += amount

    def burn(self, caller: str, account: str, amount: int) -> None:
        """Destroy ``amount`` units held by ``account``.

        Raises:
            Unauthorized: If caller is not the ledger owner
            InsufficientBalance: If account holds less than amount
        """
        self._require_owner(caller, "burn")
        account = normalize_address(account)
        if not _is_amount(amount):
            raise InvalidInput(f"Invalid burn amount: {amount}")
        balance = self._balances.get(account, 0)
        if balance < amount:
            raise InsufficientBalance(f"Cannot burn {amount} from {account}: balance is {balance}")
        self._balances[account] = balance - amount
        self._total_supply -= amount

    def as_caller(self, caller: str) -> CallerBoundAsset:
        """Return a handle that makes every call as ``caller``."""
        return CallerBoundAsset(self, _checked_address(caller, "caller"))

    # --- Internals ---

    def _move(self, source: str, dest: str, amount: int) -> bool:
        if not _is_amount(amount) or self._balances.get(source, 0) < amount:
            logger.debug(
                "transfer_rejected",
                asset=self.symbol or self._address,
                source=source,
                amount=amount,
                balance=self._balances.get(source, 0),
            )
            return False
        self._balances[source] -= amount
        self._balances[dest] += amount
        return True

    def _require_owner(self, caller: str, action: str) -> None:
        if normalize_address(caller) != self._owner:
            raise Unauthorized(f"{action} on {self.symbol or self._address} restricted to owner {self._owner}")


class CallerBoundAsset:
    """An InMemoryAsset seen through one calling account.

    Implements the AssetContract protocol consumed by the pool engine.
    """

    __slots__ = ("_asset", "_caller")

    def __init__(self, asset: InMemoryAsset, caller: str) -> None:
        self._asset = asset
        self._caller = caller

    @property
    def address(self) -> str:
        return self._asset.address

    @property
    def caller(self) -> str:
        return self._caller

    def transfer_from(self, owner: str, dest: str, amount: int) -> bool:
        return self._asset.transfer_from(self._caller, owner, dest, amount)

    def transfer(self, dest: str, amount: int) -> bool:
        return self._asset.transfer(self._caller, dest, amount)

    def balance_of(self, account: str) -> int:
        return self._asset.balance_of(account)


def _is_amount(amount: object) -> bool:
    return isinstance(amount, int) and not isinstance(amount, bool) and 0 <= amount <= UINT256_MAX


def _checked_address(address: str, name: str) -> str:
    if not is_valid_address(address):
        raise InvalidInput(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return normalize_address(address)
