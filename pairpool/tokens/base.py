"""Asset collaborator contract consumed by the pool engine."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class AssetContract(Protocol):
    """Fungible-asset ledger as seen by one calling account.

    The calling account is implicit, the way a contract call carries its
    sender: ``transfer`` moves the caller's own balance and ``transfer_from``
    spends an allowance granted to the caller. A ``False`` result signals a
    failed transfer and must abort the operation that requested it.
    """

    @property
    def address(self) -> str:
        """Address identifying the asset."""
        ...

    def transfer_from(self, owner: str, dest: str, amount: int) -> bool:
        """Move ``amount`` from ``owner`` to ``dest`` using the caller's allowance."""
        ...

    def transfer(self, dest: str, amount: int) -> bool:
        """Move ``amount`` of the caller's own balance to ``dest``."""
        ...

    def balance_of(self, account: str) -> int:
        """Current balance of ``account``."""
        ...
