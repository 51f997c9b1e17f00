"""Pool ledgers: reserves and shares."""

from pairpool.ledger.reserves import ReserveLedger, Reserves, quote, spot_price
from pairpool.ledger.shares import ShareAccounting, amounts_for_withdrawal, shares_for_deposit

__all__ = [
    # Reserves
    "ReserveLedger",
    "Reserves",
    "quote",
    "spot_price",
    # Shares
    "ShareAccounting",
    "shares_for_deposit",
    "amounts_for_withdrawal",
]
