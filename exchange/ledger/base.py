"""Interfaces the exchange core needs from external ledgers."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class AssetLedger(Protocol):
    """Fungible-asset ledger a pool trades against.

    Each call debits and credits atomically and raises InsufficientBalance
    or InsufficientAllowance on failure. A ledger may also return False
    instead of raising; pools treat that as TransferFailed.

    Rollback of a failed exchange call covers this ledger only if it records
    undo entries on the active journal (see exchange.ledger.journal), as
    AssetToken does.
    """

    address: str

    def balance_of(self, owner: str) -> int:
        """Current balance of ``owner``."""
        ...

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``to``."""
        ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``owner`` to ``to`` on ``spender``'s allowance."""
        ...
