"""Balance ledgers and the transaction journal."""

from .asset import AssetToken, ShareLedger
from .balances import FungibleLedger
from .base import AssetLedger
from .journal import Journal, current_journal, record_undo, transaction
from .native import NativeLedger

__all__ = [
    "AssetLedger",
    "AssetToken",
    "FungibleLedger",
    "Journal",
    "NativeLedger",
    "ShareLedger",
    "current_journal",
    "record_undo",
    "transaction",
]
