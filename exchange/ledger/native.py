"""Native value ledger.

Holds the native balance of every account, pool included. A pool's native
reserve is simply its balance here.
"""

from __future__ import annotations

import structlog

from exchange.constants import NATIVE_SYMBOL
from exchange.ledger.balances import FungibleLedger
from exchange.models.types import normalize_address

logger = structlog.get_logger()


class NativeLedger(FungibleLedger):
    """Native balances, moved by payable calls and payouts.

    The native asset has no allowances: value only moves when its holder
    sends it (``pay``) or when an account is funded from outside the system
    (``fund``).
    """

    def __init__(self) -> None:
        super().__init__(NATIVE_SYMBOL)

    def fund(self, account: str, amount: int) -> None:
        """Credit new native value to ``account``."""
        self.mint(account, amount)
        logger.debug("native_funded", account=normalize_address(account)[-8:], amount=amount)

    def pay(self, sender: str, to: str, amount: int) -> None:
        """Send ``amount`` of native value from ``sender`` to ``to``.

        Raises:
            InsufficientBalance: If sender holds less than amount
        """
        if amount == 0:
            return
        self.transfer(sender, to, amount)
