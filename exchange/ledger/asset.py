"""Asset and share tokens."""

from __future__ import annotations

from exchange.ledger.balances import FungibleLedger
from exchange.models.types import normalize_address


class AssetToken(FungibleLedger):
    """A tradable fungible asset living at ``address``.

    Satisfies the AssetLedger protocol and journals its changes, so pool
    calls that fail roll back asset movements too.
    """

    def __init__(self, address: str, symbol: str) -> None:
        super().__init__(symbol)
        self.address = normalize_address(address, validate=True)

    def __repr__(self) -> str:
        return f"AssetToken({self.symbol!r}, {self.address})"


class ShareLedger(FungibleLedger):
    """Liquidity shares of one pool.

    Minted on deposit, burned on withdrawal, freely transferable between
    holders.
    """

    def __init__(self, pool_address: str) -> None:
        super().__init__(f"SHARES-{normalize_address(pool_address)[-8:]}")
        self.pool_address = normalize_address(pool_address)
