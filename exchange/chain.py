"""In-process host ledger for the exchange.

Chain owns what a blockchain would otherwise provide to the pools: the
native balances, the set of deployed asset tokens, deterministic address
derivation for new contracts, and the event log.
"""

from __future__ import annotations

import hashlib
import itertools
import threading
from collections.abc import Callable, Iterator

import structlog

from exchange.errors import InvalidAsset
from exchange.ledger.asset import AssetToken
from exchange.ledger.base import AssetLedger
from exchange.ledger.journal import record_undo
from exchange.ledger.native import NativeLedger
from exchange.models.events import Event
from exchange.models.types import is_null_address, is_valid_address, normalize_address

logger = structlog.get_logger()

EventCallback = Callable[[Event], None]


class EventLog:
    """Append-only record of emitted events.

    Events emitted inside a transaction that later fails are removed again.
    Subscribers are notified on emit; a subscriber that raises fails the
    emitting call.
    """

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._subscribers: list[EventCallback] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def emit(self, event: Event) -> None:
        with self._lock:
            self._events.append(event)
        record_undo(lambda: self._remove(event))
        for callback in list(self._subscribers):
            callback(event)

    def subscribe(self, callback: EventCallback) -> None:
        self._subscribers.append(callback)

    def of_type(self, name: str) -> list[Event]:
        """Events whose ``name`` matches, oldest first."""
        return [event for event in self._events if event.name == name]

    def _remove(self, event: Event) -> None:
        with self._lock:
            # Identity match: equal events from other calls must survive
            for i in range(len(self._events) - 1, -1, -1):
                if self._events[i] is event:
                    del self._events[i]
                    break


class Chain:
    """Host state shared by the registry, pools and callers."""

    def __init__(self) -> None:
        self.native = NativeLedger()
        self.events = EventLog()
        self._assets: dict[str, AssetLedger] = {}
        self._nonce = itertools.count()
        self._lock = threading.Lock()

    def new_address(self, kind: str) -> str:
        """Derive a fresh, unique address for a new account or contract."""
        with self._lock:
            nonce = next(self._nonce)
        digest = hashlib.sha256(f"{kind}:{nonce}".encode()).hexdigest()
        return "0x" + digest[-40:]

    def deploy_asset(self, symbol: str, address: str | None = None) -> AssetToken:
        """Create an AssetToken and register it with the chain."""
        token = AssetToken(address or self.new_address(f"asset:{symbol}"), symbol)
        self.register_asset(token)
        logger.info("asset_deployed", symbol=symbol, address=token.address)
        return token

    def register_asset(self, asset: AssetLedger) -> None:
        """Make an externally built asset ledger known to the chain.

        Raises:
            InvalidAsset: If the ledger's address is null, malformed or taken
        """
        if is_null_address(asset.address) or not is_valid_address(asset.address):
            raise InvalidAsset(f"Invalid asset address: {asset.address!r}")
        key = normalize_address(asset.address)
        with self._lock:
            if key in self._assets:
                raise InvalidAsset(f"Asset already registered at {key}")
            self._assets[key] = asset

    def get_asset(self, asset_id: str) -> AssetLedger | None:
        return self._assets.get(normalize_address(asset_id))

    def assets(self) -> list[AssetLedger]:
        return list(self._assets.values())
