"""Per-entity mutual exclusion with reentrancy detection."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager

from exchange.errors import ReentrancyError


class CallGuard:
    """Lock held for the whole duration of one call into a guarded entity.

    Calls from other threads wait for the running call to finish. A call from
    the thread that already holds the guard is a reentrant call and fails
    with ReentrancyError rather than deadlocking.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._owner: int | None = None
        self._operation: str | None = None

    @property
    def held(self) -> bool:
        return self._owner is not None

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        """Hold the guard for ``operation``.

        Raises:
            ReentrancyError: If this thread already holds the guard
        """
        me = threading.get_ident()
        if self._owner == me:
            raise ReentrancyError(
                f"{self.name}: {operation} called while {self._operation} is running"
            )
        with self._lock:
            self._owner = me
            self._operation = operation
            try:
                yield
            finally:
                self._owner = None
                self._operation = None


@contextmanager
def hold_all(guards: Iterable[CallGuard], operation: str) -> Iterator[None]:
    """Hold several guards at once, acquired in name order.

    A fixed acquisition order keeps two calls that span the same pair of
    entities from deadlocking each other.
    """
    with ExitStack() as stack:
        for guard in sorted(guards, key=lambda g: g.name):
            stack.enter_context(guard.hold(operation))
        yield
