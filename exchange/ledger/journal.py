"""Undo journal that makes one exchange call atomic.

A mutating pool or registry call runs inside ``transaction()``. While it is
active, every balance change, mint, burn, allowance update and emitted event
records an undo entry on the journal. If the call raises, the entries are
replayed in reverse order and the error propagates; if it returns, the
entries are dropped.

Nested transactions join the outermost one, so a pool that calls into
another pool commits or rolls back as one unit.

State changes are serialized process-wide, like transactions in a block:
the outermost transaction holds the commit lock until it has committed or
rolled back, and every ledger access outside a transaction takes the same
lock (see ``serialized``). No other thread can observe or spend a change
that may still be undone.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from threading import RLock

import structlog

logger = structlog.get_logger()

_active_journal: ContextVar[Journal | None] = ContextVar("exchange_journal", default=None)
_commit_lock = RLock()


class Journal:
    """Ordered list of undo callbacks for one transaction."""

    def __init__(self, label: str) -> None:
        self.label = label
        self._undo: list[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self._undo)

    def record(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)

    def rollback(self) -> None:
        """Run every undo entry, newest first."""
        while self._undo:
            self._undo.pop()()


def current_journal() -> Journal | None:
    """The journal of the transaction running in this context, if any."""
    return _active_journal.get()


def record_undo(undo: Callable[[], None]) -> None:
    """Record an undo entry on the active journal.

    Outside a transaction changes are final and nothing is recorded.
    """
    journal = _active_journal.get()
    if journal is not None:
        journal.record(undo)


@contextmanager
def serialized() -> Iterator[None]:
    """Hold the commit lock, waiting for any other thread's transaction.

    Reentrant: a thread that is already inside a transaction passes straight
    through.
    """
    with _commit_lock:
        yield


@contextmanager
def transaction(label: str, **context: object) -> Iterator[Journal]:
    """Run a block as one all-or-nothing unit.

    Args:
        label: Operation name, used in the rollback log line
        **context: Extra key/value pairs for the rollback log line

    Yields:
        The journal collecting undo entries (the outer one when nested)
    """
    outer = _active_journal.get()
    if outer is not None:
        yield outer
        return

    with _commit_lock:
        journal = Journal(label)
        token = _active_journal.set(journal)
        try:
            yield journal
        except BaseException as exc:
            # Undo entries must not record themselves
            _active_journal.reset(token)
            entries = len(journal)
            journal.rollback()
            logger.info(
                "transaction_rolled_back",
                operation=label,
                undone_entries=entries,
                error=type(exc).__name__,
                **context,
            )
            raise
        else:
            _active_journal.reset(token)
