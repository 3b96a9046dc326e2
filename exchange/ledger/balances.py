"""In-memory fungible balance bookkeeping.

FungibleLedger is the shared implementation behind the native ledger, asset
tokens and pool share tokens: balances, allowances, total supply, and
journaled mutations so that a failing exchange call can undo them.
"""

from __future__ import annotations

import threading
from collections import defaultdict

from exchange.errors import InsufficientAllowance, InsufficientBalance
from exchange.ledger.journal import record_undo, serialized
from exchange.models.types import normalize_address


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValueError(f"Amount must be a non-negative int, got {amount!r}")


class FungibleLedger:
    """Balances and allowances of one fungible unit.

    Every entry point waits for the running exchange transaction, if any,
    so a change that may still be rolled back is never read or spent by
    another thread. Mutations record undo entries on the active journal.
    Transfers either move the full amount or raise without changing
    anything.

    Addresses are normalized to lowercase on every entry point.
    """

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)
        self._total_supply = 0
        self._lock = threading.Lock()

    # --- Views ---

    @property
    def total_supply(self) -> int:
        with serialized():
            return self._total_supply

    def balance_of(self, owner: str) -> int:
        with serialized():
            return self._balances.get(normalize_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        with serialized():
            return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def holders(self) -> dict[str, int]:
        """Non-zero balances keyed by holder."""
        with serialized(), self._lock:
            return {owner: bal for owner, bal in self._balances.items() if bal}

    # --- Mutations ---

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``to``.

        Raises:
            InsufficientBalance: If sender holds less than amount
        """
        _check_amount(amount)
        self._move(normalize_address(sender), normalize_address(to), amount)
        return True

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``owner`` to ``to`` using ``spender``'s allowance.

        Raises:
            InsufficientAllowance: If spender may move less than amount
            InsufficientBalance: If owner holds less than amount
        """
        _check_amount(amount)
        spender_n = normalize_address(spender)
        owner_n = normalize_address(owner)
        to_n = normalize_address(to)
        key = (owner_n, spender_n)
        with serialized(), self._lock:
            allowed = self._allowances.get(key, 0)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{self.symbol}: allowance of {spender_n} over {owner_n} is {allowed}, "
                    f"needs {amount}"
                )
            balance = self._balances.get(owner_n, 0)
            if balance < amount:
                raise InsufficientBalance(
                    f"{self.symbol}: balance of {owner_n} is {balance}, needs {amount}"
                )
            self._allowances[key] = allowed - amount
            self._raw_move(owner_n, to_n, amount)
        record_undo(lambda: self._restore_allowance_and_move(key, allowed, to_n, owner_n, amount))
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set ``spender``'s allowance over ``owner``'s balance to ``amount``."""
        _check_amount(amount)
        key = (normalize_address(owner), normalize_address(spender))
        with serialized(), self._lock:
            previous = self._allowances.get(key, 0)
            self._allowances[key] = amount
        record_undo(lambda: self._set_allowance(key, previous))
        return True

    def mint(self, to: str, amount: int) -> None:
        """Create ``amount`` new units in ``to``'s balance."""
        _check_amount(amount)
        to_n = normalize_address(to)
        with serialized(), self._lock:
            self._balances[to_n] += amount
            self._total_supply += amount
        record_undo(lambda: self._raw_burn(to_n, amount))

    def burn(self, owner: str, amount: int) -> None:
        """Destroy ``amount`` units from ``owner``'s balance.

        Raises:
            InsufficientBalance: If owner holds less than amount
        """
        _check_amount(amount)
        owner_n = normalize_address(owner)
        with serialized(), self._lock:
            balance = self._balances.get(owner_n, 0)
            if balance < amount:
                raise InsufficientBalance(
                    f"{self.symbol}: balance of {owner_n} is {balance}, cannot burn {amount}"
                )
            self._raw_burn_locked(owner_n, amount)
        record_undo(lambda: self._raw_mint(owner_n, amount))

    # --- Internals (never journaled) ---

    def _move(self, sender: str, to: str, amount: int) -> None:
        with serialized(), self._lock:
            balance = self._balances.get(sender, 0)
            if balance < amount:
                raise InsufficientBalance(
                    f"{self.symbol}: balance of {sender} is {balance}, needs {amount}"
                )
            self._raw_move(sender, to, amount)
        record_undo(lambda: self._locked_move(to, sender, amount))

    def _raw_move(self, sender: str, to: str, amount: int) -> None:
        self._balances[sender] -= amount
        self._balances[to] += amount

    def _locked_move(self, sender: str, to: str, amount: int) -> None:
        with self._lock:
            self._raw_move(sender, to, amount)

    def _restore_allowance_and_move(
        self, key: tuple[str, str], allowance: int, sender: str, to: str, amount: int
    ) -> None:
        with self._lock:
            self._raw_move(sender, to, amount)
            self._allowances[key] = allowance

    def _set_allowance(self, key: tuple[str, str], amount: int) -> None:
        with self._lock:
            self._allowances[key] = amount

    def _raw_mint(self, to: str, amount: int) -> None:
        with self._lock:
            self._balances[to] += amount
            self._total_supply += amount

    def _raw_burn(self, owner: str, amount: int) -> None:
        with self._lock:
            self._raw_burn_locked(owner, amount)

    def _raw_burn_locked(self, owner: str, amount: int) -> None:
        self._balances[owner] -= amount
        self._total_supply -= amount
