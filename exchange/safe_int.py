"""Checked unsigned integer arithmetic for reserve and share amounts.

Pool math is uint256 math: every intermediate value must stay within
[0, 2**256 - 1] and division truncates toward zero. A SafeInt can only ever
hold such a value, so any operator that would leave the range raises
instead of handing the ledger an amount it cannot represent.

Usage pattern:
    from exchange.safe_int import S

    def share_of(amount: int, shares: int, total: int) -> int:
        return S(amount).mul_div(shares, total).value
"""

from __future__ import annotations

UINT256_MAX = 2**256 - 1


class SafeIntError(ArithmeticError):
    """Base class for SafeInt arithmetic errors."""


class DivisionByZero(SafeIntError):
    """Division by zero."""


class Underflow(SafeIntError):
    """Result would be negative."""


class Uint256Overflow(SafeIntError):
    """Result exceeds the uint256 maximum."""


class SafeInt:
    """A uint256 amount with range-checked operators.

    Every constructor call validates its argument, and every operator builds
    its result through the constructor, so no SafeInt is ever negative or
    wider than 256 bits.
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        """Wrap an int, checking that it is a uint256.

        Raises:
            TypeError: If value is not an int or SafeInt (bools are rejected)
            Underflow: If value is negative
            Uint256Overflow: If value exceeds 2**256 - 1
        """
        if isinstance(value, SafeInt):
            self._value = value._value
            return
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")
        if value < 0:
            raise Underflow(f"Amount cannot be negative: {value}")
        if value > UINT256_MAX:
            raise Uint256Overflow(f"Amount exceeds uint256 max: {value}")
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __hash__(self) -> int:
        return hash(self._value)

    # --- Arithmetic ---

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _raw(other))

    __radd__ = __add__

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _raw(other))

    __rmul__ = __mul__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        return _difference(self._value, _raw(other))

    def __rsub__(self, other: int) -> SafeInt:
        return _difference(other, self._value)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        return _quotient(self._value, _raw(other))

    def __rfloordiv__(self, other: int) -> SafeInt:
        return _quotient(other, self._value)

    def mul_div(self, numerator: SafeInt | int, denominator: SafeInt | int) -> SafeInt:
        """floor(self * numerator / denominator), the proportional-share step.

        The product is range-checked before dividing, as it would be on chain.
        """
        return (self * numerator) // denominator

    # --- Comparison and conversion ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (SafeInt, int)):
            return self._value == _raw(other)
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _raw(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _raw(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _raw(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _raw(other)

    def __int__(self) -> int:
        return self._value

    __index__ = __int__

    def __bool__(self) -> bool:
        return self._value != 0

    @classmethod
    def zero(cls) -> SafeInt:
        return cls(0)


def _raw(x: SafeInt | int) -> int:
    return x._value if isinstance(x, SafeInt) else x


def _difference(a: int, b: int) -> SafeInt:
    if b > a:
        raise Underflow(f"Underflow: {a} - {b}")
    return SafeInt(a - b)


def _quotient(a: int, b: int) -> SafeInt:
    if b == 0:
        raise DivisionByZero(f"Division by zero: {a} // 0")
    return SafeInt(a // b)


S = SafeInt
