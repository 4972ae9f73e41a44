"""Checked integer arithmetic for token amounts and reserves.

Every amount flowing through the quote and liquidity math is a non-negative
integer in base units. SafeInt turns the mistakes that would otherwise yield a
silently wrong amount into exceptions:
- Subtraction below zero raises Underflow
- Division (floor or ceiling) by zero raises DivisionByZero
- Leaving the uint256 range raises Uint256Overflow on to_uint256()

Usage pattern:
    from swapengine.safe_int import S

    numerator = S(amount_in) * fee_multiplier * reserve_out
    amount_out = (numerator // denominator).value
"""

from __future__ import annotations

import math

UINT256_MAX = 2**256 - 1


class SafeIntError(ArithmeticError):
    """Base class for checked arithmetic failures."""


class DivisionByZero(SafeIntError):
    """Division by zero."""


class Underflow(SafeIntError):
    """Subtraction would go negative."""


class Uint256Overflow(SafeIntError):
    """Value does not fit a uint256."""


class SafeInt:
    """Non-negative integer with checked arithmetic.

    Attributes:
        value: The wrapped integer (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            self._value = value._value
        elif isinstance(value, int) and not isinstance(value, bool):
            self._value = value
        else:
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __hash__(self) -> int:
        return hash(self._value)

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _raw(other))

    __radd__ = __add__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        """Subtract, raising Underflow below zero."""
        rhs = _raw(other)
        if rhs > self._value:
            raise Underflow(f"Underflow: {self._value} - {rhs}")
        return SafeInt(self._value - rhs)

    def __rsub__(self, other: int) -> SafeInt:
        if self._value > other:
            raise Underflow(f"Underflow: {other} - {self._value}")
        return SafeInt(other - self._value)

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _raw(other))

    __rmul__ = __mul__

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Floor division, raising DivisionByZero on a zero divisor."""
        rhs = _raw(other)
        if rhs == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // rhs)

    def __rfloordiv__(self, other: int) -> SafeInt:
        if self._value == 0:
            raise DivisionByZero(f"Division by zero: {other} // 0")
        return SafeInt(other // self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
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

    def __bool__(self) -> bool:
        return self._value != 0

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Division rounding up.

        Raises:
            DivisionByZero: If other is zero
        """
        rhs = _raw(other)
        if rhs == 0:
            raise DivisionByZero(f"Ceiling division by zero: {self._value}")
        return SafeInt(-(-self._value // rhs))

    def min(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(min(self._value, _raw(other)))

    def isqrt(self) -> SafeInt:
        """Integer square root (floor)."""
        if self._value < 0:
            raise Underflow(f"Square root of negative value: {self._value}")
        return SafeInt(math.isqrt(self._value))

    def to_uint256(self) -> int:
        """Unwrap, validating uint256 bounds.

        Raises:
            Uint256Overflow: If value is negative or exceeds 2^256-1
        """
        if self._value < 0:
            raise Uint256Overflow(f"Negative value cannot be uint256: {self._value}")
        if self._value > UINT256_MAX:
            raise Uint256Overflow(f"Value exceeds uint256 max: {self._value}")
        return self._value


def _raw(x: SafeInt | int) -> int:
    if isinstance(x, SafeInt):
        return x._value
    return x


S = SafeInt
