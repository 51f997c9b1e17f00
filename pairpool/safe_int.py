"""Checked uint256 arithmetic for reserve and share amounts.

This module provides SafeInt, a lightweight wrapper that keeps every
intermediate value inside the uint256 range:
- Division by zero raises DivisionByZero
- Subtraction below zero raises ArithmeticUnderflow
- Results above 2**256 - 1 raise ArithmeticOverflow

Usage pattern:
    from pairpool.safe_int import S

    def quote(amount_in: int, reserve_in: int, reserve_out: int) -> int:
        # Wrap at entry
        a, r_in, r_out = S(amount_in), S(reserve_in), S(reserve_out)

        # Natural arithmetic - automatically checked
        return ((a * r_out) // (r_in + a)).value
"""

from __future__ import annotations

from math import isqrt

from pairpool.constants import UINT256_MAX
from pairpool.errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero


class SafeInt:
    """Unsigned integer with checked arithmetic operations.

    Wraps an integer in [0, 2**256 - 1] and provides arithmetic operators
    that raise descriptive errors instead of wrapping or going negative.

    Attributes:
        value: The underlying integer value (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        """Create a SafeInt from an integer or another SafeInt.

        Raises:
            TypeError: If value is not an int or SafeInt
            ArithmeticUnderflow: If value is negative
            ArithmeticOverflow: If value exceeds uint256
        """
        if isinstance(value, SafeInt):
            self._value = value._value
            return
        # bool is an int subclass but never a meaningful amount
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")
        self._value = _check_range(value)

    @property
    def value(self) -> int:
        """The underlying integer value."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __hash__(self) -> int:
        return hash(self._value)

    # --- Arithmetic operations ---

    def __add__(self, other: SafeInt | int) -> SafeInt:
        """Add two values.

        Raises:
            ArithmeticOverflow: If the sum exceeds uint256
        """
        return SafeInt(_check_range(self._value + _extract_value(other)))

    __radd__ = __add__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        """Subtract other from self.

        Raises:
            ArithmeticUnderflow: If result would be negative
        """
        other_val = _extract_value(other)
        result = self._value - other_val
        if result < 0:
            raise ArithmeticUnderflow(f"Underflow: {self._value} - {other_val} = {result}")
        return SafeInt(result)

    def __rsub__(self, other: int) -> SafeInt:
        result = other - self._value
        if result < 0:
            raise ArithmeticUnderflow(f"Underflow: {other} - {self._value} = {result}")
        return SafeInt(result)

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        """Multiply two values.

        Raises:
            ArithmeticOverflow: If the product exceeds uint256
        """
        return SafeInt(_check_range(self._value * _extract_value(other)))

    __rmul__ = __mul__

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Integer division (rounds down).

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // other_val)

    def __rfloordiv__(self, other: int) -> SafeInt:
        if self._value == 0:
            raise DivisionByZero(f"Division by zero: {other} // 0")
        return SafeInt(other // self._value)

    # --- Comparison operations ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _extract_value(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _extract_value(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _extract_value(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _extract_value(other)

    # --- Conversion ---

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        """True if non-zero."""
        return self._value != 0

    def __index__(self) -> int:
        return self._value

    # --- Named operations ---

    def min(self, other: SafeInt | int) -> SafeInt:
        """Return minimum of self and other."""
        return SafeInt(min(self._value, _extract_value(other)))

    def sqrt(self) -> SafeInt:
        """Integer square root (rounds down)."""
        return SafeInt(isqrt(self._value))


def _check_range(value: int) -> int:
    if value < 0:
        raise ArithmeticUnderflow(f"Negative value cannot be uint256: {value}")
    if value > UINT256_MAX:
        raise ArithmeticOverflow(f"Value exceeds uint256 max: {value}")
    return value


def _extract_value(x: SafeInt | int) -> int:
    """Extract integer value from SafeInt or int."""
    if isinstance(x, SafeInt):
        return x._value
    return x


# Convenience alias for concise code
S = SafeInt
