"""Checked unsigned arithmetic for pool and ledger math.

Balances, share counts and invariant values are unsigned integers in
18-decimal normalized units. Python ints never overflow, so the failures
that matter are a negative intermediate and a zero divisor; SafeInt raises
on both instead of letting a nonsensical value reach balances or supply.

    from stableswap.safe_int import S, mul_div

    fee = mul_div(amount, swap_fee, FEE_DENOMINATOR)
    d_p = (S(d_p) * d // (S(balance) * n_coins)).value
"""

from __future__ import annotations

UINT256_MAX = 2**256 - 1


class SafeIntError(ArithmeticError):
    """Base class for checked-arithmetic failures."""

    pass


class DivisionByZero(SafeIntError):
    pass


class Underflow(SafeIntError):
    """A subtraction went below zero."""

    pass


class SafeInt:
    """Integer wrapper whose subtraction and division are checked.

    Attributes:
        value: The wrapped int
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            value = value._value
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"SafeInt wraps int only, got {type(value).__name__}")
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"S({self._value})"

    # Arithmetic

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _raw(other))

    __radd__ = __add__

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _raw(other))

    __rmul__ = __mul__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        return _checked_sub(self._value, _raw(other))

    def __rsub__(self, other: int) -> SafeInt:
        return _checked_sub(other, self._value)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        return _checked_div(self._value, _raw(other))

    def __rfloordiv__(self, other: int) -> SafeInt:
        return _checked_div(other, self._value)

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Quotient rounded up; raises DivisionByZero like //."""
        divisor = _raw(other)
        if divisor == 0:
            raise DivisionByZero(f"{self._value} / 0 (rounding up)")
        return SafeInt(-(-self._value // divisor))

    def abs_diff(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(abs(self._value - _raw(other)))

    # Comparison and conversion

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (SafeInt, int)):
            return self._value == _raw(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

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


def _raw(x: SafeInt | int) -> int:
    return x._value if isinstance(x, SafeInt) else x


def _checked_sub(a: int, b: int) -> SafeInt:
    if a < b:
        raise Underflow(f"{a} - {b} is negative")
    return SafeInt(a - b)


def _checked_div(a: int, b: int) -> SafeInt:
    if b == 0:
        raise DivisionByZero(f"{a} // 0")
    return SafeInt(a // b)


def mul_div(a: int, b: int, denominator: int) -> int:
    """a * b // denominator, raising DivisionByZero on a zero denominator."""
    return (S(a) * b // denominator).value


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """a * b / denominator rounded up."""
    return (S(a) * b).ceiling_div(denominator).value


S = SafeInt
