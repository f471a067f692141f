"""
Tagged numeric values with integer, real and complex kinds.

Every arithmetic entry point in this module first resolves the widest kind
among its operands, converts both operands to that kind and only then
computes, so that the result carries the same kind native Python arithmetic
would produce (e.g., int + int is an integer, int / int is a real number, and a
negative real base with a fractional exponent is a complex number).
"""

import cmath
import enum
import math
import numbers
import typing

import numpy

import symtree


_engine = symtree.Environment('engine')
TOLERANCE = _engine.getfloat('tolerance')
"""The default absolute and relative tolerance for approximate equality."""


class NumericTypeError(TypeError):
    """An object cannot represent a numeric value."""

    def __init__(self, arg: typing.Any) -> None:
        self.arg = arg

    def __str__(self) -> str:
        return f"Cannot interpret {self.arg!r} as a number"


class DivisionByZeroError(ZeroDivisionError):
    """Attempted to divide by exact zero."""

    def __init__(self, arg: typing.Any=None) -> None:
        self.arg = arg

    def __str__(self) -> str:
        if self.arg is None:
            return "Division by zero"
        return f"Division by zero in {self.arg}"


class UndefinedValueError(ArithmeticError):
    """An expression has no value at the requested point."""
    pass


class DomainError(ValueError):
    """An operand lies outside the domain of a function."""
    pass


class Kind(enum.IntEnum):
    """The numeric kinds, ordered from narrowest to widest."""

    INTEGER = 1
    REAL = 2
    COMPLEX = 3


_TYPES = {
    Kind.INTEGER: int,
    Kind.REAL: float,
    Kind.COMPLEX: complex,
}


def _infer(data) -> Kind:
    """Determine the numeric kind of a native or numpy number."""
    if isinstance(data, numbers.Integral):
        return Kind.INTEGER
    if isinstance(data, numbers.Real):
        return Kind.REAL
    if isinstance(data, numbers.Complex):
        return Kind.COMPLEX
    raise NumericTypeError(data)


class Value:
    """A number tagged with its numeric kind."""

    __slots__ = ('kind', 'data')

    def __init__(self, data: typing.Union['Value', numbers.Number]) -> None:
        if isinstance(data, Value):
            self.kind = data.kind
            self.data = data.data
        else:
            self.kind = _infer(data)
            self.data = _TYPES[self.kind](data)

    def __eq__(self, other) -> bool:
        if isinstance(other, Value):
            return self.data == other.data
        if isinstance(other, numbers.Number):
            return self.data == other
        return NotImplemented

    def __lt__(self, other) -> bool:
        return self.data < _unwrap(other)

    def __le__(self, other) -> bool:
        return self.data <= _unwrap(other)

    def __gt__(self, other) -> bool:
        return self.data > _unwrap(other)

    def __ge__(self, other) -> bool:
        return self.data >= _unwrap(other)

    def __hash__(self) -> int:
        return hash(self.data)

    def __bool__(self) -> bool:
        return bool(self.data)

    def __int__(self) -> int:
        return int(self.data)

    def __float__(self) -> float:
        return float(self.data)

    def __complex__(self) -> complex:
        return complex(self.data)

    def __index__(self) -> int:
        if self.kind != Kind.INTEGER:
            raise NumericTypeError(self.data)
        return self.data

    def __str__(self) -> str:
        return _format(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self.data!r})"


def _unwrap(value):
    """Get the native number from `value`."""
    return value.data if isinstance(value, Value) else value


def promote(*values) -> Kind:
    """Determine the widest numeric kind among `values`."""
    return max(Value(value).kind for value in values)


def coerce(value, kind: Kind) -> Value:
    """Convert `value` to the (wider or equal) numeric kind `kind`."""
    value = Value(value)
    if kind < value.kind:
        raise NumericTypeError(
            f"{value.data!r} (cannot narrow {value.kind.name} to {kind.name})"
        )
    if kind == value.kind:
        return value
    return Value(_TYPES[kind](value.data))


def _resolve(a, b):
    """Convert both operands to their common numeric kind."""
    kind = promote(a, b)
    return coerce(a, kind).data, coerce(b, kind).data


def _infinity(negative: bool) -> Value:
    """A real infinity with the given sign."""
    return Value(-math.inf if negative else math.inf)


def _sign(x) -> int:
    """The sign of the real part of `x`."""
    real = x.real if isinstance(x, complex) else x
    return -1 if real < 0 else 1


def add(a, b) -> Value:
    """Add two numbers."""
    x, y = _resolve(a, b)
    return Value(x + y)


def subtract(a, b) -> Value:
    """Subtract two numbers."""
    x, y = _resolve(a, b)
    return Value(x - y)


def multiply(a, b) -> Value:
    """Multiply two numbers."""
    x, y = _resolve(a, b)
    return Value(x * y)


def divide(a, b) -> Value:
    """Divide two numbers.

    Division by exact zero raises `DivisionByZeroError`. A quotient too large
    to represent becomes a signed real infinity.
    """
    x, y = _resolve(a, b)
    if y == 0:
        raise DivisionByZeroError(f"{x} / {y}")
    try:
        return Value(x / y)
    except OverflowError:
        return _infinity(_sign(x) * _sign(y) < 0)


def power(a, b) -> Value:
    """Raise one number to the power of another.

    Raising exact zero to a negative power raises `DivisionByZeroError`. A
    result too large to represent becomes a signed real infinity.
    """
    x, y = _resolve(a, b)
    if x == 0 and not isinstance(y, complex) and y < 0:
        raise DivisionByZeroError(f"{x} ^ {y}")
    try:
        return Value(x ** y)
    except ZeroDivisionError as err:
        raise DivisionByZeroError(f"{x} ^ {y}") from err
    except OverflowError:
        odd = float(y.real if isinstance(y, complex) else y) % 2 == 1
        return _infinity(_sign(x) < 0 and odd)


def negate(a) -> Value:
    """Change the sign of a number."""
    return Value(-Value(a).data)


def absolute(a) -> Value:
    """The magnitude of a number (a real number for complex input)."""
    return Value(abs(Value(a).data))


def apply(function: typing.Callable, value) -> Value:
    """Apply a numpy function to a number with floating-point warnings off."""
    value = Value(value)
    with numpy.errstate(all='ignore'):
        result = function(value.data)
    return Value(result)


def isclose(a, b, tolerance: float=None) -> bool:
    """True if two numbers are equal within `tolerance`."""
    tol = TOLERANCE if tolerance is None else tolerance
    return cmath.isclose(
        complex(_unwrap(a)),
        complex(_unwrap(b)),
        rel_tol=tol,
        abs_tol=tol,
    )


def is_zero(value) -> bool:
    """True if `value` is exactly zero."""
    return Value(value).data == 0


def is_one(value) -> bool:
    """True if `value` is exactly one."""
    return Value(value).data == 1


def is_negative(value) -> bool:
    """True if `value` is a negative integer or real number."""
    value = Value(value)
    return value.kind != Kind.COMPLEX and value.data < 0


def is_integral(value) -> bool:
    """True if `value` is a real number with no fractional part."""
    value = Value(value)
    if value.kind == Kind.INTEGER:
        return True
    if value.kind == Kind.REAL:
        return math.isfinite(value.data) and value.data.is_integer()
    return False


def _format_real(x: float) -> str:
    if math.isfinite(x) and x.is_integer() and abs(x) < 1e16:
        return str(int(x))
    return repr(x)


def _format(value: Value) -> str:
    if value.kind == Kind.INTEGER:
        return str(value.data)
    if value.kind == Kind.REAL:
        return _format_real(value.data)
    real, imag = value.data.real, value.data.imag
    if real == 0:
        return f"{_format_real(imag)}i"
    sign = '-' if imag < 0 else '+'
    return f"{_format_real(real)} {sign} {_format_real(abs(imag))}i"


def format(value) -> str:
    """Render a number as text.

    Integers and integral real numbers print without a fractional part;
    complex numbers print as ``a + bi``.
    """
    return _format(Value(value))


