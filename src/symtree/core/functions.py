"""
Transcendental functions of a single operand.

Every function applies the chain rule when differentiating, using a fixed
derivative of the outer function. Integration knows closed forms only for
operands of the shape ``x``, ``a·x`` or ``a·x + b``; any other operand that
depends on the variable of integration raises `IntegrationError`.
"""

import math
import typing

import numpy

from symtree.core import expression
from symtree.core import iterables
from symtree.core import numerical
from symtree.core import operations
from symtree.core import unary
from symtree.core.expression import Expression, Literal, value_of


registry = iterables.ObjectRegistry()
"""Function node classes, keyed by the name they print with."""


class Function(expression.Unary):
    """Base class for named functions of one operand."""

    __slots__ = ()

    name: str = None

    def _compute(self, value):
        self._check(numerical.Value(value))
        return numerical.apply(self._function, value)

    def _function(self, x):
        """Compute the native value of this function."""
        raise NotImplementedError

    def _check(self, value: numerical.Value) -> None:
        """Raise an exception if `value` is outside the domain."""
        pass

    def _derivative(self, u: Expression) -> Expression:
        """The derivative of the outer function, at `u`."""
        raise NotImplementedError

    def _antiderivative(self, u: Expression) -> Expression:
        """An antiderivative of the outer function, at `u`."""
        raise NotImplementedError

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.operand.depends_on(v):
            return Literal(0)
        outer = self._derivative(self.operand)
        if self.operand == v:
            return outer
        return operations.Multiply(outer, self.operand.differentiate(v))

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.operand.depends_on(v):
            return operations.Multiply(self, v)
        shape = operations.linear(self.operand, v)
        if shape is None:
            raise expression.IntegrationError(self, v)
        slope, _ = shape
        antiderivative = self._antiderivative(self.operand)
        if numerical.is_one(slope):
            return antiderivative
        return operations.Divide(antiderivative, Literal(slope))

    def simplify(self):
        operand = self.operand.simplify()
        value = value_of(operand)
        if value is not None:
            return Literal(self._compute(value))
        return self._rewrite(operand)

    def _rewrite(self, operand: Expression) -> Expression:
        """Apply rules specific to this function to a simplified operand."""
        return type(self)(operand)

    def __str__(self) -> str:
        return f"{self.name}({self.operand})"


def _is_real(value: numerical.Value) -> bool:
    return value.kind != numerical.Kind.COMPLEX


def _square(u: Expression) -> Expression:
    return operations.Pow(u, Literal(2))


def _sqrt(u: Expression) -> Expression:
    return operations.Pow(u, Literal(0.5))


@registry.register(name='sin')
class Sin(Function):
    """The sine function."""

    __slots__ = ()

    name = 'sin'

    def _function(self, x):
        return numpy.sin(x)

    def _derivative(self, u):
        return Cos(u)

    def _antiderivative(self, u):
        return unary.Negate(Cos(u))


@registry.register(name='cos')
class Cos(Function):
    """The cosine function."""

    __slots__ = ()

    name = 'cos'

    def _function(self, x):
        return numpy.cos(x)

    def _derivative(self, u):
        return unary.Negate(Sin(u))

    def _antiderivative(self, u):
        return Sin(u)


@registry.register(name='tan')
class Tan(Function):
    """The tangent function."""

    __slots__ = ()

    name = 'tan'

    def _function(self, x):
        return numpy.tan(x)

    def _derivative(self, u):
        return _square(Sec(u))

    def _antiderivative(self, u):
        return unary.Negate(Ln(unary.Abs(Cos(u))))


class Reciprocal(Function):
    """Base class for functions defined as 1 / f(x).

    Evaluation raises `UndefinedValueError` where the reciprocated function is
    exactly zero.
    """

    __slots__ = ()

    def _reciprocated(self, x):
        raise NotImplementedError

    def _compute(self, value):
        denominator = numerical.apply(self._reciprocated, value)
        if numerical.is_zero(denominator):
            raise numerical.UndefinedValueError(
                f"{self.name} is undefined at {numerical.format(value)}"
            )
        return numerical.divide(1, denominator)


@registry.register(name='csc')
class Csc(Reciprocal):
    """The cosecant function."""

    __slots__ = ()

    name = 'csc'

    def _reciprocated(self, x):
        return numpy.sin(x)

    def _derivative(self, u):
        return unary.Negate(operations.Multiply(Csc(u), Cot(u)))

    def _antiderivative(self, u):
        half = operations.Divide(u, Literal(2))
        return Ln(unary.Abs(Tan(half)))


@registry.register(name='sec')
class Sec(Reciprocal):
    """The secant function."""

    __slots__ = ()

    name = 'sec'

    def _reciprocated(self, x):
        return numpy.cos(x)

    def _derivative(self, u):
        return operations.Multiply(Sec(u), Tan(u))

    def _antiderivative(self, u):
        return Ln(unary.Abs(operations.Add(Sec(u), Tan(u))))


@registry.register(name='cot')
class Cot(Reciprocal):
    """The cotangent function."""

    __slots__ = ()

    name = 'cot'

    def _reciprocated(self, x):
        return numpy.tan(x)

    def _derivative(self, u):
        return unary.Negate(_square(Csc(u)))

    def _antiderivative(self, u):
        return Ln(unary.Abs(Sin(u)))


class Inverse(Function):
    """Base class for inverse sine and cosine, defined on [-1, 1]."""

    __slots__ = ()

    def _check(self, value):
        if _is_real(value) and not -1 <= value.data <= 1:
            raise numerical.DomainError(
                f"{self.name} is defined on [-1, 1], not at {value}"
            )


@registry.register(name='asin')
class Asin(Inverse):
    """The inverse sine function."""

    __slots__ = ()

    name = 'asin'

    def _function(self, x):
        return numpy.arcsin(x)

    def _derivative(self, u):
        return operations.Divide(
            Literal(1),
            _sqrt(operations.Subtract(Literal(1), _square(u))),
        )

    def _antiderivative(self, u):
        return operations.Add(
            operations.Multiply(u, Asin(u)),
            _sqrt(operations.Subtract(Literal(1), _square(u))),
        )


@registry.register(name='acos')
class Acos(Inverse):
    """The inverse cosine function."""

    __slots__ = ()

    name = 'acos'

    def _function(self, x):
        return numpy.arccos(x)

    def _derivative(self, u):
        return unary.Negate(
            operations.Divide(
                Literal(1),
                _sqrt(operations.Subtract(Literal(1), _square(u))),
            )
        )

    def _antiderivative(self, u):
        return operations.Subtract(
            operations.Multiply(u, Acos(u)),
            _sqrt(operations.Subtract(Literal(1), _square(u))),
        )


@registry.register(name='atan')
class Atan(Function):
    """The inverse tangent function."""

    __slots__ = ()

    name = 'atan'

    def _function(self, x):
        return numpy.arctan(x)

    def _derivative(self, u):
        return operations.Divide(
            Literal(1),
            operations.Add(Literal(1), _square(u)),
        )

    def _antiderivative(self, u):
        return operations.Subtract(
            operations.Multiply(u, Atan(u)),
            operations.Divide(
                Ln(operations.Add(Literal(1), _square(u))),
                Literal(2),
            ),
        )


def _check_logarithm(value: numerical.Value, name: str) -> None:
    """Raise `DomainError` for non-positive real numbers and zero."""
    if numerical.is_zero(value) or _is_real(value) and value.data < 0:
        raise numerical.DomainError(
            f"{name} is undefined for {value}"
        )


@registry.register(name='ln')
class Ln(Function):
    """The natural logarithm."""

    __slots__ = ()

    name = 'ln'

    def _function(self, x):
        return numpy.log(x)

    def _check(self, value):
        _check_logarithm(value, self.name)

    def _derivative(self, u):
        return operations.Divide(Literal(1), u)

    def _antiderivative(self, u):
        return operations.Subtract(operations.Multiply(u, Ln(u)), u)

    def _rewrite(self, operand):
        if isinstance(operand, Exp):
            return operand.operand
        return Ln(operand)


@registry.register(name='exp')
class Exp(Function):
    """The natural exponential function."""

    __slots__ = ()

    name = 'exp'

    def _function(self, x):
        return numpy.exp(x)

    def _derivative(self, u):
        return Exp(u)

    def _antiderivative(self, u):
        return Exp(u)

    def _rewrite(self, operand):
        if isinstance(operand, Ln):
            return operand.operand
        return Exp(operand)


@registry.register(name='log')
class Log(Expression):
    """The logarithm of an expression to an arbitrary base.

    The value follows from the change-of-base identity
    ``log_b(x) = ln(x) / ln(b)``. A base within the configured tolerance of
    Euler's number simplifies to the natural logarithm.
    """

    __slots__ = ('operand', 'base')

    name = 'log'

    def __init__(self, operand, base=10) -> None:
        self.operand = expression.as_expression(operand)
        self.base = expression.as_expression(base)

    @property
    def children(self):
        return (self.operand, self.base)

    def rebuild(self, *children):
        return Log(*children)

    def _evaluate(self, bindings, partial):
        operands = self._evaluate_children(bindings, partial)
        if isinstance(operands, Expression):
            return operands
        return self._compute(*operands)

    def _compute(self, x, b) -> numerical.Value:
        self._check_base(numerical.Value(b))
        _check_logarithm(numerical.Value(x), self.name)
        return numerical.divide(
            numerical.apply(numpy.log, x),
            numerical.apply(numpy.log, b),
        )

    def _check_base(self, b: numerical.Value) -> None:
        if numerical.is_one(b) or numerical.is_zero(b) or (
            _is_real(b) and b.data < 0
        ):
            raise numerical.DomainError(
                f"Invalid logarithm base {b}"
            )

    def simplify(self):
        operand = self.operand.simplify()
        base = self.base.simplify()
        x, b = value_of(operand), value_of(base)
        if b is not None:
            self._check_base(b)
        if x is not None and b is not None:
            return Literal(self._compute(x, b))
        if x is not None and numerical.is_one(x):
            return Literal(0)
        if operand == base:
            return Literal(1)
        if isinstance(operand, operations.Pow) and operand.base == base:
            return operand.exponent
        if b is not None and numerical.isclose(b, math.e):
            return Ln(operand).simplify()
        return Log(operand, base)

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        if self.base.depends_on(v):
            quotient = operations.Divide(Ln(self.operand), Ln(self.base))
            return quotient.differentiate(v)
        if not self.operand.depends_on(v):
            return Literal(0)
        outer = operations.Divide(
            Literal(1),
            operations.Multiply(self.operand, Ln(self.base)),
        )
        if self.operand == v:
            return outer
        return operations.Multiply(outer, self.operand.differentiate(v))

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        if self.base.depends_on(v):
            raise expression.IntegrationError(self, v)
        if not self.operand.depends_on(v):
            return operations.Multiply(self, v)
        try:
            natural = Ln(self.operand).integrate(v)
        except expression.IntegrationError:
            raise expression.IntegrationError(self, v) from None
        return operations.Divide(natural, Ln(self.base))

    def _key(self):
        return (self.operand, self.base)

    def __str__(self) -> str:
        if self.base == Literal(10):
            return f"log({self.operand})"
        return f"log({self.operand}, {self.base})"


def lookup(name: str) -> typing.Optional[typing.Type[Expression]]:
    """The function node class registered under `name`, if any."""
    if name in registry:
        return registry.find(name)
    return None
