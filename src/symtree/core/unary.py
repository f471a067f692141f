import math

from symtree.core import expression
from symtree.core import numerical
from symtree.core import operations
from symtree.core.expression import Expression, Literal, value_of


class Negate(expression.Unary):
    """The additive inverse of an expression."""

    __slots__ = ()

    precedence = expression.Precedence.PREFIX

    def _compute(self, value):
        return numerical.negate(value)

    def simplify(self):
        operand = self.operand.simplify()
        value = value_of(operand)
        if value is not None:
            return Literal(numerical.negate(value))
        if isinstance(operand, Negate):
            return operand.operand
        if isinstance(operand, operations.Multiply):
            coefficient = value_of(operand.left)
            if coefficient is not None:
                return operations.Multiply(
                    Literal(numerical.negate(coefficient)),
                    operand.right,
                ).simplify()
        return Negate(operand)

    def differentiate(self, variable=None):
        return Negate(self.operand.differentiate(variable))

    def integrate(self, variable=None):
        return Negate(self.operand.integrate(variable))

    def __str__(self) -> str:
        return f"-{self._wrap(self.operand, strict=True)}"


class Abs(expression.Unary):
    """The absolute value (magnitude) of an expression."""

    __slots__ = ()

    def _compute(self, value):
        return numerical.absolute(value)

    def simplify(self):
        operand = self.operand.simplify()
        value = value_of(operand)
        if value is not None:
            return Literal(numerical.absolute(value))
        if isinstance(operand, Abs):
            return operand
        if isinstance(operand, Negate):
            return Abs(operand.operand).simplify()
        return Abs(operand)

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.operand.depends_on(v):
            return Literal(0)
        sign = operations.Divide(self.operand, Abs(self.operand))
        if self.operand == v:
            return sign
        return operations.Multiply(sign, self.operand.differentiate(v))

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.operand.depends_on(v):
            return operations.Multiply(self, v)
        if self.operand == v:
            return operations.Divide(operations.Multiply(v, Abs(v)), Literal(2))
        raise expression.IntegrationError(self, v)

    def __str__(self) -> str:
        return f"abs({self.operand})"


class UnaryOperatorError(ValueError):
    """The operator is not a known prefix or postfix operator."""

    def __init__(self, operator: str, prefix: bool) -> None:
        self.operator = operator
        self.prefix = prefix

    def __str__(self) -> str:
        position = 'prefix' if self.prefix else 'postfix'
        return f"Unknown {position} operator {self.operator!r}"


class UnaryExpression(expression.Unary):
    """A generic prefix or postfix operator applied to one operand.

    The prefix operators are ``-`` (negation) and ``+`` (identity). The postfix
    operators are ``!`` (factorial of a non-negative integer) and ``%``
    (percent, i.e. the operand divided by 100).
    """

    __slots__ = ('operator', 'prefix')

    PREFIX = ('-', '+')
    POSTFIX = ('!', '%')

    def __init__(self, operator: str, operand, prefix: bool=True) -> None:
        known = self.PREFIX if prefix else self.POSTFIX
        if operator not in known:
            raise UnaryOperatorError(operator, prefix)
        super().__init__(operand)
        self.operator = operator
        self.prefix = prefix

    @property
    def precedence(self):
        if self.prefix:
            return expression.Precedence.PREFIX
        return expression.Precedence.POSTFIX

    def rebuild(self, *children):
        return UnaryExpression(self.operator, *children, prefix=self.prefix)

    def _compute(self, value):
        if self.operator == '-':
            return numerical.negate(value)
        if self.operator == '+':
            return numerical.Value(value)
        if self.operator == '%':
            return numerical.divide(value, 100)
        return factorial(value)

    def simplify(self):
        operand = self.operand.simplify()
        value = value_of(operand)
        if value is not None:
            return Literal(self._compute(value))
        if self.operator == '+':
            return operand
        if self.operator == '-':
            return Negate(operand).simplify()
        return self.rebuild(operand)

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        if self.operator == '!':
            if not self.operand.depends_on(v):
                return Literal(0)
            raise expression.DifferentiationError(self, v)
        derivative = self.operand.differentiate(v)
        if self.operator == '-':
            return Negate(derivative)
        if self.operator == '%':
            return operations.Divide(derivative, Literal(100))
        return derivative

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        if self.operator == '!':
            if not self.operand.depends_on(v):
                return operations.Multiply(self, v)
            raise expression.IntegrationError(self, v)
        integral = self.operand.integrate(v)
        if self.operator == '-':
            return Negate(integral)
        if self.operator == '%':
            return operations.Divide(integral, Literal(100))
        return integral

    def _key(self):
        return (self.operator, self.prefix, self.operand)

    def __str__(self) -> str:
        operand = (
            f"({self.operand})" if self.operand.children
            else f"{self.operand}"
        )
        if self.prefix:
            return f"{self.operator}{operand}"
        return f"{operand}{self.operator}"


def factorial(value) -> numerical.Value:
    """The factorial of a non-negative integer (or integral real number)."""
    if not numerical.is_integral(value) or numerical.is_negative(value):
        raise numerical.DomainError(
            f"Factorial requires a non-negative integer, not {value}"
        )
    return numerical.Value(math.factorial(int(value)))
