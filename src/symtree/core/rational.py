import logging
import typing

from symtree.core import expression
from symtree.core import iterables
from symtree.core import numerical
from symtree.core import operations
from symtree.core.expression import Expression
from symtree.core.polynomial import Polynomial, _exact


logger = logging.getLogger(__name__)


class Division(typing.NamedTuple):
    """The result of polynomial long division."""

    quotient: Polynomial
    remainder: Polynomial


class RationalFunction(Expression):
    """The ratio of two expressions, usually two polynomials.

    Long division of the numerator by the denominator happens at most once per
    instance, the first time `divide` needs it. Simplification tries, in order,
    folding constant polynomials, returning the quotient of an exact division,
    and cancelling the greatest common divisor of the two polynomials. A
    rational function whose numerator and denominator are not both
    polynomials simplifies to itself.
    """

    __slots__ = ('numerator', 'denominator', '_division')

    precedence = expression.Precedence.MULTIPLICATIVE

    def __init__(self, numerator, denominator) -> None:
        self.numerator = expression.as_expression(numerator)
        self.denominator = expression.as_expression(denominator)
        self._division = iterables.Once(self._divide)

    @property
    def children(self):
        return (self.numerator, self.denominator)

    def rebuild(self, *children):
        return RationalFunction(*children)

    @property
    def is_polynomial(self) -> bool:
        """True if both numerator and denominator are polynomials."""
        return (
            isinstance(self.numerator, Polynomial)
            and isinstance(self.denominator, Polynomial)
        )

    def divide(self) -> Division:
        """The quotient and remainder of polynomial long division.

        Raises `UnsupportedOperationError` unless both numerator and
        denominator are polynomials.
        """
        return self._division.get()

    def _divide(self) -> Division:
        if not self.is_polynomial:
            raise expression.UnsupportedOperationError(self)
        logger.debug("Dividing %s by %s", self.numerator, self.denominator)
        return Division(*self.numerator.divide(self.denominator))

    def _evaluate(self, bindings, partial):
        operands = self._evaluate_children(bindings, partial)
        if isinstance(operands, Expression):
            return operands
        numerator, denominator = operands
        if numerical.is_zero(denominator):
            raise numerical.DivisionByZeroError(self)
        return numerical.divide(numerator, denominator)

    def simplify(self):
        if not self.is_polynomial:
            return self
        numerator = self.numerator.simplify()
        denominator = self.denominator.simplify()
        if denominator.is_zero():
            raise numerical.DivisionByZeroError(self)
        if numerator.is_zero():
            return Polynomial.from_list([0], numerator.variable)
        if denominator.is_constant():
            lead = denominator.coefficients[0]
            quotients = [
                _exact(numerical.divide(c, lead))
                for c in numerator.coefficients
            ]
            return Polynomial.from_list(quotients, numerator.variable)
        reduced = RationalFunction(numerator, denominator)
        division = reduced.divide()
        if division.remainder.is_zero():
            logger.debug("Exact division of %s", reduced)
            return division.quotient
        common = numerator.gcd(denominator)
        if not common.is_constant():
            logger.debug("Cancelling common factor %s from %s", common, reduced)
            return RationalFunction(
                numerator.divide(common)[0],
                denominator.divide(common)[0],
            )
        return reduced

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        numerator, denominator = self.numerator, self.denominator
        if self.is_polynomial and numerator.variable == denominator.variable:
            if v != numerator.variable:
                return Polynomial.from_list([0], numerator.variable)
            top = numerator.differentiate(v).multiply(denominator).subtract(
                numerator.multiply(denominator.differentiate(v))
            )
            return RationalFunction(top, denominator.multiply(denominator))
        return operations.Divide(numerator, denominator).differentiate(v)

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        try:
            if not self.is_polynomial:
                return operations.Divide(
                    self.numerator,
                    self.denominator,
                ).integrate(v)
            quotient, remainder = self.divide()
            if remainder.is_zero():
                return quotient.integrate(v)
            fraction = operations.Divide(
                remainder.to_expression(),
                self.denominator.to_expression(),
            ).integrate(v)
        except expression.IntegrationError as err:
            raise expression.IntegrationError(self, v) from err
        if quotient.is_zero():
            return fraction
        return operations.Add(quotient.integrate(v), fraction)

    def _key(self):
        return (self.numerator, self.denominator)

    def __str__(self) -> str:
        numerator = self._wrap(self.numerator)
        denominator = self._wrap(self.denominator, strict=True)
        return f"{numerator} / {denominator}"
