"""
Polynomials in a single variable, stored as coefficients.

A polynomial is a leaf of an expression tree: it has no children, and its
depth and size are both 1. Coefficients are ordered from the highest degree to
the constant term, so ``Polynomial([1, 2, 1])`` is ``x² + 2x + 1``.
"""

import itertools
import re
import typing

from symtree.core import expression
from symtree.core import iterables
from symtree.core import numerical
from symtree.core import operations
from symtree.core import roots as solvers
from symtree.core.expression import Expression, Literal


class DegreeError(solvers.DegreeError):
    """The coefficients do not match the degree of a polynomial type."""

    def __init__(self, name: str, expected: int, given: int) -> None:
        self.name = name
        self.expected = expected
        self.given = given

    def __str__(self) -> str:
        return (
            f"{self.name} requires {self.expected} coefficient(s)"
            f" with a non-zero leading coefficient; got {self.given}"
        )


class VariableMismatchError(ValueError):
    """Arithmetic between polynomials in different variables."""

    def __init__(self, this: 'Polynomial', that: 'Polynomial') -> None:
        self.this = this
        self.that = that

    def __str__(self) -> str:
        return (
            f"Cannot combine polynomials in {self.this.variable}"
            f" and {self.that.variable}"
        )


SUPERSCRIPTS = {
    '0': '⁰',
    '1': '¹',
    '2': '²',
    '3': '³',
    '4': '⁴',
    '5': '⁵',
    '6': '⁶',
    '7': '⁷',
    '8': '⁸',
    '9': '⁹',
}


def superscript(n: int) -> str:
    """Write a non-negative integer with superscript digits."""
    return iterables.batch_replace(str(n), SUPERSCRIPTS)


def _trim(values: typing.Sequence[numerical.Value]):
    """Remove leading zero coefficients, keeping at least one."""
    values = list(values)
    while len(values) > 1 and numerical.is_zero(values[0]):
        values.pop(0)
    return values


class Polynomial(Expression):
    """A polynomial in one variable with numeric coefficients."""

    __slots__ = ('coefficients', 'variable')

    def __init__(
        self,
        coefficients: typing.Iterable,
        variable: typing.Union[str, expression.Variable]=None,
    ) -> None:
        values = tuple(_coefficient(c) for c in coefficients)
        if not values:
            raise solvers.DegreeError("A polynomial needs at least one coefficient")
        self.coefficients = values
        self.variable = expression.as_variable(variable)

    @classmethod
    def from_list(
        cls,
        coefficients: typing.Iterable,
        variable: typing.Union[str, expression.Variable]=None,
    ) -> 'Polynomial':
        """Create the most specific polynomial type for `coefficients`.

        Leading zero coefficients are removed first. The result is a
        `Constant`, `Linear`, `Quadratic`, `Cubic` or `Quartic` instance for
        degrees zero through four, and a general `Polynomial` otherwise.
        """
        values = _trim([_coefficient(c) for c in coefficients])
        specific = _BY_LENGTH.get(len(values))
        if specific is None:
            return Polynomial(values, variable)
        return specific(*values, variable=variable)

    @classmethod
    def from_string(cls, text: str, variable: str=None) -> 'Polynomial':
        """Read a polynomial written as a sum of terms such as ``3x^2 - x + 1``.

        Exponents may be written with ``^`` or as superscript digits, and terms
        may appear in any order.
        """
        name = expression.as_variable(variable).name
        normal = iterables.batch_replace(
            text,
            {v: k for k, v in SUPERSCRIPTS.items()},
        )
        normal = re.sub(
            rf'{re.escape(name)}(\d+)',
            rf'{name}^\1',
            normal.replace(' ', ''),
        )
        pattern = re.compile(
            rf"""
            (?P<sign>[-+]?)
            (?P<coefficient>\d+(?:\.\d*)?|\.\d+)?
            (?:\*?(?P<variable>{re.escape(name)})(?:\^(?P<power>\d+))?)?
            """,
            re.VERBOSE,
        )
        terms = {}
        position = 0
        while position < len(normal):
            match = pattern.match(normal, position)
            if match is None or match.end() == position:
                raise ValueError(f"Cannot read polynomial term in {text!r}")
            if not (match['coefficient'] or match['variable']):
                raise ValueError(f"Cannot read polynomial term in {text!r}")
            position = match.end()
            coefficient = _number(match['coefficient'] or '1')
            if match['sign'] == '-':
                coefficient = -coefficient
            if match['variable']:
                power = int(match['power'] or 1)
            else:
                power = 0
            terms[power] = terms.get(power, 0) + coefficient
        if not terms:
            raise ValueError(f"No polynomial terms in {text!r}")
        degree = max(terms)
        coefficients = [terms.get(k, 0) for k in range(degree, -1, -1)]
        return cls.from_list(coefficients, name)

    @property
    def degree(self) -> int:
        """The highest power, including any leading zero coefficients."""
        return len(self.coefficients) - 1

    @property
    def leading(self) -> numerical.Value:
        """The coefficient of the highest power."""
        return self.coefficients[0]

    @property
    def children(self):
        return ()

    def rebuild(self, *children):
        return self

    @property
    def precedence(self):
        nonzero = [c for c in self.coefficients if not numerical.is_zero(c)]
        if len(nonzero) > 1 or str(self).startswith('-'):
            return expression.Precedence.ADDITIVE
        if len(nonzero) == 1 and self.degree > 0:
            return expression.Precedence.MULTIPLICATIVE
        return expression.Precedence.ATOM

    def _evaluate(self, bindings, partial):
        name = self.variable.name
        if name not in bindings:
            if partial:
                return self
            raise expression.UnboundVariableError(name)
        x = bindings[name]
        if isinstance(x, Expression):
            return self.to_expression().substitute(self.variable, x).simplify()
        return self.horner(x)

    def horner(self, x) -> numerical.Value:
        """Evaluate this polynomial at the number `x` with Horner's rule."""
        result = numerical.Value(0)
        for c in self.coefficients:
            result = numerical.add(numerical.multiply(result, x), c)
        return result

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        if v != self.variable or self.degree == 0:
            return Polynomial.from_list([0], self.variable)
        n = self.degree
        derived = [
            numerical.multiply(c, n - i)
            for i, c in enumerate(self.coefficients[:-1])
        ]
        return Polynomial.from_list(derived, self.variable)

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        if v != self.variable:
            return operations.Multiply(self, v)
        n = self.degree
        integrated = [
            _exact(numerical.divide(c, n - i + 1))
            for i, c in enumerate(self.coefficients)
        ]
        return Polynomial.from_list([*integrated, 0], self.variable)

    def simplify(self):
        return Polynomial.from_list(self.coefficients, self.variable)

    def expand(self):
        return self

    def substitute(self, target, replacement):
        target = expression.as_expression(target)
        if self == target:
            return expression.as_expression(replacement)
        if target == self.variable:
            return self.to_expression().substitute(target, replacement)
        return self

    def get_variable_terms(self):
        if len(_trim(self.coefficients)) > 1:
            return {self.variable}
        return set()

    def to_expression(self) -> Expression:
        """Write this polynomial as an explicit tree of sums and products."""
        n = self.degree
        tree = None
        for i, c in enumerate(self.coefficients):
            power = n - i
            if power == 0:
                term = Literal(c)
            elif power == 1:
                term = operations.Multiply(Literal(c), self.variable)
            else:
                term = operations.Multiply(
                    Literal(c),
                    operations.Pow(self.variable, Literal(power)),
                )
            tree = term if tree is None else operations.Add(tree, term)
        return tree.simplify()

    def add(self, other: 'Polynomial') -> 'Polynomial':
        """The sum of two polynomials."""
        self._check_variable(other)
        a, b = _align(self.coefficients, other.coefficients)
        summed = [numerical.add(x, y) for x, y in zip(a, b)]
        return Polynomial.from_list(summed, self.variable)

    def subtract(self, other: 'Polynomial') -> 'Polynomial':
        """The difference of two polynomials."""
        self._check_variable(other)
        a, b = _align(self.coefficients, other.coefficients)
        differences = [numerical.subtract(x, y) for x, y in zip(a, b)]
        return Polynomial.from_list(differences, self.variable)

    def multiply(self, other: 'Polynomial') -> 'Polynomial':
        """The product of two polynomials."""
        self._check_variable(other)
        product = [numerical.Value(0)] * (self.degree + other.degree + 1)
        for (i, x), (j, y) in itertools.product(
            enumerate(self.coefficients),
            enumerate(other.coefficients),
        ):
            product[i + j] = numerical.add(product[i + j], numerical.multiply(x, y))
        return Polynomial.from_list(product, self.variable)

    def divide(self, other: 'Polynomial'):
        """Long division by another polynomial.

        Returns
        -------
        tuple of polynomials
            The quotient and the remainder.
        """
        self._check_variable(other)
        divisor = _trim(other.coefficients)
        if len(divisor) == 1 and numerical.is_zero(divisor[0]):
            raise numerical.DivisionByZeroError(f"({self}) / ({other})")
        remainder = _trim(self.coefficients)
        if len(remainder) < len(divisor):
            zero = Polynomial.from_list([0], self.variable)
            return zero, Polynomial.from_list(remainder, self.variable)
        quotient = []
        steps = len(remainder) - len(divisor) + 1
        for _ in range(steps):
            factor = _exact(numerical.divide(remainder[0], divisor[0]))
            quotient.append(factor)
            for k, d in enumerate(divisor):
                remainder[k] = numerical.subtract(
                    remainder[k],
                    numerical.multiply(factor, d),
                )
            remainder.pop(0)
        remainder = [_snap(r) for r in remainder] or [numerical.Value(0)]
        return (
            Polynomial.from_list(quotient, self.variable),
            Polynomial.from_list(remainder, self.variable),
        )

    def is_zero(self) -> bool:
        """True if every coefficient is exactly zero."""
        return all(numerical.is_zero(c) for c in self.coefficients)

    def is_constant(self) -> bool:
        """True if this polynomial has degree zero after trimming."""
        return len(_trim(self.coefficients)) == 1

    def monic(self) -> 'Polynomial':
        """This polynomial divided by its leading coefficient."""
        values = _trim(self.coefficients)
        lead = values[0]
        return Polynomial.from_list(
            [_exact(numerical.divide(c, lead)) for c in values],
            self.variable,
        )

    def gcd(self, other: 'Polynomial') -> 'Polynomial':
        """The monic greatest common divisor, by Euclid's algorithm."""
        self._check_variable(other)
        a, b = self.simplify(), other.simplify()
        while not b.is_zero():
            _, remainder = a.divide(b)
            a, b = b, remainder
        if a.is_zero():
            return a
        return a.monic()

    def roots(self) -> typing.List[complex]:
        """All roots, as complex numbers, repeated by multiplicity."""
        values = _trim(self.coefficients)
        return solvers.solve([c.data for c in values])

    def find_factors(self) -> typing.List[str]:
        """Describe the linear factor that belongs to each root.

        A root ``r`` yields ``(x - r)``; for example, the roots 2, -3 and
        1 + 4i yield ``(x - 2)``, ``(x + 3)`` and ``(x - 1 - 4i)``.
        """
        return [_describe_factor(self.variable.name, r) for r in self.roots()]

    def factorize(self) -> typing.List['Polynomial']:
        """Split into linear factors whose product is this polynomial.

        The leading coefficient, if it is not 1, scales the first factor. A
        constant polynomial is its own single factor.
        """
        values = _trim(self.coefficients)
        found = self.roots()
        if not found:
            return [Polynomial.from_list(values, self.variable)]
        lead = values[0]
        factors = []
        for i, r in enumerate(found):
            scale = lead if i == 0 else numerical.Value(1)
            factors.append(
                Polynomial.from_list(
                    [scale, numerical.multiply(scale, -_real_if_possible(r))],
                    self.variable,
                )
            )
        return factors

    def discriminant(self) -> numerical.Value:
        """The discriminant, a·(2n - 2) times the squared root differences.

        A constant has no discriminant; this returns 0 for it. A linear
        polynomial has discriminant 1.
        """
        values = _trim(self.coefficients)
        n = len(values) - 1
        if n == 0:
            return numerical.Value(0)
        if n == 1:
            return numerical.Value(1)
        found = self.roots()
        product = complex(1)
        for i, j in itertools.combinations(range(n), 2):
            product *= (found[i] - found[j]) ** 2
        result = complex(values[0].data) ** (2 * n - 2) * product
        return numerical.Value(_real_if_possible(solvers.clean(result)))

    def _check_variable(self, other: 'Polynomial') -> None:
        if not isinstance(other, Polynomial):
            raise TypeError(f"Expected a polynomial, not {other!r}") from None
        if other.variable != self.variable:
            raise VariableMismatchError(self, other)

    def _key(self):
        return (self.variable, self.coefficients)

    def __eq__(self, other) -> bool:
        if isinstance(other, Polynomial):
            return self._key() == other._key()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(('Polynomial', self._key()))

    def __str__(self) -> str:
        name = self.variable.name
        n = self.degree
        parts = []
        for i, c in enumerate(self.coefficients):
            if numerical.is_zero(c):
                continue
            power = n - i
            negative = numerical.is_negative(c)
            magnitude = numerical.negate(c) if negative else c
            if c.kind == numerical.Kind.COMPLEX:
                text = f"({numerical.format(magnitude)})"
            else:
                text = numerical.format(magnitude)
            if numerical.is_one(magnitude) and power > 0:
                text = ''
            if power > 0:
                text += name
            if power > 1:
                text += superscript(power)
            if not parts:
                parts.append(f"-{text}" if negative else text)
            else:
                parts.append(f"- {text}" if negative else f"+ {text}")
        if not parts:
            return '0'
        return ' '.join(parts)


def _coefficient(c) -> numerical.Value:
    """Interpret a coefficient given as a number or a literal node."""
    if isinstance(c, Literal):
        return c.value
    return numerical.Value(c)


def _number(text: str):
    """Read an integer or real number."""
    if '.' in text:
        return float(text)
    return int(text)


def _exact(value: numerical.Value) -> numerical.Value:
    """Use an integer for a real quotient that has no fractional part."""
    if value.kind == numerical.Kind.REAL and numerical.is_integral(value):
        return numerical.Value(int(value.data))
    return value


def _snap(value: numerical.Value) -> numerical.Value:
    """Replace round-off residue with exact zero."""
    if value.kind != numerical.Kind.INTEGER and numerical.isclose(value, 0):
        return numerical.Value(0)
    return value


def _real_if_possible(z: complex):
    """A real number for a complex number with no imaginary part."""
    z = complex(z)
    if z.imag == 0:
        real = z.real
        return int(real) if real.is_integer() else real
    return z


def _align(a, b):
    """Pad two coefficient lists with leading zeros to equal length."""
    zero = numerical.Value(0)
    width = max(len(a), len(b))
    return (
        [zero] * (width - len(a)) + list(a),
        [zero] * (width - len(b)) + list(b),
    )


def _describe_factor(name: str, root: complex) -> str:
    """Write the factor (x - root) with explicit signs."""
    root = complex(root)
    real, imag = root.real, root.imag
    text = f"({name} {'+' if real < 0 else '-'} {numerical.format(abs(real))}"
    if imag != 0:
        text += f" {'+' if imag < 0 else '-'} {numerical.format(abs(imag))}i"
    return f"{text})"


class _Fixed(Polynomial):
    """Base class for polynomials of one fixed degree."""

    __slots__ = ()

    length: int = None

    def __init__(self, *coefficients, variable=None) -> None:
        if len(coefficients) != self.length:
            raise DegreeError(type(self).__name__, self.length, len(coefficients))
        super().__init__(coefficients, variable)
        if self.length > 1 and numerical.is_zero(self.leading):
            raise DegreeError(type(self).__name__, self.length, len(coefficients))


class Constant(_Fixed):
    """A polynomial of degree zero."""

    __slots__ = ()

    length = 1


class Linear(_Fixed):
    """The polynomial a·x + b."""

    __slots__ = ()

    length = 2


class Quadratic(_Fixed):
    """The polynomial a·x² + b·x + c."""

    __slots__ = ()

    length = 3

    def discriminant(self):
        a, b, c = self.coefficients
        return numerical.subtract(
            numerical.multiply(b, b),
            numerical.multiply(4, numerical.multiply(a, c)),
        )


class Cubic(_Fixed):
    """The polynomial a·x³ + b·x² + c·x + d."""

    __slots__ = ()

    length = 4

    def discriminant(self):
        a, b, c, d = (v.data for v in self.coefficients)
        value = (
            b * b * c * c
            - 4 * a * c ** 3
            - 4 * b ** 3 * d
            - 27 * a * a * d * d
            + 18 * a * b * c * d
        )
        return numerical.Value(value)


class Quartic(_Fixed):
    """The polynomial a·x⁴ + b·x³ + c·x² + d·x + e."""

    __slots__ = ()

    length = 5


_BY_LENGTH = {
    1: Constant,
    2: Linear,
    3: Quadratic,
    4: Cubic,
    5: Quartic,
}
