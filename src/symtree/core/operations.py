"""
Binary arithmetic nodes and their algebraic rules.

Trees are built with the named constructors `add`, `sub`, `mul`, `div` and
`pow` (or the node classes themselves); expression nodes do not overload the
Python arithmetic operators.
"""

import typing

from symtree.core import expression
from symtree.core import functions
from symtree.core import numerical
from symtree.core import unary
from symtree.core.expression import Expression, Literal, value_of


class Binary(Expression):
    """Base class for nodes with exactly two operands."""

    __slots__ = ('left', 'right')

    symbol: str = None

    def __init__(self, left, right) -> None:
        self.left = expression.as_expression(left)
        self.right = expression.as_expression(right)

    @property
    def children(self):
        return (self.left, self.right)

    def rebuild(self, *children):
        return type(self)(*children)

    def _evaluate(self, bindings, partial):
        operands = self._evaluate_children(bindings, partial)
        if isinstance(operands, Expression):
            return operands
        return self._compute(*operands)

    def _compute(self, a, b) -> numerical.Value:
        """Combine the values of the two operands."""
        raise NotImplementedError

    def __str__(self) -> str:
        left = self._wrap(self.left)
        right = self._wrap(self.right, strict=True)
        return f"{left} {self.symbol} {right}"


# Sums

def _signed_terms(node: Expression, sign: int=1):
    """Flatten nested sums and differences into signed terms."""
    if isinstance(node, Add):
        return _signed_terms(node.left, sign) + _signed_terms(node.right, sign)
    if isinstance(node, Subtract):
        return _signed_terms(node.left, sign) + _signed_terms(node.right, -sign)
    return [(sign, node)]


def _split(term: Expression):
    """Separate a term into its numeric coefficient and symbolic rest.

    The rest is `None` for a pure number.
    """
    value = value_of(term)
    if value is not None:
        return value, None
    if isinstance(term, unary.Negate):
        coefficient, rest = _split(term.operand)
        return numerical.negate(coefficient), rest
    if isinstance(term, Multiply):
        value = value_of(term.left)
        if value is not None:
            return value, term.right
    return numerical.Value(1), term


def _make_term(coefficient: numerical.Value, rest: typing.Optional[Expression]):
    """Recombine a coefficient and a symbolic rest into a single term."""
    if rest is None:
        return Literal(coefficient)
    if numerical.is_one(coefficient):
        return rest
    if coefficient == -1:
        return unary.Negate(rest)
    return Multiply(Literal(coefficient), rest)


def _chain(terms: typing.List[typing.Tuple[int, Expression]]) -> Expression:
    """Join signed terms into a left-leaning chain of sums and differences."""
    (sign, first), *rest = terms
    result = unary.Negate(first) if sign < 0 else first
    for sign, term in rest:
        result = Subtract(result, term) if sign < 0 else Add(result, term)
    return result


def _collect(node: Expression) -> Expression:
    """Combine like terms of a simplified sum.

    Terms keep the order in which they first appear, except that the numeric
    constant, if any, comes last.
    """
    constant = numerical.Value(0)
    groups = {}
    for sign, term in _signed_terms(node):
        coefficient, rest = _split(term)
        if sign < 0:
            coefficient = numerical.negate(coefficient)
        if rest is None:
            constant = numerical.add(constant, coefficient)
        elif rest in groups:
            groups[rest] = numerical.add(groups[rest], coefficient)
        else:
            groups[rest] = coefficient
    items = [(c, rest) for rest, c in groups.items() if not numerical.is_zero(c)]
    if not numerical.is_zero(constant):
        items.append((constant, None))
    if not items:
        return Literal(constant)
    (c, rest), *others = items
    terms = [(1, _make_term(c, rest))]
    for c, rest in others:
        if numerical.is_negative(c):
            terms.append((-1, _make_term(numerical.negate(c), rest)))
        else:
            terms.append((1, _make_term(c, rest)))
    return _chain(terms)


class Add(Binary):
    """The sum of two expressions."""

    __slots__ = ()

    symbol = '+'
    precedence = expression.Precedence.ADDITIVE

    def _compute(self, a, b):
        return numerical.add(a, b)

    def simplify(self):
        return _collect(Add(self.left.simplify(), self.right.simplify()))

    def differentiate(self, variable=None):
        return Add(
            self.left.differentiate(variable),
            self.right.differentiate(variable),
        )

    def integrate(self, variable=None):
        return Add(
            self.left.integrate(variable),
            self.right.integrate(variable),
        )


class Subtract(Binary):
    """The difference of two expressions."""

    __slots__ = ()

    symbol = '-'
    precedence = expression.Precedence.ADDITIVE

    def _compute(self, a, b):
        return numerical.subtract(a, b)

    def simplify(self):
        return _collect(Subtract(self.left.simplify(), self.right.simplify()))

    def differentiate(self, variable=None):
        return Subtract(
            self.left.differentiate(variable),
            self.right.differentiate(variable),
        )

    def integrate(self, variable=None):
        return Subtract(
            self.left.integrate(variable),
            self.right.integrate(variable),
        )


def _binomial(node: Expression):
    """The two terms of a sum or difference and the sign of the second."""
    sign = 1 if isinstance(node, Add) else -1
    return node.left, node.right, sign


def _is_sum(node: Expression) -> bool:
    return isinstance(node, (Add, Subtract))


def _square(node: Expression) -> Expression:
    """(a ± b)² as a² ± 2ab + b²."""
    a, b, sign = _binomial(node)
    return _chain(
        [
            (1, Pow(a, Literal(2))),
            (sign, Multiply(Literal(2), Multiply(a, b))),
            (1, Pow(b, Literal(2))),
        ]
    )


# Products

def _coefficient(node: Expression):
    """A leading numeric factor and the remaining factor, if any."""
    value = value_of(node)
    if value is not None:
        return value, None
    if isinstance(node, Multiply):
        value = value_of(node.left)
        if value is not None:
            return value, node.right
    return None, node


def _base_and_exponent(node: Expression):
    if isinstance(node, Pow):
        return node.base, node.exponent
    return node, Literal(1)


class Multiply(Binary):
    """The product of two expressions."""

    __slots__ = ()

    symbol = '*'
    precedence = expression.Precedence.MULTIPLICATIVE

    def _compute(self, a, b):
        kind = numerical.promote(a, b)
        if numerical.is_zero(a) or numerical.is_zero(b):
            return numerical.coerce(0, kind)
        if numerical.is_one(a):
            return numerical.coerce(b, kind)
        if numerical.is_one(b):
            return numerical.coerce(a, kind)
        return numerical.multiply(a, b)

    def simplify(self):
        left = self.left.simplify()
        right = self.right.simplify()
        a, b = value_of(left), value_of(right)
        if a is not None and b is not None:
            return Literal(numerical.multiply(a, b))
        if a is not None and numerical.is_zero(a):
            return Literal(0)
        if b is not None and numerical.is_zero(b):
            return Literal(0)
        if a is not None and numerical.is_one(a):
            return right
        if b is not None and numerical.is_one(b):
            return left
        lc, lrest = _coefficient(left)
        rc, rrest = _coefficient(right)
        if lc is None and rc is None:
            lbase, lexp = _base_and_exponent(left)
            rbase, rexp = _base_and_exponent(right)
            if lbase == rbase:
                return Pow(lbase, Add(lexp, rexp).simplify()).simplify()
            if _is_difference_of_squares(left, right):
                x, y, _ = _binomial(left)
                return Subtract(Pow(x, Literal(2)), Pow(y, Literal(2))).simplify()
            return Multiply(left, right)
        if lc is not None and rc is None and lrest is None:
            return Multiply(left, right)
        if lc is None:
            coefficient = rc
        elif rc is None:
            coefficient = lc
        else:
            coefficient = numerical.multiply(lc, rc)
        if lrest is None:
            rest = rrest
        elif rrest is None:
            rest = lrest
        else:
            rest = Multiply(lrest, rrest).simplify()
        if rest is None:
            return Literal(coefficient)
        return Multiply(Literal(coefficient), rest).simplify()

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.left.depends_on(v):
            return Multiply(self.left, self.right.differentiate(v))
        if not self.right.depends_on(v):
            return Multiply(self.right, self.left.differentiate(v))
        return Add(
            Multiply(self.left.differentiate(v), self.right),
            Multiply(self.left, self.right.differentiate(v)),
        )

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.left.depends_on(v):
            if not self.right.depends_on(v):
                return Multiply(self, v)
            return Multiply(self.left, self.right.integrate(v))
        if not self.right.depends_on(v):
            return Multiply(self.right, self.left.integrate(v))
        raise expression.IntegrationError(self, v)

    def expand(self):
        left = self.left.expand()
        right = self.right.expand()
        if left == right and _is_sum(left):
            return _square(left)
        if _is_sum(left) and _is_sum(right):
            a, b, s = _binomial(left)
            c, d, t = _binomial(right)
            return _chain(
                [
                    (1, Multiply(a, c)),
                    (t, Multiply(a, d)),
                    (s, Multiply(b, c)),
                    (s * t, Multiply(b, d)),
                ]
            )
        if _is_sum(left):
            a, b, s = _binomial(left)
            return _chain([(1, Multiply(a, right)), (s, Multiply(b, right))])
        if _is_sum(right):
            c, d, t = _binomial(right)
            return _chain([(1, Multiply(left, c)), (t, Multiply(left, d))])
        return Multiply(left, right)


def _is_difference_of_squares(left: Expression, right: Expression) -> bool:
    """True for (a + b)(a - b) or (a - b)(a + b)."""
    pairs = (
        isinstance(left, Add) and isinstance(right, Subtract)
        or isinstance(left, Subtract) and isinstance(right, Add)
    )
    return pairs and left.left == right.left and left.right == right.right


class Divide(Binary):
    """The quotient of two expressions."""

    __slots__ = ()

    symbol = '/'
    precedence = expression.Precedence.MULTIPLICATIVE

    @property
    def numerator(self) -> Expression:
        return self.left

    @property
    def denominator(self) -> Expression:
        return self.right

    def _compute(self, a, b):
        if numerical.is_zero(b):
            raise numerical.DivisionByZeroError(self)
        if numerical.is_one(b):
            kind = max(numerical.promote(a, b), numerical.Kind.REAL)
            return numerical.coerce(a, kind)
        return numerical.divide(a, b)

    def simplify(self):
        numerator = self.left.simplify()
        denominator = self.right.simplify()
        a, b = value_of(numerator), value_of(denominator)
        if b is not None and numerical.is_zero(b):
            raise numerical.DivisionByZeroError(self)
        if a is not None and b is not None:
            return Literal(numerical.divide(a, b))
        if b is not None and numerical.is_one(b):
            return numerator
        if a is not None and numerical.is_zero(a):
            return Literal(0)
        return Divide(numerator, denominator)

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.right.depends_on(v):
            return Divide(self.left.differentiate(v), self.right)
        return Divide(
            Subtract(
                Multiply(self.left.differentiate(v), self.right),
                Multiply(self.left, self.right.differentiate(v)),
            ),
            Pow(self.right, Literal(2)),
        )

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.right.depends_on(v):
            if not self.left.depends_on(v):
                return Multiply(self, v)
            return Divide(self.left.integrate(v), self.right)
        if not self.left.depends_on(v):
            shape = linear(self.right, v)
            if shape is not None:
                slope, _ = shape
                logarithm = functions.Ln(unary.Abs(self.right))
                if numerical.is_one(slope):
                    return Multiply(self.left, logarithm)
                factor = Divide(self.left, Literal(slope)).simplify()
                return Multiply(factor, logarithm)
        raise expression.IntegrationError(self, v)


class Pow(Binary):
    """An expression raised to the power of another."""

    __slots__ = ()

    symbol = '^'
    precedence = expression.Precedence.POWER

    @property
    def base(self) -> Expression:
        return self.left

    @property
    def exponent(self) -> Expression:
        return self.right

    def _compute(self, a, b):
        return numerical.power(a, b)

    def simplify(self):
        base = self.left.simplify()
        exponent = self.right.simplify()
        a, b = value_of(base), value_of(exponent)
        if b is not None and numerical.is_zero(b):
            return Literal(1)
        if b is not None and numerical.is_one(b):
            return base
        if a is not None and numerical.is_zero(a) and b is not None:
            if b.kind != numerical.Kind.COMPLEX and b > 0:
                return Literal(0)
            raise numerical.UndefinedValueError(
                f"0 raised to the non-positive power {b}"
            )
        if a is not None and numerical.is_one(a):
            return Literal(1)
        if a is not None and b is not None:
            return Literal(numerical.power(a, b))
        return Pow(base, exponent)

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        variable_base = self.base.depends_on(v)
        variable_exponent = self.exponent.depends_on(v)
        if not variable_base and not variable_exponent:
            return Literal(0)
        if not variable_exponent:
            reduced = Subtract(self.exponent, Literal(1)).simplify()
            outer = Multiply(self.exponent, Pow(self.base, reduced))
            if self.base == v:
                return outer
            return Multiply(outer, self.base.differentiate(v))
        if not variable_base:
            outer = Multiply(self, functions.Ln(self.base))
            if self.exponent == v:
                return outer
            return Multiply(outer, self.exponent.differentiate(v))
        raise expression.DifferentiationError(self, v)

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        variable_base = self.base.depends_on(v)
        variable_exponent = self.exponent.depends_on(v)
        if not variable_base and not variable_exponent:
            return Multiply(self, v)
        if not variable_exponent:
            shape = linear(self.base, v)
            if shape is not None:
                return self._integrate_power(shape[0])
        if not variable_base:
            shape = linear(self.exponent, v)
            if shape is not None:
                logarithm = functions.Ln(self.base)
                if numerical.is_one(shape[0]):
                    return Divide(self, logarithm)
                return Divide(self, Multiply(Literal(shape[0]), logarithm))
        raise expression.IntegrationError(self, v)

    def _integrate_power(self, slope: numerical.Value) -> Expression:
        """Integrate (a·x + b)ⁿ for constant n."""
        n = value_of(self.exponent)
        if n is not None and n == -1:
            logarithm = functions.Ln(unary.Abs(self.base))
            if numerical.is_one(slope):
                return logarithm
            return Divide(logarithm, Literal(slope))
        raised = Add(self.exponent, Literal(1)).simplify()
        if numerical.is_one(slope):
            scale = raised
        else:
            scale = Multiply(Literal(slope), raised).simplify()
        return Divide(Pow(self.base, raised), scale)

    def expand(self):
        base = self.base.expand()
        exponent = self.exponent.expand()
        b = value_of(exponent)
        if _is_sum(base) and b is not None and b == 2:
            return _square(base)
        return Pow(base, exponent)

    def __str__(self) -> str:
        base = self._wrap(self.left, strict=True)
        exponent = self._wrap(self.right)
        return f"{base} {self.symbol} {exponent}"


def linear(node: Expression, variable=None):
    """Match `node` against the shape a·x + b.

    Returns the pair of numbers ``(a, b)`` if `node` is `x`, `a·x`, `x·a`, or
    one of those plus or minus a number (in either order), where `x` is
    `variable`. Returns `None` for any other shape.
    """
    v = expression.as_variable(variable)
    node = node.unwrap()
    zero = numerical.Value(0)
    if node == v:
        return numerical.Value(1), zero
    if isinstance(node, Multiply):
        left, right = node.left.unwrap(), node.right.unwrap()
        if value_of(left) is not None and right == v:
            return value_of(left), zero
        if left == v and value_of(right) is not None:
            return value_of(right), zero
        return None
    if isinstance(node, unary.Negate):
        shape = linear(node.operand, v)
        if shape is None:
            return None
        return numerical.negate(shape[0]), numerical.negate(shape[1])
    if _is_sum(node):
        sign = 1 if isinstance(node, Add) else -1
        left, right = node.left.unwrap(), node.right.unwrap()
        if value_of(right) is not None:
            shape = linear(left, v)
            if shape is None or not numerical.is_zero(shape[1]):
                return None
            offset = value_of(right)
            if sign < 0:
                offset = numerical.negate(offset)
            return shape[0], offset
        if value_of(left) is not None:
            shape = linear(right, v)
            if shape is None or not numerical.is_zero(shape[1]):
                return None
            slope = shape[0] if sign > 0 else numerical.negate(shape[0])
            return slope, value_of(left)
    return None


def add(left, right) -> Add:
    """Build the sum of two expressions."""
    return Add(left, right)


def sub(left, right) -> Subtract:
    """Build the difference of two expressions."""
    return Subtract(left, right)


def mul(left, right) -> Multiply:
    """Build the product of two expressions."""
    return Multiply(left, right)


def div(left, right) -> Divide:
    """Build the quotient of two expressions."""
    return Divide(left, right)


def pow(base, exponent) -> Pow:
    """Build a power of an expression."""
    return Pow(base, exponent)
