import math

import pytest

from symtree.core import expression
from symtree.core import functions
from symtree.core import numerical
from symtree.core import operations
from symtree.core import unary
from symtree.core.expression import Literal, Variable
from symtree.core.operations import Add, Divide, Multiply, Pow, Subtract


@pytest.fixture
def x():
    return Variable('x')


@pytest.fixture
def y():
    return Variable('y')


@pytest.mark.operator
def test_literal_arithmetic():
    """Evaluating operators on literals follows Python arithmetic."""
    cases = [
        (Add(2, 3), 5, numerical.Kind.INTEGER),
        (Subtract(2, 0.5), 1.5, numerical.Kind.REAL),
        (Multiply(2, 1j), 2j, numerical.Kind.COMPLEX),
        (Divide(6, 3), 2.0, numerical.Kind.REAL),
        (Divide(7, 1), 7.0, numerical.Kind.REAL),
        (Pow(2, 3), 8, numerical.Kind.INTEGER),
        (Multiply(0, 2.5), 0.0, numerical.Kind.REAL),
    ]
    for tree, value, kind in cases:
        result = tree.evaluate()
        assert result == value
        assert result.kind == kind


@pytest.mark.operator
def test_named_constructors(x):
    """The named constructors build the corresponding nodes."""
    assert operations.add(x, 1) == Add(x, 1)
    assert operations.sub(x, 1) == Subtract(x, 1)
    assert operations.mul(x, 1) == Multiply(x, 1)
    assert operations.div(x, 1) == Divide(x, 1)
    assert operations.pow(x, 1) == Pow(x, 1)


@pytest.mark.operator
def test_division_by_zero(x):
    """Dividing by exact zero raises during evaluation and simplification."""
    with pytest.raises(numerical.DivisionByZeroError):
        Divide(x, 0).evaluate({'x': 5})
    with pytest.raises(numerical.DivisionByZeroError):
        Divide(x, 0).simplify()
    with pytest.raises(ZeroDivisionError):
        Divide(1, Subtract(x, 2)).evaluate({'x': 2})


@pytest.mark.operator
def test_text(x, y):
    """Operators print with the parentheses that precedence requires."""
    cases = [
        (Add(x, Multiply(2, y)), 'x + 2 * y'),
        (Subtract(x, Add(y, 1)), 'x - (y + 1)'),
        (Subtract(Add(x, y), 1), 'x + y - 1'),
        (Multiply(Add(x, 1), y), '(x + 1) * y'),
        (Divide(x, Multiply(2, y)), 'x / (2 * y)'),
        (Pow(Add(x, 1), 2), '(x + 1) ^ 2'),
        (Pow(x, Pow(y, 2)), 'x ^ y ^ 2'),
        (Pow(Pow(x, y), 2), '(x ^ y) ^ 2'),
    ]
    for tree, text in cases:
        assert str(tree) == text


@pytest.mark.operator
def test_simplify_sums(x, y):
    """Sums fold literals and collect like terms."""
    assert Add(2, 3).simplify() == Literal(5)
    assert Add(x, 0).simplify() == x
    assert Subtract(x, x).simplify() == Literal(0)
    assert Add(x, x).simplify() == Multiply(Literal(2), x)
    combined = Add(Multiply(2, x), Multiply(3, x)).simplify()
    assert combined == Multiply(Literal(5), x)
    mixed = Add(Add(x, 1), Add(y, Subtract(x, 3))).simplify()
    assert str(mixed) == '2 * x + y - 2'


@pytest.mark.operator
def test_simplify_products(x):
    """Products fold literals and apply the identity and zero laws."""
    assert Multiply(x, 0).simplify() == Literal(0)
    assert Multiply(1, x).simplify() == x
    assert Multiply(x, 1).simplify() == x
    assert Multiply(x, x).simplify() == Pow(x, Literal(2))
    assert Multiply(x, 3).simplify() == Multiply(Literal(3), x)
    nested = Multiply(2, Multiply(3, x)).simplify()
    assert nested == Multiply(Literal(6), x)
    powers = Multiply(Pow(x, 2), Pow(x, 3)).simplify()
    assert powers == Pow(x, Literal(5))


@pytest.mark.operator
def test_simplify_powers(x):
    """Test the rules for exponents of zero and one."""
    assert Pow(x, 0).simplify() == Literal(1)
    assert Pow(x, 1).simplify() == x
    assert Pow(1, x).simplify() == Literal(1)
    assert Pow(0, 2).simplify() == Literal(0)
    assert Pow(2, 3).simplify() == Literal(8)
    with pytest.raises(numerical.UndefinedValueError):
        Pow(0, -1).simplify()


@pytest.mark.operator
def test_simplify_is_idempotent(x, y):
    """Simplifying a simplified tree changes nothing."""
    trees = [
        Add(Multiply(2, x), Multiply(3, x)),
        Add(x, Add(y, x)),
        Multiply(Add(x, 1), Add(x, 1)),
        Multiply(Add(x, 1), Subtract(x, 1)),
        Multiply(2, Add(x, 1)),
        Subtract(Pow(x, 2), Multiply(Multiply(2, x), 3)),
        Divide(Add(x, x), Add(y, 0)),
        Pow(Multiply(x, x), Add(1, 1)),
    ]
    for tree in trees:
        once = tree.simplify()
        assert once.simplify() == once


@pytest.mark.operator
def test_special_products(x, y):
    """Equal factors merge into a power; differences of squares expand."""
    square = Multiply(Add(x, y), Add(x, y)).simplify()
    assert square == Pow(Add(x, y), Literal(2))
    assert str(square) == '(x + y) ^ 2'
    assert square.simplify() == square
    assert square.evaluate({'x': 2, 'y': 3}) == 25
    expanded = square.expand()
    assert isinstance(expanded, (Add, Subtract))
    assert expanded.evaluate({'x': 2, 'y': 3}) == 25
    assert str(Multiply(Add(x, 1), Add(x, 1)).simplify()) == '(x + 1) ^ 2'
    difference = Multiply(Add(x, y), Subtract(x, y)).simplify()
    assert difference == Subtract(Pow(x, Literal(2)), Pow(y, Literal(2)))


@pytest.mark.operator
def test_expand(x):
    """Expansion distributes products over sums."""
    product = Multiply(Add(x, 1), Add(x, 2))
    expanded = product.expand()
    assert isinstance(expanded, (Add, Subtract))
    for value in (-2, 0, 3):
        bindings = {'x': value}
        assert expanded.evaluate(bindings) == product.evaluate(bindings)
    assert str(expanded.simplify()) == 'x ^ 2 + 3 * x + 2'
    square = Pow(Subtract(x, 1), 2).expand()
    assert square.evaluate({'x': 4}) == 9
    assert isinstance(square, (Add, Subtract))


@pytest.mark.operator
def test_derivatives(x, y):
    """Test the basic rules of differentiation."""
    assert Multiply(3, x).differentiate().simplify() == Literal(3)
    assert Pow(x, 2).differentiate().evaluate({'x': 2}) == 4
    assert Add(x, y).differentiate().simplify() == Literal(1)
    assert Subtract(y, x).differentiate().simplify() == Literal(-1)
    product = Multiply(x, Pow(x, 2)).differentiate()
    assert product.evaluate({'x': 2}) == 12
    quotient = Divide(1, x).differentiate()
    assert quotient.evaluate({'x': 2}) == -0.25
    exponential = Pow(2, x).differentiate()
    assert numerical.isclose(
        exponential.evaluate({'x': 1}),
        2 * math.log(2),
    )
    with pytest.raises(expression.DifferentiationError):
        Pow(x, x).differentiate()


@pytest.mark.operator
def test_integrals(x, y):
    """Test the supported shapes of integration."""
    assert Pow(x, 3).integrate().evaluate({'x': 2}) == 4
    assert Pow(x, -1).integrate() == functions.Ln(unary.Abs(x))
    linear = Pow(Add(Multiply(2, x), 1), 2).integrate()
    assert linear.evaluate({'x': 1}) == 27 / 6
    assert Multiply(y, x).integrate('x').evaluate({'x': 2, 'y': 3}) == 6
    logarithm = Divide(1, x).integrate()
    assert numerical.isclose(logarithm.evaluate({'x': math.e}), 1)
    scaled = Divide(3, Add(Multiply(2, x), 1)).integrate()
    assert numerical.isclose(
        scaled.evaluate({'x': 1}),
        1.5 * math.log(3),
    )
    exponential = Pow(2, x).integrate()
    assert numerical.isclose(exponential.evaluate({'x': 1}), 2 / math.log(2))
    with pytest.raises(expression.IntegrationError):
        Multiply(x, x).integrate()
    with pytest.raises(expression.IntegrationError):
        Divide(x, Add(Pow(x, 2), 1)).integrate()


@pytest.mark.operator
def test_linear_shapes(x):
    """Test recognition of the shape a·x + b."""
    cases = [
        (x, (1, 0)),
        (Multiply(2, x), (2, 0)),
        (Multiply(x, 2), (2, 0)),
        (Add(Multiply(2, x), 3), (2, 3)),
        (Subtract(x, 4), (1, -4)),
        (Subtract(5, Multiply(3, x)), (-3, 5)),
        (unary.Negate(x), (-1, 0)),
    ]
    for node, expected in cases:
        assert operations.linear(node, x) == expected
    assert operations.linear(Pow(x, 2), x) is None
    assert operations.linear(Multiply(x, x), x) is None
