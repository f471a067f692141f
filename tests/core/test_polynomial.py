import pytest

from symtree.core import numerical
from symtree.core import polynomial
from symtree.core import roots
from symtree.core.expression import Literal, Variable
from symtree.core.operations import Add, Multiply
from symtree.core.polynomial import (
    Constant,
    Cubic,
    Linear,
    Polynomial,
    Quadratic,
    Quartic,
)


@pytest.fixture
def square():
    """The polynomial x² + 2x + 1."""
    return Polynomial([1, 2, 1])


def close_set(found, expected, tolerance=1e-7) -> bool:
    """True if two collections of roots agree up to ordering."""
    found = sorted(found, key=lambda z: (z.real, z.imag))
    expected = sorted(expected, key=lambda z: (complex(z).real, complex(z).imag))
    return len(found) == len(expected) and all(
        abs(a - b) < tolerance for a, b in zip(found, expected)
    )


@pytest.mark.polynomial
def test_from_list():
    """The most specific type follows from the trimmed coefficients."""
    cases = [
        ([5], Constant),
        ([1, 2], Linear),
        ([0, 1, 2, 1], Quadratic),
        ([1, 0, 0, -1], Cubic),
        ([1, 0, 0, 0, 1], Quartic),
        ([1, 0, 0, 0, 0, 1], Polynomial),
    ]
    for coefficients, kind in cases:
        assert type(Polynomial.from_list(coefficients)) is kind
    with pytest.raises(roots.DegreeError):
        Polynomial.from_list([])


@pytest.mark.polynomial
def test_fixed_degree():
    """Fixed-degree types check their number of coefficients."""
    assert Quadratic(1, 2, 1).degree == 2
    assert Quadratic(1, 2, 1, variable='y').variable == Variable('y')
    with pytest.raises(polynomial.DegreeError):
        Quadratic(1, 2)
    with pytest.raises(polynomial.DegreeError):
        Quadratic(0, 1, 2)
    assert Constant(0).is_zero()


@pytest.mark.polynomial
def test_text(square):
    """Polynomials print with superscript exponents."""
    cases = [
        (square, 'x² + 2x + 1'),
        (Polynomial([-1, 0, 3.5]), '-x² + 3.5'),
        (Polynomial([2, -1, 0, 0]), '2x³ - x²'),
        (Polynomial([1, -1], 'y'), 'y - 1'),
        (Polynomial([0, 0]), '0'),
    ]
    for poly, text in cases:
        assert str(poly) == text
    assert str(Multiply(2, Polynomial([1, 1]))) == '2 * (x + 1)'
    assert polynomial.superscript(12) == '¹²'


@pytest.mark.polynomial
def test_from_string():
    """Read polynomials written as sums of terms."""
    cases = [
        ('3x^2 - x + 1', [3, -1, 1]),
        ('x² + 2x + 1', [1, 2, 1]),
        ('2 + x', [1, 2]),
        ('x^3 - 1', [1, 0, 0, -1]),
        ('1.5x - 0.5', [1.5, -0.5]),
    ]
    for text, coefficients in cases:
        assert Polynomial.from_string(text) == Polynomial(coefficients)
    named = Polynomial.from_string('y^2 + y', variable='y')
    assert named == Polynomial([1, 1, 0], 'y')
    with pytest.raises(ValueError):
        Polynomial.from_string('x^2 + z')


@pytest.mark.polynomial
def test_equality(square):
    """Equality depends on the variable and coefficients, not the type."""
    assert square == Quadratic(1, 2, 1)
    assert hash(square) == hash(Quadratic(1, 2, 1))
    assert square != Polynomial([1, 2, 1], 'y')
    assert square != Polynomial([1, 2, 2])


@pytest.mark.polynomial
def test_leaf(square):
    """A polynomial is a leaf of an expression tree."""
    assert square.children == ()
    assert square.depth() == 1
    assert square.size() == 1
    assert square.get_variable_terms() == {Variable('x')}
    assert Polynomial([0, 5]).get_variable_terms() == set()
    assert square.expand() is square


@pytest.mark.polynomial
def test_evaluate(square):
    """Test evaluation by Horner's rule and by substitution."""
    assert square.evaluate({'x': 3}) == 16
    assert square.horner(2) == 9
    assert square.evaluate({'x': 0.5}) == 2.25
    assert square.evaluate({'y': 1}, partial=True) is square
    symbolic = Polynomial([1, 0]).evaluate({'x': Variable('y')})
    assert symbolic == Variable('y')


@pytest.mark.polynomial
def test_to_expression_and_substitute(square):
    """Substituting the variable converts to an explicit tree first."""
    tree = square.to_expression()
    assert str(tree) == 'x ^ 2 + 2 * x + 1'
    assert tree.evaluate({'x': 3}) == 16
    y = Variable('y')
    replaced = square.substitute(Variable('x'), Add(y, 1))
    assert replaced.evaluate({'y': 2}) == 16
    assert square.substitute(Variable('x'), 2).evaluate() == 9
    assert square.substitute(square, Literal(0)) == Literal(0)


@pytest.mark.polynomial
def test_calculus(square):
    """Differentiation and integration act on coefficients."""
    assert square.differentiate() == Polynomial([2, 2])
    assert square.differentiate('y') == Constant(0)
    assert Constant(5).integrate() == Polynomial([5, 0])
    assert square.integrate('y') == Multiply(square, Variable('y'))
    p = Polynomial([3, 2, 1])
    roundtrip = p.differentiate().integrate()
    assert roundtrip.coefficients[:-1] == p.coefficients[:-1]
    assert Polynomial([1, 0, 0]).integrate().coefficients[0] == numerical.Value(1 / 3)


@pytest.mark.polynomial
def test_arithmetic():
    """Test sums, differences and products of polynomials."""
    p = Polynomial([1, 1])
    q = Polynomial([1, -1])
    assert p.add(q) == Polynomial([2, 0])
    assert p.subtract(q) == Constant(2)
    assert p.multiply(q) == Polynomial([1, 0, -1])
    with pytest.raises(polynomial.VariableMismatchError):
        p.add(Polynomial([1, 1], 'y'))
    with pytest.raises(TypeError):
        p.add(3)


@pytest.mark.polynomial
def test_divide():
    """Long division returns the quotient and the remainder."""
    quotient, remainder = Polynomial([1, 0, -1]).divide(Polynomial([1, 1]))
    assert quotient == Polynomial([1, -1])
    assert remainder.is_zero()
    quotient, remainder = Polynomial([1, 0, 1]).divide(Polynomial([1, 1]))
    assert quotient == Polynomial([1, -1])
    assert remainder == Constant(2)
    quotient, remainder = Polynomial([1, 1]).divide(Polynomial([1, 0, 1]))
    assert quotient.is_zero()
    assert remainder == Polynomial([1, 1])
    with pytest.raises(numerical.DivisionByZeroError):
        Polynomial([1, 1]).divide(Constant(0))


@pytest.mark.polynomial
def test_gcd_and_monic():
    """The greatest common divisor is monic."""
    a = Polynomial([1, 0, -1])
    b = Polynomial([1, 2, 1])
    assert a.gcd(b) == Polynomial([1, 1])
    assert Polynomial([2, 4]).monic() == Polynomial([1, 2])
    assert Polynomial([1, 1]).gcd(Polynomial([1, 2])).is_constant()


@pytest.mark.polynomial
def test_roots():
    """Roots come from the solver that matches the degree."""
    assert Constant(3).roots() == []
    assert close_set(Linear(2, -4).roots(), [2])
    assert close_set(Cubic(1, -6, 11, -6).roots(), [1, 2, 3])
    assert close_set(Quadratic(1, 0, 1).roots(), [1j, -1j])
    assert close_set(
        Polynomial([0, 1, -10, 35, -50, 24]).roots(),
        [1, 2, 3, 4],
    )


@pytest.mark.polynomial
def test_factors():
    """Test factor descriptions and factorization."""
    assert Polynomial([1, 1, -6]).find_factors() == ['(x - 2)', '(x + 3)']
    assert Polynomial([1, -2, 17]).find_factors() == [
        '(x - 1 - 4i)',
        '(x - 1 + 4i)',
    ]
    poly = Polynomial([2, -2, -4])
    factors = poly.factorize()
    assert factors == [Polynomial([2, -4]), Polynomial([1, 1])]
    assert factors[0].multiply(factors[1]) == poly
    assert Constant(5).factorize() == [Constant(5)]


@pytest.mark.polynomial
def test_discriminant():
    """Test closed-form and general discriminants."""
    assert Quadratic(1, 2, 1).discriminant() == 0
    assert Quadratic(1, 0, 1).discriminant() == -4
    assert Cubic(1, -6, 11, -6).discriminant() == 4
    general = Polynomial([1, -10, 35, -50, 24]).discriminant()
    assert numerical.isclose(general, 144, tolerance=1e-6)
    assert Constant(3).discriminant() == 0
    assert Linear(1, 1).discriminant() == 1


@pytest.mark.polynomial
def test_simplify():
    """Simplification trims leading zeros and picks the specific type."""
    simplified = Polynomial([0, 0, 1, 2]).simplify()
    assert isinstance(simplified, Linear)
    assert simplified == Polynomial([1, 2])
    assert simplified.simplify() == simplified
