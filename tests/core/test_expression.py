import pytest

from symtree.core import expression
from symtree.core import numerical
from symtree.core import operations
from symtree.core.expression import Literal, Variable


@pytest.fixture
def x():
    return Variable('x')


@pytest.fixture
def y():
    return Variable('y')


@pytest.mark.leaf
def test_literal(x):
    """Test the numeric leaf node."""
    three = Literal(3)
    assert three.evaluate() == 3
    assert three.evaluate().kind == numerical.Kind.INTEGER
    assert three.children == ()
    assert three.depth() == 1
    assert three.size() == 1
    assert three.get_variable_terms() == set()
    assert three.differentiate() == Literal(0)
    assert three.integrate() == operations.Multiply(three, x)
    assert three.simplify() is three


@pytest.mark.leaf
def test_literal_text():
    """Negative and complex literals print in parentheses."""
    assert str(Literal(3)) == '3'
    assert str(Literal(2.0)) == '2'
    assert str(Literal(-2)) == '(-2)'
    assert str(Literal(1 + 2j)) == '(1 + 2i)'
    assert str(Literal(-2.5, raw='-2.50')) == '(-2.50)'
    assert repr(Literal(3)) == 'core.expression.Literal(3)'


@pytest.mark.leaf
def test_variable(x, y):
    """Test the named leaf node."""
    assert x.evaluate({'x': 2}) == 2
    assert x.evaluate({x: 2.5}).kind == numerical.Kind.REAL
    assert x.evaluate({'y': 1}, partial=True) is x
    with pytest.raises(expression.UnboundVariableError):
        x.evaluate({'y': 1})
    assert x.evaluate({'x': [1, 2]}) == [1, 2]
    assert x.differentiate() == Literal(1)
    assert y.differentiate() == Literal(0)
    assert x.differentiate(y) == Literal(0)
    assert x.get_variable_terms() == {x}
    assert str(x) == 'x'


@pytest.mark.leaf
def test_variable_integral(x, y):
    """Test integration of a variable with respect to itself and others."""
    integral = x.integrate()
    assert integral == operations.Divide(
        operations.Pow(x, Literal(2)),
        Literal(2),
    )
    assert integral.evaluate({'x': 2}) == 2
    assert y.integrate(x) == operations.Multiply(y, x)


@pytest.mark.leaf
def test_ambient_variable(x):
    """The default variable comes from the configuration."""
    assert expression.VARIABLE == 'x'
    assert expression.as_variable(None) == x
    assert expression.as_variable('x') == x
    assert expression.as_variable(x) is x
    with pytest.raises(TypeError):
        expression.as_variable(3)


@pytest.mark.leaf
def test_as_expression(x):
    """Test conversion of names and numbers into leaves."""
    assert expression.as_expression('x') == x
    assert expression.as_expression(4) == Literal(4)
    assert expression.as_expression(x) is x
    with pytest.raises(numerical.NumericTypeError):
        expression.as_expression(object())
    assert not expression.isnumber(True)
    assert expression.isnumber(numerical.Value(1))


@pytest.mark.leaf
def test_structural_metrics(x, y):
    """Test depth, size and the free variables of a small tree."""
    tree = operations.Add(x, operations.Multiply(2, y))
    assert tree.depth() == 3
    assert tree.size() == 5
    assert tree.get_variable_terms() == {x, y}
    assert tree.depends_on('y')
    assert not tree.depends_on('z')


@pytest.mark.leaf
def test_structural_equality(x):
    """Equal trees have equal structure, not merely equal values."""
    a = operations.Add(x, 1)
    b = operations.Add(x, 1)
    assert a == b
    assert hash(a) == hash(b)
    assert a != operations.Add(1, x)
    assert a != operations.Subtract(x, 1)
    assert len({a, b}) == 1


@pytest.mark.leaf
def test_partial_evaluation(x, y):
    """Partial evaluation replaces bound variables and simplifies."""
    tree = operations.Add(x, y)
    result = tree.evaluate({'x': 1}, partial=True)
    assert result == operations.Add(y, Literal(1))
    assert str(result) == 'y + 1'
    with pytest.raises(expression.UnboundVariableError):
        tree.evaluate({'x': 1})


@pytest.mark.leaf
def test_substitute_then_evaluate(x, y):
    """Substitution followed by evaluation agrees with evaluation."""
    tree = operations.Add(operations.Multiply(3, operations.Pow(x, 2)), y)
    substituted = tree.substitute('x', 2)
    assert substituted.evaluate({'y': 1}) == tree.evaluate({'x': 2, 'y': 1})
    assert substituted.evaluate({'y': 1}) == 13
    replaced = tree.substitute(x, operations.Add(y, 1))
    assert not replaced.depends_on('x')
    assert replaced.evaluate({'y': 1}) == tree.evaluate({'x': 2, 'y': 1})


@pytest.mark.leaf
def test_transformations_do_not_mutate(x):
    """Every transformation leaves the original tree unchanged."""
    tree = operations.Multiply(operations.Add(x, 1), operations.Add(x, 1))
    text = str(tree)
    tree.simplify()
    tree.expand()
    tree.differentiate()
    tree.substitute(x, 2)
    assert str(tree) == text


@pytest.mark.leaf
def test_unsupported_operation_messages(x):
    """Test the text of unsupported-operation errors."""
    error = expression.IntegrationError(operations.Multiply(x, x), x)
    assert str(error) == (
        "Integration not yet supported for x * x with respect to x"
    )
    assert isinstance(error, NotImplementedError)
    error = expression.DifferentiationError(operations.Pow(x, x), x)
    assert str(error) == "Cannot differentiate x ^ x with respect to x"
