import inspect
import logging
import math
import numbers
import typing

import numpy
from scipy import special

from symtree.core import expression
from symtree.core import iterables
from symtree.core import numerical
from symtree.core import operations
from symtree.core import roots
from symtree.core.expression import Expression, Literal, Variable


logger = logging.getLogger(__name__)


class GroupExpression(expression.Unary):
    """A parenthesized expression.

    Every operation delegates to the enclosed expression. Only the text form
    differs, and substitution keeps the parentheses in place.
    """

    __slots__ = ()

    precedence = expression.Precedence.ATOM

    def _evaluate(self, bindings, partial):
        return self.operand._evaluate(bindings, partial)

    def simplify(self):
        return self.operand.simplify()

    def expand(self):
        return self.operand.expand()

    def differentiate(self, variable=None):
        return self.operand.differentiate(variable)

    def integrate(self, variable=None):
        return self.operand.integrate(variable)

    def unwrap(self):
        return self.operand.unwrap()

    def __str__(self) -> str:
        return f"({self.operand})"


def _native(value):
    """Convert evaluated operands into plain Python objects."""
    if isinstance(value, numerical.Value):
        return value.data
    if isinstance(value, list):
        return [_native(v) for v in value]
    return value


def _accepts(function, arguments) -> typing.Optional[bool]:
    """True if `function` can bind `arguments`, or None if it has no signature."""
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return None
    try:
        signature.bind(*arguments)
    except TypeError:
        return False
    return True


def _tagged(result):
    """Convert the result of a native function into tagged values."""
    if isinstance(result, numerical.Value):
        return result
    if isinstance(result, numbers.Number) and not isinstance(result, bool):
        return numerical.Value(result)
    if isinstance(result, (list, tuple, numpy.ndarray)):
        return [_tagged(r) for r in result]
    return result


callables = iterables.ObjectRegistry()
"""Functions available to calls of otherwise unbound names."""


@callables.register(name='sqrt')
def _sqrt(x):
    return numpy.emath.sqrt(x)


callables.register(math.hypot, name='hypot')
callables.register(math.floor, name='floor')
callables.register(math.ceil, name='ceil')
callables.register(round, name='round')
callables.register(max, name='max')
callables.register(min, name='min')
callables.register(sum, name='sum')
callables.register(special.gamma, name='gamma')


@callables.register(name='factorial')
def _factorial(x):
    return math.factorial(int(x))


@callables.register(name='roots')
def _roots(*coefficients):
    return roots.solve(list(coefficients))


class CallExpression(Expression):
    """The application of a callable to a list of arguments.

    The callee may be a variable bound to a Python callable, a name in the
    default collection of callables, or a `FunctionExpression`. If applying
    the callee to the evaluated arguments raises `TypeError`, the call is
    retried once with all arguments collected into a single list before
    reporting an `EvaluationError`.
    """

    __slots__ = ('callee', 'arguments')

    def __init__(self, callee, arguments: typing.Iterable=()) -> None:
        self.callee = expression.as_expression(callee)
        self.arguments = tuple(expression.as_expression(a) for a in arguments)

    @property
    def children(self):
        return (self.callee, *self.arguments)

    def rebuild(self, *children):
        callee, *arguments = children
        return CallExpression(callee, arguments)

    def _evaluate(self, bindings, partial):
        function = self._resolve(bindings, partial)
        values = [a._evaluate(bindings, partial) for a in self.arguments]
        if function is None or any(isinstance(v, Expression) for v in values):
            arguments = [
                expression._as_child(v, a)
                for v, a in zip(values, self.arguments)
            ]
            return CallExpression(self.callee, arguments)
        return self._apply(function, values)

    def _resolve(self, bindings, partial):
        """Find the callable object that this node applies."""
        callee = self.callee.unwrap()
        if isinstance(callee, FunctionExpression):
            return callee
        if isinstance(callee, Variable):
            if callee.name in bindings:
                function = bindings[callee.name]
            elif callee.name in callables:
                function = callables.find(callee.name)
            elif partial:
                return None
            else:
                raise expression.UnboundVariableError(callee.name)
        else:
            function = callee._evaluate(bindings, partial)
            if isinstance(function, Expression):
                return None
        if not callable(function):
            raise expression.EvaluationError(
                f"{self.callee} is not callable"
            )
        return function

    def _apply(self, function, values):
        """Apply `function`, falling back to a single list argument."""
        arguments = [_native(v) for v in values]
        spread = _accepts(function, arguments)
        if spread:
            return _tagged(function(*arguments))
        if spread is None:
            # Builtins without a signature report arity as a TypeError.
            try:
                return _tagged(function(*arguments))
            except TypeError as err:
                logger.debug(
                    "Retrying %s with a single list argument after: %s",
                    self.callee, err,
                )
            try:
                return _tagged(function(arguments))
            except TypeError as err:
                raise self._arity_error(arguments) from err
        if not _accepts(function, [arguments]):
            raise self._arity_error(arguments)
        logger.debug("Applying %s to a single list argument", self.callee)
        return _tagged(function(arguments))

    def _arity_error(self, arguments):
        return expression.EvaluationError(
            f"Cannot apply {self.callee} to {len(arguments)} argument(s)"
        )

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.depends_on(v):
            return Literal(0)
        raise expression.DifferentiationError(self, v)

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.depends_on(v):
            return operations.Multiply(self, v)
        raise expression.IntegrationError(self, v)

    def get_variable_terms(self):
        terms = set()
        for argument in self.arguments:
            terms |= argument.get_variable_terms()
        return terms

    def __str__(self) -> str:
        callee = self.callee.unwrap()
        name = callee.name if isinstance(callee, FunctionExpression) else callee
        arguments = ', '.join(str(a) for a in self.arguments)
        return f"{name}({arguments})"


class IndexExpression(Expression):
    """Subscript access to the value of an expression.

    The index is either a single expression, which must evaluate to an integer
    (negative values count from the end), or a `slice` of expressions, which
    selects a list of values.
    """

    __slots__ = ('target', 'index')

    def __init__(self, target, index) -> None:
        self.target = expression.as_expression(target)
        if isinstance(index, slice):
            self.index = slice(
                *(
                    None if part is None else expression.as_expression(part)
                    for part in (index.start, index.stop, index.step)
                )
            )
        else:
            self.index = expression.as_expression(index)

    @property
    def _parts(self) -> list:
        if isinstance(self.index, slice):
            return [self.index.start, self.index.stop, self.index.step]
        return [self.index]

    @property
    def children(self):
        return (self.target, *(p for p in self._parts if p is not None))

    def rebuild(self, *children):
        target, *given = children
        given = iter(given)
        parts = [None if p is None else next(given) for p in self._parts]
        index = slice(*parts) if isinstance(self.index, slice) else parts[0]
        return IndexExpression(target, index)

    def _evaluate(self, bindings, partial):
        collection = self.target._evaluate(bindings, partial)
        parts = [
            None if p is None else p._evaluate(bindings, partial)
            for p in self._parts
        ]
        evaluated = [collection, *(p for p in parts if p is not None)]
        if any(isinstance(v, Expression) for v in evaluated):
            return self.rebuild(
                *(
                    expression._as_child(v, c)
                    for v, c in zip(evaluated, self.children)
                )
            )
        if isinstance(collection, numerical.Value):
            raise expression.EvaluationError(
                f"Cannot index the number {collection}"
            )
        if isinstance(self.index, slice):
            bounds = [None if p is None else _integer(p) for p in parts]
            return _tagged(list(collection[slice(*bounds)]))
        position = _integer(parts[0])
        if position < 0:
            position += len(collection)
        if not 0 <= position < len(collection):
            raise IndexError(
                f"Index {_integer(parts[0])} is out of range"
                f" for {self.target} of length {len(collection)}"
            ) from None
        return _tagged(collection[position])

    def differentiate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.depends_on(v):
            return Literal(0)
        raise expression.DifferentiationError(self, v)

    def integrate(self, variable=None):
        v = expression.as_variable(variable)
        if not self.depends_on(v):
            return operations.Multiply(self, v)
        raise expression.IntegrationError(self, v)

    def _key(self):
        return (self.target, isinstance(self.index, slice), *self._parts)

    def __str__(self) -> str:
        target = self.target
        if isinstance(self.index, slice):
            start, stop, step = (
                '' if p is None else str(p) for p in self._parts
            )
            index = f"{start}:{stop}" if not step else f"{start}:{stop}:{step}"
        else:
            index = str(self.index)
        return f"{target}[{index}]"


def _integer(value) -> int:
    """Convert an evaluated index into an integer."""
    if not numerical.is_integral(value):
        raise expression.EvaluationError(f"Index {value} is not an integer")
    return int(numerical.Value(value))


class FunctionExpression(Expression):
    """A named function of parameters with an expression as its body.

    Simplification, expansion, differentiation and integration act on the
    body. Calling an instance binds its parameters, in order, to the given
    arguments and evaluates the body.
    """

    __slots__ = ('name', 'parameters', 'body')

    def __init__(self, name: str, parameters: typing.Iterable, body) -> None:
        self.name = name
        self.parameters = tuple(expression.as_variable(p) for p in parameters)
        self.body = expression.as_expression(body)

    @property
    def children(self):
        return (self.body,)

    def rebuild(self, *children):
        return FunctionExpression(self.name, self.parameters, *children)

    def _evaluate(self, bindings, partial):
        return self.body._evaluate(bindings, partial)

    def differentiate(self, variable=None):
        return self.rebuild(self.body.differentiate(variable))

    def integrate(self, variable=None):
        return self.rebuild(self.body.integrate(variable))

    @property
    def __signature__(self) -> inspect.Signature:
        return inspect.Signature([
            inspect.Parameter(p.name, inspect.Parameter.POSITIONAL_ONLY)
            for p in self.parameters
        ])

    def __call__(self, *arguments):
        if len(arguments) != len(self.parameters):
            raise TypeError(
                f"{self.name} takes {len(self.parameters)} argument(s)"
                f" but {len(arguments)} were given"
            ) from None
        bindings = {
            parameter.name: argument
            for parameter, argument in zip(self.parameters, arguments)
        }
        return self.body.evaluate(bindings)

    def _key(self):
        return (self.name, self.parameters, self.body)

    def __str__(self) -> str:
        parameters = ', '.join(str(p) for p in self.parameters)
        return f"{self.name}({parameters}) = {self.body}"
