"""
The contract shared by every node of a symbolic expression tree.

An expression is an immutable tree. Every transformation (simplification,
expansion, substitution, differentiation and integration) creates a new tree
and leaves the receiver unchanged. Composite nodes own their children
exclusively, so two trees never share a subtree that either could observe
changing.
"""

import abc
import enum
import numbers
import typing

import symtree
from symtree.core import numerical


_engine = symtree.Environment('engine')
VARIABLE = _engine['variable']
"""The name of the ambient variable of differentiation and integration."""


class UnboundVariableError(NameError):
    """Full evaluation encountered a variable without a value."""

    def __init__(self, arg: str) -> None:
        self.arg = arg

    def __str__(self) -> str:
        return f"No value bound to variable {self.arg!r}"


class UnsupportedOperationError(NotImplementedError):
    """Base class for operations that have no result for a given tree."""

    def __init__(self, expression: 'Expression', variable: 'Variable'=None):
        self.expression = expression
        self.variable = variable

    def _target(self) -> str:
        if self.variable is None:
            return f"{self.expression}"
        return f"{self.expression} with respect to {self.variable}"


class IntegrationError(UnsupportedOperationError):
    """Integration is not supported for this operand shape."""

    def __str__(self) -> str:
        return f"Integration not yet supported for {self._target()}"


class DifferentiationError(UnsupportedOperationError):
    """Differentiation is not supported for this construct."""

    def __str__(self) -> str:
        return f"Cannot differentiate {self._target()}"


class EvaluationError(TypeError):
    """A node cannot compute a value from its evaluated operands."""
    pass


class Precedence(enum.IntEnum):
    """Binding strength of each kind of node when written as text."""

    ADDITIVE = 1
    MULTIPLICATIVE = 2
    PREFIX = 3
    POWER = 4
    POSTFIX = 5
    ATOM = 6


Bindings = typing.Mapping[typing.Union[str, 'Variable'], typing.Any]


class Expression(abc.ABC):
    """Abstract base class for all nodes of an expression tree.

    Concrete implementations must define `children`, `rebuild`, `_evaluate`,
    `differentiate`, `integrate` and `__str__`. This class provides generic
    implementations of substitution, simplification, expansion, partial
    evaluation, structural metrics and structural equality in terms of those
    methods; nodes override them where they have rules of their own.
    """

    __slots__ = ()

    precedence = Precedence.ATOM

    @property
    @abc.abstractmethod
    def children(self) -> typing.Tuple['Expression', ...]:
        """The direct subtrees of this node, in order."""
        pass

    @abc.abstractmethod
    def rebuild(self, *children: 'Expression') -> 'Expression':
        """Create a node like this one but with the given children."""
        pass

    def evaluate(self, bindings: Bindings=None, partial: bool=False):
        """Compute the value of this expression.

        Parameters
        ----------
        bindings : mapping, optional
            The values of variables, keyed by variable or variable name.

        partial : bool, default=false
            If true, do not raise `UnboundVariableError` for a variable without
            a value. Instead, return a new simplified expression in which every
            bound variable has been replaced.

        Returns
        -------
        `~numerical.Value` or `~expression.Expression`
            The value of this expression, or the partially evaluated tree if
            some variable had no value and `partial` is true.
        """
        return self._evaluate(_normalize(bindings), partial)

    @abc.abstractmethod
    def _evaluate(self, bindings: typing.Dict[str, typing.Any], partial: bool):
        pass

    def _evaluate_children(self, bindings, partial):
        """Evaluate each child, or rebuild this node if any is symbolic.

        Returns the list of evaluated operands, or a simplified tree when
        partial evaluation left at least one operand symbolic.
        """
        operands = [child._evaluate(bindings, partial) for child in self.children]
        if any(isinstance(operand, Expression) for operand in operands):
            children = [
                _as_child(operand, child)
                for operand, child in zip(operands, self.children)
            ]
            return self.rebuild(*children).simplify()
        return operands

    @abc.abstractmethod
    def differentiate(self, variable: 'Variable'=None) -> 'Expression':
        """The derivative with respect to `variable`.

        The default variable is the configured ambient variable.
        """
        pass

    @abc.abstractmethod
    def integrate(self, variable: 'Variable'=None) -> 'Expression':
        """An antiderivative with respect to `variable`, without a constant.

        Raises `IntegrationError` for shapes that have no known closed form.
        """
        pass

    def simplify(self) -> 'Expression':
        """Apply local rewrite rules until reaching a normal form."""
        return self.rebuild(*(child.simplify() for child in self.children))

    def expand(self) -> 'Expression':
        """Distribute products over sums."""
        return self.rebuild(*(child.expand() for child in self.children))

    def substitute(self, target, replacement) -> 'Expression':
        """Replace every subtree structurally equal to `target`."""
        target = as_expression(target)
        replacement = as_expression(replacement)
        if self == target:
            return replacement
        return self.rebuild(
            *(child.substitute(target, replacement) for child in self.children)
        )

    def get_variable_terms(self) -> typing.Set['Variable']:
        """The set of free variables in this tree."""
        terms = set()
        for child in self.children:
            terms |= child.get_variable_terms()
        return terms

    def unwrap(self) -> 'Expression':
        """This node without any enclosing parentheses."""
        return self

    def depends_on(self, variable: 'Variable'=None) -> bool:
        """True if `variable` appears anywhere in this tree."""
        return as_variable(variable) in self.get_variable_terms()

    def depth(self) -> int:
        """The number of nodes on the longest path from here to a leaf."""
        return 1 + max((child.depth() for child in self.children), default=0)

    def size(self) -> int:
        """The number of nodes in this tree."""
        return 1 + sum(child.size() for child in self.children)

    def _key(self) -> tuple:
        """The fields that determine structural equality."""
        return self.children

    def __eq__(self, other) -> bool:
        if not isinstance(other, Expression):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__qualname__, self._key()))

    def _wrap(self, child: 'Expression', strict: bool=False) -> str:
        """Render `child`, in parentheses if it binds less tightly."""
        weaker = (
            child.precedence <= self.precedence if strict
            else child.precedence < self.precedence
        )
        return f"({child})" if weaker else f"{child}"

    @abc.abstractmethod
    def __str__(self) -> str:
        pass

    def __repr__(self) -> str:
        """An unambiguous representation of this object."""
        module = f"{self.__module__.replace('symtree.', '')}."
        name = self.__class__.__qualname__
        return f"{module}{name}({self})"


def _normalize(bindings: typing.Optional[Bindings]) -> typing.Dict[str, typing.Any]:
    """Key bindings by variable name."""
    if not bindings:
        return {}
    return {
        (key.name if isinstance(key, Variable) else str(key)): value
        for key, value in bindings.items()
    }


def isnumber(this: typing.Any) -> bool:
    """True if `this` is a number that `Literal` can hold."""
    return (
        isinstance(this, numerical.Value)
        or isinstance(this, numbers.Number) and not isinstance(this, bool)
    )


def _as_child(operand, original: Expression) -> Expression:
    """Convert the result of evaluating `original` back into a tree."""
    if isinstance(operand, Expression):
        return operand
    if isnumber(operand):
        return Literal(operand)
    return original


class Literal(Expression):
    """A numeric constant."""

    __slots__ = ('value', 'raw')

    def __init__(self, value, raw: str=None) -> None:
        self.value = numerical.Value(value)
        self.raw = raw

    @property
    def children(self):
        return ()

    def rebuild(self, *children):
        return self

    def _evaluate(self, bindings, partial):
        return self.value

    def differentiate(self, variable=None):
        return Literal(0)

    def integrate(self, variable=None):
        from symtree.core import operations
        return operations.Multiply(self, as_variable(variable))

    def simplify(self):
        return self

    def _key(self):
        return (self.value,)

    def __str__(self) -> str:
        text = numerical.format(self.value) if self.raw is None else self.raw
        if self.value.kind == numerical.Kind.COMPLEX and ' ' in text:
            return f"({text})"
        if text.startswith('-'):
            return f"({text})"
        return text


class Variable(Expression):
    """A named unknown."""

    __slots__ = ('name',)

    def __init__(self, name: str) -> None:
        self.name = name

    @property
    def children(self):
        return ()

    def rebuild(self, *children):
        return self

    def _evaluate(self, bindings, partial):
        if self.name in bindings:
            value = bindings[self.name]
            return numerical.Value(value) if isnumber(value) else value
        if partial:
            return self
        raise UnboundVariableError(self.name)

    def differentiate(self, variable=None):
        return Literal(1) if self == as_variable(variable) else Literal(0)

    def integrate(self, variable=None):
        from symtree.core import operations
        variable = as_variable(variable)
        if self == variable:
            return operations.Divide(
                operations.Pow(self, Literal(2)),
                Literal(2),
            )
        return operations.Multiply(self, variable)

    def simplify(self):
        return self

    def get_variable_terms(self):
        return {self}

    def _key(self):
        return (self.name,)

    def __str__(self) -> str:
        return self.name


def as_variable(this: typing.Union[str, Variable, None]) -> Variable:
    """Get a variable from a name, a variable or the ambient default."""
    if this is None:
        return Variable(VARIABLE)
    if isinstance(this, Variable):
        return this
    if isinstance(this, str):
        return Variable(this)
    raise TypeError(f"Cannot interpret {this!r} as a variable") from None


def as_expression(this: typing.Any) -> Expression:
    """Wrap numbers and names as leaf nodes."""
    if isinstance(this, Expression):
        return this
    if isinstance(this, str):
        return Variable(this)
    if isnumber(this):
        return Literal(this)
    raise numerical.NumericTypeError(this)


def value_of(this: Expression) -> typing.Optional[numerical.Value]:
    """The value of a literal node, or `None` for any other node."""
    return this.value if isinstance(this, Literal) else None


class Unary(Expression):
    """Base class for nodes with exactly one operand."""

    __slots__ = ('operand',)

    def __init__(self, operand) -> None:
        self.operand = as_expression(operand)

    @property
    def children(self):
        return (self.operand,)

    def rebuild(self, *children):
        return type(self)(*children)

    def _evaluate(self, bindings, partial):
        operands = self._evaluate_children(bindings, partial)
        if isinstance(operands, Expression):
            return operands
        return self._compute(operands[0])

    def _compute(self, value) -> numerical.Value:
        """Compute the value of this node from the value of its operand."""
        raise NotImplementedError
