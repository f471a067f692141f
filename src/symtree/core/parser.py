"""
Conversion of infix text into expression trees.

The grammar, from loosest to tightest binding, is

    definition := name '(' names ')' '=' sum | sum
    sum        := product (('+' | '-') product)*
    product    := prefix (('*' | '/') prefix | prefix)*
    prefix     := ('-' | '+') prefix | power
    power      := postfix ('^' prefix)?
    postfix    := primary ('!' | '%' | '[' index ']')*
    primary    := number | name | name '(' arguments ')' | '(' sum ')'
                | '|' sum '|'

A product without an operator between its factors (as in ``2x`` or
``3(x + 1)``) is implicit multiplication. Powers associate to the right, so
``2^3^2`` is ``2^(3^2)``, and bind more tightly than a prefix sign, so ``-x^2``
is ``-(x^2)``. Superscript digits are accepted as exponents.
"""

import collections
import math
import re
import typing

from symtree.core import functions
from symtree.core import iterables
from symtree.core import operations
from symtree.core import structured
from symtree.core import unary
from symtree.core.expression import Expression, Literal, Variable
from symtree.core.polynomial import SUPERSCRIPTS


class ParsingError(ValueError):
    """The text does not describe a valid expression."""

    def __init__(self, arg: str, text: str=None, position: int=None) -> None:
        self.arg = arg
        self.text = text
        self.position = position

    def __str__(self) -> str:
        if self.text is None:
            return self.arg
        if self.position is None:
            return f"{self.arg} in {self.text!r}"
        return f"{self.arg} at position {self.position} in {self.text!r}"


class Patterns(collections.UserDict):
    """Compiled regular expressions for lexical tokens."""

    number = r"""
        (?:\d+\.?\d*|\.\d+)   # digits with an optional fractional part
        (?:[eE][-+]?\d+)?     # and an optional exponent
    """
    name = r"""
        [a-zA-Z_π]            # a non-digit character
        [a-zA-Z_0-9]*         # followed by word characters
    """

    def __init__(self) -> None:
        patterns = {
            'token': (
                fr'\s*(?:(?P<number>{self.number})'
                fr'|(?P<name>{self.name})'
                r'|(?P<symbol>[-+*/^!%(),\[\]:|=]))'
            ),
            'superscript': '[⁻⁰¹²³⁴⁵⁶⁷⁸⁹]+',
        }
        self._compiled = {}
        super().__init__(patterns)

    def __getitem__(self, __k: str):
        if __k in self._compiled:
            return self._compiled[__k]
        if __k in self.data:
            compiled = re.compile(self.data[__k], re.VERBOSE)
            self._compiled[__k] = compiled
            return compiled
        raise KeyError(f"No pattern for {__k}") from None

    def __setitem__(self, __k: str, __v: str) -> None:
        self._compiled.pop(__k, None)
        return super().__setitem__(__k, __v)


PATTERNS = Patterns()


CONSTANTS = {
    'pi': Literal(math.pi, raw='π'),
    'π': Literal(math.pi, raw='π'),
    'e': Literal(math.e, raw='e'),
}
"""Names that always stand for a number."""


SYMBOLS = {'×': '*', '÷': '/', '−': '-', '·': '*'}
"""Alternative spellings of operators."""


class Token(typing.NamedTuple):
    """A lexical unit of the input text."""

    kind: str
    text: str
    start: int


def normalize(text: str) -> str:
    """Replace alternative operator symbols and superscript exponents."""
    normal = iterables.batch_replace(text, SYMBOLS)
    digits = {v: k for k, v in SUPERSCRIPTS.items()}
    digits['⁻'] = '-'
    return PATTERNS['superscript'].sub(
        lambda m: f"^{iterables.batch_replace(m.group(0), digits)}",
        normal,
    )


def tokenize(text: str) -> typing.List[Token]:
    """Split `text` into tokens, raising `ParsingError` on stray characters."""
    tokens = []
    position = 0
    end = len(text.rstrip())
    while position < end:
        match = PATTERNS['token'].match(text, position)
        if match is None:
            stray = len(text) - len(text[position:].lstrip())
            raise ParsingError(
                f"Unexpected character {text[stray]!r}",
                text,
                stray,
            )
        kind = match.lastgroup
        tokens.append(Token(kind, match.group(kind), match.start(kind)))
        position = match.end()
    return tokens


class Parser:
    """A recursive-descent parser over a list of tokens."""

    def __init__(self, text: str) -> None:
        self.text = normalize(text)
        self.tokens = tokenize(self.text)
        self.position = 0

    def parse(self) -> Expression:
        """Parse the whole text into one expression."""
        if not self.tokens:
            raise ParsingError("Empty expression", self.text)
        if self._is_definition():
            tree = self._definition()
        else:
            tree = self._sum()
        if self._peek() is not None:
            self._fail(f"Unexpected {self._peek().text!r}")
        return tree

    # Token access

    def _peek(self, offset: int=0) -> typing.Optional[Token]:
        index = self.position + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def _at(self, *symbols: str, offset: int=0) -> bool:
        token = self._peek(offset)
        return (
            token is not None
            and token.kind == 'symbol'
            and token.text in symbols
        )

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            self._fail("Unexpected end of expression")
        self.position += 1
        return token

    def _expect(self, symbol: str) -> Token:
        if not self._at(symbol):
            token = self._peek()
            found = 'end of expression' if token is None else repr(token.text)
            self._fail(f"Expected {symbol!r} but found {found}")
        return self._next()

    def _fail(self, message: str) -> typing.NoReturn:
        token = self._peek()
        position = len(self.text) if token is None else token.start
        raise ParsingError(message, self.text, position)

    # Grammar rules

    def _is_definition(self) -> bool:
        """True if the tokens begin with ``name(a, b, ...) =``."""
        if self._peek() is None or self._peek().kind != 'name':
            return False
        if not self._at('(', offset=1):
            return False
        offset = 2
        while self._peek(offset) is not None and self._peek(offset).kind == 'name':
            offset += 1
            if not self._at(',', offset=offset):
                break
            offset += 1
        return self._at(')', offset=offset) and self._at('=', offset=offset + 1)

    def _definition(self) -> structured.FunctionExpression:
        name = self._next().text
        self._expect('(')
        parameters = []
        while not self._at(')'):
            parameters.append(self._next().text)
            if not self._at(')'):
                self._expect(',')
        self._expect(')')
        self._expect('=')
        return structured.FunctionExpression(name, parameters, self._sum())

    def _sum(self) -> Expression:
        tree = self._product()
        while self._at('+', '-'):
            symbol = self._next().text
            right = self._product()
            if symbol == '+':
                tree = operations.Add(tree, right)
            else:
                tree = operations.Subtract(tree, right)
        return tree

    def _product(self) -> Expression:
        tree = self._prefix()
        while True:
            if self._at('*', '/'):
                symbol = self._next().text
                right = self._prefix()
                if symbol == '*':
                    tree = operations.Multiply(tree, right)
                else:
                    tree = operations.Divide(tree, right)
            elif self._starts_factor():
                tree = operations.Multiply(tree, self._power())
            else:
                return tree

    def _starts_factor(self) -> bool:
        """True if the next token can begin an implicit factor."""
        token = self._peek()
        if token is None:
            return False
        return token.kind in ('number', 'name') or self._at('(')

    def _prefix(self) -> Expression:
        if self._at('-'):
            self._next()
            number = self._peek()
            if (
                number is not None and number.kind == 'number'
                and not self._at('^', '!', '%', '[', '(', offset=1)
            ):
                self._next()
                return Literal(-_number(number.text), raw=f"-{number.text}")
            return unary.Negate(self._prefix())
        if self._at('+'):
            self._next()
            return unary.UnaryExpression('+', self._prefix())
        return self._power()

    def _power(self) -> Expression:
        base = self._postfix()
        if self._at('^'):
            self._next()
            return operations.Pow(base, self._prefix())
        return base

    def _postfix(self) -> Expression:
        tree = self._primary()
        while True:
            if self._at('!', '%'):
                symbol = self._next().text
                tree = unary.UnaryExpression(symbol, tree, prefix=False)
            elif self._at('['):
                self._next()
                index = self._index()
                self._expect(']')
                tree = structured.IndexExpression(tree, index)
            else:
                return tree

    def _index(self):
        """Parse a single index or a slice with optional bounds."""
        parts = [None]
        while True:
            if self._at(':'):
                self._next()
                parts.append(None)
            elif self._at(']'):
                break
            elif parts[-1] is None:
                parts[-1] = self._sum()
            else:
                self._fail("Expected ':' or ']'")
        if len(parts) == 1:
            if parts[0] is None:
                self._fail("Empty index")
            return parts[0]
        if len(parts) > 3:
            self._fail("Too many ':' in slice")
        return slice(*parts)

    def _primary(self) -> Expression:
        token = self._next()
        if token.kind == 'number':
            return Literal(_number(token.text), raw=token.text)
        if token.kind == 'name':
            if self._at('('):
                return self._call(token.text)
            if token.text in CONSTANTS:
                return CONSTANTS[token.text]
            return Variable(token.text)
        if token.text == '(':
            tree = self._sum()
            self._expect(')')
            return structured.GroupExpression(tree)
        if token.text == '|':
            tree = self._sum()
            self._expect('|')
            return unary.Abs(tree)
        self.position -= 1
        self._fail(f"Unexpected {token.text!r}")

    def _arguments(self) -> typing.List[Expression]:
        self._expect('(')
        arguments = []
        while not self._at(')'):
            arguments.append(self._sum())
            if not self._at(')'):
                self._expect(',')
        self._expect(')')
        return arguments

    def _call(self, name: str) -> Expression:
        """Build a function node for a known name or a generic call."""
        start = self._peek()
        arguments = self._arguments()
        count = len(arguments)
        if name == 'log':
            if count not in (1, 2):
                self._fail_at(start, "log takes one or two arguments")
            return functions.Log(*arguments)
        if name in ('sqrt', 'abs'):
            if count != 1:
                self._fail_at(start, f"{name} takes one argument")
            if name == 'abs':
                return unary.Abs(arguments[0])
            return operations.Pow(arguments[0], Literal(0.5))
        function = functions.lookup(name)
        if function is not None:
            if count != 1:
                self._fail_at(start, f"{name} takes one argument")
            return function(arguments[0])
        return structured.CallExpression(Variable(name), arguments)

    def _fail_at(self, token: Token, message: str) -> typing.NoReturn:
        raise ParsingError(message, self.text, token.start)


def _number(text: str):
    """Convert numeric text into an integer where possible."""
    if re.fullmatch(r'\d+', text):
        return int(text)
    return float(text)


def parse(text: str) -> Expression:
    """Build an expression tree from infix text.

    Examples
    --------
    >>> from symtree.core import parser
    >>> tree = parser.parse('2x^2 + 3x')
    >>> print(tree)
    2 * x ^ 2 + 3 * x
    >>> tree.evaluate({'x': 2})
    Value(14)
    """
    return Parser(text).parse()
