"""
Boolean health expressions over named flags.

Expressions are parsed once, when the monitoring definitions are loaded,
into a small AST that is evaluated against the flag map of every sample.

Grammar (lowest to highest precedence)::

    expression := or_expr
    or_expr    := and_expr (("||" | "or") and_expr)*
    and_expr   := not_expr (("&&" | "and") not_expr)*
    not_expr   := ("!" | "not") not_expr | atom
    atom       := "(" expression ")" | "true" | "false" | FLAG

Keywords are case-insensitive.  A ``FLAG`` is a name such as
``compute.api-slow``: letters, digits, ``_``, ``.`` and ``-``.

Hyphen convention: a ``-`` inside a flag name is always normalized to
``_``, both in expressions and in the flag map they are evaluated
against, so ``compute.api-slow`` and ``compute.api_slow`` name the same
flag.  There is no subtraction operator.

Usage::

    expr = parse_expression("compute.api-slow && !compute.api-down")
    expr.references        # frozenset({'compute.api_slow', 'compute.api_down'})
    expr.evaluate({"compute.api_slow": True, "compute.api_down": False})  # True
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Union

from statuscore.errors import ExpressionSyntaxError, UnknownFlagError


def normalize_flag_name(name: str) -> str:
    """Apply the fixed hyphen-to-underscore flag name convention."""
    return name.replace("-", "_")


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Flag:
    name: str

    def evaluate(self, flags: Mapping[str, bool]) -> bool:
        try:
            return flags[self.name]
        except KeyError:
            raise UnknownFlagError(self.name) from None


@dataclass(frozen=True)
class Const:
    value: bool

    def evaluate(self, flags: Mapping[str, bool]) -> bool:
        return self.value


@dataclass(frozen=True)
class Not:
    operand: "Node"

    def evaluate(self, flags: Mapping[str, bool]) -> bool:
        return not self.operand.evaluate(flags)


@dataclass(frozen=True)
class And:
    left: "Node"
    right: "Node"

    def evaluate(self, flags: Mapping[str, bool]) -> bool:
        return self.left.evaluate(flags) and self.right.evaluate(flags)


@dataclass(frozen=True)
class Or:
    left: "Node"
    right: "Node"

    def evaluate(self, flags: Mapping[str, bool]) -> bool:
        return self.left.evaluate(flags) or self.right.evaluate(flags)


Node = Union[Flag, Const, Not, And, Or]


def _collect_references(node: Node) -> set[str]:
    if isinstance(node, Flag):
        return {node.name}
    if isinstance(node, Not):
        return _collect_references(node.operand)
    if isinstance(node, (And, Or)):
        return _collect_references(node.left) | _collect_references(node.right)
    return set()


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(
    r"(?P<lparen>\()|(?P<rparen>\))|(?P<and>&&)|(?P<or>\|\|)|(?P<not>!)"
    r"|(?P<word>[A-Za-z_][\w.\-]*)"
)

_KEYWORDS = {"and": "and", "or": "or", "not": "not", "true": "true", "false": "false"}


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    position: int


def _tokenize(expression: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(expression):
        if expression[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(expression, pos)
        if match is None:
            raise ExpressionSyntaxError(
                expression, pos, f"unexpected character {expression[pos]!r}"
            )
        kind = match.lastgroup
        text = match.group()
        if kind == "word":
            kind = _KEYWORDS.get(text.lower(), "flag")
        tokens.append(_Token(kind, text, pos))
        pos = match.end()
    tokens.append(_Token("end", "", len(expression)))
    return tokens


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    """Recursive-descent parser producing an AST."""

    def __init__(self, expression: str):
        self._expression = expression
        self._tokens = _tokenize(expression)
        self._index = 0

    def _peek(self) -> _Token:
        return self._tokens[self._index]

    def _advance(self) -> _Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _error(self, token: _Token, reason: str) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(self._expression, token.position, reason)

    def parse(self) -> Node:
        if self._peek().kind == "end":
            raise self._error(self._peek(), "expression is empty")
        node = self._or()
        token = self._peek()
        if token.kind != "end":
            raise self._error(token, f"unexpected {token.text!r}")
        return node

    def _or(self) -> Node:
        node = self._and()
        while self._peek().kind == "or":
            self._advance()
            node = Or(node, self._and())
        return node

    def _and(self) -> Node:
        node = self._not()
        while self._peek().kind == "and":
            self._advance()
            node = And(node, self._not())
        return node

    def _not(self) -> Node:
        if self._peek().kind == "not":
            self._advance()
            return Not(self._not())
        return self._atom()

    def _atom(self) -> Node:
        token = self._advance()
        if token.kind == "lparen":
            node = self._or()
            closing = self._advance()
            if closing.kind != "rparen":
                raise self._error(closing, "missing closing parenthesis")
            return node
        if token.kind == "true":
            return Const(True)
        if token.kind == "false":
            return Const(False)
        if token.kind == "flag":
            return Flag(normalize_flag_name(token.text))
        if token.kind == "end":
            raise self._error(token, "unexpected end of expression")
        raise self._error(token, f"unexpected {token.text!r}")


# ---------------------------------------------------------------------------
# Compiled expression
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompiledExpression:
    """A parsed health expression."""

    source: str
    root: Node
    references: frozenset[str]

    def evaluate(self, flags: Mapping[str, bool]) -> bool:
        """Evaluate against a flag map keyed by normalized flag names.

        Every referenced flag must be present, regardless of
        short-circuiting, so the outcome never depends on which operand
        happens to be evaluated first.

        Raises:
            UnknownFlagError: A referenced flag is absent from ``flags``.
        """
        missing = self.references.difference(flags)
        if missing:
            raise UnknownFlagError(sorted(missing)[0])
        return self.root.evaluate(flags)


def parse_expression(expression: str) -> CompiledExpression:
    """Parse ``expression`` into a ``CompiledExpression``.

    Raises:
        ExpressionSyntaxError: The expression is malformed.
    """
    root = _Parser(expression).parse()
    return CompiledExpression(
        source=expression,
        root=root,
        references=frozenset(_collect_references(root)),
    )
