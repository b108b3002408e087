"""RQL parser: converts predicate strings to FilterExpression trees.

Supported grammar::

    query      := logical | comparison | exists
    logical    := ("and" | "or") "(" query ("," query)* ")" | "not" "(" query ")"
    comparison := op "(" path "," literal ")"     op in eq ne gt ge lt le like ilike
                | "in" "(" path ("," literal)+ ")"
    exists     := "exists" "(" path ")"
    literal    := "quoted string" | number | true | false | null | placeholder
"""

from __future__ import annotations

import json
import re
from typing import Any

from recordpatch.filters import ComparisonExpression, FilterExpression, LogicalExpression, Placeholder

_COMPARISON_OPS: dict[str, str] = {
    "eq": "==",
    "ne": "!=",
    "gt": ">",
    "ge": ">=",
    "lt": "<",
    "le": "<=",
    "like": "LIKE",
    "ilike": "ILIKE",
}

_LOGICAL_OPS = {"and": "AND", "or": "OR", "not": "NOT"}

_NUMBER_RE = re.compile(r"^-?(0|[1-9][0-9]*)(\.[0-9]+)?([eE][+-]?[0-9]+)?$")
PLACEHOLDER_RE = re.compile(r"^time:(now|now_epoch_millis)(?:([+-])([0-9]+)([smhdw]))?$")
MAX_NESTING_DEPTH = 64

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<punct>[(),])
  | (?P<string>"(?:[^"\\]|\\.)*")
  | (?P<word>[^\s(),"]+)
    """,
    re.VERBOSE,
)


class RqlSyntaxError(ValueError):
    """Raised when an RQL expression cannot be parsed."""

    def __init__(self, message: str, expression: str, position: int) -> None:
        self.expression = expression
        self.position = position
        super().__init__(f"{message} at position {position} in <{expression}>")


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = list(self._tokenize(text))
        self._index = 0
        self._depth = 0

    def _tokenize(self, text: str) -> Any:
        pos = 0
        while pos < len(text):
            m = _TOKEN_RE.match(text, pos)
            if m is None:
                raise RqlSyntaxError("Unterminated string literal", text, pos)
            kind = m.lastgroup
            if kind != "ws":
                yield kind, m.group(), pos
            pos = m.end()

    def _error(self, message: str) -> RqlSyntaxError:
        if self._index < len(self._tokens):
            position = self._tokens[self._index][2]
        else:
            position = len(self._text)
        return RqlSyntaxError(message, self._text, position)

    def _peek(self) -> tuple[str, str, int] | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _next(self) -> tuple[str, str, int]:
        token = self._peek()
        if token is None:
            raise self._error("Unexpected end of expression")
        self._index += 1
        return token

    def _expect(self, punct: str) -> None:
        kind, text, _ = self._next()
        if kind != "punct" or text != punct:
            self._index -= 1
            raise self._error(f"Expected '{punct}' but found '{text}'")

    def _accept(self, punct: str) -> bool:
        token = self._peek()
        if token is not None and token[0] == "punct" and token[1] == punct:
            self._index += 1
            return True
        return False

    def parse(self) -> FilterExpression:
        if not self._tokens:
            raise self._error("Empty expression")
        expr = self._query()
        if self._peek() is not None:
            raise self._error("Unexpected trailing input")
        return expr

    def _query(self) -> FilterExpression:
        kind, name, _ = self._next()
        if kind != "word":
            self._index -= 1
            raise self._error(f"Expected an operator but found '{name}'")
        if name in _LOGICAL_OPS:
            return self._logical(_LOGICAL_OPS[name])
        if name in _COMPARISON_OPS:
            return self._comparison(_COMPARISON_OPS[name])
        if name == "in":
            return self._in()
        if name == "exists":
            self._expect("(")
            path = self._path()
            self._expect(")")
            return ComparisonExpression(path, "EXISTS")
        self._index -= 1
        raise self._error(f"Unknown operator '{name}'")

    def _logical(self, op: str) -> LogicalExpression:
        if self._depth >= MAX_NESTING_DEPTH:
            self._index -= 1
            raise self._error(f"Expression nested deeper than {MAX_NESTING_DEPTH} levels")
        self._depth += 1
        self._expect("(")
        children = [self._query()]
        while self._accept(","):
            children.append(self._query())
        self._expect(")")
        self._depth -= 1
        if op == "NOT" and len(children) != 1:
            raise self._error("not() takes exactly one argument")
        return LogicalExpression(op=op, children=children)

    def _comparison(self, op: str) -> ComparisonExpression:
        self._expect("(")
        path = self._path()
        self._expect(",")
        value = self._literal()
        self._expect(")")
        if op in ("LIKE", "ILIKE") and not isinstance(value, str):
            raise self._error("like() requires a string pattern")
        return ComparisonExpression(path, op, value)

    def _in(self) -> ComparisonExpression:
        self._expect("(")
        path = self._path()
        values = []
        while self._accept(","):
            values.append(self._literal())
        self._expect(")")
        if not values:
            raise self._error("in() requires at least one value")
        return ComparisonExpression(path, "IN", values)

    def _path(self) -> str:
        kind, text, _ = self._next()
        if kind != "word":
            self._index -= 1
            raise self._error(f"Expected a property path but found '{text}'")
        path = text.strip("/")
        if not path:
            self._index -= 1
            raise self._error("Property path must not be empty")
        return path

    def _literal(self) -> Any:
        kind, text, _ = self._next()
        if kind == "string":
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                self._index -= 1
                raise self._error(f"Invalid string literal {text}") from None
        if kind != "word":
            self._index -= 1
            raise self._error(f"Expected a value but found '{text}'")
        if text == "true":
            return True
        if text == "false":
            return False
        if text == "null":
            return None
        if _NUMBER_RE.match(text):
            return json.loads(text)
        if PLACEHOLDER_RE.match(text):
            return Placeholder(text)
        self._index -= 1
        raise self._error(f"Invalid value '{text}'")


def parse_rql(expression: str) -> FilterExpression:
    """Parse an RQL predicate string into a FilterExpression."""
    if not isinstance(expression, str):
        raise TypeError(f"RQL expression must be a string, got {type(expression).__name__}")
    return _Parser(expression).parse()
