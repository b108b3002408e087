"""Filter expression types for patch conditions.

Expressions are usually parsed from RQL strings (see ``recordpatch.rql``),
but can also be built in Python and rendered back to RQL::

    cond = (prop("attributes/color") == "red") & prop("attributes/size").exists()
    cond.to_rql()  # 'and(eq(attributes/color,"red"),exists(attributes/size))'
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from recordpatch.pointer import MISSING, get_value

# Operator token used in RQL for each internal operator
RQL_OPS: dict[str, str] = {
    "==": "eq",
    "!=": "ne",
    ">": "gt",
    ">=": "ge",
    "<": "lt",
    "<=": "le",
    "IN": "in",
    "LIKE": "like",
    "ILIKE": "ilike",
    "EXISTS": "exists",
}


@dataclass(frozen=True)
class Placeholder:
    """A value resolved at evaluation time, e.g. ``time:now-1h``."""

    name: str

    def to_rql(self) -> str:
        return self.name


Resolver = Callable[[Placeholder], Any]


def _render_value(value: Any) -> str:
    if isinstance(value, Placeholder):
        return value.to_rql()
    return json.dumps(value, separators=(",", ":"))


class FilterExpression:
    """Base class for filter expressions."""

    def __and__(self, other: FilterExpression) -> LogicalExpression:
        return LogicalExpression(op="AND", children=[self, other])

    def __or__(self, other: FilterExpression) -> LogicalExpression:
        return LogicalExpression(op="OR", children=[self, other])

    def __invert__(self) -> LogicalExpression:
        return LogicalExpression(op="NOT", children=[self])

    def to_rql(self) -> str:
        raise NotImplementedError

    def test(self, document: Any, resolve: Resolver | None = None) -> bool:
        raise NotImplementedError


@dataclass
class ComparisonExpression(FilterExpression):
    """A comparison between a property path and a value.

    field_path is a pointer into the record's full JSON view, e.g.
    ``attributes/color`` or ``_revision``.
    """

    field_path: str
    op: str  # "==", "!=", ">", ">=", "<", "<=", "IN", "LIKE", "ILIKE", "EXISTS"
    value: Any = None

    def __hash__(self) -> int:
        v = self.value
        if isinstance(v, list):
            v = tuple(v)
        return hash((self.field_path, self.op, v))

    def __eq__(self, other: object) -> bool:  # type: ignore[override]
        if not isinstance(other, ComparisonExpression):
            return NotImplemented
        return (
            self.field_path == other.field_path
            and self.op == other.op
            and self.value == other.value
        )

    def to_rql(self) -> str:
        name = RQL_OPS[self.op]
        if self.op == "EXISTS":
            return f"{name}({self.field_path})"
        if self.op == "IN":
            values = ",".join(_render_value(v) for v in self.value)
            return f"{name}({self.field_path},{values})"
        return f"{name}({self.field_path},{_render_value(self.value)})"

    def test(self, document: Any, resolve: Resolver | None = None) -> bool:
        actual = get_value(document, self.field_path)
        if self.op == "EXISTS":
            return actual is not MISSING
        if actual is MISSING:
            return self.op == "!="

        expected = _resolve(self.value, resolve)
        op = self.op
        if op == "==":
            return _json_equal(actual, expected)
        if op == "!=":
            return not _json_equal(actual, expected)
        if op == "IN":
            return any(_json_equal(actual, v) for v in expected)
        if op in ("LIKE", "ILIKE"):
            if not isinstance(actual, str) or not isinstance(expected, str):
                return False
            flags = re.IGNORECASE if op == "ILIKE" else 0
            return re.fullmatch(like_to_regex(expected), actual, flags | re.DOTALL) is not None
        if not _orderable(actual, expected):
            return False
        if op == ">":
            return actual > expected
        if op == ">=":
            return actual >= expected
        if op == "<":
            return actual < expected
        if op == "<=":
            return actual <= expected
        raise ValueError(f"Unknown comparison operator '{op}'")


@dataclass
class LogicalExpression(FilterExpression):
    """A logical combination of filter expressions."""

    op: str  # "AND", "OR", "NOT"
    children: list[FilterExpression] = field(default_factory=list)

    def to_rql(self) -> str:
        inner = ",".join(c.to_rql() for c in self.children)
        return f"{self.op.lower()}({inner})"

    def test(self, document: Any, resolve: Resolver | None = None) -> bool:
        if self.op == "NOT":
            return not self.children[0].test(document, resolve)
        if self.op == "AND":
            return all(c.test(document, resolve) for c in self.children)
        if self.op == "OR":
            return any(c.test(document, resolve) for c in self.children)
        raise ValueError(f"Unknown logical operator '{self.op}'")


def _resolve(value: Any, resolve: Resolver | None) -> Any:
    if isinstance(value, list):
        return [_resolve(v, resolve) for v in value]
    if isinstance(value, Placeholder):
        if resolve is None:
            raise ValueError(f"No resolver configured for placeholder '{value.name}'")
        return resolve(value)
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _json_equal(a: Any, b: Any) -> bool:
    """JSON equality: booleans never equal numbers, 1 equals 1.0."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) and _is_number(b):
        return a == b
    if type(a) is not type(b):
        return False
    return a == b


def _orderable(a: Any, b: Any) -> bool:
    return (_is_number(a) and _is_number(b)) or (isinstance(a, str) and isinstance(b, str))


def like_to_regex(pattern: str) -> str:
    """Translate an RQL like pattern (``*`` any run, ``?`` one char) to a regex."""
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


class FieldProxy:
    """Proxy that generates FilterExpression from property operations."""

    def __init__(self, field_path: str) -> None:
        self._field_path = field_path

    def __eq__(self, other: object) -> ComparisonExpression:  # type: ignore[override]
        return ComparisonExpression(self._field_path, "==", other)

    def __ne__(self, other: object) -> ComparisonExpression:  # type: ignore[override]
        return ComparisonExpression(self._field_path, "!=", other)

    def __gt__(self, other: Any) -> ComparisonExpression:
        return ComparisonExpression(self._field_path, ">", other)

    def __ge__(self, other: Any) -> ComparisonExpression:
        return ComparisonExpression(self._field_path, ">=", other)

    def __lt__(self, other: Any) -> ComparisonExpression:
        return ComparisonExpression(self._field_path, "<", other)

    def __le__(self, other: Any) -> ComparisonExpression:
        return ComparisonExpression(self._field_path, "<=", other)

    def in_(self, values: list[Any]) -> ComparisonExpression:
        return ComparisonExpression(self._field_path, "IN", list(values))

    def like(self, pattern: str) -> ComparisonExpression:
        return ComparisonExpression(self._field_path, "LIKE", pattern)

    def ilike(self, pattern: str) -> ComparisonExpression:
        return ComparisonExpression(self._field_path, "ILIKE", pattern)

    def exists(self) -> ComparisonExpression:
        return ComparisonExpression(self._field_path, "EXISTS")

    def __getitem__(self, segment: str) -> FieldProxy:
        """Navigate one level deeper."""
        if not segment or "/" in segment:
            raise ValueError(f"Invalid path segment '{segment}'")
        return FieldProxy(f"{self._field_path}/{segment}")


def prop(path: str) -> FieldProxy:
    """Create a proxy for a property of the record's full JSON view."""
    return FieldProxy(path.strip("/"))
