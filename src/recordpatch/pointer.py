"""JSON pointer helpers over plain dict/list documents.

Pointers only descend through JSON objects. Empty segments are ignored, so
``""``, ``"/"`` and ``"a/b/"`` parse to the root, ``()`` and ``("a", "b")``.
"""

from __future__ import annotations

from typing import Any

JsonValue = Any


class _Missing:
    """Sentinel type for values absent from a document."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def parse_pointer(path: str | tuple[str, ...]) -> tuple[str, ...]:
    """Split a pointer string into unescaped reference tokens."""
    if isinstance(path, tuple):
        return path
    if not isinstance(path, str):
        raise TypeError(f"JSON pointer must be a string, got {type(path).__name__}")
    tokens = []
    for raw in path.split("/"):
        if not raw:
            continue
        tokens.append(raw.replace("~1", "/").replace("~0", "~"))
    return tuple(tokens)


def format_pointer(tokens: tuple[str, ...]) -> str:
    """Render tokens as a pointer string with a leading slash."""
    if not tokens:
        return "/"
    return "/" + "/".join(t.replace("~", "~0").replace("/", "~1") for t in tokens)


def normalize_pointer(path: str) -> str:
    return format_pointer(parse_pointer(path))


def get_value(document: JsonValue, path: str | tuple[str, ...]) -> JsonValue:
    """Return the value at ``path`` or ``MISSING``. JSON null is a present value."""
    current = document
    for token in parse_pointer(path):
        if not isinstance(current, dict) or token not in current:
            return MISSING
        current = current[token]
    return current


def contains(document: JsonValue, path: str | tuple[str, ...]) -> bool:
    return get_value(document, path) is not MISSING


def remove_value(document: JsonValue, path: str | tuple[str, ...]) -> JsonValue:
    """Return a copy of ``document`` without the value at ``path``.

    Only the objects along the path are copied; untouched branches are shared
    with the input. Removing an absent path returns the document unchanged.
    """
    tokens = parse_pointer(path)
    if not tokens:
        raise ValueError("Cannot remove the document root")
    if not contains(document, tokens):
        return document
    return _remove(document, tokens)


def _remove(node: dict[str, JsonValue], tokens: tuple[str, ...]) -> dict[str, JsonValue]:
    head, rest = tokens[0], tokens[1:]
    copy = dict(node)
    if rest:
        copy[head] = _remove(node[head], rest)
    else:
        del copy[head]
    return copy


def wrap_at(path: str | tuple[str, ...], value: JsonValue) -> JsonValue:
    """Nest ``value`` inside objects so that it sits at ``path``."""
    wrapped = value
    for token in reversed(parse_pointer(path)):
        wrapped = {token: wrapped}
    return wrapped
