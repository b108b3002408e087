"""Patch conditions: predicate evaluation and payload filtering."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from recordpatch.errors import InvalidExpressionError
from recordpatch.filters import FilterExpression
from recordpatch.placeholders import TimePlaceholder
from recordpatch.pointer import JsonValue, contains, parse_pointer, remove_value
from recordpatch.rql import parse_rql
from recordpatch.types import Record

logger = logging.getLogger(__name__)


class PredicateEngine(Protocol):
    """Evaluates a predicate string against a JSON document."""

    def test(self, document: dict[str, Any], expression: str) -> bool: ...


class RqlPredicateEngine:
    """PredicateEngine for RQL expressions with ``time:`` placeholders."""

    def __init__(self, time_placeholder: TimePlaceholder | None = None) -> None:
        self._time_placeholder = time_placeholder or TimePlaceholder()

    def parse(self, expression: str) -> FilterExpression:
        return parse_rql(expression)

    def test(self, document: dict[str, Any], expression: str) -> bool:
        return self.parse(expression).test(document, self._time_placeholder)


class ConditionEvaluator:
    """Evaluates a single patch condition against the current record.

    Parse and evaluation failures of the engine (``ValueError`` and
    ``TypeError``) surface as ``InvalidExpressionError`` carrying the request
    headers.
    """

    def __init__(self, engine: PredicateEngine | None = None) -> None:
        self._engine = engine or RqlPredicateEngine()

    def evaluate(
        self,
        record: Record,
        expression: str,
        headers: Mapping[str, str] | None = None,
    ) -> bool:
        headers = dict(headers or {})
        if not isinstance(expression, str):
            raise InvalidExpressionError(
                f"Patch condition must be a string, got {type(expression).__name__}",
                headers=headers,
            )
        try:
            result = self._engine.test(record.to_json(), expression)
        except (ValueError, TypeError) as e:
            raise InvalidExpressionError(str(e), expression=expression, headers=headers) from e
        if not isinstance(result, bool):
            raise InvalidExpressionError(
                f"Condition <{expression}> did not evaluate to a boolean",
                expression=expression,
                headers=headers,
            )
        return result


class PatchFilter:
    """Removes the parts of a merge payload whose condition does not hold."""

    def __init__(self, evaluator: ConditionEvaluator | None = None) -> None:
        self._evaluator = evaluator or ConditionEvaluator()

    def filter_payload(
        self,
        record: Record,
        payload: JsonValue,
        conditions: Mapping[str, str] | None,
        headers: Mapping[str, str] | None = None,
    ) -> JsonValue:
        """Return ``payload`` without the sub-values whose condition is false.

        Conditions are evaluated against the current ``record`` in mapping
        order. Each removal produces a new payload; the input is not mutated.
        Conditions only apply to object payloads.
        """
        if not conditions or not isinstance(payload, dict):
            return payload

        filtered: JsonValue = payload
        for path, expression in conditions.items():
            matches = self._evaluator.evaluate(record, expression, headers)
            # Presence is checked on the payload built so far, so a removed
            # ancestor makes its descendants absent for later entries.
            if matches or not contains(filtered, path):
                continue
            logger.debug("Condition <%s> failed, dropping '%s' from payload", expression, path)
            if not parse_pointer(path):
                filtered = {}
            else:
                filtered = remove_value(filtered, path)
        return filtered
