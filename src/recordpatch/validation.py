"""Schema validation of merged records."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from recordpatch.commands import MergeRequest
from recordpatch.errors import SchemaValidationFailedError
from recordpatch.types import Record

logger = logging.getLogger(__name__)


class SchemaValidator(Protocol):
    """Asynchronous check of a merged record before its event is emitted.

    Implementations raise ``SchemaValidationFailedError`` to reject the
    candidate; any other exception is treated the same way by the pipeline.
    """

    async def validate(
        self, previous: Record | None, candidate: Record, request: MergeRequest
    ) -> None: ...


class JsonSchemaValidator:
    """Validates the full JSON view of a record against a Draft 7 schema."""

    def __init__(self, schema: dict[str, Any]) -> None:
        try:
            Draft7Validator.check_schema(schema)
        except SchemaError as e:
            raise ValueError(f"Invalid record schema: {e.message}") from e
        self._validator = Draft7Validator(schema)

    def errors_for(self, record: Record) -> list[str]:
        errors = sorted(self._validator.iter_errors(record.to_json()), key=lambda err: list(err.path))
        messages = []
        for err in errors:
            path = "/" + "/".join(str(part) for part in err.path)
            messages.append(f"{path}: {err.message}")
        return messages

    async def validate(
        self, previous: Record | None, candidate: Record, request: MergeRequest
    ) -> None:
        messages = self.errors_for(candidate)
        if messages:
            logger.warning(
                "Merged record '%s' failed schema validation: %s", candidate.id, messages[0]
            )
            raise SchemaValidationFailedError(
                f"Schema validation failed at {messages[0]}",
                errors=messages,
                headers=request.headers,
            )
