"""Structured error types for recordpatch."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Which pipeline check rejected an update."""

    INVALID_EXPRESSION = "invalid_expression"
    INVALID_PATCH_RESULT = "invalid_patch_result"
    SIZE_LIMIT_EXCEEDED = "size_limit_exceeded"
    SCHEMA_VALIDATION_FAILED = "schema_validation_failed"


class RecordPatchError(Exception):
    """Base error for all recordpatch errors.

    Every error carries the headers of the request that caused it so the
    boundary layer can correlate the failure with the original call.
    """

    kind: ErrorKind
    error_code: str = "recordpatch:error"
    status: int = 400
    description: str | None = None

    def __init__(self, message: str, *, headers: dict[str, str] | None = None) -> None:
        self.message = message
        self.headers: dict[str, str] = dict(headers or {})
        super().__init__(message)

    @property
    def correlation_id(self) -> str | None:
        return self.headers.get("correlation-id")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status,
            "error": self.error_code,
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.description:
            data["description"] = self.description
        return data


class InvalidExpressionError(RecordPatchError):
    """Raised when a patch condition cannot be parsed or evaluated."""

    kind = ErrorKind.INVALID_EXPRESSION
    error_code = "rql:expression.invalid"
    description = "Check the patch condition for syntax errors and unsupported operators."

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.expression = expression
        super().__init__(message, headers=headers)


class InvalidPatchResultError(RecordPatchError):
    """Raised when applying the merge patch yields a structurally invalid record."""

    kind = ErrorKind.INVALID_PATCH_RESULT
    error_code = "record:merge.invalid"
    description = "Check that the payload and the target path form a valid record."


class SizeLimitExceededError(RecordPatchError):
    """Raised when the merged record exceeds the configured size limit."""

    kind = ErrorKind.SIZE_LIMIT_EXCEEDED
    error_code = "record:toolarge"
    status = 413
    description = "Reduce the size of the payload."

    def __init__(self, size: int, limit: int, *, headers: dict[str, str] | None = None) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"The size of {size} characters exceeds the maximum allowed size of {limit} characters",
            headers=headers,
        )


class SchemaValidationFailedError(RecordPatchError):
    """Raised when the external schema validator rejects the merged record."""

    kind = ErrorKind.SCHEMA_VALIDATION_FAILED
    error_code = "record:schema.invalid"
    description = "The merged record does not satisfy its schema."

    def __init__(
        self,
        message: str,
        *,
        errors: list[str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.errors = list(errors or [])
        super().__init__(message, headers=headers)
