"""The conditional merge pipeline: filter, merge, validate, size-check, build."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from recordpatch.commands import MergeRequest
from recordpatch.conditions import PatchFilter
from recordpatch.config import RecordPatchConfig
from recordpatch.errors import ErrorKind, RecordPatchError, SchemaValidationFailedError
from recordpatch.events import MergeResponse, RecordMerged, ResultBuilder
from recordpatch.merge import MergeApplier
from recordpatch.size import SizeGuard
from recordpatch.types import Record
from recordpatch.validation import SchemaValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeResult:
    """Outcome of one merge: either an event and a response, or an error."""

    event: RecordMerged | None = None
    response: MergeResponse | None = None
    error: RecordPatchError | None = None

    @classmethod
    def success(cls, event: RecordMerged, response: MergeResponse) -> MergeResult:
        return cls(event=event, response=response)

    @classmethod
    def failure(cls, error: RecordPatchError) -> MergeResult:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> tuple[RecordMerged, MergeResponse]:
        """Return ``(event, response)`` or raise the error."""
        if self.error is not None:
            raise self.error
        if self.event is None or self.response is None:
            raise RuntimeError("MergeResult has neither an error nor an event and response")
        return self.event, self.response


class MergePipeline:
    """Applies one merge request to the current state of a record.

    Steps run in order and any failure ends the pipeline before an event or a
    response exists. The optional schema validator is the only await.
    """

    def __init__(
        self,
        config: RecordPatchConfig | None = None,
        *,
        patch_filter: PatchFilter | None = None,
        merger: MergeApplier | None = None,
        validator: SchemaValidator | None = None,
        size_guard: SizeGuard | None = None,
        results: ResultBuilder | None = None,
    ) -> None:
        self._config = config or RecordPatchConfig()
        self._filter = patch_filter or PatchFilter()
        self._merger = merger or MergeApplier()
        self._validator = validator
        self._size_guard = size_guard or SizeGuard(self._config.max_record_size)
        self._results = results or ResultBuilder()

    async def apply(
        self,
        request: MergeRequest,
        record: Record,
        next_revision: int,
        timestamp: datetime,
    ) -> MergeResult:
        """Run the pipeline, returning failures as a ``MergeResult``."""
        try:
            event, response = await self.run(request, record, next_revision, timestamp)
        except RecordPatchError as e:
            logger.warning(
                "Merge into record '%s' at '%s' rejected (%s): %s",
                request.record_id,
                request.path,
                e.kind.value,
                e.message,
            )
            return MergeResult.failure(e)
        return MergeResult.success(event, response)

    async def run(
        self,
        request: MergeRequest,
        record: Record,
        next_revision: int,
        timestamp: datetime,
    ) -> tuple[RecordMerged, MergeResponse]:
        """Run the pipeline, raising ``RecordPatchError`` on failure."""
        if record.id != request.record_id:
            raise ValueError(
                f"Request targets record '{request.record_id}' but got record '{record.id}'"
            )
        headers = request.headers

        filtered = self._filter.filter_payload(
            record, request.value, request.patch_conditions, headers
        )
        merged = self._merger.apply(
            record, request.path, filtered, next_revision, timestamp, headers
        )

        if self._validator is not None and self._config.validate_schema:
            await self._validate(self._validator, record, merged, request)

        self._size_guard.check(merged, headers)
        return self._results.build(request, record, merged, filtered, next_revision, timestamp)

    async def _validate(
        self,
        validator: SchemaValidator,
        previous: Record,
        merged: Record,
        request: MergeRequest,
    ) -> None:
        try:
            await validator.validate(previous, merged, request)
        except SchemaValidationFailedError as e:
            if e.headers:
                raise
            raise SchemaValidationFailedError(
                e.message, errors=e.errors, headers=request.headers
            ) from e
        except RecordPatchError:
            raise
        except Exception as e:
            raise SchemaValidationFailedError(str(e), headers=request.headers) from e
