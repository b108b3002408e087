"""End-to-end tests for MergePipeline."""

from __future__ import annotations

import asyncio
import logging

import pytest

from recordpatch.config import RecordPatchConfig
from recordpatch.errors import (
    ErrorKind,
    InvalidExpressionError,
    InvalidPatchResultError,
    SchemaValidationFailedError,
    SizeLimitExceededError,
)
from recordpatch.merge import MergeApplier
from recordpatch.pipeline import MergePipeline, MergeResult
from recordpatch.size import SizeGuard
from recordpatch.validation import JsonSchemaValidator
from tests.conftest import make_request


class RecordingValidator:
    """SchemaValidator double recording its calls."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def validate(self, previous, candidate, request):
        self.calls.append((previous, candidate, request))
        if self.error is not None:
            raise self.error


class SpyMerger(MergeApplier):
    def __init__(self):
        self.calls = 0

    def apply(self, *args, **kwargs):
        self.calls += 1
        return super().apply(*args, **kwargs)


class TestScenarios:
    @pytest.mark.asyncio
    async def test_scenario_a(self, record, ts):
        request = make_request(value={"b": 5, "c": 7}, patch_conditions={"c": "eq(b,2)"})
        result = await MergePipeline().apply(request, record, 5, ts)

        assert result.ok
        event, response = result.unwrap()
        assert event.value == {"b": 5, "c": 7}
        assert response.revision == 5

    @pytest.mark.asyncio
    async def test_scenario_b(self, record, ts):
        validator = RecordingValidator()
        request = make_request(value={"b": 5, "c": 7}, patch_conditions={"c": "eq(b,9)"})
        result = await MergePipeline(validator=validator).apply(request, record, 5, ts)

        event, _ = result.unwrap()
        assert event.value == {"b": 5}
        _, merged, _ = validator.calls[0]
        assert merged.fields == {"a": 1, "b": 5}

    @pytest.mark.asyncio
    async def test_scenario_c(self, record, ts):
        request = make_request(path="/a", value=42, patch_conditions={"c": "eq(b,9)"})
        event, _ = (await MergePipeline().apply(request, record, 5, ts)).unwrap()
        assert event.value == 42
        assert event.path == "/a"

    @pytest.mark.asyncio
    async def test_scenario_d_size_limit(self, record, ts):
        request = make_request(value={"blob": "x" * 2000})
        pipeline = MergePipeline(RecordPatchConfig(max_record_size=1000))
        result = await pipeline.apply(request, record, 5, ts)

        assert not result.ok
        assert result.kind is ErrorKind.SIZE_LIMIT_EXCEEDED
        assert result.event is None
        assert result.response is None
        assert result.error.headers == {"correlation-id": "corr-1"}
        with pytest.raises(SizeLimitExceededError):
            result.unwrap()

    @pytest.mark.asyncio
    async def test_scenario_e_fails_before_merge(self, record, ts):
        merger = SpyMerger()
        request = make_request(value={"c": 7}, patch_conditions={"c": "malformed((("})
        result = await MergePipeline(merger=merger).apply(request, record, 5, ts)

        assert result.kind is ErrorKind.INVALID_EXPRESSION
        assert isinstance(result.error, InvalidExpressionError)
        assert result.error.headers == {"correlation-id": "corr-1"}
        assert merger.calls == 0

    @pytest.mark.asyncio
    async def test_placeholder_overflow_is_a_failed_result(self, record, ts):
        request = make_request(
            value={"c": 7}, patch_conditions={"c": "gt(_modified,time:now-99999999999d)"}
        )
        result = await MergePipeline().apply(request, record, 5, ts)
        assert result.ok is False
        assert result.kind is ErrorKind.INVALID_EXPRESSION


class TestPipeline:
    @pytest.mark.asyncio
    async def test_invalid_patch_result(self, record, ts):
        request = make_request(value={"id": "other"})
        result = await MergePipeline().apply(request, record, 5, ts)
        assert result.kind is ErrorKind.INVALID_PATCH_RESULT

    @pytest.mark.asyncio
    async def test_run_raises(self, record, ts):
        request = make_request(value={"id": "other"})
        with pytest.raises(InvalidPatchResultError):
            await MergePipeline().run(request, record, 5, ts)

    @pytest.mark.asyncio
    async def test_mismatched_record(self, record, ts):
        request = make_request(record_id="other", value={"b": 1})
        with pytest.raises(ValueError, match="targets record"):
            await MergePipeline().apply(request, record, 5, ts)

    @pytest.mark.asyncio
    async def test_validator_receives_previous_and_candidate(self, record, ts):
        validator = RecordingValidator()
        request = make_request(value={"b": 5})
        await MergePipeline(validator=validator).apply(request, record, 5, ts)

        previous, candidate, seen_request = validator.calls[0]
        assert previous is record
        assert candidate.revision == 5
        assert seen_request is request

    @pytest.mark.asyncio
    async def test_validator_rejection(self, record, ts):
        validator = RecordingValidator(SchemaValidationFailedError("bad shape"))
        request = make_request(value={"b": 5})
        result = await MergePipeline(validator=validator).apply(request, record, 5, ts)

        assert result.kind is ErrorKind.SCHEMA_VALIDATION_FAILED
        assert result.error.headers == {"correlation-id": "corr-1"}
        assert result.event is None

    @pytest.mark.asyncio
    async def test_validator_unexpected_error_is_schema_failure(self, record, ts):
        validator = RecordingValidator(RuntimeError("model service down"))
        request = make_request(value={"b": 5})
        result = await MergePipeline(validator=validator).apply(request, record, 5, ts)

        assert result.kind is ErrorKind.SCHEMA_VALIDATION_FAILED
        assert "model service down" in result.error.message
        assert isinstance(result.error.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_validation_disabled_by_config(self, record, ts):
        validator = RecordingValidator(SchemaValidationFailedError("bad shape"))
        pipeline = MergePipeline(RecordPatchConfig(validate_schema=False), validator=validator)
        result = await pipeline.apply(make_request(value={"b": 5}), record, 5, ts)
        assert result.ok
        assert validator.calls == []

    @pytest.mark.asyncio
    async def test_json_schema_validator(self, record, ts):
        schema = {
            "type": "object",
            "properties": {"b": {"type": "integer", "maximum": 10}},
        }
        pipeline = MergePipeline(validator=JsonSchemaValidator(schema))

        ok = await pipeline.apply(make_request(value={"b": 5}), record, 5, ts)
        assert ok.ok

        rejected = await pipeline.apply(make_request(value={"b": 50}), record, 5, ts)
        assert rejected.kind is ErrorKind.SCHEMA_VALIDATION_FAILED
        assert rejected.error.errors[0].startswith("/b:")

    @pytest.mark.asyncio
    async def test_size_checked_after_validation(self, record, ts):
        validator = RecordingValidator()
        pipeline = MergePipeline(RecordPatchConfig(max_record_size=100), validator=validator)
        result = await pipeline.apply(make_request(value={"blob": "x" * 500}), record, 5, ts)
        assert result.kind is ErrorKind.SIZE_LIMIT_EXCEEDED
        assert len(validator.calls) == 1

    @pytest.mark.asyncio
    async def test_custom_size_guard(self, record, ts):
        pipeline = MergePipeline(size_guard=SizeGuard(max_size=50))
        result = await pipeline.apply(make_request(value={"b": 5}), record, 5, ts)
        assert result.kind is ErrorKind.SIZE_LIMIT_EXCEEDED

    @pytest.mark.asyncio
    async def test_cancellation_emits_nothing(self, record, ts):
        started = asyncio.Event()

        class SlowValidator:
            async def validate(self, previous, candidate, request):
                started.set()
                await asyncio.sleep(10)

        pipeline = MergePipeline(validator=SlowValidator())
        task = asyncio.create_task(pipeline.apply(make_request(value={"b": 5}), record, 5, ts))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_record_is_not_mutated(self, record, ts):
        before = record.to_json()
        await MergePipeline().apply(make_request(value={"a": None, "b": 7}), record, 5, ts)
        assert record.to_json() == before

    @pytest.mark.asyncio
    async def test_rejection_is_logged(self, record, ts, caplog):
        request = make_request(value={"c": 7}, patch_conditions={"c": "malformed((("})
        with caplog.at_level(logging.WARNING, logger="recordpatch.pipeline"):
            await MergePipeline().apply(request, record, 5, ts)
        assert any(
            "invalid_expression" in r.getMessage() and r.levelno == logging.WARNING
            for r in caplog.records
        )


class TestMergeResult:
    def test_failure_unwrap_raises(self):
        error = SchemaValidationFailedError("nope")
        result = MergeResult.failure(error)
        assert not result.ok
        assert result.kind is ErrorKind.SCHEMA_VALIDATION_FAILED
        with pytest.raises(SchemaValidationFailedError):
            result.unwrap()

    def test_unwrap_without_event_raises(self):
        with pytest.raises(RuntimeError):
            MergeResult().unwrap()

    def test_error_to_dict(self):
        error = SizeLimitExceededError(200, 100, headers={"correlation-id": "c"})
        data = error.to_dict()
        assert data["status"] == 413
        assert data["error"] == "record:toolarge"
        assert data["kind"] == "size_limit_exceeded"
        assert "200" in data["message"]
        assert error.correlation_id == "c"
