"""recordpatch: conditional merge patches for versioned JSON records."""

__version__ = "0.1.0"

from recordpatch.commands import MergeRequest
from recordpatch.conditions import ConditionEvaluator, PatchFilter, PredicateEngine, RqlPredicateEngine
from recordpatch.config import RecordPatchConfig
from recordpatch.errors import (
    ErrorKind,
    InvalidExpressionError,
    InvalidPatchResultError,
    RecordPatchError,
    SchemaValidationFailedError,
    SizeLimitExceededError,
)
from recordpatch.etags import EntityTag, EntityTagCalculator
from recordpatch.events import MergeResponse, RecordMerged, ResultBuilder
from recordpatch.filters import prop
from recordpatch.merge import MergeApplier, merge_patch
from recordpatch.pipeline import MergePipeline, MergeResult
from recordpatch.rql import RqlSyntaxError, parse_rql
from recordpatch.size import SizeGuard
from recordpatch.types import Record
from recordpatch.validation import JsonSchemaValidator, SchemaValidator

__all__ = [
    "__version__",
    "Record",
    "MergeRequest",
    "MergePipeline",
    "MergeResult",
    "RecordMerged",
    "MergeResponse",
    "ResultBuilder",
    "PatchFilter",
    "ConditionEvaluator",
    "PredicateEngine",
    "RqlPredicateEngine",
    "MergeApplier",
    "merge_patch",
    "SizeGuard",
    "EntityTag",
    "EntityTagCalculator",
    "SchemaValidator",
    "JsonSchemaValidator",
    "RecordPatchConfig",
    "parse_rql",
    "prop",
    "RqlSyntaxError",
    "ErrorKind",
    "RecordPatchError",
    "InvalidExpressionError",
    "InvalidPatchResultError",
    "SizeLimitExceededError",
    "SchemaValidationFailedError",
]
