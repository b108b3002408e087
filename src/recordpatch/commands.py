"""The merge command accepted by the pipeline."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recordpatch.pointer import normalize_pointer
from recordpatch.types import check_json_value


class MergeRequest(BaseModel):
    """Request to merge ``value`` into the record at ``path``.

    ``patch_conditions`` maps pointers relative to ``value`` to RQL
    predicates; its insertion order is the evaluation order.
    """

    model_config = ConfigDict(frozen=True)

    record_id: str = Field(min_length=1)
    path: str = "/"
    value: Any
    patch_conditions: dict[str, str] | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, Any] | None = None

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        return normalize_pointer(value)

    @field_validator("value")
    @classmethod
    def _check_value(cls, value: Any) -> Any:
        check_json_value(value)
        return value
