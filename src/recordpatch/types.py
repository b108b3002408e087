"""Record type and JSON value helpers for recordpatch."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recordpatch.pointer import MISSING, JsonValue, get_value


def check_json_value(value: Any, path: str = "") -> None:
    """Raise ValueError if ``value`` is not a plain JSON value."""
    if value is None or isinstance(value, (str, bool, int)):
        return
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Non-finite number at '{path or '/'}' is not valid JSON")
        return
    if isinstance(value, list):
        for i, item in enumerate(value):
            check_json_value(item, f"{path}/{i}")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"Object key {key!r} at '{path or '/'}' must be a string")
            check_json_value(item, f"{path}/{key}")
        return
    raise ValueError(f"Value of type {type(value).__name__} at '{path or '/'}' is not JSON")


class Record(BaseModel):
    """An immutable, versioned JSON document.

    The full JSON view places the user fields next to ``id`` and the special
    ``_revision``/``_modified``/``_created`` fields::

        {"id": "r1", "color": "red", "_revision": 3, "_modified": "..."}
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    revision: int = Field(default=0, ge=0)
    modified: datetime | None = None
    created: datetime | None = None
    fields: dict[str, Any] = Field(default_factory=dict)

    @field_validator("fields")
    @classmethod
    def _check_fields(cls, value: dict[str, Any]) -> dict[str, Any]:
        for key, item in value.items():
            if not key:
                raise ValueError("Field names must not be empty")
            if key == "id" or key.startswith("_"):
                raise ValueError(f"Field name '{key}' is reserved")
            check_json_value(item, f"/{key}")
        return value

    def to_json(self) -> dict[str, JsonValue]:
        """Return the full JSON view, including special fields."""
        data: dict[str, JsonValue] = {"id": self.id}
        data.update(self.fields)
        data["_revision"] = self.revision
        if self.modified is not None:
            data["_modified"] = self.modified.isoformat()
        if self.created is not None:
            data["_created"] = self.created.isoformat()
        return data

    @classmethod
    def from_json(cls, document: Any) -> Record:
        """Parse a full JSON view back into a Record."""
        if not isinstance(document, dict):
            raise ValueError(f"Record JSON must be an object, got {type(document).__name__}")
        data = dict(document)
        record_id = data.pop("id", None)
        if not isinstance(record_id, str):
            raise ValueError("Record JSON must contain a string 'id'")
        revision = data.pop("_revision", 0)
        modified = data.pop("_modified", None)
        created = data.pop("_created", None)
        reserved = sorted(k for k in data if k.startswith("_"))
        if reserved:
            raise ValueError(f"Unknown special fields: {reserved}")
        return cls(id=record_id, revision=revision, modified=modified, created=created, fields=data)

    def value_at(self, path: str | tuple[str, ...]) -> JsonValue:
        """Return the value at ``path`` of the full JSON view, or MISSING."""
        return get_value(self.to_json(), path)

    def has_value(self, path: str | tuple[str, ...]) -> bool:
        return self.value_at(path) is not MISSING
