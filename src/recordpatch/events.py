"""Change events and responses produced by a successful merge."""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from recordpatch.commands import MergeRequest
from recordpatch.etags import EntityTag, EntityTagCalculator
from recordpatch.pointer import JsonValue
from recordpatch.types import Record

logger = logging.getLogger(__name__)


def _derive_event_type(class_name: str) -> str:
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1.\2", class_name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1.\2", s1).lower()


@dataclass(frozen=True)
class RecordMerged:
    """Event recording that ``value`` was merged into a record at ``path``.

    ``value`` is the filtered payload, not the merged record, so consumers see
    exactly what changed.
    """

    __event_type__: ClassVar[str] = _derive_event_type("RecordMerged")

    record_id: str
    path: str
    value: JsonValue
    revision: int
    timestamp: datetime
    headers: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, Any] | None = None

    @property
    def event_type(self) -> str:
        return self.__event_type__

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.event_type,
            "record_id": self.record_id,
            "path": self.path,
            "value": self.value,
            "revision": self.revision,
            "timestamp": self.timestamp.isoformat(),
            "headers": dict(self.headers),
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data


@dataclass(frozen=True)
class MergeResponse:
    """Response to a successful merge."""

    record_id: str
    path: str
    revision: int
    headers: dict[str, str] = field(default_factory=dict)
    entity_tag: EntityTag | None = None
    previous_entity_tag: EntityTag | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "path": self.path,
            "revision": self.revision,
            "headers": dict(self.headers),
            "etag": str(self.entity_tag) if self.entity_tag else None,
            "previous_etag": str(self.previous_entity_tag) if self.previous_entity_tag else None,
        }


class ResultBuilder:
    """Builds the event and the response for a validated merge."""

    def __init__(self, entity_tags: EntityTagCalculator | None = None) -> None:
        self._entity_tags = entity_tags or EntityTagCalculator()

    def previous_entity_tag(self, request: MergeRequest, previous: Record | None) -> EntityTag | None:
        return self._entity_tags(request.path, previous)

    def next_entity_tag(self, request: MergeRequest, merged: Record) -> EntityTag | None:
        return self._entity_tags(request.path, merged)

    def build(
        self,
        request: MergeRequest,
        previous: Record | None,
        merged: Record,
        filtered_payload: JsonValue,
        next_revision: int,
        timestamp: datetime,
    ) -> tuple[RecordMerged, MergeResponse]:
        event = RecordMerged(
            record_id=request.record_id,
            path=request.path,
            value=copy.deepcopy(filtered_payload),
            revision=next_revision,
            timestamp=timestamp,
            headers=dict(request.headers),
            metadata=copy.deepcopy(request.metadata),
        )

        entity_tag = self.next_entity_tag(request, merged)
        headers = dict(request.headers)
        if entity_tag is not None:
            headers["etag"] = str(entity_tag)
        response = MergeResponse(
            record_id=request.record_id,
            path=request.path,
            revision=next_revision,
            headers=headers,
            entity_tag=entity_tag,
            previous_entity_tag=self.previous_entity_tag(request, previous),
        )
        logger.info(
            "Record '%s' merged at '%s' (revision %d)",
            request.record_id,
            request.path,
            next_revision,
        )
        return event, response
