"""JSON merge patch (RFC 7396) scoped to a path, and the record merge step."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from datetime import datetime

from recordpatch.errors import InvalidPatchResultError
from recordpatch.pointer import JsonValue, wrap_at
from recordpatch.types import Record

logger = logging.getLogger(__name__)


def merge_patch(target: JsonValue, patch: JsonValue) -> JsonValue:
    """Apply ``patch`` to ``target`` following RFC 7396.

    Objects merge key by key, ``None`` removes a key and any other value
    replaces the target wholesale. Neither argument is modified.
    """
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = dict(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = merge_patch(result.get(key), value)
    return result


def merge_patch_at(document: JsonValue, path: str, value: JsonValue) -> JsonValue:
    """Apply ``value`` as a merge patch at ``path`` inside ``document``."""
    return merge_patch(document, wrap_at(path, value))


class MergeApplier:
    """Merges a (filtered) payload into a record and re-validates the result."""

    def apply(
        self,
        record: Record,
        path: str,
        payload: JsonValue,
        next_revision: int,
        timestamp: datetime,
        headers: Mapping[str, str] | None = None,
    ) -> Record:
        headers = dict(headers or {})
        try:
            merged_json = merge_patch_at(record.to_json(), path, payload)
            if not isinstance(merged_json, dict):
                raise ValueError(
                    f"Merging at '{path}' produced a {type(merged_json).__name__}, not an object"
                )
            if merged_json.get("id") != record.id:
                raise ValueError(f"The id of record '{record.id}' cannot be changed by a merge")
            merged_json["_revision"] = next_revision
            merged_json["_modified"] = timestamp
            logger.debug("Result of JSON merge: %s", merged_json)
            merged = Record.from_json(merged_json)
        except (ValueError, TypeError, KeyError) as e:
            raise InvalidPatchResultError(str(e), headers=headers) from e
        logger.debug("Record created from merged JSON: %r", merged)
        return merged
