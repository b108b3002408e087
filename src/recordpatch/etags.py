"""Entity tags for conditional requests."""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass

from recordpatch.pointer import MISSING, parse_pointer
from recordpatch.types import Record

_ETAG_RE = re.compile(r'^(W/)?"([^"]*)"$')


@dataclass(frozen=True)
class EntityTag:
    """An opaque validator as used in ETag / If-Match headers (RFC 7232)."""

    value: str
    weak: bool = False

    def __str__(self) -> str:
        prefix = "W/" if self.weak else ""
        return f'{prefix}"{self.value}"'

    @classmethod
    def parse(cls, text: str) -> EntityTag:
        m = _ETAG_RE.match(text.strip())
        if m is None:
            raise ValueError(f"Invalid entity tag: {text!r}")
        return cls(value=m.group(2), weak=m.group(1) is not None)

    def strong_match(self, other: EntityTag) -> bool:
        return not self.weak and not other.weak and self.value == other.value

    def weak_match(self, other: EntityTag) -> bool:
        return self.value == other.value


class EntityTagCalculator:
    """Computes the entity tag of the resource at a path of a record.

    The root resource is tagged by revision, sub-resources by a hash of their
    canonical JSON. Absent resources have no tag.
    """

    def __call__(self, path: str, record: Record | None) -> EntityTag | None:
        if record is None:
            return None
        if not parse_pointer(path):
            return EntityTag(f"rev:{record.revision}")
        value = record.value_at(path)
        if value is MISSING:
            return None
        canonical = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        digest = hashlib.sha1(canonical.encode("utf-8")).hexdigest()
        return EntityTag(f"hash:{digest}")
