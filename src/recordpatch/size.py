"""Size limits for merged records."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Callable

from recordpatch.config import DEFAULT_MAX_RECORD_SIZE
from recordpatch.errors import SizeLimitExceededError
from recordpatch.types import Record

logger = logging.getLogger(__name__)

# Longest escape for one character in JSON output ("\u001f")
_MAX_CHAR_WIDTH = 6
_MAX_FLOAT_WIDTH = 32


def upper_bound_size(value: Any) -> int:
    """Over-estimate the length of ``value`` serialized as compact JSON.

    Only string and container lengths are inspected, nothing is encoded.
    """
    if value is None or isinstance(value, bool):
        return 5
    if isinstance(value, int):
        # digits of |n| <= bit_length * log10(2) + 1, plus a sign
        return value.bit_length() * 30103 // 100000 + 2
    if isinstance(value, float):
        return _MAX_FLOAT_WIDTH
    if isinstance(value, str):
        return 2 + _MAX_CHAR_WIDTH * len(value)
    if isinstance(value, (list, tuple)):
        return 2 + sum(upper_bound_size(item) + 1 for item in value)
    if isinstance(value, dict):
        return 2 + sum(
            2 + _MAX_CHAR_WIDTH * len(str(key)) + 1 + upper_bound_size(item) + 1
            for key, item in value.items()
        )
    return _MAX_CHAR_WIDTH * len(str(value)) + 2


def exact_size(value: Any) -> int:
    """Length in characters of ``value`` serialized as compact JSON."""
    return len(json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str))


class SizeGuard:
    """Rejects records whose JSON form exceeds ``max_size``.

    The exact length is only computed when the cheap upper bound exceeds the
    limit.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_RECORD_SIZE) -> None:
        self.max_size = max_size

    def ensure_valid_size(
        self,
        upper_bound: Callable[[], int],
        exact: Callable[[], int],
        headers: Mapping[str, str] | None = None,
    ) -> None:
        if upper_bound() <= self.max_size:
            return
        size = exact()
        if size > self.max_size:
            logger.warning("Rejecting record of %d characters (limit %d)", size, self.max_size)
            raise SizeLimitExceededError(size, self.max_size, headers=dict(headers or {}))

    def check(self, record: Record, headers: Mapping[str, str] | None = None) -> None:
        document = record.to_json()
        self.ensure_valid_size(
            lambda: upper_bound_size(document),
            lambda: exact_size(document),
            headers,
        )
