"""Placeholder resolution for predicate values."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from recordpatch.filters import Placeholder
from recordpatch.rql import PLACEHOLDER_RE

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimePlaceholder:
    """Resolves ``time:now`` and ``time:now_epoch_millis`` with optional offsets.

    ``time:now`` becomes an ISO-8601 string so it compares with the record's
    ``_modified``/``_created`` values; ``time:now_epoch_millis`` becomes an int.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or utc_now

    def __call__(self, placeholder: Placeholder) -> str | int:
        m = PLACEHOLDER_RE.match(placeholder.name)
        if m is None:
            raise ValueError(f"Unsupported placeholder '{placeholder.name}'")
        kind, sign, amount, unit = m.groups()
        now = self._clock()
        if sign:
            try:
                delta = timedelta(seconds=int(amount) * _UNIT_SECONDS[unit])
                now = now + delta if sign == "+" else now - delta
            except OverflowError as e:
                raise ValueError(f"Placeholder offset out of range in '{placeholder.name}'") from e
        if kind == "now_epoch_millis":
            return int(now.timestamp() * 1000)
        return now.isoformat()
