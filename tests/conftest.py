"""Shared test fixtures for recordpatch tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from recordpatch import MergeRequest, Record

TS = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
HEADERS = {"correlation-id": "corr-1"}


@pytest.fixture
def record():
    """The record used by most scenarios: {a: 1, b: 2} at revision 4."""
    return Record(
        id="r1",
        revision=4,
        modified=datetime(2024, 4, 1, tzinfo=timezone.utc),
        created=datetime(2024, 1, 1, tzinfo=timezone.utc),
        fields={"a": 1, "b": 2},
    )


@pytest.fixture
def nested_record():
    return Record(
        id="thing-1",
        revision=1,
        fields={
            "attributes": {"color": "red", "size": 3, "tags": ["x", "y"]},
            "features": {"lamp": {"properties": {"on": False, "level": 10}}},
        },
    )


@pytest.fixture
def ts():
    return TS


@pytest.fixture
def headers():
    return dict(HEADERS)


def make_request(**kwargs):
    data = {"record_id": "r1", "path": "/", "headers": dict(HEADERS)}
    data.update(kwargs)
    return MergeRequest(**data)


@pytest.fixture
def request_factory():
    return make_request
