"""Shared fixtures for CLI tests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from recordpatch.cli import app

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def record_file(tmp_path):
    """A record file holding {a: 1, b: 2} at revision 4."""
    path = tmp_path / "record.json"
    path.write_text(
        json.dumps({"id": "r1", "a": 1, "b": 2, "_revision": 4}),
        encoding="utf-8",
    )
    return str(path)


def invoke(runner: CliRunner, args: list[str]) -> "Result":
    return runner.invoke(app, args, catch_exceptions=False)
