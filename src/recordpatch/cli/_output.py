"""Output formatting helpers for the CLI."""

from __future__ import annotations

import json
import sys
from typing import Any

import yaml

FORMATS = ("json", "yaml")


def print_object(data: dict[str, Any], *, fmt: str = "json") -> None:
    """Print a single object as JSON or YAML."""
    if fmt == "yaml":
        print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), end="")
        return
    print(json.dumps(data, indent=2, default=str))


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {msg}", file=sys.stderr)
