"""Loading records and JSON arguments for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from recordpatch.types import Record


def load_document(path: str) -> Any:
    """Load a JSON or YAML document; ``.yaml``/``.yml`` files are read as YAML."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(text)
    return json.loads(text)


def load_record(path: str) -> Record:
    """Load a record from its full JSON view stored in a file."""
    return Record.from_json(load_document(path))


def parse_json_option(name: str, text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"{name} is not valid JSON: {e.msg}") from e


def parse_headers(values: list[str] | None) -> dict[str, str]:
    """Parse repeated ``KEY=VALUE`` options into a headers dict."""
    headers: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Header must be KEY=VALUE, got '{item}'")
        headers[key.strip().lower()] = value.strip()
    return headers
