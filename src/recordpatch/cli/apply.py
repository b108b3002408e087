"""recordpatch apply: run a conditional merge against a record file."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

import typer

from recordpatch.cli import _exitcodes as ec
from recordpatch.cli._loader import load_document, load_record, parse_headers, parse_json_option
from recordpatch.cli._output import FORMATS, print_error, print_object
from recordpatch.commands import MergeRequest
from recordpatch.config import RecordPatchConfig
from recordpatch.pipeline import MergePipeline
from recordpatch.placeholders import utc_now
from recordpatch.validation import JsonSchemaValidator


def apply_cmd(
    record_file: str = typer.Option(..., "--record", "-r", help="Record file (JSON or YAML)"),
    payload: str = typer.Option(..., "--payload", "-p", help="Merge payload as JSON"),
    path: str = typer.Option("/", "--path", help="Target path inside the record"),
    conditions: Optional[str] = typer.Option(
        None, "--conditions", help="Patch conditions as a JSON object of path -> RQL"
    ),
    revision: Optional[int] = typer.Option(
        None, "--revision", help="Next revision (default: current revision + 1)"
    ),
    timestamp: Optional[str] = typer.Option(
        None, "--timestamp", help="Event timestamp, ISO-8601 (default: now)"
    ),
    schema_file: Optional[str] = typer.Option(
        None, "--schema", help="JSON schema file the merged record must satisfy"
    ),
    max_size: Optional[int] = typer.Option(
        None,
        "--max-size",
        envvar="RECORDPATCH_MAX_RECORD_SIZE",
        help="Maximum size of the merged record",
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header KEY=VALUE (repeatable)"
    ),
    fmt: str = typer.Option("json", "--format", help="Output format: json or yaml"),
) -> None:
    """Merge a payload into a record and print the resulting event and response."""
    if fmt not in FORMATS:
        print_error(f"Unknown format '{fmt}'. Valid formats: {', '.join(FORMATS)}")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        record = load_record(record_file)
        value = parse_json_option("--payload", payload)
        patch_conditions = parse_json_option("--conditions", conditions) if conditions else None
        headers = parse_headers(header)
        event_ts = datetime.fromisoformat(timestamp) if timestamp else utc_now()
        validator = JsonSchemaValidator(load_document(schema_file)) if schema_file else None
        request = MergeRequest(
            record_id=record.id,
            path=path,
            value=value,
            patch_conditions=patch_conditions,
            headers=headers,
        )
        if max_size is not None:
            config = RecordPatchConfig(max_record_size=max_size)
        else:
            config = RecordPatchConfig.from_env()
    except (OSError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(ec.GENERAL_ERROR)

    pipeline = MergePipeline(config, validator=validator)
    next_revision = revision if revision is not None else record.revision + 1
    result = asyncio.run(pipeline.apply(request, record, next_revision, event_ts))

    if result.error is not None:
        print_object(result.error.to_dict(), fmt=fmt)
        raise typer.Exit(ec.REJECTED)

    event, response = result.unwrap()
    print_object({"event": event.to_dict(), "response": response.to_dict()}, fmt=fmt)
