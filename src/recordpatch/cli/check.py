"""recordpatch check: evaluate a patch condition against a record file."""

from __future__ import annotations

import typer

from recordpatch.cli import _exitcodes as ec
from recordpatch.cli._loader import load_record
from recordpatch.cli._output import FORMATS, print_error, print_object
from recordpatch.conditions import ConditionEvaluator
from recordpatch.errors import InvalidExpressionError


def check_cmd(
    expression: str = typer.Argument(..., help="RQL predicate, e.g. 'eq(attributes/color,\"red\")'"),
    record_file: str = typer.Option(..., "--record", "-r", help="Record file (JSON or YAML)"),
    fmt: str = typer.Option("json", "--format", help="Output format: json or yaml"),
) -> None:
    """Evaluate a predicate against the current state of a record."""
    if fmt not in FORMATS:
        print_error(f"Unknown format '{fmt}'. Valid formats: {', '.join(FORMATS)}")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        record = load_record(record_file)
    except (OSError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(ec.GENERAL_ERROR)

    try:
        matches = ConditionEvaluator().evaluate(record, expression)
    except InvalidExpressionError as e:
        print_object(e.to_dict(), fmt=fmt)
        raise typer.Exit(ec.REJECTED)

    print_object({"record_id": record.id, "expression": expression, "matches": matches}, fmt=fmt)
