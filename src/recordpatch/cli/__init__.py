"""recordpatch CLI: apply conditional merges to record files."""

from __future__ import annotations

import logging

import typer

from recordpatch.cli import apply, check

app = typer.Typer(
    name="recordpatch",
    help="recordpatch CLI: apply conditional merge patches to JSON records.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("recordpatch")
        except Exception:
            v = "unknown"
        print(f"recordpatch {v}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline steps to stderr"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all recordpatch commands."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


app.command(name="apply")(apply.apply_cmd)
app.command(name="check")(check.check_cmd)


def main() -> None:
    """Entry point for the recordpatch CLI."""
    app()
