from __future__ import annotations

import json
import logging
from collections.abc import Callable
from importlib import resources
from pathlib import Path

import typer
from rich.console import Console

from . import __version__
from .document import (
    Comparison,
    DocumentError,
    comparison_from_dict,
    load_change_set,
    load_comparison,
    write_change_set,
)
from .edit.session import EditConfig, TableEditSession
from .formatting import DATE_FORMATS
from .schema.fields import GridSchema, SchemaError
from .schema.trip import trip_schema
from .ui.grid_textual import run_grid_editor
from .ui.summary import render_changes, render_comparison

SCHEMA_PRESETS: dict[str, Callable[[], GridSchema]] = {"trip": trip_schema}
_ORIENTATIONS = ("entity", "field")
_LOG_LEVELS = ("debug", "info", "warning", "error")

app = typer.Typer(
    add_completion=False,
    invoke_without_command=True,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _load_default_comparison_text() -> tuple[str | None, str | None]:
    """Load the bundled sample comparison JSON text."""

    try:
        resource = resources.files("compare_grid.fixtures").joinpath(
            "sample_trip_comparison.json"
        )
        return (resource.read_text(encoding="utf-8"), "packaged:sample_trip_comparison.json")
    except Exception:
        fallback = Path(__file__).resolve().parent / "fixtures" / "sample_trip_comparison.json"
        if fallback.exists():
            try:
                return (fallback.read_text(encoding="utf-8"), str(fallback))
            except OSError:
                return (None, None)
        return (None, None)


def _configure_logging(log_file: Path | None, level: str) -> None:
    if log_file is None:
        return
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    package_logger = logging.getLogger("compare_grid")
    package_logger.addHandler(handler)
    package_logger.setLevel(level.upper())


def _resolve_schema(name: str) -> GridSchema:
    factory = SCHEMA_PRESETS.get(name.strip().lower())
    if factory is None:
        typer.echo(
            f"Unknown --schema {name!r}. Expected one of: {', '.join(sorted(SCHEMA_PRESETS))}.",
            err=True,
        )
        raise typer.Exit(2)
    try:
        return factory()
    except SchemaError as exc:
        typer.echo(f"Invalid schema {name!r}: {exc}", err=True)
        raise typer.Exit(2) from exc


def _load_document(file: Path | None) -> Comparison:
    if file is None:
        text, origin = _load_default_comparison_text()
        if text is None:
            typer.echo("Bundled sample not found: sample_trip_comparison.json", err=True)
            raise typer.Exit(2)
        try:
            return comparison_from_dict(json.loads(text))
        except (json.JSONDecodeError, DocumentError) as exc:
            typer.echo(f"Invalid comparison document: {origin} ({exc})", err=True)
            raise typer.Exit(2) from exc

    if not file.exists():
        typer.echo(f"Comparison not found: {file}", err=True)
        raise typer.Exit(2)
    try:
        return load_comparison(file)
    except DocumentError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(2) from exc


def _apply_change_file(session: TableEditSession, path: Path) -> None:
    if not path.exists():
        typer.echo(f"Change set not found: {path}", err=True)
        raise typer.Exit(2)
    try:
        changes = load_change_set(path)
    except DocumentError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(2) from exc
    applied = session.apply_changes(changes)
    if applied < len(changes):
        typer.echo(f"Warning: applied {applied} of {len(changes)} changes from {path}", err=True)


def _build_session(
    *,
    file: Path | None,
    schema_name: str,
    config: EditConfig,
) -> tuple[Comparison, TableEditSession]:
    schema = _resolve_schema(schema_name)
    comparison = _load_document(file)
    return comparison, TableEditSession(schema, comparison.entities, config=config)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Print version and exit.",
        is_eager=True,
    ),
) -> None:
    if version:
        typer.echo(f"compare-grid {__version__}")
        raise typer.Exit(0)


@app.command()
def edit(
    file: Path | None = typer.Option(  # noqa: B008
        None,
        "--file",
        help="Comparison JSON document (default: bundled trip sample).",
    ),
    schema: str = typer.Option(  # noqa: B008
        "trip",
        "--schema",
        help="Field schema preset.",
    ),
    changes: Path | None = typer.Option(  # noqa: B008
        None,
        "--changes",
        help="Change set JSON to re-apply before editing.",
    ),
    changes_out: Path | None = typer.Option(  # noqa: B008
        None,
        "--changes-out",
        help="Write pending changes to this JSON file on exit.",
    ),
    read_only: bool = typer.Option(  # noqa: B008
        False,
        "--read-only",
        help="Start with edit mode off (toggle with 'e').",
    ),
    orientation: str = typer.Option(  # noqa: B008
        "entity",
        "--orientation",
        help="Grid rows: 'entity' (one row per option) or 'field' (one row per field).",
    ),
    date_format: str = typer.Option(  # noqa: B008
        "MM/DD/YYYY",
        "--date-format",
        help=f"Date display format: {', '.join(DATE_FORMATS)}.",
    ),
    price_cents: bool = typer.Option(  # noqa: B008
        False,
        "--price-cents",
        help="Show prices with cents.",
    ),
    log_file: Path | None = typer.Option(  # noqa: B008
        None,
        "--log-file",
        help="Write diagnostic logs to this file.",
    ),
    log_level: str = typer.Option(  # noqa: B008
        "info",
        "--log-level",
        help=f"Log level for --log-file: {', '.join(_LOG_LEVELS)}.",
    ),
) -> None:
    """Edit a comparison in a fullscreen Textual grid."""

    orientation = orientation.strip().lower()
    if orientation not in _ORIENTATIONS:
        typer.echo(f"Invalid --orientation {orientation!r}. Expected entity or field.", err=True)
        raise typer.Exit(2)
    if date_format not in DATE_FORMATS:
        typer.echo(
            f"Invalid --date-format {date_format!r}. Expected one of: {', '.join(DATE_FORMATS)}.",
            err=True,
        )
        raise typer.Exit(2)
    if log_level.strip().lower() not in _LOG_LEVELS:
        typer.echo(f"Invalid --log-level {log_level!r}.", err=True)
        raise typer.Exit(2)
    _configure_logging(log_file, log_level.strip().lower())

    config = EditConfig(
        edit_mode=not read_only,
        orientation="field" if orientation == "field" else "entity",
        date_format=date_format,
        price_cents=price_cents,
    )
    comparison, session = _build_session(file=file, schema_name=schema, config=config)
    if changes is not None:
        _apply_change_file(session, changes)

    if not Console().is_terminal:
        console = Console(stderr=True)
        render_comparison(console, session, title=comparison.title)
        typer.echo("Grid editor requires a TTY terminal.", err=True)
        raise typer.Exit(0)

    run_grid_editor(session, title=comparison.title)
    session.release_editor()

    if changes_out is not None:
        write_change_set(changes_out, session.snapshot())
    render_changes(Console(), session, output_path=changes_out)


@app.command()
def show(
    file: Path | None = typer.Option(  # noqa: B008
        None,
        "--file",
        help="Comparison JSON document (default: bundled trip sample).",
    ),
    changes: Path | None = typer.Option(  # noqa: B008
        None,
        "--changes",
        help="Change set JSON to apply before printing.",
    ),
    schema: str = typer.Option(  # noqa: B008
        "trip",
        "--schema",
        help="Field schema preset.",
    ),
    price_cents: bool = typer.Option(  # noqa: B008
        False,
        "--price-cents",
        help="Show prices with cents.",
    ),
) -> None:
    """Print the comparison (with an optional change set applied) and its pending changes."""

    comparison, session = _build_session(
        file=file,
        schema_name=schema,
        config=EditConfig(edit_mode=False, price_cents=price_cents),
    )
    if changes is not None:
        _apply_change_file(session, changes)

    console = Console()
    render_comparison(console, session, title=comparison.title)
    render_changes(console, session)
