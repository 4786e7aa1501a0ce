from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..edit.models import CellKey
from ..edit.session import TableEditSession
from ..formatting import NOT_SPECIFIED, format_cell

CHANGE_MARK = "✎"


@dataclass(frozen=True, slots=True)
class _ChangeLine:
    entity_label: str
    field_label: str
    original: str
    new: str


def _change_lines(session: TableEditSession) -> list[_ChangeLine]:
    lines: list[_ChangeLine] = []
    config = session.config
    for key, entry in session.snapshot().items():
        entity = session.entity(key.entity_id)
        item = session.schema.field(key.field_key)
        lines.append(
            _ChangeLine(
                entity_label=entity.label if entity is not None else key.entity_id,
                field_label=item.label,
                original=format_cell(
                    item,
                    entry.original_value,
                    date_format=config.date_format,
                    price_cents=config.price_cents,
                ),
                new=format_cell(
                    item,
                    entry.new_value,
                    date_format=config.date_format,
                    price_cents=config.price_cents,
                ),
            )
        )
    return lines


def render_changes(
    console: Console,
    session: TableEditSession,
    *,
    output_path: Path | None = None,
) -> None:
    console.print()
    console.print(Text("Pending Changes", style="bold"))

    lines = _change_lines(session)
    entities = len({key.entity_id for key in session.store})
    console.print(f"changes={len(lines)} entities={entities}", style="dim")
    if not lines:
        console.print("No pending changes.", style="dim")
        return

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Option", style="cyan", no_wrap=True)
    table.add_column("Field", style="white", no_wrap=True)
    table.add_column("Original", style="white")
    table.add_column("New", style="yellow")
    for line in lines:
        table.add_row(line.entity_label, line.field_label, line.original, line.new)

    console.print(table)
    if output_path is not None:
        console.print(f"changes={output_path}", style="dim")


def render_comparison(console: Console, session: TableEditSession, *, title: str) -> None:
    """Print the comparison with pending changes applied (one column per entity)."""

    console.print()
    console.print(Text(title, style="bold"))

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Field", style="cyan", no_wrap=True)
    for entity in session.entities:
        table.add_column(entity.label, style="white")

    for item in session.visible_fields:
        cells: list[Text] = []
        for entity in session.entities:
            key = CellKey(entity.entity_id, item.key)
            display = session.display_for(key)
            if session.is_changed(key):
                cells.append(Text(f"{CHANGE_MARK} {display}", style="yellow"))
            elif display == NOT_SPECIFIED:
                cells.append(Text(display, style="dim italic"))
            elif item.derived:
                cells.append(Text(display, style="bold"))
            else:
                cells.append(Text(display))
        table.add_row(item.label, *cells)

    console.print(table)
    console.print(f"pending_changes={session.change_count}", style="dim")
