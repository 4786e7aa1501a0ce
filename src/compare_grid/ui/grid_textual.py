from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rich.text import Text

from ..edit.cell import SELECT_PLACEHOLDER, EditorSpec
from ..edit.list_editor import ADD_INPUT
from ..edit.models import CellKey, Orientation
from ..edit.observer import GridObserver
from ..edit.session import TableEditSession
from .summary import CHANGE_MARK


@dataclass(frozen=True, slots=True)
class GridLayout:
    """Maps DataTable row/column keys to cell keys for either grid orientation."""

    orientation: Orientation
    rows: tuple[tuple[str, str], ...]
    columns: tuple[tuple[str, str], ...]

    @classmethod
    def from_session(cls, session: TableEditSession) -> GridLayout:
        entities = tuple((entity.entity_id, entity.label) for entity in session.entities)
        fields = tuple((item.key, item.label) for item in session.visible_fields)
        if session.config.orientation == "field":
            return cls(orientation="field", rows=fields, columns=entities)
        return cls(orientation="entity", rows=entities, columns=fields)

    def cell_for(self, row_key: str, column_key: str) -> CellKey:
        if self.orientation == "field":
            return CellKey(column_key, row_key)
        return CellKey(row_key, column_key)

    def position(self, cell_key: CellKey) -> tuple[str, str]:
        if self.orientation == "field":
            return (cell_key.field_key, cell_key.entity_id)
        return (cell_key.entity_id, cell_key.field_key)

    def coordinate(self, cell_key: CellKey) -> tuple[int, int] | None:
        row_key, column_key = self.position(cell_key)
        row_keys = [key for key, _label in self.rows]
        column_keys = [key for key, _label in self.columns]
        if row_key not in row_keys or column_key not in column_keys:
            return None
        return (row_keys.index(row_key), column_keys.index(column_key))


def cell_text(display: str, *, changed: bool) -> Text:
    text = display.replace("\n", "  ")
    if changed:
        return Text(f"{CHANGE_MARK} {text}", style="bold yellow")
    return Text(text)


def status_text(session: TableEditSession) -> str:
    mode = "on" if session.edit_mode else "off"
    active = session.active_cell
    editing = active.label if active is not None else "-"
    return f"Changes: {session.change_count} | Edit mode: {mode} | Editing: {editing}"


def build_grid_app(session: TableEditSession, *, title: str) -> Any:
    """Create the Textual grid host for `session` (not yet running).

    Textual is imported lazily so non-interactive commands stay lightweight.
    """

    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Horizontal, Vertical, VerticalScroll
    from textual.screen import ModalScreen
    from textual.widgets import Button, DataTable, Footer, Header, Input, Label, OptionList, Static
    from textual.widgets.option_list import Option

    _DIALOG_CSS = """
    {name} {{
        align: center middle;
    }}
    {name} > Vertical {{
        width: 72;
        height: auto;
        max-height: 90%;
        padding: 1 2;
        border: heavy $accent;
        background: $surface;
    }}
    """

    class _EditorScreen(ModalScreen[None]):
        def __init__(self, *, cell_key: CellKey, editor: EditorSpec, title: str) -> None:
            super().__init__()
            self.cell_key = cell_key
            self._spec = editor
            self._dialog_title = title

        @property
        def _cell(self) -> Any:
            return session.cell(self.cell_key)

        def action_cancel_edit(self) -> None:
            session.handle_key(self.cell_key, "escape")

    class _CellDialog(_EditorScreen):
        BINDINGS = [
            Binding("escape", "cancel_edit", "Cancel"),
            Binding("tab", "commit_next", "Next", priority=True),
            Binding("shift+tab", "commit_prev", "Prev", priority=True),
        ]
        CSS = _DIALOG_CSS.format(name="_CellDialog")

        def compose(self) -> ComposeResult:
            hints = {
                "date": "YYYY-MM-DD, empty clears",
                "number": "Zero or more, empty clears",
                "text": "",
            }
            yield Vertical(
                Label(self._dialog_title),
                Input(
                    value=self._spec.value,
                    type="number" if self._spec.kind == "number" else "text",
                    placeholder=hints.get(self._spec.kind, ""),
                    id="cell-input",
                ),
                Static("Enter/Tab=save  Shift+Tab=save+back  Esc=cancel", classes="dim"),
            )

        def on_mount(self) -> None:
            field = self.query_one("#cell-input", Input)
            field.focus()
            if self._spec.select_all:
                field.select_all()

        def on_input_changed(self, event: Input.Changed) -> None:
            self._cell.set_input(event.value)

        def on_input_submitted(self, event: Input.Submitted) -> None:
            event.stop()
            self._cell.set_input(event.value)
            session.handle_key(self.cell_key, "enter")

        def action_commit_next(self) -> None:
            session.handle_key(self.cell_key, "tab")

        def action_commit_prev(self) -> None:
            session.handle_key(self.cell_key, "shift+tab")

    class _OptionDialog(_EditorScreen):
        BINDINGS = [
            Binding("escape", "cancel_edit", "Cancel"),
            Binding("tab", "commit_next", "Next", priority=True),
            Binding("shift+tab", "commit_prev", "Prev", priority=True),
        ]
        CSS = _DIALOG_CSS.format(name="_OptionDialog")

        def compose(self) -> ComposeResult:
            options = [
                Option(value or SELECT_PLACEHOLDER, id=f"option-{idx}")
                for idx, value in enumerate(self._spec.options)
            ]
            yield Vertical(Label(self._dialog_title), OptionList(*options, id="options"))

        def on_mount(self) -> None:
            option_list = self.query_one("#options", OptionList)
            option_list.focus()
            if self._spec.value in self._spec.options:
                option_list.highlighted = self._spec.options.index(self._spec.value)

        def on_option_list_option_highlighted(self, event: OptionList.OptionHighlighted) -> None:
            self._cell.set_input(self._spec.options[event.option_index])

        def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
            event.stop()
            self._cell.choose_option(self._spec.options[event.option_index])

        def action_commit_next(self) -> None:
            session.handle_key(self.cell_key, "tab")

        def action_commit_prev(self) -> None:
            session.handle_key(self.cell_key, "shift+tab")

    class _ListDialog(_EditorScreen):
        BINDINGS = [Binding("escape", "cancel_edit", "Cancel")]
        CSS = (
            _DIALOG_CSS.format(name="_ListDialog")
            + """
        _ListDialog #items {
            height: auto;
            max-height: 16;
        }
        _ListDialog .item-row, _ListDialog #add-row, _ListDialog #list-buttons {
            height: auto;
        }
        _ListDialog .item-input, _ListDialog #new-item {
            width: 1fr;
        }
        """
        )

        @property
        def _items_editor(self) -> Any:
            return self._spec.list_editor

        def compose(self) -> ComposeResult:
            yield Vertical(
                Label(self._dialog_title),
                VerticalScroll(id="items"),
                Horizontal(
                    Input(placeholder="Add new item...", id="new-item"),
                    Button("+", id="add-item", variant="success"),
                    id="add-row",
                ),
                Horizontal(
                    Button("Cancel", id="list-cancel"),
                    Button("Done", id="list-done", variant="primary"),
                    id="list-buttons",
                ),
            )

        async def on_mount(self) -> None:
            await self._render_items()
            self._apply_focus()

        async def _render_items(self) -> None:
            container = self.query_one("#items", VerticalScroll)
            await container.remove_children()
            rows = [
                Horizontal(
                    Input(value=value, id=f"item-{idx}", classes="item-input"),
                    Button("🗑", id=f"remove-{idx}", classes="remove-item"),
                    classes="item-row",
                )
                for idx, value in self._items_editor.rows
            ]
            if rows:
                await container.mount_all(rows)

        def _apply_focus(self) -> None:
            target = self._items_editor.focus
            if target == ADD_INPUT:
                self.query_one("#new-item", Input).focus()
            else:
                self.query_one(f"#item-{target}", Input).focus()

        async def _add_from_input(self) -> None:
            new_input = self.query_one("#new-item", Input)
            if self._items_editor.add_item(new_input.value):
                new_input.value = ""
                await self._render_items()
            self._apply_focus()

        def on_input_changed(self, event: Input.Changed) -> None:
            input_id = event.input.id or ""
            if input_id == "new-item":
                self._items_editor.new_item_text = event.value
            elif input_id.startswith("item-"):
                idx = int(input_id.removeprefix("item-"))
                if idx < len(self._items_editor.items):
                    self._items_editor.edit_item(idx, event.value)

        async def on_input_submitted(self, event: Input.Submitted) -> None:
            event.stop()
            input_id = event.input.id or ""
            if input_id == "new-item":
                await self._add_from_input()
            elif input_id.startswith("item-"):
                self._items_editor.item_submitted(int(input_id.removeprefix("item-")))
                self._apply_focus()

        async def on_button_pressed(self, event: Button.Pressed) -> None:
            event.stop()
            button_id = event.button.id or ""
            if button_id == "add-item":
                await self._add_from_input()
            elif button_id.startswith("remove-"):
                self._items_editor.remove_item(int(button_id.removeprefix("remove-")))
                await self._render_items()
                self._apply_focus()
            elif button_id == "list-done":
                self._items_editor.commit()
            elif button_id == "list-cancel":
                self._items_editor.cancel()

    class _GridApp(App[None]):
        BINDINGS = [
            Binding("e", "toggle_edit_mode", "Edit Mode"),
            Binding("ctrl+r", "revert_all", "Revert All"),
            Binding("q", "quit", "Quit"),
        ]
        CSS = """
        Screen {
            background: #2e3436;
            color: #eeeeec;
        }
        #grid {
            height: 1fr;
            border: round #729fcf;
        }
        #status {
            height: 1;
            padding: 0 1;
            color: #fce94f;
            background: #555753;
        }
        """

        def __init__(self) -> None:
            super().__init__()
            self.title = title
            self.session = session
            self.grid_layout = GridLayout.from_session(session)

        def compose(self) -> ComposeResult:
            yield Header(show_clock=False)
            yield DataTable(id="grid")
            yield Static("", id="status")
            yield Footer()

        def on_mount(self) -> None:
            table = self.query_one("#grid", DataTable)
            table.cursor_type = "cell"
            for key, label in self.grid_layout.columns:
                table.add_column(label, key=key)
            for row_key, row_label in self.grid_layout.rows:
                cells = []
                for column_key, _label in self.grid_layout.columns:
                    cell_key = self.grid_layout.cell_for(row_key, column_key)
                    cells.append(
                        cell_text(
                            session.display_for(cell_key),
                            changed=session.is_changed(cell_key),
                        )
                    )
                table.add_row(*cells, key=row_key, label=row_label)
            session.attach(_AppObserver(self))
            self._update_status()
            table.focus()

        def _update_status(self) -> None:
            self.query_one("#status", Static).update(status_text(session))

        def paint_cell(self, cell_key: CellKey, display: str, *, changed: bool) -> None:
            if self.grid_layout.coordinate(cell_key) is None:
                return
            row_key, column_key = self.grid_layout.position(cell_key)
            table = self.query_one("#grid", DataTable)
            table.update_cell(row_key, column_key, cell_text(display, changed=changed))

        def open_editor(self, cell_key: CellKey, editor: EditorSpec) -> None:
            coordinate = self.grid_layout.coordinate(cell_key)
            if coordinate is not None:
                table = self.query_one("#grid", DataTable)
                table.move_cursor(row=coordinate[0], column=coordinate[1])
            entity = session.entity(cell_key.entity_id)
            entity_label = entity.label if entity is not None else cell_key.entity_id
            dialog_title = f"{session.schema.field(cell_key.field_key).label} ({entity_label})"
            screen_cls: type[_EditorScreen]
            if editor.kind == "list":
                screen_cls = _ListDialog
            elif editor.kind == "select":
                screen_cls = _OptionDialog
            else:
                screen_cls = _CellDialog
            self.push_screen(screen_cls(cell_key=cell_key, editor=editor, title=dialog_title))
            self._update_status()

        def close_editor(self, cell_key: CellKey) -> None:
            screen = self.screen
            if isinstance(screen, _EditorScreen) and screen.cell_key == cell_key:
                self.pop_screen()
            self._update_status()

        def on_data_table_cell_selected(self, event: DataTable.CellSelected) -> None:
            row_key = event.cell_key.row_key.value
            column_key = event.cell_key.column_key.value
            if row_key is None or column_key is None:
                return
            cell_key = self.grid_layout.cell_for(str(row_key), str(column_key))
            if not session.edit_mode:
                self.notify("Edit mode is off (press e).", severity="warning")
                return
            if session.schema.field(cell_key.field_key).derived:
                self.notify("Calculated fields update automatically.")
                return
            session.activate(cell_key)

        def action_toggle_edit_mode(self) -> None:
            session.edit_mode = not session.edit_mode
            self._update_status()

        def action_revert_all(self) -> None:
            reverted = session.revert_all()
            self.notify(f"Reverted {reverted} changes.")

    class _AppObserver(GridObserver):
        def __init__(self, grid_app: _GridApp) -> None:
            self._app = grid_app

        def cell_rendered(self, cell_key: CellKey, *, display: str, changed: bool) -> None:
            self._app.paint_cell(cell_key, display, changed=changed)

        def derived_rendered(self, cell_key: CellKey, *, display: str) -> None:
            self._app.paint_cell(cell_key, display, changed=False)

        def editor_opened(self, cell_key: CellKey, editor: EditorSpec) -> None:
            self._app.open_editor(cell_key, editor)

        def editor_closed(self, cell_key: CellKey) -> None:
            self._app.close_editor(cell_key)

        def changes_counted(self, count: int) -> None:
            _ = count
            self._app._update_status()

    return _GridApp()


def run_grid_editor(session: TableEditSession, *, title: str) -> None:
    """Run the interactive grid until the user quits; edits stay in `session`."""

    build_grid_app(session, title=title).run()
