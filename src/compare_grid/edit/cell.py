from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from ..formatting import format_cell
from ..schema.fields import FieldSchema
from ..values import ValueValidationError, to_raw, validate_raw_value, values_equal
from .list_editor import ListValueEditor
from .models import CellKey, EditingState, NavigationKey

if TYPE_CHECKING:
    from .session import TableEditSession

logger = logging.getLogger(__name__)

EditorKind = Literal["text", "number", "date", "select", "list"]

SELECT_PLACEHOLDER = "-- Select --"


@dataclass(frozen=True, slots=True)
class EditorSpec:
    """Render-agnostic description of the input a host should show for an editing cell."""

    kind: EditorKind
    value: str
    options: tuple[str, ...] = ()
    minimum: float | None = None
    select_all: bool = False
    list_editor: ListValueEditor | None = None


def _numeric_prefill(value: str, *, price: bool) -> str:
    if price:
        value = "".join(ch for ch in value if ch.isdigit() or ch in ".-")
    return value or "0"


class CellController:
    """Per-cell edit state machine: `viewing -> editing -> viewing`.

    A controller is owned by its session, which supplies the change store, the edit-mode
    flag, the recalculator, navigation and the host observer.
    """

    def __init__(
        self,
        *,
        cell_key: CellKey,
        field: FieldSchema,
        original_value: object,
        session: TableEditSession,
    ) -> None:
        self._key = cell_key
        self._field = field
        self._session = session
        self._original = to_raw(original_value)
        self._current = self._original
        self._state: EditingState = "viewing"
        self._editor: EditorSpec | None = None
        self._input_value = ""
        self._display_before_edit = ""

        entry = session.store.get(cell_key)
        if entry is not None:
            self._current = entry.new_value
        self._display = self._format(self._current)

    @property
    def cell_key(self) -> CellKey:
        return self._key

    @property
    def field(self) -> FieldSchema:
        return self._field

    @property
    def original_value(self) -> str:
        return self._original

    @property
    def current_value(self) -> str:
        return self._current

    @property
    def state(self) -> EditingState:
        return self._state

    @property
    def is_editing(self) -> bool:
        return self._state == "editing"

    @property
    def changed(self) -> bool:
        return self._session.store.has(self._key)

    @property
    def display(self) -> str:
        return self._display

    @property
    def editor(self) -> EditorSpec | None:
        return self._editor

    @property
    def input_value(self) -> str:
        return self._input_value

    def set_input(self, text: str) -> None:
        """Track what the host's input currently holds (used by blur and key commits)."""

        if self.is_editing:
            self._input_value = text

    def _format(self, value: str) -> str:
        config = self._session.config
        return format_cell(
            self._field,
            value,
            date_format=config.date_format,
            price_cents=config.price_cents,
        )

    def _build_editor(self) -> EditorSpec:
        field_type = self._field.type
        value = self._current
        if field_type == "list":
            return EditorSpec(
                kind="list",
                value=value,
                list_editor=ListValueEditor(value, on_commit=self.commit, on_cancel=self.cancel),
            )
        if field_type == "select":
            options = ("", *self._field.options)
            return EditorSpec(
                kind="select",
                value=value if value in self._field.options else "",
                options=options,
            )
        if field_type in ("number", "price"):
            return EditorSpec(
                kind="number",
                value=_numeric_prefill(value, price=field_type == "price"),
                minimum=0,
                select_all=True,
            )
        if field_type == "date":
            return EditorSpec(kind="date", value=value, select_all=True)
        return EditorSpec(kind="text", value=value, select_all=True)

    def activate(self) -> bool:
        if not self._session.edit_mode or self.is_editing or not self._field.editable:
            return False
        self._session.release_editor(keep=self._key)
        self._display_before_edit = self._display
        self._editor = self._build_editor()
        self._input_value = self._editor.value
        self._state = "editing"
        self._session.set_active(self._key)
        logger.debug("Activated %s (%s)", self._key.label, self._field.type)
        self._session.observer.editor_opened(self._key, self._editor)
        return True

    def _leave_editing(self) -> None:
        self._state = "viewing"
        self._editor = None
        self._input_value = ""
        self._session.set_active(None)
        self._session.observer.editor_closed(self._key)

    def commit(self, raw: str | None = None) -> bool:
        """Validate and store `raw` (defaults to the tracked input value).

        Returns False when the cell was not editing or the value was rejected; a
        rejected value leaves the cell exactly as it was before `activate()`.
        """

        if not self.is_editing:
            return False
        value = self._input_value if raw is None else raw
        try:
            normalized = validate_raw_value(self._field.type, value)
        except ValueValidationError as exc:
            logger.warning("Rejected %s for %s: %s", value, self._key.label, exc)
            self._session.notify(f"Invalid value for {self._field.label}: {exc}", "error")
            self._restore_display()
            return False
        self._leave_editing()
        self._apply(normalized)
        return True

    def blur(self) -> bool:
        if self._editor is not None and self._editor.list_editor is not None:
            return self._editor.list_editor.commit()
        return self.commit()

    def choose_option(self, option: str) -> bool:
        """Select-editor shortcut: picking an option commits it immediately."""

        return self.commit(option)

    def cancel(self) -> bool:
        if not self.is_editing:
            return False
        logger.debug("Cancelled %s", self._key.label)
        self._restore_display()
        return True

    def handle_key(self, key: NavigationKey) -> bool:
        """Apply a grid key to an editing cell; list editors ignore grid keys."""

        if not self.is_editing:
            return False
        if key == "escape":
            return self.cancel()
        if self._field.type == "list":
            return False
        if not self.commit():
            return False
        self._session.navigator.move_from(self._key, reverse=key == "shift+tab")
        return True

    def _restore_display(self) -> None:
        self._leave_editing()
        self._display = self._display_before_edit
        self._session.observer.cell_rendered(self._key, display=self._display, changed=self.changed)

    def _apply(self, value: str) -> None:
        store = self._session.store
        self._current = value
        if values_equal(self._field.type, value, self._original):
            store.delete(self._key)
        else:
            store.upsert(self._key, value, self._original)
        self._display = self._format(value)
        logger.debug("Committed %s = %r (changed=%s)", self._key.label, value, self.changed)
        self._session.observer.cell_rendered(self._key, display=self._display, changed=self.changed)
        self._session.observer.changes_counted(len(store))
        self._session.recalculator.recalculate(self._key)

    def assign(self, raw: str) -> bool:
        """Commit `raw` without an editing round-trip (used when replaying change sets)."""

        if not self._field.editable:
            return False
        try:
            normalized = validate_raw_value(self._field.type, raw)
        except ValueValidationError as exc:
            logger.warning("Skipped %s for %s: %s", raw, self._key.label, exc)
            return False
        self._apply(normalized)
        return True

    def rebase(self, original: object) -> None:
        """Adopt `original` as the new baseline (after save or revert) and repaint."""

        self._original = to_raw(original)
        self._current = self._original
        self._display = self._format(self._current)
        self._session.observer.cell_rendered(self._key, display=self._display, changed=self.changed)
