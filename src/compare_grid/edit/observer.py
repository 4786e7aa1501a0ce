from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from .models import CellKey

if TYPE_CHECKING:
    from .cell import EditorSpec


class GridObserver(Protocol):
    """View binding for a `TableEditSession`.

    The session calls these hooks after each state transition so a host can repaint the
    affected cells. Implementations must be fast and must not raise.
    """

    def cell_rendered(self, cell_key: CellKey, *, display: str, changed: bool) -> None:
        """An editable cell shows new display text and/or a new changed marker."""

    def derived_rendered(self, cell_key: CellKey, *, display: str) -> None:
        """A derived cell received a recomputed value."""

    def editor_opened(self, cell_key: CellKey, editor: EditorSpec) -> None:
        """A cell entered editing; `editor` describes the input surface to show."""

    def editor_closed(self, cell_key: CellKey) -> None:
        """A cell left editing (commit, cancel or rejected input)."""

    def changes_counted(self, count: int) -> None:
        """The number of pending changes may have changed."""


class NullGridObserver(GridObserver):
    def cell_rendered(self, cell_key: CellKey, *, display: str, changed: bool) -> None:  # noqa: ARG002
        return None

    def derived_rendered(self, cell_key: CellKey, *, display: str) -> None:  # noqa: ARG002
        return None

    def editor_opened(self, cell_key: CellKey, editor: EditorSpec) -> None:  # noqa: ARG002
        return None

    def editor_closed(self, cell_key: CellKey) -> None:  # noqa: ARG002
        return None

    def changes_counted(self, count: int) -> None:  # noqa: ARG002
        return None
