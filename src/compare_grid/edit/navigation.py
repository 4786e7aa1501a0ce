from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from .models import CellKey

logger = logging.getLogger(__name__)


class NavigationController:
    """Moves editing between the editable cells of one row.

    Rows are supplied by the session in their authored left-to-right order. Movement
    never wraps to another row or back to the other end of the same row.
    """

    def __init__(
        self,
        rows: Sequence[Sequence[CellKey]],
        *,
        activate: Callable[[CellKey], bool],
    ) -> None:
        self._activate = activate
        self._rows: list[tuple[CellKey, ...]] = []
        self._position: dict[CellKey, tuple[int, int]] = {}
        self.set_rows(rows)

    def set_rows(self, rows: Sequence[Sequence[CellKey]]) -> None:
        self._rows = [tuple(row) for row in rows]
        self._position = {
            key: (row_idx, col_idx)
            for row_idx, row in enumerate(self._rows)
            for col_idx, key in enumerate(row)
        }

    @property
    def rows(self) -> list[tuple[CellKey, ...]]:
        return list(self._rows)

    def row_of(self, cell_key: CellKey) -> tuple[CellKey, ...] | None:
        position = self._position.get(cell_key)
        if position is None:
            return None
        return self._rows[position[0]]

    def target(self, cell_key: CellKey, *, reverse: bool = False) -> CellKey | None:
        position = self._position.get(cell_key)
        if position is None:
            logger.debug("Navigation: %s is not in any row", cell_key.label)
            return None
        row_idx, col_idx = position
        row = self._rows[row_idx]
        next_idx = col_idx - 1 if reverse else col_idx + 1
        if next_idx < 0:
            logger.debug("Navigation: at start of row, stopping")
            return None
        if next_idx >= len(row):
            logger.debug("Navigation: at end of row, stopping")
            return None
        return row[next_idx]

    def move_from(self, cell_key: CellKey, *, reverse: bool = False) -> CellKey | None:
        """Activate the neighbour of `cell_key`; return it when activation succeeded."""

        target = self.target(cell_key, reverse=reverse)
        if target is None:
            return None
        logger.debug("Navigation: %s -> %s", cell_key.label, target.label)
        return target if self._activate(target) else None
