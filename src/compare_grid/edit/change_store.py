from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import replace

from .models import CellKey, ChangeRecord


class ChangeStore:
    """Diff table of committed overrides, keyed by `CellKey`.

    An entry exists only while a cell's value differs from its original value. The
    original captured by the first write is kept as the revert anchor until the entry
    is deleted.
    """

    def __init__(self) -> None:
        self._entries: dict[CellKey, ChangeRecord] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, cell_key: object) -> bool:
        return cell_key in self._entries

    def __iter__(self) -> Iterator[CellKey]:
        return iter(list(self._entries))

    def size(self) -> int:
        return len(self._entries)

    def has(self, cell_key: CellKey) -> bool:
        return cell_key in self._entries

    def get(self, cell_key: CellKey) -> ChangeRecord | None:
        return self._entries.get(cell_key)

    def upsert(self, cell_key: CellKey, new_value: str, original_if_absent: str) -> ChangeRecord:
        entry = self._entries.get(cell_key)
        if entry is None:
            entry = ChangeRecord(original_value=original_if_absent, new_value=new_value)
            self._entries[cell_key] = entry
        else:
            entry.new_value = new_value
        return entry

    def delete(self, cell_key: CellKey) -> bool:
        return self._entries.pop(cell_key, None) is not None

    def reanchor(self, cell_key: CellKey, original_value: str) -> bool:
        """Point an existing entry at a new revert anchor (after a baseline reload)."""

        entry = self._entries.get(cell_key)
        if entry is None:
            return False
        entry.original_value = original_value
        return True

    def delete_if_reverted(
        self,
        cell_key: CellKey,
        live_value: str,
        *,
        equal: Callable[[str, str], bool],
    ) -> bool:
        """Drop the entry when `live_value` equals its anchor; return whether it was dropped."""

        entry = self._entries.get(cell_key)
        if entry is None or not equal(live_value, entry.original_value):
            return False
        del self._entries[cell_key]
        return True

    def entries_for(self, entity_id: str) -> dict[str, ChangeRecord]:
        return {
            key.field_key: replace(entry)
            for key, entry in self._entries.items()
            if key.entity_id == entity_id
        }

    def snapshot(self) -> dict[CellKey, ChangeRecord]:
        return {key: replace(entry) for key, entry in sorted(self._entries.items())}

    def clear(self) -> None:
        self._entries.clear()
