from __future__ import annotations

from collections.abc import Callable

from ..values import join_list_items, split_list_items

ADD_INPUT = "new"

ListFocus = int | str


class ListValueEditor:
    """Editing surface for list-typed fields stored as comma-delimited strings.

    Items are addressed by position; indices are recomputed after every removal, so a
    host must re-render all item rows when `remove_item` succeeds. Keyboard handling
    stays inside the editor: Enter in an item row only moves focus to the "add new"
    input and never reaches grid navigation.
    """

    def __init__(
        self,
        stored: str,
        *,
        on_commit: Callable[[str], bool],
        on_cancel: Callable[[], bool],
    ) -> None:
        self.items: list[str] = split_list_items(stored)
        self.new_item_text = ""
        self.focus: ListFocus = 0 if self.items else ADD_INPUT
        self._on_commit = on_commit
        self._on_cancel = on_cancel

    @property
    def rows(self) -> list[tuple[int, str]]:
        return list(enumerate(self.items))

    def add_item(self, text: str | None = None) -> bool:
        value = (self.new_item_text if text is None else text).strip()
        self.focus = ADD_INPUT
        if not value:
            return False
        self.items.append(value)
        self.new_item_text = ""
        return True

    def edit_item(self, index: int, text: str) -> None:
        self.items[index] = text

    def remove_item(self, index: int) -> str:
        removed = self.items.pop(index)
        if isinstance(self.focus, int) and self.focus >= len(self.items):
            self.focus = len(self.items) - 1 if self.items else ADD_INPUT
        return removed

    def item_submitted(self, index: int) -> None:
        _ = index
        self.focus = ADD_INPUT

    def collect(self) -> list[str]:
        return split_list_items(self.items)

    def serialize(self) -> str:
        return join_list_items(self.collect())

    def commit(self) -> bool:
        self.items = self.collect()
        return self._on_commit(self.serialize())

    def cancel(self) -> bool:
        return self._on_cancel()
