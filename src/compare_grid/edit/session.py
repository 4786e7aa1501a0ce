from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from ..formatting import format_derived
from ..schema.fields import FieldSchema, GridSchema
from ..values import coerce_value, to_raw, values_equal
from .cell import CellController
from .change_store import ChangeStore
from .models import CellKey, ChangeRecord, Entity, NavigationKey, Orientation, Severity
from .navigation import NavigationController
from .observer import GridObserver, NullGridObserver
from .recalc import DependentFieldRecalculator

logger = logging.getLogger(__name__)

Notify = Callable[[str, Severity], None]


class UnknownCellError(KeyError):
    """Raised when a session is asked for a cell it does not hold."""


@dataclass(frozen=True, slots=True)
class EditConfig:
    edit_mode: bool = True
    orientation: Orientation = "entity"
    date_format: str = "MM/DD/YYYY"
    price_cents: bool = False


def _log_notify(message: str, severity: Severity) -> None:
    if severity == "error":
        logger.error("%s", message)
    elif severity == "warning":
        logger.warning("%s", message)
    else:
        logger.info("%s", message)


class CellRegistry(Mapping[CellKey, CellController]):
    """Arena of cell controllers for one grid, indexed by `CellKey`."""

    def __init__(self) -> None:
        self._cells: dict[CellKey, CellController] = {}

    def __getitem__(self, cell_key: CellKey) -> CellController:
        try:
            return self._cells[cell_key]
        except KeyError:
            raise UnknownCellError(cell_key) from None

    def __iter__(self) -> Iterator[CellKey]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def add(self, controller: CellController) -> None:
        self._cells[controller.cell_key] = controller

    def clear(self) -> None:
        self._cells.clear()

    def for_entity(self, entity_id: str) -> list[CellController]:
        return [cell for key, cell in self._cells.items() if key.entity_id == entity_id]


class TableEditSession:
    """Editing state for one comparison grid.

    Owns the cell registry, the change store, the recalculator and row navigation. A
    host renders cells, forwards clicks and keys here, and repaints through the attached
    `GridObserver`. Only one cell can be editing at a time: activating a cell first
    commits whichever cell is still open.
    """

    def __init__(
        self,
        schema: GridSchema,
        entities: Iterable[Entity],
        *,
        config: EditConfig | None = None,
        notify: Notify | None = None,
        observer: GridObserver | None = None,
    ) -> None:
        self._schema = schema
        self._config = config or EditConfig()
        self._edit_mode = self._config.edit_mode
        self._notify = notify or _log_notify
        self.observer: GridObserver = observer or NullGridObserver()
        self.store = ChangeStore()
        self.registry = CellRegistry()
        self._entities: dict[str, Entity] = {}
        self._derived: dict[CellKey, str] = {}
        self._hidden: set[str] = set()
        self._active: CellKey | None = None
        self.recalculator = DependentFieldRecalculator(
            schema,
            self.store,
            baseline=self._baseline_values,
            push=self._push_derived,
        )
        self.navigator = NavigationController([], activate=self.activate)
        self.load(entities)

    @property
    def schema(self) -> GridSchema:
        return self._schema

    @property
    def config(self) -> EditConfig:
        return self._config

    @property
    def entities(self) -> tuple[Entity, ...]:
        return tuple(self._entities.values())

    @property
    def visible_fields(self) -> tuple[FieldSchema, ...]:
        return tuple(item for item in self._schema.fields if item.key not in self._hidden)

    @property
    def active_cell(self) -> CellKey | None:
        return self._active

    @property
    def change_count(self) -> int:
        return len(self.store)

    @property
    def edit_mode(self) -> bool:
        return self._edit_mode

    @edit_mode.setter
    def edit_mode(self, enabled: bool) -> None:
        if not enabled:
            self.release_editor()
        self._edit_mode = enabled

    def attach(self, observer: GridObserver) -> None:
        self.observer = observer

    def notify(self, message: str, severity: Severity = "information") -> None:
        self._notify(message, severity)

    def entity(self, entity_id: str) -> Entity | None:
        return self._entities.get(entity_id)

    def _baseline_values(self, entity_id: str) -> Mapping[str, Any] | None:
        entity = self._entities.get(entity_id)
        return entity.values if entity is not None else None

    def load(self, entities: Iterable[Entity]) -> None:
        """(Re)populate the grid; pending changes survive for cells that still exist."""

        if self._active is not None:
            self.registry[self._active].cancel()
        self._entities = {}
        for entity in entities:
            if entity.entity_id in self._entities:
                logger.warning("Duplicate entity id %r; keeping the last one", entity.entity_id)
            self._entities[entity.entity_id] = entity

        self._rebase_store()
        self.registry.clear()
        for entity in self._entities.values():
            for item in self._schema.editable_fields:
                self.registry.add(
                    CellController(
                        cell_key=CellKey(entity.entity_id, item.key),
                        field=item,
                        original_value=entity.values.get(item.key),
                        session=self,
                    )
                )

        self._rebuild_layout()
        logger.info(
            "Loaded %d entities (%d editable cells, %d pending changes)",
            len(self._entities),
            len(self.registry),
            len(self.store),
        )
        self.observer.changes_counted(len(self.store))

    def _rebase_store(self) -> None:
        """Re-anchor pending changes on the freshly loaded baseline."""

        for key in self.store:
            entity = self._entities.get(key.entity_id)
            item = self._schema.get(key.field_key)
            if entity is None or item is None or not item.editable:
                logger.info("Dropping pending change for vanished cell %s", key.label)
                self.store.delete(key)
                continue
            baseline = to_raw(entity.values.get(key.field_key))
            entry = self.store.get(key)
            if entry is not None and values_equal(item.type, entry.new_value, baseline):
                logger.info("Dropping pending change matched by new baseline for %s", key.label)
                self.store.delete(key)
            else:
                self.store.reanchor(key, baseline)

    def _rebuild_layout(self) -> None:
        self._derived = {}
        for entity_id in self._entities:
            working = self.recalculator.working_entity(entity_id) or {}
            for item in self.visible_fields:
                if item.derived:
                    self._derived[CellKey(entity_id, item.key)] = self._format_derived(
                        item, working.get(item.key)
                    )
        self.navigator.set_rows(self.navigation_rows())

    def navigation_rows(self) -> list[list[CellKey]]:
        editable = [item for item in self.visible_fields if item.editable]
        if self._config.orientation == "field":
            return [
                [CellKey(entity_id, item.key) for entity_id in self._entities] for item in editable
            ]
        return [
            [CellKey(entity_id, item.key) for item in editable] for entity_id in self._entities
        ]

    def set_field_visible(self, field_key: str, visible: bool) -> None:
        self._schema.field(field_key)
        if visible:
            self._hidden.discard(field_key)
        else:
            if self._active is not None and self._active.field_key == field_key:
                self.registry[self._active].cancel()
            self._hidden.add(field_key)
        self._rebuild_layout()

    def _format_derived(self, item: FieldSchema, value: object) -> str:
        return format_derived(item, value, price_cents=self._config.price_cents)

    def _push_derived(self, cell_key: CellKey, value: Any) -> bool:
        if cell_key not in self._derived:
            return False
        display = self._format_derived(self._schema.field(cell_key.field_key), value)
        self._derived[cell_key] = display
        self.observer.derived_rendered(cell_key, display=display)
        return True

    def _refresh_derived(self, entity_id: str) -> None:
        working = self.recalculator.working_entity(entity_id)
        if working is None:
            return
        for key in self._schema.derived_order:
            self._push_derived(CellKey(entity_id, key), working.get(key))

    def cell(self, cell_key: CellKey) -> CellController:
        return self.registry[cell_key]

    def cell_at(self, entity_id: str, field_key: str) -> CellController:
        return self.registry[CellKey(entity_id, field_key)]

    def has_slot(self, cell_key: CellKey) -> bool:
        return cell_key in self.registry or cell_key in self._derived

    def display_for(self, cell_key: CellKey) -> str:
        if cell_key in self._derived:
            return self._derived[cell_key]
        return self.registry[cell_key].display

    def is_changed(self, cell_key: CellKey) -> bool:
        return self.store.has(cell_key)

    def set_active(self, cell_key: CellKey | None) -> None:
        self._active = cell_key

    def release_editor(self, *, keep: CellKey | None = None) -> bool:
        """Commit the open editor (as on focus loss) unless it belongs to `keep`."""

        if self._active is None or self._active == keep:
            return False
        open_cell = self.registry[self._active]
        logger.debug("Releasing open editor %s", open_cell.cell_key.label)
        open_cell.blur()
        return True

    def activate(self, cell_key: CellKey) -> bool:
        item = self._schema.get(cell_key.field_key)
        if item is not None and item.derived:
            return False
        return self.registry[cell_key].activate()

    def commit(self, cell_key: CellKey, raw: str | None = None) -> bool:
        return self.registry[cell_key].commit(raw)

    def cancel(self, cell_key: CellKey) -> bool:
        return self.registry[cell_key].cancel()

    def handle_key(self, cell_key: CellKey, key: NavigationKey) -> bool:
        return self.registry[cell_key].handle_key(key)

    def working_entity(self, entity_id: str) -> dict[str, Any] | None:
        return self.recalculator.working_entity(entity_id)

    def snapshot(self) -> dict[CellKey, ChangeRecord]:
        return self.store.snapshot()

    def apply_changes(self, changes: Iterable[tuple[CellKey, str]]) -> int:
        """Replay externally stored changes through validation; return how many stuck."""

        applied = 0
        for cell_key, value in changes:
            controller = self.registry.get(cell_key)
            if controller is None:
                logger.warning("Ignoring change for unknown cell %s", cell_key.label)
                continue
            if controller.assign(value):
                applied += 1
        return applied

    def revert_all(self) -> int:
        """Drop every pending change and show original values again."""

        if self._active is not None:
            self.registry[self._active].cancel()
        reverted = list(self.store)
        self.store.clear()
        for key in reverted:
            controller = self.registry[key]
            controller.rebase(controller.original_value)
        for entity_id in sorted({key.entity_id for key in reverted}):
            self._refresh_derived(entity_id)
        self.observer.changes_counted(0)
        logger.info("Reverted %d changes", len(reverted))
        return len(reverted)

    def accept_saved(self) -> int:
        """Adopt pending values as the new baseline once the host has persisted them."""

        if self._active is not None:
            self.registry[self._active].blur()
        saved = self.store.snapshot()
        self.store.clear()
        per_entity: dict[str, dict[str, Any]] = {}
        for key, entry in saved.items():
            item = self._schema.field(key.field_key)
            per_entity.setdefault(key.entity_id, {})[key.field_key] = coerce_value(
                item.type, entry.new_value
            )
            self.registry[key].rebase(entry.new_value)
        for entity_id, updates in per_entity.items():
            entity = self._entities[entity_id]
            self._entities[entity_id] = Entity.create(
                entity_id,
                {**entity.values, **updates},
                label=entity.label,
            )
        self.observer.changes_counted(0)
        logger.info("Accepted %d saved changes as baseline", len(saved))
        return len(saved)
