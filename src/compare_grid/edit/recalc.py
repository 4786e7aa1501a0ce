from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..schema.fields import GridSchema
from ..values import coerce_value
from .change_store import ChangeStore
from .models import CellKey

logger = logging.getLogger(__name__)

BaselineLookup = Callable[[str], Mapping[str, Any] | None]
DerivedSink = Callable[[CellKey, Any], bool]


class DependentFieldRecalculator:
    """Keeps derived fields consistent with committed edits.

    Recomputation is scoped to the edited entity: a working entity is built from that
    entity's baseline plus its own ChangeStore overrides, never from other entities.
    """

    def __init__(
        self,
        schema: GridSchema,
        store: ChangeStore,
        *,
        baseline: BaselineLookup,
        push: DerivedSink,
    ) -> None:
        self._schema = schema
        self._store = store
        self._baseline = baseline
        self._push = push

    def working_entity(self, entity_id: str) -> dict[str, Any] | None:
        """Baseline values overlaid with pending overrides, with derived fields refreshed.

        Returns None for unknown entities.
        """

        baseline = self._baseline(entity_id)
        if baseline is None:
            return None
        working: dict[str, Any] = dict(baseline)
        for key, value in baseline.items():
            field = self._schema.get(key)
            if field is not None and field.editable:
                working[key] = coerce_value(field.type, value)
        for key, entry in self._store.entries_for(entity_id).items():
            field = self._schema.get(key)
            if field is None:
                continue
            working[key] = coerce_value(field.type, entry.new_value)
        for key in self._schema.derived_order:
            working[key] = self._compute(entity_id, key, working)
        return working

    def _compute(self, entity_id: str, key: str, working: Mapping[str, Any]) -> Any:
        compute = self._schema.field(key).compute
        if compute is None:
            return None
        try:
            return compute(working)
        except Exception as exc:  # noqa: BLE001
            # A failing compute leaves the derived slot empty; the commit still stands.
            logger.warning("Compute failed for %s::%s: %s", entity_id, key, exc)
            return None

    def recalculate(self, cell_key: CellKey) -> dict[str, Any]:
        """Recompute the derived fields affected by `cell_key` and push them.

        Returns the recomputed values keyed by derived field, in dependency order.
        """

        affected = self._schema.affected_by(cell_key.field_key)
        if not affected:
            return {}
        working = self.working_entity(cell_key.entity_id)
        if working is None:
            logger.debug("No baseline for %s; skipping recompute", cell_key.entity_id)
            return {}
        results: dict[str, Any] = {}
        for key in affected:
            value = working[key]
            results[key] = value
            target = CellKey(cell_key.entity_id, key)
            if not self._push(target, value):
                logger.debug("No display slot for %s; skipped", target.label)
        logger.debug("Recomputed %s after %s: %s", list(results), cell_key.label, results)
        return results
