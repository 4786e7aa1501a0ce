from __future__ import annotations

import logging
from typing import Any

from compare_grid.edit import CellKey, ChangeStore, DependentFieldRecalculator
from compare_grid.schema import FieldSchema, GridSchema
from compare_grid.schema.trip import trip_schema


def _baselines() -> dict[str, dict[str, Any]]:
    return {
        "opt-1": {"packagePrice": 5000, "flightsTotal": 1000, "guests": 2},
        "opt-2": {"packagePrice": 4000, "flightsTotal": 800, "guests": 4},
    }


def _recalculator(
    store: ChangeStore,
    pushed: list[tuple[CellKey, Any]],
    *,
    schema: GridSchema | None = None,
    slots: bool = True,
) -> DependentFieldRecalculator:
    baselines = _baselines()

    def _push(cell_key: CellKey, value: Any) -> bool:
        pushed.append((cell_key, value))
        return slots

    return DependentFieldRecalculator(
        schema or trip_schema(),
        store,
        baseline=baselines.get,
        push=_push,
    )


def test_working_entity_computes_every_derived_field() -> None:
    recalc = _recalculator(ChangeStore(), [])
    working = recalc.working_entity("opt-1")
    assert working is not None
    assert working["grandTotal"] == 6000
    assert working["pricePerPerson"] == 3000
    assert working["duration"] is None
    assert recalc.working_entity("opt-404") is None


def test_recalculate_follows_dependency_order_within_one_entity() -> None:
    store = ChangeStore()
    pushed: list[tuple[CellKey, Any]] = []
    recalc = _recalculator(store, pushed)
    store.upsert(CellKey("opt-1", "packagePrice"), "7000", "5000")

    results = recalc.recalculate(CellKey("opt-1", "packagePrice"))
    assert list(results) == ["grandTotal", "pricePerPerson"]
    assert results == {"grandTotal": 8000, "pricePerPerson": 4000}
    assert pushed == [
        (CellKey("opt-1", "grandTotal"), 8000),
        (CellKey("opt-1", "pricePerPerson"), 4000),
    ]


def test_guest_change_uses_fresh_grand_total() -> None:
    store = ChangeStore()
    pushed: list[tuple[CellKey, Any]] = []
    recalc = _recalculator(store, pushed)
    store.upsert(CellKey("opt-1", "packagePrice"), "7000", "5000")
    store.upsert(CellKey("opt-1", "guests"), "4", "2")

    results = recalc.recalculate(CellKey("opt-1", "guests"))
    assert results == {"pricePerPerson": 2000}


def test_other_entities_are_untouched() -> None:
    store = ChangeStore()
    pushed: list[tuple[CellKey, Any]] = []
    recalc = _recalculator(store, pushed)
    store.upsert(CellKey("opt-1", "packagePrice"), "7000", "5000")

    recalc.recalculate(CellKey("opt-1", "packagePrice"))
    assert {key.entity_id for key, _value in pushed} == {"opt-1"}
    other = recalc.working_entity("opt-2")
    assert other is not None and other["grandTotal"] == 4800


def test_non_dependency_fields_do_not_recompute() -> None:
    pushed: list[tuple[CellKey, Any]] = []
    recalc = _recalculator(ChangeStore(), pushed)
    assert recalc.recalculate(CellKey("opt-1", "destination")) == {}
    assert pushed == []


def test_missing_display_slot_still_returns_value() -> None:
    pushed: list[tuple[CellKey, Any]] = []
    recalc = _recalculator(ChangeStore(), pushed, slots=False)
    results = recalc.recalculate(CellKey("opt-1", "guests"))
    assert results == {"pricePerPerson": 3000}


def test_failing_compute_yields_empty_value(caplog) -> None:
    def _explode(_entity: Any) -> Any:
        raise ZeroDivisionError("boom")

    schema = GridSchema.build(
        [
            FieldSchema("guests", "Guests", "number"),
            FieldSchema("broken", "Broken", "number", compute=_explode),
        ],
        {"broken": ("guests",)},
    )
    pushed: list[tuple[CellKey, Any]] = []
    recalc = _recalculator(ChangeStore(), pushed, schema=schema)

    with caplog.at_level(logging.WARNING, logger="compare_grid.edit.recalc"):
        results = recalc.recalculate(CellKey("opt-1", "guests"))
    assert results == {"broken": None}
    assert "Compute failed for opt-1::broken" in caplog.text
