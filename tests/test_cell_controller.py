from __future__ import annotations

import pytest

from compare_grid.edit import CellKey, UnknownCellError

PACKAGE = CellKey("opt-1", "packagePrice")


def test_price_commit_records_change_and_updates_totals(session, observer) -> None:
    assert session.activate(PACKAGE) is True
    opened_key, editor = observer.opened[-1]
    assert opened_key == PACKAGE
    assert editor.kind == "number"
    assert editor.value == "5000"
    assert editor.minimum == 0
    assert editor.select_all is True

    assert session.commit(PACKAGE, "5200") is True

    cell = session.cell(PACKAGE)
    assert cell.state == "viewing"
    assert cell.display == "$5,200"
    assert cell.changed is True
    entry = session.store.get(PACKAGE)
    assert entry is not None
    assert (entry.original_value, entry.new_value) == ("5000", "5200")
    assert observer.rendered[-1] == (PACKAGE, "$5,200", True)
    assert observer.closed == [PACKAGE]
    assert observer.counts[-1] == 1
    assert session.display_for(CellKey("opt-1", "grandTotal")) == "$6,200"
    assert session.display_for(CellKey("opt-1", "pricePerPerson")) == "$3,100"
    assert session.active_cell is None


def test_committing_the_original_value_clears_the_change(session, observer) -> None:
    session.activate(PACKAGE)
    session.commit(PACKAGE, "5200")
    session.activate(PACKAGE)
    assert session.commit(PACKAGE, "5,000") is True

    assert session.cell(PACKAGE).changed is False
    assert session.change_count == 0
    assert observer.counts[-1] == 0
    assert session.display_for(PACKAGE) == "$5,000"
    assert session.display_for(CellKey("opt-1", "grandTotal")) == "$6,000"


def test_invalid_value_notifies_and_restores_display(session, observer, notices) -> None:
    session.activate(PACKAGE)
    assert session.commit(PACKAGE, "-1") is False

    message, severity = notices[-1]
    assert severity == "error"
    assert "Package" in message
    cell = session.cell(PACKAGE)
    assert cell.state == "viewing"
    assert cell.display == "$5,000"
    assert session.change_count == 0
    assert observer.closed == [PACKAGE]
    assert observer.rendered[-1] == (PACKAGE, "$5,000", False)


def test_escape_cancels_without_storing(session) -> None:
    session.activate(PACKAGE)
    session.cell(PACKAGE).set_input("999")
    assert session.handle_key(PACKAGE, "escape") is True
    assert session.cell(PACKAGE).display == "$5,000"
    assert session.change_count == 0
    assert session.active_cell is None


def test_empty_price_editor_prefills_zero(session, observer) -> None:
    session.activate(CellKey("opt-1", "additionalCosts"))
    assert observer.opened[-1][1].value == "0"


def test_select_editor_has_placeholder_and_commits_on_choice(session, observer) -> None:
    key = CellKey("opt-1", "roomType")
    session.activate(key)
    editor = observer.opened[-1][1]
    assert editor.kind == "select"
    assert editor.options[0] == ""
    assert "Suite" in editor.options
    assert editor.value == "Villa"

    assert session.cell(key).choose_option("Suite") is True
    assert session.cell(key).current_value == "Suite"
    assert session.active_cell is None
    assert len(observer.opened) == 1

    other = CellKey("opt-2", "roomType")
    session.activate(other)
    assert observer.opened[-1][1].value == ""


def test_date_commit_is_normalized_and_recomputes_duration(session) -> None:
    key = CellKey("opt-1", "endDate")
    assert session.display_for(CellKey("opt-1", "duration")) == "7 nights"
    session.activate(key)
    assert session.commit(key, "03/20/2026") is True
    assert session.cell(key).current_value == "2026-03-20"
    assert session.display_for(key) == "03/20/2026"
    assert session.display_for(CellKey("opt-1", "duration")) == "6 nights"


def test_activating_another_cell_commits_the_open_one(session, observer) -> None:
    destination = CellKey("opt-1", "destination")
    resort = CellKey("opt-1", "resort")
    session.activate(destination)
    session.cell(destination).set_input("Fiji")

    assert session.activate(resort) is True
    assert session.cell(destination).current_value == "Fiji"
    assert session.cell(destination).state == "viewing"
    assert session.active_cell == resort
    assert observer.closed == [destination]
    assert sum(1 for cell in session.registry.values() if cell.is_editing) == 1


def test_edit_mode_gates_activation_and_closes_open_editor(session) -> None:
    destination = CellKey("opt-1", "destination")
    session.activate(destination)
    session.cell(destination).set_input("Fiji")
    session.edit_mode = False

    assert session.cell(destination).current_value == "Fiji"
    assert session.active_cell is None
    assert session.activate(PACKAGE) is False
    assert session.cell(PACKAGE).state == "viewing"


def test_derived_cells_are_not_editable(session) -> None:
    total = CellKey("opt-1", "grandTotal")
    assert session.activate(total) is False
    with pytest.raises(UnknownCellError):
        session.cell(total)
    with pytest.raises(KeyError):
        session.cell(CellKey("opt-9", "destination"))


def test_list_cell_ignores_grid_keys_and_commits_items(session) -> None:
    key = CellKey("opt-1", "inclusions")
    session.activate(key)
    editor = session.cell(key).editor
    assert editor is not None and editor.list_editor is not None
    assert editor.list_editor.items == ["Seaplane transfers", "Daily breakfast"]

    assert session.handle_key(key, "enter") is False
    assert session.handle_key(key, "tab") is False
    assert session.cell(key).is_editing

    editor.list_editor.add_item("Sunset cruise")
    assert editor.list_editor.commit() is True
    cell = session.cell(key)
    assert cell.current_value == "Seaplane transfers, Daily breakfast, Sunset cruise"
    assert cell.display == "• Seaplane transfers\n• Daily breakfast\n• Sunset cruise"
    assert session.active_cell is None


def test_open_list_editor_commits_when_another_cell_activates(session) -> None:
    key = CellKey("opt-1", "inclusions")
    session.activate(key)
    editor = session.cell(key).editor
    assert editor is not None and editor.list_editor is not None
    editor.list_editor.remove_item(0)

    session.activate(CellKey("opt-1", "destination"))
    assert session.cell(key).current_value == "Daily breakfast"
    assert session.is_changed(key)


def test_list_round_trip_after_removing_middle_item(session) -> None:
    key = CellKey("opt-2", "exclusions")
    session.apply_changes([(key, "A, B, C")])
    session.activate(key)
    editor = session.cell(key).editor
    assert editor is not None and editor.list_editor is not None
    assert editor.list_editor.items == ["A", "B", "C"]

    editor.list_editor.remove_item(1)
    editor.list_editor.commit()
    assert session.cell(key).current_value == "A, C"


def test_clearing_a_date_is_accepted_and_empties_duration(session) -> None:
    key = CellKey("opt-1", "startDate")
    session.activate(key)
    assert session.commit(key, "") is True

    entry = session.store.get(key)
    assert entry is not None
    assert entry.new_value == ""
    assert session.display_for(key) == "Not specified"
    assert session.display_for(CellKey("opt-1", "duration")) == "N/A"
