"""Render-agnostic editing core for comparison grids.

- TableEditSession: owns cells, the change store, recalculation and navigation
- CellController: per-cell viewing/editing state machine
- ChangeStore: pending overrides diffed against the original values
- ListValueEditor: item-level editing for list fields
- DependentFieldRecalculator: keeps derived fields in sync with edits
- NavigationController: Tab/Enter movement within a row
"""

from .cell import SELECT_PLACEHOLDER, CellController, EditorSpec
from .change_store import ChangeStore
from .list_editor import ADD_INPUT, ListValueEditor
from .models import CellKey, ChangeRecord, Entity
from .navigation import NavigationController
from .observer import GridObserver, NullGridObserver
from .recalc import DependentFieldRecalculator
from .session import CellRegistry, EditConfig, TableEditSession, UnknownCellError

__all__ = [
    "ADD_INPUT",
    "SELECT_PLACEHOLDER",
    "CellController",
    "CellKey",
    "CellRegistry",
    "ChangeRecord",
    "ChangeStore",
    "DependentFieldRecalculator",
    "EditConfig",
    "EditorSpec",
    "Entity",
    "GridObserver",
    "ListValueEditor",
    "NavigationController",
    "NullGridObserver",
    "TableEditSession",
    "UnknownCellError",
]
