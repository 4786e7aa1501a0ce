from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from compare_grid.edit import CellKey, EditConfig, EditorSpec, Entity, TableEditSession
from compare_grid.edit.models import Severity
from compare_grid.schema.trip import trip_schema


@dataclass
class RecordingObserver:
    rendered: list[tuple[CellKey, str, bool]] = field(default_factory=list)
    derived: list[tuple[CellKey, str]] = field(default_factory=list)
    opened: list[tuple[CellKey, EditorSpec]] = field(default_factory=list)
    closed: list[CellKey] = field(default_factory=list)
    counts: list[int] = field(default_factory=list)

    def cell_rendered(self, cell_key: CellKey, *, display: str, changed: bool) -> None:
        self.rendered.append((cell_key, display, changed))

    def derived_rendered(self, cell_key: CellKey, *, display: str) -> None:
        self.derived.append((cell_key, display))

    def editor_opened(self, cell_key: CellKey, editor: EditorSpec) -> None:
        self.opened.append((cell_key, editor))

    def editor_closed(self, cell_key: CellKey) -> None:
        self.closed.append(cell_key)

    def changes_counted(self, count: int) -> None:
        self.counts.append(count)


def _sample_entities() -> list[Entity]:
    return [
        Entity.create(
            "opt-1",
            {
                "destination": "Maldives",
                "resort": "Coral Lagoon Resort",
                "roomType": "Villa",
                "startDate": "2026-03-14",
                "endDate": "2026-03-21",
                "guests": 2,
                "packagePrice": 5000,
                "flightsTotal": 1000,
                "inclusions": "Seaplane transfers, Daily breakfast",
            },
            label="Option A",
        ),
        Entity.create(
            "opt-2",
            {
                "destination": "Bali",
                "resort": "Ubud Hideaway",
                "startDate": "2026-04-01",
                "endDate": "2026-04-05",
                "guests": 4,
                "packagePrice": 4000,
                "flightsTotal": 800,
            },
            label="Option B",
        ),
    ]


@pytest.fixture
def sample_entities() -> list[Entity]:
    return _sample_entities()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def notices() -> list[tuple[str, Severity]]:
    return []


@pytest.fixture
def make_session(
    observer: RecordingObserver,
    notices: list[tuple[str, Severity]],
) -> Callable[..., TableEditSession]:
    def _make(**config: object) -> TableEditSession:
        return TableEditSession(
            trip_schema(),
            _sample_entities(),
            config=EditConfig(**config),  # type: ignore[arg-type]
            notify=lambda message, severity: notices.append((message, severity)),
            observer=observer,
        )

    return _make


@pytest.fixture
def session(make_session: Callable[..., TableEditSession]) -> TableEditSession:
    return make_session()
