"""Comparison documents and change sets stored as JSON.

Comparison document:
{
  "title": "Maldives, March",
  "entities": [
    {"id": "opt-1", "label": "Option A", "packagePrice": 5000, ...}
  ]
}

Change set:
{
  "changes": [
    {"entity_id": "opt-1", "field_key": "packagePrice",
     "original_value": "5000", "new_value": "5200"}
  ]
}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .edit.models import CellKey, ChangeRecord, Entity
from .values import to_raw

logger = logging.getLogger(__name__)

_RESERVED_KEYS = frozenset({"id", "label"})


class DocumentError(Exception):
    """Raised when a comparison document or change set is malformed."""


@dataclass(frozen=True, slots=True)
class Comparison:
    title: str
    entities: tuple[Entity, ...]


def _read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentError(f"Cannot read {path}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentError(f"Invalid JSON in {path}: {exc}") from exc


def comparison_from_dict(obj: Any) -> Comparison:
    if not isinstance(obj, dict):
        raise DocumentError("Comparison document must be a JSON object")
    raw_entities = obj.get("entities")
    if not isinstance(raw_entities, list):
        raise DocumentError("Comparison document needs an 'entities' list")

    entities: list[Entity] = []
    for idx, raw in enumerate(raw_entities):
        if not isinstance(raw, dict):
            logger.warning("Skipping entity #%d: not an object", idx)
            continue
        entity_id = raw.get("id")
        if isinstance(entity_id, bool) or not isinstance(entity_id, (str, int)):
            logger.warning("Skipping entity #%d: missing id", idx)
            continue
        label = raw.get("label")
        values = {key: value for key, value in raw.items() if key not in _RESERVED_KEYS}
        entities.append(
            Entity.create(
                str(entity_id),
                values,
                label=label if isinstance(label, str) else "",
            )
        )

    title = obj.get("title")
    return Comparison(
        title=title if isinstance(title, str) and title.strip() else "Comparison",
        entities=tuple(entities),
    )


def load_comparison(path: Path) -> Comparison:
    return comparison_from_dict(_read_json(path))


def change_set_to_dict(snapshot: dict[CellKey, ChangeRecord]) -> dict[str, Any]:
    return {
        "exported_at": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "changes": [
            {
                "entity_id": key.entity_id,
                "field_key": key.field_key,
                "original_value": entry.original_value,
                "new_value": entry.new_value,
            }
            for key, entry in snapshot.items()
        ],
    }


def change_set_from_dict(obj: Any) -> list[tuple[CellKey, str]]:
    if not isinstance(obj, dict) or not isinstance(obj.get("changes"), list):
        raise DocumentError("Change set must be an object with a 'changes' list")
    changes: list[tuple[CellKey, str]] = []
    for idx, raw in enumerate(obj["changes"]):
        if not isinstance(raw, dict):
            raise DocumentError(f"Change #{idx} is not an object")
        entity_id = raw.get("entity_id")
        field_key = raw.get("field_key")
        if not isinstance(entity_id, str) or not isinstance(field_key, str):
            raise DocumentError(f"Change #{idx} needs string 'entity_id' and 'field_key'")
        changes.append((CellKey(entity_id, field_key), to_raw(raw.get("new_value"))))
    return changes


def load_change_set(path: Path) -> list[tuple[CellKey, str]]:
    return change_set_from_dict(_read_json(path))


def write_change_set(path: Path, snapshot: dict[CellKey, ChangeRecord]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(change_set_to_dict(snapshot), fh, indent=2, sort_keys=True)
        fh.write("\n")
    logger.info("Wrote %d changes to %s", len(snapshot), path)
    return path
