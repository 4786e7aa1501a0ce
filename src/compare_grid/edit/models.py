from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal

EditingState = Literal["viewing", "editing"]
Orientation = Literal["entity", "field"]
NavigationKey = Literal["enter", "tab", "shift+tab", "escape"]
Severity = Literal["information", "warning", "error"]


@dataclass(frozen=True, slots=True, order=True)
class CellKey:
    entity_id: str
    field_key: str

    @property
    def label(self) -> str:
        return f"{self.entity_id}::{self.field_key}"


@dataclass(slots=True)
class ChangeRecord:
    original_value: str
    new_value: str


@dataclass(frozen=True, slots=True)
class Entity:
    """One comparison row: an opaque id plus its baseline field values."""

    entity_id: str
    values: Mapping[str, Any]
    label: str = ""

    @classmethod
    def create(cls, entity_id: str, values: Mapping[str, Any], *, label: str = "") -> Entity:
        return cls(
            entity_id=entity_id,
            values=MappingProxyType(dict(values)),
            label=label or entity_id,
        )
