from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

import networkx as nx

FieldType = Literal["text", "number", "date", "price", "select", "list"]
FIELD_TYPES: tuple[FieldType, ...] = ("text", "number", "date", "price", "select", "list")

ComputeFn = Callable[[Mapping[str, Any]], Any]


class SchemaError(Exception):
    """Raised when a grid schema definition is inconsistent."""


@dataclass(frozen=True, slots=True)
class FieldSchema:
    """Static definition of one grid column.

    A field with a `compute` function is derived: it is never user-editable and its
    value is produced from the other fields of the same entity.
    """

    key: str
    label: str
    type: FieldType
    options: tuple[str, ...] = ()
    compute: ComputeFn | None = None
    unit: str = ""

    @property
    def derived(self) -> bool:
        return self.compute is not None

    @property
    def editable(self) -> bool:
        return self.compute is None


@dataclass(frozen=True, slots=True)
class GridSchema:
    """Ordered field definitions plus the static dependency table.

    `dependencies` maps each derived field key to the field keys it is computed from.
    Dependencies may themselves be derived (e.g. `pricePerPerson` reads `grandTotal`).
    """

    fields: tuple[FieldSchema, ...]
    dependencies: Mapping[str, tuple[str, ...]]
    _by_key: Mapping[str, FieldSchema] = field(init=False, repr=False, compare=False)
    _derived_order: tuple[str, ...] = field(init=False, repr=False, compare=False)
    _graph: nx.DiGraph = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_key: dict[str, FieldSchema] = {}
        for item in self.fields:
            if item.key in by_key:
                raise SchemaError(f"Duplicate field key: {item.key!r}")
            if item.type not in FIELD_TYPES:
                raise SchemaError(f"Unknown field type for {item.key!r}: {item.type!r}")
            by_key[item.key] = item

        for derived_key, inputs in self.dependencies.items():
            derived = by_key.get(derived_key)
            if derived is None:
                raise SchemaError(f"Dependency entry for unknown field: {derived_key!r}")
            if not derived.derived:
                raise SchemaError(f"Field {derived_key!r} has dependencies but no compute")
            for input_key in inputs:
                if input_key not in by_key:
                    raise SchemaError(f"Field {derived_key!r} depends on unknown {input_key!r}")

        graph = nx.DiGraph()
        graph.add_nodes_from(by_key)
        for derived_key, inputs in self.dependencies.items():
            graph.add_edges_from((input_key, derived_key) for input_key in inputs)
        position = {key: idx for idx, key in enumerate(by_key)}
        try:
            ordered = nx.lexicographical_topological_sort(graph, key=position.__getitem__)
            order = tuple(key for key in ordered if by_key[key].derived)
        except nx.NetworkXUnfeasible as exc:
            cycle = [source for source, _target in nx.find_cycle(graph)]
            raise SchemaError(f"Dependency cycle: {' -> '.join([*cycle, cycle[0]])}") from exc

        object.__setattr__(self, "_by_key", MappingProxyType(by_key))
        object.__setattr__(self, "_derived_order", order)
        object.__setattr__(self, "_graph", graph)

    @classmethod
    def build(
        cls,
        fields: Iterable[FieldSchema],
        dependencies: Mapping[str, Iterable[str]],
    ) -> GridSchema:
        return cls(
            fields=tuple(fields),
            dependencies=MappingProxyType(
                {key: tuple(inputs) for key, inputs in dependencies.items()}
            ),
        )

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def field(self, key: str) -> FieldSchema:
        try:
            return self._by_key[key]
        except KeyError:
            raise SchemaError(f"Unknown field: {key!r}") from None

    def get(self, key: str) -> FieldSchema | None:
        return self._by_key.get(key)

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(item.key for item in self.fields)

    @property
    def editable_fields(self) -> tuple[FieldSchema, ...]:
        return tuple(item for item in self.fields if item.editable)

    @property
    def derived_order(self) -> tuple[str, ...]:
        """Derived field keys, each listed after every derived field it reads."""

        return self._derived_order

    def affected_by(self, key: str) -> tuple[str, ...]:
        """Return derived fields that must be recomputed after `key` changes.

        The result is transitive and follows `derived_order`, so a derived field always
        comes after the derived fields it depends on.
        """

        if key not in self._graph:
            return ()
        downstream = nx.descendants(self._graph, key)
        return tuple(key for key in self._derived_order if key in downstream)
