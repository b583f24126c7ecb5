"""Normalisation of Neo4j result records into plain Python data.

Each concrete driver value type has one adapter, selected by
``functools.singledispatchmethod``:

========================  ===================================================
Driver value              Transformed value
========================  ===================================================
``Node``                  ``{"identity", "labels", "properties"}``
``Relationship``          ``{"identity", "type", "start", "end", "properties"}``
``Path``                  ``[node, relationship, node, ...]``
``Record`` / mappings     ``dict`` with the same keys in the same order
``list`` / ``tuple``      ``list``
``int``                   ``int``; optionally ``str`` beyond +/-(2**53 - 1)
``Point``                 ``{"srid", "coordinates"}``
``Date``/``Time``/...     the equivalent ``datetime`` value (``to_native()``)
anything else             unchanged
========================  ===================================================

Values nest to any depth; adapters recurse through ``transform_value``.
"""

from collections.abc import Iterable, Mapping
from functools import singledispatchmethod
from typing import Any

from neo4j import Record
from neo4j.graph import Node, Path, Relationship
from neo4j.spatial import Point
from neo4j.time import Date, DateTime, Duration, Time

# Largest integer a IEEE-754 double represents exactly
MAX_SAFE_INTEGER = 2**53 - 1


class Transformer:
    """Converts result records into plain, driver-agnostic rows."""

    def __init__(self, stringify_unsafe_integers: bool = False) -> None:
        """Initialize the transformer.

        Args:
            stringify_unsafe_integers: Render integers outside
                ``[-MAX_SAFE_INTEGER, MAX_SAFE_INTEGER]`` as decimal strings
                instead of Python ints, for rows forwarded to consumers that
                parse numbers as doubles.
        """
        self.stringify_unsafe_integers = stringify_unsafe_integers

    def transform_result(self, records: Iterable[Record | Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Transform every record of a result, preserving record order."""
        return [self.transform_record(record) for record in records]

    def transform_record(self, record: Record | Mapping[str, Any]) -> dict[str, Any]:
        """Transform one record, keyed by its projected names."""
        return {key: self.transform_value(record[key]) for key in record.keys()}

    @singledispatchmethod
    def transform_value(self, value: Any) -> Any:
        """Transform a single value; unrecognised values pass through unchanged."""
        return value

    @transform_value.register(bool)
    def _transform_bool(self, value: bool) -> bool:
        return value

    @transform_value.register(int)
    def _transform_int(self, value: int) -> int | str:
        if self.stringify_unsafe_integers and abs(value) > MAX_SAFE_INTEGER:
            return str(value)
        return value

    @transform_value.register(Node)
    def _transform_node(self, value: Node) -> dict[str, Any]:
        return {
            "identity": value.element_id,
            "labels": sorted(value.labels),
            "properties": self._transform_properties(value.items()),
        }

    @transform_value.register(Relationship)
    def _transform_relationship(self, value: Relationship) -> dict[str, Any]:
        start, end = value.start_node, value.end_node
        return {
            "identity": value.element_id,
            "type": value.type,
            "start": start.element_id if start is not None else None,
            "end": end.element_id if end is not None else None,
            "properties": self._transform_properties(value.items()),
        }

    @transform_value.register(Path)
    def _transform_path(self, value: Path) -> list[Any]:
        nodes, relationships = list(value.nodes), list(value.relationships)
        segments: list[Any] = []
        for index, path_node in enumerate(nodes):
            segments.append(self.transform_value(path_node))
            if index < len(relationships):
                segments.append(self.transform_value(relationships[index]))
        return segments

    @transform_value.register(Record)
    def _transform_nested_record(self, value: Record) -> dict[str, Any]:
        return self.transform_record(value)

    @transform_value.register(Mapping)
    def _transform_mapping(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return {key: self.transform_value(item) for key, item in value.items()}

    @transform_value.register(list)
    @transform_value.register(tuple)
    def _transform_sequence(self, value: list[Any] | tuple[Any, ...]) -> list[Any]:
        return [self.transform_value(item) for item in value]

    @transform_value.register(Point)
    def _transform_point(self, value: Point) -> dict[str, Any]:
        return {"srid": value.srid, "coordinates": list(value)}

    @transform_value.register(Date)
    @transform_value.register(Time)
    @transform_value.register(DateTime)
    def _transform_temporal(self, value: Date | Time | DateTime) -> Any:
        return value.to_native()

    @transform_value.register(Duration)
    def _transform_duration(self, value: Duration) -> Duration:
        # A Duration is a tuple subclass with no exact native equivalent
        return value

    def _transform_properties(self, items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
        return {key: self.transform_value(item) for key, item in items}
