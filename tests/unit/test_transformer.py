"""Tests for result record transformation."""

import datetime

import pytest
from neo4j import Record
from neo4j.spatial import CartesianPoint, WGS84Point
from neo4j.time import Date, DateTime, Duration, Time

from cypher_builder.neo4j.transformer import MAX_SAFE_INTEGER, Transformer


@pytest.fixture
def transformer() -> Transformer:
    return Transformer()


class TestGraphEntities:
    def test_node(self, transformer: Transformer, make_node) -> None:
        alice = make_node("4:db:1", ["Person", "Admin"], {"name": "Alice", "age": 30})
        assert transformer.transform_value(alice) == {
            "identity": "4:db:1",
            "labels": ["Admin", "Person"],
            "properties": {"name": "Alice", "age": 30},
        }

    def test_node_without_properties(self, transformer: Transformer, make_node) -> None:
        assert transformer.transform_value(make_node("4:db:2")) == {
            "identity": "4:db:2",
            "labels": [],
            "properties": {},
        }

    def test_relationship(self, transformer: Transformer, make_node, make_relationship) -> None:
        alice, bob = make_node("4:db:1", ["Person"]), make_node("4:db:2", ["Person"])
        knows = make_relationship("5:db:9", "KNOWS", alice, bob, {"since": 2020})
        assert transformer.transform_value(knows) == {
            "identity": "5:db:9",
            "type": "KNOWS",
            "start": "4:db:1",
            "end": "4:db:2",
            "properties": {"since": 2020},
        }

    def test_path_alternates_nodes_and_relationships(
        self, transformer: Transformer, make_node, make_relationship, make_path
    ) -> None:
        a, b, c = make_node("n:a"), make_node("n:b"), make_node("n:c")
        ab = make_relationship("r:ab", "NEXT", a, b)
        bc = make_relationship("r:bc", "NEXT", b, c)

        segments = transformer.transform_value(make_path([a, b, c], [ab, bc]))

        assert [segment["identity"] for segment in segments] == ["n:a", "r:ab", "n:b", "r:bc", "n:c"]
        assert segments[1]["type"] == "NEXT"

    def test_single_node_path(self, transformer: Transformer, make_node, make_path) -> None:
        segments = transformer.transform_value(make_path([make_node("n:a")], []))
        assert [segment["identity"] for segment in segments] == ["n:a"]

    def test_nested_property_values_are_transformed(self, transformer: Transformer, make_node) -> None:
        point = CartesianPoint((1.0, 2.0))
        place = make_node("4:db:3", ["Place"], {"location": point, "visits": 2**60})
        result = Transformer(stringify_unsafe_integers=True).transform_value(place)
        assert result["properties"] == {
            "location": {"srid": 7203, "coordinates": [1.0, 2.0]},
            "visits": str(2**60),
        }


class TestIntegers:
    def test_integers_stay_native_by_default(self, transformer: Transformer) -> None:
        assert transformer.transform_value(2**60) == 2**60
        assert transformer.transform_value(-(2**60)) == -(2**60)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0, 0),
            (MAX_SAFE_INTEGER, MAX_SAFE_INTEGER),
            (-MAX_SAFE_INTEGER, -MAX_SAFE_INTEGER),
            (MAX_SAFE_INTEGER + 1, "9007199254740992"),
            (-(MAX_SAFE_INTEGER + 1), "-9007199254740992"),
        ],
    )
    def test_unsafe_integers_can_be_stringified(self, value: int, expected: int | str) -> None:
        assert Transformer(stringify_unsafe_integers=True).transform_value(value) == expected

    def test_booleans_are_not_integers(self) -> None:
        result = Transformer(stringify_unsafe_integers=True).transform_value(True)
        assert result is True


class TestScalars:
    @pytest.mark.parametrize("value", ["text", 1.5, None, b"bytes"])
    def test_plain_values_pass_through(self, transformer: Transformer, value: object) -> None:
        assert transformer.transform_value(value) == value

    def test_points(self, transformer: Transformer) -> None:
        assert transformer.transform_value(WGS84Point((12.5, 55.7))) == {
            "srid": 4326,
            "coordinates": [12.5, 55.7],
        }
        assert transformer.transform_value(CartesianPoint((1.0, 2.0, 3.0))) == {
            "srid": 9157,
            "coordinates": [1.0, 2.0, 3.0],
        }

    def test_temporal_values_become_native(self, transformer: Transformer) -> None:
        assert transformer.transform_value(Date(2024, 1, 2)) == datetime.date(2024, 1, 2)
        assert transformer.transform_value(Time(3, 4, 5)) == datetime.time(3, 4, 5)
        assert transformer.transform_value(DateTime(2024, 1, 2, 3, 4, 5)) == datetime.datetime(2024, 1, 2, 3, 4, 5)

    def test_duration_passes_through(self, transformer: Transformer) -> None:
        duration = Duration(days=1, hours=2)
        assert transformer.transform_value(duration) is duration


class TestRecords:
    def test_record_keys_and_order_are_kept(self, transformer: Transformer, make_node) -> None:
        record = Record({"n": make_node("4:db:1", ["Person"]), "count": 3})
        row = transformer.transform_record(record)
        assert list(row) == ["n", "count"]
        assert row["n"]["labels"] == ["Person"]
        assert row["count"] == 3

    def test_result_keeps_record_order(self, transformer: Transformer) -> None:
        records = [Record({"x": 1}), Record({"x": 2}), Record({"x": 3})]
        assert transformer.transform_result(records) == [{"x": 1}, {"x": 2}, {"x": 3}]

    def test_empty_result(self, transformer: Transformer) -> None:
        assert transformer.transform_result([]) == []

    def test_lists_and_maps_recurse(self, transformer: Transformer, make_node, make_relationship) -> None:
        a, b = make_node("n:a"), make_node("n:b")
        value = {"items": [a, {"edge": (make_relationship("r:1", "LINK", a, b),)}]}

        result = transformer.transform_value(value)

        assert result["items"][0]["identity"] == "n:a"
        assert result["items"][1]["edge"] == [
            {"identity": "r:1", "type": "LINK", "start": "n:a", "end": "n:b", "properties": {}}
        ]

    def test_plain_mappings_are_accepted_as_records(self, transformer: Transformer) -> None:
        assert transformer.transform_result([{"a": [1, 2]}]) == [{"a": [1, 2]}]

    def test_plain_rows_are_unchanged(self, transformer: Transformer) -> None:
        row = {"name": "Alice", "age": 30, "score": 1.5, "active": False, "nickname": None}
        assert transformer.transform_record(row) == row
        assert transformer.transform_record(transformer.transform_record(row)) == row

    def test_nested_structure_and_key_order_are_kept(self, transformer: Transformer) -> None:
        row = {"outer": {"z": [{"b": 1, "a": 2}, {"y": 3, "x": 4}], "m": 0}}

        result = transformer.transform_record(row)

        assert result == row
        assert list(result["outer"]) == ["z", "m"]
        assert [list(item) for item in result["outer"]["z"]] == [["b", "a"], ["y", "x"]]
