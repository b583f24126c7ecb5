"""End-to-end behaviour against a live Neo4j server."""

import pytest
from neo4j.exceptions import Neo4jError

from cypher_builder.core import ConnectionClosedError
from cypher_builder.neo4j import Connection
from cypher_builder.query_builder import node, relation

pytestmark = pytest.mark.integration

LABEL = "CypherBuilderTest"


@pytest.fixture
async def people(live_connection: Connection):
    await live_connection.create_node("a", [LABEL, "Person"], {"name": "Alice", "age": 30}).run()
    await live_connection.create_node("b", [LABEL, "Person"], {"name": "Bob", "age": 40}).run()
    yield live_connection
    await live_connection.match_node("n", LABEL).detach_delete("n").run()


async def test_match_node_returns_a_row(people: Connection) -> None:
    rows = await people.match_node("n", [LABEL, "Person"], {"name": "Alice"}).return_clause("n").run()

    assert len(rows) == 1
    alice = rows[0]["n"]
    assert sorted(alice["labels"]) == sorted([LABEL, "Person"])
    assert alice["properties"] == {"name": "Alice", "age": 30}
    assert isinstance(alice["identity"], str)


async def test_filters_and_paging(people: Connection) -> None:
    rows = await (
        people.match_node("n", LABEL)
        .where({"n.age__gte": 35})
        .return_clause({"n.name": "name"})
        .order_by("name")
        .limit(10)
        .run()
    )
    assert rows == [{"name": "Bob"}]


async def test_relationships_and_paths(people: Connection) -> None:
    await (
        people.match_node("a", LABEL, {"name": "Alice"})
        .match_node("b", LABEL, {"name": "Bob"})
        .merge([node("a"), relation("->", "r", "KNOWS", {"since": 2020}), node("b")])
        .run()
    )

    rows = await people.raw(
        f"MATCH p = (:{LABEL} {{name: $name}})-[:KNOWS]->() RETURN relationships(p)[0] AS r, p",
        {"name": "Alice"},
    ).run()

    knows, path = rows[0]["r"], rows[0]["p"]
    assert knows["type"] == "KNOWS"
    assert knows["properties"] == {"since": 2020}
    assert [segment["identity"] for segment in path][1] == knows["identity"]
    assert len(path) == 3


async def test_delete_without_match_is_rejected_by_the_server(live_connection: Connection) -> None:
    with pytest.raises(Neo4jError):
        await live_connection.delete("n").run()


async def test_closed_connection_refuses_queries(live_connection: Connection) -> None:
    await live_connection.close()
    with pytest.raises(ConnectionClosedError):
        await live_connection.return_clause("1").run()
