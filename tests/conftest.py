"""Shared fixtures: an in-memory stand-in for the neo4j async driver and
mocked graph entities for transformer tests."""

import asyncio
from collections.abc import Iterable
from typing import Any
from unittest.mock import MagicMock

import pytest
from neo4j.graph import Node, Path, Relationship

from cypher_builder.neo4j import connection as connection_module
from cypher_builder.neo4j import registry as registry_module
from cypher_builder.neo4j.connection import Connection, Credentials

# =========================
# Fake driver
# =========================


class FakeResult:
    """Async iterable over canned records."""

    def __init__(self, records: list[Any]) -> None:
        self._records = records

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for record in self._records:
            yield record


class FakeSession:
    def __init__(self, driver: "FakeDriver") -> None:
        self.driver = driver
        self.closed = False

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.closed = True
        self.driver.closed_sessions.append(self)

    async def run(self, query: str, parameters: dict[str, Any] | None = None, **kwargs: Any) -> FakeResult:
        self.driver.executed.append((query, parameters))
        self.driver.run_started.set()
        if self.driver.gate is not None:
            await self.driver.gate.wait()
        if self.driver.error is not None:
            raise self.driver.error
        return FakeResult(list(self.driver.records))


class FakeDriver:
    def __init__(self, url: str, auth: Any = None, **config: Any) -> None:
        self.url = url
        self.auth = auth
        self.config = config
        self.records: list[Any] = []
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.run_started = asyncio.Event()
        self.sessions: list[FakeSession] = []
        self.closed_sessions: list[FakeSession] = []
        self.executed: list[tuple[str, dict[str, Any] | None]] = []
        self.close_calls = 0

    def session(self, **config: Any) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    async def close(self) -> None:
        self.close_calls += 1


class FakeGraphDatabase:
    drivers: list[FakeDriver] = []

    @classmethod
    def driver(cls, url: str, auth: Any = None, **config: Any) -> FakeDriver:
        driver = FakeDriver(url, auth, **config)
        cls.drivers.append(driver)
        return driver


@pytest.fixture(autouse=True)
def isolated_registry(monkeypatch: pytest.MonkeyPatch) -> registry_module.ConnectionRegistry:
    """Give every test its own connection registry."""
    registry = registry_module.ConnectionRegistry()
    monkeypatch.setattr(registry_module, "_registry", registry)
    return registry


@pytest.fixture
def fake_graph_database(monkeypatch: pytest.MonkeyPatch) -> type[FakeGraphDatabase]:
    FakeGraphDatabase.drivers = []
    monkeypatch.setattr(connection_module, "AsyncGraphDatabase", FakeGraphDatabase)
    return FakeGraphDatabase


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(username="neo4j", password="secret")


@pytest.fixture
def connection(fake_graph_database: type[FakeGraphDatabase], credentials: Credentials) -> Connection:
    return Connection("bolt://graph.test:7687", credentials)


@pytest.fixture
def driver(connection: Connection, fake_graph_database: type[FakeGraphDatabase]) -> FakeDriver:
    return fake_graph_database.drivers[-1]


# =========================
# Mocked graph entities
# =========================


def _make_node(element_id: str, labels: Iterable[str] = (), properties: dict[str, Any] | None = None) -> MagicMock:
    node = MagicMock(spec=Node)
    node.element_id = element_id
    node.labels = frozenset(labels)
    node.items.return_value = list((properties or {}).items())
    return node


def _make_relationship(
    element_id: str,
    type_: str,
    start: MagicMock,
    end: MagicMock,
    properties: dict[str, Any] | None = None,
) -> MagicMock:
    relationship = MagicMock(spec=Relationship)
    relationship.element_id = element_id
    relationship.type = type_
    relationship.start_node = start
    relationship.end_node = end
    relationship.items.return_value = list((properties or {}).items())
    return relationship


def _make_path(nodes: list[MagicMock], relationships: list[MagicMock]) -> MagicMock:
    path = MagicMock(spec=Path)
    path.nodes = tuple(nodes)
    path.relationships = tuple(relationships)
    return path


@pytest.fixture
def make_node():
    return _make_node


@pytest.fixture
def make_relationship():
    return _make_relationship


@pytest.fixture
def make_path():
    return _make_path
