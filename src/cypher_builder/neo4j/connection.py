"""Neo4j connection management.

A Connection owns one async driver, opens a fresh session for every query it
runs, and hands the records to the Transformer once the session is released.
"""

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

from neo4j import AsyncGraphDatabase, basic_auth
from pydantic import BaseModel, SecretStr

from cypher_builder.core import (
    ConnectionClosedError,
    ConnectionErrorDetails,
    ErrorCode,
    ErrorLevel,
    QueryBuildError,
    QueryErrorDetails,
)
from cypher_builder.core.config import Settings, get_settings
from cypher_builder.core.decorators import with_error_handling
from cypher_builder.core.logging import get_logger
from cypher_builder.neo4j.interfaces import DriverHandle, SessionHandle
from cypher_builder.neo4j.registry import get_registry
from cypher_builder.neo4j.transformer import Transformer
from cypher_builder.query_builder import Query
from cypher_builder.query_builder.clauses import TermInput
from cypher_builder.query_builder.patterns import PatternInput

logger = get_logger(__name__)


class Credentials(BaseModel):
    """Basic authentication credentials for the graph database."""

    username: str
    password: SecretStr


class Connection:
    """Connection to a Neo4j database.

    Every run() uses its own session, so concurrent runs on one connection
    never share session state and are not ordered relative to each other.

    Example:
        ```python
        connection = Connection("bolt://localhost:7687", Credentials(username="neo4j", password="secret"))
        rows = await connection.match_node("n", "Person").return_clause("n").run()
        await connection.close()
        ```
    """

    def __init__(
        self,
        url: str,
        credentials: Credentials | Mapping[str, Any],
        transformer: Transformer | None = None,
        **driver_config: Any,
    ) -> None:
        """Create the driver and register the connection.

        Args:
            url: Database URL, e.g. ``bolt://localhost:7687``
            credentials: Username and password, as Credentials or a mapping
            transformer: Result transformer; defaults to one configured from
                settings
            **driver_config: Extra keyword arguments for the neo4j driver
        """
        if not isinstance(credentials, Credentials):
            credentials = Credentials.model_validate(credentials)

        self.url = url
        auth = basic_auth(credentials.username, credentials.password.get_secret_value())
        self._driver: DriverHandle = AsyncGraphDatabase.driver(url, auth=auth, **driver_config)
        self._open = True
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._closing: asyncio.Future[None] | None = None
        self.transformer = transformer or Transformer(
            stringify_unsafe_integers=get_settings().stringify_unsafe_integers
        )

        get_registry().register(self)
        logger.info("Neo4j connection created", extra={"url": url, "user": credentials.username})

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Connection":
        """Create a connection from configuration.

        Args:
            settings: Settings to use; defaults to the process-wide settings

        Returns:
            A new, registered connection
        """
        settings = settings or get_settings()
        return cls(
            settings.neo4j_uri,
            Credentials(username=settings.neo4j_user, password=settings.neo4j_password),
            transformer=Transformer(stringify_unsafe_integers=settings.stringify_unsafe_integers),
            max_connection_pool_size=settings.max_connection_pool_size,
            max_connection_lifetime=settings.max_connection_lifetime,
        )

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def is_closed(self) -> bool:
        """True once the driver itself has been closed."""
        return self._closing is not None and self._closing.done()

    async def close(self) -> None:
        """Close the connection.

        New runs fail as soon as this is called; runs that already hold a
        session are allowed to finish before the driver is closed. Every
        caller, including later ones, returns only after the driver is closed.
        """
        if self._closing is None:
            self._open = False
            self._closing = asyncio.ensure_future(self._close_driver())
        await asyncio.shield(self._closing)

    async def _close_driver(self) -> None:
        await self._idle.wait()
        await self._driver.close()
        logger.info("Neo4j connection closed", extra={"url": self.url})

    def session(self) -> SessionHandle | None:
        """Open and return a session, or None if the connection is closed."""
        if self._open:
            return self._driver.session()
        return None

    def query(self) -> Query:
        """Return a new, empty query that runs on this connection."""
        return Query(self)

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def run(self, query: Query) -> list[dict[str, Any]]:
        """Run a query in a new session using this connection.

        Args:
            query: Query to compile and execute

        Returns:
            One plain mapping per result record

        Raises:
            ConnectionClosedError: If the connection is closed
            QueryBuildError: If the query has no clauses or cannot be compiled
            neo4j.exceptions.Neo4jError: Propagated unchanged from the driver
        """
        # No await may happen between this check and acquiring the session
        if not self._open:
            raise ConnectionClosedError(
                "Cannot run query; connection is not open.",
                details=ConnectionErrorDetails(source="connection", operation="run", url=self.url),
            )

        if not query.get_clauses():
            raise QueryBuildError(
                "Cannot run query: no statements attached to the query.",
                details=QueryErrorDetails(source="connection", operation="run"),
                code=ErrorCode.QUERY_INCOMPLETE,
            )

        compiled = query.build_query_object()
        session = self._driver.session()

        self._in_flight += 1
        self._idle.clear()
        try:
            logger.debug(
                "Executing Cypher query",
                extra={"query": compiled.text, "params": sorted(compiled.params)},
            )
            async with session:
                result = await session.run(compiled.text, parameters=compiled.params)
                records = [record async for record in result]
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

        return self.transformer.transform_result(records)

    # ------------------------------------------------------------------
    # Builder shorthands; each starts a new query on this connection
    # ------------------------------------------------------------------

    def match_node(
        self,
        name: str | None = None,
        labels: str | Sequence[str] | None = None,
        conditions: Mapping[str, Any] | None = None,
    ) -> Query:
        return self.query().match_node(name, labels, conditions)

    def match(self, patterns: PatternInput, optional: bool = False) -> Query:
        return self.query().match(patterns, optional=optional)

    def optional_match(self, patterns: PatternInput) -> Query:
        return self.query().optional_match(patterns)

    def where(self, conditions: str | Mapping[str, Any]) -> Query:
        return self.query().where(conditions)

    def create_node(
        self,
        name: str | None = None,
        labels: str | Sequence[str] | None = None,
        conditions: Mapping[str, Any] | None = None,
    ) -> Query:
        return self.query().create_node(name, labels, conditions)

    def create(self, patterns: PatternInput) -> Query:
        return self.query().create(patterns)

    def merge(self, patterns: PatternInput) -> Query:
        return self.query().merge(patterns)

    def return_clause(self, terms: TermInput, distinct: bool = False) -> Query:
        return self.query().return_clause(terms, distinct=distinct)

    def with_clause(self, terms: TermInput, distinct: bool = False) -> Query:
        return self.query().with_clause(terms, distinct=distinct)

    def unwind(self, values: Sequence[Any], name: str) -> Query:
        return self.query().unwind(values, name)

    def order_by(self, fields: str | Sequence[str] | Mapping[str, str | None]) -> Query:
        return self.query().order_by(fields)

    def skip(self, amount: int) -> Query:
        return self.query().skip(amount)

    def limit(self, amount: int) -> Query:
        return self.query().limit(amount)

    def delete(self, terms: str | Sequence[str], detach: bool = False) -> Query:
        return self.query().delete(terms, detach=detach)

    def detach_delete(self, terms: str | Sequence[str]) -> Query:
        return self.query().detach_delete(terms)

    def set(
        self,
        labels: Mapping[str, str | Sequence[str]] | None = None,
        values: Mapping[str, Any] | None = None,
        variables: Mapping[str, str | Mapping[str, str]] | None = None,
        override: bool = False,
    ) -> Query:
        return self.query().set(labels=labels, values=values, variables=variables, override=override)

    def set_labels(self, labels: Mapping[str, str | Sequence[str]]) -> Query:
        return self.query().set_labels(labels)

    def set_values(self, values: Mapping[str, Any], override: bool = False) -> Query:
        return self.query().set_values(values, override=override)

    def set_variables(self, variables: Mapping[str, str | Mapping[str, str]], override: bool = False) -> Query:
        return self.query().set_variables(variables, override=override)

    def remove(
        self,
        labels: Mapping[str, str | Sequence[str]] | None = None,
        properties: str | Sequence[str] | None = None,
    ) -> Query:
        return self.query().remove(labels=labels, properties=properties)

    def raw(self, clause: str, params: Mapping[str, Any] | None = None) -> Query:
        return self.query().raw(clause, params)
