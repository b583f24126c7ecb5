"""Driver capabilities used by Connection.

Connection only needs to open a session, close the driver, and run a
statement inside a session. These protocols describe exactly that surface;
``neo4j.AsyncDriver`` and ``neo4j.AsyncSession`` satisfy them.
"""

from collections.abc import AsyncIterable
from types import TracebackType
from typing import Any, Protocol, Self


class SessionHandle(Protocol):
    """A single-use execution context, released by leaving ``async with``."""

    async def __aenter__(self) -> Self: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Any: ...

    async def run(self, query: Any, parameters: dict[str, Any] | None = None, **kwargs: Any) -> AsyncIterable[Any]:
        """Execute a statement and return its records as an async iterable."""
        ...


class DriverHandle(Protocol):
    """An open handle on the graph database."""

    def session(self, **config: Any) -> SessionHandle: ...

    async def close(self) -> None: ...
