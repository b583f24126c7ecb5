"""Process-wide registry of connections.

Connections register themselves on construction. The host application calls
``shutdown()`` once during its own shutdown sequence to close every
connection that is still open; closing a single connection does not remove
it from the registry.
"""

import asyncio
from typing import TYPE_CHECKING

from cypher_builder.core.logging import get_logger

if TYPE_CHECKING:
    from cypher_builder.neo4j.connection import Connection

logger = get_logger(__name__)


class ConnectionRegistry:
    """Tracks every Connection created in this process."""

    def __init__(self) -> None:
        self._connections: list["Connection"] = []

    def __len__(self) -> int:
        return len(self._connections)

    def register(self, connection: "Connection") -> None:
        self._connections.append(connection)

    def snapshot(self) -> tuple["Connection", ...]:
        return tuple(self._connections)

    async def shutdown(self) -> int:
        """Close every registered connection and clear the registry.

        Returns:
            Number of connections that were open or still closing
        """
        connections, self._connections = self._connections, []
        still_open = [connection for connection in connections if not connection.is_closed]

        results = await asyncio.gather(
            *(connection.close() for connection in still_open),
            return_exceptions=True,
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        for failure in failures:
            logger.error("Failed to close connection during shutdown", error=failure)

        logger.info(
            "Connection registry shut down",
            extra={"registered": len(connections), "closed": len(still_open) - len(failures)},
        )
        if failures:
            raise failures[0]
        return len(still_open)


_registry = ConnectionRegistry()


def get_registry() -> ConnectionRegistry:
    """Get the process-wide connection registry."""
    return _registry


def open_connections() -> tuple["Connection", ...]:
    """Return the registered connections that are still open."""
    return tuple(connection for connection in _registry.snapshot() if connection.is_open)


async def shutdown() -> int:
    """Close all open connections; call once while the application shuts down."""
    return await _registry.shutdown()
