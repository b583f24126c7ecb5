"""Query builder interfaces.

This module defines the seams between the query builder and whatever
executes its statements, so the builder never depends on the driver.
"""

from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from cypher_builder.query_builder.builder import Query


class CompiledQuery(BaseModel):
    """Query text plus its bound parameters, ready for execution."""

    model_config = ConfigDict(frozen=True)

    text: str
    params: dict[str, Any] = Field(default_factory=dict)


class QueryRunner(Protocol):
    """Anything that can execute a Query and return transformed rows."""

    async def run(self, query: "Query") -> list[dict[str, Any]]:
        """Execute the query.

        Args:
            query: Query to compile and execute

        Returns:
            One plain mapping per result record
        """
        ...
