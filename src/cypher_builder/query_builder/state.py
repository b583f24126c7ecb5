"""Clause kinds and statement completeness checks.

The builder does not enforce the order in which clauses are added; the graph
engine is the authority on that. It only refuses to compile a statement that
is empty or that cannot conclude a Cypher query.
"""

from collections.abc import Sequence
from enum import Enum, auto
from typing import ClassVar

from cypher_builder.core import ErrorCode, QueryBuildError, QueryErrorDetails


class ClauseType(Enum):
    """Enum for Cypher clause types."""

    # Reading
    MATCH = auto()
    OPTIONAL_MATCH = auto()
    WHERE = auto()
    UNWIND = auto()

    # Projection
    RETURN = auto()
    WITH = auto()
    ORDER_BY = auto()
    SKIP = auto()
    LIMIT = auto()

    # Data manipulation
    CREATE = auto()
    MERGE = auto()
    DELETE = auto()
    DETACH_DELETE = auto()
    SET = auto()
    SET_LABELS = auto()
    SET_VALUES = auto()
    SET_VARIABLES = auto()
    REMOVE = auto()

    # Miscellaneous
    RAW = auto()


class StatementState:
    """Completeness rules for an ordered sequence of clause kinds."""

    # Clauses a Cypher query may end with
    _CONCLUDING: ClassVar[frozenset[ClauseType]] = frozenset(
        {
            ClauseType.RETURN,
            ClauseType.CREATE,
            ClauseType.MERGE,
            ClauseType.DELETE,
            ClauseType.DETACH_DELETE,
            ClauseType.SET,
            ClauseType.SET_LABELS,
            ClauseType.SET_VALUES,
            ClauseType.SET_VARIABLES,
            ClauseType.REMOVE,
            ClauseType.RAW,
        }
    )

    # Modifiers that attach to the preceding RETURN or WITH
    _MODIFIERS: ClassVar[frozenset[ClauseType]] = frozenset(
        {ClauseType.ORDER_BY, ClauseType.SKIP, ClauseType.LIMIT}
    )

    def __init__(self, clause_types: Sequence[ClauseType]) -> None:
        self._clause_types = tuple(clause_types)

    @property
    def concluding_clause(self) -> ClauseType | None:
        """The last clause that is not an ORDER BY, SKIP or LIMIT modifier."""
        for clause_type in reversed(self._clause_types):
            if clause_type not in self._MODIFIERS:
                return clause_type
        return None

    @property
    def is_complete(self) -> bool:
        return self.concluding_clause in self._CONCLUDING

    def validate_query_complete(self) -> None:
        """Validate that the statement can be compiled.

        Raises:
            QueryBuildError: If there are no clauses or the statement does not
                end with RETURN or an updating clause
        """
        if not self._clause_types:
            raise QueryBuildError(
                "Cannot build query: no statements attached to the query.",
                details=QueryErrorDetails(source="query_builder", operation="build"),
                code=ErrorCode.QUERY_INCOMPLETE,
            )

        if not self.is_complete:
            concluding = self.concluding_clause
            raise QueryBuildError(
                "Query is not complete. It must end with RETURN or an updating clause "
                f"(CREATE, MERGE, DELETE, SET, REMOVE), got {concluding.name if concluding else 'nothing'}",
                details=QueryErrorDetails(
                    source="query_builder",
                    operation="build",
                    clause=concluding.name if concluding else None,
                ),
                code=ErrorCode.QUERY_INCOMPLETE,
            )
