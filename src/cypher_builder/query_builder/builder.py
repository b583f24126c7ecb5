"""Main Cypher query builder implementation.

This module provides the Query class, a fluent interface for assembling a
Cypher statement clause by clause and compiling it into parameterised text.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any

from cypher_builder.core import ErrorCode, QueryBuildError, QueryErrorDetails
from cypher_builder.query_builder.clauses import (
    Clause,
    Create,
    Delete,
    DetachDelete,
    Limit,
    Match,
    Merge,
    OptionalMatch,
    OrderBy,
    Raw,
    Remove,
    Return,
    Set,
    Skip,
    TermInput,
    Unwind,
    Where,
    With,
)
from cypher_builder.query_builder.interfaces import CompiledQuery, QueryRunner
from cypher_builder.query_builder.parameters import ParameterBag, to_cypher_literal
from cypher_builder.query_builder.patterns import PatternInput, node
from cypher_builder.query_builder.state import StatementState

_PARAM_REFERENCE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)")


class Query:
    """Immutable fluent Cypher query builder.

    Every clause method returns a new Query holding the previous clauses plus
    the new one, so a partially built query can be shared and extended from
    several places without one caller changing what another compiles.

    Example:
        ```python
        rows = await (
            connection.match_node("n", "Person", {"name": "Alice"})
            .return_clause("n")
            .run()
        )
        ```
    """

    def __init__(self, connection: QueryRunner | None = None, clauses: Sequence[Clause] = ()) -> None:
        """Initialize a query.

        Args:
            connection: Connection used by run() and first(); optional for
                queries that are only compiled
            clauses: Initial clauses, in order
        """
        self._connection = connection
        self._clauses: tuple[Clause, ...] = tuple(clauses)

    def __repr__(self) -> str:
        kinds = ", ".join(clause.clause_type.name for clause in self._clauses)
        return f"Query([{kinds}])"

    @property
    def connection(self) -> QueryRunner | None:
        return self._connection

    def get_clauses(self) -> tuple[Clause, ...]:
        """Return the clauses of this statement in insertion order."""
        return self._clauses

    def add_clause(self, clause: Clause) -> "Query":
        """Return a new query with ``clause`` appended."""
        return Query(self._connection, (*self._clauses, clause))

    # ------------------------------------------------------------------
    # Reading clauses
    # ------------------------------------------------------------------

    def match_node(
        self,
        name: str | None = None,
        labels: str | Sequence[str] | None = None,
        conditions: Mapping[str, Any] | None = None,
    ) -> "Query":
        """Add a MATCH clause for a single node.

        Args:
            name: Variable name for the node
            labels: A label or an ordered list of labels
            conditions: Property values the node must have

        Returns:
            A new query with the clause appended

        Example:
            ```python
            query.match_node("n", "Person", {"name": "Alice"})
            # MATCH (n:Person {name: $n_name})
            ```
        """
        return self.match(node(name, labels, conditions))

    def match(self, patterns: PatternInput, optional: bool = False) -> "Query":
        """Add a MATCH clause.

        Args:
            patterns: A pattern, a chain of patterns, a list of chains or a
                PatternBuilder
            optional: Render OPTIONAL MATCH instead

        Returns:
            A new query with the clause appended

        Example:
            ```python
            query.match([node("a", "Person"), relation("->", labels="KNOWS"), node("b")])
            ```
        """
        if optional:
            return self.add_clause(OptionalMatch(patterns))
        return self.add_clause(Match(patterns))

    def optional_match(self, patterns: PatternInput) -> "Query":
        """Add an OPTIONAL MATCH clause."""
        return self.add_clause(OptionalMatch(patterns))

    def where(self, conditions: str | Mapping[str, Any]) -> "Query":
        """Add a WHERE clause.

        Args:
            conditions: A raw condition string, or a filter mapping whose
                values are bound as parameters

        Returns:
            A new query with the clause appended

        Example:
            ```python
            query.where({"n.age__gte": 18, "$or": [{"n.role": "admin"}, {"n.role": "owner"}]})
            # WHERE n.age >= $n_age AND (n.role = $n_role OR n.role = $n_role_2)
            ```
        """
        return self.add_clause(Where(conditions))

    def unwind(self, values: Sequence[Any], name: str) -> "Query":
        """Add an UNWIND clause; the list is bound as a single parameter."""
        return self.add_clause(Unwind(values, name))

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def return_clause(self, terms: TermInput, distinct: bool = False) -> "Query":
        """Add a RETURN clause.

        Args:
            terms: A term, a list of terms, or mappings of expression to alias
            distinct: Render RETURN DISTINCT

        Returns:
            A new query with the clause appended

        Example:
            ```python
            query.return_clause(["n", {"n.name": "name"}])
            # RETURN n, n.name AS name
            ```
        """
        return self.add_clause(Return(terms, distinct=distinct))

    def with_clause(self, terms: TermInput, distinct: bool = False) -> "Query":
        """Add a WITH clause; terms follow the same rules as return_clause()."""
        return self.add_clause(With(terms, distinct=distinct))

    def order_by(self, fields: str | Sequence[str] | Mapping[str, str | None]) -> "Query":
        """Add an ORDER BY clause.

        Args:
            fields: A field, a list of fields, or a mapping of field to
                ``"ASC"``/``"DESC"``

        Returns:
            A new query with the clause appended
        """
        return self.add_clause(OrderBy(fields))

    def skip(self, amount: int) -> "Query":
        return self.add_clause(Skip(amount))

    def limit(self, amount: int) -> "Query":
        return self.add_clause(Limit(amount))

    # ------------------------------------------------------------------
    # Writing clauses
    # ------------------------------------------------------------------

    def create_node(
        self,
        name: str | None = None,
        labels: str | Sequence[str] | None = None,
        conditions: Mapping[str, Any] | None = None,
    ) -> "Query":
        """Add a CREATE clause for a single node with the given properties."""
        return self.create(node(name, labels, conditions))

    def create(self, patterns: PatternInput) -> "Query":
        """Add a CREATE clause; accepts the same patterns as match()."""
        return self.add_clause(Create(patterns))

    def merge(self, patterns: PatternInput) -> "Query":
        """Add a MERGE clause; accepts the same patterns as match()."""
        return self.add_clause(Merge(patterns))

    def delete(self, terms: str | Sequence[str], detach: bool = False) -> "Query":
        """Add a DELETE clause.

        Args:
            terms: Variable name(s) to delete; at least one is required
            detach: Render DETACH DELETE instead

        Returns:
            A new query with the clause appended
        """
        if detach:
            return self.add_clause(DetachDelete(terms))
        return self.add_clause(Delete(terms))

    def detach_delete(self, terms: str | Sequence[str]) -> "Query":
        """Add a DETACH DELETE clause."""
        return self.add_clause(DetachDelete(terms))

    def set(
        self,
        labels: Mapping[str, str | Sequence[str]] | None = None,
        values: Mapping[str, Any] | None = None,
        variables: Mapping[str, str | Mapping[str, str]] | None = None,
        override: bool = False,
    ) -> "Query":
        """Add a SET clause combining labels, values and variables.

        Args:
            labels: Variable name to label(s) to add
            values: ``"n.prop"`` or ``"n"`` to a literal bound as a parameter
            variables: ``"n.prop"`` or ``"n"`` to a Cypher expression
            override: Replace all properties (``n = ...``) instead of merging
                (``n += ...``) when a whole variable is assigned

        Returns:
            A new query with the clause appended

        Example:
            ```python
            query.set(labels={"n": "Admin"}, values={"n.name": "Alice"})
            # SET n:Admin, n.name = $n_name
            ```
        """
        return self.add_clause(Set(labels=labels, values=values, variables=variables, override=override))

    def set_labels(self, labels: Mapping[str, str | Sequence[str]]) -> "Query":
        return self.add_clause(Set(labels=labels))

    def set_values(self, values: Mapping[str, Any], override: bool = False) -> "Query":
        return self.add_clause(Set(values=values, override=override))

    def set_variables(self, variables: Mapping[str, str | Mapping[str, str]], override: bool = False) -> "Query":
        return self.add_clause(Set(variables=variables, override=override))

    def remove(
        self,
        labels: Mapping[str, str | Sequence[str]] | None = None,
        properties: str | Sequence[str] | None = None,
    ) -> "Query":
        """Add a REMOVE clause for labels and/or ``name.prop`` properties."""
        return self.add_clause(Remove(labels=labels, properties=properties))

    def raw(self, clause: str, params: Mapping[str, Any] | None = None) -> "Query":
        """Add clause text verbatim.

        Args:
            clause: Cypher text, referencing its parameters as ``$name``
            params: Values for the parameters referenced in ``clause``

        Returns:
            A new query with the clause appended
        """
        return self.add_clause(Raw(clause, params))

    # ------------------------------------------------------------------
    # Compilation and execution
    # ------------------------------------------------------------------

    def build_query_object(self) -> CompiledQuery:
        """Compile the statement into query text and parameters.

        Returns:
            The compiled query

        Raises:
            QueryBuildError: If there are no clauses or the statement does not
                end with RETURN or an updating clause
        """
        StatementState([clause.clause_type for clause in self._clauses]).validate_query_complete()

        params = ParameterBag()
        for clause in self._clauses:
            clause.reserve(params)
        text = "\n".join(clause.build(params) for clause in self._clauses)
        return CompiledQuery(text=text, params=params.to_dict())

    def build(self) -> tuple[str, dict[str, Any]]:
        """Build the final Cypher query and parameters.

        Returns:
            Tuple of (query, params)
        """
        compiled = self.build_query_object()
        return compiled.text, compiled.params

    def interpolate(self) -> str:
        """Return the query text with parameter values written in as literals.

        For logging and debugging only; execute the parameterised form.
        """
        compiled = self.build_query_object()

        def substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in compiled.params:
                return match.group(0)
            return to_cypher_literal(compiled.params[key])

        return _PARAM_REFERENCE.sub(substitute, compiled.text)

    async def run(self) -> list[dict[str, Any]]:
        """Execute the query on its connection.

        Returns:
            One plain mapping per result record

        Raises:
            QueryBuildError: If the query is not bound to a connection or
                cannot be compiled
            ConnectionClosedError: If the connection has been closed
        """
        if self._connection is None:
            raise QueryBuildError(
                "Cannot run query: it is not bound to a connection.",
                details=QueryErrorDetails(source="query_builder", operation="run"),
                code=ErrorCode.QUERY_UNBOUND,
            )
        return await self._connection.run(self)

    async def first(self) -> dict[str, Any] | None:
        """Execute the query and return the first row, or None if there are none."""
        rows = await self.run()
        return rows[0] if rows else None
