"""Fluent Cypher query construction and execution over the Neo4j driver."""

from cypher_builder.core import ConnectionClosedError, QueryBuildError
from cypher_builder.neo4j import Connection, Credentials, Transformer, shutdown
from cypher_builder.query_builder import (
    CompiledQuery,
    NodePattern,
    PatternBuilder,
    Query,
    RelationPattern,
    node,
    relation,
)

__all__ = [
    "CompiledQuery",
    "Connection",
    "ConnectionClosedError",
    "Credentials",
    "NodePattern",
    "PatternBuilder",
    "Query",
    "QueryBuildError",
    "RelationPattern",
    "Transformer",
    "node",
    "relation",
    "shutdown",
]
