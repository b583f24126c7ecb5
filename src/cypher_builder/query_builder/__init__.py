"""Cypher query builder framework.

This package provides a fluent, immutable interface for building
parameterised Cypher queries.
"""

from .builder import Query
from .clauses import Clause
from .interfaces import CompiledQuery, QueryRunner
from .parameters import ParameterBag
from .patterns import NodePattern, PatternBuilder, RelationPattern, node, relation
from .state import ClauseType, StatementState

__all__ = [
    "Clause",
    "ClauseType",
    "CompiledQuery",
    # Patterns
    "NodePattern",
    "ParameterBag",
    "PatternBuilder",
    # Query builder
    "Query",
    "QueryRunner",
    "RelationPattern",
    "StatementState",
    "node",
    "relation",
]
