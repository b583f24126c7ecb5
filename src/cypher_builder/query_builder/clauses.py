"""Clause models for the Cypher query builder.

Each clause keeps the literal inputs it was created with and renders its text
only when the statement is compiled, so parameter keys are assigned once per
compilation by a single ParameterBag.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar, TypeAlias

from cypher_builder.core import QueryBuildError, QueryErrorDetails
from cypher_builder.query_builder.parameters import ParameterBag
from cypher_builder.query_builder.patterns import (
    PatternChain,
    PatternInput,
    build_chains,
    normalize_labels,
    normalize_patterns,
)
from cypher_builder.query_builder.state import ClauseType

Term: TypeAlias = str | Mapping[str, str]
TermInput: TypeAlias = Term | Sequence[Term]

_OPS = {
    "lt": "<",
    "lte": "<=",
    "gt": ">",
    "gte": ">=",
    "ne": "<>",
    "in": "IN",
    "contains": "CONTAINS",
    "startswith": "STARTS WITH",
    "endswith": "ENDS WITH",
}

_ORDER_DIRECTIONS = {"ASC": "ASC", "ASCENDING": "ASC", "DESC": "DESC", "DESCENDING": "DESC"}


def _invalid(clause: ClauseType, argument: str, message: str, value: Any = None) -> QueryBuildError:
    return QueryBuildError(
        f"{clause.name}: {message}",
        details=QueryErrorDetails(
            source="query_builder.clauses",
            operation=f"build {clause.name}",
            clause=clause.name,
            argument=argument,
            actual_value=repr(value),
        ),
    )


def _names(clause: ClauseType, argument: str, terms: str | Sequence[str]) -> tuple[str, ...]:
    """Normalize a name or list of names, rejecting an empty result."""
    if isinstance(terms, str):
        terms = [terms]
    names = tuple(term.strip() for term in terms if isinstance(term, str) and term.strip())
    if not names or len(names) != len(list(terms)):
        raise _invalid(clause, argument, "requires at least one non-empty name", terms)
    return names


class Clause(ABC):
    """One syntactic unit of a Cypher statement."""

    clause_type: ClassVar[ClauseType]

    @abstractmethod
    def build(self, params: ParameterBag) -> str:
        """Render the clause text, binding literal values into ``params``."""

    def reserve(self, params: ParameterBag) -> None:
        """Claim caller-chosen parameter names before any clause is rendered."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.clause_type.name}>"


class PatternClause(Clause):
    keyword: ClassVar[str]

    def __init__(self, patterns: PatternInput) -> None:
        chains = normalize_patterns(patterns)
        if not chains:
            raise _invalid(self.clause_type, "patterns", "requires at least one pattern", patterns)
        self.chains: tuple[PatternChain, ...] = chains

    def build(self, params: ParameterBag) -> str:
        return f"{self.keyword} {build_chains(self.chains, params)}"


class Match(PatternClause):
    clause_type = ClauseType.MATCH
    keyword = "MATCH"


class OptionalMatch(PatternClause):
    clause_type = ClauseType.OPTIONAL_MATCH
    keyword = "OPTIONAL MATCH"


class Create(PatternClause):
    clause_type = ClauseType.CREATE
    keyword = "CREATE"


class Merge(PatternClause):
    clause_type = ClauseType.MERGE
    keyword = "MERGE"


class TermListClause(Clause):
    """Projection clauses whose terms may carry aliases (``n.name AS name``)."""

    keyword: ClassVar[str]

    def __init__(self, terms: TermInput, distinct: bool = False) -> None:
        if isinstance(terms, str | Mapping):
            terms = [terms]

        rendered: list[str] = []
        for term in terms:
            if isinstance(term, str) and term.strip():
                rendered.append(term.strip())
            elif isinstance(term, Mapping) and term:
                for expression, alias in term.items():
                    rendered.append(f"{expression} AS {alias}" if alias else str(expression))
            else:
                raise _invalid(self.clause_type, "terms", "terms must be non-empty strings or mappings", term)

        if not rendered:
            raise _invalid(self.clause_type, "terms", "requires at least one term", terms)

        self.terms: tuple[str, ...] = tuple(rendered)
        self.distinct = distinct

    def build(self, params: ParameterBag) -> str:
        distinct = "DISTINCT " if self.distinct else ""
        return f"{self.keyword} {distinct}{', '.join(self.terms)}"


class Return(TermListClause):
    clause_type = ClauseType.RETURN
    keyword = "RETURN"


class With(TermListClause):
    clause_type = ClauseType.WITH
    keyword = "WITH"


class Unwind(Clause):
    clause_type = ClauseType.UNWIND

    def __init__(self, values: Sequence[Any], name: str) -> None:
        if isinstance(values, str | bytes | Mapping) or not isinstance(values, Sequence):
            raise _invalid(self.clause_type, "values", "expects a list of values", values)
        if not isinstance(name, str) or not name.strip():
            raise _invalid(self.clause_type, "name", "requires a variable name", name)
        self.values = list(values)
        self.name = name.strip()

    def build(self, params: ParameterBag) -> str:
        key = params.add(self.values, f"{self.name}_list")
        return f"UNWIND ${key} AS {self.name}"


class Where(Clause):
    """WHERE clause from a raw condition or a filter mapping.

    Filter mappings support:
        - Simple equality: ``{"n.name": "Alice"}``
        - Operators: ``{"n.age__gt": 18, "n.name__startswith": "A"}``
        - Null checks: ``{"n.email": None}``
        - Logical groups: ``{"$or": [{...}, {...}], "$and": [...]}``
    """

    clause_type = ClauseType.WHERE

    def __init__(self, conditions: str | Mapping[str, Any]) -> None:
        if isinstance(conditions, str):
            if not conditions.strip():
                raise _invalid(self.clause_type, "conditions", "requires a condition", conditions)
        elif not isinstance(conditions, Mapping) or not conditions:
            raise _invalid(self.clause_type, "conditions", "requires a condition string or mapping", conditions)
        else:
            self._check_filters(conditions)
        self.conditions = conditions

    def _check_filters(self, filters: Mapping[str, Any]) -> None:
        for key, value in filters.items():
            if key in ("$or", "$and"):
                if isinstance(value, str) or not isinstance(value, Sequence) or not value:
                    raise _invalid(self.clause_type, key, "expects a non-empty list of mappings", value)
                for item in value:
                    if not isinstance(item, Mapping) or not item:
                        raise _invalid(self.clause_type, key, "expects a non-empty list of mappings", value)
                    self._check_filters(item)
            elif "__" in key:
                _, op = key.rsplit("__", 1)
                if op not in _OPS:
                    raise _invalid(self.clause_type, key, f"unknown operator {op!r}", value)

    def _compile(self, filters: Mapping[str, Any], params: ParameterBag) -> list[str]:
        clauses: list[str] = []

        for key, value in filters.items():
            if key in ("$or", "$and"):
                joiner = " OR " if key == "$or" else " AND "
                groups: list[str] = []
                for item in value:
                    sub_clauses = self._compile(item, params)
                    groups.append(sub_clauses[0] if len(sub_clauses) == 1 else f"({' AND '.join(sub_clauses)})")
                clauses.append(groups[0] if len(groups) == 1 else f"({joiner.join(groups)})")

            elif "__" in key:
                field, op = key.rsplit("__", 1)
                clauses.append(f"{field} {_OPS[op]} ${params.add(value, field)}")

            elif value is None:
                clauses.append(f"{key} IS NULL")

            else:
                clauses.append(f"{key} = ${params.add(value, key)}")

        return clauses

    def build(self, params: ParameterBag) -> str:
        if isinstance(self.conditions, str):
            return f"WHERE {self.conditions.strip()}"
        return "WHERE " + " AND ".join(self._compile(self.conditions, params))


class OrderBy(Clause):
    clause_type = ClauseType.ORDER_BY

    def __init__(self, fields: str | Sequence[str] | Mapping[str, str | None]) -> None:
        if isinstance(fields, str):
            fields = {fields: None}
        elif not isinstance(fields, Mapping):
            fields = {field: None for field in _names(self.clause_type, "fields", fields)}

        if not fields:
            raise _invalid(self.clause_type, "fields", "requires at least one field", fields)

        self.fields: list[tuple[str, str | None]] = []
        for field, direction in fields.items():
            if not isinstance(field, str) or not field.strip():
                raise _invalid(self.clause_type, "fields", "field names must be non-empty", field)
            if direction is not None:
                normalized = _ORDER_DIRECTIONS.get(str(direction).upper())
                if normalized is None:
                    raise _invalid(self.clause_type, "direction", "direction must be ASC or DESC", direction)
                direction = normalized
            self.fields.append((field.strip(), direction))

    def build(self, params: ParameterBag) -> str:
        parts = [f"{field} {direction}" if direction else field for field, direction in self.fields]
        return "ORDER BY " + ", ".join(parts)


class _Paging(Clause):
    keyword: ClassVar[str]

    def __init__(self, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise _invalid(self.clause_type, "amount", "expects a non-negative integer", amount)
        self.amount = amount

    def build(self, params: ParameterBag) -> str:
        return f"{self.keyword} ${params.add(self.amount, self.keyword.lower())}"


class Skip(_Paging):
    clause_type = ClauseType.SKIP
    keyword = "SKIP"


class Limit(_Paging):
    clause_type = ClauseType.LIMIT
    keyword = "LIMIT"


class Delete(Clause):
    clause_type = ClauseType.DELETE

    def __init__(self, terms: str | Sequence[str]) -> None:
        self.terms = _names(self.clause_type, "terms", terms)

    def build(self, params: ParameterBag) -> str:
        return f"DELETE {', '.join(self.terms)}"


class DetachDelete(Delete):
    clause_type = ClauseType.DETACH_DELETE

    def build(self, params: ParameterBag) -> str:
        return f"DETACH {super().build(params)}"


class Set(Clause):
    """SET clause combining label, value and variable assignments.

    - ``labels``: ``{"n": ["Admin"]}`` -> ``n:Admin``
    - ``values``: ``{"n.name": "Alice"}`` -> ``n.name = $n_name``;
      ``{"n": {...}}`` -> ``n += $n`` (``n = $n`` with ``override``)
    - ``variables``: ``{"n.name": "m.name"}`` -> ``n.name = m.name``;
      ``{"n": "m"}`` -> ``n += m``; ``{"n": {"a": "m.a"}}`` -> ``n += {a: m.a}``
    """

    def __init__(
        self,
        labels: Mapping[str, str | Sequence[str]] | None = None,
        values: Mapping[str, Any] | None = None,
        variables: Mapping[str, str | Mapping[str, str]] | None = None,
        override: bool = False,
    ) -> None:
        self.labels = {name: normalize_labels(value) for name, value in (labels or {}).items()}
        self.values = dict(values or {})
        self.variables = dict(variables or {})
        self.override = override

        if not (self.labels or self.values or self.variables):
            raise _invalid(ClauseType.SET, "settings", "requires labels, values or variables to set")
        for name, label_list in self.labels.items():
            if not label_list:
                raise _invalid(ClauseType.SET, "labels", f"no labels given for {name!r}", labels)
        for key, value in self.values.items():
            if "." not in key and not isinstance(value, Mapping):
                raise _invalid(ClauseType.SET, "values", f"{key!r} must be set from a mapping", value)
        for key, value in self.variables.items():
            if not isinstance(value, str | Mapping) or not value:
                raise _invalid(ClauseType.SET, "variables", f"{key!r} must be set from an expression", value)

    @property
    def clause_type(self) -> ClauseType:  # type: ignore[override]
        kinds = [
            kind
            for kind, present in (
                (ClauseType.SET_LABELS, self.labels),
                (ClauseType.SET_VALUES, self.values),
                (ClauseType.SET_VARIABLES, self.variables),
            )
            if present
        ]
        return kinds[0] if len(kinds) == 1 else ClauseType.SET

    def _assign(self, key: str, expression: str) -> str:
        if "." in key:
            return f"{key} = {expression}"
        return f"{key} {'=' if self.override else '+='} {expression}"

    def build(self, params: ParameterBag) -> str:
        parts: list[str] = []

        for name, label_list in self.labels.items():
            parts.append(name + "".join(f":{label}" for label in label_list))

        for key, value in self.values.items():
            parts.append(self._assign(key, f"${params.add(value, key)}"))

        for key, value in self.variables.items():
            if isinstance(value, Mapping):
                value = "{" + ", ".join(f"{prop}: {expr}" for prop, expr in value.items()) + "}"
            parts.append(self._assign(key, value))

        return "SET " + ", ".join(parts)


class Remove(Clause):
    clause_type = ClauseType.REMOVE

    def __init__(
        self,
        labels: Mapping[str, str | Sequence[str]] | None = None,
        properties: str | Sequence[str] | None = None,
    ) -> None:
        self.labels = {name: normalize_labels(value) for name, value in (labels or {}).items()}
        self.properties = _names(self.clause_type, "properties", properties) if properties else ()

        if not (self.labels or self.properties):
            raise _invalid(self.clause_type, "settings", "requires labels or properties to remove")
        for prop in self.properties:
            if "." not in prop:
                raise _invalid(self.clause_type, "properties", "properties must be written as 'name.prop'", prop)

    def build(self, params: ParameterBag) -> str:
        parts = [name + "".join(f":{label}" for label in label_list) for name, label_list in self.labels.items()]
        parts.extend(self.properties)
        return "REMOVE " + ", ".join(parts)


class Raw(Clause):
    """Verbatim clause text with caller-named parameters."""

    clause_type = ClauseType.RAW

    def __init__(self, clause: str, params: Mapping[str, Any] | None = None) -> None:
        if not isinstance(clause, str) or not clause.strip():
            raise _invalid(self.clause_type, "clause", "requires clause text", clause)
        self.clause = clause.strip()
        self.params = dict(params or {})

    def reserve(self, params: ParameterBag) -> None:
        for name, value in self.params.items():
            params.add_exact(name, value)

    def build(self, params: ParameterBag) -> str:
        return self.clause
