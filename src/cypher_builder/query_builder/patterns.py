"""Pattern models for Cypher queries.

Patterns are immutable values describing a node or relationship to match or
create. They are rendered to text only at compile time, where every condition
value is bound as a query parameter instead of being written into the text.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from cypher_builder.core import QueryBuildError, QueryErrorDetails

if TYPE_CHECKING:
    from cypher_builder.query_builder.parameters import ParameterBag

Direction: TypeAlias = Literal["->", "<-", "-"]


def normalize_labels(labels: str | Iterable[str] | None) -> tuple[str, ...]:
    """Normalize a single label or a sequence of labels to an ordered tuple."""
    if labels is None:
        return ()
    if isinstance(labels, str):
        return (labels,) if labels else ()
    return tuple(label for label in labels if label)


def _render_properties(
    name: str | None,
    conditions: Mapping[str, Any],
    params: "ParameterBag",
) -> str:
    """Render a property block such as `` {name: $n_name}``, or ``""`` if empty."""
    if not conditions:
        return ""

    parts: list[str] = []
    for key, value in conditions.items():
        hint = f"{name}_{key}" if name else key
        parts.append(f"{key}: ${params.add(value, hint)}")

    return " {" + ", ".join(parts) + "}"


class _Pattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    labels: tuple[str, ...] = ()
    conditions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("labels", mode="before")
    @classmethod
    def _normalize_labels(cls, value: Any) -> tuple[str, ...]:
        return normalize_labels(value)

    @field_validator("name", mode="before")
    @classmethod
    def _empty_name_is_anonymous(cls, value: Any) -> Any:
        return value or None


class NodePattern(_Pattern):
    """A node pattern like ``(n:Person {name: $n_name})``."""

    def build(self, params: "ParameterBag") -> str:
        """Render the node pattern, binding its conditions into ``params``."""
        label_str = "".join(f":{label}" for label in self.labels)
        return f"({self.name or ''}{label_str}{_render_properties(self.name, self.conditions, params)})"


class RelationPattern(_Pattern):
    """A relationship pattern like ``-[r:KNOWS*1..3 {since: $r_since}]->``.

    ``labels`` holds the relationship types; more than one type is rendered
    as an alternation (``:A|B``).
    """

    direction: Direction = "->"
    min_hops: int | None = Field(default=None, ge=0)
    max_hops: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_hops(self) -> "RelationPattern":
        if self.min_hops is not None and self.max_hops is not None and self.min_hops > self.max_hops:
            raise ValueError(f"min_hops ({self.min_hops}) is greater than max_hops ({self.max_hops})")
        return self

    def _length(self) -> str:
        if self.min_hops is None and self.max_hops is None:
            return ""
        if self.min_hops == self.max_hops:
            return f"*{self.min_hops}"

        lower = "" if self.min_hops is None else str(self.min_hops)
        upper = "" if self.max_hops is None else str(self.max_hops)
        return f"*{lower}..{upper}"

    def build(self, params: "ParameterBag") -> str:
        """Render the relationship pattern including its arrow heads."""
        type_str = ":" + "|".join(self.labels) if self.labels else ""
        detail = f"{self.name or ''}{type_str}{self._length()}"
        detail += _render_properties(self.name, self.conditions, params)

        body = f"[{detail}]" if detail else ""
        if self.direction == "->":
            return f"-{body}->"
        if self.direction == "<-":
            return f"<-{body}-"
        return f"-{body}-"


Pattern: TypeAlias = NodePattern | RelationPattern
PatternChain: TypeAlias = tuple[Pattern, ...]


def _invalid_pattern(operation: str, error: ValidationError) -> QueryBuildError:
    first = error.errors()[0]
    return QueryBuildError(
        f"Invalid {operation} pattern: {first['msg']}",
        details=QueryErrorDetails(
            source="patterns",
            operation=operation,
            argument=".".join(str(part) for part in first["loc"]) or None,
            actual_value=repr(first.get("input")),
        ),
    )


def node(
    name: str | None = None,
    labels: str | Sequence[str] | None = None,
    conditions: Mapping[str, Any] | None = None,
) -> NodePattern:
    """Create a node pattern.

    Example:
        ```python
        node("n", ["Person", "Admin"], {"name": "Alice"})
        ```
    """
    try:
        return NodePattern(name=name, labels=labels, conditions=dict(conditions or {}))
    except ValidationError as e:
        raise _invalid_pattern("node", e) from e


def relation(
    direction: Direction = "->",
    name: str | None = None,
    labels: str | Sequence[str] | None = None,
    conditions: Mapping[str, Any] | None = None,
    min_hops: int | None = None,
    max_hops: int | None = None,
) -> RelationPattern:
    """Create a relationship pattern.

    Raises:
        QueryBuildError: If the direction or hop range is invalid
    """
    try:
        return RelationPattern(
            direction=direction,
            name=name,
            labels=labels,
            conditions=dict(conditions or {}),
            min_hops=min_hops,
            max_hops=max_hops,
        )
    except ValidationError as e:
        raise _invalid_pattern("relation", e) from e


class PatternBuilder:
    """Fluent builder for pattern chains.

    Property conditions are passed as keyword arguments, so the label and
    variable come first and are positional.

    Example:
        ```python
        PatternBuilder().node("Person", "a", name="Alice").rel_to("KNOWS").node("Person", "b")
        ```
    """

    def __init__(self) -> None:
        self._patterns: list[Pattern] = []

    @property
    def patterns(self) -> PatternChain:
        return tuple(self._patterns)

    def node(
        self,
        label: str | Sequence[str] | None = None,
        variable: str | None = None,
        **properties: Any,
    ) -> "PatternBuilder":
        """Add a node pattern.

        Args:
            label: Node label, or an ordered list of labels
            variable: Variable name for the node
            **properties: Property conditions

        Returns:
            Self for method chaining
        """
        self._patterns.append(node(variable, label, properties))
        return self

    def relationship(
        self,
        type_: str | Sequence[str] | None = None,
        variable: str | None = None,
        direction: Direction = "->",
        min_hops: int | None = None,
        max_hops: int | None = None,
        **properties: Any,
    ) -> "PatternBuilder":
        """Add a relationship pattern.

        Args:
            type_: Relationship type, or a list of alternative types
            variable: Variable name for the relationship
            direction: ``"->"`` outgoing, ``"<-"`` incoming, ``"-"`` either
            min_hops: Minimum number of hops for variable-length
            max_hops: Maximum number of hops for variable-length
            **properties: Property conditions

        Returns:
            Self for method chaining
        """
        self._patterns.append(relation(direction, variable, type_, properties, min_hops, max_hops))
        return self

    def rel_to(
        self,
        type_: str | Sequence[str] | None = None,
        variable: str | None = None,
        min_hops: int | None = None,
        max_hops: int | None = None,
        **properties: Any,
    ) -> "PatternBuilder":
        """Add an outgoing relationship (``-[]->``)."""
        return self.relationship(type_, variable, "->", min_hops, max_hops, **properties)

    def rel_from(
        self,
        type_: str | Sequence[str] | None = None,
        variable: str | None = None,
        min_hops: int | None = None,
        max_hops: int | None = None,
        **properties: Any,
    ) -> "PatternBuilder":
        """Add an incoming relationship (``<-[]-``)."""
        return self.relationship(type_, variable, "<-", min_hops, max_hops, **properties)

    def rel(
        self,
        type_: str | Sequence[str] | None = None,
        variable: str | None = None,
        min_hops: int | None = None,
        max_hops: int | None = None,
        **properties: Any,
    ) -> "PatternBuilder":
        """Add an undirected relationship (``-[]-``)."""
        return self.relationship(type_, variable, "-", min_hops, max_hops, **properties)


PatternInput: TypeAlias = Pattern | PatternBuilder | Sequence[Any]


def normalize_patterns(patterns: PatternInput) -> tuple[PatternChain, ...]:
    """Normalize pattern input to a tuple of chains.

    Accepts a single pattern, a ``PatternBuilder``, a chain (sequence of
    patterns), or a sequence of chains.
    """
    if isinstance(patterns, NodePattern | RelationPattern):
        return ((patterns,),)
    if isinstance(patterns, PatternBuilder):
        return (patterns.patterns,) if patterns.patterns else ()
    if isinstance(patterns, str | bytes) or not isinstance(patterns, Sequence):
        raise QueryBuildError(
            f"Expected a pattern, a PatternBuilder or a sequence of patterns, got {type(patterns).__name__}",
            details=QueryErrorDetails(
                source="patterns",
                operation="normalize_patterns",
                argument="patterns",
                actual_value=repr(patterns),
            ),
        )

    items = list(patterns)
    if all(isinstance(item, NodePattern | RelationPattern) for item in items):
        return (tuple(items),) if items else ()

    chains: list[PatternChain] = []
    for item in items:
        chains.extend(normalize_patterns(item))
    return tuple(chains)


def build_chains(chains: tuple[PatternChain, ...], params: "ParameterBag") -> str:
    """Render chains, comma separated, binding their conditions into ``params``."""
    return ", ".join("".join(pattern.build(params) for pattern in chain) for chain in chains)
