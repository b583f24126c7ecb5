"""Parameter naming for compiled queries."""

import re
from collections.abc import Mapping
from typing import Any

from cypher_builder.core import QueryBuildError, QueryErrorDetails

_INVALID_CHARS = re.compile(r"[^0-9A-Za-z_]+")


def _sanitize(hint: str) -> str:
    name = _INVALID_CHARS.sub("_", hint).strip("_")
    if not name:
        return "p"
    if name[0].isdigit():
        return f"p_{name}"
    return name


class ParameterBag:
    """Assigns unique parameter keys while a statement is compiled.

    Every added value gets its own key, derived from a readable hint
    (``n.name`` -> ``n_name``). A hint that is already taken is suffixed
    ``_2``, ``_3`` and so on.
    """

    def __init__(self) -> None:
        self._params: dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._params)

    def __contains__(self, key: object) -> bool:
        return key in self._params

    def get_name(self, hint: str = "p") -> str:
        """Return an unused key for ``hint`` without reserving it."""
        base = _sanitize(hint)
        name = base
        counter = 2
        while name in self._params:
            name = f"{base}_{counter}"
            counter += 1
        return name

    def add(self, value: Any, hint: str = "p") -> str:
        """Bind ``value`` under a new key and return the key.

        Args:
            value: Literal value to bind
            hint: Preferred key, usually ``<entity>_<property>``

        Returns:
            Parameter name to use in the query, without the ``$`` prefix
        """
        name = self.get_name(hint)
        self._params[name] = value
        return name

    def add_exact(self, name: str, value: Any) -> str:
        """Bind ``value`` under a caller-chosen key.

        Raises:
            QueryBuildError: If the key is not a valid identifier or is taken
        """
        if _sanitize(name) != name:
            raise QueryBuildError(
                f"Invalid parameter name: {name!r}",
                details=QueryErrorDetails(
                    source="parameters", operation="add_exact", argument="name", actual_value=name
                ),
            )
        if name in self._params:
            raise QueryBuildError(
                f"Parameter {name!r} is already bound in this query",
                details=QueryErrorDetails(
                    source="parameters", operation="add_exact", argument="name", actual_value=name
                ),
            )
        self._params[name] = value
        return name

    def to_dict(self) -> dict[str, Any]:
        return dict(self._params)


def to_cypher_literal(value: Any) -> str:
    """Render a parameter value as a Cypher literal, for debugging output."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    if isinstance(value, Mapping):
        items = ", ".join(f"{key}: {to_cypher_literal(item)}" for key, item in value.items())
        return "{" + items + "}"
    if isinstance(value, list | tuple | set | frozenset):
        return "[" + ", ".join(to_cypher_literal(item) for item in value) + "]"
    return to_cypher_literal(str(value))
