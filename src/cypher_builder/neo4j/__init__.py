"""Neo4j execution layer: connections, result transformation and shutdown."""

from .connection import Connection, Credentials
from .registry import ConnectionRegistry, get_registry, open_connections, shutdown
from .transformer import MAX_SAFE_INTEGER, Transformer

__all__ = [
    "MAX_SAFE_INTEGER",
    "Connection",
    "ConnectionRegistry",
    "Credentials",
    "Transformer",
    "get_registry",
    "open_connections",
    "shutdown",
]
