"""Value graph: node, edge and scope records and the store that owns them."""

from valuetrace.graph.errors import (
    ConfigError,
    RenderError,
    ScopeUnderflowError,
    ValueTraceError,
)
from valuetrace.graph.model import (
    ROOT_SCOPE_ID,
    ROOT_SIGNATURE,
    SENTINEL_ID,
    Edge,
    EdgeKind,
    Node,
    Scope,
)
from valuetrace.graph.store import GraphStore, format_value

__all__ = [
    "ROOT_SCOPE_ID",
    "ROOT_SIGNATURE",
    "SENTINEL_ID",
    "ConfigError",
    "Edge",
    "EdgeKind",
    "GraphStore",
    "Node",
    "RenderError",
    "Scope",
    "ScopeUnderflowError",
    "ValueTraceError",
    "format_value",
]
