"""valuetrace: value-lifecycle instrumentation and visualization.

Wrap values in ``Tracked`` bound to a ``GraphStore``; every copy, move,
assignment, operator and stream access becomes a node or edge, and the
store renders as a nested-cluster Graphviz diagram.
"""

from valuetrace.config import RenderConfig, load_config
from valuetrace.export import export_graph, render_image, write_dot
from valuetrace.graph import (
    SENTINEL_ID,
    ConfigError,
    Edge,
    EdgeKind,
    GraphStore,
    Node,
    RenderError,
    Scope,
    ScopeUnderflowError,
    ValueTraceError,
)
from valuetrace.tracked import Tracked
from valuetrace.visualization import render_dot

__version__ = "0.1.0"

__all__ = [
    "SENTINEL_ID",
    "ConfigError",
    "Edge",
    "EdgeKind",
    "GraphStore",
    "Node",
    "RenderConfig",
    "RenderError",
    "Scope",
    "ScopeUnderflowError",
    "Tracked",
    "ValueTraceError",
    "__version__",
    "export_graph",
    "load_config",
    "render_dot",
    "render_image",
    "write_dot",
]
