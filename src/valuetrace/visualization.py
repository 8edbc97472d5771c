"""Value graph visualization.

Renders a GraphStore as DOT (Graphviz) markup: one nested cluster per
scope holding the nodes created in it, followed by a flat list of event
edges that may cross cluster boundaries. Output is deterministic for an
unmodified store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from valuetrace.config import RenderConfig
from valuetrace.graph.model import ROOT_SCOPE_ID, SENTINEL_ID, EdgeKind
from valuetrace.observability.logging import get_logger

if TYPE_CHECKING:
    from valuetrace.graph.model import Edge, Node, Scope
    from valuetrace.graph.store import GraphStore

log = get_logger(__name__)

_NAMED_COLOR = "#C1F0C1"  # light green
_ANONYMOUS_COLOR = "#E8E8E8"  # light grey
_EPHEMERAL_COLOR = "#FFF5CC"  # pale yellow
_DEAD_COLOR = "#F4B6B6"  # light red
_CLUSTER_BORDER = "#7F7F7F"


@dataclass(frozen=True)
class EdgeStyle:
    """Visual attributes of one edge kind."""

    color: str
    penwidth: int
    style: str


_COPY_STYLE = EdgeStyle(color="red", penwidth=3, style="solid")
_MOVE_STYLE = EdgeStyle(color="green", penwidth=2, style="solid")
_ARITHMETIC_STYLE = EdgeStyle(color="gray", penwidth=1, style="dotted")
_READ_STYLE = EdgeStyle(color="blue", penwidth=1, style="dashed")

EDGE_STYLES: dict[EdgeKind, EdgeStyle] = {
    EdgeKind.INIT_CONSTRUCT: EdgeStyle(color="gray", penwidth=1, style="solid"),
    EdgeKind.COPY_CONSTRUCT: _COPY_STYLE,
    EdgeKind.COPY_ASSIGN: _COPY_STYLE,
    EdgeKind.MOVE_CONSTRUCT: _MOVE_STYLE,
    EdgeKind.MOVE_ASSIGN: _MOVE_STYLE,
    EdgeKind.DESTRUCT: EdgeStyle(color="black", penwidth=1, style="dashed"),
    EdgeKind.READ: _READ_STYLE,
    EdgeKind.ADD: _ARITHMETIC_STYLE,
    EdgeKind.SUB: _ARITHMETIC_STYLE,
    EdgeKind.MUL: _ARITHMETIC_STYLE,
    EdgeKind.DIV: _ARITHMETIC_STYLE,
    EdgeKind.GT: _READ_STYLE,
    EdgeKind.LT: _READ_STYLE,
    EdgeKind.GE: _READ_STYLE,
    EdgeKind.LE: _READ_STYLE,
    EdgeKind.EQ: _READ_STYLE,
    EdgeKind.NE: _READ_STYLE,
}


def render_dot(store: GraphStore, config: RenderConfig | None = None) -> str:
    """Render a GraphStore as DOT (Graphviz) markup.

    Args:
        store: Graph to render.
        config: Render settings; defaults apply when omitted.

    Returns:
        DOT format string ending with a newline.
    """
    config = config or RenderConfig()

    hidden: set[int] = set()
    if config.show_named_only:
        hidden = {node.id for node in store.nodes if not node.named}

    lines = [
        "digraph valuetrace {",
        f"  rankdir={config.rankdir};",
        "  compound=true;",
        '  node [fontname="Helvetica" fontsize=10 shape=box style="rounded,filled"];',
        '  edge [fontname="Helvetica" fontsize=8];',
        "",
    ]

    root = store.scopes[ROOT_SCOPE_ID]
    _render_cluster(store, root, config, hidden, lines, depth=1)

    edges = [edge for edge in store.edges if _is_visible(edge, hidden)]
    if any(SENTINEL_ID in (edge.src_id, edge.dst_id) for edge in edges):
        lines.append("")
        lines.append(f'  n{SENTINEL_ID} [label="end of life" shape=point width=0.15];')

    lines.append("")
    for edge in edges:
        lines.append(_dot_edge(edge))

    lines.append("}")

    log.info(
        "value_graph_rendered",
        nodes=store.node_count() - len(hidden),
        edges=len(edges),
        scopes=len(store.scopes),
        named_only=config.show_named_only,
    )
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _render_cluster(
    store: GraphStore,
    scope: Scope,
    config: RenderConfig,
    hidden: set[int],
    lines: list[str],
    depth: int,
) -> None:
    """Emit *scope* and its descendants depth-first, children by index."""
    pad = "  " * depth
    inner = "  " * (depth + 1)
    lines.append(f"{pad}subgraph cluster_{scope.index} {{")
    lines.append(f'{inner}label="{_dot_escape(scope.signature)}";')
    lines.append(f'{inner}style="rounded,dashed";')
    lines.append(f'{inner}color="{_CLUSTER_BORDER}";')
    lines.append(f'{inner}fontname="Helvetica-Bold";')
    lines.append(f"{inner}labeljust=l;")

    for node in store.nodes_in_scope(scope.index):
        if node.id in hidden:
            continue
        lines.append(f"{inner}{_dot_node(node, config)}")

    for child in store.children_of(scope.index):
        _render_cluster(store, child, config, hidden, lines, depth + 1)

    lines.append(f"{pad}}}")


def _is_visible(edge: Edge, hidden: set[int]) -> bool:
    if edge.is_noop:
        return False
    return edge.src_id not in hidden and edge.dst_id not in hidden


def _node_label(node: Node, config: RenderConfig) -> str:
    """Build the escaped label text: name, type, id, then value."""
    head = f"{node.name}: {node.type_label}" if node.named else node.type_label
    parts = [_dot_escape(f"{head} #{node.id}".strip())]
    if config.show_values:
        value = _truncate(node.value_repr, config.max_label_length)
        parts.append(_dot_escape(f"= {value}"))
    if not node.alive:
        parts.append("(dead)")
    return "\\n".join(parts)


def _dot_node(node: Node, config: RenderConfig) -> str:
    if not node.alive:
        fill = _DEAD_COLOR
        style = "rounded,filled,dashed"
    elif node.ephemeral:
        fill = _EPHEMERAL_COLOR
        style = "rounded,filled"
    elif node.named:
        fill = _NAMED_COLOR
        style = "rounded,filled"
    else:
        fill = _ANONYMOUS_COLOR
        style = "rounded,filled"
    label = _node_label(node, config)
    return f'n{node.id} [label="{label}" fillcolor="{fill}" style="{style}"];'


def _dot_edge(edge: Edge) -> str:
    style = EDGE_STYLES[edge.kind]
    return (
        f"  n{edge.src_id} -> n{edge.dst_id}"
        f' [label="{edge.kind.value}" color={style.color} penwidth={style.penwidth}'
        f" style={style.style} arrowhead=normal];"
    )


def _truncate(text: str, max_len: int) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _dot_escape(text: str) -> str:
    """Escape special characters for DOT labels."""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
