"""Value graph storage.

The store is the single accumulator for one traced run: a node table keyed
by id, an append-only edge list whose order is the logical event order, and
a scope tree with a stack mirroring the dynamic nesting of traced
activations.

There is no process-wide instance. Callers create a GraphStore and bind
tracked values to it, which keeps one graph per logical thread of execution
and lets tests build independent graphs side by side.
"""

from __future__ import annotations

import functools
import inspect
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

from valuetrace.graph.errors import ScopeUnderflowError
from valuetrace.graph.model import (
    ROOT_SCOPE_ID,
    ROOT_SIGNATURE,
    Edge,
    EdgeKind,
    Node,
    Scope,
)
from valuetrace.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from valuetrace.config import RenderConfig
    from valuetrace.tracked import Tracked

log = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def format_value(value: Any) -> str:
    """Default text snapshot of a value: quoted for strings, str() otherwise."""
    if isinstance(value, str):
        return repr(value)
    return str(value)


class GraphStore:
    """Accumulates nodes, edges and scopes for one traced run.

    Node ids start at 1 and increase strictly; 0 is reserved as the
    sentinel. The edge list only grows. The scope stack always holds the
    root scope, which can never be popped.

    Attributes:
        value_formatter: Callable turning a raw value into its node text.
    """

    def __init__(
        self,
        root_signature: str = ROOT_SIGNATURE,
        *,
        value_formatter: Callable[[Any], str] = format_value,
    ) -> None:
        self.value_formatter = value_formatter
        self._next_id = 1
        self._nodes: dict[int, Node] = {}
        self._edges: list[Edge] = []
        self._scopes: list[Scope] = [Scope(ROOT_SCOPE_ID, root_signature)]
        self._stack: list[int] = [ROOT_SCOPE_ID]

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def make_node(
        self,
        name: str = "",
        type_label: str = "",
        value_repr: str = "",
        *,
        ephemeral: bool = False,
    ) -> int:
        """Allocate the next node id in the current scope.

        Args:
            name: Display name; empty for anonymous nodes.
            type_label: Description of the value's type.
            value_repr: Text snapshot of the value.
            ephemeral: Node represents a transient operand, comparison or I/O.

        Returns:
            The new node id.
        """
        node_id = self._next_id
        self._next_id += 1
        self._nodes[node_id] = Node(
            id=node_id,
            name=name,
            type_label=type_label,
            value_repr=value_repr,
            scope_id=self.current_scope.index,
            ephemeral=ephemeral,
        )
        log.debug("node_created", node_id=node_id, name=name, scope=self.current_scope.index)
        return node_id

    def mark_dead(self, node_id: int) -> None:
        """Retire a node. Unknown ids are ignored."""
        node = self._nodes.get(node_id)
        if node is None:
            log.debug("mark_dead_unknown_node", node_id=node_id)
            return
        if node.retire():
            log.debug("node_retired", node_id=node_id)

    def update_value(self, node_id: int, value_repr: str) -> None:
        """Rewrite a node's value text in place. Unknown ids are ignored."""
        node = self._nodes.get(node_id)
        if node is None:
            log.debug("update_value_unknown_node", node_id=node_id)
            return
        node.value_repr = value_repr

    def get_node(self, node_id: int) -> Node | None:
        """Get a node by id, or None if it was never allocated."""
        return self._nodes.get(node_id)

    @property
    def nodes(self) -> list[Node]:
        """All nodes in ascending id order."""
        return [self._nodes[node_id] for node_id in sorted(self._nodes)]

    def node_count(self) -> int:
        return len(self._nodes)

    def nodes_in_scope(self, scope_index: int) -> list[Node]:
        """Nodes created while *scope_index* was active, ascending id."""
        return [node for node in self.nodes if node.scope_id == scope_index]

    # -------------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------------

    def append_edge(self, kind: EdgeKind | str, src_id: int, dst_id: int) -> Edge:
        """Append an event edge.

        Endpoints are not validated: an edge may reference a retired node or
        the sentinel id.

        Raises:
            ValueError: If *kind* is not a known edge kind.
        """
        edge = Edge(EdgeKind(kind), src_id, dst_id)
        self._edges.append(edge)
        log.debug("edge_appended", kind=str(edge.kind), src=src_id, dst=dst_id)
        return edge

    @property
    def edges(self) -> tuple[Edge, ...]:
        """All edges in the order they were appended."""
        return tuple(self._edges)

    def edge_count(self) -> int:
        return len(self._edges)

    def edges_of_kind(self, kind: EdgeKind | str) -> list[Edge]:
        kind = EdgeKind(kind)
        return [edge for edge in self._edges if edge.kind is kind]

    # -------------------------------------------------------------------------
    # Scopes
    # -------------------------------------------------------------------------

    @property
    def current_scope(self) -> Scope:
        return self._scopes[self._stack[-1]]

    @property
    def scope_depth(self) -> int:
        """Number of scopes on the stack, root included."""
        return len(self._stack)

    @property
    def scopes(self) -> tuple[Scope, ...]:
        """All scopes ever entered, indexed by scope id."""
        return tuple(self._scopes)

    def children_of(self, scope_index: int) -> list[Scope]:
        """Direct child scopes of *scope_index*, ascending index."""
        return [scope for scope in self._scopes if scope.parent_id == scope_index]

    def enter_scope(self, signature: str) -> int:
        """Open a child of the current scope and make it current.

        Returns:
            Index of the new scope.
        """
        index = len(self._scopes)
        self._scopes.append(Scope(index, signature, parent_id=self.current_scope.index))
        self._stack.append(index)
        log.debug("scope_entered", scope=index, signature=signature, depth=len(self._stack))
        return index

    def exit_scope(self) -> int:
        """Close the current scope.

        Returns:
            Index of the scope that was closed.

        Raises:
            ScopeUnderflowError: If only the root scope remains.
        """
        if len(self._stack) == 1:
            root = self._scopes[ROOT_SCOPE_ID]
            log.error("scope_underflow", root=root.signature)
            raise ScopeUnderflowError(root_signature=root.signature, depth=len(self._stack))
        index = self._stack.pop()
        log.debug("scope_exited", scope=index, depth=len(self._stack))
        return index

    @contextmanager
    def scope(self, signature: str) -> Iterator[Scope]:
        """Context manager that keeps *signature* open for the enclosed block.

        The scope is closed on every exit path, including exceptions.

        Yields:
            The scope record that was opened.
        """
        index = self.enter_scope(signature)
        try:
            yield self._scopes[index]
        finally:
            self.exit_scope()

    def traced(
        self,
        func: Callable[P, R] | None = None,
        *,
        signature: str | None = None,
    ) -> Any:
        """Decorator running the wrapped function inside its own scope.

        Usable bare (``@graph.traced``) or with a custom label
        (``@graph.traced(signature="main()")``). The default label is the
        function's qualified name followed by its parameter list.
        """

        def decorator(fn: Callable[P, R]) -> Callable[P, R]:
            label = signature or _function_signature(fn)

            @functools.wraps(fn)
            def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                with self.scope(label):
                    return fn(*args, **kwargs)

            return wrapper

        if func is not None:
            return decorator(func)
        return decorator

    # -------------------------------------------------------------------------
    # Tracking and rendering
    # -------------------------------------------------------------------------

    def track(self, value: Any, name: str = "", *, type_label: str | None = None) -> Tracked:
        """Wrap *value* in a Tracked bound to this store."""
        from valuetrace.tracked import Tracked

        return Tracked(value, name, graph=self, type_label=type_label)

    def render(self, config: RenderConfig | None = None) -> str:
        """Serialize the store as a DOT document.

        Two renders of an unmodified store are byte-identical.
        """
        from valuetrace.visualization import render_dot

        return render_dot(self, config)

    def __repr__(self) -> str:
        return (
            f"GraphStore(nodes={len(self._nodes)}, edges={len(self._edges)}, "
            f"scopes={len(self._scopes)}, depth={len(self._stack)})"
        )


def _function_signature(fn: Callable[..., Any]) -> str:
    """``qualname(a, b, *args, **kwargs)`` without annotations or defaults."""
    try:
        parameters = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return f"{fn.__qualname__}(...)"
    names = []
    for param in parameters:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            names.append(f"*{param.name}")
        elif param.kind is inspect.Parameter.VAR_KEYWORD:
            names.append(f"**{param.name}")
        else:
            names.append(param.name)
    return f"{fn.__qualname__}({', '.join(names)})"
