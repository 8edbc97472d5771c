"""Tracked values.

A Tracked wraps a plain value and mirrors its lifecycle into a GraphStore:
construction, copies, moves, assignments, arithmetic, compound assignment,
comparisons, increments and stream I/O each allocate nodes and append
edges, while the value itself behaves exactly as it would unwrapped.

Python has no copy or move constructors, so those events are explicit
methods (``copy()``, ``move()``, ``assign()``, ``move_assign()``) and
destruction is ``release()`` or leaving a ``with`` block.

Node policies:
- Raw (untracked) arithmetic operands get an ephemeral node that stays alive.
- Comparison, stream input and stream output nodes are ephemeral and are
  retired as soon as their edges are recorded.
- Compound assignment keeps the destination id; increment and decrement
  retire it and allocate a new one.
- Release always retires the node and appends a ``destruct`` edge to the
  sentinel id.
"""

from __future__ import annotations

import copy
import operator
from typing import TYPE_CHECKING, Any

from valuetrace.graph.model import SENTINEL_ID, EdgeKind
from valuetrace.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import IO

    from valuetrace.graph.store import GraphStore

log = get_logger(__name__)

_ARITHMETIC: dict[EdgeKind, Callable[[Any, Any], Any]] = {
    EdgeKind.ADD: operator.add,
    EdgeKind.SUB: operator.sub,
    EdgeKind.MUL: operator.mul,
    EdgeKind.DIV: operator.truediv,
}

_COMPARISON: dict[EdgeKind, Callable[[Any, Any], Any]] = {
    EdgeKind.GT: operator.gt,
    EdgeKind.LT: operator.lt,
    EdgeKind.GE: operator.ge,
    EdgeKind.LE: operator.le,
    EdgeKind.EQ: operator.eq,
    EdgeKind.NE: operator.ne,
}

_SYMBOLS: dict[EdgeKind, str] = {
    EdgeKind.GT: ">",
    EdgeKind.LT: "<",
    EdgeKind.GE: ">=",
    EdgeKind.LE: "<=",
    EdgeKind.EQ: "==",
    EdgeKind.NE: "!=",
}


def _parse_bool(text: str) -> bool:
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    return int(text) != 0


def _default_parser(current: Any) -> Callable[[str], Any]:
    """Parser for a line read into *current*; ``bool("0")`` would be True."""
    if isinstance(current, bool):
        return _parse_bool
    return type(current)


class Tracked:
    """A value whose every structural operation is recorded in a GraphStore.

    Args:
        value: The wrapped value. Passing another Tracked copy-constructs
            from it.
        name: Display name; empty for anonymous values.
        graph: Store that receives the events. Optional only when *value*
            is itself a Tracked, whose store is then reused.
        type_label: Type description shown on the node. Defaults to the
            source's label when copying, else ``type(value).__name__``.

    Raises:
        TypeError: If no store can be determined.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(
        self,
        value: Any,
        name: str = "",
        *,
        graph: GraphStore | None = None,
        type_label: str | None = None,
    ) -> None:
        source: Tracked | None = None
        if isinstance(value, Tracked):
            source = value
            graph = graph or source._graph
            if graph is not source._graph:
                raise ValueError("Cannot copy a value tracked in a different graph")
            type_label = type_label or source._type_label
            value = copy.copy(source._value)
        if graph is None:
            raise TypeError("Tracked requires a graph when wrapping a raw value")

        self._graph = graph
        self._value = value
        self._name = name
        self._type_label = type_label or type(value).__name__
        self._released = False
        self._id = graph.make_node(name, self._type_label, graph.value_formatter(value))

        if source is not None:
            graph.append_edge(EdgeKind.COPY_CONSTRUCT, source._id, self._id)

    # -------------------------------------------------------------------------
    # Accessors (no events)
    # -------------------------------------------------------------------------

    @property
    def value(self) -> Any:
        return self._value

    @property
    def id(self) -> int:
        """Current node id; changes on increment and decrement."""
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def type_label(self) -> str:
        return self._type_label

    @property
    def graph(self) -> GraphStore:
        return self._graph

    @property
    def alive(self) -> bool:
        node = self._graph.get_node(self._id)
        return node is not None and node.alive

    @property
    def released(self) -> bool:
        return self._released

    # -------------------------------------------------------------------------
    # Copy and move
    # -------------------------------------------------------------------------

    def copy(self, name: str | None = None) -> Tracked:
        """Copy-construct a new tracked value from this one."""
        return self._derive(copy.copy(self._value), name, EdgeKind.COPY_CONSTRUCT)

    def __copy__(self) -> Tracked:
        return self.copy()

    def __deepcopy__(self, memo: dict[int, Any]) -> Tracked:
        return self._derive(copy.deepcopy(self._value, memo), None, EdgeKind.COPY_CONSTRUCT)

    def move(self, name: str | None = None) -> Tracked:
        """Move-construct a new tracked value, retiring this one.

        The value is handed over as-is; this handle keeps a valid but
        unspecified value and should not be relied on afterwards.
        """
        result = self._derive(self._value, name, EdgeKind.MOVE_CONSTRUCT)
        self._graph.mark_dead(self._id)
        log.debug("value_moved", src=self._id, dst=result._id, name=result._name)
        return result

    @classmethod
    def moved_from(cls, other: Tracked, name: str | None = None) -> Tracked:
        """Alternate spelling of ``other.move(name)``."""
        return other.move(name)

    def _derive(self, value: Any, name: str | None, kind: EdgeKind) -> Tracked:
        result = Tracked(
            value,
            self._name if name is None else name,
            graph=self._graph,
            type_label=self._type_label,
        )
        self._graph.append_edge(kind, self._id, result._id)
        return result

    # -------------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------------

    def assign(self, other: Any) -> Tracked:
        """Copy-assign *other* into this value; the node id is kept."""
        value = self._unwrap(other)
        src_id = self._operand_id(other)
        self._set_value(copy.copy(value))
        self._graph.append_edge(EdgeKind.COPY_ASSIGN, src_id, self._id)
        return self

    def move_assign(self, other: Any) -> Tracked:
        """Move-assign *other* into this value and retire the source."""
        value = self._unwrap(other)
        src_id = self._operand_id(other)
        self._set_value(value)
        self._graph.append_edge(EdgeKind.MOVE_ASSIGN, src_id, self._id)
        if other is not self:
            self._graph.mark_dead(src_id)
        return self

    # -------------------------------------------------------------------------
    # Destruction
    # -------------------------------------------------------------------------

    def release(self) -> None:
        """End this value's lifetime. Calling it again has no effect."""
        if self._released:
            log.debug("release_ignored", node_id=self._id, reason="already released")
            return
        self._released = True
        self._graph.mark_dead(self._id)
        self._graph.append_edge(EdgeKind.DESTRUCT, self._id, SENTINEL_ID)

    def __enter__(self) -> Tracked:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def _binary(self, kind: EdgeKind, other: Any, *, reflected: bool = False) -> Tracked:
        """Apply one arithmetic operator and record it.

        The result gets a fresh anonymous node, then each operand (in
        left-to-right order) is linked to it with a *kind* edge.
        """
        other_value = self._unwrap(other)
        func = _ARITHMETIC[kind]
        if reflected:
            result_value = func(other_value, self._value)
        else:
            result_value = func(self._value, other_value)

        result = Tracked(
            result_value,
            graph=self._graph,
            type_label=self._label_for(result_value),
        )
        other_id = self._operand_id(other)
        left, right = (other_id, self._id) if reflected else (self._id, other_id)
        self._graph.append_edge(kind, left, result._id)
        self._graph.append_edge(kind, right, result._id)
        return result

    def __add__(self, other: Any) -> Tracked:
        return self._binary(EdgeKind.ADD, other)

    def __radd__(self, other: Any) -> Tracked:
        return self._binary(EdgeKind.ADD, other, reflected=True)

    def __sub__(self, other: Any) -> Tracked:
        return self._binary(EdgeKind.SUB, other)

    def __rsub__(self, other: Any) -> Tracked:
        return self._binary(EdgeKind.SUB, other, reflected=True)

    def __mul__(self, other: Any) -> Tracked:
        return self._binary(EdgeKind.MUL, other)

    def __rmul__(self, other: Any) -> Tracked:
        return self._binary(EdgeKind.MUL, other, reflected=True)

    def __truediv__(self, other: Any) -> Tracked:
        return self._binary(EdgeKind.DIV, other)

    def __rtruediv__(self, other: Any) -> Tracked:
        return self._binary(EdgeKind.DIV, other, reflected=True)

    # -------------------------------------------------------------------------
    # Compound assignment
    # -------------------------------------------------------------------------

    def _inplace(self, kind: EdgeKind, other: Any) -> Tracked:
        """Mutate in place; the destination keeps its node id."""
        other_value = self._unwrap(other)
        new_value = _ARITHMETIC[kind](self._value, other_value)
        src_id = self._operand_id(other)
        self._set_value(new_value)
        self._graph.append_edge(kind, src_id, self._id)
        return self

    def __iadd__(self, other: Any) -> Tracked:
        return self._inplace(EdgeKind.ADD, other)

    def __isub__(self, other: Any) -> Tracked:
        return self._inplace(EdgeKind.SUB, other)

    def __imul__(self, other: Any) -> Tracked:
        return self._inplace(EdgeKind.MUL, other)

    def __itruediv__(self, other: Any) -> Tracked:
        return self._inplace(EdgeKind.DIV, other)

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def _compare(self, kind: EdgeKind, other: Any) -> bool:
        """Evaluate a comparison through a short-lived comparison node.

        Both operands feed a *kind* edge into the node, which is retired
        right away. Returns the plain result.
        """
        other_value = self._unwrap(other)
        result = _COMPARISON[kind](self._value, other_value)

        other_id = self._operand_id(other)
        cmp_id = self._graph.make_node(
            "",
            f"{_SYMBOLS[kind]} {type(result).__name__}",
            self._graph.value_formatter(result),
            ephemeral=True,
        )
        self._graph.append_edge(kind, self._id, cmp_id)
        self._graph.append_edge(kind, other_id, cmp_id)
        self._graph.mark_dead(cmp_id)
        return bool(result)

    def __gt__(self, other: Any) -> bool:
        return self._compare(EdgeKind.GT, other)

    def __lt__(self, other: Any) -> bool:
        return self._compare(EdgeKind.LT, other)

    def __ge__(self, other: Any) -> bool:
        return self._compare(EdgeKind.GE, other)

    def __le__(self, other: Any) -> bool:
        return self._compare(EdgeKind.LE, other)

    def __eq__(self, other: object) -> bool:
        return self._compare(EdgeKind.EQ, other)

    def __ne__(self, other: object) -> bool:
        return self._compare(EdgeKind.NE, other)

    # -------------------------------------------------------------------------
    # Increment and decrement
    # -------------------------------------------------------------------------

    def _step(self, kind: EdgeKind) -> Any:
        """Step the value by one under a new identity; return the old value."""
        old_value = self._value
        new_value = _ARITHMETIC[kind](old_value, 1)
        old_id = self._id
        self._graph.mark_dead(old_id)
        self._value = new_value
        self._id = self._graph.make_node(
            self._name, self._type_label, self._graph.value_formatter(new_value)
        )
        self._graph.append_edge(kind, old_id, self._id)
        return old_value

    def increment(self) -> Tracked:
        """Add one under a new node id and return self."""
        self._step(EdgeKind.ADD)
        return self

    def decrement(self) -> Tracked:
        """Subtract one under a new node id and return self."""
        self._step(EdgeKind.SUB)
        return self

    def post_increment(self) -> Any:
        """Add one under a new node id. Returns the raw value before the step."""
        return self._step(EdgeKind.ADD)

    def post_decrement(self) -> Any:
        """Subtract one under a new node id. Returns the raw value before the step."""
        return self._step(EdgeKind.SUB)

    # -------------------------------------------------------------------------
    # Stream I/O
    # -------------------------------------------------------------------------

    def read_from(self, stream: IO[str], parse: Callable[[str], Any] | None = None) -> Tracked:
        """Read one line from *stream* into this value.

        Args:
            stream: Text stream to read from.
            parse: Converts the stripped line into a value. Defaults to the
                current value's type; booleans accept 0/1 and true/false.

        Raises:
            EOFError: If the stream is exhausted.
        """
        line = stream.readline()
        if not line:
            raise EOFError(f"No input available for {self._name or f'#{self._id}'}")
        value = (parse or _default_parser(self._value))(line.strip())

        input_id = self._graph.make_node(
            "", f"input {type(value).__name__}", self._graph.value_formatter(value), ephemeral=True
        )
        self._set_value(value)
        self._graph.append_edge(EdgeKind.COPY_ASSIGN, input_id, self._id)
        self._graph.mark_dead(input_id)
        return self

    def write_to(self, stream: IO[str]) -> Tracked:
        """Write the value's text to *stream*, recording a read into an output node."""
        output_id = self._graph.make_node(
            "",
            f"output {self._type_label}",
            self._graph.value_formatter(self._value),
            ephemeral=True,
        )
        self._graph.append_edge(EdgeKind.READ, self._id, output_id)
        self._graph.mark_dead(output_id)
        stream.write(str(self._value))
        return self

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _unwrap(self, other: Any) -> Any:
        """Raw value of an operand; tracked operands must share this graph."""
        if isinstance(other, Tracked):
            if other._graph is not self._graph:
                raise ValueError("Cannot combine values tracked in different graphs")
            return other._value
        return other

    def _operand_id(self, other: Any) -> int:
        """Node id for an operand, allocating an ephemeral node for raw values."""
        if isinstance(other, Tracked):
            return other._id
        return self._graph.make_node(
            "", type(other).__name__, self._graph.value_formatter(other), ephemeral=True
        )

    def _set_value(self, value: Any) -> None:
        self._value = value
        self._graph.update_value(self._id, self._graph.value_formatter(value))

    def _label_for(self, value: Any) -> str:
        if type(value) is type(self._value):
            return self._type_label
        return type(value).__name__

    def __bool__(self) -> bool:
        return bool(self._value)

    def __str__(self) -> str:
        return str(self._value)

    def __format__(self, format_spec: str) -> str:
        return format(self._value, format_spec)

    def __repr__(self) -> str:
        return f"Tracked({self._value!r}, name={self._name!r}, id={self._id})"
