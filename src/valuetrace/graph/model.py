"""Records stored in the value graph: nodes, edges and scopes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

# Reserved identity meaning "no node" / anonymous absence of a counterpart.
SENTINEL_ID = 0

ROOT_SCOPE_ID = 0
ROOT_SIGNATURE = "<root>"


class EdgeKind(StrEnum):
    """Closed taxonomy of lifecycle and data-flow events.

    Values double as the labels printed on rendered edges.
    """

    INIT_CONSTRUCT = "init-construct"
    COPY_CONSTRUCT = "copy-construct"
    MOVE_CONSTRUCT = "move-construct"
    COPY_ASSIGN = "copy-assign"
    MOVE_ASSIGN = "move-assign"
    DESTRUCT = "destruct"
    READ = "read"
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    GT = "gt"
    LT = "lt"
    GE = "ge"
    LE = "le"
    EQ = "eq"
    NE = "ne"

    @property
    def is_copy(self) -> bool:
        return self in _COPY_KINDS

    @property
    def is_move(self) -> bool:
        return self in _MOVE_KINDS

    @property
    def is_arithmetic(self) -> bool:
        return self in _ARITHMETIC_KINDS

    @property
    def is_comparison(self) -> bool:
        return self in _COMPARISON_KINDS


_COPY_KINDS = frozenset({EdgeKind.COPY_CONSTRUCT, EdgeKind.COPY_ASSIGN})
_MOVE_KINDS = frozenset({EdgeKind.MOVE_CONSTRUCT, EdgeKind.MOVE_ASSIGN})
_ARITHMETIC_KINDS = frozenset({EdgeKind.ADD, EdgeKind.SUB, EdgeKind.MUL, EdgeKind.DIV})
_COMPARISON_KINDS = frozenset(
    {EdgeKind.GT, EdgeKind.LT, EdgeKind.GE, EdgeKind.LE, EdgeKind.EQ, EdgeKind.NE}
)


@dataclass
class Node:
    """One materialized value instance.

    Attributes:
        id: Unique identity, allocated from 1 upwards and never reused.
        name: Source-level identifier; empty for anonymous nodes.
        type_label: Caller-supplied description of the value's type.
        value_repr: Text snapshot of the value at creation or last update.
        scope_id: Index of the scope that was active at creation.
        alive: True until the node is retired; never flips back.
        ephemeral: Node stands for a transient operand, comparison or I/O.
    """

    id: int
    name: str = ""
    type_label: str = ""
    value_repr: str = ""
    scope_id: int = ROOT_SCOPE_ID
    alive: bool = True
    ephemeral: bool = False

    @property
    def named(self) -> bool:
        return bool(self.name)

    def retire(self) -> bool:
        """Mark the node dead.

        Returns:
            True if this call retired the node, False if it was already dead.
        """
        if not self.alive:
            return False
        self.alive = False
        return True


@dataclass(frozen=True)
class Edge:
    """A single kind-tagged event between two node identities."""

    kind: EdgeKind
    src_id: int
    dst_id: int

    @property
    def is_noop(self) -> bool:
        """Both ends are the sentinel; such edges are never rendered."""
        return self.src_id == SENTINEL_ID and self.dst_id == SENTINEL_ID


@dataclass(frozen=True)
class Scope:
    """A lexical nesting unit (function activation or block)."""

    index: int
    signature: str
    parent_id: int | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None
