"""Tests for Tracked: each operation's node and edge footprint."""

from __future__ import annotations

import copy
import io

import pytest

from valuetrace.graph.model import SENTINEL_ID, Edge, EdgeKind
from valuetrace.graph.store import GraphStore
from valuetrace.tracked import Tracked


def _alive(graph: GraphStore, node_id: int) -> bool:
    node = graph.get_node(node_id)
    assert node is not None
    return node.alive


class TestConstruction:
    """Value and copy construction."""

    def test_named_construction(self, graph: GraphStore) -> None:
        """Wrapping a raw value allocates one node and no edge."""
        x = Tracked(1, "x", graph=graph)
        assert x.id == 1
        assert x.value == 1
        assert x.type_label == "int"
        assert graph.edge_count() == 0
        node = graph.get_node(1)
        assert node is not None
        assert (node.name, node.value_repr) == ("x", "1")

    def test_explicit_type_label(self, graph: GraphStore) -> None:
        x = Tracked(1, "x", graph=graph, type_label="std::int32_t")
        assert x.type_label == "std::int32_t"

    def test_raw_value_requires_graph(self) -> None:
        with pytest.raises(TypeError, match="requires a graph"):
            Tracked(1, "x")

    def test_construct_from_tracked_copies(self, graph: GraphStore) -> None:
        """Wrapping a Tracked copy-constructs and reuses its graph."""
        x = graph.track(1, "x")
        y = Tracked(x, "y")
        assert y.id == 2
        assert y.graph is graph
        assert graph.edges == (Edge(EdgeKind.COPY_CONSTRUCT, 1, 2),)
        assert x.alive

    def test_construct_from_other_graph_rejected(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        with pytest.raises(ValueError, match="different graph"):
            Tracked(x, "y", graph=GraphStore())


class TestCopyAndMove:
    """Copy and move construction."""

    def test_copy(self, graph: GraphStore) -> None:
        """copy() adds a node and a copy-construct edge; source stays alive."""
        x = graph.track(1, "x")
        y = x.copy("y")
        assert (y.id, y.name, y.value) == (2, "y", 1)
        assert graph.edges == (Edge(EdgeKind.COPY_CONSTRUCT, 1, 2),)
        assert x.alive and y.alive

    def test_copy_keeps_name_by_default(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        assert x.copy().name == "x"

    def test_copy_module_support(self, graph: GraphStore) -> None:
        """copy.copy and copy.deepcopy are copy constructions."""
        items = graph.track([1, [2]], "items")
        shallow = copy.copy(items)
        deep = copy.deepcopy(items)
        assert shallow.value is not items.value
        assert deep.value[1] is not items.value[1]
        assert [e.kind for e in graph.edges] == [EdgeKind.COPY_CONSTRUCT] * 2

    def test_move(self, graph: GraphStore) -> None:
        """move() retires the source and links it to the new node."""
        a = graph.track(5, "a")
        b = a.move("b")
        assert b.value == 5
        assert not a.alive
        assert b.alive
        assert graph.edges == (Edge(EdgeKind.MOVE_CONSTRUCT, a.id, b.id),)

    def test_moved_from(self, graph: GraphStore) -> None:
        a = graph.track(5, "a")
        b = Tracked.moved_from(a, "b")
        assert graph.edges_of_kind(EdgeKind.MOVE_CONSTRUCT) == [
            Edge(EdgeKind.MOVE_CONSTRUCT, a.id, b.id)
        ]


class TestAssignment:
    """Copy and move assignment keep the destination id."""

    def test_copy_assign(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        y = graph.track(5, "y")
        result = x.assign(y)
        assert result is x
        assert (x.id, x.value) == (1, 5)
        node = graph.get_node(1)
        assert node is not None
        assert node.value_repr == "5"
        assert graph.edges == (Edge(EdgeKind.COPY_ASSIGN, 2, 1),)
        assert y.alive

    def test_copy_assign_raw_value(self, graph: GraphStore) -> None:
        """A raw source gets an ephemeral node that stays alive."""
        x = graph.track(1, "x")
        x.assign(9)
        assert x.value == 9
        assert graph.edges == (Edge(EdgeKind.COPY_ASSIGN, 2, 1),)
        node = graph.get_node(2)
        assert node is not None
        assert node.ephemeral and node.alive

    def test_move_assign(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        y = graph.track(5, "y")
        x.move_assign(y)
        assert x.id == 1
        assert x.value == 5
        assert not y.alive
        assert x.alive
        assert graph.edges == (Edge(EdgeKind.MOVE_ASSIGN, 2, 1),)

    def test_self_move_assign_keeps_node(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        x.move_assign(x)
        assert x.alive


class TestRelease:
    """Destruction."""

    def test_release_retires_and_links_to_sentinel(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        x.release()
        assert not x.alive
        assert x.released
        assert graph.edges == (Edge(EdgeKind.DESTRUCT, 1, SENTINEL_ID),)

    def test_release_is_idempotent(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        x.release()
        x.release()
        assert graph.edge_count() == 1

    def test_context_manager_releases(self, graph: GraphStore) -> None:
        with graph.track(1, "x") as x:
            assert x.alive
        assert not x.alive

    def test_release_after_move(self, graph: GraphStore) -> None:
        """A moved-from value can still be released; its edge is recorded."""
        a = graph.track(1, "a")
        a.move("b")
        a.release()
        assert graph.edges[-1] == Edge(EdgeKind.DESTRUCT, 1, SENTINEL_ID)


class TestArithmetic:
    """Binary arithmetic operators."""

    def test_add_tracked_operands(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        y = graph.track(2, "y")
        z = x + y
        assert (z.id, z.value, z.name) == (3, 3, "")
        assert graph.edges == (Edge(EdgeKind.ADD, 1, 3), Edge(EdgeKind.ADD, 2, 3))

    def test_raw_right_operand(self, graph: GraphStore) -> None:
        """The result is allocated first, then the literal's ephemeral node."""
        x = graph.track(1, "x")
        r = x + 2
        assert r.id == 2
        literal = graph.get_node(3)
        assert literal is not None
        assert literal.ephemeral and literal.alive
        assert literal.value_repr == "2"
        assert graph.edges == (Edge(EdgeKind.ADD, 1, 2), Edge(EdgeKind.ADD, 3, 2))

    def test_raw_left_operand(self, graph: GraphStore) -> None:
        """Reflected operators keep left-to-right edge order."""
        x = graph.track(3, "x")
        r = 10 - x
        assert r.value == 7
        assert graph.edges == (Edge(EdgeKind.SUB, 3, 2), Edge(EdgeKind.SUB, 1, 2))

    @pytest.mark.parametrize(
        ("op", "kind", "expected"),
        [
            (lambda a, b: a + b, EdgeKind.ADD, 8),
            (lambda a, b: a - b, EdgeKind.SUB, 4),
            (lambda a, b: a * b, EdgeKind.MUL, 12),
            (lambda a, b: a / b, EdgeKind.DIV, 3.0),
        ],
    )
    def test_operator_kinds(self, graph: GraphStore, op, kind: EdgeKind, expected) -> None:
        result = op(graph.track(6, "a"), graph.track(2, "b"))
        assert result.value == expected
        assert {e.kind for e in graph.edges} == {kind}

    def test_result_type_label_follows_value(self, graph: GraphStore) -> None:
        x = graph.track(7, "x")
        assert (x / 2).type_label == "float"
        assert (x * 2).type_label == "int"

    def test_failed_operation_records_nothing(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        with pytest.raises(ZeroDivisionError):
            x / 0
        assert graph.node_count() == 1
        assert graph.edge_count() == 0

    def test_different_graphs_rejected(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        y = GraphStore().track(2, "y")
        with pytest.raises(ValueError, match="different graphs"):
            x + y
        assert graph.node_count() == 1


class TestCompoundAssignment:
    """In-place operators keep the destination id."""

    def test_iadd_keeps_id(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        y = graph.track(2, "y")
        before = x.id
        x += y
        assert x.id == before
        assert x.value == 3
        assert graph.edges == (Edge(EdgeKind.ADD, 2, 1),)
        node = graph.get_node(1)
        assert node is not None
        assert node.value_repr == "3"

    def test_iadd_raw_operand(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        x += 5
        assert x.value == 6
        assert graph.edges == (Edge(EdgeKind.ADD, 2, 1),)
        assert _alive(graph, 2)

    def test_all_compound_operators(self, graph: GraphStore) -> None:
        x = graph.track(10, "x")
        x -= 4
        x *= 3
        x /= 2
        assert x.value == 9.0
        assert x.id == 1
        assert [e.kind for e in graph.edges] == [EdgeKind.SUB, EdgeKind.MUL, EdgeKind.DIV]


class TestComparison:
    """Comparisons go through a retired comparison node."""

    def test_less_than(self, graph: GraphStore) -> None:
        x = graph.track(3, "x")
        y = graph.track(5, "y")
        assert (x < y) is True
        cmp_node = graph.get_node(3)
        assert cmp_node is not None
        assert cmp_node.ephemeral
        assert not cmp_node.alive
        assert cmp_node.name == ""
        assert cmp_node.type_label == "< bool"
        assert cmp_node.value_repr == "True"
        assert graph.edges == (Edge(EdgeKind.LT, 1, 3), Edge(EdgeKind.LT, 2, 3))
        assert x.alive and y.alive

    def test_compare_with_raw_value(self, graph: GraphStore) -> None:
        """The literal operand node stays alive; the comparison node does not."""
        x = graph.track(3, "x")
        assert (x > 1) is True
        assert _alive(graph, 2)
        assert not _alive(graph, 3)
        assert graph.edges == (Edge(EdgeKind.GT, 1, 3), Edge(EdgeKind.GT, 2, 3))

    @pytest.mark.parametrize(
        ("op", "kind", "expected"),
        [
            (lambda a, b: a > b, EdgeKind.GT, False),
            (lambda a, b: a < b, EdgeKind.LT, True),
            (lambda a, b: a >= b, EdgeKind.GE, False),
            (lambda a, b: a <= b, EdgeKind.LE, True),
            (lambda a, b: a == b, EdgeKind.EQ, False),
            (lambda a, b: a != b, EdgeKind.NE, True),
        ],
    )
    def test_comparison_kinds(self, graph: GraphStore, op, kind: EdgeKind, expected) -> None:
        assert op(graph.track(1, "a"), graph.track(2, "b")) is expected
        assert [e.kind for e in graph.edges] == [kind, kind]

    def test_unhashable(self, graph: GraphStore) -> None:
        with pytest.raises(TypeError):
            hash(graph.track(1, "x"))


class TestIncrementDecrement:
    """Increments change identity; compound assignment does not."""

    def test_increment_changes_id(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        old_id = x.id
        assert x.increment() is x
        assert x.id != old_id
        assert x.value == 2
        assert not _alive(graph, old_id)
        assert _alive(graph, x.id)
        assert graph.edges == (Edge(EdgeKind.ADD, old_id, x.id),)

    def test_new_node_keeps_name_and_type(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        x.increment()
        node = graph.get_node(x.id)
        assert node is not None
        assert (node.name, node.type_label, node.value_repr) == ("x", "int", "2")

    def test_decrement(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        x.decrement()
        assert x.value == 0
        assert graph.edges == (Edge(EdgeKind.SUB, 1, 2),)

    def test_post_forms_return_previous_value(self, graph: GraphStore) -> None:
        x = graph.track(5, "x")
        assert x.post_increment() == 5
        assert x.post_decrement() == 6
        assert x.value == 5
        assert x.id == 3

    def test_compound_vs_increment_asymmetry(self, graph: GraphStore) -> None:
        x = graph.track(1, "x")
        first = x.id
        x += 1
        assert x.id == first
        x.increment()
        assert x.id != first


class TestStreamIO:
    """Reading from and writing to text streams."""

    def test_read_from(self, graph: GraphStore) -> None:
        x = graph.track(0, "x")
        x.read_from(io.StringIO("42\n"))
        assert x.value == 42
        assert x.id == 1
        input_node = graph.get_node(2)
        assert input_node is not None
        assert input_node.name == ""
        assert input_node.type_label == "input int"
        assert not input_node.alive
        assert graph.edges == (Edge(EdgeKind.COPY_ASSIGN, 2, 1),)

    def test_read_with_custom_parser(self, graph: GraphStore) -> None:
        flag = graph.track(False, "flag")
        flag.read_from(io.StringIO("yes\n"), parse=lambda s: s == "yes")
        assert flag.value is True

    @pytest.mark.parametrize(("line", "expected"), [("0", False), ("1", True), ("false", False)])
    def test_read_bool_default_parser(self, graph: GraphStore, line: str, expected: bool) -> None:
        """Booleans read 0/1 or true/false rather than string truthiness."""
        flag = graph.track(True, "flag")
        flag.read_from(io.StringIO(f"{line}\n"))
        assert flag.value is expected

    def test_read_at_eof(self, graph: GraphStore) -> None:
        x = graph.track(0, "x")
        with pytest.raises(EOFError):
            x.read_from(io.StringIO(""))
        assert graph.node_count() == 1

    def test_write_to(self, graph: GraphStore) -> None:
        x = graph.track(7, "x")
        out = io.StringIO()
        x.write_to(out)
        assert out.getvalue() == "7"
        assert not _alive(graph, 2)
        assert x.alive
        assert graph.edges == (Edge(EdgeKind.READ, 1, 2),)


class TestPlainAccessors:
    """Conversions and representations emit no events."""

    def test_no_events(self, graph: GraphStore) -> None:
        x = graph.track(3.5, "x")
        assert str(x) == "3.5"
        assert f"{x:.2f}" == "3.50"
        assert bool(x)
        assert repr(x) == "Tracked(3.5, name='x', id=1)"
        assert graph.node_count() == 1
        assert graph.edge_count() == 0
