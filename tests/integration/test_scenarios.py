"""End-to-end traces: tracked programs through to DOT and rendered images."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import pytest

from valuetrace import GraphStore, RenderConfig, ScopeUnderflowError, export_graph
from valuetrace.demos import SCENARIOS, run_scenario
from valuetrace.graph.model import EdgeKind

if TYPE_CHECKING:
    from pathlib import Path

    from valuetrace import Tracked


def _edge_tuples(graph: GraphStore) -> list[tuple[str, int, int]]:
    return [(str(e.kind), e.src_id, e.dst_id) for e in graph.edges]


class TestTracedPrograms:
    """Whole programs traced into one store."""

    def test_sum_of_two_values(self) -> None:
        graph = GraphStore()
        x = graph.track(1, "x")
        y = graph.track(2, "y")
        z = x + y

        assert [n.id for n in graph.nodes] == [1, 2, 3]
        assert graph.get_node(3).value_repr == "3"
        assert z.id == 3
        assert _edge_tuples(graph) == [("add", 1, 3), ("add", 2, 3)]

        dot = graph.render()
        assert 'n1 -> n3 [label="add"' in dot
        assert 'n2 -> n3 [label="add"' in dot

    def test_move_leaves_source_dead(self) -> None:
        graph = GraphStore()
        a = graph.track(5, "a")
        b = a.move("b")

        assert _edge_tuples(graph) == [("move-construct", 1, 2)]
        assert not graph.get_node(1).alive
        assert graph.get_node(2).alive
        assert b.value == 5
        assert "(dead)" in graph.render()

    def test_nested_calls_build_nested_clusters(self) -> None:
        graph = GraphStore()

        @graph.traced(signature="inner(v)")
        def inner(v: Tracked) -> Tracked:
            return v * 2

        @graph.traced(signature="outer(v)")
        def outer(v: Tracked) -> Tracked:
            return inner(v) + 1

        result = outer(graph.track(3, "v"))

        assert result.value == 7
        assert graph.scope_depth == 1
        outer_scope, inner_scope = graph.scopes[1], graph.scopes[2]
        assert inner_scope.parent_id == outer_scope.index
        dot = graph.render()
        assert dot.index("subgraph cluster_1 {") < dot.index("subgraph cluster_2 {")
        assert dot.index("subgraph cluster_2 {") < dot.index("\n    }\n")

    def test_closing_more_scopes_than_opened(self) -> None:
        graph = GraphStore()
        graph.enter_scope("f()")
        graph.exit_scope()
        with pytest.raises(ScopeUnderflowError):
            graph.exit_scope()
        # The store stays usable after the rejected call
        graph.track(1, "x")
        assert graph.scope_depth == 1
        assert graph.render().startswith("digraph valuetrace {")

    def test_stream_round_trip(self) -> None:
        graph = GraphStore()
        n = graph.track(0, "n").read_from(io.StringIO("41\n"))
        n.increment()
        out = io.StringIO()
        n.write_to(out)

        assert out.getvalue() == "42"
        kinds = [str(e.kind) for e in graph.edges]
        assert kinds == ["copy-assign", "add", "read"]
        assert graph.get_node(n.id).value_repr == "42"

    def test_destruct_edges_meet_terminal_node(self) -> None:
        graph = GraphStore()
        with graph.track(1, "x"):
            pass
        dot = graph.render()
        assert "n0 [label=" in dot
        assert graph.edges_of_kind(EdgeKind.DESTRUCT)[0].dst_id == 0


@pytest.mark.parametrize("name", sorted(SCENARIOS))
def test_scenario_renders_with_graphviz(name: str, tmp_path: Path, dot_executable: str) -> None:
    """Every demo produces a DOT document Graphviz accepts."""
    graph = run_scenario(name)
    config = RenderConfig(output_format="svg", dot_executable=dot_executable)

    image = export_graph(graph, tmp_path / name, config)

    assert image == tmp_path / f"{name}.svg"
    assert image.read_text(encoding="utf-8").lstrip().startswith("<?xml")
    assert (tmp_path / f"{name}.dot").read_text(encoding="utf-8") == graph.render(config)
