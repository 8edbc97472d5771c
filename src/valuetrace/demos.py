"""Built-in demonstration scenarios.

Each scenario runs a small program against a fresh GraphStore so the CLI
can show what a traced run looks like without any user code.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import TYPE_CHECKING

from valuetrace.graph.store import GraphStore
from valuetrace.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from valuetrace.tracked import Tracked

log = get_logger(__name__)


@dataclass(frozen=True)
class Scenario:
    """A named demonstration program."""

    name: str
    description: str
    run: Callable[[GraphStore], None]


def _arithmetic(graph: GraphStore) -> None:
    x = graph.track(1, "x")
    y = graph.track(2, "y")
    z = (x + y).move("z")
    z *= 2
    z -= x


def _move(graph: GraphStore) -> None:
    a = graph.track(5, "a")
    b = a.move("b")
    c = graph.track(0, "c")
    c.move_assign(b)
    c.release()


def _swap(graph: GraphStore) -> None:
    @graph.traced(signature="swap(a, b)")
    def swap(a: Tracked, b: Tracked) -> None:
        temp = a.copy("temp")
        a.assign(b)
        b.assign(temp)
        temp.release()

    @graph.traced(signature="bubble_sort(values)")
    def bubble_sort(values: list[Tracked]) -> None:
        for i in range(len(values)):
            for j in range(len(values) - i - 1):
                if values[j] > values[j + 1]:
                    swap(values[j], values[j + 1])

    bubble_sort([graph.track(v, f"v{i}") for i, v in enumerate([3, 1, 2])])


def _rvo(graph: GraphStore) -> None:
    @graph.traced(signature="no_rvo(flag)")
    def no_rvo(flag: Tracked) -> Tracked:
        a = graph.track(1, "a")
        b = graph.track(2, "b")
        chosen = a if flag else b
        result = chosen.copy("result")
        a.release()
        b.release()
        return result

    @graph.traced(signature="yes_rvo(flag)")
    def yes_rvo(flag: Tracked) -> Tracked:
        a = graph.track(1, "a")
        return a.move("result")

    stdin = io.StringIO("1\n0\n")
    stdout = io.StringIO()

    with graph.scope("main()"):
        flag1 = graph.track(1, "flag1").read_from(stdin)
        no_rvo(flag1).write_to(stdout)
        flag2 = graph.track(1, "flag2").read_from(stdin)
        yes_rvo(flag2).write_to(stdout)


def _comparison(graph: GraphStore) -> None:
    @graph.traced(signature="binary_search(values, key)")
    def binary_search(values: list[Tracked], key: Tracked) -> Tracked:
        lo = graph.track(0, "l")
        hi = graph.track(len(values) - 1, "r")
        while lo <= hi:
            mid = graph.track((lo.value + hi.value) // 2, "mid")
            if values[mid.value] == key:
                return mid
            if values[mid.value] < key:
                lo.assign(mid + 1)
            else:
                hi.assign(mid - 1)
        return graph.track(-1, "not_found")

    values = [graph.track(v, f"v{i}") for i, v in enumerate([1, 3, 5, 7, 9])]
    binary_search(values, graph.track(7, "key"))


SCENARIOS: dict[str, Scenario] = {
    s.name: s
    for s in (
        Scenario("arithmetic", "x + y into a moved result, then compound updates", _arithmetic),
        Scenario("move", "move construction and move assignment", _move),
        Scenario("swap", "bubble sort through a copying swap()", _swap),
        Scenario("rvo", "returning locals by copy vs. by move, with stream I/O", _rvo),
        Scenario("comparison", "binary search driven by tracked comparisons", _comparison),
    )
}


def run_scenario(name: str, graph: GraphStore | None = None) -> GraphStore:
    """Run a built-in scenario into *graph* (or a fresh store).

    Raises:
        ValueError: If the scenario does not exist.
    """
    scenario = SCENARIOS.get(name)
    if scenario is None:
        supported = ", ".join(sorted(SCENARIOS))
        msg = f"Unknown scenario '{name}'. Supported: {supported}"
        raise ValueError(msg)

    graph = graph or GraphStore()
    scenario.run(graph)
    log.info("scenario_complete", scenario=name, nodes=graph.node_count(), edges=graph.edge_count())
    return graph
