from random import Random
from typing import Callable

import pytest

from valve_search.graph import Graph, parse_graph

EXAMPLE = """Valve AA has flow rate=0; tunnels lead to valves DD, II, BB
Valve BB has flow rate=13; tunnels lead to valves CC, AA
Valve CC has flow rate=2; tunnels lead to valves DD, BB
Valve DD has flow rate=20; tunnels lead to valves CC, AA, EE
Valve EE has flow rate=3; tunnels lead to valves FF, DD
Valve FF has flow rate=0; tunnels lead to valves EE, GG
Valve GG has flow rate=0; tunnels lead to valves FF, HH
Valve HH has flow rate=22; tunnel leads to valve GG
Valve II has flow rate=0; tunnels lead to valves AA, JJ
Valve JJ has flow rate=21; tunnel leads to valve II"""

# AA - BB - CC in a line
LINE = """Valve AA has flow rate=0; tunnel leads to valve BB
Valve BB has flow rate=10; tunnels lead to valves AA, CC
Valve CC has flow rate=5; tunnel leads to valve BB"""


def random_network(seed: int, size: int) -> str:
    """A connected valve network with AA as a zero-rate entry point."""
    rng = Random(seed)
    names = [chr(ord("A") + i) * 2 for i in range(size)]
    edges: dict[str, set[str]] = {name: set() for name in names}
    for i in range(1, size):
        j = rng.randrange(i)
        edges[names[i]].add(names[j])
        edges[names[j]].add(names[i])
    for _ in range(rng.randrange(size)):
        a, b = rng.sample(names, 2)
        edges[a].add(b)
        edges[b].add(a)
    lines = []
    for name in names:
        rate = 0 if name == "AA" else rng.choice([0, 0, 1, 3, 7, 12, 20])
        lines.append(
            f"Valve {name} has flow rate={rate}; tunnels lead to valves "
            + ", ".join(sorted(edges[name]))
        )
    return "\n".join(lines)


@pytest.fixture
def example_graph() -> Graph:
    return parse_graph(EXAMPLE)


@pytest.fixture
def line_graph() -> Graph:
    return parse_graph(LINE)


@pytest.fixture
def example_text() -> str:
    return EXAMPLE


@pytest.fixture
def line_text() -> str:
    return LINE


@pytest.fixture
def make_network() -> Callable[[int, int], Graph]:
    """Builds the seeded network for (seed, size)."""

    def build(seed: int, size: int) -> Graph:
        return parse_graph(random_network(seed, size))

    return build
