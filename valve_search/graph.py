import re
from dataclasses import dataclass, field
from typing import Iterator, Union

from valve_search.config import START_VALVE
from valve_search.errors import GraphError

LINE_REGEX = re.compile(
    r"^Valve ([A-Za-z]+) has flow rate=([0-9]+); tunnel(?:s)? lead(?:s)? to valve(?:s)? ([A-Za-z]+(?:, [A-Za-z]+)*)$"
)

ValveRef = Union[str, int]


@dataclass(frozen=True)
class Valve:
    index: int
    name: str
    flow_rate: int
    neighbors: tuple[int, ...]  # Sorted!

    @property
    def bit(self) -> int:
        return 1 << self.index


@dataclass(frozen=True)
class Graph:
    """Valves stored densely, indexed in lexicographic order of their names.

    Neighbors are indices into `valves`, so walking the graph never touches
    names and every enumeration over neighbors is in name order.
    """

    valves: tuple[Valve, ...]
    start_index: int
    lookup: dict[str, int] = field(compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.valves)

    def __iter__(self) -> Iterator[Valve]:
        return iter(self.valves)

    def __str__(self) -> str:
        lines = [f"Graph with {len(self.valves)} valves:"]
        for valve in self.valves:
            neighbors = ", ".join(self.valves[n].name for n in valve.neighbors)
            lines.append(f"  {valve.name} (r={valve.flow_rate}) => {neighbors}")
        return "\n".join(lines)

    def start(self) -> Valve:
        return self.valves[self.start_index]

    def index(self, name: str) -> int:
        try:
            return self.lookup[name]
        except KeyError:
            raise KeyError(f"unknown valve: {name}") from None

    def get(self, ref: ValveRef) -> Valve:
        if isinstance(ref, str):
            return self.valves[self.index(ref)]
        if ref < 0 or ref >= len(self.valves):
            raise KeyError(f"unknown valve: {ref}")
        return self.valves[ref]

    def neighbors(self, ref: ValveRef) -> tuple[str, ...]:
        return tuple(self.valves[n].name for n in self.get(ref).neighbors)

    def useful_valves(self) -> list[Valve]:
        """Valves worth opening, highest flow rate first."""
        return sorted(
            (valve for valve in self.valves if valve.flow_rate > 0),
            key=lambda valve: (-valve.flow_rate, valve.index),
        )


def parse_graph(text: str, start: str = START_VALVE) -> Graph:
    """Builds a Graph from the line-per-valve puzzle description"""
    rates: dict[str, int] = {}
    tunnels: dict[str, list[str]] = {}
    line_of: dict[str, tuple[int, str]] = {}
    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue
        match = LINE_REGEX.match(line)
        if match is None:
            raise GraphError("unknown format for line", line_no, line)
        name, flow_str, neighbors_str = match.groups()
        if name in rates:
            raise GraphError(f"duplicate valve {name}", line_no, line)
        rates[name] = int(flow_str)
        tunnels[name] = neighbors_str.split(", ")
        line_of[name] = (line_no, line)

    if not rates:
        raise GraphError("no valves defined")

    # now that every valve has a name, plug in edges
    names = sorted(rates)
    lookup = {name: i for i, name in enumerate(names)}
    valves = []
    for name in names:
        for neighbor in tunnels[name]:
            if neighbor not in lookup:
                line_no, line = line_of[name]
                raise GraphError(
                    f"dangling valve neighbor edge: {neighbor}", line_no, line
                )
        valves.append(
            Valve(
                index=lookup[name],
                name=name,
                flow_rate=rates[name],
                neighbors=tuple(sorted({lookup[n] for n in tunnels[name]})),
            )
        )

    if start not in lookup:
        raise GraphError(f"start valve {start} is not defined")
    return Graph(valves=tuple(valves), start_index=lookup[start], lookup=lookup)


def parse_file(path: str, start: str = START_VALVE) -> Graph:
    with open(path, "r") as f:
        return parse_graph(f.read(), start=start)
