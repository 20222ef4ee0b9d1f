from dataclasses import dataclass, replace
from typing import Iterator, Union

from valve_search.config import SearchConfig
from valve_search.errors import GraphError, IllegalActionError
from valve_search.graph import Graph


@dataclass(frozen=True)
class Open:
    agent: int
    valve: str

    def __str__(self) -> str:
        return f"Agent {self.agent + 1} opened valve {self.valve}"


@dataclass(frozen=True)
class Move:
    agent: int
    source: str
    target: str

    def __str__(self) -> str:
        return f"Agent {self.agent + 1} moved from {self.source} to {self.target}"


@dataclass(frozen=True)
class Stay:
    agent: int
    at: str

    def __str__(self) -> str:
        return f"Agent {self.agent + 1} stayed at {self.at}"


Action = Union[Open, Move, Stay]


@dataclass(frozen=True)
class SimState:
    """One moment of the simulation.

    Rounds are played between ticks: every agent acts once (open, move or
    stay), then `tick` closes the round, adding the active rate to the flow.
    A valve opened during a round is already counted by that round's tick.
    """

    turn: int
    max_turns: int
    flow: int = 0
    rate: int = 0
    opened: int = 0  # bitmask over valve indices
    positions: tuple[int, ...] = ()
    acted: tuple[bool, ...] = ()

    @classmethod
    def initial(cls, graph: Graph, config: SearchConfig) -> "SimState":
        if config.start not in graph.lookup:
            raise GraphError(f"start valve {config.start} is not defined")
        state = cls(
            turn=1,
            max_turns=config.max_turns,
            positions=(graph.lookup[config.start],) * config.agents,
            acted=(False,) * config.agents,
        )
        for _ in range(config.spawn_ticks):
            if state.finished:
                break
            state, _ = state.tick()
        return state

    @property
    def finished(self) -> bool:
        return self.turn >= self.max_turns

    @property
    def all_acted(self) -> bool:
        return all(self.acted)

    @property
    def remaining(self) -> int:
        """Ticks left before the time budget runs out."""
        return max(0, self.max_turns - self.turn)

    def pending(self) -> list[int]:
        return [agent for agent, done in enumerate(self.acted) if not done]

    def is_open(self, index: int) -> bool:
        return bool(self.opened >> index & 1)

    def tick(self) -> tuple["SimState", bool]:
        state = replace(
            self,
            turn=self.turn + 1,
            flow=self.flow + self.rate,
            acted=(False,) * len(self.acted),
        )
        return state, state.finished

    def can_open(self, graph: Graph, agent: int) -> bool:
        valve = graph.valves[self.positions[agent]]
        return (
            not self.acted[agent]
            and valve.flow_rate > 0
            and not self.opened & valve.bit
        )

    def open(self, graph: Graph, agent: int) -> "SimState":
        valve = graph.valves[self.positions[agent]]
        if not self.can_open(graph, agent):
            raise IllegalActionError(f"agent {agent + 1} cannot open {valve.name}")
        return replace(
            self,
            rate=self.rate + valve.flow_rate,
            opened=self.opened | valve.bit,
            acted=self._mark(agent),
        )

    def move(self, graph: Graph, agent: int, target: int) -> "SimState":
        self._check_pending(agent)
        source = graph.valves[self.positions[agent]]
        if target not in source.neighbors:
            label = graph.valves[target].name if 0 <= target < len(graph) else f"#{target}"
            raise IllegalActionError(
                f"agent {agent + 1} cannot move from {source.name} to {label}: no tunnel"
            )
        positions = list(self.positions)
        positions[agent] = target
        return replace(self, positions=tuple(positions), acted=self._mark(agent))

    def stay(self, agent: int) -> "SimState":
        self._check_pending(agent)
        return replace(self, acted=self._mark(agent))

    def apply(self, graph: Graph, action: Action) -> "SimState":
        if isinstance(action, Open):
            if graph.valves[self.positions[action.agent]].name != action.valve:
                raise IllegalActionError(
                    f"agent {action.agent + 1} is not at {action.valve}"
                )
            return self.open(graph, action.agent)
        if isinstance(action, Move):
            if graph.valves[self.positions[action.agent]].name != action.source:
                raise IllegalActionError(
                    f"agent {action.agent + 1} is not at {action.source}"
                )
            return self.move(graph, action.agent, graph.index(action.target))
        if graph.valves[self.positions[action.agent]].name != action.at:
            raise IllegalActionError(f"agent {action.agent + 1} is not at {action.at}")
        return self.stay(action.agent)

    def agent_options(
        self, graph: Graph, agent: int
    ) -> Iterator[tuple[Action, "SimState"]]:
        """Every legal action for one agent, opening first."""
        valve = graph.valves[self.positions[agent]]
        if self.can_open(graph, agent):
            yield Open(agent, valve.name), self.open(graph, agent)
        for target in valve.neighbors:
            yield (
                Move(agent, valve.name, graph.valves[target].name),
                self.move(graph, agent, target),
            )
        yield Stay(agent, valve.name), self.stay(agent)

    def round_successors(
        self, graph: Graph
    ) -> Iterator[tuple[tuple[Action, ...], "SimState"]]:
        """Every joint action of the agents still pending this round.

        Yields the actions taken and the state just before the closing tick.
        """
        pending = self.pending()
        if not pending:
            yield (), self
            return
        for action, state in self.agent_options(graph, pending[0]):
            for rest, final in state.round_successors(graph):
                yield (action,) + rest, final

    def _check_pending(self, agent: int) -> None:
        if self.acted[agent]:
            raise IllegalActionError(f"agent {agent + 1} already acted this turn")

    def _mark(self, agent: int) -> tuple[bool, ...]:
        acted = list(self.acted)
        acted[agent] = True
        return tuple(acted)
