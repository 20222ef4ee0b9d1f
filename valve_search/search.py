import logging
from dataclasses import dataclass, field
from typing import Optional

from valve_search.config import Dominance, SearchConfig
from valve_search.graph import Graph
from valve_search.state import Action, Move, Open, SimState, Stay
from valve_search.tracing import Tracer
from valve_search.visited import Key, VisitedMap, dominance_key

logger = logging.getLogger(__name__)

# (turn, action, previous step), newest first
Trail = Optional[tuple]


@dataclass
class SearchResult:
    max_flow: int
    steps: list[tuple[int, Action]] = field(default_factory=list)
    explored: int = 0
    pruned: int = 0

    @property
    def actions(self) -> list[Action]:
        return [action for _, action in self.steps]


class Searcher:
    """Depth-first backtracking over every agent's open / move / stay choices.

    Within a round the lowest-index agent that has not acted picks an action
    and the search recurses; once all agents have acted the round is closed
    with a tick. At each tick the visited map is consulted and a branch is
    dropped when an equal or better flow was already seen for the same key on
    the same turn. With `config.bound` a branch is also dropped when even the
    most optimistic schedule cannot beat the best flow found so far.
    """

    def __init__(
        self,
        graph: Graph,
        config: Optional[SearchConfig] = None,
        tracer: Optional[Tracer] = None,
        visited: Optional[VisitedMap] = None,
    ):
        self.graph = graph
        self.config = config or SearchConfig()
        self.tracer = tracer or Tracer()
        self.visited = visited if visited is not None else VisitedMap()
        self._useful = graph.useful_valves()
        self._best: Optional[SimState] = None
        self._best_trail: Trail = None
        self.explored = 0
        self.pruned = 0

    @property
    def best_flow(self) -> int:
        return self._best.flow if self._best is not None else 0

    def solve(self) -> SearchResult:
        start = SimState.initial(self.graph, self.config)
        if start.finished:
            logger.debug("no time left after turn %d, nothing to search", start.turn)
        else:
            self._search(start, None)
        logger.debug(
            "explored %d rounds, pruned %d, visited map holds %d entries",
            self.explored,
            self.pruned,
            len(self.visited),
        )
        return SearchResult(
            max_flow=self.best_flow,
            steps=_unwind(self._best_trail),
            explored=self.explored,
            pruned=self.pruned,
        )

    def _search(self, state: SimState, trail: Trail) -> None:
        if state.all_acted:
            state, done = state.tick()
            self.explored += 1
            self.tracer.tick(state)
            if done:
                self._record(state, trail)
                return
            key = self._key(state.positions, state.opened)
            if self.visited.upsert_if_better(key, state.turn, state.flow) is None:
                self._prune(state, "dominated")
                return
            if self.config.bound and self._ceiling(state) <= self.best_flow:
                self._prune(state, "bound")
                return

        pending = state.pending()
        agent = pending[0]
        # the last agent to act fixes the key the next tick will look up
        exact_key = len(pending) == 1
        here = self.graph.valves[state.positions[agent]]
        next_flow = state.flow + state.rate

        # Opening is the most impactful choice, so it goes first.
        if state.can_open(self.graph, agent):
            action = Open(agent, here.name)
            self.tracer.action(state, action)
            self._search(state.open(self.graph, agent), (state.turn, action, trail))

        for target in self._moves(state, agent, exact_key, next_flow):
            action = Move(agent, here.name, self.graph.valves[target].name)
            self.tracer.action(state, action)
            self._search(
                state.move(self.graph, agent, target), (state.turn, action, trail)
            )

        if self._may_stay(state, exact_key, next_flow):
            action = Stay(agent, here.name)
            self.tracer.action(state, action)
            self._search(state.stay(agent), (state.turn, action, trail))

    def _moves(
        self, state: SimState, agent: int, exact_key: bool, next_flow: int
    ) -> list[int]:
        targets = self.graph.valves[state.positions[agent]].neighbors
        if not self._filters(exact_key):
            return list(targets)
        keyed: dict[Key, int] = {}
        for target in targets:
            positions = list(state.positions)
            positions[agent] = target
            keyed[self._key(positions, state.opened)] = target
        ranked = self.visited.get_next_best_nodes(
            list(keyed), state.turn + 1, next_flow
        )
        return [keyed[key] for key in ranked]

    def _may_stay(self, state: SimState, exact_key: bool, next_flow: int) -> bool:
        if not self._filters(exact_key):
            return True
        key = self._key(state.positions, state.opened)
        return (
            self.visited.get_best_next_node([key], state.turn + 1, next_flow)
            is not None
        )

    def _filters(self, exact_key: bool) -> bool:
        # Other agents may still move, so filtering early is only safe for
        # the positional heuristic, which never promised to be exact.
        return exact_key or self.config.dominance is Dominance.POSITIONAL

    def _key(self, positions, opened: int) -> Key:
        return dominance_key(positions, opened, self.config.dominance)

    def _ceiling(self, state: SimState) -> int:
        """Upper bound on the final flow reachable from a fresh round.

        Each agent needs at least two rounds between openings (move, then
        open), so the k-th valve opened overall starts flowing no earlier
        than 2 * (k // agents) rounds from now.
        """
        remaining = state.remaining
        agents = len(state.positions)
        ceiling = state.flow + state.rate * remaining
        k = 0
        for valve in self._useful:
            if state.opened & valve.bit:
                continue
            ticks = remaining - 2 * (k // agents)
            if ticks <= 0:
                break
            ceiling += valve.flow_rate * ticks
            k += 1
        return ceiling

    def _record(self, state: SimState, trail: Trail) -> None:
        if self._best is None or state.flow > self._best.flow:
            self._best = state
            self._best_trail = trail
            self.tracer.best(state)

    def _prune(self, state: SimState, reason: str) -> None:
        self.pruned += 1
        self.tracer.prune(state, reason)


def _unwind(trail: Trail) -> list[tuple[int, Action]]:
    steps = []
    while trail is not None:
        turn, action, trail = trail
        steps.append((turn, action))
    steps.reverse()
    return steps


def solve(
    graph: Graph, config: Optional[SearchConfig] = None, tracer: Optional[Tracer] = None
) -> SearchResult:
    return Searcher(graph, config, tracer).solve()


def max_flow(graph: Graph, config: Optional[SearchConfig] = None) -> int:
    return solve(graph, config).max_flow
