"""Reference solver that tries every joint action, with no dominance pruning.

States are memoized on (turn, positions, open valves): the flow still to come
from such a state does not depend on how it was reached. Only practical for
small graphs, where it serves as a check on the pruned search.
"""

from functools import lru_cache
from typing import Optional

from valve_search.config import SearchConfig
from valve_search.graph import Graph
from valve_search.state import SimState


def exhaustive_max_flow(graph: Graph, config: Optional[SearchConfig] = None) -> int:
    config = config or SearchConfig()
    start = SimState.initial(graph, config)
    idle = (False,) * config.agents

    def rate_of(opened: int) -> int:
        return sum(valve.flow_rate for valve in graph if opened & valve.bit)

    @lru_cache(maxsize=None)
    def gain(turn: int, positions: tuple[int, ...], opened: int) -> int:
        state = SimState(
            turn=turn,
            max_turns=start.max_turns,
            rate=rate_of(opened),
            opened=opened,
            positions=positions,
            acted=idle,
        )
        if state.finished:
            return 0
        best = 0
        for _, before_tick in state.round_successors(graph):
            after, _ = before_tick.tick()
            best = max(
                best,
                after.flow + gain(after.turn, tuple(sorted(after.positions)), after.opened),
            )
        return best

    return start.flow + gain(start.turn, tuple(sorted(start.positions)), start.opened)
