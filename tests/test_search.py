import pytest

from valve_search.config import ACTIVATION_DELAY, Dominance, SearchConfig
from valve_search.errors import GraphError
from valve_search.exhaustive import exhaustive_max_flow
from valve_search.graph import Graph, parse_graph
from valve_search.search import SearchResult, Searcher, max_flow, solve
from valve_search.state import SimState
from valve_search.tracing import Tracer
from valve_search.visited import VisitedMap

NO_FLOW = """Valve AA has flow rate=0; tunnels lead to valves BB, CC
Valve BB has flow rate=0; tunnels lead to valves AA, CC
Valve CC has flow rate=0; tunnels lead to valves AA, BB"""


def replay(graph: Graph, config: SearchConfig, result: SearchResult) -> SimState:
    state = SimState.initial(graph, config)
    for turn, action in result.steps:
        assert turn == state.turn
        state = state.apply(graph, action)
        if state.all_acted:
            state, _ = state.tick()
    return state


class RecordingTracer(Tracer):
    def __init__(self) -> None:
        self.ticks = 0
        self.prunes: dict[str, int] = {}
        self.bests: list[int] = []

    def tick(self, state: SimState) -> None:
        self.ticks += 1

    def prune(self, state: SimState, reason: str) -> None:
        self.prunes[reason] = self.prunes.get(reason, 0) + 1

    def best(self, state: SimState) -> None:
        self.bests.append(state.flow)


class TestExample:
    def test_single_agent(self, example_graph: Graph) -> None:
        assert max_flow(example_graph, SearchConfig.single()) == 1651

    def test_two_agents(self, example_graph: Graph) -> None:
        assert max_flow(example_graph, SearchConfig.dual()) == 1707

    def test_winning_actions_replay_to_answer(self, example_graph: Graph) -> None:
        config = SearchConfig.single()
        result = solve(example_graph, config)
        final = replay(example_graph, config, result)
        assert final.finished
        assert final.flow == result.max_flow == 1651
        assert len(result.actions) == 29

    def test_two_agent_actions_replay_to_answer(self, example_graph: Graph) -> None:
        config = SearchConfig.dual()
        result = solve(example_graph, config)
        final = replay(example_graph, config, result)
        assert final.flow == result.max_flow == 1707
        assert {action.agent for action in result.actions} == {0, 1}

    def test_without_bound(self, example_graph: Graph) -> None:
        assert max_flow(example_graph, SearchConfig.single(bound=False)) == 1651

    def test_dominance_prunes(self, example_graph: Graph) -> None:
        tracer = RecordingTracer()
        result = Searcher(example_graph, SearchConfig.single(bound=False), tracer).solve()
        assert result.pruned > 0
        assert tracer.prunes.get("dominated", 0) == result.pruned
        assert tracer.ticks == result.explored

    def test_bests_only_improve(self, example_graph: Graph) -> None:
        tracer = RecordingTracer()
        Searcher(example_graph, SearchConfig.single(), tracer).solve()
        assert tracer.bests == sorted(tracer.bests)
        assert tracer.bests[-1] == 1651

    def test_deterministic(self, example_graph: Graph) -> None:
        config = SearchConfig.dual()
        first = solve(example_graph, config)
        second = solve(example_graph, config)
        assert first.max_flow == second.max_flow
        assert first.steps == second.steps

    def test_shared_visited_map(self, example_graph: Graph) -> None:
        visited = VisitedMap()
        Searcher(example_graph, SearchConfig.single(), visited=visited).solve()
        assert len(visited) > 0

    def test_positional_heuristic_never_beats_exact(self, example_graph: Graph) -> None:
        for config in (SearchConfig.single(), SearchConfig.dual()):
            exact = max_flow(example_graph, config)
            heuristic = max_flow(
                example_graph,
                SearchConfig(
                    agents=config.agents, dominance=Dominance.POSITIONAL
                ),
            )
            assert 0 < heuristic <= exact

    def test_unknown_start(self, example_graph: Graph) -> None:
        with pytest.raises(GraphError):
            max_flow(example_graph, SearchConfig(start="ZZ"))


class TestAgentCount:
    """A second agent never hurts once it gets the turns it waits out."""

    @pytest.mark.parametrize("turns", [12, 20])
    def test_example(self, example_graph: Graph, turns: int) -> None:
        one = max_flow(example_graph, SearchConfig.single(max_turns=turns))
        two = max_flow(
            example_graph, SearchConfig.dual(max_turns=turns + ACTIVATION_DELAY)
        )
        assert two >= one

    @pytest.mark.parametrize("seed", range(5))
    def test_networks(self, make_network, seed: int) -> None:
        graph = make_network(seed, 4 + seed % 3)
        one = max_flow(graph, SearchConfig.single(max_turns=10))
        two = max_flow(graph, SearchConfig.dual(max_turns=10 + ACTIVATION_DELAY))
        assert two >= one

    def test_single_valve(self) -> None:
        graph = parse_graph("Valve AA has flow rate=100; tunnel leads to valve AA")
        one = max_flow(graph, SearchConfig.single())
        two = max_flow(graph, SearchConfig.dual(max_turns=30 + ACTIVATION_DELAY))
        assert one == two == 2900

    def test_no_delay_same_budget(self, example_graph: Graph) -> None:
        one = max_flow(example_graph, SearchConfig.single(max_turns=20))
        two = max_flow(example_graph, SearchConfig.dual(max_turns=20, activation_delay=0))
        assert two >= one

    def test_delay_counts_against_nominal_budget(self) -> None:
        graph = parse_graph("Valve AA has flow rate=100; tunnel leads to valve AA")
        assert max_flow(graph, SearchConfig.single()) == 2900
        assert max_flow(graph, SearchConfig.dual()) == 2500


class TestEdgeCases:
    def test_deep_budget(self) -> None:
        graph = parse_graph("Valve AA has flow rate=7; tunnel leads to valve AA")
        assert max_flow(graph, SearchConfig(max_turns=500)) == 7 * 499

    @pytest.mark.parametrize("agents", [1, 2])
    def test_zero_budget(self, example_graph: Graph, agents: int) -> None:
        result = solve(example_graph, SearchConfig(max_turns=0, agents=agents))
        assert result.max_flow == 0
        assert result.steps == []

    @pytest.mark.parametrize("turns", [0, 1, 5, 30])
    def test_no_flow_anywhere(self, turns: int) -> None:
        graph = parse_graph(NO_FLOW)
        assert max_flow(graph, SearchConfig(max_turns=turns)) == 0
        assert max_flow(graph, SearchConfig.dual(max_turns=turns)) == 0

    @pytest.mark.parametrize("turns", [2, 3, 10, 30])
    def test_single_valve(self, turns: int) -> None:
        graph = parse_graph("Valve AA has flow rate=7; tunnel leads to valve AA")
        assert max_flow(graph, SearchConfig(max_turns=turns)) == 7 * (turns - 1)

    def test_unreachable_flow(self) -> None:
        graph = parse_graph(
            "Valve AA has flow rate=0; tunnel leads to valve BB\n"
            "Valve BB has flow rate=0; tunnel leads to valve AA\n"
            "Valve CC has flow rate=50; tunnel leads to valve CC"
        )
        assert max_flow(graph, SearchConfig()) == 0

    def test_line(self, line_graph: Graph) -> None:
        assert max_flow(line_graph, SearchConfig(max_turns=5)) == 35

    def test_line_two_agents(self, line_graph: Graph) -> None:
        config = SearchConfig.dual(max_turns=5, activation_delay=0)
        assert max_flow(line_graph, config) == 40

    def test_delay_eats_budget(self, line_graph: Graph) -> None:
        assert max_flow(line_graph, SearchConfig.dual(max_turns=4)) == 0


class TestMatchesExhaustive:
    @pytest.mark.parametrize("seed", range(6))
    @pytest.mark.parametrize("turns", [6, 11])
    def test_single_agent(self, make_network, seed: int, turns: int) -> None:
        graph = make_network(seed, 4 + seed % 3)
        config = SearchConfig.single(max_turns=turns)
        assert max_flow(graph, config) == exhaustive_max_flow(graph, config)

    @pytest.mark.parametrize("seed", range(6))
    @pytest.mark.parametrize("delay", [0, 2])
    def test_two_agents(self, make_network, seed: int, delay: int) -> None:
        graph = make_network(seed, 4 + seed % 3)
        config = SearchConfig.dual(max_turns=8, activation_delay=delay)
        assert max_flow(graph, config) == exhaustive_max_flow(graph, config)

    @pytest.mark.parametrize("seed", range(3))
    def test_without_bound(self, make_network, seed: int) -> None:
        graph = make_network(seed, 6)
        config = SearchConfig.dual(max_turns=8, activation_delay=0, bound=False)
        assert max_flow(graph, config) == exhaustive_max_flow(graph, config)

    def test_line(self, line_graph: Graph) -> None:
        for turns in range(0, 9):
            config = SearchConfig(max_turns=turns)
            assert max_flow(line_graph, config) == exhaustive_max_flow(line_graph, config)
