import argparse
import logging
import sys
from typing import Optional, Sequence

from valve_search.config import (
    ACTIVATION_DELAY,
    MAX_TIME,
    START_VALVE,
    Dominance,
    SearchConfig,
)
from valve_search.errors import ValveSearchError
from valve_search.exhaustive import exhaustive_max_flow
from valve_search.graph import Graph, parse_file
from valve_search.search import Searcher
from valve_search.tracing import LoggingTracer, ProgressTracer, Tracer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="valve_search",
        description="Find the most pressure a valve network can release in time",
    )
    parser.add_argument("input", help="puzzle input, one valve per line")
    parser.add_argument(
        "--agents",
        type=int,
        default=None,
        help="number of agents (default: solve for 1 and for 2)",
    )
    parser.add_argument("--turns", type=int, default=MAX_TIME)
    parser.add_argument(
        "--delay",
        type=int,
        default=ACTIVATION_DELAY,
        help="turns spent before acting when there is more than one agent",
    )
    parser.add_argument("--start", default=START_VALVE)
    parser.add_argument(
        "--dominance",
        choices=[d.value for d in Dominance],
        default=Dominance.EXACT.value,
    )
    parser.add_argument("--bound", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument(
        "--exhaustive",
        action="store_true",
        help="use the unpruned reference solver (small graphs only)",
    )
    parser.add_argument("--progress", action="store_true")
    parser.add_argument("--show-actions", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def run(graph: Graph, config: SearchConfig, args: argparse.Namespace) -> int:
    if args.exhaustive:
        return exhaustive_max_flow(graph, config)

    tracer: Tracer
    if args.progress:
        tracer = ProgressTracer(desc=f"{config.agents} agent(s)", leave=False)
    elif args.verbose:
        tracer = LoggingTracer()
    else:
        tracer = Tracer()
    try:
        result = Searcher(graph, config, tracer).solve()
    finally:
        tracer.close()

    logger.info(
        "%d agent(s): explored %d rounds, pruned %d",
        config.agents,
        result.explored,
        result.pruned,
    )
    if args.show_actions:
        for turn, action in result.steps:
            print(f"  turn {turn}: {action}")
    return result.max_flow


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        graph = parse_file(args.input, start=args.start)
        logger.debug("%s", graph)
        agent_counts = [args.agents] if args.agents is not None else [1, 2]
        for part, agents in enumerate(agent_counts, start=1):
            config = SearchConfig(
                max_turns=args.turns,
                agents=agents,
                activation_delay=args.delay,
                start=args.start,
                dominance=Dominance(args.dominance),
                bound=args.bound,
            )
            flow = run(graph, config, args)
            label = f"pt{part}" if args.agents is None else f"{agents} agent(s)"
            print(f"{label}: max flow found: {flow}")
    except (ValveSearchError, ValueError, OSError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
