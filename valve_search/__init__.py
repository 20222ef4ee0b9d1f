from valve_search.config import Dominance, SearchConfig
from valve_search.errors import GraphError, IllegalActionError, ValveSearchError
from valve_search.exhaustive import exhaustive_max_flow
from valve_search.graph import Graph, Valve, parse_file, parse_graph
from valve_search.search import SearchResult, Searcher, max_flow, solve
from valve_search.state import Action, Move, Open, SimState, Stay
from valve_search.visited import VisitedMap

__all__ = [
    "Action",
    "Dominance",
    "Graph",
    "GraphError",
    "IllegalActionError",
    "Move",
    "Open",
    "SearchConfig",
    "SearchResult",
    "Searcher",
    "SimState",
    "Stay",
    "Valve",
    "ValveSearchError",
    "VisitedMap",
    "exhaustive_max_flow",
    "max_flow",
    "parse_file",
    "parse_graph",
    "solve",
]
