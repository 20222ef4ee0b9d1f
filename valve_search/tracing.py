import logging
from typing import Optional

from tqdm import tqdm

from valve_search.state import Action, SimState

logger = logging.getLogger(__name__)


class Tracer:
    """Receives search events. The base class ignores all of them."""

    def tick(self, state: SimState) -> None:
        pass

    def prune(self, state: SimState, reason: str) -> None:
        pass

    def action(self, state: SimState, action: Action) -> None:
        pass

    def best(self, state: SimState) -> None:
        pass

    def close(self) -> None:
        pass


class LoggingTracer(Tracer):
    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def tick(self, state: SimState) -> None:
        self.log.debug(
            "turn %d: flow=%d rate=%d at %s",
            state.turn,
            state.flow,
            state.rate,
            state.positions,
        )

    def prune(self, state: SimState, reason: str) -> None:
        self.log.debug("turn %d: discarding path (%s)", state.turn, reason)

    def action(self, state: SimState, action: Action) -> None:
        self.log.debug("turn %d: %s", state.turn, action)

    def best(self, state: SimState) -> None:
        self.log.debug("new best with flow=%d", state.flow)


class ProgressTracer(Tracer):
    """Shows explored rounds and the best flow so far on a tqdm bar."""

    def __init__(self, desc: str = "search", **tqdm_kwargs):
        self.bar = tqdm(desc=desc, unit="round", **tqdm_kwargs)
        self.pruned = 0

    def tick(self, state: SimState) -> None:
        self.bar.update(1)

    def prune(self, state: SimState, reason: str) -> None:
        self.pruned += 1

    def best(self, state: SimState) -> None:
        self.bar.set_postfix(best=state.flow, pruned=self.pruned)

    def close(self) -> None:
        self.bar.close()
