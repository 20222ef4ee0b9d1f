from dataclasses import dataclass
from enum import Enum

MAX_TIME = 30
# Turns spent before a second agent can act; both agents wait it out.
ACTIVATION_DELAY = 4
START_VALVE = "AA"
# The search recurses once per agent action, so this bounds the stack depth.
MAX_SEARCH_DEPTH = 800


class Dominance(Enum):
    """How search states are folded together in the visited map."""

    # Sorted agent positions plus the open-valve mask. Folded states have the
    # same future, so dropping the worse one never loses the optimum.
    EXACT = "exact"
    # Agent positions only. Much smaller map, but may discard the optimum.
    POSITIONAL = "positional"


@dataclass(frozen=True)
class SearchConfig:
    max_turns: int = MAX_TIME
    agents: int = 1
    activation_delay: int = ACTIVATION_DELAY
    start: str = START_VALVE
    dominance: Dominance = Dominance.EXACT
    bound: bool = True

    def __post_init__(self) -> None:
        if self.max_turns < 0:
            raise ValueError("max_turns must be >= 0")
        if self.agents < 1:
            raise ValueError("agents must be >= 1")
        if self.activation_delay < 0:
            raise ValueError("activation_delay must be >= 0")
        if self.max_turns * self.agents > MAX_SEARCH_DEPTH:
            raise ValueError(
                f"max_turns * agents must be <= {MAX_SEARCH_DEPTH}, "
                f"got {self.max_turns} * {self.agents}"
            )

    @property
    def spawn_ticks(self) -> int:
        """Forced ticks before the first round; only paid when sharing the work."""
        return self.activation_delay if self.agents > 1 else 0

    @classmethod
    def single(cls, **overrides) -> "SearchConfig":
        return cls(agents=1, **overrides)

    @classmethod
    def dual(cls, **overrides) -> "SearchConfig":
        return cls(agents=2, **overrides)
