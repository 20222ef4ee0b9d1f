from typing import Hashable, Optional, Sequence

from valve_search.config import Dominance

Key = Hashable


def dominance_key(positions: Sequence[int], opened: int, dominance: Dominance) -> Key:
    """Folds a state's agents and open valves into a visited map key."""
    if dominance is Dominance.POSITIONAL:
        return tuple(positions)
    # agents are interchangeable, so their order does not matter
    return tuple(sorted(positions)), opened


class VisitedMap:
    """Best flow seen so far for each key, tracked separately per turn.

    Shared by every branch of a search; stored scores only ever go up.
    """

    def __init__(self) -> None:
        self._best: dict[Key, dict[int, int]] = {}

    def __len__(self) -> int:
        return sum(len(turns) for turns in self._best.values())

    def __contains__(self, key: Key) -> bool:
        return key in self._best

    def get(self, key: Key, turn: int) -> Optional[int]:
        turns = self._best.get(key)
        if turns is None:
            return None
        return turns.get(turn)

    def upsert_if_better(self, key: Key, turn: int, score: int) -> Optional[int]:
        """Records `score` if it beats what was seen for `key` on `turn`.

        Returns `score` for a first visit, the replaced value for an
        improvement, and None when an equal or better score was already
        recorded (the caller should abandon that branch).
        """
        turns = self._best.setdefault(key, {})
        previous = turns.get(turn)
        if previous is None:
            turns[turn] = score
            return score
        if previous >= score:
            return None
        turns[turn] = score
        return previous

    def _improvements(
        self, keys: Sequence[Key], turn: int, score: int
    ) -> list[tuple[Key, int]]:
        results = []
        for key in keys:
            previous = self.get(key, turn)
            if previous is None:
                # never been here on this turn
                results.append((key, score))
            elif score > previous:
                results.append((key, score - previous))
        return results

    def get_next_best_nodes(
        self, keys: Sequence[Key], turn: int, score: int
    ) -> list[Key]:
        """Keys where `score` would improve on the record, biggest gain first.

        Among equal gains the order of `keys` is kept.
        """
        improvements = self._improvements(keys, turn, score)
        improvements.sort(key=lambda item: -item[1])
        return [key for key, _ in improvements]

    def get_best_next_node(
        self, keys: Sequence[Key], turn: int, score: int
    ) -> Optional[Key]:
        best = None
        best_gain = -1
        for key, gain in self._improvements(keys, turn, score):
            if gain > best_gain:
                best, best_gain = key, gain
        return best
