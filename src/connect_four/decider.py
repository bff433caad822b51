"""Turning a team's votes into the column that gets played."""

import random
from typing import Mapping, Optional, Protocol, Sequence

from src.connect_four.cell import COLUMNS


class TurnDecider(Protocol):
    def tally_votes(self, votes: Mapping[str, int], valid_columns: Sequence[int]) -> list[int]: ...

    def decide_column(self, counts: Sequence[int], valid_columns: Sequence[int]) -> int: ...


class MajorityTurnDecider:
    """
    Majority vote, ties broken at random.
    Pass a seeded `random.Random` to get reproducible decisions.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.Random()

    def tally_votes(self, votes: Mapping[str, int], valid_columns: Sequence[int]) -> list[int]:
        """Count votes per column. Votes for columns that are not playable are dropped (not moved elsewhere)."""
        allowed = set(valid_columns)
        counts = [0] * COLUMNS
        for column in votes.values():
            if column in allowed and 0 <= column < COLUMNS:
                counts[column] += 1
        return counts

    def decide_column(self, counts: Sequence[int], valid_columns: Sequence[int]) -> int:
        if not valid_columns:
            raise ValueError("Cannot decide a column: no playable columns left.")

        if sum(counts) == 0:
            return self._pick(valid_columns)

        max_votes = max(self._count(counts, column) for column in valid_columns)
        if max_votes == 0:
            # only votes for unplayable columns: the game still has to move on
            return self._pick(valid_columns)

        tied_columns = [column for column in valid_columns if self._count(counts, column) == max_votes]
        return self._pick(tied_columns)

    def _pick(self, columns: Sequence[int]) -> int:
        return columns[self.rng.randrange(len(columns))]

    @staticmethod
    def _count(counts: Sequence[int], column: int) -> int:
        return counts[column] if 0 <= column < len(counts) else 0
