"""Unit tests for /src/connect_four/decider.py"""

import random
from collections import Counter
from unittest.mock import Mock

import pytest

from src.connect_four.decider import MajorityTurnDecider

ALL_COLUMNS = list(range(7))


# -- TALLY --
def test_tally_counts_votes_per_column(decider: MajorityTurnDecider) -> None:
    votes = {"p1": 3, "p2": 3, "p3": 0, "p4": 6}
    assert decider.tally_votes(votes, ALL_COLUMNS) == [1, 0, 0, 2, 0, 0, 1]


def test_tally_of_no_votes(decider: MajorityTurnDecider) -> None:
    assert decider.tally_votes({}, ALL_COLUMNS) == [0] * 7


def test_tally_drops_votes_for_unplayable_columns(decider: MajorityTurnDecider) -> None:
    """Votes for full columns are not moved to another column, they just don't count."""
    votes = {"p1": 2, "p2": 2, "p3": 4}
    assert decider.tally_votes(votes, [0, 1, 3, 4, 5, 6]) == [0, 0, 0, 0, 1, 0, 0]


@pytest.mark.parametrize("column", [-1, 7, 42, -7])
def test_tally_drops_out_of_range_votes(decider: MajorityTurnDecider, column: int) -> None:
    votes = {"p1": column, "p2": 1}
    assert decider.tally_votes(votes, ALL_COLUMNS + [column]) == [0, 1, 0, 0, 0, 0, 0]


# -- DECISION --
def test_clear_majority_wins(decider: MajorityTurnDecider) -> None:
    counts = [0, 1, 0, 3, 0, 2, 0]
    for _ in range(20):
        assert decider.decide_column(counts, ALL_COLUMNS) == 3


def test_no_votes_picks_a_playable_column(decider: MajorityTurnDecider) -> None:
    valid = [1, 4, 6]
    picks = {decider.decide_column([0] * 7, valid) for _ in range(200)}
    assert picks <= set(valid)
    assert picks == set(valid)


def test_votes_only_for_unplayable_columns_picks_random_playable(decider: MajorityTurnDecider) -> None:
    counts = [0, 0, 5, 0, 0, 0, 0]
    valid = [0, 6]
    picks = {decider.decide_column(counts, valid) for _ in range(100)}
    assert picks == {0, 6}


def test_tie_is_broken_among_tied_columns_only(decider: MajorityTurnDecider) -> None:
    counts = [2, 0, 2, 1, 0, 0, 2]
    picks = Counter(decider.decide_column(counts, ALL_COLUMNS) for _ in range(600))
    assert set(picks) == {0, 2, 6}
    # no column is (heavily) favoured
    assert all(count > 100 for count in picks.values())


def test_max_is_taken_over_playable_columns_only(decider: MajorityTurnDecider) -> None:
    counts = [0, 1, 4, 0, 0, 0, 0]
    assert decider.decide_column(counts, [0, 1, 3, 4, 5, 6]) == 1


def test_tie_break_uses_injected_randomness() -> None:
    rng = Mock(spec=random.Random)
    rng.randrange.return_value = 1
    decider = MajorityTurnDecider(rng)

    assert decider.decide_column([1, 0, 1, 0, 1, 0, 0], ALL_COLUMNS) == 2
    rng.randrange.assert_called_once_with(3)


def test_same_seed_same_decisions() -> None:
    counts = [1, 1, 1, 1, 1, 1, 1]
    first = MajorityTurnDecider(random.Random(7))
    second = MajorityTurnDecider(random.Random(7))
    assert [first.decide_column(counts, ALL_COLUMNS) for _ in range(10)] == [
        second.decide_column(counts, ALL_COLUMNS) for _ in range(10)
    ]


def test_no_playable_columns(decider: MajorityTurnDecider) -> None:
    with pytest.raises(ValueError):
        decider.decide_column([0] * 7, [])
