"""
Tests for number selection policies
"""

import numpy as np
import pytest

from lotobonheur.algorithms.models import empty_score_map
from lotobonheur.algorithms.selector import (
    Selector,
    rank_numbers,
    select_balanced,
    select_diverse,
    select_numbers,
    select_top,
)


def _scores(values):
    """ScoreMap from a {number: score} dict"""
    scores = empty_score_map()
    for number, value in values.items():
        scores[number - 1] = value
    return scores


class TestRanking:

    def test_ties_go_to_smaller_number(self):
        """An all-zero map ranks 1..90 in order"""
        assert rank_numbers(empty_score_map()) == list(range(1, 91))

    def test_descending_scores(self):
        scores = _scores({40: 3.0, 7: 5.0, 88: 4.0})
        assert rank_numbers(scores)[:4] == [7, 88, 40, 1]

    def test_nan_counts_as_zero(self):
        scores = _scores({12: 2.0})
        scores[0] = np.nan
        assert rank_numbers(scores)[:2] == [12, 1]

    def test_wrong_shape_rejected(self):
        with pytest.raises(ValueError):
            rank_numbers(np.zeros(10))


class TestPolicies:

    def test_top(self):
        scores = _scores({n: 100 - n for n in range(50, 60)})
        assert select_top(scores) == [50, 51, 52, 53, 54]

    def test_diverse_spacing(self):
        """Candidates closer than three to a chosen number are skipped"""
        scores = _scores({n: 100 - n for n in range(10, 21)})
        assert select_diverse(scores) == [10, 13, 16, 19, 1]

    def test_diverse_completes_when_spacing_impossible(self):
        scores = _scores({n: 100 - n for n in range(1, 91)})
        selected = select_diverse(scores, count=40, min_distance=3)
        assert len(selected) == 40
        assert len(set(selected)) == 40

    def test_balanced_round_robin(self):
        """Pool 1..15 spans two bands, picked alternately"""
        scores = _scores({n: 100 - n for n in range(1, 16)})
        assert select_balanced(scores) == [1, 10, 2, 11, 3]

    def test_balanced_fills_from_ranking(self):
        scores = _scores({n: 100 - n for n in range(1, 4)})
        selected = select_balanced(scores, pool_size=3)
        assert selected[:3] == [1, 2, 3]
        assert len(set(selected)) == 5


class TestSelector:

    @pytest.mark.parametrize("policy", ["top", "diverse", "balanced"])
    def test_always_five_distinct_in_range(self, policy):
        rng = np.random.default_rng(5)
        scores = rng.random(90)
        numbers = select_numbers(scores, policy=policy)
        assert len(numbers) == 5
        assert len(set(numbers)) == 5
        assert all(1 <= n <= 90 for n in numbers)

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            Selector(policy="lucky")

    def test_invalid_count(self):
        with pytest.raises(ValueError):
            Selector(count=0)
