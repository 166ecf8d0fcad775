"""
Loto Bonheur - Number Selector
==============================

Turns a ScoreMap into exactly `count` distinct numbers.

Policies:
- top: highest scores first, ties broken by the smaller number
- diverse: like top, but skips candidates closer than `min_distance` to an
  already selected number, completing from the plain ranking if needed
- balanced: round-robin over the color bands within the best `pool_size`
  candidates, then fill from the pool and finally the full ranking
"""

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from lotobonheur.algorithms.color_groups import GROUP_KEYS, get_color_group
from lotobonheur.algorithms.models import MAX_NUMBER, NUMBERS_PER_DRAW

POLICY_TOP = "top"
POLICY_DIVERSE = "diverse"
POLICY_BALANCED = "balanced"
POLICIES = (POLICY_TOP, POLICY_DIVERSE, POLICY_BALANCED)


def rank_numbers(score_map: np.ndarray) -> List[int]:
    """All numbers 1..90 ordered by descending score, ascending number on ties."""
    scores = np.nan_to_num(np.asarray(score_map, dtype=float), nan=0.0, posinf=0.0, neginf=0.0)
    if scores.shape != (MAX_NUMBER,):
        raise ValueError(f"ScoreMap must have shape ({MAX_NUMBER},), got {scores.shape}")
    order = np.argsort(-scores, kind='stable')
    return [int(i) + 1 for i in order]


def select_top(score_map: np.ndarray, count: int = NUMBERS_PER_DRAW) -> List[int]:
    return rank_numbers(score_map)[:count]


def select_diverse(score_map: np.ndarray, count: int = NUMBERS_PER_DRAW, min_distance: int = 3) -> List[int]:
    ranking = rank_numbers(score_map)
    selected: List[int] = []
    for candidate in ranking:
        if len(selected) >= count:
            break
        if all(abs(candidate - chosen) >= min_distance for chosen in selected):
            selected.append(candidate)

    if len(selected) < count:
        # Spacing constraint cannot be met; fall back to score order
        for candidate in ranking:
            if len(selected) >= count:
                break
            if candidate not in selected:
                selected.append(candidate)
    return selected


def select_balanced(score_map: np.ndarray, count: int = NUMBERS_PER_DRAW, pool_size: int = 15) -> List[int]:
    ranking = rank_numbers(score_map)
    pool = ranking[:max(pool_size, count)]

    by_group: Dict[str, List[int]] = {key: [] for key in GROUP_KEYS}
    for number in pool:
        by_group[get_color_group(number)].append(number)

    selected: List[int] = []
    while len(selected) < count and any(by_group.values()):
        for key in GROUP_KEYS:
            if len(selected) >= count:
                break
            if by_group[key]:
                selected.append(by_group[key].pop(0))

    for candidate in ranking:
        if len(selected) >= count:
            break
        if candidate not in selected:
            selected.append(candidate)
    return selected


@dataclass(frozen=True)
class Selector:
    """Selection policy plus its parameters"""
    policy: str = POLICY_TOP
    count: int = NUMBERS_PER_DRAW
    min_distance: int = 3
    pool_size: int = 15

    def __post_init__(self):
        if self.policy not in POLICIES:
            raise ValueError(f"Unknown selection policy: {self.policy}")
        if not 1 <= self.count <= MAX_NUMBER:
            raise ValueError(f"Selection count must be in [1, {MAX_NUMBER}]")

    def select(self, score_map: np.ndarray) -> List[int]:
        if self.policy == POLICY_DIVERSE:
            return select_diverse(score_map, self.count, self.min_distance)
        if self.policy == POLICY_BALANCED:
            return select_balanced(score_map, self.count, self.pool_size)
        return select_top(score_map, self.count)


def select_numbers(score_map: np.ndarray, count: int = NUMBERS_PER_DRAW, policy: str = POLICY_TOP,
                   min_distance: int = 3, pool_size: int = 15) -> List[int]:
    return Selector(policy=policy, count=count, min_distance=min_distance, pool_size=pool_size).select(score_map)
