"""
Loto Bonheur - Feature Extractors
=================================

Per-number scoring functions over a newest-first window of draws.

Every extractor returns a ScoreMap: a (90,) float array where index
``n - 1`` holds the score of number ``n``. Extractors are pure, never raise
on an empty window and always return non-negative scores.

Several extractors carry the names of the statistical or ML techniques they
were modelled after ("LSTM", "Bayes", "ANOVA"). They are fixed-weight
heuristics, not trained models; the functions are named after what they
actually compute.

Components:
- Frequency family: weighted_frequency, simple_frequency, recency, ensemble_blend
- Pattern family: clustering, sequential_patterns, cyclical_behavior
- Sequence family: recurrence_memory, positional_features
- Ratio family: frequency_ratio
- Variance family: weekly_variance, time_regression, z_score_stability, pair_correlation
"""

import math
from typing import Sequence, Tuple

import numpy as np

from lotobonheur.algorithms.models import DrawRecord, MAX_NUMBER, empty_score_map

CYCLE_LENGTHS: Tuple[int, ...] = (7, 14, 21)


def _presence_matrix(draws: Sequence[DrawRecord]) -> np.ndarray:
    """(len(draws), 90) matrix with 1.0 where a number appears in a draw."""
    matrix = np.zeros((len(draws), MAX_NUMBER), dtype=float)
    for row, draw in enumerate(draws):
        for num in draw.winning_numbers:
            matrix[row, num - 1] = 1.0
    return matrix


def weighted_frequency(draws: Sequence[DrawRecord], decay: float = 0.05) -> np.ndarray:
    """
    Exponentially decayed occurrence count.

    Formula: score[n] += exp(-index * decay) for each draw containing n,
    where index 0 is the most recent draw.
    """
    scores = empty_score_map()
    for index, draw in enumerate(draws):
        weight = math.exp(-index * decay)
        for num in draw.winning_numbers:
            scores[num - 1] += weight
    return scores


def seasonal_adjustment(day_of_week: int, weight: float = 0.1) -> np.ndarray:
    """
    Day-of-week bias, identical for all numbers.

    ``sin(day_of_week * pi / 7) * weight`` with day_of_week 0 = Sunday.
    The bonus is the same for every number, so it never changes the ranking
    of a ScoreMap; it only shifts confidence ratios computed against the max.
    """
    bonus = max(0.0, math.sin(day_of_week * math.pi / 7) * weight)
    return np.full(MAX_NUMBER, bonus, dtype=float)


def simple_frequency(draws: Sequence[DrawRecord]) -> np.ndarray:
    scores = empty_score_map()
    for draw in draws:
        for num in draw.winning_numbers:
            scores[num - 1] += 1
    return scores


def recency(draws: Sequence[DrawRecord], decay: float = 0.1) -> np.ndarray:
    return weighted_frequency(draws, decay=decay)


def trend_delta(draws: Sequence[DrawRecord], recent: int = 20) -> np.ndarray:
    """
    Signed frequency change: count in the `recent` newest draws minus the
    count in the `recent` draws before them.

    Not a ScoreMap on its own (values can be negative); only consumed by
    ensemble_blend, whose frequency term dominates it.
    """
    return simple_frequency(draws[:recent]) - simple_frequency(draws[recent:recent * 2])


def ensemble_blend(draws: Sequence[DrawRecord]) -> np.ndarray:
    """0.4 * frequency + 0.3 * trend + 0.3 * recency"""
    blended = simple_frequency(draws) * 0.4 + trend_delta(draws) * 0.3 + recency(draws) * 0.3
    return np.maximum(blended, 0.0)


def clustering(draws: Sequence[DrawRecord], k: float = 0.1) -> np.ndarray:
    """
    Proximity of co-drawn numbers.

    For each ordered pair (a, b) of distinct numbers drawn together,
    score[a] += 1 / (1 + |a - b| * k).
    """
    scores = empty_score_map()
    for draw in draws:
        for num in draw.winning_numbers:
            for other in draw.winning_numbers:
                if num != other:
                    scores[num - 1] += 1.0 / (1.0 + abs(num - other) * k)
    return scores


def sequential_patterns(draws: Sequence[DrawRecord], adjacency_bonus: float = 0.5,
                        repeat_bonus: float = 0.3) -> np.ndarray:
    """
    Adjacency and repetition between consecutive draws.

    For each draw after the first, a number earns `adjacency_bonus` when n-1
    or n+1 was in the neighbouring draw and `repeat_bonus` when n itself was.
    """
    scores = empty_score_map()
    for i in range(1, len(draws)):
        previous = set(draws[i - 1].winning_numbers)
        for num in draws[i].winning_numbers:
            if (num - 1) in previous or (num + 1) in previous:
                scores[num - 1] += adjacency_bonus
            if num in previous:
                scores[num - 1] += repeat_bonus
    return scores


def cyclical_behavior(draws: Sequence[DrawRecord], cycles: Sequence[int] = CYCLE_LENGTHS) -> np.ndarray:
    """score[n] += 1 / L whenever n recurs exactly L draws apart."""
    scores = empty_score_map()
    for cycle in cycles:
        for i in range(cycle, len(draws)):
            earlier = set(draws[i - cycle].winning_numbers)
            for num in draws[i].winning_numbers:
                if num in earlier:
                    scores[num - 1] += 1.0 / cycle
    return scores


def recurrence_memory(draws: Sequence[DrawRecord], memory_decay: float = 0.01,
                      influence_weight: float = 0.1) -> np.ndarray:
    """
    Weighted recency sum with neighbour influence (the "LSTM" heuristic).

    For draw i >= 1: score[n] += exp(-i * memory_decay) for each of its
    numbers, plus influence_weight / (1 + |n - p|) for every number p of
    draw i - 1.
    """
    scores = empty_score_map()
    for i in range(1, len(draws)):
        memory = math.exp(-i * memory_decay)
        previous = draws[i - 1].winning_numbers
        for num in draws[i].winning_numbers:
            scores[num - 1] += memory
            for prev in previous:
                scores[num - 1] += influence_weight / (1.0 + abs(num - prev))
    return scores


def positional_features(draws: Sequence[DrawRecord]) -> np.ndarray:
    """
    Draw-shape features (the "deep features" heuristic).

    Per occurrence: position * 0.1 + (draw sum / 225) * 0.2 + draw std * 0.05,
    where position is the index of the number in the published order.
    """
    scores = empty_score_map()
    for draw in draws:
        numbers = np.array(draw.winning_numbers, dtype=float)
        shape_bonus = (numbers.sum() / 225.0) * 0.2 + numbers.std() * 0.05
        for position, num in enumerate(draw.winning_numbers):
            scores[num - 1] += position * 0.1 + shape_bonus
    return scores


def frequency_ratio(draws: Sequence[DrawRecord], prior: float = 1.0 / MAX_NUMBER,
                    evidence_scale: float = 1000.0) -> np.ndarray:
    """
    Frequency scaled by constants (the "Bayesian" heuristic).

    prior * likelihood / evidence where likelihood = count / total count and
    evidence = len(draws) / evidence_scale. The constants do not depend on
    the number, so the ranking equals the raw frequency ranking.
    """
    counts = simple_frequency(draws)
    total = counts.sum()
    if total == 0 or not draws:
        return empty_score_map()
    likelihood = counts / total
    evidence = len(draws) / evidence_scale
    return prior * likelihood / evidence


def weekly_variance(draws: Sequence[DrawRecord], bucket_size: int = 7) -> np.ndarray:
    """
    Closeness to bucket means (the "ANOVA" heuristic).

    Draws are split into consecutive buckets of `bucket_size`; every
    occurrence adds 1 / (1 + (n - bucket_mean)^2 * 0.01).
    """
    scores = empty_score_map()
    for start in range(0, len(draws), bucket_size):
        bucket_numbers = [num for draw in draws[start:start + bucket_size] for num in draw.winning_numbers]
        if not bucket_numbers:
            continue
        mean = sum(bucket_numbers) / len(bucket_numbers)
        for num in bucket_numbers:
            scores[num - 1] += 1.0 / (1.0 + (num - mean) ** 2 * 0.01)
    return scores


def time_regression(draws: Sequence[DrawRecord], period: int = 52) -> np.ndarray:
    """
    Time-decay plus yearly seasonality (the "regression" heuristic).

    Per occurrence at index i: 0.6 / (1 + i * 0.01) + 0.4 * sin(2 * pi * i / period).
    The sine term can drive a total negative; totals are floored at 0.
    """
    scores = empty_score_map()
    for index, draw in enumerate(draws):
        time_weight = 1.0 / (1.0 + index * 0.01)
        season_weight = math.sin(index * 2 * math.pi / period)
        for num in draw.winning_numbers:
            scores[num - 1] += time_weight * 0.6 + season_weight * 0.4
    return np.maximum(scores, 0.0)


def z_score_stability(draws: Sequence[DrawRecord]) -> np.ndarray:
    """
    1 / (1 + |z|) with z = (freq - mean) / sqrt(mean).

    Numbers whose frequency sits closest to the expected count score highest.
    """
    frequencies = simple_frequency(draws)
    mean = frequencies.sum() / MAX_NUMBER
    if mean <= 0:
        return empty_score_map()
    z = (frequencies - mean) / math.sqrt(mean)
    return 1.0 / (1.0 + np.abs(z))


def pair_correlation(draws: Sequence[DrawRecord]) -> np.ndarray:
    """
    Mean absolute phi coefficient of each number against the 89 others.

    Pairs whose coefficient is undefined (a number never or always drawn)
    contribute 0.
    """
    if not draws:
        return empty_score_map()

    presence = _presence_matrix(draws)
    n = float(len(draws))
    present = presence.sum(axis=0)
    both = presence.T @ presence

    numerator = both * n - np.outer(present, present)
    spread = n * present - present * present
    denominator = np.sqrt(np.clip(np.outer(spread, spread), 0.0, None))

    with np.errstate(divide='ignore', invalid='ignore'):
        correlation = np.where(denominator > 0, numerator / denominator, 0.0)
    correlation = np.nan_to_num(correlation, nan=0.0, posinf=0.0, neginf=0.0)
    np.fill_diagonal(correlation, 0.0)

    return np.abs(correlation).sum(axis=1) / (MAX_NUMBER - 1)
