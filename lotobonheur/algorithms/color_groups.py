"""
Loto Bonheur - Color Group Analysis
===================================

The 90 numbers are printed on the ticket in nine colored bands. This module
defines the bands and analyzes how draws distribute over them.

Components:
- ColorGroup / COLOR_GROUPS: the nine fixed bands
- get_color_group: number -> band key
- ColorGroupAnalyzer: distribution, momentum, co-occurrence, trends, balance
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from lotobonheur.algorithms.models import DrawRecord


@dataclass(frozen=True)
class ColorGroup:
    key: str
    name: str
    low: int
    high: int
    color: str

    @property
    def numbers(self) -> List[int]:
        return list(range(self.low, self.high + 1))

    def contains(self, number: int) -> bool:
        return self.low <= number <= self.high


COLOR_GROUPS: Dict[str, ColorGroup] = {
    group.key: group for group in (
        ColorGroup('gris-clair', 'Gris Clair', 1, 9, '#9ca3af'),
        ColorGroup('bleu', 'Bleu', 10, 19, '#3b82f6'),
        ColorGroup('vert', 'Vert', 20, 29, '#10b981'),
        ColorGroup('indigo', 'Indigo', 30, 39, '#6366f1'),
        ColorGroup('jaune', 'Jaune', 40, 49, '#f59e0b'),
        ColorGroup('rose', 'Rose', 50, 59, '#ec4899'),
        ColorGroup('orange', 'Orange', 60, 69, '#f97316'),
        ColorGroup('gris', 'Gris', 70, 79, '#6b7280'),
        ColorGroup('rouge', 'Rouge', 80, 90, '#ef4444'),
    )
}

GROUP_KEYS: List[str] = list(COLOR_GROUPS.keys())


def get_color_group(number: int) -> Optional[str]:
    """Return the band key of `number`, or None when it is outside 1..90."""
    for key, group in COLOR_GROUPS.items():
        if group.contains(number):
            return key
    return None


def group_distribution(numbers: Sequence[int]) -> Dict[str, int]:
    """Count of `numbers` per band, only listing bands that occur."""
    counts: Dict[str, int] = {}
    for number in numbers:
        key = get_color_group(number)
        if key is not None:
            counts[key] = counts.get(key, 0) + 1
    return counts


@dataclass
class ColorGroupAnalysis:
    """Container for the color band analysis of a window of draws"""
    distribution: Dict[str, int]
    momentum: Dict[str, float]
    cycles: Dict[str, List[int]]
    correlations: Dict[str, Dict[str, int]]
    trends: Dict[str, str]
    hot_groups: List[str]
    cold_groups: List[str]
    balance_score: float
    total_numbers: int = 0
    draws_analyzed: int = 0
    expected_per_group: float = field(default=0.0)

    def to_dict(self) -> Dict:
        return {
            'distribution': self.distribution,
            'momentum': {k: round(v, 4) for k, v in self.momentum.items()},
            'cycles': self.cycles,
            'correlations': self.correlations,
            'trends': self.trends,
            'hot_groups': self.hot_groups,
            'cold_groups': self.cold_groups,
            'balance_score': round(self.balance_score, 2),
            'draws_analyzed': self.draws_analyzed,
        }


class ColorGroupAnalyzer:
    """
    Color band statistics over a newest-first window.

    - momentum: sum of exp(-index * decay) over draws where the band appears
    - trends: band count in the `trend_window` newest draws vs the window
      before it; above x1.2 is rising, below x0.8 is falling
    - hot/cold: top/bottom 3 bands by momentum
    - balance score: max(0, 100 - sqrt(variance of band counts))
    """

    def __init__(self, momentum_decay: float = 0.05, trend_window: int = 20):
        self.momentum_decay = momentum_decay
        self.trend_window = trend_window
        logger.debug(f"ColorGroupAnalyzer initialized (decay={momentum_decay}, trend_window={trend_window})")

    def analyze(self, draws: Sequence[DrawRecord]) -> ColorGroupAnalysis:
        distribution = {key: 0 for key in GROUP_KEYS}
        momentum = {key: 0.0 for key in GROUP_KEYS}
        cycles: Dict[str, List[int]] = {key: [] for key in GROUP_KEYS}
        correlations = {key: {other: 0 for other in GROUP_KEYS} for key in GROUP_KEYS}

        if not draws:
            logger.warning("No draws available for color group analysis")

        for index, draw in enumerate(draws):
            present = []
            for number in draw.winning_numbers:
                key = get_color_group(number)
                distribution[key] += 1
                if key not in present:
                    present.append(key)

            for first in present:
                for second in present:
                    if first != second:
                        correlations[first][second] += 1

            weight = math.exp(-index * self.momentum_decay)
            for key in present:
                momentum[key] += weight
                cycles[key].append(index)

        trends = self._calculate_trends(draws)

        # Stable sort keeps band order for equal momentum
        by_momentum = sorted(GROUP_KEYS, key=lambda k: momentum[k], reverse=True)
        hot_groups = by_momentum[:3]
        cold_groups = by_momentum[-3:]

        total_numbers = sum(len(d.winning_numbers) for d in draws)
        expected = total_numbers / len(GROUP_KEYS)
        variance = float(np.mean([(count - expected) ** 2 for count in distribution.values()]))
        balance_score = max(0.0, 100.0 - math.sqrt(variance))

        return ColorGroupAnalysis(
            distribution=distribution,
            momentum=momentum,
            cycles=cycles,
            correlations=correlations,
            trends=trends,
            hot_groups=hot_groups,
            cold_groups=cold_groups,
            balance_score=balance_score,
            total_numbers=total_numbers,
            draws_analyzed=len(draws),
            expected_per_group=expected,
        )

    def _calculate_trends(self, draws: Sequence[DrawRecord]) -> Dict[str, str]:
        recent = draws[:self.trend_window]
        older = draws[self.trend_window:self.trend_window * 2]
        recent_counts = group_distribution([n for d in recent for n in d.winning_numbers])
        older_counts = group_distribution([n for d in older for n in d.winning_numbers])

        trends = {}
        for key in GROUP_KEYS:
            recent_count = recent_counts.get(key, 0)
            older_count = older_counts.get(key, 0)
            if recent_count > older_count * 1.2:
                trends[key] = 'rising'
            elif recent_count < older_count * 0.8:
                trends[key] = 'falling'
            else:
                trends[key] = 'stable'
        return trends


def recommend_strategy(analysis: ColorGroupAnalysis) -> Dict[str, object]:
    """Pick the color strategy that suits the current band balance."""
    if analysis.balance_score < 60:
        return {
            'recommended': 'balanced',
            'reason': 'Unbalanced color distribution detected',
            'confidence': 0.8,
        }
    if len(analysis.hot_groups) >= 3:
        return {
            'recommended': 'momentum',
            'reason': 'Strong momentum across several color groups',
            'confidence': 0.75,
        }
    return {
        'recommended': 'hybrid',
        'reason': 'Balanced situation, combined strategy preferred',
        'confidence': 0.85,
    }
