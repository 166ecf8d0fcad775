"""
Loto Bonheur - Color Group Strategies
=====================================

Scorers that choose which color bands to play first, then pick the
strongest numbers inside those bands.

Inside a band, numbers are taken in descending weighted-frequency order
(ties go to the smaller number), so every strategy is deterministic for a
given history.

Components:
- BalancedColorScorer: favours under-represented bands
- MomentumColorScorer: favours bands with recent momentum
- CorrelationColorScorer: favours bands that are drawn together
- HybridColorScorer: weighted fusion of the three above
- color_predictions: all four, ranked, with a single fallback on short history
"""

import random
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from lotobonheur.algorithms import features
from lotobonheur.algorithms.color_groups import (
    COLOR_GROUPS,
    GROUP_KEYS,
    ColorGroupAnalysis,
    ColorGroupAnalyzer,
    get_color_group,
    group_distribution,
)
from lotobonheur.algorithms.models import (
    COMPUTATION_ERROR_FACTOR,
    FALLBACK_FACTOR,
    INSUFFICIENT_DATA_FACTOR,
    MAX_NUMBER,
    NUMBERS_PER_DRAW,
    DrawRecord,
    PredictionCategory,
    PredictionResult,
    clamp,
    empty_score_map,
    safe_divide,
)
from lotobonheur.algorithms.scorers import Scorer, filter_draws
from lotobonheur.algorithms.selector import rank_numbers


class ColorPick:
    """Accumulates numbers taken band by band"""

    def __init__(self, number_scores: np.ndarray):
        self.number_scores = number_scores
        self.numbers: List[int] = []
        self.distribution: Dict[str, int] = {}

    @property
    def full(self) -> bool:
        return len(self.numbers) >= NUMBERS_PER_DRAW

    def take(self, group_key: str, count: int) -> int:
        """Take up to `count` best unused numbers of a band; returns how many were taken."""
        group = COLOR_GROUPS[group_key]
        candidates = sorted(group.numbers, key=lambda n: (-self.number_scores[n - 1], n))
        taken = 0
        for number in candidates:
            if taken >= count or self.full:
                break
            if number not in self.numbers:
                self.numbers.append(number)
                self.distribution[group_key] = self.distribution.get(group_key, 0) + 1
                taken += 1
        return taken


class ColorStrategyScorer(Scorer):
    """Base for color strategies: analysis + band picks instead of a ScoreMap"""

    category = PredictionCategory.COLOR
    window = 200
    min_history = 30
    fallback_confidence = 0.4
    strategy = "balanced"
    risk_level = "medium"

    def __init__(self, analyzer: Optional[ColorGroupAnalyzer] = None, rng: Optional[random.Random] = None):
        super().__init__(rng=rng)
        self.analyzer = analyzer or ColorGroupAnalyzer()

    def score(self, history: Sequence[DrawRecord], draw_name: Optional[str] = None) -> PredictionResult:
        window = filter_draws(history, draw_name)[:self.window]
        if len(window) < self.min_history:
            logger.warning(f"{self.name}: {len(window)} draws available, {self.min_history} required, using fallback")
            return self.fallback(INSUFFICIENT_DATA_FACTOR)

        try:
            analysis = self.analyzer.analyze(window)
            number_scores = features.weighted_frequency(window)
            return self.predict(window, analysis, number_scores)
        except Exception as e:
            logger.error(f"{self.name}: Color strategy failed: {e}")
            return self.fallback(COMPUTATION_ERROR_FACTOR)

    def predict(self, window: List[DrawRecord], analysis: ColorGroupAnalysis,
                number_scores: np.ndarray) -> PredictionResult:
        raise NotImplementedError

    def _result(self, pick: ColorPick, confidence: float, factors: Tuple[str, ...],
                expected_groups: List[str]) -> PredictionResult:
        confidence = clamp(confidence, 0.0, 0.95)
        return PredictionResult(
            numbers=tuple(pick.numbers),
            confidence=confidence,
            algorithm_name=self.name,
            factors=factors,
            rank_score=clamp(confidence * self.rank_multiplier, 0.0, 1.0),
            category=self.category,
            details={
                'color_strategy': self.strategy,
                'group_distribution': dict(pick.distribution),
                'expected_groups': expected_groups,
                'risk_level': self.risk_level,
                'success_probability': round(confidence * 100, 2),
            },
        )

    def _complete(self, pick: ColorPick, preferred_groups: Sequence[str]) -> None:
        """Top up to five numbers, first from `preferred_groups`, then from any band."""
        for key in list(preferred_groups) + GROUP_KEYS:
            if pick.full:
                break
            pick.take(key, NUMBERS_PER_DRAW)


class BalancedColorScorer(ColorStrategyScorer):
    """Plays the bands that have been drawn less than their share."""

    name = "Color Balancing"
    strategy = "balanced"
    risk_level = "low"
    rank_multiplier = 0.9

    def predict(self, window, analysis, number_scores):
        expected = analysis.expected_per_group
        underrepresented = sorted(
            (key for key in GROUP_KEYS if analysis.distribution[key] < expected * 0.9),
            key=lambda k: analysis.distribution[k],
        )[:3]

        pick = ColorPick(number_scores)
        for index, key in enumerate(underrepresented):
            pick.take(key, 3 - index)

        by_distribution = sorted(GROUP_KEYS, key=lambda k: analysis.distribution[k])
        for key in by_distribution:
            if pick.full:
                break
            if pick.distribution.get(key, 0) < 2:
                pick.take(key, 1)
        self._complete(pick, by_distribution)

        confidence = min(0.85, 0.5 + (100 - analysis.balance_score) / 100 * 0.35)
        factors = (
            "Under-represented groups targeted",
            "Balanced distribution favoured",
            f"Current balance score: {analysis.balance_score:.1f}",
            "Color variance compensation",
        )
        return self._result(pick, confidence, factors, list(pick.distribution.keys()))


class MomentumColorScorer(ColorStrategyScorer):
    """Plays the bands with the strongest recent momentum."""

    name = "Color Momentum"
    strategy = "momentum"
    risk_level = "medium"
    rank_multiplier = 0.85

    def predict(self, window, analysis, number_scores):
        momentum_groups = sorted(GROUP_KEYS, key=lambda k: analysis.momentum[k], reverse=True)[:4]

        pick = ColorPick(number_scores)
        for index, key in enumerate(momentum_groups):
            pick.take(key, max(1, 3 - index))
        self._complete(pick, analysis.hot_groups)

        avg_momentum = float(np.mean(list(analysis.momentum.values())))
        selected_momentum = float(np.mean([analysis.momentum[k] for k in momentum_groups]))
        raw = min(0.8, 0.4 + (safe_divide(selected_momentum, avg_momentum) - 1) * 0.4)
        confidence = max(0.55, raw)

        factors = (
            "High momentum groups",
            f"Hot groups: {', '.join(analysis.hot_groups)}",
            "Recent temporal trends",
            "Favourable momentum dynamics",
        )
        return self._result(pick, confidence, factors, momentum_groups)


class CorrelationColorScorer(ColorStrategyScorer):
    """Plays the band pairs that appear together most often."""

    name = "Color Correlations"
    strategy = "correlation"
    risk_level = "medium"
    rank_multiplier = 0.87

    def predict(self, window, analysis, number_scores):
        pairs = []
        for i, first in enumerate(GROUP_KEYS):
            for second in GROUP_KEYS[i + 1:]:
                pairs.append((first, second, analysis.correlations[first][second]))
        pairs.sort(key=lambda p: p[2], reverse=True)
        target_pairs = pairs[:2]

        groups: List[str] = []
        for first, second, _ in target_pairs:
            for key in (first, second):
                if key not in groups:
                    groups.append(key)
        for key in analysis.hot_groups + sorted(GROUP_KEYS, key=lambda k: analysis.momentum[k], reverse=True):
            if len(groups) >= 4:
                break
            if key not in groups:
                groups.append(key)

        pick = ColorPick(number_scores)
        for index, key in enumerate(groups):
            pick.take(key, 2 if index < 2 else 1)
        self._complete(pick, groups)

        avg_correlation = safe_divide(sum(p[2] for p in target_pairs), max(1, len(target_pairs)))
        raw = min(0.8, 0.5 + safe_divide(avg_correlation, len(window) * 0.3) * 0.3)
        confidence = max(0.6, raw)

        factors = (
            "Strongly correlated group pairs",
            f"Average correlation strength: {avg_correlation:.1f}",
            "Historical simultaneous appearances",
            "Synergy between color groups",
        )
        return self._result(pick, confidence, factors, groups)


class HybridColorScorer(ColorStrategyScorer):
    """
    Weighted fusion of the balanced, momentum and correlation strategies.

    Each strategy votes weight * confidence for its numbers, every number of a
    band gets momentum / 100 * 0.1, and the best eight are diversified so no
    band repeats until five bands are used.
    """

    name = "Hybrid Color Strategy"
    strategy = "hybrid"
    risk_level = "low"
    rank_multiplier = 0.93
    weights = (0.4, 0.35, 0.25)

    def __init__(self, analyzer: Optional[ColorGroupAnalyzer] = None, rng: Optional[random.Random] = None):
        super().__init__(analyzer=analyzer, rng=rng)
        self.components = (
            BalancedColorScorer(analyzer=self.analyzer, rng=self.rng),
            MomentumColorScorer(analyzer=self.analyzer, rng=self.rng),
            CorrelationColorScorer(analyzer=self.analyzer, rng=self.rng),
        )

    def predict(self, window, analysis, number_scores):
        partials = [c.predict(window, analysis, number_scores) for c in self.components]

        combined = empty_score_map()
        for prediction, weight in zip(partials, self.weights):
            for number in prediction.numbers:
                combined[number - 1] += weight * prediction.confidence
        for key, momentum in analysis.momentum.items():
            group = COLOR_GROUPS[key]
            combined[group.low - 1:group.high] += (momentum / 100) * 0.1

        shortlist = rank_numbers(combined)[:8]
        final: List[int] = []
        used_groups: List[str] = []
        for number in shortlist:
            key = get_color_group(number)
            if len(final) < NUMBERS_PER_DRAW and (key not in used_groups or len(used_groups) >= 5):
                final.append(number)
                if key not in used_groups:
                    used_groups.append(key)
        for number in shortlist:
            if len(final) >= NUMBERS_PER_DRAW:
                break
            if number not in final:
                final.append(number)

        pick = ColorPick(number_scores)
        pick.numbers = final
        pick.distribution = group_distribution(final)

        weighted_confidence = sum(p.confidence * w for p, w in zip(partials, self.weights))
        confidence = min(0.9, weighted_confidence + len(pick.distribution) * 0.02)

        factors = (
            "Balancing, momentum and correlation fusion",
            f"Diversity: {len(pick.distribution)} groups",
            "Adaptive weight optimisation",
            "Combined multi-level strategy",
        )
        result = self._result(pick, confidence, factors, list(pick.distribution.keys()))
        result.details['historical_performance'] = 0.78
        return result


def color_scorers(rng: Optional[random.Random] = None) -> List[ColorStrategyScorer]:
    analyzer = ColorGroupAnalyzer()
    return [
        BalancedColorScorer(analyzer=analyzer, rng=rng),
        MomentumColorScorer(analyzer=analyzer, rng=rng),
        CorrelationColorScorer(analyzer=analyzer, rng=rng),
        HybridColorScorer(analyzer=analyzer, rng=rng),
    ]


def color_predictions(history: Sequence[DrawRecord], draw_name: Optional[str] = None,
                      rng: Optional[random.Random] = None) -> List[PredictionResult]:
    """
    All four color strategies sorted by rank score, or a single fallback
    prediction when the history is shorter than 30 draws.
    """
    draws = filter_draws(history, draw_name)
    if len(draws) < ColorStrategyScorer.min_history:
        rng = rng or random.Random()
        logger.warning(f"Color predictions: only {len(draws)} draws, returning fallback")
        return [PredictionResult(
            numbers=tuple(rng.sample(range(1, MAX_NUMBER + 1), NUMBERS_PER_DRAW)),
            confidence=0.4,
            algorithm_name="Color Prediction (Insufficient Data)",
            factors=(INSUFFICIENT_DATA_FACTOR, FALLBACK_FACTOR),
            rank_score=0.4,
            category=PredictionCategory.COLOR,
            details={
                'color_strategy': 'balanced',
                'group_distribution': {},
                'expected_groups': [],
                'risk_level': 'high',
                'success_probability': 40.0,
            },
        )]

    results = [scorer.score(draws) for scorer in color_scorers(rng=rng)]
    return sorted(results, key=lambda r: (-r.rank_score, r.algorithm_name))
