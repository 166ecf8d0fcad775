"""
Loto Bonheur - Heuristic Scorers
================================

Each scorer combines feature extractors into one ScoreMap, selects five
numbers from it and reports a bounded confidence.

All scorers share the same contract (Scorer.score):
- the history is a newest-first sequence of DrawRecord
- the scorer looks at the `window` most recent draws of its draw name
- below `min_history` draws, a random fallback with low confidence is returned
- an exception in an extractor is logged and turned into the same fallback
- the result always satisfies the PredictionResult invariants

Components:
- WeightedFrequencyScorer: recency-weighted frequency (statistical)
- PatternRecognitionScorer: cluster + sequence + cycle ensemble (ml)
- FrequencyRatioScorer: normalised frequency ratio (bayesian)
- RecurrenceEnsembleScorer: recurrence memory + frequency blend + draw shape (neural)
- VarianceAnalysisScorer: bucket variance + regression + z-score + correlation (variance)
"""

import random
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from lotobonheur.algorithms import features
from lotobonheur.algorithms.models import (
    COMPUTATION_ERROR_FACTOR,
    FALLBACK_FACTOR,
    INSUFFICIENT_DATA_FACTOR,
    MAX_CONFIDENCE,
    MAX_NUMBER,
    NUMBERS_PER_DRAW,
    DrawRecord,
    PredictionCategory,
    PredictionResult,
    clamp,
    safe_divide,
)
from lotobonheur.algorithms.selector import POLICY_BALANCED, Selector
from lotobonheur.draw_schedule import fold_draw_name


def expected_roi(confidence: float) -> float:
    """Heuristic return estimate: -0.5 base shifted by confidence, clipped to [-0.9, 0.5]."""
    return clamp(-0.5 + (confidence - 0.5) * 2, -0.9, 0.5)


def filter_draws(history: Sequence[DrawRecord], draw_name: Optional[str]) -> List[DrawRecord]:
    if draw_name is None:
        return list(history)
    wanted = fold_draw_name(draw_name)
    return [draw for draw in history if fold_draw_name(draw.draw_name) == wanted]


def fallback_prediction(name: str, reason: str, category: PredictionCategory = PredictionCategory.STATISTICAL,
                        confidence: float = 0.35, rng: Optional[random.Random] = None) -> PredictionResult:
    """Uniform random pick with a fixed low confidence, labelled with why it was needed."""
    rng = rng or random.Random()
    return PredictionResult(
        numbers=tuple(rng.sample(range(1, MAX_NUMBER + 1), NUMBERS_PER_DRAW)),
        confidence=confidence,
        algorithm_name=f"{name} (Insufficient Data)" if reason == INSUFFICIENT_DATA_FACTOR
        else f"{name} (Fallback)",
        factors=(reason, FALLBACK_FACTOR),
        rank_score=confidence,
        category=category,
        accuracy=0.4,
    )


class Scorer(ABC):
    """A named prediction source. score() never raises."""

    name: str = "base"
    category: PredictionCategory = PredictionCategory.STATISTICAL
    window: int = 100
    min_history: int = 10
    rank_multiplier: float = 0.85
    fallback_confidence: float = 0.35

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @abstractmethod
    def score(self, history: Sequence[DrawRecord], draw_name: Optional[str] = None) -> PredictionResult:
        """Newest-first history in, one PredictionResult out."""

    def fallback(self, reason: str) -> PredictionResult:
        return fallback_prediction(self.name, reason, self.category, self.fallback_confidence, self.rng)


class BaseScorer(Scorer):
    """Common windowing and result assembly for the ScoreMap scorers"""

    accuracy: Optional[float] = None
    factors: Tuple[str, ...] = ()

    def __init__(self, selector: Optional[Selector] = None, rng: Optional[random.Random] = None):
        super().__init__(rng=rng)
        self.selector = selector or self.default_selector()

    def default_selector(self) -> Selector:
        return Selector()

    def score(self, history: Sequence[DrawRecord], draw_name: Optional[str] = None) -> PredictionResult:
        """
        Score a history and return a prediction. Never raises.

        Args:
            history: Newest-first draws
            draw_name: If given, only draws of this name are considered
        """
        window = filter_draws(history, draw_name)[:self.window]

        if len(window) < self.min_history:
            logger.warning(f"{self.name}: {len(window)} draws available, {self.min_history} required, using fallback")
            return self.fallback(INSUFFICIENT_DATA_FACTOR)

        try:
            scores = np.asarray(self.compute_scores(window), dtype=float)
            if scores.shape != (MAX_NUMBER,):
                raise ValueError(f"score map has shape {scores.shape}")
            scores = np.nan_to_num(scores, nan=0.0, posinf=0.0, neginf=0.0)

            numbers = self.selector.select(scores)
            confidence = clamp(self.confidence(scores, numbers, window), 0.0, MAX_CONFIDENCE)
            result = PredictionResult(
                numbers=tuple(numbers),
                confidence=confidence,
                algorithm_name=self.name,
                factors=self.factors,
                rank_score=clamp(confidence * self.rank_multiplier, 0.0, 1.0),
                category=self.category,
                accuracy=self.accuracy,
                expected_roi=self.expected_roi(confidence),
            )
            logger.debug(f"{self.name}: {result.numbers} (confidence={confidence:.3f}, window={len(window)})")
            return result
        except Exception as e:
            logger.error(f"{self.name}: Scoring failed: {e}")
            return self.fallback(COMPUTATION_ERROR_FACTOR)

    @abstractmethod
    def compute_scores(self, window: List[DrawRecord]) -> np.ndarray:
        """Return the ScoreMap for a window that meets the minimum length."""

    @abstractmethod
    def confidence(self, scores: np.ndarray, numbers: List[int], window: List[DrawRecord]) -> float:
        """Raw confidence before clipping to [0, 0.95]."""

    def expected_roi(self, confidence: float) -> Optional[float]:
        return None


def _selected(scores: np.ndarray, numbers: List[int]) -> np.ndarray:
    return np.array([scores[n - 1] for n in numbers], dtype=float)


def _day_of_week(day: date) -> int:
    """0 = Sunday ... 6 = Saturday"""
    return (day.weekday() + 1) % 7


class WeightedFrequencyScorer(BaseScorer):
    """
    Weighted Frequency Analysis.

    exp(-index * decay_rate) occurrence weighting plus a uniform day-of-week
    adjustment, selected with the color-balanced policy over the best 15.

    The day used for the adjustment is `reference_date` when given, otherwise
    the date of the most recent draw in the window, so the result depends
    only on the inputs.
    """

    name = "Weighted Frequency Analysis"
    category = PredictionCategory.STATISTICAL
    window = 100
    min_history = 10
    rank_multiplier = 0.85
    fallback_confidence = 0.3
    accuracy = 0.72
    factors = ("Weighted frequency", "Temporal decay", "Seasonal adjustment")

    def __init__(self, decay_rate: float = 0.05, seasonal_weight: float = 0.1,
                 reference_date: Optional[date] = None, selector: Optional[Selector] = None,
                 rng: Optional[random.Random] = None):
        super().__init__(selector=selector, rng=rng)
        self.decay_rate = decay_rate
        self.seasonal_weight = seasonal_weight
        self.reference_date = reference_date

    def default_selector(self) -> Selector:
        return Selector(policy=POLICY_BALANCED, pool_size=15)

    def compute_scores(self, window: List[DrawRecord]) -> np.ndarray:
        day = self.reference_date or window[0].draw_date
        seasonal = features.seasonal_adjustment(_day_of_week(day), self.seasonal_weight)
        return features.weighted_frequency(window, self.decay_rate) + seasonal

    def confidence(self, scores: np.ndarray, numbers: List[int], window: List[DrawRecord]) -> float:
        avg = _selected(scores, numbers).mean()
        return min(0.95, safe_divide(avg, scores.max()) * 0.8 + 0.2)


class PatternRecognitionScorer(BaseScorer):
    """
    ML Pattern Recognition.

    Equal-weight blend of pair clustering, consecutive-draw patterns and
    7/14/21-draw cycles. No model is trained; the name is kept for display.
    """

    name = "ML Pattern Recognition"
    category = PredictionCategory.ML
    window = 200
    min_history = 50
    rank_multiplier = 0.88
    accuracy = 0.76
    factors = ("Clustering analysis", "Pattern detection", "Cyclical behavior", "Time series analysis")

    def __init__(self, cluster_weight: float = 1 / 3, pattern_weight: float = 1 / 3,
                 cyclical_weight: float = 1 / 3, selector: Optional[Selector] = None,
                 rng: Optional[random.Random] = None):
        super().__init__(selector=selector, rng=rng)
        self.cluster_weight = cluster_weight
        self.pattern_weight = pattern_weight
        self.cyclical_weight = cyclical_weight

    def compute_scores(self, window: List[DrawRecord]) -> np.ndarray:
        return (features.clustering(window) * self.cluster_weight
                + features.sequential_patterns(window) * self.pattern_weight
                + features.cyclical_behavior(window) * self.cyclical_weight)

    def confidence(self, scores: np.ndarray, numbers: List[int], window: List[DrawRecord]) -> float:
        base = min(0.9, len(window) / 200)
        selected = _selected(scores, numbers)
        variation = safe_divide(selected.std(), selected.mean())
        return base * (1 - variation * 0.5)

    def expected_roi(self, confidence: float) -> Optional[float]:
        return expected_roi(confidence)


class FrequencyRatioScorer(BaseScorer):
    """
    Bayesian Inference.

    Uniform prior times observed frequency share, divided by a length-based
    evidence term. Ranking is identical to the raw frequency ranking.
    """

    name = "Bayesian Inference"
    category = PredictionCategory.BAYESIAN
    window = 150
    min_history = 30
    rank_multiplier = 0.82
    accuracy = 0.74
    factors = ("Prior knowledge", "Likelihood estimation", "Posterior update", "Evidence integration")

    def compute_scores(self, window: List[DrawRecord]) -> np.ndarray:
        return features.frequency_ratio(window)

    def confidence(self, scores: np.ndarray, numbers: List[int], window: List[DrawRecord]) -> float:
        return min(0.9, safe_divide(_selected(scores, numbers).sum(), scores.sum()) * 5)


class RecurrenceEnsembleScorer(BaseScorer):
    """
    Neural Network Ensemble.

    0.4 * recurrence memory + 0.35 * frequency/trend/recency blend
    + 0.25 * draw-shape features. Fixed weights, nothing is learned.
    """

    name = "Neural Network Ensemble"
    category = PredictionCategory.NEURAL
    window = 300
    min_history = 100
    rank_multiplier = 0.91
    accuracy = 0.78
    factors = ("LSTM time series", "Ensemble methods", "Deep features", "Backpropagation")

    def __init__(self, memory_weight: float = 0.4, ensemble_weight: float = 0.35,
                 shape_weight: float = 0.25, selector: Optional[Selector] = None,
                 rng: Optional[random.Random] = None):
        super().__init__(selector=selector, rng=rng)
        self.memory_weight = memory_weight
        self.ensemble_weight = ensemble_weight
        self.shape_weight = shape_weight

    def compute_scores(self, window: List[DrawRecord]) -> np.ndarray:
        return (features.recurrence_memory(window) * self.memory_weight
                + features.ensemble_blend(window) * self.ensemble_weight
                + features.positional_features(window) * self.shape_weight)

    def confidence(self, scores: np.ndarray, numbers: List[int], window: List[DrawRecord]) -> float:
        avg = _selected(scores, numbers).mean()
        return min(0.95, safe_divide(avg, scores.max()) * 0.9 + 0.1)

    def expected_roi(self, confidence: float) -> Optional[float]:
        return expected_roi(confidence * 1.1)


class VarianceAnalysisScorer(BaseScorer):
    """
    Advanced Variance Analysis.

    0.3 * weekly bucket variance + 0.3 * time regression
    + 0.2 * z-score stability + 0.2 * pair correlation.
    """

    name = "Advanced Variance Analysis"
    category = PredictionCategory.VARIANCE
    window = 250
    min_history = 50
    rank_multiplier = 0.86
    accuracy = 0.75
    factors = ("ANOVA", "Multiple regression", "Statistical tests", "Correlation matrix")

    def compute_scores(self, window: List[DrawRecord]) -> np.ndarray:
        return (features.weekly_variance(window) * 0.3
                + features.time_regression(window) * 0.3
                + features.z_score_stability(window) * 0.2
                + features.pair_correlation(window) * 0.2)

    def confidence(self, scores: np.ndarray, numbers: List[int], window: List[DrawRecord]) -> float:
        return min(0.9, safe_divide(_selected(scores, numbers).mean(), scores.mean()))


def default_scorers(selector: Optional[Selector] = None, rng: Optional[random.Random] = None) -> List[BaseScorer]:
    """
    The five core scorers.

    A `selector` overrides every scorer's own selection policy (the weighted
    frequency scorer otherwise uses color balancing).
    """
    return [
        WeightedFrequencyScorer(selector=selector, rng=rng),
        PatternRecognitionScorer(selector=selector, rng=rng),
        FrequencyRatioScorer(selector=selector, rng=rng),
        RecurrenceEnsembleScorer(selector=selector, rng=rng),
        VarianceAnalysisScorer(selector=selector, rng=rng),
    ]
