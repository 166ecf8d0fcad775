"""
Algorithm Comparison - Loto Bonheur
===================================

Side-by-side analysis of the predictions produced for one draw name.

Components:
- AlgorithmProfile / algorithm_profile: static complexity, data needs, strengths
- generate_consensus_prediction: confidence x rank weighted vote
- generate_all_predictions: core + color scorers + consensus, ranked
- compare_algorithms: overlap, uniqueness, diversity, consistency, reliability,
  consensus summary, recommendations and risk buckets
- compare_two: pairwise convergence summary
"""

import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from lotobonheur.algorithms.color_scorers import color_predictions
from lotobonheur.algorithms.models import (
    DrawRecord,
    PredictionCategory,
    PredictionResult,
    safe_divide,
)
from lotobonheur.algorithms.ranking import rank_predictions, sort_predictions
from lotobonheur.algorithms.scorers import default_scorers, filter_draws

DIVERSITY_RANGES = [(1, 18), (19, 36), (37, 54), (55, 72), (73, 90)]

CATEGORY_BONUS = {
    PredictionCategory.NEURAL: 0.1,
    PredictionCategory.ML: 0.08,
    PredictionCategory.BAYESIAN: 0.05,
    PredictionCategory.STATISTICAL: 0.03,
    PredictionCategory.COLOR: 0.02,
    PredictionCategory.CONSENSUS: 0.1,
}


@dataclass(frozen=True)
class AlgorithmProfile:
    complexity: str
    data_requirement: int
    strengths: List[str]
    weaknesses: List[str]


_PROFILES = {
    PredictionCategory.STATISTICAL: AlgorithmProfile(
        'medium', 20, ["Fast", "Robust", "Weighted"], ["Sensitive to outliers", "Linear"]),
    PredictionCategory.BAYESIAN: AlgorithmProfile(
        'medium', 30, ["Probabilistic", "Logical", "Evidence based"],
        ["Naive simplifications", "Depends on initial data"]),
    PredictionCategory.ML: AlgorithmProfile(
        'high', 50, ["Detects clusters", "Non-linear", "Adaptive"],
        ["Fixed heuristics", "Simplified"]),
    PredictionCategory.NEURAL: AlgorithmProfile(
        'high', 100, ["Temporal analysis", "Predictive", "Trend aware"],
        ["Weighted recency sum", "Not a trained network"]),
    PredictionCategory.VARIANCE: AlgorithmProfile(
        'high', 50, ["Statistically grounded", "Correlation analysis", "Robust"],
        ["Assumes a normal distribution", "Complex"]),
    PredictionCategory.COLOR: AlgorithmProfile(
        'medium', 50, ["Visual approach", "Diversification", "Multiple strategies"],
        ["Arbitrary grouping", "Variable performance"]),
    PredictionCategory.CONSENSUS: AlgorithmProfile(
        'high', 100, ["Combines every algorithm", "Reduces individual bias", "High confidence"],
        ["High complexity", "Computation time", "Data dependent"]),
}


def algorithm_profile(category: PredictionCategory) -> AlgorithmProfile:
    return _PROFILES.get(PredictionCategory(category),
                         AlgorithmProfile('medium', 50, ["Specialised algorithm"], ["Standard limitations"]))


@dataclass
class Overlap:
    algorithm: str
    common_numbers: List[int]
    overlap_score: float


@dataclass
class ComparisonMetrics:
    prediction: PredictionResult
    profile: AlgorithmProfile
    overlaps: List[Overlap]
    uniqueness: float
    diversity: float
    consistency: float
    reliability: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'prediction': self.prediction.to_dict(),
            'complexity': self.profile.complexity,
            'data_requirement': self.profile.data_requirement,
            'strengths': self.profile.strengths,
            'weaknesses': self.profile.weaknesses,
            'overlaps': [o.__dict__ for o in self.overlaps],
            'uniqueness': round(self.uniqueness, 4),
            'diversity': round(self.diversity, 4),
            'consistency': round(self.consistency, 4),
            'reliability': round(self.reliability, 4),
        }


@dataclass
class ComparisonAnalysis:
    algorithms: List[ComparisonMetrics]
    consensus: Dict[str, Any]
    recommendations: Dict[str, str]
    risk_assessment: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'algorithms': [m.to_dict() for m in self.algorithms],
            'consensus': self.consensus,
            'recommendations': self.recommendations,
            'risk_assessment': self.risk_assessment,
        }


def generate_consensus_prediction(predictions: Sequence[PredictionResult]) -> PredictionResult:
    """
    Vote over all predictions, each number weighted by confidence x rank score.

    Confidence is min(0.95, weighted confidence x 1.1) and the rank score is
    weighted confidence x 0.95, where weighted confidence is the rank-score
    weighted mean confidence.
    """
    if not predictions:
        return PredictionResult(
            numbers=(1, 2, 3, 4, 5),
            confidence=0.3,
            algorithm_name="Consensus (No Data)",
            factors=("No prediction available",),
            rank_score=0.3,
            category=PredictionCategory.CONSENSUS,
        )

    votes: Dict[int, float] = {}
    for prediction in predictions:
        weight = prediction.confidence * prediction.rank_score
        for number in prediction.numbers:
            votes[number] = votes.get(number, 0.0) + weight
    numbers = [n for n, _ in sorted(votes.items(), key=lambda item: (-item[1], item[0]))[:5]]

    total_weight = sum(p.rank_score for p in predictions)
    weighted_confidence = safe_divide(sum(p.confidence * p.rank_score for p in predictions), total_weight)

    return PredictionResult(
        numbers=tuple(numbers),
        confidence=min(0.95, weighted_confidence * 1.1),
        algorithm_name="Consensus Algorithm",
        factors=(
            f"Based on {len(predictions)} algorithms",
            "Score and confidence weighting",
            "Vote aggregation",
            f"Mean confidence: {weighted_confidence * 100:.1f}%",
        ),
        rank_score=min(1.0, weighted_confidence * 0.95),
        category=PredictionCategory.CONSENSUS,
        accuracy=0.75,
    )


def generate_all_predictions(history: Sequence[DrawRecord], draw_name: Optional[str] = None,
                             rng: Optional[random.Random] = None) -> List[PredictionResult]:
    """Core scorers, color strategies and their consensus, ranked together."""
    predictions = rank_predictions(history, default_scorers(rng=rng), draw_name=draw_name)
    predictions += color_predictions(history, draw_name=draw_name, rng=rng)
    predictions.append(generate_consensus_prediction(predictions))
    logger.info(f"Generated {len(predictions)} predictions for comparison ({draw_name})")
    return sort_predictions(predictions)


def _overlaps(target: PredictionResult, others: Sequence[PredictionResult]) -> List[Overlap]:
    overlaps = []
    for other in others:
        common = [n for n in target.numbers if n in other.numbers]
        overlaps.append(Overlap(other.algorithm_name, common, len(common) / 5))
    return sorted(overlaps, key=lambda o: o.overlap_score, reverse=True)


def _uniqueness(target: PredictionResult, others: Sequence[PredictionResult]) -> float:
    other_numbers = {n for p in others for n in p.numbers}
    unique = [n for n in target.numbers if n not in other_numbers]
    return len(unique) / len(target.numbers)


def diversity(numbers: Sequence[int]) -> float:
    """Share of the five 18-number ranges touched by `numbers`."""
    touched = sum(1 for low, high in DIVERSITY_RANGES if any(low <= n <= high for n in numbers))
    return touched / len(DIVERSITY_RANGES)


def consistency(numbers: Sequence[int], history: Sequence[DrawRecord]) -> float:
    """1 - relative gap between the picked numbers' mean frequency and the overall mean frequency."""
    if not history:
        return 0.5
    frequencies = Counter(n for draw in history for n in draw.winning_numbers)
    avg_frequency = sum(frequencies.values()) / len(frequencies)
    picked = sum(frequencies.get(n, 0) for n in numbers) / len(numbers)
    return max(0.0, 1 - safe_divide(abs(picked - avg_frequency), avg_frequency))


def reliability(prediction: PredictionResult) -> float:
    score = prediction.confidence * 0.6
    score += prediction.accuracy * 0.3 if prediction.accuracy else 0.15
    score += CATEGORY_BONUS.get(prediction.category, 0.0) * 0.1
    return min(1.0, score)


def _consensus_summary(predictions: Sequence[PredictionResult]) -> Dict[str, Any]:
    counts = Counter(n for p in predictions for n in p.numbers)
    most_agreed = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:10]
    confidences = [p.confidence for p in predictions]
    return {
        'most_agreed_numbers': [
            {'number': n, 'agreement_count': c, 'agreement_score': round(c / len(predictions), 4)}
            for n, c in most_agreed
        ],
        'least_agreed_numbers': sorted(n for n, c in counts.items() if c == 1),
        'average_confidence': round(sum(confidences) / len(confidences), 4),
        'confidence_range': {'min': min(confidences), 'max': max(confidences)},
    }


def _recommendations(metrics: Sequence[ComparisonMetrics]) -> Dict[str, str]:
    def best(key) -> str:
        ranked = sorted(metrics, key=key, reverse=True)
        return ranked[0].prediction.algorithm_name if ranked else "None"

    consensus = next((m for m in metrics if m.prediction.category == PredictionCategory.CONSENSUS), None)
    return {
        'most_reliable': best(lambda m: m.reliability),
        'most_unique': best(lambda m: m.uniqueness),
        'best_consensus': consensus.prediction.algorithm_name if consensus else "Consensus",
        'highest_confidence': best(lambda m: m.prediction.confidence),
        'balanced': best(lambda m: m.reliability + m.consistency + m.diversity),
    }


def assess_risk(predictions: Sequence[PredictionResult]) -> Dict[str, List[str]]:
    """
    conservative: confidence <= 0.6 and not high complexity
    moderate: 0.6 < confidence <= 0.8
    aggressive: confidence > 0.8 or high complexity
    """
    buckets: Dict[str, List[str]] = {'conservative': [], 'moderate': [], 'aggressive': []}
    for prediction in predictions:
        high = algorithm_profile(prediction.category).complexity == 'high'
        if prediction.confidence <= 0.6 and not high:
            buckets['conservative'].append(prediction.algorithm_name)
        if 0.6 < prediction.confidence <= 0.8:
            buckets['moderate'].append(prediction.algorithm_name)
        if prediction.confidence > 0.8 or high:
            buckets['aggressive'].append(prediction.algorithm_name)
    return buckets


def compare_algorithms(predictions: Sequence[PredictionResult],
                       history: Sequence[DrawRecord], draw_name: Optional[str] = None) -> ComparisonAnalysis:
    """
    Raises:
        ValueError: if there is nothing to compare
    """
    if not predictions:
        raise ValueError("No predictions available for comparison")

    draws = filter_draws(history, draw_name)
    metrics = []
    for index, prediction in enumerate(predictions):
        others = [p for i, p in enumerate(predictions) if i != index]
        metrics.append(ComparisonMetrics(
            prediction=prediction,
            profile=algorithm_profile(prediction.category),
            overlaps=_overlaps(prediction, others),
            uniqueness=_uniqueness(prediction, others),
            diversity=diversity(prediction.numbers),
            consistency=consistency(prediction.numbers, draws),
            reliability=reliability(prediction),
        ))

    return ComparisonAnalysis(
        algorithms=metrics,
        consensus=_consensus_summary(predictions),
        recommendations=_recommendations(metrics),
        risk_assessment=assess_risk(predictions),
    )


def compare_two(first: PredictionResult, second: PredictionResult) -> Dict[str, Any]:
    common = [n for n in first.numbers if n in second.numbers]
    similarity = len(common) / 5
    if similarity > 0.6:
        recommendation = "Very similar predictions - strong convergence"
    elif similarity > 0.2:
        recommendation = "Partial convergence - complementary approaches"
    else:
        recommendation = "Divergent predictions - different strategies"

    return {
        'common_numbers': common,
        'unique_to_first': [n for n in first.numbers if n not in second.numbers],
        'unique_to_second': [n for n in second.numbers if n not in first.numbers],
        'similarity_score': similarity,
        'confidence_diff': round(abs(first.confidence - second.confidence), 4),
        'recommendation': recommendation,
    }
