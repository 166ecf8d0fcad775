"""
Prediction Scoring - Loto Bonheur
=================================

Scores stored predictions against the results that follow them and keeps
per-algorithm performance figures.

Components:
- calculate_score: 0-100 score from exact, color band, proximity,
  distribution and confidence components
- PredictionTracker: persistence, automatic validation, performance reports
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

import lotobonheur.database as db
from lotobonheur.algorithms.color_groups import get_color_group, group_distribution
from lotobonheur.algorithms.models import DrawRecord, PredictionResult
from lotobonheur.draw_schedule import draw_names_match

SCORE_WEIGHTS = {
    'exact_matches': 5,
    'color_group_matches': 2,
    'proximity_matches': 1,
    'distribution_accuracy': 3,
    'algorithm_confidence': 1,
}

MAX_SCORE = 100
SCORE_THRESHOLDS = {
    'excellent': 85,
    'good': 70,
    'average': 50,
}
PROXIMITY_RANGE = 3
TREND_MARGIN = 5


@dataclass
class ScoreBreakdown:
    exact_matches: float = 0.0
    color_group_matches: float = 0.0
    proximity_matches: float = 0.0
    distribution_accuracy: float = 0.0
    algorithm_confidence: float = 0.0

    def weighted_total(self) -> float:
        return sum(getattr(self, key) * weight for key, weight in SCORE_WEIGHTS.items())


@dataclass
class PredictionScore:
    algorithm: str
    predicted_numbers: List[int]
    actual_numbers: List[int]
    breakdown: ScoreBreakdown
    total_score: float
    grade: str
    prediction_id: Optional[int] = None
    draw_name: str = ''
    validated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['validated_at'] = self.validated_at.isoformat()
        return data


def grade_for(total_score: float) -> str:
    for grade, threshold in SCORE_THRESHOLDS.items():
        if total_score >= threshold:
            return grade
    return 'poor'


def calculate_score(predicted: Sequence[int], actual: Sequence[int], algorithm: str, confidence: float,
                    expected_distribution: Optional[Dict[str, int]] = None) -> PredictionScore:
    """
    Score a prediction against the actual winning numbers.

    Components (before weighting):
        exact_matches: 2 points per exact number
        color_group_matches: 2 points per predicted number whose band was drawn, max 10
        proximity_matches: 1 point per non-exact number within 3 of a drawn number, max 5
        distribution_accuracy: 10 - 2 * band count error, or 5 without an expected distribution
        algorithm_confidence: confidence * 10

    The weighted sum is normalised to 100 by weighted / 12 * 10.
    """
    breakdown = ScoreBreakdown(algorithm_confidence=confidence * 10)

    breakdown.exact_matches = sum(1 for n in predicted if n in actual) * 2

    actual_groups = {get_color_group(n) for n in actual}
    group_matches = sum(1 for n in predicted if get_color_group(n) in actual_groups)
    breakdown.color_group_matches = min(10, group_matches * 2)

    proximity = sum(
        1 for p in predicted
        if any(abs(p - a) <= PROXIMITY_RANGE and p != a for a in actual)
    )
    breakdown.proximity_matches = min(5, proximity)

    if expected_distribution:
        actual_distribution = group_distribution(actual)
        error = sum(abs(count - actual_distribution.get(group, 0))
                    for group, count in expected_distribution.items())
        breakdown.distribution_accuracy = max(0, 10 - error * 2)
    else:
        breakdown.distribution_accuracy = 5

    total = min(MAX_SCORE, breakdown.weighted_total() / 12 * 10)
    return PredictionScore(
        algorithm=algorithm,
        predicted_numbers=list(predicted),
        actual_numbers=list(actual),
        breakdown=breakdown,
        total_score=round(total, 2),
        grade=grade_for(total),
    )


def _prediction_date(prediction: Dict[str, Any]) -> date:
    value = prediction.get('target_date') or prediction.get('predicted_at')
    return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()


class PredictionTracker:
    """
    Stores predictions and validates them once results are known.

    A pending prediction is matched with the earliest result of the same draw
    name dated on or after its target date (or its creation date when no
    target was given).
    """

    def save_prediction(self, prediction: PredictionResult, draw_name: str,
                        target_date: Optional[str] = None) -> Optional[int]:
        return db.save_prediction(prediction, draw_name, target_date=target_date)

    def save_predictions(self, predictions: Sequence[PredictionResult], draw_name: str,
                         target_date: Optional[str] = None) -> List[int]:
        ids = []
        for prediction in predictions:
            prediction_id = self.save_prediction(prediction, draw_name, target_date)
            if prediction_id is not None:
                ids.append(prediction_id)
        logger.info(f"Tracked {len(ids)}/{len(predictions)} predictions for {draw_name}")
        return ids

    def get_pending(self, draw_name: Optional[str] = None) -> List[Dict[str, Any]]:
        return db.get_predictions(validated=False, draw_name=draw_name)

    def validate_predictions(self, results: Optional[Sequence[DrawRecord]] = None) -> List[PredictionScore]:
        """
        Validate pending predictions.

        Args:
            results: Results to validate against; the database history of each
                draw name is used when omitted
        """
        pending = self.get_pending()
        if not pending:
            return []

        scores: List[PredictionScore] = []
        cache: Dict[str, List[DrawRecord]] = {}
        for prediction in pending:
            draw_name = prediction['draw_name']
            if results is not None:
                candidates = [r for r in results if draw_names_match(r.draw_name, draw_name)]
            else:
                if draw_name not in cache:
                    cache[draw_name] = db.get_history(draw_name)
                candidates = cache[draw_name]

            since = _prediction_date(prediction)
            matching = sorted((r for r in candidates if r.draw_date >= since), key=lambda r: r.draw_date)
            if not matching:
                continue

            result = matching[0]
            score = calculate_score(
                prediction['numbers'],
                list(result.winning_numbers),
                prediction['algorithm'],
                prediction['confidence'],
                prediction.get('group_distribution'),
            )
            score.prediction_id = prediction['id']
            score.draw_name = draw_name

            if db.mark_prediction_validated(prediction['id'], list(result.winning_numbers),
                                            score.total_score, score.grade, asdict(score.breakdown)):
                db.add_audit_log(
                    'prediction_validated', 'prediction_history', record_id=prediction['id'],
                    new_data={'algorithm': score.algorithm, 'total_score': score.total_score,
                              'grade': score.grade, 'draw_date': result.draw_date.isoformat()},
                )
                scores.append(score)

        if scores:
            logger.info(f"Validated {len(scores)} prediction(s)")
        return scores

    def get_algorithm_performances(self) -> Dict[str, Dict[str, Any]]:
        validated = [p for p in db.get_predictions(validated=True, limit=100000) if p.get('total_score') is not None]

        by_algorithm: Dict[str, List[Dict[str, Any]]] = {}
        for prediction in validated:
            by_algorithm.setdefault(prediction['algorithm'], []).append(prediction)

        performances = {}
        for algorithm, predictions in by_algorithm.items():
            scores = [p['total_score'] for p in predictions]
            grades = [p['grade'] for p in predictions]

            trend = 'stable'
            recent, older = scores[-5:], scores[:-5]
            if len(recent) >= 3 and len(older) >= 3:
                recent_avg = sum(recent) / len(recent)
                older_avg = sum(older) / len(older)
                if recent_avg > older_avg + TREND_MARGIN:
                    trend = 'improving'
                elif recent_avg < older_avg - TREND_MARGIN:
                    trend = 'declining'

            confidence_accuracy = sum(
                1 - abs(p['confidence'] * 100 - p['total_score']) / 100 for p in predictions
            ) / len(predictions)

            strategy_scores: Dict[str, List[float]] = {}
            for p in predictions:
                if p.get('color_strategy'):
                    strategy_scores.setdefault(p['color_strategy'], []).append(p['total_score'])

            performances[algorithm] = {
                'algorithm_name': algorithm,
                'total_predictions': len(predictions),
                'average_score': round(sum(scores) / len(scores), 2),
                'excellent_count': grades.count('excellent'),
                'good_count': grades.count('good'),
                'average_count': grades.count('average'),
                'poor_count': grades.count('poor'),
                'best_score': max(scores),
                'worst_score': min(scores),
                'trend': trend,
                'confidence_accuracy': round(confidence_accuracy, 4),
                'color_strategy_breakdown': {k: round(sum(v) / len(v), 2) for k, v in strategy_scores.items()},
            }
        return performances

    def get_global_stats(self) -> Dict[str, Any]:
        predictions = db.get_predictions(limit=100000)
        validated = [p for p in predictions if p['validated'] and p.get('total_score') is not None]

        average = sum(p['total_score'] for p in validated) / len(validated) if validated else 0.0
        successes = [p for p in validated if p['grade'] in ('excellent', 'good')]

        top_algorithm, best_avg = None, 0.0
        for algorithm, perf in self.get_algorithm_performances().items():
            if perf['average_score'] > best_avg:
                top_algorithm, best_avg = algorithm, perf['average_score']

        return {
            'total_predictions': len(predictions),
            'total_validated': len(validated),
            'average_score': round(average, 2),
            'success_rate': round(len(successes) / len(validated), 4) if validated else 0.0,
            'top_algorithm': top_algorithm,
        }
