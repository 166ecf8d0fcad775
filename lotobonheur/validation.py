"""
Statistical Validation - Loto Bonheur
=====================================

Time-series cross-validation for prediction algorithms.

Folds use expanding chronological training windows: the algorithm sees the
oldest `min_train_size` draws, is scored against the next `test_size` draws,
then the training window grows by `test_size` and the process repeats.
"""

from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from lotobonheur.algorithms.models import DrawRecord, safe_divide
from lotobonheur.algorithms.scorers import Scorer, filter_draws

# Receives newest-first training draws, returns predicted numbers
Algorithm = Callable[[List[DrawRecord]], Sequence[int]]


@dataclass
class ValidationResult:
    mean_score: float = 0.0
    std_deviation: float = 0.0
    min_score: float = 0.0
    max_score: float = 0.0
    fold_scores: List[float] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def folds(self) -> int:
        return len(self.fold_scores)

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['folds'] = self.folds
        return data


def evaluate_prediction(prediction: Sequence[int], test_draws: Sequence[DrawRecord]) -> float:
    """Matched numbers over possible numbers across the test draws."""
    matches = 0
    possible = 0
    for draw in test_draws:
        matches += sum(1 for n in prediction if n in draw.winning_numbers)
        possible += len(draw.winning_numbers)
    return matches / possible if possible > 0 else 0.0


def time_series_validation(algorithm: Algorithm, history: Sequence[DrawRecord],
                           min_train_size: int, test_size: int) -> ValidationResult:
    """
    Run expanding-window validation.

    Args:
        algorithm: Called with newest-first training draws
        history: Newest-first draws
        min_train_size: Draws in the first training window
        test_size: Draws per test fold (and growth step of the training window)

    Returns:
        ValidationResult; all zeros when the history is too short for one fold
    """
    if min_train_size < 1 or test_size < 1:
        raise ValueError("min_train_size and test_size must be positive")

    chronological = list(reversed(history))
    fold_scores: List[float] = []

    for i in range(min_train_size, len(chronological) - test_size, test_size):
        train = chronological[:i][::-1]
        test = chronological[i:i + test_size]
        try:
            fold_scores.append(evaluate_prediction(algorithm(train), test))
        except Exception as e:
            logger.error(f"Validation fold at {i} failed: {e}")
            fold_scores.append(0.0)

    if not fold_scores:
        logger.warning(f"Not enough history for validation ({len(chronological)} draws, "
                       f"{min_train_size + test_size + 1} needed)")
        return ValidationResult()

    mean = float(np.mean(fold_scores))
    std = float(np.std(fold_scores))

    result = ValidationResult(
        mean_score=mean,
        std_deviation=std,
        min_score=float(np.min(fold_scores)),
        max_score=float(np.max(fold_scores)),
        fold_scores=fold_scores,
        confidence=max(0.0, 1 - safe_divide(std, mean)) if mean > 0 else 0.0,
    )
    logger.info(f"Validation: {result.folds} folds, mean={mean:.4f}, std={std:.4f}")
    return result


def validate_scorer(scorer: Scorer, history: Sequence[DrawRecord], draw_name: Optional[str] = None,
                    min_train_size: int = 50, test_size: int = 10) -> ValidationResult:
    """Validate a scorer on the draws of one draw name."""
    draws = filter_draws(history, draw_name)
    logger.info(f"Validating {scorer.name} on {len(draws)} draws")
    return time_series_validation(lambda train: scorer.score(train).numbers,
                                  draws, min_train_size, test_size)
