"""
Loto Bonheur - Prediction Data Model
====================================

Value types shared by the scoring pipeline.

Components:
- DrawRecord: one historical draw (immutable)
- PredictionResult: output of a scorer (immutable, self-validating)
- PredictionCategory: algorithm family
- ScoreMap helpers: fixed (90,) numpy arrays indexed by number - 1
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

MIN_NUMBER = 1
MAX_NUMBER = 90
NUMBERS_PER_DRAW = 5
MAX_CONFIDENCE = 0.95

INSUFFICIENT_DATA_FACTOR = "insufficient data"
COMPUTATION_ERROR_FACTOR = "computation error"
FALLBACK_FACTOR = "fallback algorithm"


class PredictionCategory(str, Enum):
    """Algorithm families, used for ranking multipliers and comparison bonuses"""
    STATISTICAL = "statistical"
    ML = "ml"
    BAYESIAN = "bayesian"
    NEURAL = "neural"
    VARIANCE = "variance"
    COLOR = "color"
    CONSENSUS = "consensus"


def is_valid_number(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool) \
        and MIN_NUMBER <= int(value) <= MAX_NUMBER


def is_valid_draw(numbers: Sequence[Any]) -> bool:
    """True when `numbers` holds exactly 5 distinct integers in [1, 90]."""
    if numbers is None or len(numbers) != NUMBERS_PER_DRAW:
        return False
    if not all(is_valid_number(n) for n in numbers):
        return False
    return len(set(int(n) for n in numbers)) == NUMBERS_PER_DRAW


@dataclass(frozen=True)
class DrawRecord:
    """A single historical draw for one draw name"""
    draw_name: str
    draw_date: date
    winning_numbers: Tuple[int, ...]
    machine_numbers: Optional[Tuple[int, ...]] = None

    @classmethod
    def from_values(cls, draw_name: str, draw_date: date, winning_numbers: Iterable[Any],
                    machine_numbers: Optional[Iterable[Any]] = None) -> "DrawRecord":
        """
        Build a validated record.

        Raises:
            ValueError: if the winning numbers are not 5 distinct values in
                [1, 90] or the machine numbers are out of range.
        """
        winning = tuple(int(n) for n in winning_numbers)
        if not is_valid_draw(winning):
            raise ValueError(f"Invalid winning numbers for {draw_name} on {draw_date}: {winning}")

        machine = None
        if machine_numbers is not None:
            machine = tuple(int(n) for n in machine_numbers)
            if len(machine) > NUMBERS_PER_DRAW or not all(is_valid_number(n) for n in machine):
                raise ValueError(f"Invalid machine numbers for {draw_name} on {draw_date}: {machine}")
            if not machine:
                machine = None

        if not draw_name or not str(draw_name).strip():
            raise ValueError("Draw name is required")

        return cls(draw_name=str(draw_name).strip(), draw_date=draw_date,
                   winning_numbers=winning, machine_numbers=machine)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'draw_name': self.draw_name,
            'draw_date': self.draw_date.isoformat(),
            'winning_numbers': list(self.winning_numbers),
            'machine_numbers': list(self.machine_numbers) if self.machine_numbers else None,
        }


@dataclass(frozen=True)
class PredictionResult:
    """
    Output of a scorer.

    Construction validates the result invariants (5 sorted distinct numbers
    in range, bounded finite confidence and rank score) and raises
    ValueError otherwise, so a broken scorer can never emit a malformed
    prediction.
    """
    numbers: Tuple[int, ...]
    confidence: float
    algorithm_name: str
    factors: Tuple[str, ...]
    rank_score: float
    category: PredictionCategory
    accuracy: Optional[float] = None
    expected_roi: Optional[float] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        numbers = tuple(sorted(int(n) for n in self.numbers))
        if not is_valid_draw(numbers):
            raise ValueError(f"{self.algorithm_name}: invalid numbers {self.numbers}")
        object.__setattr__(self, 'numbers', numbers)
        object.__setattr__(self, 'factors', tuple(self.factors))
        object.__setattr__(self, 'category', PredictionCategory(self.category))

        confidence = float(self.confidence)
        if not math.isfinite(confidence) or not 0.0 <= confidence <= MAX_CONFIDENCE:
            raise ValueError(f"{self.algorithm_name}: confidence {confidence} out of bounds")
        object.__setattr__(self, 'confidence', confidence)

        rank_score = float(self.rank_score)
        if not math.isfinite(rank_score) or not 0.0 <= rank_score <= 1.0:
            raise ValueError(f"{self.algorithm_name}: rank score {rank_score} out of bounds")
        object.__setattr__(self, 'rank_score', rank_score)

    @property
    def is_fallback(self) -> bool:
        return FALLBACK_FACTOR in self.factors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'numbers': list(self.numbers),
            'confidence': round(self.confidence, 4),
            'algorithm': self.algorithm_name,
            'factors': list(self.factors),
            'score': round(self.rank_score, 4),
            'category': self.category.value,
            'accuracy': self.accuracy,
            'expected_roi': self.expected_roi,
            'details': self.details,
        }


def empty_score_map() -> np.ndarray:
    """Zero score for every number 1..90 (index = number - 1)."""
    return np.zeros(MAX_NUMBER, dtype=float)


def score_of(score_map: np.ndarray, number: int) -> float:
    return float(score_map[number - 1])


def safe_divide(numerator: float, denominator: float) -> float:
    """Division returning 0.0 for zero or non-finite denominators and results."""
    if denominator == 0 or not math.isfinite(denominator):
        return 0.0
    result = numerator / denominator
    return float(result) if math.isfinite(result) else 0.0


def clamp(value: float, low: float, high: float) -> float:
    if not math.isfinite(value):
        return low
    return max(low, min(high, float(value)))
