"""
Loto Bonheur - Prediction Algorithms
====================================

Feature extractors, heuristic scorers, number selection and ranking for
the 5/90 Loto Bonheur draws.

Pipeline: feature extractors -> scorers -> selector -> ranking aggregator.
"""

from .models import (
    DrawRecord,
    PredictionCategory,
    PredictionResult,
    empty_score_map,
    is_valid_draw,
)

from .selector import Selector, select_numbers

from .scorers import (
    Scorer,
    BaseScorer,
    fallback_prediction,
    WeightedFrequencyScorer,
    PatternRecognitionScorer,
    FrequencyRatioScorer,
    RecurrenceEnsembleScorer,
    VarianceAnalysisScorer,
    default_scorers,
)

from .color_groups import COLOR_GROUPS, ColorGroupAnalyzer, get_color_group, recommend_strategy
from .color_scorers import (
    BalancedColorScorer,
    MomentumColorScorer,
    CorrelationColorScorer,
    HybridColorScorer,
    color_predictions,
)

from .ranking import PredictionAggregator, rank_predictions, sort_predictions

__all__ = [
    # Model
    'DrawRecord',
    'PredictionCategory',
    'PredictionResult',
    'empty_score_map',
    'is_valid_draw',

    # Selection
    'Selector',
    'select_numbers',

    # Scorers
    'Scorer',
    'BaseScorer',
    'fallback_prediction',
    'WeightedFrequencyScorer',
    'PatternRecognitionScorer',
    'FrequencyRatioScorer',
    'RecurrenceEnsembleScorer',
    'VarianceAnalysisScorer',
    'default_scorers',

    # Color groups
    'COLOR_GROUPS',
    'ColorGroupAnalyzer',
    'get_color_group',
    'recommend_strategy',
    'BalancedColorScorer',
    'MomentumColorScorer',
    'CorrelationColorScorer',
    'HybridColorScorer',
    'color_predictions',

    # Ranking
    'PredictionAggregator',
    'rank_predictions',
    'sort_predictions',
]
