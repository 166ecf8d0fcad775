"""
Loto Bonheur - Ranking Aggregator
=================================

Runs every scorer over the history of one draw name and orders the results
by rank score.
"""

import random
from typing import TYPE_CHECKING, List, Optional, Sequence

from loguru import logger

from lotobonheur.algorithms.color_scorers import color_scorers
from lotobonheur.algorithms.models import COMPUTATION_ERROR_FACTOR, DrawRecord, PredictionResult
from lotobonheur.algorithms.scorers import Scorer, default_scorers, fallback_prediction
from lotobonheur.algorithms.selector import Selector

if TYPE_CHECKING:
    from lotobonheur.history import HistorySource


def sort_predictions(predictions: Sequence[PredictionResult]) -> List[PredictionResult]:
    """Descending rank score; algorithm name breaks ties so scorer order never matters."""
    return sorted(predictions, key=lambda p: (-p.rank_score, p.algorithm_name))


def rank_predictions(history: Sequence[DrawRecord], scorers: Sequence[Scorer],
                     draw_name: Optional[str] = None) -> List[PredictionResult]:
    """Score `history` with every scorer and return the sorted results. No deduplication."""
    results = []
    for scorer in scorers:
        try:
            results.append(scorer.score(history, draw_name=draw_name))
        except Exception as e:
            # Scorer.score already guards; this covers third-party scorers
            name = getattr(scorer, "name", type(scorer).__name__)
            logger.error(f"Scorer {name} raised: {e}")
            if isinstance(scorer, Scorer):
                results.append(scorer.fallback(COMPUTATION_ERROR_FACTOR))
            else:
                results.append(fallback_prediction(str(name), COMPUTATION_ERROR_FACTOR))
    return sort_predictions(results)


class PredictionAggregator:
    """
    Produces the ranked prediction list for a draw name.

    Args:
        history_source: HistorySource returning newest-first DrawRecords
        scorers: scorers to run (defaults to the five core scorers)
        selector: selection policy override passed to the default scorers
        include_color: also run the four color strategies
        rng: random generator used by fallbacks
    """

    def __init__(self, history_source: "HistorySource", scorers: Optional[Sequence[Scorer]] = None,
                 selector: Optional[Selector] = None, include_color: bool = False,
                 rng: Optional[random.Random] = None):
        self.history_source = history_source
        self.scorers: List[Scorer] = list(scorers) if scorers is not None \
            else default_scorers(selector=selector, rng=rng)
        if include_color:
            self.scorers.extend(color_scorers(rng=rng))
        logger.info(f"PredictionAggregator initialized with {len(self.scorers)} scorers")

    @property
    def history_limit(self) -> int:
        return max((s.window for s in self.scorers), default=0)

    def load_history(self, draw_name: str) -> List[DrawRecord]:
        try:
            return list(self.history_source.get_history(draw_name, limit=self.history_limit))
        except Exception as e:
            logger.error(f"Failed to load history for {draw_name}: {e}")
            return []

    def generate_predictions(self, draw_name: str) -> List[PredictionResult]:
        """Ranked predictions for `draw_name`. Never raises."""
        history = self.load_history(draw_name)
        logger.info(f"Generating predictions for {draw_name} from {len(history)} draws")
        return rank_predictions(history, self.scorers, draw_name=draw_name)
