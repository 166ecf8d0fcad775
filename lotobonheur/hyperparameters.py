"""
Hyperparameter Optimization - Loto Bonheur
==========================================

Grid and random search over scorer constructor parameters.

The evaluation metric rewards distinct, spread-out selections:
0.5 * distinct_ratio + 0.5 * min(1, sum(|gaps|) / (90 * len)). An algorithm
that raises for a parameter set scores 0 for it.
"""

import itertools
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from loguru import logger

from lotobonheur.algorithms.models import MAX_NUMBER, DrawRecord
from lotobonheur.algorithms.scorers import BaseScorer

Params = Dict[str, float]
ParamAlgorithm = Callable[[Params, Sequence[DrawRecord]], Sequence[int]]
ProgressCallback = Callable[["OptimizationProgress"], None]

DEFAULT_HYPERPARAMETERS = {
    'weighted_frequency': {
        'decay_rate': 0.05,
        'seasonal_weight': 0.1,
    },
    'pattern_recognition': {
        'cluster_weight': 0.33,
        'pattern_weight': 0.33,
        'cyclical_weight': 0.33,
    },
}

RECOMMENDED_PARAM_RANGES = {
    'weighted_frequency': {
        'decay_rate': (0.01, 0.15),
        'seasonal_weight': (0.05, 0.2),
    },
    'pattern_recognition': {
        'cluster_weight': (0.2, 0.5),
        'pattern_weight': (0.2, 0.5),
        'cyclical_weight': (0.2, 0.5),
    },
}


@dataclass
class OptimizationProgress:
    iteration: int
    total_iterations: int
    current_best_score: float
    current_params: Params


@dataclass
class OptimizationResult:
    best_params: Params
    best_score: float
    all_results: List[Tuple[Params, float]] = field(default_factory=list)
    convergence_history: List[float] = field(default_factory=list)
    iterations: int = 0
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'best_params': self.best_params,
            'best_score': self.best_score,
            'all_results': [{'params': p, 'score': s} for p, s in self.all_results],
            'convergence_history': self.convergence_history,
            'iterations': self.iterations,
            'duration': self.duration,
        }


def evaluate_params(algorithm: ParamAlgorithm, params: Params, data: Sequence[DrawRecord]) -> float:
    try:
        prediction = list(algorithm(params, data))
        if not prediction:
            return 0.0
        distinct = len(set(prediction)) / len(prediction)
        spread = sum(abs(prediction[i] - prediction[i - 1]) for i in range(1, len(prediction)))
        spread = min(1.0, spread / (MAX_NUMBER * len(prediction)))
        return distinct * 0.5 + spread * 0.5
    except Exception as e:
        logger.error(f"Parameter evaluation failed for {params}: {e}")
        return 0.0


def generate_combinations(param_grid: Dict[str, Sequence[float]]) -> List[Params]:
    keys = list(param_grid)
    return [dict(zip(keys, values)) for values in itertools.product(*(param_grid[k] for k in keys))]


def sample_random_params(param_ranges: Dict[str, Tuple[float, float]], rng: random.Random) -> Params:
    return {key: rng.uniform(low, high) for key, (low, high) in param_ranges.items()}


def _search(label: str, algorithm: ParamAlgorithm, data: Sequence[DrawRecord], candidates,
            total: int, on_progress: Optional[ProgressCallback]) -> OptimizationResult:
    start = time.time()
    all_results: List[Tuple[Params, float]] = []
    convergence: List[float] = []
    best = float('-inf')
    log_every = max(1, -(-total // 10))

    for i, params in enumerate(candidates, start=1):
        score = evaluate_params(algorithm, params, data)
        all_results.append((params, score))
        best = max(best, score)
        convergence.append(best)

        if on_progress:
            on_progress(OptimizationProgress(i, total, best, params))
        if i % log_every == 0:
            logger.debug(f"{label}: {i / total * 100:.1f}% - best {best:.4f}")

    if not all_results:
        raise ValueError(f"{label}: no parameter combination to evaluate")

    all_results.sort(key=lambda item: item[1], reverse=True)
    best_params, best_score = all_results[0]
    duration = time.time() - start
    logger.info(f"{label} finished in {duration:.2f}s - best score {best_score:.4f} with {best_params}")

    return OptimizationResult(
        best_params=best_params,
        best_score=best_score,
        all_results=all_results,
        convergence_history=convergence,
        iterations=total,
        duration=duration,
    )


def grid_search(algorithm: ParamAlgorithm, data: Sequence[DrawRecord],
                param_grid: Dict[str, Sequence[float]],
                on_progress: Optional[ProgressCallback] = None) -> OptimizationResult:
    """Evaluate every combination of the grid values."""
    combinations = generate_combinations(param_grid)
    logger.info(f"Grid search: {len(combinations)} combinations")
    return _search("Grid search", algorithm, data, combinations, len(combinations), on_progress)


def random_search(algorithm: ParamAlgorithm, data: Sequence[DrawRecord],
                  param_ranges: Dict[str, Tuple[float, float]], iterations: int = 100,
                  on_progress: Optional[ProgressCallback] = None,
                  rng: Optional[random.Random] = None) -> OptimizationResult:
    """Evaluate `iterations` parameter sets drawn uniformly from the ranges."""
    rng = rng or random.Random()
    logger.info(f"Random search: {iterations} iterations")
    candidates = (sample_random_params(param_ranges, rng) for _ in range(iterations))
    return _search("Random search", algorithm, data, candidates, iterations, on_progress)


def scorer_algorithm(scorer_class: Type[BaseScorer], draw_name: Optional[str] = None,
                     seed: int = 0) -> ParamAlgorithm:
    """Adapt a scorer class so its constructor parameters can be searched."""
    def run(params: Params, data: Sequence[DrawRecord]) -> Sequence[int]:
        scorer = scorer_class(rng=random.Random(seed), **params)
        return scorer.score(data, draw_name=draw_name).numbers
    return run
