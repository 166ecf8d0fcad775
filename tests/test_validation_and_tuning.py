"""
Tests for time-series validation and hyperparameter search
"""

import random
from datetime import date

import numpy as np
import pytest

from conftest import make_draws
from lotobonheur.algorithms.models import DrawRecord
from lotobonheur.algorithms.scorers import PatternRecognitionScorer, WeightedFrequencyScorer
from lotobonheur.hyperparameters import (
    DEFAULT_HYPERPARAMETERS,
    RECOMMENDED_PARAM_RANGES,
    evaluate_params,
    generate_combinations,
    grid_search,
    random_search,
    scorer_algorithm,
)
from lotobonheur.validation import (
    ValidationResult,
    evaluate_prediction,
    time_series_validation,
    validate_scorer,
)


def _spaced(params, data):
    gap = params['gap']
    return [1 + i * gap for i in range(5)]


class TestEvaluatePrediction:

    def test_full_match(self):
        draws = [DrawRecord.from_values("Reveil", date(2024, 1, 1), [1, 2, 3, 4, 5])] * 2
        assert evaluate_prediction([1, 2, 3, 4, 5], draws) == 1.0

    def test_partial_match(self):
        draws = [
            DrawRecord.from_values("Reveil", date(2024, 1, 1), [1, 2, 3, 4, 5]),
            DrawRecord.from_values("Reveil", date(2024, 1, 8), [10, 20, 30, 40, 50]),
        ]
        assert evaluate_prediction([1, 2, 10, 60, 70], draws) == pytest.approx(0.3)

    def test_no_test_draws(self):
        assert evaluate_prediction([1, 2, 3, 4, 5], []) == 0.0


class TestTimeSeriesValidation:

    def test_expanding_folds(self):
        """Training windows grow by test_size and are handed over newest-first"""
        history = make_draws(60)
        seen = []

        def algorithm(train):
            seen.append((len(train), train[0].draw_date))
            return [1, 2, 3, 4, 5]

        result = time_series_validation(algorithm, history, min_train_size=20, test_size=10)

        assert result.folds == 3
        assert [size for size, _ in seen] == [20, 30, 40]
        assert [newest for _, newest in seen] == [history[40].draw_date, history[30].draw_date,
                                                 history[20].draw_date]

    def test_perfect_algorithm(self):
        history = make_draws(40, fixed=(1, 2, 3, 4, 5))
        result = time_series_validation(lambda train: [1, 2, 3, 4, 5], history, 10, 5)
        assert result.mean_score == 1.0
        assert result.std_deviation == 0.0
        assert result.confidence == 1.0

    def test_failing_fold_scores_zero(self):
        history = make_draws(60, fixed=(1, 2, 3, 4, 5))
        calls = []

        def algorithm(train):
            calls.append(len(train))
            if len(calls) == 2:
                raise RuntimeError("fold failure")
            return [1, 2, 3, 4, 5]

        result = time_series_validation(algorithm, history, 20, 10)
        assert result.fold_scores == [1.0, 0.0, 1.0]
        assert result.min_score == 0.0
        assert result.max_score == 1.0

        # Population standard deviation over the fold scores
        assert result.mean_score == pytest.approx(2 / 3)
        assert result.std_deviation == pytest.approx(np.std([1.0, 0.0, 1.0]))
        assert result.confidence == pytest.approx(1 - np.std([1.0, 0.0, 1.0]) / (2 / 3))
        assert type(result.std_deviation) is float

    def test_short_history(self):
        result = time_series_validation(lambda train: [1, 2, 3, 4, 5], make_draws(30), 20, 10)
        assert result == ValidationResult()
        assert result.to_dict()['folds'] == 0

    def test_zero_mean_confidence(self):
        history = make_draws(40, fixed=(1, 2, 3, 4, 5))
        result = time_series_validation(lambda train: [86, 87, 88, 89, 90], history, 10, 5)
        assert result.mean_score == 0.0
        assert result.confidence == 0.0

    @pytest.mark.parametrize("min_train,test", [(0, 10), (10, 0)])
    def test_invalid_sizes(self, min_train, test):
        with pytest.raises(ValueError):
            time_series_validation(lambda train: [1, 2, 3, 4, 5], make_draws(60), min_train, test)

    def test_validate_scorer(self, sample_draws):
        result = validate_scorer(WeightedFrequencyScorer(), sample_draws, draw_name="Reveil",
                                 min_train_size=50, test_size=10)
        assert result.folds == 6
        assert all(0.0 <= score <= 1.0 for score in result.fold_scores)


class TestParameterEvaluation:

    def test_spread_metric(self):
        assert evaluate_params(lambda p, d: [1, 2, 3, 4, 5], {}, []) == pytest.approx(0.5 + 4 / 900)

    def test_duplicates_penalised(self):
        assert evaluate_params(lambda p, d: [1, 1, 1, 1, 1], {}, []) == pytest.approx(0.1)

    def test_failure_scores_zero(self):
        def broken(params, data):
            raise RuntimeError("bad params")
        assert evaluate_params(broken, {}, []) == 0.0

    def test_empty_prediction(self):
        assert evaluate_params(lambda p, d: [], {}, []) == 0.0

    def test_combinations(self):
        combos = generate_combinations({'a': [1, 2], 'b': [3, 4, 5]})
        assert len(combos) == 6
        assert {'a': 2, 'b': 5} in combos


class TestSearch:

    def test_grid_search_picks_widest_spread(self):
        progress = []
        result = grid_search(_spaced, [], {'gap': [1, 5, 20]}, on_progress=progress.append)

        assert result.best_params == {'gap': 20}
        assert result.best_score == pytest.approx(0.5 + 80 / 900)
        assert result.iterations == 3
        assert [score for _, score in result.all_results] == sorted(
            (score for _, score in result.all_results), reverse=True)
        assert result.convergence_history == sorted(result.convergence_history)
        assert [p.iteration for p in progress] == [1, 2, 3]
        assert progress[-1].total_iterations == 3

    def test_empty_grid(self):
        with pytest.raises(ValueError):
            grid_search(_spaced, [], {'gap': []})

    def test_random_search_on_scorer(self, sample_draws):
        algorithm = scorer_algorithm(WeightedFrequencyScorer, draw_name="Reveil")
        result = random_search(algorithm, sample_draws, RECOMMENDED_PARAM_RANGES['weighted_frequency'],
                               iterations=5, rng=random.Random(4))

        assert len(result.all_results) == 5
        assert result.best_score > 0.5
        for params, _ in result.all_results:
            assert 0.01 <= params['decay_rate'] <= 0.15
        assert set(result.to_dict()) == {
            'best_params', 'best_score', 'all_results', 'convergence_history', 'iterations', 'duration'}

    def test_default_parameters_are_constructor_arguments(self, long_history):
        """The documented defaults can be passed straight to the scorers"""
        WeightedFrequencyScorer(**DEFAULT_HYPERPARAMETERS['weighted_frequency'])
        scorer = PatternRecognitionScorer(**DEFAULT_HYPERPARAMETERS['pattern_recognition'])
        assert len(scorer.score(long_history).numbers) == 5
