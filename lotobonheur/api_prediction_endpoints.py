from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field

import lotobonheur.database as db
from lotobonheur.algorithms.color_groups import ColorGroupAnalyzer, recommend_strategy
from lotobonheur.algorithms.color_scorers import ColorStrategyScorer, color_predictions
from lotobonheur.algorithms.ranking import PredictionAggregator
from lotobonheur.algorithms.selector import POLICY_DIVERSE, Selector
from lotobonheur.api_draw_endpoints import resolve_draw_name
from lotobonheur.comparison import compare_algorithms, generate_all_predictions
from lotobonheur.config import get_bool_setting, get_int_setting
from lotobonheur.history import SQLiteHistorySource
from lotobonheur.prediction_scoring import PredictionTracker


class PredictionItem(BaseModel):
    numbers: List[int]
    confidence: float
    algorithm: str
    factors: List[str]
    score: float = Field(..., description="Rank score used for ordering")
    category: str
    accuracy: Optional[float] = None
    expected_roi: Optional[float] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class PredictionListResponse(BaseModel):
    draw_name: str
    generated_at: str
    history_size: int
    predictions: List[PredictionItem]


class TrackRequest(BaseModel):
    target_date: Optional[str] = Field(None, description="Draw date the predictions target (YYYY-MM-DD)")
    include_color: bool = False


prediction_router = APIRouter()
tracker = PredictionTracker()


def build_aggregator(diversity: bool = False, include_color: Optional[bool] = None) -> PredictionAggregator:
    selector = None
    if diversity:
        selector = Selector(policy=POLICY_DIVERSE,
                            min_distance=get_int_setting('predictions', 'diversity_min_distance', 3))
    if include_color is None:
        include_color = get_bool_setting('predictions', 'include_color', False)
    return PredictionAggregator(SQLiteHistorySource(), selector=selector, include_color=include_color)


def _history(draw_name: str):
    return db.get_history(draw_name, limit=get_int_setting('predictions', 'history_limit', 300))


# Declared before /{draw_name} so "performance" is not taken for a draw name
@prediction_router.get("/performance/summary", summary="Tracked prediction performance")
def performance_summary():
    """
    Validates pending predictions against stored results, then reports
    per-algorithm performance and global figures.
    """
    validated = tracker.validate_predictions()
    return {
        "newly_validated": len(validated),
        "algorithms": tracker.get_algorithm_performances(),
        "global": tracker.get_global_stats(),
    }


@prediction_router.get("/{draw_name}", response_model=PredictionListResponse, summary="Ranked predictions")
def get_predictions(
    draw_name: str,
    diversity: bool = Query(False, description="Spread the selected numbers apart"),
    include_color: Optional[bool] = Query(None, description="Also run the color strategies"),
):
    canonical = resolve_draw_name(draw_name)
    aggregator = build_aggregator(diversity, include_color)
    predictions = aggregator.generate_predictions(canonical)
    return {
        "draw_name": canonical,
        "generated_at": datetime.now().isoformat(),
        "history_size": db.count_draw_results(canonical),
        "predictions": [p.to_dict() for p in predictions],
    }


@prediction_router.get("/{draw_name}/comparison", summary="Compare all algorithms")
def get_comparison(draw_name: str):
    canonical = resolve_draw_name(draw_name)
    history = _history(canonical)
    predictions = generate_all_predictions(history, canonical)
    try:
        analysis = compare_algorithms(predictions, history, canonical)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"draw_name": canonical, "history_size": len(history), **analysis.to_dict()}


@prediction_router.get("/{draw_name}/colors", summary="Color group analysis and predictions")
def get_color_predictions(draw_name: str):
    canonical = resolve_draw_name(draw_name)
    history = _history(canonical)
    window = history[:ColorStrategyScorer.window]
    analysis = ColorGroupAnalyzer().analyze(window)
    return {
        "draw_name": canonical,
        "analysis": analysis.to_dict(),
        "recommended_strategy": recommend_strategy(analysis),
        "predictions": [p.to_dict() for p in color_predictions(history, canonical)],
    }


@prediction_router.post("/{draw_name}/track", summary="Generate and store predictions for later scoring")
def track_predictions(draw_name: str, request: Optional[TrackRequest] = Body(None)):
    canonical = resolve_draw_name(draw_name)
    request = request or TrackRequest()
    if request.target_date:
        try:
            datetime.strptime(request.target_date, "%Y-%m-%d")
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid date format: {request.target_date}. Expected YYYY-MM-DD")

    predictions = build_aggregator(include_color=request.include_color).generate_predictions(canonical)
    ids = tracker.save_predictions(predictions, canonical, target_date=request.target_date)
    if len(ids) != len(predictions):
        logger.error(f"Only {len(ids)}/{len(predictions)} predictions stored for {canonical}")
        raise HTTPException(status_code=500, detail="Failed to store predictions")
    return {"draw_name": canonical, "tracked": len(ids), "prediction_ids": ids}
