from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field

import lotobonheur.database as db
from lotobonheur.draw_schedule import DRAW_SCHEDULE, get_next_draw, normalize_draw_name
from lotobonheur.statistics import frequency_summary, number_associations, number_frequencies


class DrawResultResponse(BaseModel):
    id: int
    draw_name: str
    draw_date: str
    winning_numbers: List[int]
    machine_numbers: Optional[List[int]] = None


class DrawListResponse(BaseModel):
    draw_name: str
    total: int
    results: List[DrawResultResponse]


class NextDrawResponse(BaseModel):
    draw_name: str
    day_of_week: str
    time: str
    draw_datetime: str = Field(..., description="ISO datetime in Africa/Abidjan time")


draw_router = APIRouter()


def resolve_draw_name(draw_name: str) -> str:
    """Canonical draw name, or 404 for names outside the weekly schedule."""
    canonical = normalize_draw_name(draw_name)
    if canonical is None:
        raise HTTPException(status_code=404, detail=f"Unknown draw name: {draw_name}")
    return canonical


@draw_router.get("/schedule", summary="Weekly draw schedule")
async def get_schedule():
    return {"draws": [slot.to_dict() for slot in DRAW_SCHEDULE], "total": len(DRAW_SCHEDULE)}


@draw_router.get("/next", response_model=NextDrawResponse, summary="Next scheduled draw")
async def next_draw():
    return get_next_draw()


@draw_router.get("/{draw_name}", response_model=DrawListResponse, summary="Results of one draw")
def get_draw_results(
    draw_name: str,
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of results"),
    offset: int = Query(0, ge=0),
):
    canonical = resolve_draw_name(draw_name)
    rows = db.get_draw_results(canonical, limit=limit, offset=offset)
    return {
        "draw_name": canonical,
        "total": db.count_draw_results(canonical),
        "results": [
            {
                "id": row["id"],
                "draw_name": row["draw_name"],
                "draw_date": row["draw_date"],
                "winning_numbers": row["winning_numbers"],
                "machine_numbers": row["machine_numbers"],
            }
            for row in rows
        ],
    }


@draw_router.get("/{draw_name}/statistics", summary="Frequency statistics of one draw")
def get_draw_statistics(
    draw_name: str,
    number: Optional[int] = Query(None, ge=1, le=90, description="Also return associations of this number"),
):
    canonical = resolve_draw_name(draw_name)
    history = db.get_history(canonical)
    logger.info(f"Computing statistics for {canonical} over {len(history)} draws")

    response = {
        "draw_name": canonical,
        "summary": frequency_summary(history),
        "frequencies": number_frequencies(history),
    }
    if number is not None:
        response["associations"] = number_associations(history, number)
    return response
