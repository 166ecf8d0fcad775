"""
Admin endpoints for draw result management, audit log and data transfer.

Every mutation writes an audit_logs row.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field

import lotobonheur.database as db
from lotobonheur.algorithms.models import DrawRecord
from lotobonheur.api_key import verify_admin_api_key
from lotobonheur.codec import CodecError, get_codec, pack_json, unpack_json
from lotobonheur.draw_schedule import normalize_draw_name
from lotobonheur.loader import LoaderError, NetworkError, sync_results

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


class DrawResultIn(BaseModel):
    draw_name: str
    draw_date: date
    winning_numbers: List[int] = Field(..., min_length=5, max_length=5)
    machine_numbers: Optional[List[int]] = Field(None, max_length=5)


class FetchRequest(BaseModel):
    month: Optional[str] = Field(None, description="Month filter passed to the results API, e.g. 2024-08")


def _to_record(payload: DrawResultIn) -> DrawRecord:
    """Validate an incoming result, raising 400 on any rule violation."""
    canonical = normalize_draw_name(payload.draw_name)
    if canonical is None:
        raise HTTPException(status_code=400, detail=f"Unknown draw name: {payload.draw_name}")
    try:
        db.validate_draw_date(payload.draw_date)
        return DrawRecord.from_values(
            draw_name=canonical,
            draw_date=payload.draw_date,
            winning_numbers=payload.winning_numbers,
            machine_numbers=payload.machine_numbers or None,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/results", status_code=201, summary="Add a draw result", responses={
    400: {"description": "Invalid draw result"},
    409: {"description": "A result already exists for this draw and date"},
})
def create_result(payload: DrawResultIn, admin: str = Depends(verify_admin_api_key)):
    record = _to_record(payload)
    result_id = db.insert_draw_result(record)
    if result_id is None:
        raise HTTPException(status_code=409, detail=f"Result for {record.draw_name} on {record.draw_date} already exists")
    db.add_audit_log('create', 'draw_results', record_id=result_id, new_data=record.to_dict(), actor=admin)
    logger.info(f"Admin created draw result {result_id}")
    return db.get_draw_result(result_id)


@router.put("/results/{result_id}", summary="Update a draw result", responses={
    400: {"description": "Invalid draw result"},
    404: {"description": "Result not found"},
    409: {"description": "Update conflicts with an existing result"},
})
def update_result(result_id: int, payload: DrawResultIn, admin: str = Depends(verify_admin_api_key)):
    existing = db.get_draw_result(result_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Result not found")
    record = _to_record(payload)
    if not db.update_draw_result(result_id, record):
        raise HTTPException(status_code=409, detail="Result update rejected")
    db.add_audit_log('update', 'draw_results', record_id=result_id,
                     old_data=existing, new_data=record.to_dict(), actor=admin)
    logger.info(f"Admin updated draw result {result_id}")
    return db.get_draw_result(result_id)


@router.delete("/results/{result_id}", summary="Delete a draw result", responses={
    404: {"description": "Result not found"},
})
def delete_result(result_id: int, admin: str = Depends(verify_admin_api_key)):
    existing = db.get_draw_result(result_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Result not found")
    if not db.delete_draw_result(result_id):
        raise HTTPException(status_code=500, detail="Result deletion failed")
    db.add_audit_log('delete', 'draw_results', record_id=result_id, old_data=existing, actor=admin)
    logger.info(f"Admin deleted draw result {result_id}")
    return {"success": True}


@router.get("/audit-logs", summary="Recent audit log entries")
def audit_logs(
    limit: int = Query(100, ge=1, le=1000),
    table_name: Optional[str] = Query(None),
    admin: str = Depends(verify_admin_api_key),
):
    logs = db.get_audit_logs(limit=limit, table_name=table_name)
    return {"logs": logs, "total": len(logs)}


@router.get("/export", summary="Export draw results as a compressed envelope")
def export_results(
    draw_name: Optional[str] = Query(None),
    codec: str = Query("zlib", description="zlib or identity"),
    admin: str = Depends(verify_admin_api_key),
):
    canonical = None
    if draw_name:
        canonical = normalize_draw_name(draw_name)
        if canonical is None:
            raise HTTPException(status_code=400, detail=f"Unknown draw name: {draw_name}")
    try:
        selected_codec = get_codec(codec)
    except CodecError as e:
        raise HTTPException(status_code=400, detail=str(e))

    total = db.count_draw_results(canonical)
    rows = db.get_draw_results(canonical, limit=max(total, 1))
    results = [
        {
            "draw_name": row["draw_name"],
            "draw_date": row["draw_date"],
            "winning_numbers": row["winning_numbers"],
            "machine_numbers": row["machine_numbers"],
        }
        for row in rows
    ]
    envelope = pack_json({
        "exported_at": datetime.now().isoformat(),
        "draw_name": canonical,
        "count": len(results),
        "results": results,
    }, selected_codec)
    db.add_audit_log('export', 'draw_results', new_data={
        'count': len(results), 'draw_name': canonical, 'codec': selected_codec.name,
        'stats': selected_codec.stats.to_dict(),
    }, actor=admin)
    logger.info(f"Exported {len(results)} draw results ({envelope['compressed_size']} bytes)")
    return envelope


@router.post("/import", summary="Import draw results from an export envelope", responses={
    400: {"description": "Envelope could not be decoded"},
})
def import_results(envelope: Dict[str, Any] = Body(...), admin: str = Depends(verify_admin_api_key)):
    try:
        data = unpack_json(envelope)
    except CodecError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        raise HTTPException(status_code=400, detail="Envelope does not contain draw results")

    records, errors = [], []
    for index, item in enumerate(data["results"]):
        try:
            canonical = normalize_draw_name(item.get("draw_name"))
            if canonical is None:
                raise ValueError(f"Unknown draw name: {item.get('draw_name')}")
            draw_date = datetime.strptime(str(item["draw_date"])[:10], "%Y-%m-%d").date()
            db.validate_draw_date(draw_date)
            records.append(DrawRecord.from_values(canonical, draw_date, item["winning_numbers"],
                                                  item.get("machine_numbers")))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            errors.append({"index": index, "error": str(e)})

    stored = db.upsert_draw_results(records)
    summary = {"received": len(data["results"]), "stored": stored, "rejected": len(errors)}
    db.add_audit_log('import', 'draw_results', new_data=summary, actor=admin)
    logger.info(f"Import finished: {summary}")
    return {**summary, "errors": errors}


@router.post("/fetch", summary="Fetch results from the public results API", responses={
    502: {"description": "Results API unreachable or returned unusable data"},
})
def fetch_results(request: Optional[FetchRequest] = Body(None), admin: str = Depends(verify_admin_api_key)):
    month = request.month if request else None
    try:
        report = sync_results(month=month)
    except NetworkError as e:
        logger.error(f"Results fetch failed (status={e.status}): {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except LoaderError as e:
        logger.error(f"Results fetch failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return report.to_dict()
