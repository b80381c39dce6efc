"""
Dialer Endpoints
Power-dialer lead management, call queue, dispositions, CSV import and stats
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import ValidationError

from homefield.api.dependencies import get_current_identity, get_dialer_service
from homefield.core.errors import InvalidInputError
from homefield.domain.models.dialer import DispositionRequest, ImportRow
from homefield.domain.models.tenant import Identity
from homefield.domain.services.dialer_service import DialerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal/dialer", tags=["dialer"])


@router.get("/leads")
async def list_leads(
    status: Optional[str] = None,
    timezone: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    identity: Identity = Depends(get_current_identity),
    dialer: DialerService = Depends(get_dialer_service),
):
    return dialer.list_leads(status=status, timezone_bucket=timezone, search=search, limit=limit, offset=offset)


@router.get("/leads/{lead_id}")
async def get_lead(
    lead_id: str,
    identity: Identity = Depends(get_current_identity),
    dialer: DialerService = Depends(get_dialer_service),
):
    """Lead with its call history, newest attempt first."""
    return dialer.get_lead_with_history(lead_id)


@router.patch("/leads/{lead_id}")
async def update_lead(
    lead_id: str,
    payload: Dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    dialer: DialerService = Depends(get_dialer_service),
):
    return {"lead": dialer.update_lead(lead_id, payload)}


@router.delete("/leads/{lead_id}")
async def delete_lead(
    lead_id: str,
    identity: Identity = Depends(get_current_identity),
    dialer: DialerService = Depends(get_dialer_service),
):
    dialer.delete_lead(lead_id)
    return {"success": True}


@router.get("/queue")
async def get_queue(
    timezone: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    identity: Identity = Depends(get_current_identity),
    dialer: DialerService = Depends(get_dialer_service),
):
    """
    Call queue for the current hour.

    ``timezone`` overrides the bucket the cascade schedule would pick; an
    unknown bucket is a plain filter that matches no queued leads.
    """
    return dialer.build_queue(timezone_bucket=timezone, limit=limit)


@router.post("/disposition")
async def record_disposition(
    payload: Dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    dialer: DialerService = Depends(get_dialer_service),
):
    try:
        request = DispositionRequest.from_payload(payload)
    except ValidationError:
        raise InvalidInputError("Invalid outcome")

    result = dialer.record_disposition(request)
    logger.info(f"Disposition {request.outcome.value} recorded for lead {request.lead_id}")
    return result


@router.post("/import")
async def import_leads(
    payload: Dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    dialer: DialerService = Depends(get_dialer_service),
):
    """Import CSV rows: {leads: [...], batchName?}."""
    raw_rows = payload.get("leads")
    if not isinstance(raw_rows, list) or not raw_rows:
        raise InvalidInputError("No leads provided")

    try:
        rows = [ImportRow.model_validate(row) for row in raw_rows]
    except ValidationError:
        raise InvalidInputError("Malformed lead row")

    result = dialer.import_leads(rows, batch_name=payload.get("batchName"))
    logger.info(
        f"Dialer import: {result.imported} imported, {result.updated} updated, "
        f"{result.duplicates} duplicates, {len(result.errors)} errors"
    )
    return result.model_dump()


@router.get("/stats")
async def get_stats(
    identity: Identity = Depends(get_current_identity),
    dialer: DialerService = Depends(get_dialer_service),
):
    return dialer.daily_stats()
