from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError

from focuslog.auth import current_owner_id
from focuslog.clock import get_now
from focuslog.reports import build_export, export_csv
from focuslog.routes.dashboard import load_all_entries
from focuslog.schemas import ExportResponse

logger = logging.getLogger(__name__)

router = APIRouter()


async def _export_payload(owner_id: str, now: datetime) -> dict:
    try:
        focus, decisions = await load_all_entries(owner_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching export data: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch export data") from exc
    return build_export(focus, decisions, now)


@router.get("/v1/export", response_model=ExportResponse)
async def export_json(
    owner_id: str = Depends(current_owner_id),
    now: datetime = Depends(get_now),
):
    return await _export_payload(owner_id, now)


@router.get("/v1/export.csv")
async def export_as_csv(
    owner_id: str = Depends(current_owner_id),
    now: datetime = Depends(get_now),
):
    payload = await _export_payload(owner_id, now)
    filename = f"focuslog-export-{now.date().isoformat()}.csv"
    return Response(
        content=export_csv(payload),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
