from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from focuslog.auth import current_owner_id
from focuslog.models import FocusStatus
from focuslog.schemas import FocusArchiveResponse, FocusCreate, FocusFilterOptions, FocusPatch, FocusResponse
from focuslog.settings import get_settings
from focuslog import repositories

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/focus", response_model=FocusArchiveResponse)
async def list_focus(
    status: FocusStatus | None = Query(None),
    mood: str | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sort_by: str = Query("date"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    owner_id: str = Depends(current_owner_id),
):
    limit = min(limit, get_settings().archive_page_limit_max)
    return await repositories.archive_focus(
        owner_id,
        status=status.value if status else None,
        mood=mood,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/v1/focus/options", response_model=FocusFilterOptions)
async def focus_options(owner_id: str = Depends(current_owner_id)):
    return await repositories.focus_filter_options(owner_id)


@router.post("/v1/focus", response_model=FocusResponse, status_code=201)
async def create_focus(payload: FocusCreate, owner_id: str = Depends(current_owner_id)):
    try:
        record = await repositories.create_focus(owner_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("Created focus entry %s for %s", record["id"], owner_id)
    return record


@router.get("/v1/focus/{entry_id}", response_model=FocusResponse)
async def get_focus(entry_id: str, owner_id: str = Depends(current_owner_id)):
    record = await repositories.get_focus(owner_id, entry_id)
    if not record:
        raise HTTPException(status_code=404, detail="Focus entry not found")
    return record


@router.patch("/v1/focus/{entry_id}", response_model=FocusResponse)
async def patch_focus(entry_id: str, patch: FocusPatch, owner_id: str = Depends(current_owner_id)):
    data = patch.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No changes provided")
    try:
        record = await repositories.update_focus(owner_id, entry_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not record:
        raise HTTPException(status_code=404, detail="Focus entry not found")
    return record


@router.delete("/v1/focus/{entry_id}")
async def delete_focus(entry_id: str, owner_id: str = Depends(current_owner_id)):
    if not await repositories.delete_focus(owner_id, entry_id):
        raise HTTPException(status_code=404, detail="Focus entry not found")
    return {"ok": True}
