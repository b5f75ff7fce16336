from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from focuslog.auth import current_owner_id
from focuslog.models import DecisionCategory
from focuslog.schemas import DecisionArchiveResponse, DecisionCreate, DecisionPatch, DecisionResponse
from focuslog.settings import get_settings
from focuslog import repositories

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/decisions", response_model=DecisionArchiveResponse)
async def list_decisions(
    category: DecisionCategory | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sort_by: str = Query("date"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    owner_id: str = Depends(current_owner_id),
):
    limit = min(limit, get_settings().archive_page_limit_max)
    return await repositories.archive_decisions(
        owner_id,
        category=category.value if category else None,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("/v1/decisions", response_model=DecisionResponse, status_code=201)
async def create_decision(payload: DecisionCreate, owner_id: str = Depends(current_owner_id)):
    try:
        record = await repositories.create_decision(owner_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("Created decision %s for %s", record["id"], owner_id)
    return record


@router.get("/v1/decisions/{entry_id}", response_model=DecisionResponse)
async def get_decision(entry_id: str, owner_id: str = Depends(current_owner_id)):
    record = await repositories.get_decision(owner_id, entry_id)
    if not record:
        raise HTTPException(status_code=404, detail="Decision not found")
    return record


@router.patch("/v1/decisions/{entry_id}", response_model=DecisionResponse)
async def patch_decision(entry_id: str, patch: DecisionPatch, owner_id: str = Depends(current_owner_id)):
    data = patch.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No changes provided")
    try:
        record = await repositories.update_decision(owner_id, entry_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not record:
        raise HTTPException(status_code=404, detail="Decision not found")
    return record


@router.delete("/v1/decisions/{entry_id}")
async def delete_decision(entry_id: str, owner_id: str = Depends(current_owner_id)):
    if not await repositories.delete_decision(owner_id, entry_id):
        raise HTTPException(status_code=404, detail="Decision not found")
    return {"ok": True}
