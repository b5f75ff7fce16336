from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from focuslog.auth import current_owner_id
from focuslog.clock import get_now
from focuslog.models import DecisionEntry, FocusEntry
from focuslog.reports import build_dashboard_stats, build_history
from focuslog.schemas import DashboardStatsResponse, HistoryResponse
from focuslog import repositories

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_all_entries(owner_id: str) -> tuple[list[FocusEntry], list[DecisionEntry]]:
    focus_rows, decision_rows = await asyncio.gather(
        repositories.list_focus_entries(owner_id),
        repositories.list_decision_entries(owner_id),
    )
    return (
        [FocusEntry.from_row(row) for row in focus_rows],
        [DecisionEntry.from_row(row) for row in decision_rows],
    )


@router.get("/v1/dashboard", response_model=DashboardStatsResponse)
async def dashboard_stats(
    owner_id: str = Depends(current_owner_id),
    now: datetime = Depends(get_now),
):
    try:
        focus, decisions = await load_all_entries(owner_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching dashboard stats: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch dashboard statistics") from exc
    return build_dashboard_stats(focus, decisions, now)


@router.get("/v1/history", response_model=HistoryResponse)
async def history(
    owner_id: str = Depends(current_owner_id),
    now: datetime = Depends(get_now),
):
    try:
        focus, decisions = await load_all_entries(owner_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching history data: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch history data") from exc
    return build_history(focus, decisions, now)
