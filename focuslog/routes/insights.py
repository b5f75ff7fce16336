from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from focuslog.auth import current_owner_id
from focuslog.clock import get_now
from focuslog.models import DecisionEntry, FocusEntry
from focuslog.schemas import InsightsResponse
from focuslog.settings import get_settings
from focuslog.stats import generate_insights
from focuslog import repositories

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/insights", response_model=InsightsResponse)
async def smart_insights(
    owner_id: str = Depends(current_owner_id),
    now: datetime = Depends(get_now),
):
    sample_size = get_settings().insight_sample_size
    try:
        focus_rows, decision_rows = await asyncio.gather(
            repositories.list_recent_focus(owner_id, sample_size),
            repositories.list_recent_decisions(owner_id, sample_size),
        )
    except SQLAlchemyError as exc:
        logger.exception("Error generating smart insights: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to generate insights") from exc
    insights = generate_insights(
        [FocusEntry.from_row(row) for row in focus_rows],
        [DecisionEntry.from_row(row) for row in decision_rows],
        now,
    )
    return {"items": [insight.to_dict() for insight in insights]}
