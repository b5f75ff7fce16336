from __future__ import annotations

from datetime import datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field

from focuslog.models import FocusStatus, DecisionCategory, InsightKind


class FocusCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    status: FocusStatus = FocusStatus.PENDING
    mood: str = ""
    notes: str = ""
    date: Optional[datetime] = None
    image: Optional[str] = None


class FocusPatch(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[FocusStatus] = None
    mood: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[datetime] = None
    image: Optional[str] = None


class FocusResponse(BaseModel):
    id: str
    owner_id: str
    title: str
    status: FocusStatus
    mood: str
    notes: str
    entry_date: str
    image: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None


class DecisionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    reason: str = ""
    category: DecisionCategory = DecisionCategory.GENERAL
    date: Optional[datetime] = None
    image: Optional[str] = None


class DecisionPatch(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    reason: Optional[str] = None
    category: Optional[DecisionCategory] = None
    date: Optional[datetime] = None
    image: Optional[str] = None


class DecisionResponse(BaseModel):
    id: str
    owner_id: str
    title: str
    reason: str
    category: DecisionCategory
    entry_date: str
    image: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class FocusArchiveResponse(BaseModel):
    items: List[FocusResponse]
    pagination: Pagination


class DecisionArchiveResponse(BaseModel):
    items: List[DecisionResponse]
    pagination: Pagination


class FocusFilterOptions(BaseModel):
    statuses: List[str]
    moods: List[str]


class InsightResponse(BaseModel):
    kind: InsightKind
    message: str
    details: Optional[str] = None


class InsightsResponse(BaseModel):
    items: List[InsightResponse]


class DashboardStatsResponse(BaseModel):
    todays_focus: Optional[str]
    recent_decisions_count: int
    focus_completion_rate: int
    weekly_trend: int
    recent_activities: List[Dict[str, Any]]
    total_focus_entries: int
    total_decisions: int
    current_streak: int
    longest_streak: int
    category_breakdown: List[Dict[str, Any]]
    mood_distribution: List[Dict[str, Any]]
    weekly_activity: List[Dict[str, Any]]
    monthly_completion: int
    achieved_this_week: int
    pending_focuses: int


class HistoryResponse(BaseModel):
    weekly_data: List[Dict[str, Any]]
    monthly_data: List[Dict[str, Any]]
    decision_categories: List[Dict[str, Any]]
    stats: Dict[str, int]


class ExportResponse(BaseModel):
    focuses: List[Dict[str, Any]]
    decisions: List[Dict[str, Any]]
    stats: Dict[str, Any]
