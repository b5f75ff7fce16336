from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional


class FocusStatus(str, Enum):
    PENDING = "PENDING"
    ACHIEVED = "ACHIEVED"
    NOT_ACHIEVED = "NOT_ACHIEVED"
    PARTIALLY_ACHIEVED = "PARTIALLY_ACHIEVED"


class DecisionCategory(str, Enum):
    CAREER = "CAREER"
    HEALTH = "HEALTH"
    FINANCE = "FINANCE"
    RELATIONSHIPS = "RELATIONSHIPS"
    LIFESTYLE = "LIFESTYLE"
    GENERAL = "GENERAL"
    OTHER = "OTHER"


class InsightKind(str, Enum):
    TREND = "trend"
    PATTERN = "pattern"
    RECOMMENDATION = "recommendation"
    ACHIEVEMENT = "achievement"


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass
class FocusEntry:
    id: str
    owner_id: str
    title: str
    status: FocusStatus
    mood: str
    notes: str
    date: datetime
    image: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FocusEntry":
        return cls(
            id=str(row["id"]),
            owner_id=str(row["owner_id"]),
            title=row.get("title") or "",
            status=FocusStatus(row.get("status") or FocusStatus.PENDING.value),
            mood=row.get("mood") or "",
            notes=row.get("notes") or "",
            date=_parse_timestamp(row["entry_date"]),
            image=row.get("image"),
        )


@dataclass
class DecisionEntry:
    id: str
    owner_id: str
    title: str
    reason: str
    category: DecisionCategory
    date: datetime
    image: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DecisionEntry":
        return cls(
            id=str(row["id"]),
            owner_id=str(row["owner_id"]),
            title=row.get("title") or "",
            reason=row.get("reason") or "",
            category=DecisionCategory(row.get("category") or DecisionCategory.GENERAL.value),
            date=_parse_timestamp(row["entry_date"]),
            image=row.get("image"),
        )


@dataclass
class DayBucket:
    """Counts for one slice of the calendar.

    Daily buckets carry a weekday label ("Mon"); the four monthly buckets are
    labelled "Week 1".."Week 4" and span seven days each.
    """

    day_start: date
    label: str
    achieved_count: int = 0
    total_count: int = 0

    @property
    def completed(self) -> int:
        return self.achieved_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day_start": self.day_start.isoformat(),
            "label": self.label,
            "completed": self.achieved_count,
            "total": self.total_count,
        }


@dataclass
class StreakState:
    current_streak: int
    cursor_date: date


@dataclass
class Insight:
    kind: InsightKind
    message: str
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["kind"] = self.kind.value
        return payload


@dataclass
class ActivityDay:
    date: date
    focus_count: int = 0
    decision_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "focus_count": self.focus_count,
            "decision_count": self.decision_count,
        }


@dataclass
class Activity:
    id: str
    type: str
    title: str
    timestamp: datetime
    status: Optional[str] = None
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["timestamp"] = self.timestamp.isoformat()
        return payload
