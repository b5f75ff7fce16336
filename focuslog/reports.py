"""Dashboard, history and export payloads assembled from the stats engine."""
from __future__ import annotations

import csv
import io
from datetime import timedelta
from typing import Any, Dict, List, Sequence

from focuslog.models import DecisionEntry, FocusEntry, FocusStatus
from focuslog.stats import (
    bucket_by_month,
    bucket_by_week,
    category_distribution,
    completion_rate,
    compute_streak,
    count_status,
    daily_activity,
    entries_before,
    entries_since,
    local_day,
    longest_streak,
    mood_distribution,
    recent_activity,
    start_of_day,
    weekly_trend,
)

CHART_COLORS = [
    "#5B8FF9",
    "#5AD8A6",
    "#F6BD16",
    "#E8684A",
    "#6F5EF9",
]

CSV_COLUMNS = ["type", "date", "title", "status", "mood", "notes", "category", "reason"]


def _newest_first(entries: Sequence) -> list:
    return sorted(entries, key=lambda entry: entry.date, reverse=True)


def build_dashboard_stats(
    focus_entries: Sequence[FocusEntry],
    decision_entries: Sequence[DecisionEntry],
    now,
) -> Dict[str, Any]:
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)
    month_ago = now - timedelta(days=30)
    start_of_month = start_of_day(now).replace(day=1)
    today = local_day(now, now)

    todays = [entry for entry in _newest_first(focus_entries) if local_day(entry.date, now) == today]

    last_30_days = entries_since(focus_entries, month_ago)
    this_week = entries_since(focus_entries, week_ago)
    last_week = entries_before(entries_since(focus_entries, two_weeks_ago), week_ago)
    this_week_achieved = count_status(this_week, FocusStatus.ACHIEVED)

    this_month = entries_since(focus_entries, start_of_month)

    return {
        "todays_focus": todays[0].title if todays else None,
        "recent_decisions_count": len(entries_since(decision_entries, week_ago)),
        "focus_completion_rate": completion_rate(count_status(last_30_days, FocusStatus.ACHIEVED), len(last_30_days)),
        "weekly_trend": weekly_trend(
            this_week_achieved,
            len(this_week),
            count_status(last_week, FocusStatus.ACHIEVED),
            len(last_week),
        ),
        "recent_activities": [
            item.to_dict() for item in recent_activity(focus_entries, decision_entries, limit=5, reference=now)
        ],
        "total_focus_entries": len(focus_entries),
        "total_decisions": len(decision_entries),
        "current_streak": compute_streak(focus_entries, now),
        "longest_streak": longest_streak(focus_entries, now),
        "category_breakdown": [
            {"category": category, "count": count}
            for category, count in category_distribution(decision_entries).items()
        ],
        "mood_distribution": [
            {"mood": mood, "count": count} for mood, count in mood_distribution(focus_entries).items()
        ],
        "weekly_activity": [item.to_dict() for item in daily_activity(focus_entries, decision_entries, now)],
        "monthly_completion": completion_rate(count_status(this_month, FocusStatus.ACHIEVED), len(this_month)),
        "achieved_this_week": this_week_achieved,
        "pending_focuses": count_status(focus_entries, FocusStatus.PENDING),
    }


def build_history(
    focus_entries: Sequence[FocusEntry],
    decision_entries: Sequence[DecisionEntry],
    now,
) -> Dict[str, Any]:
    week_start = start_of_day(now) - timedelta(days=6)
    month_start = start_of_day(now) - timedelta(days=27)

    weekly = bucket_by_week(focus_entries, week_start, now)
    monthly = bucket_by_month(focus_entries, month_start)

    weekly_focus = entries_since(focus_entries, week_start)
    monthly_focus = entries_since(focus_entries, month_start)

    categories = [
        {"name": name, "value": value, "color": CHART_COLORS[index % len(CHART_COLORS)]}
        for index, (name, value) in enumerate(category_distribution(decision_entries).items())
    ]

    return {
        "weekly_data": [
            {"day": bucket.label, "date": bucket.day_start.isoformat(), "completed": bucket.completed}
            for bucket in weekly
        ],
        "monthly_data": [{"week": bucket.label, "completed": bucket.completed} for bucket in monthly],
        "decision_categories": categories,
        "stats": {
            "total_focus_entries": len(focus_entries),
            "total_decisions": len(decision_entries),
            "current_streak": compute_streak(focus_entries, now),
            "weekly_completion": completion_rate(
                count_status(weekly_focus, FocusStatus.ACHIEVED), len(weekly_focus)
            ),
            "monthly_completion": completion_rate(
                count_status(monthly_focus, FocusStatus.ACHIEVED), len(monthly_focus)
            ),
        },
    }


def build_export(
    focus_entries: Sequence[FocusEntry],
    decision_entries: Sequence[DecisionEntry],
    reference=None,
) -> Dict[str, Any]:
    achieved = count_status(focus_entries, FocusStatus.ACHIEVED)
    return {
        "focuses": [
            {
                "date": local_day(entry.date, reference).isoformat(),
                "title": entry.title,
                "status": getattr(entry.status, "value", entry.status),
                "mood": entry.mood,
                "notes": entry.notes,
            }
            for entry in _newest_first(focus_entries)
        ],
        "decisions": [
            {
                "date": local_day(entry.date, reference).isoformat(),
                "title": entry.title,
                "category": getattr(entry.category, "value", entry.category),
                "reason": entry.reason,
            }
            for entry in _newest_first(decision_entries)
        ],
        "stats": {
            "total_focuses": len(focus_entries),
            "achieved_focuses": achieved,
            "completion_rate": completion_rate(achieved, len(focus_entries)),
            "total_decisions": len(decision_entries),
            "category_counts": category_distribution(decision_entries),
        },
    }


def export_csv(export: Dict[str, Any]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    rows: List[Dict[str, Any]] = []
    rows.extend({"type": "focus", **row} for row in export.get("focuses", []))
    rows.extend({"type": "decision", **row} for row in export.get("decisions", []))
    writer.writerows(rows)
    return buffer.getvalue()
