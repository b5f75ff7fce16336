"""Streak, bucketing, rate and insight computation over journal entries.

Everything here is pure: callers hand in fully materialized entry lists plus an
explicit ``now``/``as_of``. Calendar days are taken in the timezone of that
reference value, so an aware ``now`` in the user's zone gives local days.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Sequence, Tuple

from focuslog.models import (
    Activity,
    ActivityDay,
    DayBucket,
    DecisionEntry,
    FocusEntry,
    FocusStatus,
    Insight,
    InsightKind,
    StreakState,
)

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

MONTH_WEEKS = 4
DAYS_PER_WEEK = 7


class ComputationError(ValueError):
    """Raised only for structurally invalid input, never for empty data."""


def _require_entries(entries, name: str) -> list:
    if entries is None:
        raise ComputationError(f"{name} must be a sequence, got None")
    if isinstance(entries, (str, bytes)):
        raise ComputationError(f"{name} must be a sequence of entries")
    return list(entries)


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    raise ComputationError(f"Expected a date or datetime, got {type(value).__name__}")


def _align(value, reference) -> datetime:
    """Express ``value`` in the timezone frame of ``reference``."""
    value = _as_datetime(value)
    ref_tz = reference.tzinfo if isinstance(reference, datetime) else None
    if ref_tz is None:
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=ref_tz)
    return value.astimezone(ref_tz)


def local_day(value, reference=None) -> date:
    return _align(value, reference).date()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _enum_value(value) -> str:
    return getattr(value, "value", value)


def _is_achieved(entry: FocusEntry) -> bool:
    return entry.status == FocusStatus.ACHIEVED


def _achieved_days(entries: Iterable[FocusEntry], reference) -> set:
    return {local_day(entry.date, reference) for entry in entries if _is_achieved(entry)}


def compute_streak(entries: Sequence[FocusEntry], as_of) -> int:
    """Consecutive days ending at ``as_of`` with at least one ACHIEVED entry.

    The walk starts on ``as_of``'s own day, so nothing achieved today means 0.
    """
    entries = _require_entries(entries, "entries")
    if not entries:
        return 0
    as_of = _as_datetime(as_of)
    achieved_days = _achieved_days(entries, as_of)
    state = StreakState(current_streak=0, cursor_date=as_of.date())
    while state.cursor_date in achieved_days:
        state.current_streak += 1
        state.cursor_date -= timedelta(days=1)
    return state.current_streak


def longest_streak(entries: Sequence[FocusEntry], reference=None) -> int:
    entries = _require_entries(entries, "entries")
    days = sorted(_achieved_days(entries, reference))
    longest = 0
    run = 0
    previous = None
    for day in days:
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def bucket_by_week(entries: Sequence[FocusEntry], window_start, window_end) -> List[DayBucket]:
    """One bucket per calendar day of a seven-day window, oldest first."""
    entries = _require_entries(entries, "entries")
    window_end = _as_datetime(window_end)
    end_day = window_end.date()
    start_day = local_day(window_start, window_end)
    span = (end_day - start_day).days + 1
    if span != DAYS_PER_WEEK:
        raise ComputationError(f"Weekly window must cover 7 days, got {span}")

    buckets = []
    by_day: Dict[date, DayBucket] = {}
    for offset in range(DAYS_PER_WEEK):
        day = start_day + timedelta(days=offset)
        bucket = DayBucket(day_start=day, label=WEEKDAY_NAMES[day.weekday()])
        buckets.append(bucket)
        by_day[day] = bucket

    for entry in entries:
        bucket = by_day.get(local_day(entry.date, window_end))
        if bucket is None:
            continue
        bucket.total_count += 1
        if _is_achieved(entry):
            bucket.achieved_count += 1
    return buckets


def bucket_by_month(entries: Sequence[FocusEntry], window_start) -> List[DayBucket]:
    """Split the 28 days from ``window_start`` into "Week 1".."Week 4"."""
    entries = _require_entries(entries, "entries")
    window_start = _as_datetime(window_start)
    start_day = window_start.date()
    buckets = [
        DayBucket(day_start=start_day + timedelta(days=week * DAYS_PER_WEEK), label=f"Week {week + 1}")
        for week in range(MONTH_WEEKS)
    ]
    for entry in entries:
        offset = (local_day(entry.date, window_start) - start_day).days
        if offset < 0 or offset >= MONTH_WEEKS * DAYS_PER_WEEK:
            continue
        bucket = buckets[offset // DAYS_PER_WEEK]
        bucket.total_count += 1
        if _is_achieved(entry):
            bucket.achieved_count += 1
    return buckets


def completion_rate(achieved: int, total: int) -> int:
    if total > 0:
        return _round_half_up(achieved / total * 100)
    return 0


def _rate(achieved: int, total: int) -> float:
    return achieved / total * 100 if total > 0 else 0


def weekly_trend(this_week_achieved: int, this_week_total: int, last_week_achieved: int, last_week_total: int) -> int:
    """Signed percentage-point change between two weekly completion rates."""
    return _round_half_up(_rate(this_week_achieved, this_week_total) - _rate(last_week_achieved, last_week_total))


def category_distribution(entries: Sequence[DecisionEntry]) -> Dict[str, int]:
    entries = _require_entries(entries, "entries")
    counts: Dict[str, int] = {}
    for entry in entries:
        key = _enum_value(entry.category)
        counts[key] = counts.get(key, 0) + 1
    return counts


def mood_distribution(entries: Sequence[FocusEntry]) -> Dict[str, int]:
    # Moods are free text; "Happy" and "happy " stay separate keys.
    entries = _require_entries(entries, "entries")
    counts: Dict[str, int] = {}
    for entry in entries:
        counts[entry.mood] = counts.get(entry.mood, 0) + 1
    return counts


def _dominant(distribution: Dict[str, int]) -> Tuple[str | None, int]:
    top_key = None
    top_count = 0
    for key, count in distribution.items():
        if count > top_count:
            top_key, top_count = key, count
    return top_key, top_count


def entries_between(entries: Sequence, start, end) -> list:
    """Entries with ``start < date <= end``."""
    end = _as_datetime(end)
    start = _align(start, end)
    return [entry for entry in entries if start < _align(entry.date, end) <= end]


def entries_since(entries: Sequence, start) -> list:
    start = _as_datetime(start)
    return [entry for entry in entries if _align(entry.date, start) >= start]


def entries_before(entries: Sequence, end) -> list:
    end = _as_datetime(end)
    return [entry for entry in entries if _align(entry.date, end) < end]


def start_of_day(value) -> datetime:
    value = _as_datetime(value)
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def count_status(entries: Sequence[FocusEntry], *statuses: FocusStatus) -> int:
    return sum(1 for entry in entries if entry.status in statuses)


def daily_activity(
    focus_entries: Sequence[FocusEntry],
    decision_entries: Sequence[DecisionEntry],
    now,
    days: int = DAYS_PER_WEEK,
) -> List[ActivityDay]:
    focus_entries = _require_entries(focus_entries, "focus_entries")
    decision_entries = _require_entries(decision_entries, "decision_entries")
    now = _as_datetime(now)
    today = now.date()
    activity = [ActivityDay(date=today - timedelta(days=offset)) for offset in range(days - 1, -1, -1)]
    by_day = {item.date: item for item in activity}
    for entry in focus_entries:
        item = by_day.get(local_day(entry.date, now))
        if item is not None:
            item.focus_count += 1
    for entry in decision_entries:
        item = by_day.get(local_day(entry.date, now))
        if item is not None:
            item.decision_count += 1
    return activity


def recent_activity(
    focus_entries: Sequence[FocusEntry],
    decision_entries: Sequence[DecisionEntry],
    limit: int = 5,
    reference=None,
) -> List[Activity]:
    """Newest-first feed of both entry kinds, ordered in the frame of ``reference``."""
    focus_entries = _require_entries(focus_entries, "focus_entries")
    decision_entries = _require_entries(decision_entries, "decision_entries")
    items = [
        Activity(id=entry.id, type="focus", title=entry.title, timestamp=entry.date, status=_enum_value(entry.status))
        for entry in focus_entries
    ]
    items.extend(
        Activity(
            id=entry.id,
            type="decision",
            title=entry.title,
            timestamp=entry.date,
            category=_enum_value(entry.category),
        )
        for entry in decision_entries
    )
    items.sort(key=lambda item: _align(item.timestamp, reference), reverse=True)
    return items[:limit]


def generate_insights(
    focus_entries: Sequence[FocusEntry],
    decision_entries: Sequence[DecisionEntry],
    now,
) -> List[Insight]:
    focus_entries = _require_entries(focus_entries, "focus_entries")
    decision_entries = _require_entries(decision_entries, "decision_entries")
    now = _as_datetime(now)
    insights: List[Insight] = []

    streak = compute_streak(focus_entries, now)
    if streak >= 7:
        insights.append(
            Insight(
                kind=InsightKind.ACHIEVEMENT,
                message=f"Incredible! You've maintained a {streak}-day streak!",
                details="Consistency is key to building lasting habits. Keep it up!",
            )
        )
    elif streak >= 3:
        insights.append(
            Insight(
                kind=InsightKind.TREND,
                message=f"You're building momentum with a {streak}-day streak!",
                details="You're just days away from forming a solid habit. Don't break the chain!",
            )
        )

    if decision_entries:
        top_category, top_count = _dominant(category_distribution(decision_entries))
        if top_count >= 3:
            name = str(top_category).lower()
            insights.append(
                Insight(
                    kind=InsightKind.PATTERN,
                    message=f"Most of your decisions focus on {name}",
                    details=f"You've made {top_count} {name}-related decisions. This shows where your priorities lie.",
                )
            )

    # Partial completions count as achieved for this rule only.
    last_month = entries_between(focus_entries, now - timedelta(days=30), now)
    rate = completion_rate(
        count_status(last_month, FocusStatus.ACHIEVED, FocusStatus.PARTIALLY_ACHIEVED),
        len(last_month),
    )
    if rate >= 80:
        insights.append(
            Insight(
                kind=InsightKind.ACHIEVEMENT,
                message=f"Outstanding {rate}% completion rate!",
                details="You're consistently achieving your goals. This is exceptional!",
            )
        )
    elif 50 <= rate < 80:
        insights.append(
            Insight(
                kind=InsightKind.RECOMMENDATION,
                message=f"Your {rate}% completion rate has room for improvement",
                details="Try setting smaller, more achievable daily goals to boost your success rate.",
            )
        )
    elif len(focus_entries) > 5:
        insights.append(
            Insight(
                kind=InsightKind.RECOMMENDATION,
                message="Consider breaking down your goals into smaller tasks",
                details="Smaller, specific goals are easier to achieve and help build momentum.",
            )
        )

    if len(focus_entries) >= 7:
        mood, mood_count = _dominant(mood_distribution(focus_entries))
        share = completion_rate(mood_count, len(focus_entries))
        if share >= 50:
            insights.append(
                Insight(
                    kind=InsightKind.PATTERN,
                    message=f'You\'re feeling "{mood}" {share}% of the time',
                    details="Your emotional patterns can help you identify what activities and decisions impact your well-being.",
                )
            )

    this_week = len(entries_between(focus_entries, now - timedelta(days=7), now))
    last_week = len(entries_between(focus_entries, now - timedelta(days=14), now - timedelta(days=7)))
    if this_week > last_week and last_week > 0:
        increase = _round_half_up((this_week - last_week) / last_week * 100)
        insights.append(
            Insight(
                kind=InsightKind.TREND,
                message=f"Your activity increased by {increase}% this week!",
                details="You're trending upward. This momentum will compound over time.",
            )
        )
    elif last_week > this_week and this_week > 0:
        insights.append(
            Insight(
                kind=InsightKind.RECOMMENDATION,
                message="Your activity has decreased compared to last week",
                details="Don't lose momentum! Try setting a small goal for tomorrow to get back on track.",
            )
        )

    if len(insights) < 3 and not focus_entries:
        if now.hour < 12:
            insights.append(
                Insight(
                    kind=InsightKind.RECOMMENDATION,
                    message="Start your day strong by setting your focus!",
                    details="Morning planning sets the tone for a productive day.",
                )
            )
        elif now.hour >= 18:
            insights.append(
                Insight(
                    kind=InsightKind.RECOMMENDATION,
                    message="End your day with reflection",
                    details="Evening journaling helps consolidate learnings and prepare for tomorrow.",
                )
            )

    if not insights:
        insights.append(
            Insight(
                kind=InsightKind.RECOMMENDATION,
                message="Start building your data!",
                details="Log your daily focus and decisions to unlock personalized insights.",
            )
        )

    logger.debug("Generated %d insights from %d focus / %d decision entries",
                 len(insights), len(focus_entries), len(decision_entries))
    return insights
