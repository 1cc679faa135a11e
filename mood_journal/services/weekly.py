"""
Weekly aggregation over an in-memory task list.

Everything here is a pure function of (tasks, daily goal, today). Tasks are
anything exposing ``done`` and ``created_at`` (ORM rows, client dataclasses)
or mappings with the same keys.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional

from mood_journal.services.common import parse_dt

DEFAULT_DAILY_GOAL = 5
DAYS_IN_WEEK = 7
# Five completed tasks fill a day's bar, whatever the daily goal is
INTENSITY_PER_TASK = 20

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class WeeklySummaryDay:
    date_key: str
    label: str
    completed: int
    intensity: int


@dataclass(frozen=True)
class WeeklyReport:
    days: List[WeeklySummaryDay] = field(default_factory=list)
    daily_goal: int = DEFAULT_DAILY_GOAL
    completed_today: int = 0
    completion_rate_today: int = 0
    weekly_goal: int = DEFAULT_DAILY_GOAL * DAYS_IN_WEEK
    weekly_total: int = 0


def _field(task: Any, name: str) -> Any:
    if isinstance(task, dict):
        return task.get(name)
    return getattr(task, name, None)


def _to_date(value: Any, tz: tzinfo = timezone.utc) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
        return dt.astimezone(tz).date()
    if isinstance(value, date):
        return value
    dt = parse_dt(value)
    return dt.astimezone(tz).date() if dt else None


def date_key(value: Any, tz: tzinfo = timezone.utc) -> str:
    """Format a date, datetime or timestamp string as ``YYYY-MM-DD``."""
    d = _to_date(value, tz)
    if d is None:
        raise ValueError(f"Cannot derive a date from {value!r}")
    return d.isoformat()


def clamp_goal(goal: Any) -> int:
    """Daily goal of at least 1. Strings keep their leading integer ("2.7" is 2)."""
    if isinstance(goal, str):
        match = _LEADING_INT.match(goal)
        return max(1, int(match.group(1))) if match else 1
    try:
        return max(1, int(goal))
    except (TypeError, ValueError, OverflowError):
        return 1


def intensity(completed: int) -> int:
    return max(0, min(100, completed * INTENSITY_PER_TASK))


def completed_on(tasks: Iterable[Any], day: date, tz: tzinfo = timezone.utc) -> int:
    """Count done tasks created on ``day``; tasks without a timestamp count as ``day``."""
    count = 0
    for t in tasks:
        if not _field(t, "done"):
            continue
        created = _to_date(_field(t, "created_at"), tz) or day
        if created == day:
            count += 1
    return count


def _label(d: date, offset: int) -> str:
    return "Today" if offset == 0 else d.strftime("%a")


def weekly_summary(
    tasks: Iterable[Any],
    today: Optional[date] = None,
    tz: tzinfo = timezone.utc,
) -> List[WeeklySummaryDay]:
    """Seven buckets, six days ago through today."""
    today = today or datetime.now(tz).date()
    tasks = list(tasks)
    days = []
    for offset in range(DAYS_IN_WEEK - 1, -1, -1):
        d = today - timedelta(days=offset)
        completed = completed_on(tasks, d, tz)
        days.append(
            WeeklySummaryDay(
                date_key=d.isoformat(),
                label=_label(d, offset),
                completed=completed,
                intensity=intensity(completed),
            )
        )
    return days


def completion_rate(completed: int, daily_goal: Any) -> int:
    goal = clamp_goal(daily_goal)
    pct = Decimal(completed) / Decimal(goal) * 100
    return min(100, int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP)))


def weekly_goal(daily_goal: Any) -> int:
    return clamp_goal(daily_goal) * DAYS_IN_WEEK


def weekly_total(summary: Iterable[WeeklySummaryDay]) -> int:
    return sum(d.completed for d in summary)


def bar_height(completed: int, daily_goal: Any) -> float:
    """Chart bar height as a percentage of the daily goal, capped at 100."""
    return min(100.0, completed / clamp_goal(daily_goal) * 100)


def summarize(
    tasks: Iterable[Any],
    daily_goal: Any = DEFAULT_DAILY_GOAL,
    today: Optional[date] = None,
    tz: tzinfo = timezone.utc,
) -> WeeklyReport:
    today = today or datetime.now(tz).date()
    tasks = list(tasks)
    goal = clamp_goal(daily_goal)
    days = weekly_summary(tasks, today, tz)
    done_today = completed_on(tasks, today, tz)
    return WeeklyReport(
        days=days,
        daily_goal=goal,
        completed_today=done_today,
        completion_rate_today=completion_rate(done_today, goal),
        weekly_goal=weekly_goal(goal),
        weekly_total=weekly_total(days),
    )
