from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytest

from mood_journal.services import weekly

TODAY = date(2026, 10, 19)  # a Monday


@dataclass
class T:
    done: bool
    created_at: Optional[datetime]


def at(d: date, hour: int = 12) -> datetime:
    return datetime(d.year, d.month, d.day, hour, tzinfo=timezone.utc)


def test_two_done_today_one_open_yesterday():
    tasks = [
        T(True, at(TODAY)),
        T(True, at(TODAY)),
        T(False, at(TODAY - timedelta(days=1))),
    ]
    report = weekly.summarize(tasks, daily_goal=5, today=TODAY)
    assert report.completed_today == 2
    assert report.completion_rate_today == 40
    assert report.days[-1].intensity == 40
    assert report.weekly_goal == 35
    assert report.weekly_total == 2


def test_seven_buckets_with_exact_counts():
    tasks = [
        T(True, at(TODAY)),
        T(True, at(TODAY - timedelta(days=1))),
        T(True, at(TODAY - timedelta(days=1), hour=23)),
        T(True, at(TODAY - timedelta(days=5))),
        T(False, at(TODAY - timedelta(days=5))),
        T(True, at(TODAY - timedelta(days=7))),  # outside the window
    ]
    days = weekly.weekly_summary(tasks, TODAY)
    assert [d.date_key for d in days] == [(TODAY - timedelta(days=o)).isoformat() for o in range(6, -1, -1)]
    assert [d.completed for d in days] == [0, 1, 0, 0, 0, 2, 1]
    assert weekly.weekly_total(days) == 4


def test_labels():
    days = weekly.weekly_summary([], TODAY)
    assert days[-1].label == "Today"
    assert days[-2].label == "Sun"
    assert days[0].label == "Tue"


def test_intensity_is_bounded():
    assert weekly.intensity(0) == 0
    assert weekly.intensity(3) == 60
    assert weekly.intensity(5) == 100
    assert weekly.intensity(12) == 100
    tasks = [T(True, at(TODAY)) for _ in range(9)]
    assert weekly.weekly_summary(tasks, TODAY)[-1].intensity == 100


def test_tasks_without_timestamp_count_as_today():
    tasks = [T(True, None), {"done": True, "created_at": None}]
    assert weekly.completed_on(tasks, TODAY) == 2


def test_accepts_mappings_and_strings():
    tasks = [{"done": True, "created_at": "2026-10-18T09:00:00Z"}, {"done": 1, "created_at": "2026-10-18"}]
    assert weekly.weekly_summary(tasks, TODAY)[-2].completed == 2


def test_naive_datetimes_are_utc_and_tz_shifts_the_day():
    late = datetime(2026, 10, 18, 23, 30)  # naive, UTC
    assert weekly.date_key(late) == "2026-10-18"
    plus_two = timezone(timedelta(hours=2))
    assert weekly.date_key(late, tz=plus_two) == "2026-10-19"


@pytest.mark.parametrize("goal,expected", [
    (5, 5), (1, 1), (0, 1), (-3, 1), ("7", 7), ("abc", 1), (None, 1),
    ("2.7", 2), (" 8 tasks", 8), (2.7, 2), ("-4", 1), (float("nan"), 1),
])
def test_clamp_goal(goal, expected):
    assert weekly.clamp_goal(goal) == expected


def test_completion_rate_rounds_half_up_and_caps():
    assert weekly.completion_rate(1, 8) == 13  # 12.5
    assert weekly.completion_rate(2, 3) == 67
    assert weekly.completion_rate(9, 5) == 100
    assert weekly.completion_rate(2, 0) == 100


def test_goal_derived_values():
    assert weekly.weekly_goal(3) == 21
    assert weekly.weekly_goal(0) == 7
    assert weekly.bar_height(2, 4) == 50.0
    assert weekly.bar_height(8, 4) == 100.0


def test_date_key_rejects_garbage():
    with pytest.raises(ValueError):
        weekly.date_key(None)
