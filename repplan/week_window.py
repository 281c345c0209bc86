"""
week_window.py — Work-week and planning-window date arithmetic

Every function takes the reference moment explicitly (`now`); nothing here
reads the system clock.  Pass one snapshot of "now" through a whole
computation so the week cannot change halfway through.

  is_planning_window(now)       Thu/Fri → True
  resolve_plan_week_start(now)  start of the week being viewed / planned
  get_week_window(d)            Sat..Fri window containing d
  get_plan_week(now)            window starting at resolve_plan_week_start(now)
  is_working_day(d, settings)   excludes configured weekends and holidays
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from repplan.models import SystemSettings
from repplan.plan_config import DAYS_PER_WEEK, PLANNING_DAYS, WEEK_START_DAY

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _as_date(d: DateLike) -> date:
    return d.date() if isinstance(d, datetime) else d


def _check_weekday(value: int, label: str) -> None:
    if not 0 <= int(value) < DAYS_PER_WEEK:
        raise ValueError(f"{label} must be a day index 0..6 (0 = Sunday), got {value}")


def day_index(d: DateLike) -> int:
    """Day index as stored in plans: 0 = Sunday ... 6 = Saturday."""
    return (_as_date(d).weekday() + 1) % DAYS_PER_WEEK


# ---------------------------------------------------------------------------
# Planning window
# ---------------------------------------------------------------------------

def is_planning_window(
    now: DateLike,
    planning_days: Iterable[int] = PLANNING_DAYS,
) -> bool:
    """True iff `now` falls on one of the planning days (Thursday, Friday)."""
    days = set(planning_days)
    for d in days:
        _check_weekday(d, "planning day")
    return day_index(now) in days


def resolve_plan_week_start(
    now: DateLike,
    week_start_day: int = WEEK_START_DAY,
    planning_days: Iterable[int] = PLANNING_DAYS,
) -> date:
    """
    Start date of the week the representative is working on.

    Planning window: the next week-start weekday strictly after `now`.
    Otherwise: the most recent week-start weekday on or before `now`
    (`now` itself when it is the week-start weekday).
    """
    _check_weekday(week_start_day, "week_start_day")
    today = _as_date(now)
    current = day_index(today)

    if is_planning_window(today, planning_days):
        ahead = (week_start_day - current) % DAYS_PER_WEEK
        return today + timedelta(days=ahead or DAYS_PER_WEEK)

    behind = (current - week_start_day) % DAYS_PER_WEEK
    return today - timedelta(days=behind)


# ---------------------------------------------------------------------------
# Week window
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WeekWindow:
    """Seven consecutive days starting on the configured week-start weekday."""
    week_start: date
    week_end: date

    def contains(self, d: DateLike) -> bool:
        return self.week_start <= _as_date(d) <= self.week_end

    def days_list(self) -> List[date]:
        return [self.week_start + timedelta(days=i) for i in range(DAYS_PER_WEEK)]

    def date_for_day(self, day: int) -> date:
        """Calendar date of a plan day index inside this window."""
        _check_weekday(day, "day")
        offset = (day - day_index(self.week_start)) % DAYS_PER_WEEK
        return self.week_start + timedelta(days=offset)

    def shift(self, weeks: int) -> "WeekWindow":
        delta = timedelta(days=DAYS_PER_WEEK * weeks)
        return WeekWindow(self.week_start + delta, self.week_end + delta)


def get_week_window(d: DateLike, week_start_day: int = WEEK_START_DAY) -> WeekWindow:
    """Window (start weekday .. start + 6) that contains `d`."""
    _check_weekday(week_start_day, "week_start_day")
    day = _as_date(d)
    start = day - timedelta(days=(day_index(day) - week_start_day) % DAYS_PER_WEEK)
    return WeekWindow(week_start=start, week_end=start + timedelta(days=DAYS_PER_WEEK - 1))


def get_plan_week(
    now: DateLike,
    week_start_day: int = WEEK_START_DAY,
    planning_days: Iterable[int] = PLANNING_DAYS,
) -> WeekWindow:
    start = resolve_plan_week_start(now, week_start_day, planning_days)
    return WeekWindow(week_start=start, week_end=start + timedelta(days=DAYS_PER_WEEK - 1))


# ---------------------------------------------------------------------------
# Working days
# ---------------------------------------------------------------------------

def is_working_day(d: DateLike, settings: Optional[SystemSettings] = None) -> bool:
    """False on configured weekend weekdays and holidays."""
    if settings is None:
        return True
    day = _as_date(d)
    if day_index(day) in settings.weekends:
        return False
    return day not in settings.holidays


def get_working_days(window: WeekWindow, settings: Optional[SystemSettings] = None) -> List[date]:
    return [d for d in window.days_list() if is_working_day(d, settings)]
