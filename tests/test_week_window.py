"""
Tests for work-week and planning-window date arithmetic (Saturday week start,
Thursday/Friday planning days)
"""

import sys
from datetime import date, datetime
from pathlib import Path

import pytest

# Add project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from repplan.models import SystemSettings
from repplan.week_window import (
    day_index,
    get_plan_week,
    get_week_window,
    get_working_days,
    is_planning_window,
    is_working_day,
    resolve_plan_week_start,
)


class TestDayIndex:
    """Test plan day indices (0 = Sunday)"""

    def test_sunday_is_zero(self):
        """Sunday maps to 0"""
        assert day_index(date(2026, 10, 18)) == 0

    def test_saturday_is_six(self):
        """Saturday maps to 6"""
        assert day_index(date(2026, 10, 17)) == 6

    def test_accepts_datetime(self):
        """Time of day is ignored"""
        assert day_index(datetime(2026, 10, 19, 23, 30)) == 1


class TestPlanningWindow:
    """Wednesday views the current week; Thursday/Friday plan the next one"""

    def test_wednesday_not_planning(self):
        """Wednesday resolves to the most recent Saturday"""
        now = datetime(2026, 10, 14, 9, 0)
        assert is_planning_window(now) is False
        assert resolve_plan_week_start(now) == date(2026, 10, 10)

    def test_thursday_plans_next_week(self):
        """Thursday resolves to the coming Saturday"""
        now = datetime(2026, 10, 15, 9, 0)
        assert is_planning_window(now) is True
        assert resolve_plan_week_start(now) == date(2026, 10, 17)

    def test_friday_plans_next_week(self):
        """Late Friday still plans the coming Saturday"""
        now = datetime(2026, 10, 16, 23, 59)
        assert is_planning_window(now) is True
        assert resolve_plan_week_start(now) == date(2026, 10, 17)

    def test_saturday_is_its_own_week_start(self):
        """Saturday is the start of the week it falls in"""
        now = date(2026, 10, 17)
        assert is_planning_window(now) is False
        assert resolve_plan_week_start(now) == date(2026, 10, 17)

    def test_sunday_resolves_to_previous_saturday(self):
        """Sunday belongs to the week that began the day before"""
        assert resolve_plan_week_start(date(2026, 10, 18)) == date(2026, 10, 17)

    def test_next_start_within_two_days_of_planning_day(self):
        """Next week starts one or two days after a planning day"""
        for now in (date(2026, 10, 15), date(2026, 10, 16)):
            delta = (resolve_plan_week_start(now) - now).days
            assert 1 <= delta <= 2

    def test_custom_week_start(self):
        """Monday start with Saturday planning"""
        assert resolve_plan_week_start(date(2026, 10, 17), week_start_day=1,
                                       planning_days={6}) == date(2026, 10, 19)
        assert resolve_plan_week_start(date(2026, 10, 14), week_start_day=1,
                                       planning_days={6}) == date(2026, 10, 12)

    def test_bad_week_start_raises(self):
        """Week start outside 0..6 is a ValueError"""
        with pytest.raises(ValueError):
            resolve_plan_week_start(date(2026, 10, 14), week_start_day=7)

    def test_bad_planning_day_raises(self):
        """Planning day outside 0..6 is a ValueError"""
        with pytest.raises(ValueError):
            is_planning_window(date(2026, 10, 14), planning_days={4, 9})


class TestWeekWindow:
    """Test WeekWindow construction and helpers"""

    def test_window_containing_wednesday(self):
        """Sat..Fri window around a Wednesday"""
        window = get_week_window(date(2026, 10, 14))
        assert window.week_start == date(2026, 10, 10)
        assert window.week_end == date(2026, 10, 16)
        assert window.contains(datetime(2026, 10, 16, 18, 0))
        assert not window.contains(date(2026, 10, 17))

    def test_days_list(self):
        """Seven consecutive dates from the week start"""
        days = get_week_window(date(2026, 10, 14)).days_list()
        assert len(days) == 7
        assert days[0] == date(2026, 10, 10)
        assert days[-1] == date(2026, 10, 16)

    def test_date_for_day(self):
        """Plan day index → calendar date inside the window"""
        window = get_week_window(date(2026, 10, 14))
        assert window.date_for_day(6) == date(2026, 10, 10)
        assert window.date_for_day(0) == date(2026, 10, 11)
        assert window.date_for_day(5) == date(2026, 10, 16)

    def test_date_for_bad_day_raises(self):
        """Day index 7 is a ValueError"""
        with pytest.raises(ValueError):
            get_week_window(date(2026, 10, 14)).date_for_day(7)

    def test_shift(self):
        """Previous / next week navigation"""
        window = get_week_window(date(2026, 10, 14))
        assert window.shift(1).week_start == date(2026, 10, 17)
        assert window.shift(-1).week_end == date(2026, 10, 9)

    def test_plan_week_on_thursday_is_next_week(self):
        """Plan week on a planning day is the following Sat..Fri"""
        window = get_plan_week(datetime(2026, 10, 15, 8, 0))
        assert window.week_start == date(2026, 10, 17)
        assert window.week_end == date(2026, 10, 23)


class TestWorkingDays:
    """Test weekend weekdays and holidays from system settings"""

    @pytest.fixture
    def settings(self):
        return SystemSettings(weekends=(5,), holidays=(date(2026, 10, 12),))

    def test_no_settings_every_day_works(self):
        """Without settings nothing is excluded"""
        assert is_working_day(date(2026, 10, 16)) is True

    def test_weekend_weekday(self, settings):
        """Configured weekend weekday (Friday) is off"""
        assert is_working_day(date(2026, 10, 16), settings) is False

    def test_holiday(self, settings):
        """Configured holiday is off"""
        assert is_working_day(date(2026, 10, 12), settings) is False

    def test_ordinary_day(self, settings):
        """Ordinary Wednesday is a working day"""
        assert is_working_day(datetime(2026, 10, 14, 12, 0), settings) is True

    def test_working_days_of_week(self, settings):
        """Week minus Friday and the holiday leaves five days"""
        days = get_working_days(get_week_window(date(2026, 10, 14)), settings)
        assert date(2026, 10, 16) not in days
        assert date(2026, 10, 12) not in days
        assert len(days) == 5
