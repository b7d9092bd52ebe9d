"""Tests for schedule configuration and validation."""

from __future__ import annotations

from datetime import time

import pytest

from cronhound.errors import ConfigurationError, ErrorKind
from cronhound.scheduler.constants import DayOfWeek, Mode, Month
from cronhound.scheduler.schedule import ScheduleBuilder, TimeWindow, parse_time_string


class TestParseTimeString:
    def test_valid_times(self):
        assert parse_time_string("00:00") == time(0, 0)
        assert parse_time_string("09:30") == time(9, 30)
        assert parse_time_string("23:59") == time(23, 59)

    @pytest.mark.parametrize("value", ["24:00", "9:00", "12:60", "noon", "12-30", "", "12:30:00"])
    def test_invalid_times(self, value):
        with pytest.raises(ConfigurationError) as err:
            parse_time_string(value)
        assert err.value.kind is ErrorKind.INVALID_TIME


class TestTimeWindows:
    def test_window_promotes_unset_to_single(self):
        builder = ScheduleBuilder()
        assert builder.mode is Mode.UNSET
        builder.add_time_window("09:00", "12:00")
        schedule = builder.build()
        assert schedule.mode is Mode.SINGLE
        assert schedule.time_windows == (TimeWindow(time(9), time(12)),)
        assert schedule.time_windows[0].label == "09:00-12:00"

    @pytest.mark.parametrize(
        "first, second",
        [
            (("09:00", "10:00"), ("10:00", "11:00")),  # shared boundary
            (("10:00", "11:00"), ("09:00", "10:00")),
            (("09:00", "12:00"), ("10:00", "10:45")),
            (("10:00", "10:45"), ("09:00", "12:00")),
        ],
    )
    def test_overlapping_windows_rejected_in_any_order(self, first, second):
        builder = ScheduleBuilder()
        builder.add_time_window(*first)
        with pytest.raises(ConfigurationError) as err:
            builder.add_time_window(*second)
        assert err.value.kind is ErrorKind.OVERLAPPING_WINDOW
        assert len(builder.build().time_windows) == 1

    def test_adjacent_windows_accepted(self):
        builder = ScheduleBuilder()
        builder.add_time_window("09:00", "10:00")
        builder.add_time_window("10:01", "11:00")
        assert len(builder.build().time_windows) == 2

    def test_window_shorter_than_minimum_rejected(self):
        builder = ScheduleBuilder()
        with pytest.raises(ConfigurationError) as err:
            builder.add_time_window("09:00", "09:29")
        assert err.value.kind is ErrorKind.WINDOW_TOO_SHORT
        builder.add_time_window("09:00", "09:30")

    def test_custom_minimum(self):
        builder = ScheduleBuilder(minimum_window_minutes=5)
        builder.add_time_window("09:00", "09:05")
        with pytest.raises(ConfigurationError):
            ScheduleBuilder(minimum_window_minutes=0)

    def test_start_must_precede_end(self):
        builder = ScheduleBuilder()
        for start, end in (("12:00", "09:00"), ("09:00", "09:00")):
            with pytest.raises(ConfigurationError) as err:
                builder.add_time_window(start, end)
            assert err.value.kind is ErrorKind.INVALID_RANGE

    def test_window_contains_is_inclusive(self):
        window = TimeWindow(time(9), time(12))
        assert window.contains(time(9, 0))
        assert window.contains(time(12, 0))
        assert window.contains(time(12, 0, 59))
        assert not window.contains(time(12, 1))
        assert not window.contains(time(8, 59))


class TestModes:
    def test_every_then_delay_conflicts(self):
        builder = ScheduleBuilder()
        builder.set_period_every(10)
        with pytest.raises(ConfigurationError) as err:
            builder.set_period_delay(10)
        assert err.value.kind is ErrorKind.MODE_CONFLICT

    def test_delay_then_every_conflicts(self):
        builder = ScheduleBuilder()
        builder.set_period_delay(10)
        with pytest.raises(ConfigurationError) as err:
            builder.set_period_every(10)
        assert err.value.kind is ErrorKind.MODE_CONFLICT

    def test_period_after_constraint_overrides_single(self):
        builder = ScheduleBuilder()
        builder.restrict_to_days_of_week(["mon"])
        builder.set_period_every(15)
        schedule = builder.build()
        assert schedule.mode is Mode.EVERY
        assert schedule.period_minutes == 15

    def test_constraint_keeps_periodic_mode(self):
        builder = ScheduleBuilder()
        builder.set_period_delay(5)
        builder.restrict_to_months(["jan"])
        assert builder.build().mode is Mode.DELAY

    @pytest.mark.parametrize("minutes", [-1, 1.5, "10", True])
    def test_invalid_period(self, minutes):
        with pytest.raises(ConfigurationError):
            ScheduleBuilder().set_period_every(minutes)

    def test_zero_period_allowed(self):
        builder = ScheduleBuilder()
        builder.set_period_every(0)
        assert builder.build().period_minutes == 0


class TestCalendarConstraints:
    def test_days_of_week_names(self):
        builder = ScheduleBuilder()
        builder.restrict_to_days_of_week(["Mo", "TUE", "wednesday", 4, DayOfWeek.SUNDAY, "6"])
        assert builder.build().days_of_week == frozenset({1, 2, 3, 4, 6, 7})

    def test_invalid_day_lists_accepted_forms(self):
        with pytest.raises(ConfigurationError) as err:
            ScheduleBuilder().restrict_to_days_of_week(["Funday"])
        assert err.value.kind is ErrorKind.INVALID_VALUE
        assert "Mon-Sun" in str(err.value)

    @pytest.mark.parametrize("value", [0, 8, 1.0, None, True])
    def test_invalid_day_values(self, value):
        with pytest.raises(ConfigurationError):
            DayOfWeek.number(value)

    def test_month_names(self):
        builder = ScheduleBuilder()
        builder.restrict_to_months(["January", "feb", "MA", 4, "sept", Month.DECEMBER])
        assert builder.build().months == frozenset({1, 2, 3, 4, 9, 12})

    def test_ambiguous_month_abbreviation_rejected(self):
        with pytest.raises(ConfigurationError) as err:
            Month.number("ju")
        assert "Jan-Dec" in str(err.value)

    def test_days_of_month_range(self):
        builder = ScheduleBuilder()
        builder.restrict_to_days_of_month([1, 15, 31])
        assert builder.build().days_of_month == frozenset({1, 15, 31})
        for bad in (0, 32):
            with pytest.raises(ConfigurationError) as err:
                builder.restrict_to_days_of_month([bad])
            assert err.value.kind is ErrorKind.INVALID_RANGE
        with pytest.raises(ConfigurationError) as err:
            builder.restrict_to_days_of_month(["1"])
        assert err.value.kind is ErrorKind.INVALID_VALUE

    def test_years_range(self):
        builder = ScheduleBuilder()
        builder.restrict_to_years([1900, 2024, 2999])
        for bad in (1899, 3000):
            with pytest.raises(ConfigurationError):
                builder.restrict_to_years([bad])
        assert builder.build().years == frozenset({1900, 2024, 2999})

    def test_repeated_calls_accumulate(self):
        builder = ScheduleBuilder()
        builder.restrict_to_years([2024])
        builder.restrict_to_years([2025])
        assert builder.build().years == frozenset({2024, 2025})


class TestScheduleSerialization:
    def test_to_dict_sorts_axes(self):
        builder = ScheduleBuilder()
        builder.set_period_every(30)
        builder.add_time_window("13:00", "14:00")
        builder.restrict_to_days_of_week([5, 1])
        builder.restrict_to_months([12, 3])
        data = builder.build().to_dict()
        assert set(data) == {"time", "days_of_week", "days_of_month", "months", "years"}
        assert data["days_of_week"] == [1, 5]
        assert data["months"] == [3, 12]
        assert data["time"] == [{"start": "13:00", "end": "14:00"}]
