"""Schedule definitions and the validated builder used to configure them"""

import re
from dataclasses import dataclass, field
from datetime import time
from typing import Any, Dict, FrozenSet, Iterable, List, Tuple, Union

from cronhound.errors import ConfigurationError, ErrorKind

from .constants import DayOfWeek, Mode, Month

_TIME_RE = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")

DEFAULT_MINIMUM_WINDOW_MINUTES = 30


def parse_time_string(value: str) -> time:
    """Parse a strict 'HH:MM' string (23:59 for example)"""
    if not isinstance(value, str) or not _TIME_RE.match(value):
        raise ConfigurationError(f"Time '{value}' is not valid 'HH:MM' string.", ErrorKind.INVALID_TIME)
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def _minute_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class TimeWindow:
    """Time-of-day window, both ends inclusive"""
    start_time: time
    end_time: time

    @property
    def label(self) -> str:
        return f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"

    @property
    def length_minutes(self) -> int:
        return _minute_of_day(self.end_time) - _minute_of_day(self.start_time)

    def contains(self, moment: time) -> bool:
        minute = _minute_of_day(moment)
        return _minute_of_day(self.start_time) <= minute <= _minute_of_day(self.end_time)

    def overlaps(self, other: "TimeWindow") -> bool:
        return (
            _minute_of_day(self.start_time) <= _minute_of_day(other.end_time)
            and _minute_of_day(other.start_time) <= _minute_of_day(self.end_time)
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "start": self.start_time.strftime("%H:%M"),
            "end": self.end_time.strftime("%H:%M"),
        }


@dataclass(frozen=True)
class Schedule:
    """When a task is eligible to run. Empty axis sets mean "unconstrained"."""
    mode: Mode = Mode.UNSET
    period_minutes: int = 0
    time_windows: Tuple[TimeWindow, ...] = ()
    days_of_week: FrozenSet[int] = field(default_factory=frozenset)
    days_of_month: FrozenSet[int] = field(default_factory=frozenset)
    months: FrozenSet[int] = field(default_factory=frozenset)
    years: FrozenSet[int] = field(default_factory=frozenset)

    def has_constraints(self) -> bool:
        """True if any calendar or time-of-day constraint is configured"""
        return bool(self.time_windows or self.days_of_week or self.days_of_month or self.months or self.years)

    def to_dict(self) -> Dict[str, Any]:
        """Time windows and calendar axes, sorted"""
        return {
            "time": [window.to_dict() for window in self.time_windows],
            "days_of_week": sorted(self.days_of_week),
            "days_of_month": sorted(self.days_of_month),
            "months": sorted(self.months),
            "years": sorted(self.years),
        }


class ScheduleBuilder:
    """Collects and validates schedule settings, then produces a frozen Schedule.

    Every/delay are mutually exclusive. Adding any constraint while no mode is
    set switches the schedule to single mode (once per matched window).
    """

    def __init__(self, minimum_window_minutes: int = DEFAULT_MINIMUM_WINDOW_MINUTES):
        if minimum_window_minutes < 1:
            raise ConfigurationError("The minimum interval must be greater than zero.", ErrorKind.INVALID_RANGE)
        self.minimum_window_minutes = minimum_window_minutes
        self._mode = Mode.UNSET
        self._period_minutes = 0
        self._windows: List[TimeWindow] = []
        self._days_of_week: set = set()
        self._days_of_month: set = set()
        self._months: set = set()
        self._years: set = set()

    @property
    def mode(self) -> Mode:
        return self._mode

    def set_period_every(self, minutes: int) -> None:
        """Launch every N minutes, counted from the start of the previous launch"""
        if self._mode == Mode.DELAY:
            raise ConfigurationError(
                "Cannot set 'every' mode to task because 'delay' mode is already set.", ErrorKind.MODE_CONFLICT
            )
        self._set_period(Mode.EVERY, minutes)

    def set_period_delay(self, minutes: int) -> None:
        """Launch N minutes after the end of the previous launch"""
        if self._mode == Mode.EVERY:
            raise ConfigurationError(
                "Cannot set 'delay' mode to task because 'every' mode is already set.", ErrorKind.MODE_CONFLICT
            )
        self._set_period(Mode.DELAY, minutes)

    def _set_period(self, mode: Mode, minutes: int) -> None:
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes < 0:
            raise ConfigurationError(
                "The number of minutes must be greater than or equal to zero.", ErrorKind.INVALID_RANGE
            )
        self._mode = mode
        self._period_minutes = minutes

    def add_time_window(self, start: str, end: str) -> None:
        """Add a launch window in 'HH:MM' format. Windows must not overlap."""
        window = TimeWindow(parse_time_string(start), parse_time_string(end))
        if window.length_minutes <= 0:
            raise ConfigurationError(
                f"The start time '{start}' must be earlier than the end time '{end}'.", ErrorKind.INVALID_RANGE
            )
        if window.length_minutes < self.minimum_window_minutes:
            raise ConfigurationError(
                f"Cannot be set interval to less than {self.minimum_window_minutes} min. Increase the interval "
                "or lower minimum_interval_length in the scheduler config "
                "(a short window can be missed between two invocations).",
                ErrorKind.WINDOW_TOO_SHORT,
            )
        for existing in self._windows:
            if window.overlaps(existing):
                raise ConfigurationError(
                    f"The interval '{start} - {end}' overlaps with "
                    f"'{existing.to_dict()['start']} - {existing.to_dict()['end']}'.",
                    ErrorKind.OVERLAPPING_WINDOW,
                )
        self._windows.append(window)
        self._configure_single_mode()

    def restrict_to_days_of_week(self, days: Iterable[Union[int, str]]) -> None:
        """Accepts 1-7 or names in any case: ['Mo', 'TUE', 'wednesday', 4]"""
        numbers = [DayOfWeek.number(day) for day in days]
        self._days_of_week.update(numbers)
        self._configure_single_mode()

    def restrict_to_days_of_month(self, days: Iterable[int]) -> None:
        numbers = [_checked_int(day, 1, 31, "Days") for day in days]
        self._days_of_month.update(numbers)
        self._configure_single_mode()

    def restrict_to_months(self, months: Iterable[Union[int, str]]) -> None:
        """Accepts 1-12 or names in any case: ['January', 'feb', 'MA', 4]"""
        numbers = [Month.number(month) for month in months]
        self._months.update(numbers)
        self._configure_single_mode()

    def restrict_to_years(self, years: Iterable[int]) -> None:
        numbers = [_checked_int(year, 1900, 2999, "Years") for year in years]
        self._years.update(numbers)
        self._configure_single_mode()

    def _configure_single_mode(self) -> None:
        if self._mode == Mode.UNSET:
            self._mode = Mode.SINGLE

    def build(self) -> Schedule:
        return Schedule(
            mode=self._mode,
            period_minutes=self._period_minutes,
            time_windows=tuple(self._windows),
            days_of_week=frozenset(self._days_of_week),
            days_of_month=frozenset(self._days_of_month),
            months=frozenset(self._months),
            years=frozenset(self._years),
        )


def _checked_int(value: Any, low: int, high: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{what} must be integers.", ErrorKind.INVALID_VALUE)
    if value < low or value > high:
        raise ConfigurationError(f"{what} must be between {low} and {high}.", ErrorKind.INVALID_RANGE)
    return value
