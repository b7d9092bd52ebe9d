"""Pure matching of an instant against a schedule.

``window_identity`` names the recurrence window an instant belongs to, for
example ``2024::0::1::-1::09:00-12:00`` (year, month, day of week, day of
month, time window). Unconstrained axes contribute ``0``; a constrained day
axis that did not match contributes ``-1`` as long as the other day axis
matched. Two instants in the same window produce equal identities, which is
how single mode avoids launching twice per window.
"""

from datetime import datetime
from typing import AbstractSet, NamedTuple, Optional, Union

from .constants import Mode
from .schedule import Schedule

WILDCARD = 0
NO_MATCH = -1


class WindowIdentity(NamedTuple):
    year: int
    month: int
    day_of_week: int
    day_of_month: int
    time_window: Union[int, str]

    def __str__(self) -> str:
        return "::".join(str(part) for part in self)


def _axis(accepted: AbstractSet[int], value: int) -> Optional[int]:
    """Wildcard if unconstrained, the value if accepted, None otherwise"""
    if not accepted:
        return WILDCARD
    return value if value in accepted else None


def window_identity(schedule: Schedule, moment: datetime) -> Optional[WindowIdentity]:
    if schedule.mode == Mode.SINGLE and not schedule.has_constraints():
        return None

    year = _axis(schedule.years, moment.year)
    if year is None:
        return None
    month = _axis(schedule.months, moment.month)
    if month is None:
        return None

    day_of_week = _axis(schedule.days_of_week, moment.isoweekday())
    day_of_month = _axis(schedule.days_of_month, moment.day)
    # At least one day axis has to resolve; a wildcard only resolves if the other axis is also open.
    if (
        (day_of_week is None and day_of_month is None)
        or (day_of_week == WILDCARD and day_of_month is None)
        or (day_of_week is None and day_of_month == WILDCARD)
    ):
        return None

    time_window: Union[int, str, None] = WILDCARD if not schedule.time_windows else None
    for window in schedule.time_windows:
        if window.contains(moment.time()):
            time_window = window.label
            break
    if time_window is None:
        return None

    return WindowIdentity(
        year=year,
        month=month,
        day_of_week=NO_MATCH if day_of_week is None else day_of_week,
        day_of_month=NO_MATCH if day_of_month is None else day_of_month,
        time_window=time_window,
    )


def in_window(schedule: Schedule, moment: datetime) -> bool:
    """Whether the task may fire at ``moment`` at all"""
    if schedule.mode == Mode.UNSET:
        return False
    if schedule.mode == Mode.SINGLE:
        return window_identity(schedule, moment) is not None
    return not schedule.has_constraints() or window_identity(schedule, moment) is not None


def same_window(schedule: Schedule, first: datetime, second: datetime) -> bool:
    """Both absent counts as the same window.

    Time windows repeat daily, so with time windows configured two instants
    on different calendar days are never in the same window. Calendar-only
    schedules compare by identity alone.
    """
    first_identity = window_identity(schedule, first)
    second_identity = window_identity(schedule, second)
    if first_identity is None or second_identity is None or not schedule.time_windows:
        return first_identity == second_identity
    return first.date() == second.date() and first_identity == second_identity
