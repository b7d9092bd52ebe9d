"""Launch modes and calendar name tables for schedule configuration"""

from enum import IntEnum
from typing import Dict, Union

from cronhound.errors import ConfigurationError, ErrorKind


class Mode(IntEnum):
    """Periodicity strategy of a schedule"""
    UNSET = 0   # Not configured, the task cannot be dispatched
    SINGLE = 1  # Once per matched window
    EVERY = 2   # Every N minutes counted from the previous launch start
    DELAY = 3   # N minutes after the previous launch end


class DayOfWeek(IntEnum):
    """ISO days of the week (1=Monday, 7=Sunday)"""
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @classmethod
    def number(cls, value: Union[int, str]) -> int:
        """Get ISO weekday number from 1-7, a full name, or a 2/3 letter abbreviation"""
        return _lookup(value, _DAY_VARIANTS, "day", "Use 1-7, Monday-Sunday, Mon-Sun or Mo-Su.")


class Month(IntEnum):
    """Months of the year"""
    JANUARY = 1
    FEBRUARY = 2
    MARCH = 3
    APRIL = 4
    MAY = 5
    JUNE = 6
    JULY = 7
    AUGUST = 8
    SEPTEMBER = 9
    OCTOBER = 10
    NOVEMBER = 11
    DECEMBER = 12

    @classmethod
    def number(cls, value: Union[int, str]) -> int:
        """Get month number from 1-12, a full name, or an abbreviation"""
        return _lookup(value, _MONTH_VARIANTS, "month", "Use 1-12, January-December, Jan-Dec or Ja-De.")


_DAY_VARIANTS: Dict[str, int] = {}
for _day in DayOfWeek:
    _full = _day.name.lower()
    _DAY_VARIANTS.update({str(_day.value): _day.value, _full: _day.value, _full[:2]: _day.value, _full[:3]: _day.value})

_MONTH_VARIANTS: Dict[str, int] = {str(m.value): m.value for m in Month}
_MONTH_VARIANTS.update({m.name.lower(): m.value for m in Month})
_MONTH_VARIANTS.update({m.name.lower()[:3]: m.value for m in Month})
# Two letter forms exist only where they are unambiguous (no "ju").
_MONTH_VARIANTS.update({
    "ja": Month.JANUARY, "fe": Month.FEBRUARY, "ma": Month.MARCH, "ap": Month.APRIL,
    "au": Month.AUGUST, "sept": Month.SEPTEMBER, "oc": Month.OCTOBER, "no": Month.NOVEMBER,
    "de": Month.DECEMBER,
})


def _lookup(value: Union[int, str], variants: Dict[str, int], what: str, hint: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigurationError(
            f"Passed {what} must be int/str type. Type {type(value).__name__} is invalid.",
            ErrorKind.INVALID_VALUE,
        )
    key = str(value).strip().lower()
    number = variants.get(key)
    if number is None:
        raise ConfigurationError(f"{value} is not valid {what} representation. {hint}", ErrorKind.INVALID_VALUE)
    return int(number)
