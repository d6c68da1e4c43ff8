from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from ..models.config_models import WorkingDayConfig

"""Working-day calculator.

Default calendar: Monday-Friday are working days, no holidays. Forward and
backward searches are bounded to one year so that a calendar without any
reachable working day fails with NoWorkingDayFoundError instead of looping.
"""

__all__ = [
    "WEEKDAY_LABELS",
    "NoWorkingDayFoundError",
    "WorkingDayCalculator",
    "parse_weekday",
]

# date.weekday(): Monday == 0
WEEKDAY_LABELS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")

ONE_DAY = timedelta(days=1)


class NoWorkingDayFoundError(Exception):
    """Raised when no working day exists within one year of the start date."""


def parse_weekday(label: str | int) -> int:
    """Weekday index (0=Monday) from 'MON', 'monday', 'Tue' ... or an int 0-6."""
    if isinstance(label, int):
        if 0 <= label <= 6:
            return label
        raise ValueError(f"Weekday index out of range: {label}")
    key = label.strip().upper()[:3]
    if key not in WEEKDAY_LABELS:
        raise ValueError(f"Unknown weekday: {label}")
    return WEEKDAY_LABELS.index(key)


def _shift_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:  # 29 Feb -> 28 Feb
        return d.replace(year=d.year + years, day=28)


class WorkingDayCalculator:
    """Calendar arithmetic over a configurable working-week and holiday set."""

    def __init__(
        self,
        working_days: Iterable[str | int] | None = None,
        holidays: Iterable[date] | None = None,
    ) -> None:
        self._working_days: frozenset[int] = frozenset(range(5))
        if working_days is not None:
            self.working_days = working_days
        self._holidays: set[date] = set(holidays or ())

    @classmethod
    def from_config(cls, config: WorkingDayConfig) -> WorkingDayCalculator:
        return cls(working_days=config.working_days, holidays=config.holidays)

    @property
    def working_days(self) -> frozenset[int]:
        return self._working_days

    @working_days.setter
    def working_days(self, days: Iterable[str | int]) -> None:
        parsed = frozenset(parse_weekday(d) for d in days)
        if not parsed:
            raise ValueError("At least one working day must be specified")
        self._working_days = parsed

    @property
    def holidays(self) -> frozenset[date]:
        return frozenset(self._holidays)

    def set_holidays(self, holidays: Iterable[date] | None) -> None:
        self._holidays = set(holidays or ())

    def add_holiday(self, day: date | None) -> None:
        if day is not None:
            self._holidays.add(day)

    def is_working_day(self, day: date | None) -> bool:
        if day is None:
            return False
        return day.weekday() in self._working_days and day not in self._holidays

    def next_working_day(self, day: date) -> date:
        """First working day strictly after `day`."""
        if day is None:
            raise ValueError("Date cannot be None")
        limit = _shift_years(day, 1)
        candidate = day + ONE_DAY
        while not self.is_working_day(candidate):
            candidate += ONE_DAY
            if candidate > limit:
                raise NoWorkingDayFoundError(f"Could not find a working day within one year after {day}")
        return candidate

    def previous_working_day(self, day: date) -> date:
        """Last working day strictly before `day`."""
        if day is None:
            raise ValueError("Date cannot be None")
        limit = _shift_years(day, -1)
        candidate = day - ONE_DAY
        while not self.is_working_day(candidate):
            candidate -= ONE_DAY
            if candidate < limit:
                raise NoWorkingDayFoundError(f"Could not find a working day within one year before {day}")
        return candidate

    def add_working_days(self, start: date, days: int) -> date:
        """Advance `days` working days from `start`.

        A non-working start date is first moved to the next working day, and
        counting begins from there.
        """
        if start is None:
            raise ValueError("Start date cannot be None")
        if days < 0:
            raise ValueError("Days must be non-negative")
        if days == 0:
            return start

        result = start if self.is_working_day(start) else self.next_working_day(start)
        for _ in range(days):
            result = self.next_working_day(result)
        return result

    def count_working_days(self, start: date, end: date) -> int:
        """Working days in [start, end], both inclusive."""
        if start is None or end is None:
            raise ValueError("Start and end dates cannot be None")
        if start > end:
            raise ValueError("Start date must not be after end date")

        count = 0
        current = start
        while current <= end:
            if self.is_working_day(current):
                count += 1
            current += ONE_DAY
        return count

    def adjust_to_working_day(self, day: date) -> date:
        if day is None:
            raise ValueError("Date cannot be None")
        return day if self.is_working_day(day) else self.next_working_day(day)
