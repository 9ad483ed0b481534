"""Business calendar: weekend days plus explicit holidays."""

from datetime import date, timedelta
from typing import Iterable, Optional

from ..config import get_settings

# Safety net against calendars with every weekday marked as weekend
_MAX_SCAN_DAYS = 366


class BusinessCalendar:
    """
    Banking-day arithmetic.

    weekend_days use date.weekday() numbering (Monday=0). The default
    comes from settings (Friday and Saturday).
    """

    def __init__(
        self,
        weekend_days: Optional[Iterable[int]] = None,
        holidays: Optional[Iterable[date]] = None,
    ):
        if weekend_days is None:
            weekend_days = get_settings().weekend_days
        self.weekend_days = frozenset(weekend_days)
        self.holidays = frozenset(holidays or ())

        if len(self.weekend_days) >= 7:
            raise ValueError("A calendar needs at least one banking weekday")

    def is_weekend(self, day: date) -> bool:
        return day.weekday() in self.weekend_days

    def is_banking_day(self, day: date) -> bool:
        return not self.is_weekend(day) and day not in self.holidays

    def next_banking_day(self, day: date) -> date:
        """day itself if it is a banking day, else the next one."""
        for offset in range(_MAX_SCAN_DAYS):
            candidate = day + timedelta(days=offset)
            if self.is_banking_day(candidate):
                return candidate
        raise ValueError(f"No banking day within a year of {day}")

    def previous_banking_day(self, day: date) -> date:
        for offset in range(_MAX_SCAN_DAYS):
            candidate = day - timedelta(days=offset)
            if self.is_banking_day(candidate):
                return candidate
        raise ValueError(f"No banking day within a year before {day}")
