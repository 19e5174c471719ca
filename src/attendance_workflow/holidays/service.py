from __future__ import annotations

from ..common.datetime_utils import add_days, month_bounds
from .repository import HolidayRepository


class HolidayService:
    def __init__(self, holidays: HolidayRepository):
        self._holidays = holidays

    def get_holiday_dates_for_month(self, month: str) -> frozenset[str]:
        start, end = month_bounds(month)
        return frozenset(self._holidays.list_dates_between(start, end))

    def get_holiday_dates_between(self, start_key: str, end_key: str) -> frozenset[str]:
        """Holidays in the inclusive range ``[start_key, end_key]``."""
        return frozenset(self._holidays.list_dates_between(start_key, add_days(end_key, 1)))
