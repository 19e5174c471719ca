from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet

from ..common.datetime_utils import is_weekend
from .strategies.base import DayComputeStrategy
from .strategies.non_working_day_strategy import NonWorkingDayStrategy
from .strategies.workday_strategy import WorkdayStrategy


@dataclass
class DayStrategyFactory:
    """Factory Pattern: choose the compute strategy for a business day."""

    def for_day(self, key: str, holidays: AbstractSet[str] = frozenset()) -> DayComputeStrategy:
        if is_weekend(key) or key in holidays:
            return NonWorkingDayStrategy()
        return WorkdayStrategy()
