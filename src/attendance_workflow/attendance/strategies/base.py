from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..model import ComputedAttendance


class DayComputeStrategy(ABC):
    """Strategy Pattern: encapsulate how a day's metrics are derived."""

    @abstractmethod
    def compute(
        self,
        *,
        key: str,
        check_in_at: Optional[datetime],
        check_out_at: Optional[datetime],
        ot_approved: bool,
        today: str,
    ) -> ComputedAttendance:
        raise NotImplementedError
