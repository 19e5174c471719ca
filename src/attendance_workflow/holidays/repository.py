from __future__ import annotations

from typing import Protocol, Sequence


class HolidayRepository(Protocol):
    def list_dates_between(self, start_key: str, end_key: str) -> Sequence[str]:
        """Holiday day keys in ``[start_key, end_key)``."""
        raise NotImplementedError
