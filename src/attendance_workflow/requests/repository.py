from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, RequestType
from .model import WorkRequest


class RequestRepository(Protocol):
    """Giao diện repository cho Request.

    Status transitions are conditional writes: they only touch rows that are
    still PENDING and report whether a row changed.
    """

    def get_by_id(self, request_id: int) -> Optional[WorkRequest]:
        raise NotImplementedError

    def create(self, request: WorkRequest) -> Optional[WorkRequest]:
        """Insert ``request`` (its id is ignored) and return the stored row.

        Returns ``None`` when the user already has a PENDING request of the
        same type for ``request_date``.
        """
        raise NotImplementedError

    def find_pending(self, *, user_id: int, request_type: RequestType, request_date: str) -> Optional[WorkRequest]:
        raise NotImplementedError

    def extend_pending_ot(
        self,
        *,
        user_id: int,
        request_date: str,
        estimated_end_time: datetime,
        reason: str,
    ) -> Optional[WorkRequest]:
        """Update the PENDING OT request of that day in place, if any."""
        raise NotImplementedError

    def count_pending_ot_between(self, *, user_id: int, start_key: str, end_key: str) -> int:
        raise NotImplementedError

    def has_approved_ot(self, *, user_id: int, request_date: str) -> bool:
        raise NotImplementedError

    def find_overlapping_leave(self, *, user_id: int, start_key: str, end_key: str) -> Optional[WorkRequest]:
        """A PENDING or APPROVED leave intersecting ``[start_key, end_key]``."""
        raise NotImplementedError

    def list_approved_leaves_between(self, *, user_id: int, start_key: str, end_key: str) -> Sequence[WorkRequest]:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
    ) -> Optional[WorkRequest]:
        """PENDING -> ``status``; ``None`` when the row was not PENDING anymore."""
        raise NotImplementedError

    def delete_pending(self, *, request_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[WorkRequest]:
        raise NotImplementedError

    def list_pending(self, *, team_id: Optional[int] = None, limit: int = 200) -> Sequence[WorkRequest]:
        raise NotImplementedError
