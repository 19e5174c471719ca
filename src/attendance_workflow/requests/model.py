from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Mapping, Optional, Union

from ..core.enums import LeaveType, RequestStatus, RequestType
from ..core.exceptions import ValidationError


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class WorkRequest:
    """Thực thể miền (domain): yêu cầu (ADJUST_TIME / LEAVE / OT_REQUEST).

    One row type for all kinds; only the fields of ``request_type`` are set.
    ``request_date`` is the business day for ADJUST_TIME and OT_REQUEST.
    """

    request_id: int
    user_id: int
    request_type: RequestType
    status: RequestStatus
    reason: str
    request_date: Optional[str] = None
    check_out_date: Optional[str] = None
    requested_check_in_at: Optional[datetime] = None
    requested_check_out_at: Optional[datetime] = None
    estimated_end_time: Optional[datetime] = None
    leave_start_date: Optional[str] = None
    leave_end_date: Optional[str] = None
    leave_type: Optional[LeaveType] = None
    leave_days_count: Optional[int] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.request_id,
            "userId": self.user_id,
            "type": self.request_type.value,
            "status": self.status.value,
            "reason": self.reason,
            "approvedBy": self.approved_by,
            "approvedAt": _iso(self.approved_at),
            "createdAt": _iso(self.created_at),
        }
        if self.request_type == RequestType.ADJUST_TIME:
            data.update(
                date=self.request_date,
                checkOutDate=self.check_out_date,
                requestedCheckInAt=_iso(self.requested_check_in_at),
                requestedCheckOutAt=_iso(self.requested_check_out_at),
            )
        elif self.request_type == RequestType.OT_REQUEST:
            data.update(date=self.request_date, estimatedEndTime=_iso(self.estimated_end_time))
        else:
            data.update(
                leaveStartDate=self.leave_start_date,
                leaveEndDate=self.leave_end_date,
                leaveType=self.leave_type.value if self.leave_type else None,
                leaveDaysCount=self.leave_days_count,
            )
        return data


# Drafts carry raw client values; the service validates them in a fixed order.


@dataclass(frozen=True)
class AdjustTimeDraft:
    request_type: ClassVar[RequestType] = RequestType.ADJUST_TIME

    date: Any = None
    requested_check_in_at: Any = None
    requested_check_out_at: Any = None
    reason: Any = None


@dataclass(frozen=True)
class LeaveDraft:
    request_type: ClassVar[RequestType] = RequestType.LEAVE

    leave_start_date: Any = None
    leave_end_date: Any = None
    leave_type: Any = None
    reason: Any = None


@dataclass(frozen=True)
class OtRequestDraft:
    request_type: ClassVar[RequestType] = RequestType.OT_REQUEST

    date: Any = None
    estimated_end_time: Any = None
    reason: Any = None


RequestDraft = Union[AdjustTimeDraft, LeaveDraft, OtRequestDraft]


def parse_request_payload(payload: Any) -> RequestDraft:
    """Turn a JSON body into the draft for its ``type`` (default ADJUST_TIME)."""
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")

    raw_type = payload.get("type") or RequestType.ADJUST_TIME.value
    try:
        request_type = RequestType(raw_type)
    except ValueError:
        allowed = ", ".join(t.value for t in RequestType)
        raise ValidationError(f"Invalid request type. Must be one of: {allowed}")

    if request_type == RequestType.OT_REQUEST:
        return OtRequestDraft(
            date=payload.get("date"),
            estimated_end_time=payload.get("estimatedEndTime"),
            reason=payload.get("reason"),
        )
    if request_type == RequestType.LEAVE:
        return LeaveDraft(
            leave_start_date=payload.get("leaveStartDate"),
            leave_end_date=payload.get("leaveEndDate"),
            leave_type=payload.get("leaveType"),
            reason=payload.get("reason"),
        )
    return AdjustTimeDraft(
        date=payload.get("date"),
        requested_check_in_at=payload.get("requestedCheckInAt"),
        requested_check_out_at=payload.get("requestedCheckOutAt"),
        reason=payload.get("reason"),
    )
