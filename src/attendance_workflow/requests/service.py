from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Sequence

from ..attendance.metrics import estimated_ot_duration, is_in_ot_period
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import (
    add_days,
    count_workdays,
    date_range,
    day_key,
    is_weekend,
    month_bounds,
    now_utc,
    parse_day_key,
    parse_instant,
    today_key,
)
from ..common.grace_config import adjust_request_max, checkout_grace
from ..common.validators import parse_entity_id, require_reason
from ..core.constants import (
    DEFAULT_HISTORY_LIMIT,
    FUTURE_TOLERANCE_SECONDS,
    MAX_LEAVE_RANGE_DAYS,
    MAX_PENDING_OT_PER_MONTH,
    OT_MIN_DURATION_MINUTES,
)
from ..core.enums import LeaveType, RequestStatus, RequestType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..holidays.service import HolidayService
from ..users.model import User
from ..users.repository import UserRepository
from .model import (
    AdjustTimeDraft,
    LeaveDraft,
    OtRequestDraft,
    RequestDraft,
    WorkRequest,
    parse_request_payload,
)
from .repository import RequestRepository

logger = logging.getLogger(__name__)

_FUTURE_TOLERANCE = timedelta(seconds=FUTURE_TOLERANCE_SECONDS)
_DUPLICATE_ADJUST_MESSAGE = (
    "You already have a pending request for this date. "
    "Please wait for approval or cancel the existing request."
)


def _hours(value: timedelta) -> int:
    return int(value.total_seconds() // 3600)


def _days(value: timedelta) -> int:
    return value.days


class RequestService:
    """Create, approve, reject and cancel requests.

    Approval and rejection are compare-and-swap writes on PENDING: of two
    concurrent decisions exactly one wins and the other gets a 409.
    """

    def __init__(
        self,
        requests: RequestRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        holidays: HolidayService,
        *,
        grace_provider: Callable[[], timedelta] = checkout_grace,
        adjust_window_provider: Callable[[], timedelta] = adjust_request_max,
    ):
        self._requests = requests
        self._attendance = attendance
        self._users = users
        self._holidays = holidays
        self._grace_provider = grace_provider
        self._adjust_window_provider = adjust_window_provider

    def _is_non_working_day(self, key: str) -> bool:
        return is_weekend(key) or key in self._holidays.get_holiday_dates_for_month(key[:7])

    # -------- Creation --------
    def create_request(self, *, user_id: int, payload: Any, now: Optional[datetime] = None) -> WorkRequest:
        draft = parse_request_payload(payload)
        return self.create_from_draft(user_id=user_id, draft=draft, now=now)

    def create_from_draft(self, *, user_id: int, draft: RequestDraft, now: Optional[datetime] = None) -> WorkRequest:
        if isinstance(draft, OtRequestDraft):
            return self.create_ot_request(user_id=user_id, draft=draft, now=now)
        if isinstance(draft, LeaveDraft):
            return self.create_leave_request(user_id=user_id, draft=draft, now=now)
        return self.create_adjust_time_request(user_id=user_id, draft=draft, now=now)

    def create_ot_request(self, *, user_id: int, draft: OtRequestDraft, now: Optional[datetime] = None) -> WorkRequest:
        now = now or now_utc()

        if not draft.date:
            raise ValidationError("date is required")
        if not draft.estimated_end_time:
            raise ValidationError("estimatedEndTime is required")

        key = parse_day_key(draft.date)
        end_time = parse_instant(draft.estimated_end_time, "estimatedEndTime")

        today = today_key(now)
        if key < today:
            raise ValidationError("Cannot create OT request for past dates")
        if key == today and end_time <= now:
            raise ValidationError(
                "Cannot create OT request for past time. "
                "OT must be requested before the estimated end time."
            )

        if not is_in_ot_period(key, end_time):
            raise ValidationError("OT must start after 17:31. Please adjust your estimated end time.")
        if estimated_ot_duration(key, end_time) < OT_MIN_DURATION_MINUTES:
            raise ValidationError(f"Minimum OT duration is {OT_MIN_DURATION_MINUTES} minutes")
        if day_key(end_time) != key:
            raise ValidationError(
                "Cross-midnight OT requires separate requests for each date. "
                "Please create a request for each day."
            )

        attendance = self._attendance.get_for_user_and_date(user_id, key)
        if attendance is not None and attendance.check_out_at is not None:
            raise ValidationError("Cannot request OT after checkout. OT must be requested before checking out.")

        reason = require_reason(draft.reason)

        month_start, month_end = month_bounds(key[:7])
        pending = self._requests.count_pending_ot_between(user_id=user_id, start_key=month_start, end_key=month_end)
        if pending >= MAX_PENDING_OT_PER_MONTH:
            raise ValidationError(f"Maximum {MAX_PENDING_OT_PER_MONTH} pending OT requests per month reached")

        merged = self._extend_pending_ot(user_id, key, end_time, reason)
        if merged is not None:
            return merged

        created = self._requests.create(
            WorkRequest(
                request_id=0,
                user_id=user_id,
                request_type=RequestType.OT_REQUEST,
                status=RequestStatus.PENDING,
                reason=reason,
                request_date=key,
                estimated_end_time=end_time,
                created_at=now,
            )
        )
        if created is None:
            # A concurrent submission inserted the day's PENDING row first.
            merged = self._extend_pending_ot(user_id, key, end_time, reason)
            if merged is None:
                raise ConflictError("OT request for this date was changed concurrently. Please retry.")
            return merged
        logger.info("OT request created", extra={"request_id": created.request_id, "user_id": user_id, "date": key})
        return created

    def _extend_pending_ot(self, user_id: int, key: str, end_time: datetime, reason: str) -> Optional[WorkRequest]:
        merged = self._requests.extend_pending_ot(
            user_id=user_id,
            request_date=key,
            estimated_end_time=end_time,
            reason=reason,
        )
        if merged is not None:
            logger.info("OT request extended", extra={"request_id": merged.request_id, "user_id": user_id, "date": key})
        return merged

    def create_adjust_time_request(
        self,
        *,
        user_id: int,
        draft: AdjustTimeDraft,
        now: Optional[datetime] = None,
    ) -> WorkRequest:
        now = now or now_utc()

        key = parse_day_key(draft.date)
        check_in = parse_instant(draft.requested_check_in_at, "requestedCheckInAt")
        check_out = parse_instant(draft.requested_check_out_at, "requestedCheckOutAt")
        if check_in is None and check_out is None:
            raise ValidationError("At least one of requestedCheckInAt or requestedCheckOutAt is required")

        reason = require_reason(draft.reason)

        if check_in and check_out and check_out <= check_in:
            raise ValidationError("requestedCheckOutAt must be after requestedCheckInAt")

        if check_in is not None:
            if check_in > now + _FUTURE_TOLERANCE:
                raise ValidationError("requestedCheckInAt cannot be in the future")
            if day_key(check_in) != key:
                raise ValidationError("requestedCheckInAt must be on the same date as request date (GMT+7)")

        existing = self._attendance.get_for_user_and_date(user_id, key)

        if self._is_non_working_day(key):
            raise ValidationError("Cannot create time adjustment request for weekend or holiday")

        grace = self._grace_provider()
        window = self._adjust_window_provider()

        anchor = check_in or (existing.check_in_at if existing else None)
        if anchor is not None and now - anchor > window:
            raise ValidationError(f"Cannot submit request >{_days(window)} days after check-in")

        if check_out is not None:
            # Cross-midnight checkouts may be later than now; session length bounds them.
            cross_midnight = anchor is not None and day_key(check_out) > day_key(anchor)
            if not cross_midnight and check_out > now + _FUTURE_TOLERANCE:
                raise ValidationError("requestedCheckOutAt cannot be in the future")
            if anchor is None:
                raise ValidationError("Cannot validate checkout without check-in reference")
            if check_out - anchor > grace:
                raise ValidationError(f"Session length exceeds {_hours(grace)}h limit")
            if check_out <= anchor:
                raise ValidationError("requestedCheckOutAt must be after check-in")

        if check_in is None and existing is None:
            raise ValidationError(
                "Cannot create new attendance without check-in time. Please include requestedCheckInAt"
            )
        if check_out and check_in is None and existing and existing.check_in_at and check_out <= existing.check_in_at:
            raise ValidationError("requestedCheckOutAt must be after existing check-in time")
        if check_in and check_out is None and existing and existing.check_out_at and check_in >= existing.check_out_at:
            raise ValidationError("requestedCheckInAt must be before existing check-out time")

        check_out_date = day_key(check_out) if check_out else None
        if check_out_date and check_out_date < key:
            raise ValidationError("requestedCheckOutAt must be on or after check-in date (GMT+7)")

        if self._requests.find_pending(user_id=user_id, request_type=RequestType.ADJUST_TIME, request_date=key):
            raise ConflictError(_DUPLICATE_ADJUST_MESSAGE)

        created = self._requests.create(
            WorkRequest(
                request_id=0,
                user_id=user_id,
                request_type=RequestType.ADJUST_TIME,
                status=RequestStatus.PENDING,
                reason=reason,
                request_date=key,
                check_out_date=check_out_date,
                requested_check_in_at=check_in,
                requested_check_out_at=check_out,
                created_at=now,
            )
        )
        if created is None:
            raise ConflictError(_DUPLICATE_ADJUST_MESSAGE)
        logger.info("Adjustment request created", extra={"request_id": created.request_id, "user_id": user_id})
        return created

    def create_leave_request(self, *, user_id: int, draft: LeaveDraft, now: Optional[datetime] = None) -> WorkRequest:
        now = now or now_utc()

        start = parse_day_key(draft.leave_start_date, "leaveStartDate")
        end = parse_day_key(draft.leave_end_date, "leaveEndDate")
        if start > end:
            raise ValidationError("leaveStartDate must be before or equal to leaveEndDate")
        if len(date_range(start, end)) > MAX_LEAVE_RANGE_DAYS:
            raise ValidationError(f"Leave range cannot exceed {MAX_LEAVE_RANGE_DAYS} days")

        reason = require_reason(draft.reason)

        leave_type: Optional[LeaveType] = None
        if draft.leave_type not in (None, ""):
            try:
                leave_type = LeaveType(draft.leave_type)
            except ValueError:
                raise ValidationError("leaveType must be ANNUAL, SICK, or UNPAID")

        attended = self._attendance.list_for_user_between(user_id, start, add_days(end, 1))
        if attended:
            raise ValidationError(
                f"Already checked in for {attended[0].work_date}. "
                "Cannot request leave for dates with attendance. Use ADJUST_TIME instead."
            )

        overlap = self._requests.find_overlapping_leave(user_id=user_id, start_key=start, end_key=end)
        if overlap is not None:
            raise ConflictError(
                f"Leave overlaps with existing {overlap.status.value.lower()} leave "
                f"({overlap.leave_start_date} to {overlap.leave_end_date})"
            )

        holidays = self._holidays.get_holiday_dates_between(start, end)
        created = self._requests.create(
            WorkRequest(
                request_id=0,
                user_id=user_id,
                request_type=RequestType.LEAVE,
                status=RequestStatus.PENDING,
                reason=reason,
                leave_start_date=start,
                leave_end_date=end,
                leave_type=leave_type,
                leave_days_count=count_workdays(start, end, holidays),
                created_at=now,
            )
        )
        logger.info("Leave request created", extra={"request_id": created.request_id, "user_id": user_id})
        return created

    # -------- Decisions --------
    def _load_for_decision(self, request_id: Any, actor: User, *, verb: str) -> tuple[int, WorkRequest, Optional[User]]:
        rid = parse_entity_id(request_id, "Invalid request ID")
        if not actor.is_approver:
            raise AuthorizationError("Insufficient permissions")

        req = self._requests.get_by_id(rid)
        if req is None:
            raise NotFoundError("Request not found")
        if req.user_id == actor.user_id:
            raise AuthorizationError(f"You cannot {verb} your own request")

        owner = self._users.get_by_id(req.user_id)
        if actor.role == Role.MANAGER:
            if actor.team_id is None:
                raise AuthorizationError("Manager must be assigned to a team")
            if owner is None or owner.team_id is None:
                raise AuthorizationError("Request user is not assigned to any team")
            if owner.team_id != actor.team_id:
                raise AuthorizationError(f"You can only {verb} requests from your team")
        return rid, req, owner

    def _revalidate_adjustment(self, req: WorkRequest) -> None:
        key = req.request_date
        if req.requested_check_in_at and day_key(req.requested_check_in_at) != key:
            raise ValidationError("requestedCheckInAt must be on the same date as request date (GMT+7)")

        anchor = req.requested_check_in_at
        if anchor is None:
            existing = self._attendance.get_for_user_and_date(req.user_id, key)
            anchor = existing.check_in_at if existing else None
        if anchor is None:
            raise ValidationError("Cannot approve: missing check-in reference")

        window = self._adjust_window_provider()
        if req.created_at is not None and req.created_at - anchor > window:
            raise ValidationError(f"Request invalid: submitted >{_days(window)}d after check-in")

        if req.requested_check_out_at is not None:
            grace = self._grace_provider()
            if req.requested_check_out_at - anchor > grace:
                raise ValidationError(f"Request invalid: session exceeds {_hours(grace)}h limit")
            if req.requested_check_out_at <= anchor:
                raise ValidationError("Request invalid: checkOut must be after check-in")

        if self._is_non_working_day(key):
            raise ValidationError("Cannot approve time adjustment request for weekend/holiday")

    def _transition(self, rid: int, status: RequestStatus, actor: User, now: datetime) -> WorkRequest:
        decided = self._requests.decide(request_id=rid, status=status, decided_by=actor.user_id, decided_at=now)
        if decided is not None:
            return decided

        current = self._requests.get_by_id(rid)
        if current is None:
            raise NotFoundError("Request not found")
        logger.warning(
            "Request transition lost race",
            extra={"request_id": rid, "wanted": status.value, "current": current.status.value},
        )
        raise ConflictError(f"Request already {current.status.value.lower()}")

    def _reconcile_adjustment(self, req: WorkRequest) -> None:
        ot_approved = self._requests.has_approved_ot(user_id=req.user_id, request_date=req.request_date)
        self._attendance.apply_adjustment(
            user_id=req.user_id,
            work_date=req.request_date,
            check_in_at=req.requested_check_in_at,
            check_out_at=req.requested_check_out_at,
            ot_approved=ot_approved,
        )

    def approve_request(self, *, request_id: Any, approver: User, now: Optional[datetime] = None) -> WorkRequest:
        now = now or now_utc()
        rid, req, owner = self._load_for_decision(request_id, approver, verb="approve")

        # Decided requests go straight to the guarded write and get a 409.
        if req.is_pending:
            if req.request_type == RequestType.OT_REQUEST and (owner is None or not owner.is_active):
                raise ValidationError("Cannot approve OT request for inactive user")
            if req.request_type == RequestType.ADJUST_TIME:
                self._revalidate_adjustment(req)

        approved = self._transition(rid, RequestStatus.APPROVED, approver, now)

        if approved.request_type == RequestType.OT_REQUEST:
            # No record yet means check-in will pick the approval up.
            applied = self._attendance.mark_ot_approved(user_id=approved.user_id, work_date=approved.request_date)
            logger.info(
                "OT request approved",
                extra={"request_id": rid, "user_id": approved.user_id, "applied_to_attendance": applied},
            )
        elif approved.request_type == RequestType.ADJUST_TIME:
            self._reconcile_adjustment(approved)
            logger.info("Adjustment request approved", extra={"request_id": rid, "user_id": approved.user_id})
        else:
            logger.info("Leave request approved", extra={"request_id": rid, "user_id": approved.user_id})
        return approved

    def reject_request(self, *, request_id: Any, approver: User, now: Optional[datetime] = None) -> WorkRequest:
        now = now or now_utc()
        rid, _, _ = self._load_for_decision(request_id, approver, verb="reject")
        rejected = self._transition(rid, RequestStatus.REJECTED, approver, now)
        logger.info("Request rejected", extra={"request_id": rid, "user_id": rejected.user_id})
        return rejected

    def cancel_request(self, *, user_id: int, request_id: Any) -> None:
        rid = parse_entity_id(request_id, "Invalid request ID")
        if not self._requests.delete_pending(request_id=rid, user_id=user_id):
            raise NotFoundError("Request not found or already processed")
        logger.info("Request cancelled", extra={"request_id": rid, "user_id": user_id})

    # -------- Queries --------
    def list_my_requests(
        self,
        *,
        user_id: int,
        status: Optional[str] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[WorkRequest]:
        wanted: Optional[RequestStatus] = None
        if status:
            try:
                wanted = RequestStatus(status)
            except ValueError:
                raise ValidationError("Invalid status. Must be PENDING, APPROVED, or REJECTED")
        return self._requests.list_for_user(user_id=user_id, status=wanted, limit=limit)

    def list_pending(self, *, approver: User, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[WorkRequest]:
        if approver.role == Role.ADMIN:
            return self._requests.list_pending(limit=limit)
        if approver.role == Role.MANAGER:
            if approver.team_id is None:
                raise AuthorizationError("Manager must be assigned to a team")
            return self._requests.list_pending(team_id=approver.team_id, limit=limit)
        raise AuthorizationError("Insufficient permissions")

    def get_approved_leave_dates(self, *, user_id: int, month: str) -> frozenset[str]:
        start, next_start = month_bounds(month)
        last = add_days(next_start, -1)
        dates: set[str] = set()
        for leave in self._requests.list_approved_leaves_between(user_id=user_id, start_key=start, end_key=last):
            dates.update(d for d in date_range(leave.leave_start_date, leave.leave_end_date) if start <= d <= last)
        return frozenset(dates)
