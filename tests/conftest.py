from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from attendance_workflow.attendance.model import AttendanceRecord
from attendance_workflow.container import wire_container
from attendance_workflow.core.enums import RequestStatus, RequestType, Role
from attendance_workflow.requests.model import WorkRequest
from attendance_workflow.users.model import User


class InMemoryAttendanceRepo:
    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}
        self._next_id = 1

    def add(self, *, user_id, work_date, check_in_at, check_out_at=None, ot_approved=False):
        rec = AttendanceRecord(
            attendance_id=self._next_id,
            user_id=user_id,
            work_date=work_date,
            check_in_at=check_in_at,
            check_out_at=check_out_at,
            ot_approved=ot_approved,
        )
        self.records[rec.attendance_id] = rec
        self._next_id += 1
        return rec

    def get_by_id(self, attendance_id):
        return self.records.get(int(attendance_id))

    def get_for_user_and_date(self, user_id, work_date):
        for rec in self.records.values():
            if rec.user_id == user_id and rec.work_date == work_date:
                return rec
        return None

    def list_open_sessions(self, user_id):
        rows = [r for r in self.records.values() if r.user_id == user_id and r.is_open]
        return sorted(rows, key=lambda r: r.check_in_at, reverse=True)

    def create_checkin(self, *, user_id, work_date, check_in_at, ot_approved=False):
        if self.get_for_user_and_date(user_id, work_date):
            return None
        return self.add(user_id=user_id, work_date=work_date, check_in_at=check_in_at, ot_approved=ot_approved)

    def close_session(self, *, attendance_id, check_out_at):
        rec = self.records.get(int(attendance_id))
        if rec is None or rec.check_out_at is not None:
            return False
        self.records[rec.attendance_id] = replace(rec, check_out_at=check_out_at)
        return True

    def mark_ot_approved(self, *, user_id, work_date):
        rec = self.get_for_user_and_date(user_id, work_date)
        if rec is None:
            return False
        self.records[rec.attendance_id] = replace(rec, ot_approved=True)
        return True

    def apply_adjustment(self, *, user_id, work_date, check_in_at, check_out_at, ot_approved):
        rec = self.get_for_user_and_date(user_id, work_date)
        if rec is None:
            return self.add(
                user_id=user_id,
                work_date=work_date,
                check_in_at=check_in_at,
                check_out_at=check_out_at,
                ot_approved=ot_approved,
            )
        updated = replace(
            rec,
            check_in_at=check_in_at or rec.check_in_at,
            check_out_at=check_out_at or rec.check_out_at,
            ot_approved=rec.ot_approved or ot_approved,
        )
        self.records[rec.attendance_id] = updated
        return updated

    def list_for_user_between(self, user_id, start_key, end_key):
        return self.list_between(start_key, end_key, user_ids=[user_id])

    def list_between(self, start_key, end_key, *, user_ids=None):
        rows = [
            r
            for r in self.records.values()
            if start_key <= r.work_date < end_key and (user_ids is None or r.user_id in user_ids)
        ]
        return sorted(rows, key=lambda r: (r.work_date, r.user_id))


class InMemoryRequestRepo:
    def __init__(self, users):
        self.requests: dict[int, WorkRequest] = {}
        self._next_id = 1
        self._users = users
        # Called right before the conditional status write, to simulate a concurrent decision.
        self.before_decide = None

    def add(self, **fields):
        fields.setdefault("status", RequestStatus.PENDING)
        fields.setdefault("reason", "reason")
        fields.setdefault("created_at", datetime(2026, 1, 1, tzinfo=timezone.utc))
        req = WorkRequest(request_id=self._next_id, **fields)
        self.requests[req.request_id] = req
        self._next_id += 1
        return req

    def get_by_id(self, request_id):
        return self.requests.get(int(request_id))

    def create(self, request):
        # Mirrors the unique (user_id, type, pending_date) key.
        if request.status == RequestStatus.PENDING and request.request_date is not None:
            if self.find_pending(
                user_id=request.user_id,
                request_type=request.request_type,
                request_date=request.request_date,
            ):
                return None
        stored = replace(request, request_id=self._next_id)
        self.requests[stored.request_id] = stored
        self._next_id += 1
        return stored

    def find_pending(self, *, user_id, request_type, request_date):
        for r in self.requests.values():
            if (r.user_id, r.request_type, r.status, r.request_date) == (
                user_id,
                request_type,
                RequestStatus.PENDING,
                request_date,
            ):
                return r
        return None

    def extend_pending_ot(self, *, user_id, request_date, estimated_end_time, reason):
        existing = self.find_pending(user_id=user_id, request_type=RequestType.OT_REQUEST, request_date=request_date)
        if existing is None:
            return None
        updated = replace(existing, estimated_end_time=estimated_end_time, reason=reason)
        self.requests[existing.request_id] = updated
        return updated

    def count_pending_ot_between(self, *, user_id, start_key, end_key):
        return sum(
            1
            for r in self.requests.values()
            if r.user_id == user_id
            and r.request_type == RequestType.OT_REQUEST
            and r.status == RequestStatus.PENDING
            and start_key <= r.request_date < end_key
        )

    def has_approved_ot(self, *, user_id, request_date):
        return any(
            r.user_id == user_id
            and r.request_type == RequestType.OT_REQUEST
            and r.status == RequestStatus.APPROVED
            and r.request_date == request_date
            for r in self.requests.values()
        )

    def _leaves(self, user_id, statuses, start_key, end_key):
        return [
            r
            for r in self.requests.values()
            if r.user_id == user_id
            and r.request_type == RequestType.LEAVE
            and r.status in statuses
            and r.leave_start_date <= end_key
            and r.leave_end_date >= start_key
        ]

    def find_overlapping_leave(self, *, user_id, start_key, end_key):
        found = self._leaves(user_id, {RequestStatus.PENDING, RequestStatus.APPROVED}, start_key, end_key)
        return found[0] if found else None

    def list_approved_leaves_between(self, *, user_id, start_key, end_key):
        return self._leaves(user_id, {RequestStatus.APPROVED}, start_key, end_key)

    def decide(self, *, request_id, status, decided_by, decided_at):
        if self.before_decide is not None:
            hook, self.before_decide = self.before_decide, None
            hook(self)
        req = self.requests.get(int(request_id))
        if req is None or req.status != RequestStatus.PENDING:
            return None
        updated = replace(req, status=status, approved_by=decided_by, approved_at=decided_at)
        self.requests[req.request_id] = updated
        return updated

    def delete_pending(self, *, request_id, user_id):
        req = self.requests.get(int(request_id))
        if req is None or req.user_id != user_id or req.status != RequestStatus.PENDING:
            return False
        del self.requests[req.request_id]
        return True

    def list_for_user(self, *, user_id, status=None, limit=200):
        rows = [r for r in self.requests.values() if r.user_id == user_id and (status is None or r.status == status)]
        return rows[:limit]

    def list_pending(self, *, team_id=None, limit=200):
        rows = []
        for r in self.requests.values():
            owner = self._users.get_by_id(r.user_id)
            if r.status != RequestStatus.PENDING or owner is None or not owner.is_active:
                continue
            if team_id is not None and owner.team_id != team_id:
                continue
            rows.append(r)
        return rows[:limit]


class InMemoryUserRepo:
    def __init__(self, users=()):
        self.users = {u.user_id: u for u in users}

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def list_active(self, *, team_id=None):
        return [u for u in self.users.values() if u.is_active and (team_id is None or u.team_id == team_id)]


class InMemoryHolidayRepo:
    def __init__(self, dates=()):
        self.dates = set(dates)

    def list_dates_between(self, start_key, end_key):
        return sorted(d for d in self.dates if start_key <= d < end_key)


class InMemoryAuditRepo:
    def __init__(self):
        self.entries = []
        self.fail = False

    def create(self, entry):
        if self.fail:
            raise RuntimeError("audit store unavailable")
        self.entries.append(entry)
        return len(self.entries)


EMPLOYEE = User(user_id=1, full_name="Employee One", username="emp1", role=Role.EMPLOYEE, team_id=10)
MANAGER = User(user_id=2, full_name="Manager Ten", username="mgr10", role=Role.MANAGER, team_id=10)
OTHER_MANAGER = User(user_id=3, full_name="Manager Twenty", username="mgr20", role=Role.MANAGER, team_id=20)
ADMIN = User(user_id=4, full_name="Admin", username="admin", role=Role.ADMIN)
INACTIVE = User(user_id=5, full_name="Former", username="former", role=Role.EMPLOYEE, team_id=10, is_active=False)
TEAMLESS_MANAGER = User(user_id=6, full_name="Floating Manager", username="mgr0", role=Role.MANAGER)


@pytest.fixture(autouse=True)
def _default_knobs(monkeypatch):
    monkeypatch.delenv("CHECKOUT_GRACE_HOURS", raising=False)
    monkeypatch.delenv("ADJUST_REQUEST_MAX_DAYS", raising=False)


@pytest.fixture
def people():
    return SimpleNamespace(
        employee=EMPLOYEE,
        manager=MANAGER,
        other_manager=OTHER_MANAGER,
        admin=ADMIN,
        inactive=INACTIVE,
        teamless_manager=TEAMLESS_MANAGER,
    )


@pytest.fixture
def repos(people):
    users = InMemoryUserRepo(vars(people).values())
    return SimpleNamespace(
        users=users,
        attendance=InMemoryAttendanceRepo(),
        requests=InMemoryRequestRepo(users),
        holidays=InMemoryHolidayRepo(),
        audit=InMemoryAuditRepo(),
    )


@pytest.fixture
def container(repos):
    return wire_container(
        users_repo=repos.users,
        attendance_repo=repos.attendance,
        requests_repo=repos.requests,
        holidays_repo=repos.holidays,
        audit_repo=repos.audit,
    )
