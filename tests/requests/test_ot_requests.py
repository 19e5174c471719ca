from __future__ import annotations

from datetime import datetime

import pytest

from attendance_workflow.common.datetime_utils import BUSINESS_TZ
from attendance_workflow.core.enums import RequestStatus, RequestType
from attendance_workflow.core.exceptions import ValidationError
from attendance_workflow.requests.model import OtRequestDraft

NOW = datetime(2026, 1, 27, 10, 0, tzinfo=BUSINESS_TZ)


def at(day, hour, minute=0, month=1):
    return datetime(2026, month, day, hour, minute, tzinfo=BUSINESS_TZ)


def ot(date="2026-01-27", end="2026-01-27T19:00:00+07:00", reason="Release night"):
    return OtRequestDraft(date=date, estimated_end_time=end, reason=reason)


@pytest.fixture
def svc(container):
    return container.request_service


def create(svc, user_id, draft, now=NOW):
    return svc.create_ot_request(user_id=user_id, draft=draft, now=now)


def test_create_ot_request_for_today(svc, people):
    req = create(svc, people.employee.user_id, ot())

    assert req.request_type == RequestType.OT_REQUEST
    assert req.status == RequestStatus.PENDING
    assert req.request_date == "2026-01-27"
    assert req.estimated_end_time == at(27, 19, 0)
    assert req.reason == "Release night"


@pytest.mark.parametrize(
    "draft,message",
    [
        (ot(date=None), "date is required"),
        (ot(end=None), "estimatedEndTime is required"),
        (ot(date="27/01/2026"), "Invalid date format"),
        (ot(end="2026-01-27T19:00:00"), "must include timezone"),
        (ot(date="2026-01-26", end="2026-01-26T19:00:00+07:00"), "Cannot create OT request for past dates"),
        (ot(end="2026-01-27T17:31:00+07:00"), "OT must start after 17:31"),
        (ot(end="2026-01-27T17:50:00+07:00"), "Minimum OT duration is 30 minutes"),
        (ot(end="2026-01-28T01:00:00+07:00"), "Cross-midnight OT requires separate requests"),
        (ot(reason="   "), "Reason is required"),
        (ot(reason="x" * 1001), "Reason must be 1000 characters or less"),
    ],
)
def test_ot_creation_validation(svc, people, draft, message):
    with pytest.raises(ValidationError, match=message):
        create(svc, people.employee.user_id, draft)


def test_same_day_request_must_target_future_time(svc, people):
    late_now = at(27, 19, 30)

    with pytest.raises(ValidationError, match="Cannot create OT request for past time"):
        create(svc, people.employee.user_id, ot(end="2026-01-27T19:00:00+07:00"), now=late_now)


def test_future_date_skips_same_day_time_check(svc, people):
    late_now = at(27, 23, 0)

    req = create(svc, people.employee.user_id, ot(date="2026-01-28", end="2026-01-28T18:30:00+07:00"), now=late_now)

    assert req.request_date == "2026-01-28"


def test_thirty_minutes_is_enough(svc, people):
    req = create(svc, people.employee.user_id, ot(end="2026-01-27T18:01:00+07:00"))

    assert req.estimated_end_time == at(27, 18, 1)


def test_cannot_request_after_checkout(svc, repos, people):
    repos.attendance.add(
        user_id=people.employee.user_id,
        work_date="2026-01-27",
        check_in_at=at(27, 8, 0),
        check_out_at=at(27, 9, 30),
    )

    # Checkout is checked before the reason.
    with pytest.raises(ValidationError, match="Cannot request OT after checkout"):
        create(svc, people.employee.user_id, ot(reason=""))


def test_open_session_allows_request(svc, repos, people):
    repos.attendance.add(user_id=people.employee.user_id, work_date="2026-01-27", check_in_at=at(27, 8, 0))

    req = create(svc, people.employee.user_id, ot())

    assert req.status == RequestStatus.PENDING


def test_second_submission_same_day_extends_pending_request(svc, repos, people):
    first = create(svc, people.employee.user_id, ot())
    second = create(svc, people.employee.user_id, ot(end="2026-01-27T21:00:00+07:00", reason="Longer"))

    assert second.request_id == first.request_id
    assert second.estimated_end_time == at(27, 21, 0)
    assert second.reason == "Longer"
    assert len(repos.requests.requests) == 1


def test_different_date_creates_new_row(svc, repos, people):
    first = create(svc, people.employee.user_id, ot())
    second = create(svc, people.employee.user_id, ot(date="2026-01-28", end="2026-01-28T19:00:00+07:00"))

    assert second.request_id != first.request_id
    assert len(repos.requests.requests) == 2


def test_approved_request_gets_new_pending_row_alongside(svc, repos, people):
    approved = repos.requests.add(
        user_id=people.employee.user_id,
        request_type=RequestType.OT_REQUEST,
        status=RequestStatus.APPROVED,
        request_date="2026-01-27",
        estimated_end_time=at(27, 19, 0),
    )

    req = create(svc, people.employee.user_id, ot(end="2026-01-27T20:00:00+07:00"))

    assert req.request_id != approved.request_id
    assert req.status == RequestStatus.PENDING
    assert repos.requests.get_by_id(approved.request_id).status == RequestStatus.APPROVED


def _fill_pending(repos, user_id, count, month=1):
    for day in range(1, count + 1):
        repos.requests.add(
            user_id=user_id,
            request_type=RequestType.OT_REQUEST,
            request_date=f"2026-{month:02d}-{day:02d}",
            estimated_end_time=datetime(2026, month, day, 19, 0, tzinfo=BUSINESS_TZ),
        )


def test_thirty_first_pending_request_is_accepted(svc, repos, people):
    _fill_pending(repos, people.employee.user_id, 30)

    req = create(svc, people.employee.user_id, ot(date="2026-01-31", end="2026-01-31T19:00:00+07:00"))

    assert req.status == RequestStatus.PENDING
    assert repos.requests.count_pending_ot_between(
        user_id=people.employee.user_id, start_key="2026-01-01", end_key="2026-02-01"
    ) == 31


def test_thirty_second_pending_request_rejected_even_for_existing_day(svc, repos, people):
    _fill_pending(repos, people.employee.user_id, 31)

    # A PENDING row exists for the 28th, but the cap is checked before merging.
    with pytest.raises(ValidationError, match="Maximum 31 pending OT requests per month reached"):
        create(svc, people.employee.user_id, ot(date="2026-01-28", end="2026-01-28T19:00:00+07:00"))


def test_cap_is_per_month_and_per_user(svc, repos, people):
    _fill_pending(repos, people.employee.user_id, 31)

    feb = create(svc, people.employee.user_id, ot(date="2026-02-02", end="2026-02-02T19:00:00+07:00"))
    other = create(svc, people.manager.user_id, ot())

    assert feb.request_date == "2026-02-02"
    assert other.user_id == people.manager.user_id


def test_concurrent_insert_for_same_day_is_merged(svc, repos, monkeypatch, people):
    uid = people.employee.user_id
    insert = repos.requests.create
    state = {}

    def other_submission_wins(request):
        # The other submission passed the merge check too and inserted first.
        state["rival"] = repos.requests.add(
            user_id=uid,
            request_type=RequestType.OT_REQUEST,
            request_date="2026-01-27",
            estimated_end_time=at(27, 19, 0),
        )
        return insert(request)

    monkeypatch.setattr(repos.requests, "create", other_submission_wins)

    req = create(svc, uid, ot(end="2026-01-27T21:00:00+07:00", reason="Longer"))

    assert req.request_id == state["rival"].request_id
    assert req.estimated_end_time == at(27, 21, 0)
    pending = [r for r in repos.requests.requests.values() if r.request_date == "2026-01-27" and r.is_pending]
    assert len(pending) == 1
