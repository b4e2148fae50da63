from __future__ import annotations

from datetime import date, datetime

import pytest

from src.remote_work.remote_work.core.enums import ApplicationStatus, WorkOption
from src.remote_work.remote_work.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

ADMIN_ID = 1
APPROVER_ID = 2
APPLICANT_ID = 3
NO_MANAGER_ID = 4
SALES_APPROVER_ID = 5
SALES_APPLICANT_ID = 6
CAREGIVER_ID = 7


def _create(container, fixed_now, **kw):
    params = dict(user_id=APPLICANT_ID, work_date="2026-03-12", work_option="full_day", reason="focus work")
    params.update(kw)
    return container.application_service.create_application(now=fixed_now, **params)


def test_create_application_is_pending_and_notifies_manager(container, repos, fixed_now):
    app_id = _create(container, fixed_now, project="billing")

    app = repos["applications_repo"].get_by_id(app_id)
    assert app.status == ApplicationStatus.PENDING
    assert app.work_option == WorkOption.FULL_DAY
    assert app.is_special is False
    assert app.work_hours_exceeded is False
    assert app.project == "billing"

    assert repos["notifications_repo"].messages_for(APPROVER_ID) == [
        "Applicant applied for remote work on 2026-03-12"
    ]
    assert "create_application" in repos["logs_repo"].actions()


def test_applicant_without_manager_notifies_department_approvers(container, repos, fixed_now):
    _create(container, fixed_now, user_id=NO_MANAGER_ID)

    assert len(repos["notifications_repo"].messages_for(APPROVER_ID)) == 1
    assert repos["notifications_repo"].messages_for(SALES_APPROVER_ID) == []


def test_department_without_approver_falls_back_to_admins(container, repos, fixed_now):
    repos["users_repo"].delete_by_id(SALES_APPROVER_ID)

    _create(container, fixed_now, user_id=SALES_APPLICANT_ID)

    assert len(repos["notifications_repo"].messages_for(ADMIN_ID)) == 1


def test_past_date_is_rejected(container, fixed_now):
    with pytest.raises(ValidationError):
        _create(container, fixed_now, work_date="2026-03-09")


def test_invalid_work_option_is_rejected(container, fixed_now):
    with pytest.raises(ValidationError):
        _create(container, fixed_now, work_option="night")


def test_reason_is_required(container, fixed_now):
    with pytest.raises(ValidationError):
        _create(container, fixed_now, reason="  ")


def test_end_time_must_be_after_start_time(container, fixed_now):
    with pytest.raises(ValidationError):
        _create(container, fixed_now, start_time="18:00", end_time="09:00")


def test_same_day_application_is_special_and_needs_reason(container, repos, fixed_now):
    with pytest.raises(ValidationError):
        _create(container, fixed_now, work_date="2026-03-10")

    app_id = _create(container, fixed_now, work_date="2026-03-10", special_reason="child is sick")
    app = repos["applications_repo"].get_by_id(app_id)
    assert app.is_special is True
    assert app.special_reason == "child is sick"


def test_late_night_application_for_tomorrow_is_special(container, repos):
    evening = datetime(2026, 3, 10, 19, 0)

    app_id = container.application_service.create_application(
        user_id=APPLICANT_ID,
        work_date="2026-03-11",
        work_option="am_half",
        reason="delivery",
        special_reason="found out late",
        now=evening,
    )

    assert repos["applications_repo"].get_by_id(app_id).is_special is True


def test_special_reason_is_dropped_for_regular_application(container, repos, fixed_now):
    app_id = _create(container, fixed_now, special_reason="not needed")

    app = repos["applications_repo"].get_by_id(app_id)
    assert app.is_special is False
    assert app.special_reason is None


def test_requested_special_is_kept(container, repos, fixed_now):
    app_id = _create(container, fixed_now, is_special=True, special_reason="client visit")

    assert repos["applications_repo"].get_by_id(app_id).is_special is True


def test_long_day_is_flagged_as_exceeded(container, repos, fixed_now):
    app_id = _create(container, fixed_now, start_time="09:00", end_time="19:00", break_minutes=30)

    assert repos["applications_repo"].get_by_id(app_id).work_hours_exceeded is True


def test_overtime_requires_reason_and_later_end(container, repos, fixed_now):
    with pytest.raises(ValidationError):
        _create(container, fixed_now, is_overtime=True, overtime_end="20:00")
    with pytest.raises(ValidationError):
        _create(container, fixed_now, is_overtime=True, overtime_reason="release", overtime_end="17:00")

    app_id = _create(container, fixed_now, is_overtime=True, overtime_reason="release", overtime_end="20:00")
    app = repos["applications_repo"].get_by_id(app_id)
    assert app.is_overtime is True
    assert app.work_hours_exceeded is True


def test_one_active_application_per_date(container, repos, fixed_now):
    _create(container, fixed_now)

    with pytest.raises(ConflictError):
        _create(container, fixed_now)


def test_cancelled_application_frees_the_date(container, repos, fixed_now):
    repos["applications_repo"].add(
        user_id=APPLICANT_ID, work_date=date(2026, 3, 12), status=ApplicationStatus.CANCELLED
    )

    _create(container, fixed_now)


def test_weekly_limit_counts_pending_and_approved(container, repos, fixed_now):
    apps = repos["applications_repo"]
    apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, 16), status=ApplicationStatus.APPROVED)
    apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, 17))
    apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, 18), status=ApplicationStatus.REJECTED)
    apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, 19))

    with pytest.raises(ValidationError):
        _create(container, fixed_now, work_date="2026-03-20")

    # next week is a fresh budget
    _create(container, fixed_now, work_date="2026-03-23")


def test_caregiver_is_exempt_from_weekly_limit(container, repos, fixed_now):
    apps = repos["applications_repo"]
    for day in (16, 17, 18):
        apps.add(user_id=CAREGIVER_ID, work_date=date(2026, 3, day))

    _create(container, fixed_now, user_id=CAREGIVER_ID, work_date="2026-03-19")

    assert repos["applications_repo"].count_active_between(
        user_id=CAREGIVER_ID, start=date(2026, 3, 16), end=date(2026, 3, 22)
    ) == 4


def test_concurrent_submission_for_same_date_creates_one_application(container, repos, fixed_now):
    apps = repos["applications_repo"]
    first = _create(container, fixed_now)
    # the second request read before the first one committed
    apps.exists_active_on = lambda **kw: False

    with pytest.raises(ConflictError):
        _create(container, fixed_now, reason="double click")

    assert [a.application_id for a in apps.apps.values() if a.work_date == date(2026, 3, 12)] == [first]


def test_concurrent_submissions_cannot_exceed_weekly_limit(container, repos, fixed_now):
    apps = repos["applications_repo"]
    for day in (16, 17, 18):
        apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, day))
    apps.count_active_between = lambda **kw: 0

    with pytest.raises(ValidationError):
        _create(container, fixed_now, work_date="2026-03-19")

    assert len(apps.apps) == 3


def test_furthest_allowed_date_is_ninety_days_ahead(container, repos, fixed_now):
    app_id = _create(container, fixed_now, work_date="2026-06-08")
    assert repos["applications_repo"].get_by_id(app_id).work_date == date(2026, 6, 8)

    with pytest.raises(ValidationError):
        _create(container, fixed_now, work_date="2026-06-09")


@pytest.mark.parametrize("break_time", [-1, "-30", "an hour"])
def test_invalid_break_time_is_rejected(container, fixed_now, break_time):
    with pytest.raises(ValidationError):
        _create(container, fixed_now, start_time="09:00", end_time="18:00", break_minutes=break_time)


def test_zero_break_time_is_accepted(container, repos, fixed_now):
    app_id = _create(container, fixed_now, start_time="09:00", end_time="17:00", break_minutes=0)

    assert repos["applications_repo"].get_by_id(app_id).break_minutes == 0


def test_cancel_own_pending_application(container, repos, fixed_now):
    app_id = _create(container, fixed_now)

    container.application_service.cancel_application(user_id=APPLICANT_ID, application_id=app_id)

    assert repos["applications_repo"].get_by_id(app_id).status == ApplicationStatus.CANCELLED
    assert "cancel_application" in repos["logs_repo"].actions()


def test_cannot_cancel_someone_elses_application(container, fixed_now):
    app_id = _create(container, fixed_now)

    with pytest.raises(AuthorizationError):
        container.application_service.cancel_application(user_id=NO_MANAGER_ID, application_id=app_id)


def test_cannot_cancel_decided_application(container, repos):
    app_id = repos["applications_repo"].add(
        user_id=APPLICANT_ID, work_date=date(2026, 3, 12), status=ApplicationStatus.APPROVED
    )

    with pytest.raises(ConflictError):
        container.application_service.cancel_application(user_id=APPLICANT_ID, application_id=app_id)


def test_cancel_unknown_application(container):
    with pytest.raises(NotFoundError):
        container.application_service.cancel_application(user_id=APPLICANT_ID, application_id=999)


def test_get_application_visibility(container, repos):
    app_id = repos["applications_repo"].add(user_id=APPLICANT_ID, work_date=date(2026, 3, 12))
    service = container.application_service

    assert service.get_application(viewer_id=APPLICANT_ID, application_id=app_id)["approvals"] == []
    assert service.get_application(viewer_id=APPROVER_ID, application_id=app_id)["user_name"] == "Applicant"
    assert service.get_application(viewer_id=ADMIN_ID, application_id=app_id)["id"] == app_id

    with pytest.raises(NotFoundError):
        service.get_application(viewer_id=NO_MANAGER_ID, application_id=app_id)
    with pytest.raises(NotFoundError):
        service.get_application(viewer_id=SALES_APPROVER_ID, application_id=app_id)


def test_list_my_applications_filters_by_status_and_month(container, repos):
    apps = repos["applications_repo"]
    apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, 12))
    apps.add(user_id=APPLICANT_ID, work_date=date(2026, 4, 2), status=ApplicationStatus.APPROVED)
    apps.add(user_id=NO_MANAGER_ID, work_date=date(2026, 3, 13))

    service = container.application_service
    assert [r["date"] for r in service.list_my_applications(user_id=APPLICANT_ID)] == ["2026-04-02", "2026-03-12"]
    assert [r["date"] for r in service.list_my_applications(user_id=APPLICANT_ID, month="2026-03")] == ["2026-03-12"]
    assert [r["date"] for r in service.list_my_applications(user_id=APPLICANT_ID, status="2")] == ["2026-04-02"]

    with pytest.raises(ValidationError):
        service.list_my_applications(user_id=APPLICANT_ID, status="unknown")


def test_list_applications_is_scoped_to_the_approver(container, repos):
    apps = repos["applications_repo"]
    mine = apps.add(user_id=APPROVER_ID, work_date=date(2026, 3, 11))
    managed = apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, 12))
    unmanaged = apps.add(user_id=NO_MANAGER_ID, work_date=date(2026, 3, 13))
    sales = apps.add(user_id=SALES_APPLICANT_ID, work_date=date(2026, 3, 14))

    service = container.application_service
    ids = {r["id"] for r in service.list_applications(viewer_id=APPROVER_ID)}
    assert ids == {managed, unmanaged}

    all_ids = {r["id"] for r in service.list_applications(viewer_id=ADMIN_ID)}
    assert all_ids == {mine, managed, unmanaged, sales}

    by_user = service.list_applications(viewer_id=ADMIN_ID, filter_by_user=str(SALES_APPLICANT_ID))
    assert [r["id"] for r in by_user] == [sales]


def test_list_applications_sorting(container, repos):
    apps = repos["applications_repo"]
    first = apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, 20))
    second = apps.add(user_id=NO_MANAGER_ID, work_date=date(2026, 3, 12), status=ApplicationStatus.APPROVED)

    service = container.application_service
    by_created = service.list_applications(viewer_id=APPROVER_ID)
    assert [r["id"] for r in by_created] == [second, first]

    by_date = service.list_applications(viewer_id=APPROVER_ID, sort_by="date", sort_order="asc")
    assert [r["id"] for r in by_date] == [second, first]

    by_status = service.list_applications(viewer_id=APPROVER_ID, sort_by="application_status_id", sort_order="asc")
    assert [r["id"] for r in by_status] == [first, second]

    with pytest.raises(ValidationError):
        service.list_applications(viewer_id=APPROVER_ID, sort_by="reason")
    with pytest.raises(ValidationError):
        service.list_applications(viewer_id=APPROVER_ID, sort_order="sideways")


def test_applicant_cannot_list_all_applications(container):
    with pytest.raises(AuthorizationError):
        container.application_service.list_applications(viewer_id=APPLICANT_ID)


def test_calendar_counts_by_date_and_skips_cancelled(container, repos):
    apps = repos["applications_repo"]
    apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, 12))
    apps.add(user_id=NO_MANAGER_ID, work_date=date(2026, 3, 12), status=ApplicationStatus.APPROVED)
    apps.add(user_id=APPLICANT_ID, work_date=date(2026, 3, 13), status=ApplicationStatus.CANCELLED)
    apps.add(user_id=APPLICANT_ID, work_date=date(2026, 4, 1))

    data = container.application_service.calendar(viewer_id=APPROVER_ID, month="2026-03")

    assert data["month"] == "2026-03"
    assert list(data["days"]) == ["2026-03-12"]
    day = data["days"]["2026-03-12"]
    assert (day["pending"], day["approved"], day["rejected"], day["total"]) == (1, 1, 0, 2)

    own = container.application_service.calendar(viewer_id=NO_MANAGER_ID, month="2026-03")
    assert own["days"]["2026-03-12"]["total"] == 1


def test_calendar_requires_month(container):
    with pytest.raises(ValidationError):
        container.application_service.calendar(viewer_id=APPLICANT_ID, month="March")
