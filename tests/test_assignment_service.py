from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import NotFoundError, ValidationFailedError
from app.models.report import AssignmentRequest
from tests.conftest import insert_report


def assign(service, report_id="r1", municipality="ktm", **request):
    request.setdefault("assigned_staff_id", "staff-ktm")
    return service.assign_report(
        report_id,
        AssignmentRequest(**request),
        acting_municipality_id=municipality,
        acting_user_id="admin-ktm",
    )


def test_assign_pending_report(assignment_service, db):
    insert_report(db, "r1")
    before = datetime.now(timezone.utc)

    updated = assign(assignment_service, priority="urgent", notes="Check both poles")

    assert updated["status"] == "assigned"
    assert updated["assigned_staff_id"] == "staff-ktm"
    assert updated["priority"] == "urgent"
    assert updated["assignment_notes"] == "Check both poles"
    assert updated["assigned_at"] >= before
    # Default due date is a week out
    assert timedelta(days=6, hours=23) < updated["due_date"] - before <= timedelta(days=7, minutes=1)
    entry = updated["status_history"][-1]
    assert (entry["from_status"], entry["to_status"], entry["changed_by"]) == ("pending", "assigned", "admin-ktm")


def test_priority_kept_when_not_given(assignment_service, db):
    insert_report(db, "r1", priority="high")

    assert assign(assignment_service)["priority"] == "high"


def test_admin_can_assign_to_themselves(assignment_service, db):
    insert_report(db, "r1")

    assert assign(assignment_service, assigned_staff_id="admin-ktm")["assigned_staff_id"] == "admin-ktm"


def test_reassignment_is_repeatable(assignment_service, db):
    insert_report(db, "r1")

    first = assign(assignment_service)
    second = assign(assignment_service, assigned_staff_id="admin-ktm")

    assert second["status"] == "assigned"
    assert second["assigned_staff_id"] == "admin-ktm"
    assert len(second["status_history"]) == len(first["status_history"]) + 1


def test_reassign_in_progress_moves_back_to_assigned(assignment_service, db):
    insert_report(db, "r1", status="in_progress", assigned_staff_id="staff-ktm")

    assert assign(assignment_service, assigned_staff_id="admin-ktm")["status"] == "assigned"


def test_resolved_report_cannot_be_assigned(assignment_service, db):
    resolved_at = datetime(2025, 2, 20, tzinfo=timezone.utc)
    insert_report(db, "r1", status="resolved", resolved_at=resolved_at)

    with pytest.raises(ValidationFailedError) as exc:
        assign(assignment_service)

    assert exc.value.message == "Cannot assign a report that has already been resolved"
    assert exc.value.data["resolvedAt"] == resolved_at


def test_report_in_other_municipality_is_not_found(assignment_service, db):
    insert_report(db, "r1", municipality_id="pokhara")

    with pytest.raises(NotFoundError):
        assign(assignment_service)


def test_missing_report(assignment_service):
    with pytest.raises(NotFoundError):
        assign(assignment_service, report_id="missing")


@pytest.mark.parametrize("staff_id", ["citizen-1", "staff-pokhara", "sysadmin", "ghost"])
def test_ineligible_staff(assignment_service, db, staff_id):
    insert_report(db, "r1")

    with pytest.raises(ValidationFailedError) as exc:
        assign(assignment_service, assigned_staff_id=staff_id)

    assert exc.value.message == "Staff member not found or invalid"
    assert exc.value.data == {"validRoles": ["municipality_admin", "field_staff"]}
    assert db.collection("reports").document("r1").get().to_dict()["status"] == "pending"


def test_due_date_too_far_out(assignment_service, db):
    insert_report(db, "r1")
    due = datetime.now(timezone.utc) + timedelta(days=31)

    with pytest.raises(ValidationFailedError) as exc:
        assign(assignment_service, due_date=due)

    assert exc.value.message == "Due date cannot be more than 30 days in the future"


def test_explicit_due_date(assignment_service, db):
    insert_report(db, "r1")
    due = datetime.now(timezone.utc) + timedelta(days=3)

    assert assign(assignment_service, due_date=due)["due_date"] == due


def test_existing_due_date_is_kept(assignment_service, db):
    due = datetime.now(timezone.utc) + timedelta(days=10)
    insert_report(db, "r1", due_date=due)

    assert assign(assignment_service)["due_date"] == due
