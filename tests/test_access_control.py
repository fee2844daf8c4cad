import pytest

from app.core.errors import ForbiddenError
from app.services.access_control import (
    Capability,
    can_view_report,
    capabilities_for,
    ensure_same_municipality,
    require_capability,
)


@pytest.mark.parametrize("role,capability,allowed", [
    ("citizen", Capability.SUBMIT_REPORT, True),
    ("citizen", Capability.UPDATE_STATUS, False),
    ("field_staff", Capability.UPDATE_STATUS, True),
    ("field_staff", Capability.ASSIGN_REPORT, False),
    ("municipality_admin", Capability.ASSIGN_REPORT, True),
    ("municipality_admin", Capability.SUBMIT_REPORT, False),
    ("sys_admin", Capability.VIEW_DASHBOARD, True),
    ("sys_admin", Capability.ASSIGN_REPORT, False),
    ("sponsor", Capability.VIEW_REPORT, False),
])
def test_role_capabilities(role, capability, allowed):
    user = {"id": "u1", "role": role, "status": "active"}
    assert (capability in capabilities_for(user)) is allowed


@pytest.mark.parametrize("status", ["pending", "inactive", "suspended"])
def test_inactive_users_have_no_capabilities(status):
    user = {"id": "u1", "role": "municipality_admin", "status": status}

    with pytest.raises(ForbiddenError) as exc:
        require_capability(user, Capability.VIEW_REPORT)

    assert exc.value.data == {"role": "municipality_admin", "requiredCapability": "view_report"}


def test_unknown_role():
    assert capabilities_for({"id": "u1", "role": "mayor"}) == frozenset()


def test_same_municipality():
    ensure_same_municipality({"id": "s1", "municipality_id": "ktm"}, "ktm")
    ensure_same_municipality({"id": "sys", "role": "sys_admin", "municipality_id": None}, "ktm")

    with pytest.raises(ForbiddenError):
        ensure_same_municipality({"id": "s1", "municipality_id": "pokhara"}, "ktm")


@pytest.mark.parametrize("role", ["field_staff", "municipality_admin"])
def test_staff_without_municipality_is_refused(role):
    with pytest.raises(ForbiddenError):
        ensure_same_municipality({"id": "s1", "role": role}, "pokhara")


@pytest.mark.parametrize("viewer,visible", [
    ({"id": "citizen-1", "role": "citizen", "municipality_id": "ktm"}, True),
    ({"id": "citizen-2", "role": "citizen", "municipality_id": "ktm"}, False),
    ({"id": "s1", "role": "field_staff", "municipality_id": "ktm"}, True),
    ({"id": "s2", "role": "field_staff", "municipality_id": "pokhara"}, False),
    ({"id": "s3", "role": "field_staff"}, False),
    ({"id": "sys", "role": "sys_admin"}, True),
])
def test_can_view_report(viewer, visible):
    report = {"citizen_id": "citizen-1", "municipality_id": "ktm"}
    assert can_view_report(viewer, report) is visible
