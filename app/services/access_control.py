"""
Access control - role capabilities checked before any business rule runs.

Each role maps to a set of capabilities. Report services ask for a
capability up front and only then apply their own rules, so the policy can
change without touching validation or workflow code.
"""

from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Optional
import logging

from app.core.errors import ForbiddenError
from app.models.user import UserRole, UserStatus

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    SUBMIT_REPORT = "submit_report"
    EDIT_OWN_REPORT = "edit_own_report"
    DELETE_OWN_REPORT = "delete_own_report"
    LIST_OWN_REPORTS = "list_own_reports"
    VIEW_REPORT = "view_report"
    LIST_ALL_REPORTS = "list_all_reports"
    LIST_ASSIGNED_REPORTS = "list_assigned_reports"
    UPDATE_STATUS = "update_status"
    ASSIGN_REPORT = "assign_report"
    VIEW_DASHBOARD = "view_dashboard"


ROLE_CAPABILITIES = MappingProxyType({
    UserRole.CITIZEN.value: frozenset({
        Capability.SUBMIT_REPORT,
        Capability.EDIT_OWN_REPORT,
        Capability.DELETE_OWN_REPORT,
        Capability.LIST_OWN_REPORTS,
        Capability.VIEW_REPORT,
    }),
    UserRole.FIELD_STAFF.value: frozenset({
        Capability.VIEW_REPORT,
        Capability.LIST_ASSIGNED_REPORTS,
        Capability.UPDATE_STATUS,
    }),
    UserRole.MUNICIPALITY_ADMIN.value: frozenset({
        Capability.VIEW_REPORT,
        Capability.LIST_ALL_REPORTS,
        Capability.LIST_ASSIGNED_REPORTS,
        Capability.UPDATE_STATUS,
        Capability.ASSIGN_REPORT,
        Capability.VIEW_DASHBOARD,
    }),
    UserRole.SYS_ADMIN.value: frozenset({
        Capability.VIEW_REPORT,
        Capability.LIST_ALL_REPORTS,
        Capability.UPDATE_STATUS,
        Capability.VIEW_DASHBOARD,
    }),
    UserRole.SPONSOR.value: frozenset(),
})


def capabilities_for(user: Dict) -> FrozenSet[Capability]:
    """Capabilities of a user; inactive accounts have none."""
    if user.get("status", UserStatus.ACTIVE.value) != UserStatus.ACTIVE.value:
        return frozenset()
    return ROLE_CAPABILITIES.get(user.get("role"), frozenset())


def require_capability(user: Dict, capability: Capability) -> None:
    """
    Raise ForbiddenError unless the user holds the capability.

    Args:
        user: Acting user dict (role, status, municipality_id)
        capability: Capability needed for the operation
    """
    if capability not in capabilities_for(user):
        logger.warning(f"User {user.get('id')} ({user.get('role')}) lacks capability {capability.value}")
        raise ForbiddenError(
            "Access denied. Your role cannot perform this action",
            data={"role": user.get("role"), "requiredCapability": capability.value},
        )


def ensure_same_municipality(user: Dict, municipality_id: Optional[str]) -> None:
    """
    Staff may only act on reports of their own municipality.

    System administrators are not bound to a municipality. Any other role
    without a municipality on record is refused.
    """
    if user.get("role") == UserRole.SYS_ADMIN.value:
        return

    user_municipality = user.get("municipality_id")
    if not user_municipality or user_municipality != municipality_id:
        logger.warning(
            f"User {user.get('id')} from municipality {user_municipality} "
            f"tried to act on a report of municipality {municipality_id}"
        )
        raise ForbiddenError("Access denied. You can only manage reports from your municipality")


def can_view_report(user: Dict, report: Dict) -> bool:
    """
    Whether a user may read a single report.

    Citizens see their own reports, staff and admins the reports of their
    municipality, system administrators everything.
    """
    role = user.get("role")
    if role == UserRole.SYS_ADMIN.value:
        return True
    if role == UserRole.CITIZEN.value:
        return report.get("citizen_id") == user.get("id")
    user_municipality = user.get("municipality_id")
    return bool(user_municipality) and user_municipality == report.get("municipality_id")
