"""
Status Workflow Engine - report lifecycle state machine.

DESIGN PRINCIPLES:
- Only forward transitions from the transition table
- resolved is terminal
- Timestamps and points are written in the same update as the status
- All transitions logged in status_history
"""

from datetime import datetime
from typing import Dict, List, Optional

import logging

from app.core.errors import ValidationFailedError
from app.core.rules import ReportRules, get_report_rules
from app.models.report import ReportStatus
from app.utils.firestore_helpers import utcnow

logger = logging.getLogger(__name__)

__all__ = ["ReportStatus", "StatusWorkflowEngine"]

# Status entered -> timestamp field stamped the first time it is entered
STATUS_TIMESTAMP_FIELDS: Dict[str, str] = {
    ReportStatus.ASSIGNED.value: "assigned_at",
    ReportStatus.IN_PROGRESS.value: "in_progress_at",
    ReportStatus.RESOLVED.value: "resolved_at",
}

# Statuses from which (re-)assignment may move a report to assigned
ASSIGNMENT_SOURCES = frozenset({
    ReportStatus.PENDING.value,
    ReportStatus.ASSIGNED.value,
    ReportStatus.IN_PROGRESS.value,
})


class StatusWorkflowEngine:
    """
    State machine for report status transitions.

    Rules:
    - pending → assigned | resolved
    - assigned → in_progress | resolved
    - in_progress → resolved
    - resolved → (nothing)
    """

    def __init__(self, rules: Optional[ReportRules] = None):
        self.rules = rules or get_report_rules()

    def get_allowed_transitions(self, current_status: str) -> List[str]:
        """
        Get list of allowed next statuses from current status.

        Args:
            current_status: Current status string

        Returns:
            List of allowed next status strings
        """
        return list(self.rules.allowed_transitions(current_status))

    def is_valid_transition(self, from_status: str, to_status: str) -> bool:
        return to_status in self.rules.allowed_transitions(from_status)

    @staticmethod
    def create_status_history_entry(
        from_status: Optional[str],
        to_status: str,
        changed_by: str,
        timestamp: datetime,
        note: Optional[str] = None
    ) -> Dict:
        """
        Create a status history entry for audit trail.

        Args:
            from_status: Previous status (None for a new report)
            to_status: New status
            changed_by: User identifier
            timestamp: When the change happened
            note: Optional note explaining the change

        Returns:
            Status history entry dict
        """
        return {
            "from_status": from_status,
            "to_status": to_status,
            "changed_by": changed_by,
            "timestamp": timestamp,
            "note": note or "",
        }

    def build_transition(
        self,
        report: Dict,
        new_status: str,
        changed_by: str,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict:
        """
        Validate a transition and build the field updates that go with it.

        Args:
            report: Current report document
            new_status: Desired new status
            changed_by: User identifier
            note: Optional note
            now: Transition time (defaults to current UTC time)

        Returns:
            Dict of field updates to write in a single document update

        Raises:
            ValidationFailedError: If the transition is not in the table
        """
        current_status = report.get("status", ReportStatus.PENDING.value)

        if not self.is_valid_transition(current_status, new_status):
            allowed = self.get_allowed_transitions(current_status)
            logger.warning(f"Rejected status transition {current_status} → {new_status} for report {report.get('id')}")
            raise ValidationFailedError(
                f"Invalid status transition from {current_status} to {new_status}",
                data={"currentStatus": current_status, "allowedTransitions": allowed},
            )

        now = now or utcnow()
        updates: Dict = {"status": new_status, "updated_at": now}

        timestamp_field = STATUS_TIMESTAMP_FIELDS.get(new_status)
        if timestamp_field and not report.get(timestamp_field):
            updates[timestamp_field] = now

        if new_status == ReportStatus.RESOLVED.value and not report.get("resolved_at"):
            updates["points_awarded"] = self.rules.points_for(report.get("category"))

        updates["status_history"] = self._append_history(
            report, current_status, new_status, changed_by, now, note
        )
        return updates

    def build_assignment(
        self,
        report: Dict,
        changed_by: str,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict:
        """
        Build the status updates for an assignment.

        Assignment is the one path that may move a report back from
        in_progress to assigned, and may repeat on an assigned report.
        assigned_at is re-stamped on every assignment.

        Raises:
            ValidationFailedError: If the report is resolved
        """
        current_status = report.get("status", ReportStatus.PENDING.value)

        if current_status not in ASSIGNMENT_SOURCES:
            raise ValidationFailedError(
                "Cannot assign a report that has already been resolved",
                data={"currentStatus": current_status, "resolvedAt": report.get("resolved_at")},
            )

        now = now or utcnow()
        return {
            "status": ReportStatus.ASSIGNED.value,
            "assigned_at": now,
            "updated_at": now,
            "status_history": self._append_history(
                report, current_status, ReportStatus.ASSIGNED.value, changed_by, now, note
            ),
        }

    def _append_history(self, report, from_status, to_status, changed_by, now, note) -> List[Dict]:
        history = report.get("status_history", [])
        if not isinstance(history, list):
            history = []
        history.append(self.create_status_history_entry(from_status, to_status, changed_by, now, note))
        return history
