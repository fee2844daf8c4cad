"""
Assignment Service - binds a report to a staff member with a due date.

Assignment is scoped to the acting admin's municipality: a report from
another municipality is reported as not found rather than forbidden.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional
import logging

from app.config.firebase import get_db
from app.core.errors import NotFoundError, UnexpectedError, ValidationFailedError
from app.core.rules import ReportRules, get_report_rules
from app.models.report import AssignmentRequest
from app.services.status_workflow import StatusWorkflowEngine
from app.services.user_service import UserService
from app.utils.firestore_helpers import ensure_utc, snapshot_to_dict, utcnow

logger = logging.getLogger(__name__)


class AssignmentService:
    """
    Service for assigning reports to municipal staff.
    """

    def __init__(self, db=None, rules: Optional[ReportRules] = None):
        self.db = db if db is not None else get_db()
        self.rules = rules or get_report_rules()
        self.users = UserService(self.db)
        self.workflow = StatusWorkflowEngine(self.rules)

    def resolve_due_date(self, requested: Optional[datetime], report: Dict, now: datetime) -> datetime:
        """
        Effective due date: requested, else the report's current one, else
        DEFAULT_DUE_DAYS from now. Must not exceed MAX_DUE_DAYS from now.
        """
        due_date = ensure_utc(requested) or ensure_utc(report.get("due_date"))
        if due_date is None:
            due_date = now + timedelta(days=self.rules.default_due_days)

        if due_date > now + timedelta(days=self.rules.max_due_days):
            raise ValidationFailedError(
                f"Due date cannot be more than {self.rules.max_due_days} days in the future",
                data={"dueDate": due_date},
            )
        return due_date

    def assign_report(
        self,
        report_id: str,
        request: AssignmentRequest,
        acting_municipality_id: Optional[str],
        acting_user_id: str,
    ) -> Dict:
        """
        Assign a report to a staff member of the same municipality.

        Args:
            report_id: Firestore document ID
            request: Staff, priority, due date and notes
            acting_municipality_id: Municipality of the acting admin
            acting_user_id: Acting admin (recorded in status history)

        Returns:
            dict: Updated report

        Raises:
            NotFoundError: report missing or in another municipality
            ValidationFailedError: resolved report, ineligible staff or due date too far out
        """
        doc_ref = self.db.collection("reports").document(report_id)
        try:
            report = snapshot_to_dict(doc_ref.get())
        except Exception as e:
            logger.error(f"Failed to load report {report_id}: {e}", exc_info=True)
            raise UnexpectedError("Failed to load report") from e

        if not report or not acting_municipality_id or report.get("municipality_id") != acting_municipality_id:
            raise NotFoundError("Report not found")

        now = utcnow()
        # Raises for resolved reports before staff or dates are looked at
        status_updates = self.workflow.build_assignment(
            report, changed_by=acting_user_id, note=request.notes, now=now
        )

        staff = self.users.get_user(request.assigned_staff_id)
        if (
            not staff
            or staff.get("municipality_id") != acting_municipality_id
            or staff.get("role") not in self.rules.assignable_roles
        ):
            logger.warning(f"Rejected assignment of report {report_id} to {request.assigned_staff_id}")
            raise ValidationFailedError(
                "Staff member not found or invalid",
                data={"validRoles": list(self.rules.assignable_roles)},
            )

        due_date = self.resolve_due_date(request.due_date, report, now)

        updates = {
            **status_updates,
            "assigned_staff_id": request.assigned_staff_id,
            "priority": request.priority.value if request.priority else report.get("priority"),
            "assignment_notes": request.notes,
        }
        if request.due_date or not report.get("due_date"):
            updates["due_date"] = due_date

        try:
            doc_ref.update(updates)
            updated = snapshot_to_dict(doc_ref.get())
        except Exception as e:
            logger.error(f"Failed to assign report {report_id}: {e}", exc_info=True)
            raise UnexpectedError("Failed to assign report") from e

        logger.info(
            f"✅ Report {report_id} assigned to {request.assigned_staff_id} by {acting_user_id} "
            f"(due {due_date.isoformat()})"
        )
        return updated
