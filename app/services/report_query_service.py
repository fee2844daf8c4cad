"""
Report Query Service - filtered, sorted and paginated report listings.

Three scoped variants share one implementation: all reports (admin view),
one citizen's reports and one staff member's assigned reports. Each adds its
mandatory filter before the optional category/status/severity filters.
"""

from collections import Counter
from typing import Dict, List, Optional, Tuple
import logging

from firebase_admin import firestore

from app.config.firebase import get_db
from app.core.errors import UnexpectedError
from app.core.rules import ReportRules, get_report_rules
from app.models.base import PaginationMeta
from app.models.report import DashboardCounts, ReportFilter, ReportStatus, SortOrder
from app.services.report_service import REPORTS_COLLECTION, present_reports
from app.services.user_service import UserService
from app.utils.firestore_helpers import count_query, where_filter

logger = logging.getLogger(__name__)


class ReportQueryService:
    """
    Service for report listings and dashboard counts.
    """

    def __init__(self, db=None, rules: Optional[ReportRules] = None):
        self.db = db if db is not None else get_db()
        self.rules = rules or get_report_rules()
        self.users = UserService(self.db)

    def effective_limit(self, limit: Optional[int]) -> int:
        if not limit or limit < 1:
            return self.rules.default_page_limit
        return min(limit, self.rules.max_page_limit)

    def _query(self, report_filter: ReportFilter, scope: List[Tuple[str, str]]):
        query = self.db.collection(REPORTS_COLLECTION)
        for field_path, value in scope:
            query = where_filter(query, field_path, "==", value)
        if report_filter.municipality_id:
            query = where_filter(query, "municipality_id", "==", report_filter.municipality_id)
        if report_filter.category:
            query = where_filter(query, "category", "==", report_filter.category.value)
        if report_filter.status:
            query = where_filter(query, "status", "==", report_filter.status.value)
        if report_filter.severity:
            query = where_filter(query, "severity", "==", report_filter.severity.value)

        direction = (
            firestore.Query.ASCENDING
            if report_filter.sort_order == SortOrder.ASC
            else firestore.Query.DESCENDING
        )
        return query.order_by(report_filter.sort_by.value, direction=direction)

    def _paginate(self, report_filter: ReportFilter, scope: List[Tuple[str, str]]) -> Dict:
        page = max(report_filter.page, 1)
        limit = self.effective_limit(report_filter.limit)
        query = self._query(report_filter, scope)

        try:
            total = count_query(query)
            docs = query.offset((page - 1) * limit).limit(limit).stream()
            reports = []
            for doc in docs:
                data = doc.to_dict()
                data["id"] = doc.id
                reports.append(data)
        except Exception as e:
            logger.error(f"Report listing failed for scope {scope}: {e}", exc_info=True)
            raise UnexpectedError("Failed to retrieve reports") from e

        logger.info(
            f"Retrieved {len(reports)}/{total} reports (page {page}, limit {limit}) "
            f"scope={scope} category={report_filter.category} status={report_filter.status} "
            f"severity={report_filter.severity}"
        )
        return {
            "reports": present_reports(reports, self.users),
            "pagination": PaginationMeta.build(page=page, limit=limit, total=total).to_api(),
        }

    def list_reports(self, report_filter: ReportFilter) -> Dict:
        """All reports, optionally narrowed to one municipality (admin view)."""
        return self._paginate(report_filter, scope=[])

    def list_citizen_reports(self, citizen_id: str, report_filter: ReportFilter) -> Dict:
        """Reports submitted by one citizen."""
        return self._paginate(report_filter, scope=[("citizen_id", citizen_id)])

    def list_assigned_reports(self, staff_id: str, report_filter: ReportFilter) -> Dict:
        """Reports assigned to one staff member."""
        return self._paginate(report_filter, scope=[("assigned_staff_id", staff_id)])

    def dashboard_counts(self, municipality_id: Optional[str] = None) -> DashboardCounts:
        """
        Report counts per status from a single pass over the status field.

        Returns:
            DashboardCounts: total plus one bucket per status (missing buckets are 0)
        """
        query = self.db.collection(REPORTS_COLLECTION)
        if municipality_id:
            query = where_filter(query, "municipality_id", "==", municipality_id)

        try:
            statuses = Counter((doc.to_dict() or {}).get("status") for doc in query.select(["status"]).stream())
        except Exception as e:
            logger.error(f"Dashboard count query failed: {e}", exc_info=True)
            raise UnexpectedError("Failed to compute dashboard counts") from e

        return DashboardCounts(
            total=sum(statuses.values()),
            pending=statuses.get(ReportStatus.PENDING.value, 0),
            assigned=statuses.get(ReportStatus.ASSIGNED.value, 0),
            in_progress=statuses.get(ReportStatus.IN_PROGRESS.value, 0),
            resolved=statuses.get(ReportStatus.RESOLVED.value, 0),
        )
