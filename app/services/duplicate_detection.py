"""
Duplicate Detection Service - one active report per citizen and category.

A citizen may not open a second report in a category while an earlier one
from the last DUPLICATE_WINDOW_HOURS is still pending, assigned or in
progress. The check is a read before the insert; there is no unique index
behind it, so two simultaneous submissions can both pass.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional
import logging

from app.config.firebase import get_db
from app.core.rules import ReportRules, get_report_rules
from app.utils.firestore_helpers import utcnow, where_filter

logger = logging.getLogger(__name__)


class DuplicateDetectionService:
    """
    Service for detecting active duplicate reports.
    """

    def __init__(self, db=None, rules: Optional[ReportRules] = None):
        self.db = db if db is not None else get_db()
        self.rules = rules or get_report_rules()

    def find_active_duplicate(
        self,
        citizen_id: str,
        category: str,
        now: Optional[datetime] = None,
    ) -> Optional[Dict]:
        """
        Find an active report by the same citizen in the same category.

        Args:
            citizen_id: Reporting citizen
            category: Report category
            now: Reference time for the window (defaults to current UTC time)

        Returns:
            The conflicting report dict (with id) or None
        """
        now = now or utcnow()
        window_start = now - timedelta(hours=self.rules.duplicate_window_hours)

        query = self.db.collection("reports")
        query = where_filter(query, "citizen_id", "==", citizen_id)
        query = where_filter(query, "category", "==", category)
        query = where_filter(query, "status", "in", sorted(self.rules.active_statuses))
        query = where_filter(query, "created_at", ">=", window_start)

        for doc in query.limit(1).stream():
            duplicate = doc.to_dict()
            duplicate["id"] = doc.id
            logger.warning(
                f"Duplicate report detected for citizen {citizen_id} in '{category}' "
                f"(matches report {doc.id}, status {duplicate.get('status')})"
            )
            return duplicate

        return None

