"""
User Service - read access to users and municipalities in Firestore.

Users and municipalities are created and edited by other parts of the
platform; report handling only needs to look them up.
"""

from typing import Dict, Optional
import logging

from app.config.firebase import get_db
from app.core.errors import UnexpectedError
from app.models.user import MunicipalitySummary, UserSummary
from app.utils.firestore_helpers import snapshot_to_dict

logger = logging.getLogger(__name__)


class UserService:
    """
    Service for user and municipality lookups.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def _get(self, collection: str, doc_id: Optional[str]) -> Optional[Dict]:
        if not doc_id:
            return None
        try:
            return snapshot_to_dict(self.db.collection(collection).document(doc_id).get())
        except Exception as e:
            logger.error(f"Failed to read {collection}/{doc_id}: {e}", exc_info=True)
            raise UnexpectedError(f"Failed to read {collection} record") from e

    def get_user(self, user_id: Optional[str]) -> Optional[Dict]:
        """
        Get user by ID.

        Returns:
            User dict or None if not found
        """
        return self._get("users", user_id)

    def get_municipality(self, municipality_id: Optional[str]) -> Optional[Dict]:
        """
        Get municipality by ID.

        Returns:
            Municipality dict or None if not found
        """
        return self._get("municipalities", municipality_id)

    @staticmethod
    def user_summary(user: Optional[Dict]) -> Optional[UserSummary]:
        if not user:
            return None
        return UserSummary(
            id=user["id"],
            name=user.get("name"),
            profile_image=user.get("profile_image"),
            phone=user.get("phone"),
        )

    @staticmethod
    def municipality_summary(municipality: Optional[Dict]) -> Optional[MunicipalitySummary]:
        if not municipality:
            return None
        location = municipality.get("location") or {}
        return MunicipalitySummary(
            id=municipality["id"],
            name=municipality.get("name"),
            city=location.get("city"),
            contact_email=municipality.get("contact_email"),
            contact_phone=municipality.get("contact_phone"),
            report_categories=municipality.get("report_categories") or [],
        )
