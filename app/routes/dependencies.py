"""
Request dependencies - database, storage, services and the acting user.

Session issuance lives in the upstream auth gateway, which forwards the
authenticated user's id in the X-User-Id header. The user is loaded from
Firestore and checked for the capability the endpoint needs before any
report logic runs.
"""

from typing import Callable, Dict, Optional

from fastapi import Depends, Header

from app.config.firebase import get_db
from app.core.errors import UnauthenticatedError
from app.services.access_control import Capability, require_capability
from app.services.assignment_service import AssignmentService
from app.services.media_storage import MediaStorage, get_media_storage
from app.services.report_query_service import ReportQueryService
from app.services.report_service import ReportService
from app.services.user_service import UserService


def get_database():
    return get_db()


def get_storage() -> MediaStorage:
    return get_media_storage()


def get_report_service(
    db=Depends(get_database),
    storage: MediaStorage = Depends(get_storage),
) -> ReportService:
    return ReportService(db=db, storage=storage)


def get_assignment_service(db=Depends(get_database)) -> AssignmentService:
    return AssignmentService(db=db)


def get_query_service(db=Depends(get_database)) -> ReportQueryService:
    return ReportQueryService(db=db)


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    db=Depends(get_database),
) -> Dict:
    if not x_user_id:
        raise UnauthenticatedError("Authentication required")
    user = UserService(db).get_user(x_user_id)
    if not user:
        raise UnauthenticatedError("Unknown user")
    return user


def require(capability: Capability) -> Callable[..., Dict]:
    """Dependency factory: the acting user, once they hold `capability`."""

    def dependency(user: Dict = Depends(get_current_user)) -> Dict:
        require_capability(user, capability)
        return user

    return dependency
