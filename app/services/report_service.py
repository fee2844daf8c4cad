"""
Report service - Business logic for the report lifecycle.
Handles Firestore CRUD operations for reports.

DESIGN NOTE:
- Every creation/edit passes the validation gate before any upload
- Files are uploaded one at a time; a failed upload aborts the call and
  files already uploaded in that call are left in storage
- Status changes go through the status workflow engine
- Read-modify-write without concurrency tokens: last write wins
"""

from typing import Dict, List, Optional, Sequence
import logging

from app.config.firebase import get_db
from app.core.errors import NotFoundError, UnexpectedError, ValidationFailedError
from app.core.rules import ReportRules, get_report_rules
from app.models.report import (
    ReportCreate,
    ReportResponse,
    ReportStatus,
    ReportUpdate,
    StatusUpdateRequest,
)
from app.services.access_control import can_view_report, ensure_same_municipality
from app.services.duplicate_detection import DuplicateDetectionService
from app.services.media_storage import MediaFile, MediaStorage, get_media_storage
from app.services.status_workflow import StatusWorkflowEngine
from app.services.user_service import UserService
from app.services.validation_gate import ValidationGate
from app.utils.firestore_helpers import snapshot_to_dict, utcnow

logger = logging.getLogger(__name__)

REPORTS_COLLECTION = "reports"


def present_reports(reports: List[Dict], users: UserService) -> List[Dict]:
    """
    Convert report documents to API dicts with citizen, municipality and
    staff summaries populated. Lookups are cached per call.
    """
    user_cache: Dict[str, Optional[Dict]] = {}
    municipality_cache: Dict[str, Optional[Dict]] = {}

    def cached(cache, loader, key):
        if not key:
            return None
        if key not in cache:
            cache[key] = loader(key)
        return cache[key]

    presented = []
    for report in reports:
        response = ReportResponse.model_validate(report)
        response.citizen = users.user_summary(cached(user_cache, users.get_user, report.get("citizen_id")))
        response.assigned_staff = users.user_summary(
            cached(user_cache, users.get_user, report.get("assigned_staff_id"))
        )
        response.municipality = users.municipality_summary(
            cached(municipality_cache, users.get_municipality, report.get("municipality_id"))
        )
        presented.append(response.to_api())
    return presented


class ReportService:
    """
    Service for citizen report submission, edits and staff status updates.
    """

    def __init__(
        self,
        db=None,
        storage: Optional[MediaStorage] = None,
        rules: Optional[ReportRules] = None,
    ):
        self.db = db if db is not None else get_db()
        self.storage = storage or get_media_storage()
        self.rules = rules or get_report_rules()
        self.users = UserService(self.db)
        self.gate = ValidationGate(DuplicateDetectionService(self.db, self.rules), self.rules)
        self.workflow = StatusWorkflowEngine(self.rules)

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def _collection(self):
        return self.db.collection(REPORTS_COLLECTION)

    def _load(self, report_id: str) -> Optional[Dict]:
        try:
            return snapshot_to_dict(self._collection().document(report_id).get())
        except Exception as e:
            logger.error(f"Failed to load report {report_id}: {e}", exc_info=True)
            raise UnexpectedError("Failed to load report") from e

    def _load_owned(self, report_id: str, citizen_id: str) -> Dict:
        report = self._load(report_id)
        if not report or report.get("citizen_id") != citizen_id:
            raise NotFoundError("Report not found or you don't have permission")
        return report

    def _write(self, report_id: str, updates: Dict) -> Dict:
        doc_ref = self._collection().document(report_id)
        try:
            doc_ref.update(updates)
            return snapshot_to_dict(doc_ref.get())
        except Exception as e:
            logger.error(f"Failed to update report {report_id}: {e}", exc_info=True)
            raise UnexpectedError("Failed to update report") from e

    def _upload_all(self, files: Sequence[MediaFile], folder: str) -> List[str]:
        urls = []
        for media in files:
            try:
                urls.append(self.storage.upload(media, folder))
            except Exception as e:
                logger.error(
                    f"Upload of {media.filename} failed after {len(urls)} {folder} stored; "
                    f"stored files are not removed: {e}",
                    exc_info=True,
                )
                raise UnexpectedError(f"Failed to upload {media.filename}") from e
        return urls

    # ------------------------------------------------------------------
    # Citizen operations
    # ------------------------------------------------------------------

    def create_report(
        self,
        report_data: ReportCreate,
        citizen_id: str,
        photos: Sequence[MediaFile] = (),
        videos: Sequence[MediaFile] = (),
    ) -> Dict:
        """
        Validate, upload media and store a new report.

        Args:
            report_data: Validated report fields
            citizen_id: Reporting citizen
            photos: Photo files (max 5)
            videos: Video files (max 2)

        Returns:
            dict: The stored report with generated ID

        Raises:
            NotFoundError: municipality missing
            ValidationFailedError: a creation rule was violated
            UnexpectedError: upload or persistence failure
        """
        municipality = self.users.get_municipality(report_data.municipality_id)
        self.gate.validate_new_report(report_data, municipality, photos, videos, citizen_id)

        photo_urls = self._upload_all(photos, "photos")
        video_urls = self._upload_all(videos, "videos")

        now = utcnow()
        doc_ref = self._collection().document()
        report_dict = {
            "id": doc_ref.id,
            "title": report_data.title,
            "description": report_data.description,
            "category": report_data.category.value,
            "severity": report_data.severity.value,
            "priority": report_data.priority.value,
            "status": ReportStatus.PENDING.value,
            "location": report_data.location.model_dump(),
            "photos": photo_urls,
            "videos": video_urls,
            "points_awarded": 0,
            "due_date": None,
            "assignment_notes": None,
            "citizen_id": citizen_id,
            "municipality_id": report_data.municipality_id,
            "assigned_staff_id": None,
            "validation_info": {
                "location_validated": True,
                "files_validated": True,
                "total_files": len(photo_urls) + len(video_urls),
            },
            "status_history": [
                self.workflow.create_status_history_entry(
                    from_status=None,
                    to_status=ReportStatus.PENDING.value,
                    changed_by=citizen_id,
                    timestamp=now,
                    note="Report created",
                )
            ],
            "created_at": now,
            "updated_at": now,
        }

        try:
            doc_ref.set(report_dict)
        except Exception as e:
            logger.error(f"Failed to save report to Firestore: {e}", exc_info=True)
            raise UnexpectedError("Failed to save report") from e

        logger.info(
            f"✅ Report {doc_ref.id} created by citizen {citizen_id} "
            f"({report_dict['category']}, {report_dict['validation_info']['total_files']} files)"
        )
        return report_dict

    def update_report(
        self,
        report_id: str,
        update_data: ReportUpdate,
        citizen_id: str,
        photos: Sequence[MediaFile] = (),
        videos: Sequence[MediaFile] = (),
    ) -> Dict:
        """
        Citizen edit of their own pending report.

        Only fields of ReportUpdate can change; new media is appended to the
        existing lists within the same count limits.
        """
        report = self._load_owned(report_id, citizen_id)

        if report.get("status") != ReportStatus.PENDING.value:
            raise ValidationFailedError(
                "Cannot update report after it has been processed",
                data={"currentStatus": report.get("status")},
            )

        changes = update_data.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        if "location" in changes:
            # Partial location edits keep the stored parts they do not mention
            changes["location"] = {**(report.get("location") or {}), **changes["location"]}
        municipality = self.users.get_municipality(report.get("municipality_id"))
        self.gate.validate_update(report, changes, municipality, photos, videos)

        all_photos = list(report.get("photos") or []) + self._upload_all(photos, "photos")
        all_videos = list(report.get("videos") or []) + self._upload_all(videos, "videos")

        changes.update({
            "photos": all_photos,
            "videos": all_videos,
            "validation_info": {
                "location_validated": True,
                "files_validated": True,
                "total_files": len(all_photos) + len(all_videos),
            },
            "updated_at": utcnow(),
        })

        updated = self._write(report_id, changes)
        logger.info(f"✅ Report {report_id} updated by citizen {citizen_id}")
        return updated

    def delete_report(self, report_id: str, citizen_id: str) -> bool:
        """
        Delete a citizen's own report while it is still pending.
        Uploaded media is not removed from storage.
        """
        report = self._load_owned(report_id, citizen_id)

        if report.get("status") != ReportStatus.PENDING.value:
            raise ValidationFailedError(
                "Cannot delete report after it has been processed",
                data={"currentStatus": report.get("status")},
            )

        try:
            self._collection().document(report_id).delete()
        except Exception as e:
            logger.error(f"Failed to delete report {report_id}: {e}", exc_info=True)
            raise UnexpectedError("Failed to delete report") from e

        logger.info(f"🗑️ Report {report_id} deleted by citizen {citizen_id}")
        return True

    # ------------------------------------------------------------------
    # Shared reads
    # ------------------------------------------------------------------

    def get_report(self, report_id: str, viewer: Dict) -> Dict:
        """
        Retrieve a single report with populated summaries.

        Args:
            report_id: Firestore document ID
            viewer: Acting user; reports outside their scope read as missing

        Raises:
            NotFoundError: report does not exist or is not visible to the viewer
        """
        report = self._load(report_id)
        if not report or not can_view_report(viewer, report):
            raise NotFoundError("Report not found")
        return present_reports([report], self.users)[0]

    # ------------------------------------------------------------------
    # Staff operations
    # ------------------------------------------------------------------

    def update_report_status(
        self,
        report_id: str,
        request: StatusUpdateRequest,
        staff_id: str,
    ) -> Dict:
        """
        Move a report along the status workflow.

        Args:
            report_id: Firestore document ID
            request: Target status and optional note
            staff_id: Acting staff user

        Returns:
            dict: Updated report

        Raises:
            NotFoundError: report or staff user missing
            ForbiddenError: staff belongs to another municipality or to none
            ValidationFailedError: transition not allowed
        """
        report = self._load(report_id)
        if not report:
            raise NotFoundError("Report not found")

        staff = self.users.get_user(staff_id)
        if not staff:
            raise NotFoundError("Staff user not found")

        ensure_same_municipality(staff, report.get("municipality_id"))

        updates = self.workflow.build_transition(
            report,
            new_status=request.status.value,
            changed_by=staff_id,
            note=request.note,
        )
        updated = self._write(report_id, updates)

        logger.info(f"✅ Report {report_id} status {report.get('status')} → {request.status.value} by {staff_id}")
        if "points_awarded" in updates:
            logger.info(f"Report {report_id} resolved, {updates['points_awarded']} points awarded")
        return updated
