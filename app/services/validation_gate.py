"""
Validation Gate - checks a report must pass before it is stored or edited.

Creation checks run in a fixed order and stop at the first failure:
municipality, accepted category, coordinates, active duplicate, photos,
videos, emergency evidence. Every check finishes before any file is uploaded.
"""

from typing import Dict, List, Optional, Sequence
import logging

from app.core.errors import NotFoundError, ValidationFailedError
from app.core.rules import BoundingBox, MediaRule, ReportRules, get_report_rules
from app.models.report import Location, ReportCreate, Severity
from app.models.user import BoundaryBox
from app.services.duplicate_detection import DuplicateDetectionService
from app.services.media_storage import MediaFile

logger = logging.getLogger(__name__)


class ValidationGate:
    """
    Business-rule validation for report creation and citizen edits.
    """

    def __init__(self, duplicates: DuplicateDetectionService, rules: Optional[ReportRules] = None):
        self.duplicates = duplicates
        self.rules = rules or get_report_rules()

    def validate_new_report(
        self,
        report_data: ReportCreate,
        municipality: Optional[Dict],
        photos: Sequence[MediaFile],
        videos: Sequence[MediaFile],
        citizen_id: str,
    ) -> None:
        """
        Run every creation check in order.

        Raises:
            NotFoundError: municipality missing
            ValidationFailedError: first rule violated
        """
        self.check_municipality(municipality)
        self.check_category(municipality, report_data.category.value)
        self.check_coordinates(report_data.location, municipality)
        self.check_duplicate(citizen_id, report_data.category.value)
        self.check_media(photos, self.rules.photos)
        self.check_media(videos, self.rules.videos)
        self.check_evidence(report_data.severity.value, len(photos) + len(videos))

    def validate_update(
        self,
        report: Dict,
        changes: Dict,
        municipality: Optional[Dict],
        photos: Sequence[MediaFile],
        videos: Sequence[MediaFile],
    ) -> None:
        """
        Checks for a citizen edit of a pending report.

        Media limits count the files already on the report.
        """
        if "category" in changes and changes["category"] != report.get("category"):
            self.check_category(municipality, changes["category"])
        if "location" in changes:
            self.check_coordinates(Location.model_validate(changes["location"]), municipality)
        self.check_media(photos, self.rules.photos, existing=len(report.get("photos") or []))
        self.check_media(videos, self.rules.videos, existing=len(report.get("videos") or []))

    def check_municipality(self, municipality: Optional[Dict]) -> None:
        if not municipality:
            raise NotFoundError("Municipality not found")

    def check_category(self, municipality: Dict, category: str) -> None:
        accepted: List[str] = municipality.get("report_categories") or []
        if accepted and category not in accepted:
            logger.warning(f"Municipality {municipality.get('id')} does not accept '{category}' reports")
            raise ValidationFailedError(
                f"This municipality doesn't accept {category} reports",
                data={"acceptedCategories": accepted},
            )

    def check_coordinates(self, location: Optional[Location], municipality: Optional[Dict]) -> None:
        coordinates = location.coordinates if location else None
        if coordinates is None:
            raise ValidationFailedError("Location coordinates are required")

        if not self.rules.national_bounds.contains(coordinates.lat, coordinates.lng):
            raise ValidationFailedError(
                "Invalid coordinates. Please use valid Nepal coordinates.",
                data={"lat": coordinates.lat, "lng": coordinates.lng},
            )

        if self.rules.enforce_municipality_boundary and municipality:
            boundary = BoundaryBox.model_validate(municipality.get("boundary_box") or {})
            if boundary.is_complete():
                box = BoundingBox(boundary.min_lat, boundary.max_lat, boundary.min_lng, boundary.max_lng)
                if not box.contains(coordinates.lat, coordinates.lng):
                    raise ValidationFailedError(
                        "Location is outside the municipality boundary",
                        data={"boundaryBox": boundary.to_api()},
                    )

    def check_duplicate(self, citizen_id: str, category: str) -> None:
        duplicate = self.duplicates.find_active_duplicate(citizen_id, category)
        if duplicate:
            raise ValidationFailedError(
                "You already have an active report for this category in the last 24 hours",
                data={"existingReportId": duplicate["id"], "status": duplicate.get("status")},
            )

    def check_media(self, files: Sequence[MediaFile], rule: MediaRule, existing: Optional[int] = None) -> None:
        """
        Count, mime type and size checks for one batch of photos or videos.

        Args:
            files: Incoming files
            rule: Limits for this media kind
            existing: Files already attached (edits only)
        """
        if existing is None:
            if len(files) > rule.max_count:
                raise ValidationFailedError(f"Maximum {rule.max_count} {rule.kind}s allowed per report")
        elif files and existing + len(files) > rule.max_count:
            raise ValidationFailedError(
                f"Maximum {rule.max_count} {rule.kind}s allowed. You already have {existing} {rule.kind}s"
            )

        for media in files:
            if media.content_type not in rule.allowed_types:
                raise ValidationFailedError(
                    f"Invalid {rule.kind} type for {media.filename}. Only {rule.type_label} allowed",
                    data={"file": media.filename, "contentType": media.content_type},
                )
            if media.size > rule.max_size_bytes:
                raise ValidationFailedError(
                    f"{rule.kind.capitalize()} {media.filename} is too large. Maximum {rule.max_size_mb}MB allowed",
                    data={"file": media.filename, "size": media.size},
                )

    def check_evidence(self, severity: str, file_count: int) -> None:
        if severity == Severity.EMERGENCY.value and file_count == 0:
            raise ValidationFailedError("Emergency reports require photo/video evidence")
