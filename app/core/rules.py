"""
Report rule tables.

The geofence, media limits, points table and status transition table are
built once from settings and handed by reference to the validation gate,
the status workflow engine and the assignment service. Every mapping is
read-only.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from app.core.settings import Settings, settings as default_settings
from app.models.report import ReportCategory, ReportStatus
from app.models.user import UserRole

MB = 1024 * 1024


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


# Nepal
NATIONAL_BOUNDS = BoundingBox(min_lat=26.0, max_lat=31.0, min_lng=80.0, max_lng=89.0)

CATEGORY_POINTS = MappingProxyType({
    ReportCategory.EMERGENCY.value: 20,
    ReportCategory.SAFETY.value: 15,
    ReportCategory.ILLEGAL_ACTIVITY.value: 12,
    ReportCategory.ROAD.value: 10,
    ReportCategory.WATER.value: 10,
    ReportCategory.ELECTRICITY.value: 10,
    ReportCategory.SANITATION.value: 8,
})
DEFAULT_POINTS = 5

STATUS_TRANSITIONS = MappingProxyType({
    ReportStatus.PENDING.value: (ReportStatus.ASSIGNED.value, ReportStatus.RESOLVED.value),
    ReportStatus.ASSIGNED.value: (ReportStatus.IN_PROGRESS.value, ReportStatus.RESOLVED.value),
    ReportStatus.IN_PROGRESS.value: (ReportStatus.RESOLVED.value,),
    ReportStatus.RESOLVED.value: (),
})

ACTIVE_STATUSES = frozenset({
    ReportStatus.PENDING.value,
    ReportStatus.ASSIGNED.value,
    ReportStatus.IN_PROGRESS.value,
})

ASSIGNABLE_ROLES = (UserRole.MUNICIPALITY_ADMIN.value, UserRole.FIELD_STAFF.value)

PHOTO_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})
VIDEO_MIME_TYPES = frozenset({"video/mp4", "video/mpeg", "video/quicktime"})


@dataclass(frozen=True)
class MediaRule:
    """Count, type and size limits for one media kind."""
    kind: str
    max_count: int
    max_size_bytes: int
    allowed_types: FrozenSet[str]
    type_label: str

    @property
    def max_size_mb(self) -> int:
        return self.max_size_bytes // MB


@dataclass(frozen=True)
class ReportRules:
    national_bounds: BoundingBox
    photos: MediaRule
    videos: MediaRule
    category_points: Mapping[str, int]
    default_points: int
    transitions: Mapping[str, Tuple[str, ...]]
    active_statuses: FrozenSet[str]
    assignable_roles: Tuple[str, ...]
    duplicate_window_hours: int
    default_due_days: int
    max_due_days: int
    default_page_limit: int
    max_page_limit: int
    enforce_municipality_boundary: bool

    def points_for(self, category: Optional[str]) -> int:
        return self.category_points.get(category, self.default_points)

    def allowed_transitions(self, status: Optional[str]) -> Tuple[str, ...]:
        return self.transitions.get(status, ())


def build_report_rules(config: Settings) -> ReportRules:
    """Build the rule tables from a Settings instance."""
    return ReportRules(
        national_bounds=NATIONAL_BOUNDS,
        photos=MediaRule(
            kind="photo",
            max_count=config.MAX_PHOTOS_PER_REPORT,
            max_size_bytes=config.MAX_PHOTO_SIZE_MB * MB,
            allowed_types=PHOTO_MIME_TYPES,
            type_label="JPG, PNG, WebP",
        ),
        videos=MediaRule(
            kind="video",
            max_count=config.MAX_VIDEOS_PER_REPORT,
            max_size_bytes=config.MAX_VIDEO_SIZE_MB * MB,
            allowed_types=VIDEO_MIME_TYPES,
            type_label="MP4, MPEG, MOV",
        ),
        category_points=CATEGORY_POINTS,
        default_points=DEFAULT_POINTS,
        transitions=STATUS_TRANSITIONS,
        active_statuses=ACTIVE_STATUSES,
        assignable_roles=ASSIGNABLE_ROLES,
        duplicate_window_hours=config.DUPLICATE_WINDOW_HOURS,
        default_due_days=config.DEFAULT_DUE_DAYS,
        max_due_days=config.MAX_DUE_DAYS,
        default_page_limit=config.DEFAULT_PAGE_LIMIT,
        max_page_limit=config.MAX_PAGE_LIMIT,
        enforce_municipality_boundary=config.ENFORCE_MUNICIPALITY_BOUNDARY,
    )


_rules: Optional[ReportRules] = None


def get_report_rules() -> ReportRules:
    """
    Get or build the process-wide ReportRules instance.

    Returns:
        ReportRules: rule tables built from the global settings
    """
    global _rules
    if _rules is None:
        _rules = build_report_rules(default_settings)
    return _rules
