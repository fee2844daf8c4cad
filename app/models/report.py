"""
Pydantic models for citizen reports.
These models handle validation for report submission, staff actions and responses.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from app.models.base import ApiModel
from app.models.user import MunicipalitySummary, UserSummary


class ReportCategory(str, Enum):
    ROAD = "road"
    ELECTRICITY = "electricity"
    WATER = "water"
    SANITATION = "sanitation"
    SAFETY = "safety"
    EMERGENCY = "emergency"
    ILLEGAL_ACTIVITY = "illegal_activity"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReportStatus(str, Enum):
    """
    Report lifecycle.

    pending → assigned → in_progress → resolved, with shortcuts to resolved.
    resolved is terminal.
    """
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class SortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    DUE_DATE = "due_date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Coordinates(ApiModel):
    # Range checks against the national box happen in the validation gate
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Location(ApiModel):
    coordinates: Optional[Coordinates] = None
    address: Optional[str] = Field(None, max_length=500)
    ward: Optional[str] = Field(None, max_length=50)


class ReportCreate(ApiModel):
    """
    Fields a citizen provides when submitting a report.
    Media files travel separately as multipart parts.
    """
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=5, max_length=2000)
    category: ReportCategory
    severity: Severity = Severity.MEDIUM
    priority: Priority = Priority.MEDIUM
    municipality_id: str = Field(..., min_length=1)
    location: Location = Field(default_factory=Location)

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Pothole near school gate",
                "description": "Large pothole filling with water after rain.",
                "category": "road",
                "severity": "medium",
                "priority": "high",
                "municipalityId": "ktm-metro",
                "location": {
                    "coordinates": {"lat": 27.7172, "lng": 85.3240},
                    "address": "Putalisadak, Kathmandu",
                    "ward": "29",
                },
            }
        }


class ReportUpdate(ApiModel):
    """
    Citizen edit of a pending report.

    Only these fields are editable. Status, assignment, timestamps and points
    are server-controlled and are not part of this model.
    """
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=5, max_length=2000)
    category: Optional[ReportCategory] = None
    severity: Optional[Severity] = None
    priority: Optional[Priority] = None
    location: Optional[Location] = None


class StatusUpdateRequest(ApiModel):
    status: ReportStatus
    note: Optional[str] = Field(None, max_length=500)


class AssignmentRequest(ApiModel):
    assigned_staff_id: str = Field(..., min_length=1)
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=1000)


class ReportFilter(ApiModel):
    """Optional listing filters shared by all listing variants."""
    page: int = Field(1, ge=1)
    limit: Optional[int] = Field(None, ge=1)
    category: Optional[ReportCategory] = None
    status: Optional[ReportStatus] = None
    severity: Optional[Severity] = None
    municipality_id: Optional[str] = None
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


class ValidationInfo(ApiModel):
    location_validated: bool = False
    files_validated: bool = False
    total_files: int = 0


class StatusHistoryEntry(ApiModel):
    """Status transition history entry."""
    from_status: Optional[str] = None
    to_status: str
    changed_by: str
    timestamp: datetime
    note: Optional[str] = None


class ReportResponse(ApiModel):
    """
    Model for report responses (what API returns).
    Includes system-generated fields and populated summaries.
    """
    id: str = Field(..., description="Firestore document ID")
    title: str
    description: str
    category: str
    severity: str
    priority: str
    status: str
    location: Location = Field(default_factory=Location)
    photos: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    points_awarded: int = 0
    due_date: Optional[datetime] = None
    assignment_notes: Optional[str] = None
    citizen_id: str
    municipality_id: str
    assigned_staff_id: Optional[str] = None
    assigned_at: Optional[datetime] = None
    in_progress_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    validation_info: ValidationInfo = Field(default_factory=ValidationInfo)
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Populated on read
    citizen: Optional[UserSummary] = None
    municipality: Optional[MunicipalitySummary] = None
    assigned_staff: Optional[UserSummary] = None


class DashboardCounts(ApiModel):
    total: int = 0
    pending: int = 0
    assigned: int = 0
    in_progress: int = 0
    resolved: int = 0

    def to_api(self) -> Dict[str, int]:
        # Bucket names are status values, keep them as-is
        return self.model_dump()
