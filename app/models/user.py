"""
User and municipality models.

Users and municipalities are managed elsewhere; the report services only
read them to check roles, municipality membership and accepted categories.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from app.models.base import ApiModel


class UserRole(str, Enum):
    CITIZEN = "citizen"
    MUNICIPALITY_ADMIN = "municipality_admin"
    FIELD_STAFF = "field_staff"
    SPONSOR = "sponsor"
    SYS_ADMIN = "sys_admin"


class UserStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class UserSummary(ApiModel):
    """Public summary of a user, embedded in report responses."""
    id: str = Field(..., description="Firestore document ID")
    name: Optional[str] = None
    profile_image: Optional[str] = None
    phone: Optional[str] = None


class BoundaryBox(ApiModel):
    min_lat: Optional[float] = None
    max_lat: Optional[float] = None
    min_lng: Optional[float] = None
    max_lng: Optional[float] = None

    def is_complete(self) -> bool:
        return None not in (self.min_lat, self.max_lat, self.min_lng, self.max_lng)


class MunicipalitySummary(ApiModel):
    """Public summary of a municipality, embedded in report responses."""
    id: str = Field(..., description="Firestore document ID")
    name: Optional[str] = None
    city: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    report_categories: List[str] = Field(default_factory=list)
