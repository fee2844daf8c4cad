import io
import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

os.environ.setdefault("USE_MOCK_DB", "true")
os.environ.setdefault("MOCK_DB_PATH", "")
os.environ.setdefault("MEDIA_STORAGE_PROVIDER", "local")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="civic_media_"))

import pytest
from fastapi.testclient import TestClient

from app.config.mock_firestore import MockFirestore
from app.models.report import ReportCreate
from app.services.assignment_service import AssignmentService
from app.services.media_storage import MediaFile, MediaStorage
from app.services.report_query_service import ReportQueryService
from app.services.report_service import ReportService

MB = 1024 * 1024

MUNICIPALITIES = {
    "ktm": {
        "name": "Kathmandu Metropolitan City",
        "report_categories": [],
        "boundary_box": {"min_lat": 27.66, "max_lat": 27.76, "min_lng": 85.26, "max_lng": 85.37},
        "location": {"city": "Kathmandu"},
        "contact_phone": "01-4231481",
        "is_active": True,
    },
    "pokhara": {
        "name": "Pokhara Metropolitan City",
        "report_categories": ["road", "water"],
        "location": {"city": "Pokhara"},
        "is_active": True,
    },
}

USERS = {
    "citizen-1": {"name": "Sita Sharma", "role": "citizen", "municipality_id": "ktm", "status": "active", "phone": "9841000001"},
    "citizen-2": {"name": "Bikash Karki", "role": "citizen", "municipality_id": "ktm", "status": "active"},
    "admin-ktm": {"name": "Ram Thapa", "role": "municipality_admin", "municipality_id": "ktm", "status": "active"},
    "staff-ktm": {"name": "Hari Gurung", "role": "field_staff", "municipality_id": "ktm", "status": "active"},
    "admin-pokhara": {"name": "Maya Gurung", "role": "municipality_admin", "municipality_id": "pokhara", "status": "active"},
    "staff-pokhara": {"name": "Dil Pun", "role": "field_staff", "municipality_id": "pokhara", "status": "active"},
    "sysadmin": {"name": "Gita Rai", "role": "sys_admin", "status": "active"},
    "sponsor-1": {"name": "Himal Traders", "role": "sponsor", "status": "active"},
    "citizen-suspended": {"name": "Suspended User", "role": "citizen", "municipality_id": "ktm", "status": "suspended"},
}

KTM_COORDS = {"lat": 27.7172, "lng": 85.3240}


class RecordingStorage(MediaStorage):
    """Upload adapter double that remembers every upload."""

    name = "recording"

    def __init__(self, fail_after: Optional[int] = None):
        self.uploads: List[Dict] = []
        self.fail_after = fail_after

    def upload(self, media: MediaFile, folder: str) -> str:
        if self.fail_after is not None and len(self.uploads) >= self.fail_after:
            raise IOError("storage unavailable")
        url = f"https://cdn.test/{folder}/{len(self.uploads)}-{media.filename}"
        self.uploads.append({"filename": media.filename, "folder": folder, "url": url})
        return url


def make_media(filename: str = "photo.jpg", content_type: str = "image/jpeg", size: int = 1024) -> MediaFile:
    return MediaFile(filename=filename, content_type=content_type, size=size, file=io.BytesIO(b"x" * 16))


def photos(count: int) -> List[MediaFile]:
    return [make_media(f"photo{i}.jpg") for i in range(count)]


def videos(count: int) -> List[MediaFile]:
    return [make_media(f"clip{i}.mp4", "video/mp4", 10 * MB) for i in range(count)]


def report_data(**overrides) -> ReportCreate:
    data = {
        "title": "Pothole near school",
        "description": "Large pothole filling with water after rain.",
        "category": "road",
        "severity": "medium",
        "priority": "medium",
        "municipality_id": "ktm",
        "location": {"coordinates": dict(KTM_COORDS), "address": "Putalisadak", "ward": "29"},
    }
    data.update(overrides)
    return ReportCreate.model_validate(data)


def insert_report(db: MockFirestore, report_id: str, **fields) -> Dict:
    """Place a report document directly in the store."""
    now = datetime.now(timezone.utc)
    doc = {
        "id": report_id,
        "title": "Broken street light",
        "description": "Street light has been off for a week.",
        "category": "electricity",
        "severity": "medium",
        "priority": "medium",
        "status": "pending",
        "location": {"coordinates": dict(KTM_COORDS), "address": "New Road", "ward": "22"},
        "photos": [],
        "videos": [],
        "points_awarded": 0,
        "due_date": None,
        "assignment_notes": None,
        "citizen_id": "citizen-1",
        "municipality_id": "ktm",
        "assigned_staff_id": None,
        "validation_info": {"location_validated": True, "files_validated": True, "total_files": 0},
        "status_history": [],
        "created_at": now,
        "updated_at": now,
    }
    doc.update(fields)
    db.collection("reports").document(report_id).set(doc)
    return doc


def hours_ago(hours: float) -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=hours)


@pytest.fixture
def db():
    store = MockFirestore()
    for doc_id, data in MUNICIPALITIES.items():
        store.collection("municipalities").document(doc_id).set(data)
    for doc_id, data in USERS.items():
        store.collection("users").document(doc_id).set(data)
    return store


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def report_service(db, storage):
    return ReportService(db=db, storage=storage)


@pytest.fixture
def assignment_service(db):
    return AssignmentService(db=db)


@pytest.fixture
def query_service(db):
    return ReportQueryService(db=db)


@pytest.fixture
def client(db, storage):
    from app.main import app
    from app.routes.dependencies import get_database, get_storage

    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def as_user(user_id: str) -> Dict[str, str]:
    return {"X-User-Id": user_id}


def user(user_id: str) -> Dict:
    """Seeded user as the services see it, with its document id."""
    return {"id": user_id, **USERS[user_id]}
