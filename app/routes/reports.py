"""
Report endpoints - API routes for the report lifecycle.

Citizens submit, edit and delete their own pending reports; staff move
reports through the status workflow; municipality admins assign them.
Every response uses the {data, message, status, options} envelope.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
import logging

from app.models.base import envelope
from app.models.report import (
    AssignmentRequest,
    ReportCategory,
    ReportCreate,
    ReportFilter,
    ReportStatus,
    ReportUpdate,
    Severity,
    SortField,
    SortOrder,
    StatusUpdateRequest,
)
from app.models.user import UserRole
from app.routes.dependencies import (
    get_assignment_service,
    get_query_service,
    get_report_service,
    require,
)
from app.services.access_control import Capability
from app.services.assignment_service import AssignmentService
from app.services.media_storage import MediaFile
from app.services.report_query_service import ReportQueryService
from app.services.report_service import ReportService, present_reports

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


def to_media_files(uploads: Optional[List[UploadFile]]) -> List[MediaFile]:
    """Wrap uploaded parts as MediaFile handles, measuring each file's size."""
    media = []
    for upload in uploads or []:
        if not upload.filename:
            continue
        handle = upload.file
        handle.seek(0, 2)
        size = handle.tell()
        handle.seek(0)
        media.append(MediaFile(filename=upload.filename, content_type=upload.content_type, size=size, file=handle))
    return media


def build_location(
    lat: Optional[float],
    lng: Optional[float],
    address: Optional[str],
    ward: Optional[str],
) -> Optional[Dict]:
    if lat is None and lng is None and address is None and ward is None:
        return None
    location: Dict = {"address": address, "ward": ward}
    if lat is not None or lng is not None:
        location["coordinates"] = {"lat": lat, "lng": lng}
    return location


def parse_model(model_cls, data: Dict):
    """Validate form data, reporting failures like any other request error."""
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))


def report_filter(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    category: Optional[ReportCategory] = None,
    report_status: Optional[ReportStatus] = Query(None, alias="status"),
    severity: Optional[Severity] = None,
    municipality_id: Optional[str] = Query(None, alias="municipalityId"),
    sort_by: SortField = Query(SortField.CREATED_AT, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
) -> ReportFilter:
    return ReportFilter(
        page=page,
        limit=limit,
        category=category,
        status=report_status,
        severity=severity,
        municipality_id=municipality_id,
        sort_by=sort_by,
        sort_order=sort_order,
    )


def scoped_to_municipality(user: Dict, requested: Optional[str]) -> Optional[str]:
    """Municipality admins only ever see their own municipality."""
    if user.get("role") == UserRole.MUNICIPALITY_ADMIN.value:
        return user.get("municipality_id")
    return requested


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_report(
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    severity: str = Form("medium"),
    priority: str = Form("medium"),
    municipality_id: str = Form(..., alias="municipalityId"),
    lat: Optional[float] = Form(None),
    lng: Optional[float] = Form(None),
    address: Optional[str] = Form(None),
    ward: Optional[str] = Form(None),
    photos: Optional[List[UploadFile]] = File(None),
    videos: Optional[List[UploadFile]] = File(None),
    citizen: Dict = Depends(require(Capability.SUBMIT_REPORT)),
    service: ReportService = Depends(get_report_service),
):
    """
    Submit a new citizen report (multipart: fields + up to 5 photos + 2 videos).
    """
    report_data = parse_model(ReportCreate, {
        "title": title,
        "description": description,
        "category": category,
        "severity": severity,
        "priority": priority,
        "municipality_id": municipality_id,
        "location": build_location(lat, lng, address, ward) or {},
    })
    logger.info(f"📝 POST /reports - citizen={citizen['id']} category={report_data.category.value}")

    report = service.create_report(
        report_data,
        citizen_id=citizen["id"],
        photos=to_media_files(photos),
        videos=to_media_files(videos),
    )
    return envelope(present_reports([report], service.users)[0], "Report created successfully")


@router.get("")
async def list_reports(
    filters: ReportFilter = Depends(report_filter),
    user: Dict = Depends(require(Capability.LIST_ALL_REPORTS)),
    service: ReportQueryService = Depends(get_query_service),
):
    """List all reports (admin view)."""
    filters.municipality_id = scoped_to_municipality(user, filters.municipality_id)
    result = service.list_reports(filters)
    return envelope(result["reports"], "Reports fetched successfully", pagination=result["pagination"])


@router.get("/mine")
async def list_my_reports(
    filters: ReportFilter = Depends(report_filter),
    citizen: Dict = Depends(require(Capability.LIST_OWN_REPORTS)),
    service: ReportQueryService = Depends(get_query_service),
):
    """List the acting citizen's reports."""
    result = service.list_citizen_reports(citizen["id"], filters)
    return envelope(result["reports"], "Reports fetched successfully", pagination=result["pagination"])


@router.get("/assigned")
async def list_assigned_reports(
    filters: ReportFilter = Depends(report_filter),
    staff: Dict = Depends(require(Capability.LIST_ASSIGNED_REPORTS)),
    service: ReportQueryService = Depends(get_query_service),
):
    """List reports assigned to the acting staff member."""
    result = service.list_assigned_reports(staff["id"], filters)
    return envelope(result["reports"], "Assigned reports fetched successfully", pagination=result["pagination"])


@router.get("/dashboard/counts")
async def dashboard_counts(
    municipality_id: Optional[str] = Query(None, alias="municipalityId"),
    user: Dict = Depends(require(Capability.VIEW_DASHBOARD)),
    service: ReportQueryService = Depends(get_query_service),
):
    """Report counts per status."""
    counts = service.dashboard_counts(scoped_to_municipality(user, municipality_id))
    return envelope(counts.to_api(), "Dashboard counts fetched successfully")


@router.get("/{report_id}")
async def get_report(
    report_id: str,
    service: ReportService = Depends(get_report_service),
    user: Dict = Depends(require(Capability.VIEW_REPORT)),
):
    """Single report with citizen, municipality and staff summaries, within the caller's scope."""
    return envelope(service.get_report(report_id, viewer=user), "Report fetched successfully")


@router.put("/{report_id}")
async def update_report(
    report_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    severity: Optional[str] = Form(None),
    priority: Optional[str] = Form(None),
    lat: Optional[float] = Form(None),
    lng: Optional[float] = Form(None),
    address: Optional[str] = Form(None),
    ward: Optional[str] = Form(None),
    photos: Optional[List[UploadFile]] = File(None),
    videos: Optional[List[UploadFile]] = File(None),
    citizen: Dict = Depends(require(Capability.EDIT_OWN_REPORT)),
    service: ReportService = Depends(get_report_service),
):
    """Citizen edit of their own pending report."""
    fields = {
        "title": title,
        "description": description,
        "category": category,
        "severity": severity,
        "priority": priority,
        "location": build_location(lat, lng, address, ward),
    }
    update_data = parse_model(ReportUpdate, {k: v for k, v in fields.items() if v is not None})

    report = service.update_report(
        report_id,
        update_data,
        citizen_id=citizen["id"],
        photos=to_media_files(photos),
        videos=to_media_files(videos),
    )
    return envelope(present_reports([report], service.users)[0], "Report updated successfully")


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    citizen: Dict = Depends(require(Capability.DELETE_OWN_REPORT)),
    service: ReportService = Depends(get_report_service),
):
    """Citizen deletes their own pending report."""
    service.delete_report(report_id, citizen_id=citizen["id"])
    return envelope(None, "Report deleted successfully")


@router.put("/{report_id}/status")
async def update_report_status(
    report_id: str,
    request: StatusUpdateRequest,
    staff: Dict = Depends(require(Capability.UPDATE_STATUS)),
    service: ReportService = Depends(get_report_service),
):
    """Move a report along the status workflow."""
    report = service.update_report_status(report_id, request, staff_id=staff["id"])
    return envelope(present_reports([report], service.users)[0], "Report status updated successfully")


@router.put("/{report_id}/assign")
async def assign_report(
    report_id: str,
    request: AssignmentRequest,
    admin: Dict = Depends(require(Capability.ASSIGN_REPORT)),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Assign a report to a staff member of the admin's municipality."""
    report = service.assign_report(
        report_id,
        request,
        acting_municipality_id=admin.get("municipality_id"),
        acting_user_id=admin["id"],
    )
    return envelope(present_reports([report], service.users)[0], "Report assigned successfully")
