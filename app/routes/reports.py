"""
Report endpoints - citizen submission, history, and operator status workflow.
"""

from typing import Any, Optional
import logging

from fastapi import APIRouter, Body, Depends, Query, Request, status

from app.core.context import AppContext
from app.models.report import StatusUpdateRequest
from app.routes.dependencies import (
    get_context,
    get_intake,
    optional_identity,
    require_identity,
    require_operator,
)
from app.services.identity import Identity
from app.services.report_service import ReportIntakeService
from app.utils.security import client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_report(
    request: Request,
    payload: Any = Body(...),
    identity: Optional[Identity] = Depends(optional_identity),
    intake: ReportIntakeService = Depends(get_intake),
):
    """
    Submit a new roadkill report.

    This endpoint:
    1. Validates the report (400 with every failing field)
    2. Rate limits the client IP (429)
    3. Rejects recent nearby duplicates (409)
    4. Stores the report and notifies the city contact

    Returns the new report id and its status: "submitted" when the city
    was notified, "pending" when notification failed.
    """
    peer = request.client.host if request.client else None
    result = intake.submit(
        payload,
        owner_id=identity.user_id if identity else None,
        client_ip=client_ip(request.headers, peer),
    )
    return {
        "id": result.report_id,
        "reportId": result.report_id,
        "status": result.status.value,
        "message": "Report submitted successfully",
    }


@router.get("/user")
def get_user_reports(
    identity: Identity = Depends(require_identity),
    intake: ReportIntakeService = Depends(get_intake),
):
    """All reports submitted by the authenticated caller, most recent first."""
    reports = intake.list_for_owner(identity.user_id)
    return {"reports": [r.to_public() for r in reports]}


@router.get("/status/{report_status}")
def get_reports_by_status(
    report_status: str,
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    _: Identity = Depends(require_operator),
    context: AppContext = Depends(get_context),
):
    """Operator view: reports in one status, offset-paginated, most recent first."""
    result = context.intake.list_by_status(report_status, page=page, page_size=limit)
    return {
        "reports": [_with_owner(context, r.to_public()) for r in result.items],
        "total": result.total,
        "page": result.page,
        "limit": result.page_size,
        "totalPages": result.total_pages,
    }


@router.get("/area")
def get_reports_in_service_area(
    _: Identity = Depends(require_operator),
    intake: ReportIntakeService = Depends(get_intake),
):
    """Operator view: reports located inside the service-area polygon."""
    reports = intake.list_in_service_area()
    return {"reports": [r.to_public() for r in reports], "total": len(reports)}


@router.get("/{report_id}")
def get_report(report_id: str, context: AppContext = Depends(get_context)):
    """Single report, with the owner's public fields when it has an owner."""
    report = context.intake.get(report_id)
    return {"report": _with_owner(context, report.to_public())}


@router.patch("/{report_id}/status")
def update_report_status(
    report_id: str,
    request: StatusUpdateRequest,
    operator: Identity = Depends(require_operator),
    intake: ReportIntakeService = Depends(get_intake),
):
    """
    Change report status (operator only).

    Raises:
        400: Unknown status token (no mutation)
        404: Report not found
        409: Backward transition
    """
    report = intake.update_status(report_id, request.status, request.city_response)
    logger.info(f"Report {report_id} status set to {report.status.value} by operator {operator.user_id}")
    return {"report": report.to_public(), "message": "Report status updated successfully"}


def _with_owner(context: AppContext, data: dict) -> dict:
    owner_id = data.get("ownerId")
    data["user"] = context.identity.public_profile(owner_id) if owner_id else None
    return data
