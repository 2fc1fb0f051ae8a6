"""
City integration endpoints - operator-triggered delivery to the city contact.
"""

import logging

from fastapi import APIRouter, Depends

from app.models.report import CityNotifyRequest
from app.routes.dependencies import get_intake, require_operator
from app.services.identity import Identity
from app.services.report_service import ReportIntakeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/city", tags=["City"])


@router.post("/notify")
def notify_city(
    request: CityNotifyRequest,
    operator: Identity = Depends(require_operator),
    intake: ReportIntakeService = Depends(get_intake),
):
    """
    Send (or resend) a pending report to the city contact.

    One attempt per call. Reports already delivered are returned unchanged.

    Raises:
        404: Report not found
        502: Delivery failed; the report stays pending
    """
    logger.info(f"Operator {operator.user_id} requested city notification for report {request.report_id}")
    report = intake.notify_city(request.report_id)
    return {"report": report.to_public()}
