"""
Public statistics shown on the mobile home screen.
"""

from fastapi import APIRouter, Depends

from app.routes.dependencies import get_intake
from app.services.report_service import ReportIntakeService

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("")
def get_stats(intake: ReportIntakeService = Depends(get_intake)):
    stats = intake.stats()
    return {
        "totalReports": stats.total_reports,
        "monthlyReports": stats.monthly_reports,
        "byStatus": stats.by_status,
    }
