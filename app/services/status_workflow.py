"""
Status Workflow Engine - forward-only report lifecycle.

DESIGN PRINCIPLES:
- No backward transitions (nothing leaves "resolved")
- Operators may skip forward (e.g. submitted → resolved)
- submitted_to_city_at and resolved_at are stamped exactly once
- Unknown status tokens are rejected with InvalidStatus
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from app.core.errors import InvalidStatus, InvalidTransition
from app.models.report import Report, ReportStatus
from app.services.notification.base import NotifyOutcome, Sent

logger = logging.getLogger(__name__)


class StatusWorkflowEngine:
    """
    Forward-only state machine for report status.

    Rules:
    - Status rank only increases
    - Same-status calls are idempotent (timestamps keep their first value)
    - Only a Sent notification outcome moves pending → submitted
    """

    ORDER: List[ReportStatus] = [
        ReportStatus.PENDING,
        ReportStatus.SUBMITTED,
        ReportStatus.IN_PROGRESS,
        ReportStatus.RESOLVED,
    ]

    @classmethod
    def parse(cls, token: Any) -> ReportStatus:
        """Turn a raw status token into a ReportStatus or raise InvalidStatus."""
        if isinstance(token, ReportStatus):
            return token
        try:
            return ReportStatus(token)
        except ValueError:
            raise InvalidStatus(token)

    @classmethod
    def rank(cls, status: ReportStatus) -> int:
        return cls.ORDER.index(status)

    @classmethod
    def allowed_targets(cls, current: ReportStatus) -> List[str]:
        """Statuses an operator may set from current (including current itself)."""
        return [s.value for s in cls.ORDER if cls.rank(s) >= cls.rank(current)]

    @classmethod
    def is_valid_transition(cls, current: ReportStatus, target: ReportStatus) -> bool:
        return cls.rank(target) >= cls.rank(current)

    @classmethod
    def transition(
        cls,
        report: Report,
        target: ReportStatus,
        now: datetime,
        city_response: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Validate an operator transition and compute the fields to persist.

        Returns:
            Dict of changed fields (empty when nothing changes)

        Raises:
            InvalidTransition: If target ranks below the current status
        """
        if not cls.is_valid_transition(report.status, target):
            raise InvalidTransition(
                report.status.value,
                target.value,
                cls.allowed_targets(report.status),
            )

        changes: Dict[str, Any] = {}
        if target != report.status:
            changes["status"] = target.value

        if target == ReportStatus.SUBMITTED and report.submitted_to_city_at is None:
            changes["submitted_to_city_at"] = now

        if target == ReportStatus.RESOLVED and report.resolved_at is None:
            changes["resolved_at"] = now

        if city_response:
            changes["city_response"] = city_response

        if changes:
            logger.info(f"Report {report.id} transition {report.status.value} → {target.value}")
        return changes

    @classmethod
    def apply_notification(cls, report: Report, outcome: NotifyOutcome, now: datetime) -> Dict[str, Any]:
        """
        Compute the fields to persist after a city notification attempt.

        Sent on a pending report → submitted + submitted_to_city_at.
        Sent on a report an operator already moved forward only stamps
        submitted_to_city_at if it was never set. Failed changes nothing.
        """
        if not isinstance(outcome, Sent):
            return {}

        changes: Dict[str, Any] = {}
        if report.status == ReportStatus.PENDING:
            changes["status"] = ReportStatus.SUBMITTED.value
        if report.submitted_to_city_at is None:
            changes["submitted_to_city_at"] = now
        return changes
