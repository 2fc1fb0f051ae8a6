"""
Report service - intake orchestration and operator workflows for roadkill reports.

DESIGN NOTE:
- Validation and rate limiting happen before any mutation
- Duplicate check and insert share one store consistency boundary
- The report is durable BEFORE the city is notified
- A failed notification leaves the report pending; the submission still succeeds
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import math
import uuid

from pydantic import ValidationError as PydanticValidationError

from app.core.errors import DuplicateError, NotFoundError, NotificationFailure, ValidationError
from app.models.report import Report, ReportCreate, ReportStatus
from app.services.duplicate_detection import DedupCandidate, DuplicateDetectionService, Duplicate
from app.services.notification import Failed, NotificationProvider, NotifyOutcome
from app.services.rate_limiter import SubmissionRateLimiter
from app.services.report_store import ReportStore
from app.services.status_workflow import StatusWorkflowEngine
from app.utils.geo import BoundingBox
from app.utils.security import hash_ip_address

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SubmitResult:
    report_id: str
    status: ReportStatus


@dataclass
class Page:
    items: List[Report]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


@dataclass
class ReportStats:
    total_reports: int
    monthly_reports: int
    by_status: Dict[str, int] = field(default_factory=dict)


def _field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    errors = []
    for err in exc.errors():
        field_name = ".".join(str(part) for part in err["loc"]) or "body"
        message = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": field_name, "message": message})
    return errors


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class ReportIntakeService:
    """
    Composition root for report intake.

    Collaborators are passed in explicitly; app.main builds one instance at
    startup and tests build their own.
    """

    def __init__(
        self,
        store: ReportStore,
        duplicate_detector: DuplicateDetectionService,
        rate_limiter: SubmissionRateLimiter,
        notifier: NotificationProvider,
        service_area: BoundingBox,
        ip_hash_salt: str = "",
        default_page_size: int = 20,
        max_page_size: int = 100,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.duplicate_detector = duplicate_detector
        self.rate_limiter = rate_limiter
        self.notifier = notifier
        self.service_area = service_area
        self.ip_hash_salt = ip_hash_salt
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.clock = clock
        self.workflow = StatusWorkflowEngine

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def validate(self, payload: Any) -> ReportCreate:
        """
        Validate a raw submission payload.

        Schema errors and service-area errors are collected together, so
        the caller sees every failing field at once.

        Raises:
            ValidationError: With one {field, message} entry per problem
        """
        if not isinstance(payload, dict):
            raise ValidationError([{"field": "body", "message": "Expected a JSON object"}])

        errors: List[Dict[str, str]] = []
        report: Optional[ReportCreate] = None
        try:
            report = ReportCreate.model_validate(payload)
        except PydanticValidationError as e:
            errors.extend(_field_errors(e))

        if report is not None:
            errors.extend(self._service_area_errors(report.location.latitude, report.location.longitude, set()))
        elif isinstance(payload.get("location"), dict):
            raw = payload["location"]
            errors.extend(self._service_area_errors(
                _as_number(raw.get("latitude")),
                _as_number(raw.get("longitude")),
                {e["field"] for e in errors},
            ))

        if errors:
            logger.info(f"Rejected report submission: {[e['field'] for e in errors]}")
            raise ValidationError(errors)
        return report

    def _service_area_errors(
        self,
        latitude: Optional[float],
        longitude: Optional[float],
        failed_fields: set,
    ) -> List[Dict[str, str]]:
        errors = []
        box = self.service_area

        if latitude is not None and "location.latitude" not in failed_fields:
            if not box.min_lat <= latitude <= box.max_lat:
                errors.append({
                    "field": "location.latitude",
                    "message": f"Latitude must be between {box.min_lat} and {box.max_lat} (outside service area)",
                })
        if longitude is not None and "location.longitude" not in failed_fields:
            if not box.min_lon <= longitude <= box.max_lon:
                errors.append({
                    "field": "location.longitude",
                    "message": f"Longitude must be between {box.min_lon} and {box.max_lon} (outside service area)",
                })
        return errors

    def submit(
        self,
        payload: Any,
        owner_id: Optional[str] = None,
        client_ip: Optional[str] = None,
    ) -> SubmitResult:
        """
        Submit a new roadkill report.

        Flow:
        1. Validate payload (all fields, service area)
        2. Rate limit by hashed client IP
        3. Duplicate check + insert as pending (one consistency boundary)
        4. Notify the city contact (outside the boundary)
        5. On Sent → submitted; on Failed → stays pending, warning logged

        Raises:
            ValidationError, RateLimited, DuplicateError, StoreFailure
        """
        now = self.clock()
        data = self.validate(payload)

        client_hash = hash_ip_address(client_ip, self.ip_hash_salt)
        self.rate_limiter.hit(client_hash, now)

        with self.store.serialized():
            verdict = self.duplicate_detector.check(DedupCandidate(location=data.location, submitted_at=now))
            if isinstance(verdict, Duplicate):
                raise DuplicateError(verdict.report_id)

            report = Report(
                id=uuid.uuid4().hex,
                **data.model_dump(),
                owner_id=owner_id,
                status=ReportStatus.PENDING,
                created_at=now,
                updated_at=now,
                client_hash=client_hash,
            )
            report = self.store.create(report)

        logger.info(
            f"Report {report.id} created: {report.animal_type.value} ({report.size.value}) "
            f"owner={'anonymous' if owner_id is None else owner_id}"
        )

        report, _ = self._notify(report)
        return SubmitResult(report_id=report.id, status=report.status)

    def _send(self, report: Report) -> NotifyOutcome:
        try:
            return self.notifier.send(report)
        except Exception as e:
            # Providers return Failed instead of raising; a raise here is a provider bug.
            logger.error(f"Notification provider {self.notifier.name} raised for report {report.id}", exc_info=True)
            return Failed(self.notifier.name, str(e) or e.__class__.__name__)

    def _notify(self, report: Report) -> Tuple[Report, NotifyOutcome]:
        outcome = self._send(report)

        if isinstance(outcome, Failed):
            logger.warning(
                f"Failed to send city notification for report {report.id} "
                f"via {outcome.provider}: {outcome.reason}. Report remains {report.status.value}."
            )
            return report, outcome

        with self.store.serialized():
            current = self.store.get(report.id) or report
            changes = self.workflow.apply_notification(current, outcome, self.clock())
            if changes:
                current = self.store.update(report.id, changes)

        logger.info(f"City notified for report {report.id} via {outcome.provider}")
        return current, outcome

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, report_id: str) -> Report:
        report = self.store.get(report_id)
        if report is None:
            raise NotFoundError(report_id)
        return report

    def list_for_owner(self, owner_id: str) -> List[Report]:
        """All reports submitted by an authenticated owner, most recent first."""
        return self.store.list_by_owner(owner_id)

    def list_by_status(self, status: Any, page: int = 1, page_size: Optional[int] = None) -> Page:
        """
        Offset-paginated operator listing.

        page_size above the ceiling is clamped to max_page_size.

        Raises:
            InvalidStatus: Unknown status token
            ValidationError: page or page_size below 1
        """
        target = self.workflow.parse(status)
        page_size = self.default_page_size if page_size is None else page_size

        errors = []
        if page < 1:
            errors.append({"field": "page", "message": "Page must be 1 or greater"})
        if page_size < 1:
            errors.append({"field": "limit", "message": "Limit must be 1 or greater"})
        if errors:
            raise ValidationError(errors)

        page_size = min(page_size, self.max_page_size)
        items, total = self.store.list_by_status(target.value, (page - 1) * page_size, page_size)
        return Page(items=items, total=total, page=page, page_size=page_size)

    def list_in_service_area(self) -> List[Report]:
        """Reports whose location falls inside the service-area polygon."""
        return self.store.find_within(self.service_area.as_polygon())

    def stats(self) -> ReportStats:
        now = self.clock()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        by_status = {s.value: 0 for s in ReportStatus}
        by_status.update(self.store.count_by_status())
        return ReportStats(
            total_reports=self.store.count(),
            monthly_reports=self.store.count(since=month_start),
            by_status=by_status,
        )

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def update_status(self, report_id: str, status: Any, city_response: Optional[str] = None) -> Report:
        """
        Operator status change.

        The token is checked before the lookup, so an invalid status never
        touches the store.

        Raises:
            InvalidStatus, NotFoundError, InvalidTransition
        """
        target = self.workflow.parse(status)

        with self.store.serialized():
            report = self.get(report_id)
            changes = self.workflow.transition(report, target, self.clock(), city_response)
            if not changes:
                return report
            report = self.store.update(report_id, changes)

        logger.info(f"Operator updated report {report_id} status to {report.status.value}")
        return report

    def notify_city(self, report_id: str) -> Report:
        """
        Operator-triggered single attempt to deliver a report to the city.

        Already-delivered reports are returned unchanged.

        Raises:
            NotFoundError, NotificationFailure
        """
        report = self.get(report_id)
        if report.submitted_to_city_at is not None:
            logger.info(f"Report {report_id} already delivered at {report.submitted_to_city_at.isoformat()}")
            return report

        report, outcome = self._notify(report)
        if isinstance(outcome, Failed):
            raise NotificationFailure(outcome.reason)
        return report
