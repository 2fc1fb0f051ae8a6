"""
Application context - the collaborators built once at startup.

app.main creates the context in its startup hook, keeps it on app.state and
closes it on shutdown. Routes reach it through app.routes.dependencies.
"""

from dataclasses import dataclass
import logging

from app.core.settings import Settings
from app.services.duplicate_detection import DuplicateDetectionService
from app.services.identity import IdentityProvider, get_identity_provider
from app.services.notification import NotificationProvider, get_notification_provider
from app.services.rate_limiter import SubmissionRateLimiter
from app.services.report_service import ReportIntakeService
from app.services.report_store import FirestoreReportStore, InMemoryReportStore, ReportStore
from app.utils.geo import BoundingBox

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    store: ReportStore
    intake: ReportIntakeService
    identity: IdentityProvider

    def close(self) -> None:
        self.store.close()


def service_area_from(settings: Settings) -> BoundingBox:
    return BoundingBox(
        min_lat=settings.SERVICE_AREA_MIN_LAT,
        max_lat=settings.SERVICE_AREA_MAX_LAT,
        min_lon=settings.SERVICE_AREA_MIN_LON,
        max_lon=settings.SERVICE_AREA_MAX_LON,
    )


def build_report_store(settings: Settings) -> ReportStore:
    if settings.USE_MOCK_DB:
        logger.info("[STORE] USING IN-MEMORY REPORT STORE")
        return InMemoryReportStore(settings.MOCK_DB_PATH)

    from app.config.firebase import initialize_firestore
    return FirestoreReportStore(initialize_firestore(settings))


def build_context(
    settings: Settings,
    store: ReportStore = None,
    notifier: NotificationProvider = None,
    identity: IdentityProvider = None,
    **intake_overrides,
) -> AppContext:
    """
    Wire the intake service from settings.

    Any collaborator passed in replaces the one settings would build;
    intake_overrides go straight to ReportIntakeService (e.g. clock).
    """
    store = store or build_report_store(settings)
    notifier = notifier or get_notification_provider(settings)
    identity = identity or get_identity_provider(settings)

    intake = ReportIntakeService(
        store=store,
        duplicate_detector=DuplicateDetectionService(
            store,
            radius_meters=settings.DEDUP_RADIUS_METERS,
            window_minutes=settings.DEDUP_WINDOW_MINUTES,
        ),
        rate_limiter=SubmissionRateLimiter(
            max_submissions=settings.RATE_LIMIT_MAX_SUBMISSIONS,
            window_minutes=settings.RATE_LIMIT_WINDOW_MINUTES,
        ),
        notifier=notifier,
        service_area=service_area_from(settings),
        ip_hash_salt=settings.IP_HASH_SALT,
        default_page_size=settings.DEFAULT_PAGE_SIZE,
        max_page_size=settings.MAX_PAGE_SIZE,
        **intake_overrides,
    )
    return AppContext(store=store, intake=intake, identity=identity)
