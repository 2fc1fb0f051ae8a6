import logging

from app.core.settings import Settings
from .base import NotificationProvider
from .log_provider import LogNotificationProvider
from .smtp_provider import SmtpNotificationProvider
from .webhook_provider import WebhookNotificationProvider

logger = logging.getLogger(__name__)


def get_notification_provider(settings: Settings) -> NotificationProvider:
    """
    Resolve the city notification provider based on settings.

    Rules:
    - NOTIFICATION_PROVIDER='smtp' needs SMTP_HOST and CITY_CONTACT_EMAIL.
    - NOTIFICATION_PROVIDER='webhook' needs CITY_WEBHOOK_URL.
    - Anything else, or a provider missing its configuration, falls back to
      the log provider so report intake keeps working.
    """
    provider_name = (settings.NOTIFICATION_PROVIDER or "log").lower()

    provider: NotificationProvider
    if provider_name == "smtp":
        provider = SmtpNotificationProvider(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            to_address=settings.CITY_CONTACT_EMAIL,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            from_address=settings.SMTP_FROM,
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
    elif provider_name == "webhook":
        provider = WebhookNotificationProvider(
            url=settings.CITY_WEBHOOK_URL,
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
    else:
        provider = LogNotificationProvider()

    if not provider.is_configured():
        logger.warning(
            f"Notification provider '{provider_name}' is not configured. Falling back to log provider."
        )
        provider = LogNotificationProvider()

    logger.info(f"Notification provider initialized: {provider.name}")
    return provider
