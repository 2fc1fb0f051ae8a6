"""
City notification gateway.

Delivers a stored report to the city contact and reports the outcome as a
value (Sent | Failed) instead of raising.
"""

from app.services.notification.base import (
    Failed,
    NotificationProvider,
    NotifyOutcome,
    Sent,
    build_city_message,
)
from app.services.notification.log_provider import LogNotificationProvider
from app.services.notification.resolver import get_notification_provider
from app.services.notification.smtp_provider import SmtpNotificationProvider
from app.services.notification.webhook_provider import WebhookNotificationProvider

__all__ = [
    "Failed",
    "NotificationProvider",
    "NotifyOutcome",
    "Sent",
    "build_city_message",
    "LogNotificationProvider",
    "SmtpNotificationProvider",
    "WebhookNotificationProvider",
    "get_notification_provider",
]
