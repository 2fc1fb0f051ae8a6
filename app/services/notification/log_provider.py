"""
Log Notification Provider - development stand-in for city delivery.

Writes the city message to the log instead of delivering it.
Always available and never fails.
"""

import logging

from .base import NotificationProvider, NotifyOutcome, Sent, build_city_message
from app.models.report import Report

logger = logging.getLogger(__name__)


class LogNotificationProvider(NotificationProvider):

    name = "log"

    def is_configured(self) -> bool:
        return True

    def send(self, report: Report) -> NotifyOutcome:
        subject, body = build_city_message(report)
        logger.info(f"[CITY NOTIFY - LOG ONLY] {subject}\n{body}")
        return Sent(self.name)
