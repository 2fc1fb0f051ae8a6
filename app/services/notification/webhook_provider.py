import logging
from typing import Optional

import requests

from .base import Failed, NotificationProvider, NotifyOutcome, Sent
from app.models.report import Report

logger = logging.getLogger(__name__)


class WebhookNotificationProvider(NotificationProvider):
    """
    POSTs the report JSON to a city intake endpoint (311 bridge, ticketing system).

    - Any 2xx response counts as delivered.
    - Never raises upstream exceptions; returns Failed on non-2xx or transport errors.
    """

    name = "webhook"

    def __init__(self, url: Optional[str], timeout: float = 15.0, user_agent: str = "roadkill-reporter/1.0"):
        self.url = url
        self.timeout = timeout
        self.user_agent = user_agent

    def is_configured(self) -> bool:
        return bool(self.url)

    def send(self, report: Report) -> NotifyOutcome:
        if not self.is_configured():
            return Failed(self.name, "City webhook URL not configured")

        payload = report.to_public()
        if not report.send_updates:
            payload.pop("contactEmail", None)
            payload.pop("contactPhone", None)

        try:
            resp = requests.post(
                self.url,
                json=payload,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"City webhook error for report {report.id}: {e}")
            return Failed(self.name, str(e))

        if not 200 <= resp.status_code < 300:
            logger.warning(f"City webhook rejected report {report.id} with status {resp.status_code}")
            return Failed(self.name, f"HTTP {resp.status_code}")

        logger.info(f"City notification posted for report {report.id}")
        return Sent(self.name)
