import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from .base import Failed, NotificationProvider, NotifyOutcome, Sent, build_city_message
from app.models.report import Report

logger = logging.getLogger(__name__)


class SmtpNotificationProvider(NotificationProvider):
    """
    Emails the report to the city contact over SMTP.

    - STARTTLS when use_tls is set, login only when credentials are given.
    - Never raises upstream exceptions; returns Failed on any SMTP/socket error.
    """

    name = "smtp"

    def __init__(
        self,
        host: Optional[str],
        port: int,
        to_address: Optional[str],
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        from_address: Optional[str] = None,
        timeout: float = 15.0,
    ):
        self.host = host
        self.port = port
        self.to_address = to_address
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = from_address or username or to_address
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.host and self.to_address)

    def _build_message(self, report: Report) -> EmailMessage:
        subject, body = build_city_message(report)
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.from_address
        message["To"] = self.to_address
        if report.send_updates and report.contact_email:
            message["Reply-To"] = report.contact_email
        message.set_content(body)
        return message

    def send(self, report: Report) -> NotifyOutcome:
        if not self.is_configured():
            return Failed(self.name, "SMTP host or city contact not configured")

        message = self._build_message(report)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"SMTP delivery failed for report {report.id}: {e}")
            return Failed(self.name, str(e) or e.__class__.__name__)

        logger.info(f"City notification emailed for report {report.id} to {self.to_address}")
        return Sent(self.name)
