"""
City Notification Provider Base Interface.

Defines the contract for delivering a report to the city contact.

Contract:
- Input: a stored Report
- Output: NotifyOutcome (Sent | Failed(reason))
- MUST NEVER raise upstream exceptions; transport errors become Failed.
- One attempt per call. Retry policy, if any, belongs to the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple, Union
import logging

from app.models.report import Report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sent:
    provider: str


@dataclass(frozen=True)
class Failed:
    provider: str
    reason: str


NotifyOutcome = Union[Sent, Failed]


class NotificationProvider(ABC):
    """Abstract city notification provider."""

    name: str = "base"

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the provider has everything it needs to deliver."""
        raise NotImplementedError

    @abstractmethod
    def send(self, report: Report) -> NotifyOutcome:
        raise NotImplementedError


def build_city_message(report: Report) -> Tuple[str, str]:
    """
    Subject and plain-text body sent to the city contact.

    Reporter contact details are only included when the reporter opted in
    to updates.
    """
    lat = report.location.latitude
    lon = report.location.longitude
    subject = f"New Roadkill Report: {report.animal_type.value} ({report.size.value})"

    lines = [
        "A new roadkill report has been submitted.",
        "",
        f"Report ID: {report.id}",
        f"Animal: {report.animal_type.value}",
        f"Size: {report.size.value}",
        f"Address: {report.address}",
        f"Coordinates: {lat:.6f}, {lon:.6f}",
        f"Map: https://www.google.com/maps?q={lat:.6f},{lon:.6f}",
        f"Reported at: {report.created_at.isoformat()}",
    ]
    if report.description:
        lines += ["", "Description:", report.description]
    if report.photo_reference:
        lines.append(f"Photo: {report.photo_reference}")
    if report.send_updates and (report.contact_email or report.contact_phone):
        lines += [
            "",
            "Reporter contact (opted in to updates):",
            f"Email: {report.contact_email or 'N/A'}",
            f"Phone: {report.contact_phone or 'N/A'}",
        ]

    return subject, "\n".join(lines) + "\n"
