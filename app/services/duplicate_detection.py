"""
Duplicate Detection Service - spatial + time-window deduplication.

DESIGN PRINCIPLES:
- A report within the radius AND within the window of an existing one is a duplicate
- Both bounds are closed: distance <= radius, elapsed <= window
- Local heuristic only; nothing further apart is ever merged
- Read-only: never writes to the store
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Union
import logging

from app.models.report import Location
from app.services.report_store import ReportStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DedupCandidate:
    location: Location
    submitted_at: datetime


@dataclass(frozen=True)
class Duplicate:
    report_id: str


@dataclass(frozen=True)
class Clear:
    pass


DedupVerdict = Union[Duplicate, Clear]


class DuplicateDetectionService:
    """
    Decides whether a new submission duplicates a recent nearby report.
    """

    def __init__(self, store: ReportStore, radius_meters: float = 100.0, window_minutes: int = 60):
        self.store = store
        self.radius_meters = radius_meters
        self.window = timedelta(minutes=window_minutes)

    def check(self, candidate: DedupCandidate) -> DedupVerdict:
        """
        Check a candidate against existing reports.

        Nearby reports come back most recent first (ties by id), so the
        verdict always names the most recent match.

        Returns:
            Duplicate(report_id) of the most recent match, or Clear()
        """
        lat = candidate.location.latitude
        lon = candidate.location.longitude

        nearby = self.store.find_nearby(
            lat,
            lon,
            self.radius_meters,
            since=candidate.submitted_at - self.window,
        )

        for report in nearby:
            elapsed = abs(candidate.submitted_at - report.created_at)
            if elapsed <= self.window:
                logger.warning(
                    f"Duplicate report detected at ({lat:.5f}, {lon:.5f}): matches report {report.id}"
                )
                return Duplicate(report.id)

        return Clear()
