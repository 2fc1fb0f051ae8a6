"""
Submission rate limiter - rolling window per client identity.

Every submission that passes validation counts against the quota,
whether it is accepted or rejected as a duplicate.
"""

from collections import deque
from datetime import datetime, timedelta
from typing import Deque, Dict, Optional
import logging
import math
import threading

from app.core.errors import RateLimited

logger = logging.getLogger(__name__)


class SubmissionRateLimiter:
    """
    Sliding-window counter keyed by hashed client identity.

    A single lock guards all identities, so concurrent hits from the same
    identity are counted exactly.
    """

    def __init__(self, max_submissions: int = 5, window_minutes: int = 60):
        self.max_submissions = max_submissions
        self.window = timedelta(minutes=window_minutes)
        self._hits: Dict[str, Deque[datetime]] = {}
        self._lock = threading.Lock()

    def _prune(self, identity: str, now: datetime) -> Deque[datetime]:
        """Drop hits older than the window; identities with no hits left are forgotten."""
        hits = self._hits.get(identity, deque())
        while hits and now - hits[0] >= self.window:
            hits.popleft()
        if not hits:
            self._hits.pop(identity, None)
        return hits

    def _sweep(self, now: datetime) -> None:
        for identity in list(self._hits):
            self._prune(identity, now)

    def hit(self, identity: Optional[str], now: datetime) -> int:
        """
        Record one submission attempt.

        Returns:
            Remaining submissions in the current window

        Raises:
            RateLimited: If the identity already used its quota
        """
        if not identity:
            return self.max_submissions

        with self._lock:
            self._sweep(now)
            hits = self._prune(identity, now)

            if len(hits) >= self.max_submissions:
                retry_after = self.window - (now - hits[0])
                logger.warning(
                    f"Rate limit exceeded for client {identity[:8]}... ({len(hits)} reports in window)"
                )
                raise RateLimited(self.max_submissions, max(1, math.ceil(retry_after.total_seconds())))

            hits.append(now)
            self._hits[identity] = hits
            return self.max_submissions - len(hits)

    def remaining(self, identity: Optional[str], now: datetime) -> int:
        if not identity:
            return self.max_submissions
        with self._lock:
            return self.max_submissions - len(self._prune(identity, now))
