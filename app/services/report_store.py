"""
Report Store - persistence and geo queries for report records.

The store exclusively owns the canonical Report record. Two backends:
- FirestoreReportStore: production, one document per report in "reports"
- InMemoryReportStore: local development and tests (USE_MOCK_DB=true),
  optionally snapshotted to a JSON file

Geo queries (radius, polygon) are answered from the latitude/longitude
fields with the helpers in app.utils.geo.
"""

from abc import ABC, abstractmethod
from collections import Counter
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
import json
import logging
import os
import threading

from app.core.errors import NotFoundError, ReportError, StoreFailure
from app.models.report import Report
from app.utils.geo import Polygon, haversine_distance, point_in_polygon
from app.utils.firestore_helpers import where_filter

logger = logging.getLogger(__name__)


def most_recent_first(reports: Iterable[Report]) -> List[Report]:
    """Order by created_at descending; ties broken by id ascending."""
    ordered = sorted(reports, key=lambda r: r.id)
    ordered.sort(key=lambda r: r.created_at, reverse=True)
    return ordered


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Turn backend exceptions into StoreFailure; domain errors pass through."""
    try:
        yield
    except ReportError:
        raise
    except Exception as e:
        logger.error(f"Report store {operation} failed: {e}", exc_info=True)
        raise StoreFailure(f"Report store {operation} failed") from e


class ReportStore(ABC):
    """
    Storage contract used by the intake service and duplicate guard.
    """

    @abstractmethod
    def create(self, report: Report) -> Report:
        raise NotImplementedError

    @abstractmethod
    def get(self, report_id: str) -> Optional[Report]:
        raise NotImplementedError

    @abstractmethod
    def update(self, report_id: str, fields: Dict[str, Any]) -> Report:
        """Apply field changes and refresh updated_at. Raises NotFoundError."""
        raise NotImplementedError

    @abstractmethod
    def list_by_owner(self, owner_id: str) -> List[Report]:
        raise NotImplementedError

    @abstractmethod
    def list_by_status(self, status: str, offset: int, limit: int) -> Tuple[List[Report], int]:
        """Returns one page (most recent first) and the total count for the status."""
        raise NotImplementedError

    @abstractmethod
    def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        since: Optional[datetime] = None,
    ) -> List[Report]:
        """Reports with distance <= radius_meters (and created_at >= since), most recent first."""
        raise NotImplementedError

    @abstractmethod
    def find_within(self, polygon: Polygon) -> List[Report]:
        raise NotImplementedError

    @abstractmethod
    def count(self, since: Optional[datetime] = None) -> int:
        raise NotImplementedError

    @abstractmethod
    def count_by_status(self) -> Dict[str, int]:
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> Dict[str, Any]:
        """Lightweight connectivity check for /health/db."""
        raise NotImplementedError

    @abstractmethod
    @contextmanager
    def serialized(self) -> Iterator[None]:
        """Consistency boundary for check-then-insert sequences."""
        raise NotImplementedError

    def close(self) -> None:
        pass


class InMemoryReportStore(ReportStore):
    """
    Dict-backed store guarded by a re-entrant lock.

    When snapshot_path is set, records are loaded from it on start and the
    whole collection is rewritten after each mutation.
    """

    def __init__(self, snapshot_path: Optional[str] = None):
        self._lock = threading.RLock()
        self._reports: Dict[str, Report] = {}
        self.snapshot_path = snapshot_path
        if snapshot_path and os.path.exists(snapshot_path):
            self._load()

    def _load(self) -> None:
        with open(self.snapshot_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        for report_id, doc in data.get("reports", {}).items():
            self._reports[report_id] = Report.from_document(report_id, doc)
        logger.info(f"[MOCK DB] Loaded {len(self._reports)} report(s) from {self.snapshot_path}")

    def _save(self, reports: Dict[str, Report]) -> None:
        if not self.snapshot_path:
            return
        docs = {report_id: report.to_document(mode="json") for report_id, report in reports.items()}
        tmp_path = f"{self.snapshot_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({"reports": docs}, f, indent=2)
        os.replace(tmp_path, self.snapshot_path)

    @contextmanager
    def serialized(self) -> Iterator[None]:
        with self._lock:
            yield

    def create(self, report: Report) -> Report:
        with self._lock, _store_errors("create"):
            if report.id in self._reports:
                raise StoreFailure(f"Report {report.id} already exists")
            candidate = {**self._reports, report.id: report.model_copy(deep=True)}
            self._save(candidate)
            self._reports = candidate
        return report.model_copy(deep=True)

    def get(self, report_id: str) -> Optional[Report]:
        with self._lock:
            report = self._reports.get(report_id)
            return report.model_copy(deep=True) if report else None

    def update(self, report_id: str, fields: Dict[str, Any]) -> Report:
        with self._lock, _store_errors("update"):
            current = self._reports.get(report_id)
            if current is None:
                raise NotFoundError(report_id)
            updated = Report.model_validate(
                {**current.model_dump(), **fields, "updated_at": datetime.now(timezone.utc)}
            )
            candidate = {**self._reports, report_id: updated}
            self._save(candidate)
            self._reports = candidate
            return updated.model_copy(deep=True)

    def _snapshot(self) -> List[Report]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._reports.values()]

    def list_by_owner(self, owner_id: str) -> List[Report]:
        return most_recent_first(r for r in self._snapshot() if r.owner_id == owner_id)

    def list_by_status(self, status: str, offset: int, limit: int) -> Tuple[List[Report], int]:
        matching = most_recent_first(r for r in self._snapshot() if r.status.value == status)
        return matching[offset:offset + limit], len(matching)

    def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        since: Optional[datetime] = None,
    ) -> List[Report]:
        nearby = [
            r for r in self._snapshot()
            if (since is None or r.created_at >= since)
            and haversine_distance(latitude, longitude, r.location.latitude, r.location.longitude) <= radius_meters
        ]
        return most_recent_first(nearby)

    def find_within(self, polygon: Polygon) -> List[Report]:
        return most_recent_first(
            r for r in self._snapshot()
            if point_in_polygon(r.location.latitude, r.location.longitude, polygon)
        )

    def count(self, since: Optional[datetime] = None) -> int:
        return sum(1 for r in self._snapshot() if since is None or r.created_at >= since)

    def count_by_status(self) -> Dict[str, int]:
        return dict(Counter(r.status.value for r in self._snapshot()))

    def ping(self) -> Dict[str, Any]:
        return {"database": "in-memory", "connected": True, "reports_count": self.count()}


class FirestoreReportStore(ReportStore):
    """
    Firestore-backed store. Documents live in the "reports" collection keyed by report id.

    Firestore has no native radius query: find_nearby narrows by created_at
    when a time bound is given and filters by distance in Python.
    serialized() is a process-wide lock, so check-then-insert is exclusive
    within one API process only.
    """

    COLLECTION = "reports"

    def __init__(self, db):
        self.db = db
        self._lock = threading.RLock()

    @property
    def _collection(self):
        return self.db.collection(self.COLLECTION)

    def _to_reports(self, docs) -> List[Report]:
        return [Report.from_document(doc.id, doc.to_dict()) for doc in docs]

    @contextmanager
    def serialized(self) -> Iterator[None]:
        with self._lock:
            yield

    def create(self, report: Report) -> Report:
        with _store_errors("create"):
            self._collection.document(report.id).set(report.to_document())
        logger.info(f"Report saved to Firestore: {report.id}")
        return report

    def get(self, report_id: str) -> Optional[Report]:
        with _store_errors("get"):
            doc = self._collection.document(report_id).get()
            if not doc.exists:
                return None
            return Report.from_document(doc.id, doc.to_dict())

    def update(self, report_id: str, fields: Dict[str, Any]) -> Report:
        with _store_errors("update"):
            doc_ref = self._collection.document(report_id)
            if not doc_ref.get().exists:
                raise NotFoundError(report_id)
            doc_ref.update({**fields, "updated_at": datetime.now(timezone.utc)})
            updated = doc_ref.get()
            return Report.from_document(updated.id, updated.to_dict())

    def list_by_owner(self, owner_id: str) -> List[Report]:
        with _store_errors("list_by_owner"):
            docs = where_filter(self._collection, "owner_id", "==", owner_id).stream()
            return most_recent_first(self._to_reports(docs))

    def list_by_status(self, status: str, offset: int, limit: int) -> Tuple[List[Report], int]:
        with _store_errors("list_by_status"):
            docs = where_filter(self._collection, "status", "==", status).stream()
            matching = most_recent_first(self._to_reports(docs))
        return matching[offset:offset + limit], len(matching)

    def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        since: Optional[datetime] = None,
    ) -> List[Report]:
        with _store_errors("find_nearby"):
            query = self._collection
            if since is not None:
                query = where_filter(query, "created_at", ">=", since)
            candidates = self._to_reports(query.stream())
        nearby = [
            r for r in candidates
            if haversine_distance(latitude, longitude, r.location.latitude, r.location.longitude) <= radius_meters
        ]
        return most_recent_first(nearby)

    def find_within(self, polygon: Polygon) -> List[Report]:
        lons = [p[0] for p in polygon]
        lats = [p[1] for p in polygon]
        with _store_errors("find_within"):
            # Range filter on one field only; longitude is checked in Python.
            query = where_filter(self._collection, "latitude", ">=", min(lats))
            query = where_filter(query, "latitude", "<=", max(lats))
            candidates = self._to_reports(query.stream())
        return most_recent_first(
            r for r in candidates
            if min(lons) <= r.location.longitude <= max(lons)
            and point_in_polygon(r.location.latitude, r.location.longitude, polygon)
        )

    def count(self, since: Optional[datetime] = None) -> int:
        with _store_errors("count"):
            query = self._collection
            if since is not None:
                query = where_filter(query, "created_at", ">=", since)
            return sum(1 for _ in query.select([]).stream())

    def count_by_status(self) -> Dict[str, int]:
        with _store_errors("count_by_status"):
            docs = self._collection.select(["status"]).stream()
            return dict(Counter(doc.to_dict().get("status") for doc in docs))

    def ping(self) -> Dict[str, Any]:
        with _store_errors("ping"):
            list(self._collection.limit(1).stream())
        return {"database": "firestore", "connected": True}
