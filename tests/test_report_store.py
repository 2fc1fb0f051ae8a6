from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import NotFoundError, StoreFailure
from app.models.report import Report, ReportStatus
from app.services.report_store import InMemoryReportStore
from app.utils.geo import BoundingBox
from conftest import START


def make_report(report_id, minutes=0, latitude=36.0, longitude=-84.3, **overrides):
    data = {
        "id": report_id,
        "location": {"latitude": latitude, "longitude": longitude},
        "address": "Emory Valley Rd",
        "animal_type": "Raccoon",
        "size": "Small",
        "status": "pending",
        "created_at": START + timedelta(minutes=minutes),
        "updated_at": START + timedelta(minutes=minutes),
    }
    data.update(overrides)
    return Report(**data)


def test_create_and_get_return_copies():
    store = InMemoryReportStore()
    store.create(make_report("a"))

    fetched = store.get("a")
    fetched.address = "changed"

    assert store.get("a").address == "Emory Valley Rd"


def test_create_rejects_existing_id():
    store = InMemoryReportStore()
    store.create(make_report("a"))
    with pytest.raises(StoreFailure):
        store.create(make_report("a"))


def test_update_missing_report():
    with pytest.raises(NotFoundError):
        InMemoryReportStore().update("missing", {"status": ReportStatus.RESOLVED})


def test_listing_is_most_recent_first_with_id_tiebreak():
    store = InMemoryReportStore()
    store.create(make_report("b", minutes=0))
    store.create(make_report("a", minutes=0))
    store.create(make_report("c", minutes=10))

    items, total = store.list_by_status("pending", offset=0, limit=10)

    assert total == 3
    assert [r.id for r in items] == ["c", "a", "b"]


def test_find_nearby_respects_radius_and_since():
    store = InMemoryReportStore()
    store.create(make_report("near", minutes=0))
    store.create(make_report("far", minutes=0, latitude=36.01))
    store.create(make_report("old", minutes=-120))

    found = store.find_nearby(36.0, -84.3, 100.0, since=START - timedelta(hours=1))

    assert [r.id for r in found] == ["near"]


def test_find_within_polygon():
    store = InMemoryReportStore()
    store.create(make_report("inside"))
    store.create(make_report("outside", latitude=36.2))

    box = BoundingBox(min_lat=35.95, max_lat=36.05, min_lon=-84.35, max_lon=-84.25)

    assert [r.id for r in store.find_within(box.as_polygon())] == ["inside"]


def test_counts():
    store = InMemoryReportStore()
    store.create(make_report("a", minutes=-60 * 24 * 30))
    store.create(make_report("b", status="resolved"))

    assert store.count() == 2
    assert store.count(since=START - timedelta(days=1)) == 1
    assert store.count_by_status() == {"pending": 1, "resolved": 1}


def test_snapshot_survives_restart(tmp_path):
    path = str(tmp_path / "reports.json")
    store = InMemoryReportStore(path)
    store.create(make_report("a", contact_email="resident@example.com"))
    store.update("a", {"status": ReportStatus.SUBMITTED, "submitted_to_city_at": START})

    reloaded = InMemoryReportStore(path).get("a")

    assert reloaded.status == ReportStatus.SUBMITTED
    assert reloaded.submitted_to_city_at == START
    assert reloaded.location.latitude == 36.0
    assert reloaded.contact_email == "resident@example.com"


def test_ping():
    assert InMemoryReportStore().ping()["connected"] is True


def test_failed_snapshot_write_keeps_nothing(tmp_path):
    store = InMemoryReportStore(str(tmp_path / "missing-dir" / "reports.json"))

    with pytest.raises(StoreFailure):
        store.create(make_report("a"))

    assert store.get("a") is None
    assert store.count() == 0


def test_failed_snapshot_write_keeps_previous_version(tmp_path, monkeypatch):
    store = InMemoryReportStore(str(tmp_path / "reports.json"))
    store.create(make_report("a"))

    def disk_full(reports):
        raise OSError("No space left on device")

    monkeypatch.setattr(store, "_save", disk_full)

    with pytest.raises(StoreFailure):
        store.update("a", {"status": ReportStatus.RESOLVED})

    assert store.get("a").status == ReportStatus.PENDING


def test_naive_timestamps_are_read_as_utc():
    store = InMemoryReportStore()
    store.create(make_report("naive", created_at=datetime(2026, 10, 15, 11, 59)))

    assert store.get("naive").created_at == datetime(2026, 10, 15, 11, 59, tzinfo=timezone.utc)
    assert [r.id for r in store.find_nearby(36.0, -84.3, 100.0, since=START - timedelta(hours=1))] == ["naive"]
