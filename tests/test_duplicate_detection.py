from datetime import timedelta

from conftest import START

from app.models.report import Location, Report
from app.services.duplicate_detection import Clear, DedupCandidate, Duplicate, DuplicateDetectionService
from app.utils.geo import haversine_distance


def make_report(store, report_id, lat=36.0, lon=-84.3, created_at=START):
    report = Report(
        id=report_id,
        location=Location(latitude=lat, longitude=lon),
        address="Oak Ridge Turnpike",
        animal_type="Deer",
        size="Medium",
        created_at=created_at,
    )
    return store.create(report)


def candidate(lat=36.0, lon=-84.3, at=START):
    return DedupCandidate(location=Location(latitude=lat, longitude=lon), submitted_at=at)


def test_empty_store_is_clear(store):
    guard = DuplicateDetectionService(store)
    assert guard.check(candidate()) == Clear()


def test_nearby_recent_report_is_duplicate(store):
    make_report(store, "a")
    guard = DuplicateDetectionService(store)

    verdict = guard.check(candidate(36.0001, -84.3001, START + timedelta(minutes=5)))

    assert verdict == Duplicate("a")


def test_distance_boundary_is_inclusive(store):
    make_report(store, "a")
    exact = haversine_distance(36.0009, -84.3, 36.0, -84.3)
    at = START + timedelta(minutes=1)

    assert DuplicateDetectionService(store, radius_meters=exact).check(candidate(36.0009, -84.3, at)) == Duplicate("a")
    assert DuplicateDetectionService(store, radius_meters=exact - 0.01).check(candidate(36.0009, -84.3, at)) == Clear()


def test_report_beyond_radius_is_clear(store):
    make_report(store, "a")
    guard = DuplicateDetectionService(store, radius_meters=100)

    # ~111 m north
    assert guard.check(candidate(36.001, -84.3, START)) == Clear()


def test_window_boundary_is_inclusive(store):
    make_report(store, "a")
    guard = DuplicateDetectionService(store, window_minutes=60)

    assert guard.check(candidate(at=START + timedelta(hours=1))) == Duplicate("a")
    assert guard.check(candidate(at=START + timedelta(hours=1, seconds=1))) == Clear()


def test_most_recent_match_wins(store):
    make_report(store, "older", created_at=START)
    make_report(store, "newer", lat=36.0002, created_at=START + timedelta(minutes=10))
    guard = DuplicateDetectionService(store)

    assert guard.check(candidate(at=START + timedelta(minutes=20))) == Duplicate("newer")


def test_ties_on_created_at_broken_by_id(store):
    make_report(store, "b", created_at=START)
    make_report(store, "a", lat=36.0002, created_at=START)
    guard = DuplicateDetectionService(store)

    assert guard.check(candidate(at=START + timedelta(minutes=1))) == Duplicate("a")


def test_check_does_not_write(store):
    make_report(store, "a")
    DuplicateDetectionService(store).check(candidate())
    assert store.count() == 1
