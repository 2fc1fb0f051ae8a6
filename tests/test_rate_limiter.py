from datetime import timedelta
import threading

import pytest
from conftest import START

from app.core.errors import RateLimited
from app.services.rate_limiter import SubmissionRateLimiter


def test_fifth_submission_allowed_sixth_rejected():
    limiter = SubmissionRateLimiter(max_submissions=5, window_minutes=60)
    for i in range(5):
        limiter.hit("client-a", START + timedelta(minutes=i))

    with pytest.raises(RateLimited) as exc_info:
        limiter.hit("client-a", START + timedelta(minutes=10))

    # Oldest hit at START frees up at START + 60 min
    assert exc_info.value.retry_after_seconds == 50 * 60


def test_window_rolls_forward():
    limiter = SubmissionRateLimiter(max_submissions=2, window_minutes=60)
    limiter.hit("client-a", START)
    limiter.hit("client-a", START + timedelta(minutes=30))

    assert limiter.hit("client-a", START + timedelta(minutes=60)) == 0


def test_identities_are_independent():
    limiter = SubmissionRateLimiter(max_submissions=1)
    limiter.hit("client-a", START)

    assert limiter.hit("client-b", START) == 0
    with pytest.raises(RateLimited):
        limiter.hit("client-a", START)


def test_unknown_identity_is_never_limited():
    limiter = SubmissionRateLimiter(max_submissions=1)
    for _ in range(3):
        assert limiter.hit(None, START) == 1


def test_rejected_hits_do_not_extend_the_window():
    limiter = SubmissionRateLimiter(max_submissions=1, window_minutes=60)
    limiter.hit("client-a", START)
    with pytest.raises(RateLimited):
        limiter.hit("client-a", START + timedelta(minutes=59))

    assert limiter.remaining("client-a", START + timedelta(minutes=60)) == 1


def test_expired_identities_are_forgotten():
    limiter = SubmissionRateLimiter(max_submissions=5, window_minutes=60)
    for i in range(1000):
        limiter.hit(f"client-{i}", START)

    limiter.hit("client-late", START + timedelta(hours=5))

    assert list(limiter._hits) == ["client-late"]
    assert limiter.remaining("client-0", START + timedelta(hours=5)) == 5


def test_concurrent_hits_from_one_identity_are_counted_exactly():
    limiter = SubmissionRateLimiter(max_submissions=5, window_minutes=60)
    barrier = threading.Barrier(20)
    accepted, rejected = [], []

    def submit():
        barrier.wait()
        try:
            accepted.append(limiter.hit("client-a", START))
        except RateLimited:
            rejected.append(1)

    threads = [threading.Thread(target=submit) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(accepted) == 5
    assert len(rejected) == 15
    assert sorted(accepted) == [0, 1, 2, 3, 4]
