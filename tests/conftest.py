from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.context import build_context
from app.core.settings import Settings
from app.main import create_app
from app.services.identity import StaticTokenIdentityProvider
from app.services.notification import Failed, NotificationProvider, Sent
from app.services.report_store import InMemoryReportStore

START = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)

USER_TOKEN = "user-token"
OTHER_USER_TOKEN = "other-token"
OPERATOR_TOKEN = "op-token"


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingNotifier(NotificationProvider):
    """Records every report it is asked to send; fails while `failing` is set."""

    name = "recording"

    def __init__(self):
        self.sent = []
        self.failing = False

    def is_configured(self) -> bool:
        return True

    def send(self, report):
        self.sent.append(report)
        if self.failing:
            return Failed(self.name, "smtp unavailable")
        return Sent(self.name)


def report_payload(latitude=36.0, longitude=-84.3, **overrides):
    payload = {
        "location": {"latitude": latitude, "longitude": longitude},
        "address": "Oak Ridge Turnpike near Illinois Ave",
        "animalType": "Deer",
        "size": "Medium",
        "description": "Right lane, eastbound",
        "contactEmail": "resident@example.com",
        "sendUpdates": True,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings():
    return Settings(USE_MOCK_DB=True, MOCK_DB_PATH=None, AUTH_PROVIDER="static")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store():
    return InMemoryReportStore()


@pytest.fixture
def identity():
    return StaticTokenIdentityProvider.from_spec(
        f"{USER_TOKEN}=user-1:resident@example.com,"
        f"{OTHER_USER_TOKEN}=user-2,"
        f"{OPERATOR_TOKEN}=op-1:operator:ops@oakridge.gov"
    )


@pytest.fixture
def context(settings, store, notifier, identity, clock):
    return build_context(settings, store=store, notifier=notifier, identity=identity, clock=clock)


@pytest.fixture
def intake(context):
    return context.intake


@pytest.fixture
def client(context):
    return TestClient(create_app(context))


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
