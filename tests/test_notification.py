import smtplib

import pytest
import requests

from app.core.settings import Settings
from app.models.report import Report
from app.services.notification import (
    Failed,
    LogNotificationProvider,
    Sent,
    SmtpNotificationProvider,
    WebhookNotificationProvider,
    build_city_message,
    get_notification_provider,
)
from conftest import START


def make_report(**overrides):
    data = {
        "id": "r-1",
        "location": {"latitude": 36.0, "longitude": -84.3},
        "address": "Oak Ridge Turnpike near Illinois Ave",
        "animal_type": "Deer",
        "size": "Large",
        "contact_email": "resident@example.com",
        "contact_phone": "+18655550100",
        "send_updates": True,
        "status": "pending",
        "created_at": START,
        "updated_at": START,
    }
    data.update(overrides)
    return Report(**data)


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code


class TestCityMessage:

    def test_subject_and_details(self):
        subject, body = build_city_message(make_report())

        assert subject == "New Roadkill Report: Deer (Large)"
        assert "Report ID: r-1" in body
        assert "Coordinates: 36.000000, -84.300000" in body
        assert "resident@example.com" in body

    def test_contact_details_hidden_without_opt_in(self):
        _, body = build_city_message(make_report(send_updates=False))

        assert "resident@example.com" not in body
        assert "+18655550100" not in body


class TestProviderResolution:

    def test_log_by_default(self):
        provider = get_notification_provider(Settings(NOTIFICATION_PROVIDER="log"))
        assert isinstance(provider, LogNotificationProvider)

    def test_unconfigured_smtp_falls_back_to_log(self):
        provider = get_notification_provider(Settings(NOTIFICATION_PROVIDER="smtp", SMTP_HOST=None))
        assert isinstance(provider, LogNotificationProvider)

    def test_configured_smtp(self):
        settings = Settings(
            NOTIFICATION_PROVIDER="smtp",
            SMTP_HOST="smtp.example.com",
            CITY_CONTACT_EMAIL="publicworks@oakridge.gov",
        )
        assert isinstance(get_notification_provider(settings), SmtpNotificationProvider)

    def test_configured_webhook(self):
        settings = Settings(NOTIFICATION_PROVIDER="webhook", CITY_WEBHOOK_URL="https://city.example.com/311")
        assert isinstance(get_notification_provider(settings), WebhookNotificationProvider)


class TestSmtpProvider:

    def provider(self):
        return SmtpNotificationProvider(
            host="smtp.example.com",
            port=587,
            to_address="publicworks@oakridge.gov",
            use_tls=False,
        )

    def test_connection_error_is_failed(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(smtplib, "SMTP", refuse)

        outcome = self.provider().send(make_report())

        assert isinstance(outcome, Failed)
        assert outcome.provider == "smtp"
        assert "refused" in outcome.reason

    def test_delivered(self, monkeypatch):
        delivered = []

        class FakeSMTP:
            def __init__(self, host, port, timeout=None):
                pass

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return False

            def send_message(self, message):
                delivered.append(message)

        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)

        outcome = self.provider().send(make_report())

        assert outcome == Sent("smtp")
        assert delivered[0]["To"] == "publicworks@oakridge.gov"
        assert delivered[0]["Reply-To"] == "resident@example.com"

    def test_unconfigured_is_failed(self):
        provider = SmtpNotificationProvider(host=None, port=587, to_address=None)
        assert isinstance(provider.send(make_report()), Failed)


class TestWebhookProvider:

    def test_2xx_is_sent(self, monkeypatch):
        calls = []

        def fake_post(url, json=None, headers=None, timeout=None):
            calls.append(json)
            return FakeResponse(202)

        monkeypatch.setattr(requests, "post", fake_post)

        outcome = WebhookNotificationProvider("https://city.example.com/311").send(make_report(send_updates=False))

        assert outcome == Sent("webhook")
        assert calls[0]["id"] == "r-1"
        assert "contactEmail" not in calls[0]

    def test_error_status_is_failed(self, monkeypatch):
        monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(500))

        outcome = WebhookNotificationProvider("https://city.example.com/311").send(make_report())

        assert outcome == Failed("webhook", "HTTP 500")

    def test_transport_error_is_failed(self, monkeypatch):
        def timeout(*args, **kwargs):
            raise requests.Timeout("timed out")

        monkeypatch.setattr(requests, "post", timeout)

        outcome = WebhookNotificationProvider("https://city.example.com/311").send(make_report())

        assert isinstance(outcome, Failed)


def test_log_provider_always_sends():
    assert LogNotificationProvider().send(make_report()) == Sent("log")
