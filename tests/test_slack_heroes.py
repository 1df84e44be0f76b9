import hashlib
import hmac
import json
import time
from datetime import date
from types import SimpleNamespace

import pytest
from fastapi import HTTPException, Request

import slack_heroes as heroes
from hero_models import DeliveryOutcome, DeliveryStatus
from nomination_store import NominationStoreError
from recognition_service import EmptyNominationError


pytestmark = pytest.mark.anyio


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def immediate_to_thread(monkeypatch):
    async def immediate(func, *args, **kwargs):
        return func(*args, **kwargs)

    monkeypatch.setattr(heroes, "to_thread", SimpleNamespace(run_sync=immediate))


class StubService:
    def __init__(self, *, allowed=True, nomination_error=None, reveal_status=DeliveryStatus.DELIVERED):
        self.allowed = allowed
        self.nomination_error = nomination_error
        self.reveal_status = reveal_status
        self.nominations = []
        self.reveals = []

    def handle_nomination(self, text, channel):
        self.nominations.append((text, channel))
        if self.nomination_error:
            raise self.nomination_error
        return [
            DeliveryOutcome(target="U1", status=DeliveryStatus.DELIVERED, message_id="Q1"),
            DeliveryOutcome(target="U2", status=DeliveryStatus.REJECTED, error="user_not_found"),
        ]

    def is_reveal_allowed(self):
        return self.allowed

    def available_from(self):
        return date(2026, 10, 26)

    def handle_reveal_request(self, channel):
        self.reveals.append(channel)
        return DeliveryOutcome(target=channel, status=self.reveal_status)


@pytest.fixture()
def service(monkeypatch):
    stub = StubService()
    monkeypatch.setattr(heroes, "get_recognition_service", lambda: stub)
    return stub


async def test_nomination_command_confirms_recorded_heroes(service):
    response = await heroes._route_slash_command("/hero", "<@U1> <@U2> great demo", "C1")

    assert service.nominations == [("<@U1> <@U2> great demo", "C1")]
    assert response["response_type"] == "ephemeral"
    assert "<@U1>, <@U2>" in response["text"]


async def test_nomination_without_heroes_returns_hint(service):
    service.nomination_error = EmptyNominationError("Mention at least one hero")

    response = await heroes._route_slash_command("/kudos", "thanks all", "C1")

    assert response["text"] == "Mention at least one hero"


async def test_nomination_store_failure_returns_error_text(service, caplog):
    service.nomination_error = NominationStoreError("database is locked")

    with caplog.at_level("ERROR"):
        response = await heroes._route_slash_command("/hero", "<@U1> thanks", "C1")

    assert response["text"] == heroes.NOMINATION_FAILED_TEXT
    assert "heroes_nomination_failed" in caplog.text


async def test_reveal_before_window_reports_opening_date(service):
    service.allowed = False

    response = await heroes._route_slash_command("/heroes-of-the-month", "", "C1")

    assert service.reveals == []
    assert "2026-10-26" in response["text"]


async def test_reveal_inside_window_posts_leaderboard(service):
    response = await heroes._route_slash_command("/Heroes-Of-The-Month", "", "C1")

    assert service.reveals == ["C1"]
    assert response["text"] == heroes.REVEAL_POSTED_TEXT


async def test_reveal_delivery_failure_is_reported(service):
    service.reveal_status = DeliveryStatus.REJECTED

    response = await heroes._route_slash_command("/heroes", "", "C1")

    assert response["text"] == heroes.REVEAL_FAILED_TEXT


async def test_unknown_command_is_rejected(service):
    with pytest.raises(HTTPException) as exc:
        await heroes._route_slash_command("/villain", "", "C1")

    assert exc.value.status_code == 400


def _signed_request(body: bytes, secret: str) -> Request:
    timestamp = str(int(time.time()))
    base_string = f"v0:{timestamp}:{body.decode('utf-8')}"
    signature = "v0=" + hmac.new(secret.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha256).hexdigest()
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/slack/heroes",
        "headers": [
            (b"x-slack-request-timestamp", timestamp.encode("utf-8")),
            (b"x-slack-signature", signature.encode("utf-8")),
        ],
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


async def test_signed_slash_command_endpoint(service, monkeypatch):
    monkeypatch.setattr(heroes, "SLACK_HEROES_SIGNING_SECRET", "test-secret")
    body = b"command=%2Fhero&text=%3C%40U1%3E+thanks&channel_id=C1&user_id=U9"

    response = await heroes.slack_heroes_command(_signed_request(body, "test-secret"))

    assert response.status_code == 200
    assert json.loads(response.body)["response_type"] == "ephemeral"
    assert service.nominations == [("<@U1> thanks", "C1")]


async def test_endpoint_requires_command_fields(service, monkeypatch):
    monkeypatch.setattr(heroes, "SLACK_HEROES_SIGNING_SECRET", "test-secret")
    body = b"command=%2Fhero&text=hi"

    with pytest.raises(HTTPException) as exc:
        await heroes.slack_heroes_command(_signed_request(body, "test-secret"))

    assert exc.value.status_code == 400


async def test_parse_slack_form_keeps_blank_values():
    form = heroes._parse_slack_form(b"command=%2Fheroes&text=&channel_id=C1")

    assert form == {"command": "/heroes", "text": "", "channel_id": "C1"}
