# tests/test_notification_service.py
"""Unit tests for the SMS notification service (Twilio REST via httpx)."""

from datetime import datetime
from urllib.parse import parse_qs

import httpx
import pytest

from driverqueue.config import settings
from driverqueue.models.driver import DriverStatus
from driverqueue.schemas.driver import DriverOut
from driverqueue.services.notification_service import build_call_message, notify_driver_called, send_sms


def make_driver_out(**overrides):
    data = dict(
        id=7,
        name="Ana Souza",
        plate="ABC-1234",
        phone_number="+5511987654321",
        status=DriverStatus.CALLED,
        entry_time=datetime(2026, 3, 2, 8, 0),
        called_time=datetime(2026, 3, 2, 8, 15),
        call_attempts=1,
    )
    data.update(overrides)
    return DriverOut(**data)


@pytest.fixture
def twilio(monkeypatch):
    monkeypatch.setattr(settings, "SMS_ENABLED", True)
    monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(settings, "TWILIO_PHONE_NUMBER", "+15550001111")
    monkeypatch.setattr(settings, "CALL_MESSAGE_TEMPLATE", "Hi {name}, bring {plate} in")


class TestNotificationService:
    def test_message_uses_template(self, twilio):
        assert build_call_message(make_driver_out()) == "Hi Ana Souza, bring ABC-1234 in"

    @pytest.mark.asyncio
    async def test_posts_message_to_twilio(self, twilio):
        captured = {}

        def handler(request: httpx.Request):
            captured["url"] = str(request.url)
            captured["form"] = parse_qs(request.content.decode())
            captured["auth"] = request.headers.get("authorization")
            return httpx.Response(201, json={"sid": "SM42"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            ok = await notify_driver_called(make_driver_out(), client=client)

        assert ok is True
        assert captured["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        assert captured["form"]["To"] == ["+5511987654321"]
        assert captured["form"]["From"] == ["+15550001111"]
        assert captured["form"]["Body"] == ["Hi Ana Souza, bring ABC-1234 in"]
        assert captured["auth"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_not_configured_skips_send(self, monkeypatch):
        monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", None)
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(201, json={})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            ok = await send_sms("+5511987654321", "hello", client=client)

        assert ok is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_invalid_destination_skips_send(self, twilio):
        ok = await send_sms("11987654321", "hello")
        assert ok is False

    @pytest.mark.asyncio
    async def test_twilio_error_status_returns_false(self, twilio):
        def handler(request):
            return httpx.Response(400, json={"message": "bad number"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            ok = await notify_driver_called(make_driver_out(), client=client)

        assert ok is False

    @pytest.mark.asyncio
    async def test_accepted_with_non_json_body_still_succeeds(self, twilio):
        def handler(request):
            return httpx.Response(200, text="<html>proxy ok</html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            ok = await send_sms("+5511987654321", "hello", client=client)

        assert ok is True

    @pytest.mark.asyncio
    async def test_broken_template_returns_false_without_sending(self, twilio, monkeypatch):
        monkeypatch.setattr(settings, "CALL_MESSAGE_TEMPLATE", "Hi {name}, bay {bay}")
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(201, json={"sid": "SM1"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            ok = await notify_driver_called(make_driver_out(), client=client)

        assert ok is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_transport_error_is_swallowed(self, twilio):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            ok = await notify_driver_called(make_driver_out(), client=client)

        assert ok is False
