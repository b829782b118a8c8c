"""Tests for the email service and its provider adapters."""

import asyncio
import base64
import json

import httpx
import pytest

from zenvoyer.config import Settings
from zenvoyer.errors import EmailSendError, InvalidEmailAddressError
from zenvoyer.schemas.email import EmailMessage, SendResult
from zenvoyer.services.email import (
    EmailProvider,
    EmailService,
    MockEmailProvider,
    ResendEmailProvider,
    SendGridEmailProvider,
    build_provider,
    is_valid_email,
)


def _message(to="client@example.com", **overrides) -> EmailMessage:
    fields = {"to": to, "subject": "Invoice INV-001", "html": "<p>Your invoice</p>"}
    fields.update(overrides)
    return EmailMessage(**fields)


class FailingProvider(EmailProvider):
    name = "failing"

    async def send(self, message, sender):
        raise ConnectionError("upstream unavailable")


class SlowProvider(EmailProvider):
    name = "slow"

    async def send(self, message, sender):
        await asyncio.sleep(5)
        return SendResult(message_id="late", status="sent")


class RecordingProvider(EmailProvider):
    name = "recording"

    def __init__(self):
        self.sent = []

    async def send(self, message, sender):
        self.sent.append((sender, message))
        return SendResult(message_id=f"rec-{len(self.sent)}", status="sent")


class TrackingProvider(EmailProvider):
    """Records peak concurrency and answers in reverse completion order."""
    name = "tracking"

    def __init__(self):
        self.active = 0
        self.peak = 0

    async def send(self, message, sender):
        self.active += 1
        self.peak = max(self.peak, self.active)
        # later messages finish first
        await asyncio.sleep(0.01 * (10 - int(message.subject)))
        self.active -= 1
        return SendResult(message_id=f"id-{message.subject}", status="sent")


class TestAddressValidation:

    @pytest.mark.parametrize("address", ["a@b.co", "first.last+tag@example.com"])
    def test_valid(self, address):
        assert is_valid_email(address)

    @pytest.mark.parametrize("address", ["not-an-email", "a@b", "a b@c.com", "", "@example.com"])
    def test_invalid(self, address):
        assert not is_valid_email(address)


class TestEmailService:

    @pytest.mark.asyncio
    async def test_send_uses_default_sender(self):
        provider = RecordingProvider()
        service = EmailService(provider, "noreply@zenvoyer.com")

        result = await service.send_email(_message())

        assert result.status == "sent"
        assert provider.sent[0][0] == "noreply@zenvoyer.com"

    @pytest.mark.asyncio
    async def test_mock_keeps_no_message_history(self):
        provider = MockEmailProvider()
        service = EmailService(provider, "noreply@zenvoyer.com")

        for _ in range(5):
            result = await service.send_email(_message(attachments=[{"filename": "a.pdf", "content": b"PDF"}]))
            assert result.message_id.startswith("mock-")

        assert vars(provider) == {}

    @pytest.mark.asyncio
    async def test_message_without_recipients_rejected(self):
        provider = RecordingProvider()
        service = EmailService(provider, "noreply@zenvoyer.com")

        with pytest.raises(InvalidEmailAddressError) as exc:
            await service.send_email(_message(to=[]))

        assert exc.value.role == "recipient"
        assert provider.sent == []

    @pytest.mark.asyncio
    async def test_explicit_sender_used(self):
        provider = RecordingProvider()
        service = EmailService(provider, "noreply@zenvoyer.com")
        await service.send_email(_message(**{"from": "billing@acme.io"}))
        assert provider.sent[0][0] == "billing@acme.io"

    @pytest.mark.asyncio
    async def test_invalid_recipient_rejected_before_delivery(self):
        provider = RecordingProvider()
        service = EmailService(provider, "noreply@zenvoyer.com")

        with pytest.raises(InvalidEmailAddressError) as exc:
            await service.send_email(_message(to="not-an-email"))

        assert str(exc.value) == "Invalid recipient email: not-an-email"
        assert provider.sent == []

    @pytest.mark.asyncio
    async def test_invalid_sender_rejected(self):
        service = EmailService(MockEmailProvider(), "broken-sender")
        with pytest.raises(InvalidEmailAddressError) as exc:
            await service.send_email(_message())
        assert exc.value.role == "sender"

    @pytest.mark.asyncio
    async def test_invalid_cc_and_list_recipients_rejected(self):
        service = EmailService(MockEmailProvider(), "noreply@zenvoyer.com")
        with pytest.raises(InvalidEmailAddressError):
            await service.send_email(_message(to=["ok@example.com", "bad"]))
        with pytest.raises(InvalidEmailAddressError):
            await service.send_email(_message(cc=["nope"]))

    @pytest.mark.asyncio
    async def test_provider_failure_wrapped(self):
        service = EmailService(FailingProvider(), "noreply@zenvoyer.com")

        with pytest.raises(EmailSendError) as exc:
            await service.send_email(_message())

        assert "Failed to send email: upstream unavailable" in str(exc.value)
        assert isinstance(exc.value.cause, ConnectionError)

    @pytest.mark.asyncio
    async def test_timeout_wrapped(self):
        service = EmailService(SlowProvider(), "noreply@zenvoyer.com", send_timeout=0.05)
        with pytest.raises(EmailSendError) as exc:
            await service.send_email(_message())
        assert "timed out" in str(exc.value)

    @pytest.mark.asyncio
    async def test_attachment_is_pdf(self):
        provider = RecordingProvider()
        service = EmailService(provider, "noreply@zenvoyer.com")

        await service.send_email_with_attachment(_message(), b"%PDF-1.4", "invoice-INV-001.pdf")

        attachment = provider.sent[0][1].attachments[0]
        assert attachment.filename == "invoice-INV-001.pdf"
        assert attachment.content_type == "application/pdf"
        assert attachment.content == b"%PDF-1.4"

    @pytest.mark.asyncio
    async def test_batch_preserves_order(self):
        """Three valid messages come back as three results in input order."""
        service = EmailService(MockEmailProvider(), "noreply@zenvoyer.com")
        messages = [_message(to=f"c{i}@example.com", subject=str(i)) for i in range(3)]

        results = await service.send_batch(messages)

        assert len(results) == 3
        assert all(r.message_id for r in results)
        assert len({r.message_id for r in results}) == 3

    @pytest.mark.asyncio
    async def test_batch_bounded_concurrency_and_order(self):
        provider = TrackingProvider()
        service = EmailService(provider, "noreply@zenvoyer.com", batch_concurrency=2)
        messages = [_message(subject=str(i)) for i in range(6)]

        results = await service.send_batch(messages)

        assert [r.message_id for r in results] == [f"id-{i}" for i in range(6)]
        assert provider.peak <= 2

    @pytest.mark.asyncio
    async def test_batch_surfaces_first_failure(self):
        service = EmailService(MockEmailProvider(), "noreply@zenvoyer.com")
        with pytest.raises(InvalidEmailAddressError):
            await service.send_batch([_message(), _message(to="bad"), _message()])

    def test_provider_status(self):
        service = EmailService(MockEmailProvider(), "noreply@zenvoyer.com")
        status = service.get_provider_status()
        assert status.model_dump(by_alias=True) == {
            "provider": "mock",
            "configured": True,
            "fromEmail": "noreply@zenvoyer.com",
        }


class TestBuildProvider:

    def test_selects_by_setting(self):
        assert isinstance(build_provider(Settings(email_provider="sendgrid", sendgrid_api_key="k")), SendGridEmailProvider)
        assert isinstance(build_provider(Settings(email_provider="resend")), ResendEmailProvider)
        assert isinstance(build_provider(Settings(email_provider="mock")), MockEmailProvider)

    def test_unknown_falls_back_to_mock(self):
        assert isinstance(build_provider(Settings(email_provider="carrier-pigeon")), MockEmailProvider)

    def test_unconfigured_provider_reported(self):
        service = EmailService.from_settings(Settings(email_provider="resend", resend_api_key=""))
        assert service.get_provider_status().configured is False


class TestHttpProviders:

    @pytest.mark.asyncio
    async def test_sendgrid_payload_and_message_id(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(202, headers={"X-Message-Id": "sg-123"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = SendGridEmailProvider("sg-key", client=client)
            service = EmailService(provider, "noreply@zenvoyer.com")
            result = await service.send_email_with_attachment(_message(cc=["cc@example.com"]), b"PDF", "a.pdf")

        assert result.message_id == "sg-123"
        assert captured["url"] == "https://api.sendgrid.com/v3/mail/send"
        assert captured["auth"] == "Bearer sg-key"
        body = captured["body"]
        assert body["from"] == {"email": "noreply@zenvoyer.com"}
        assert body["personalizations"][0]["to"] == [{"email": "client@example.com"}]
        assert body["personalizations"][0]["cc"] == [{"email": "cc@example.com"}]
        assert body["attachments"][0]["type"] == "application/pdf"
        assert base64.b64decode(body["attachments"][0]["content"]) == b"PDF"

    @pytest.mark.asyncio
    async def test_resend_message_id(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body["to"] == ["client@example.com"]
            return httpx.Response(200, json={"id": "re-456"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            service = EmailService(ResendEmailProvider("re-key", client=client), "noreply@zenvoyer.com")
            result = await service.send_email(_message())

        assert result.message_id == "re-456"
        assert result.status == "sent"

    @pytest.mark.asyncio
    async def test_http_error_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "bad key"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            service = EmailService(ResendEmailProvider("re-key", client=client), "noreply@zenvoyer.com")
            with pytest.raises(EmailSendError) as exc:
                await service.send_email(_message())

        assert "401" in str(exc.value)

    @pytest.mark.asyncio
    async def test_missing_api_key_wrapped(self):
        service = EmailService(SendGridEmailProvider(""), "noreply@zenvoyer.com")
        with pytest.raises(EmailSendError):
            await service.send_email(_message())


class TestNotificationRoutes:

    def test_send(self, client, auth_headers):
        response = client.post(
            "/api/notifications/email/send",
            json={"to": "client@example.com", "subject": "Hi", "html": "<p>Hi</p>"},
            headers=auth_headers(),
        )
        assert response.status_code == 200
        assert response.json()["messageId"].startswith("mock-")

    def test_send_invalid_address(self, client, auth_headers):
        response = client.post(
            "/api/notifications/email/send",
            json={"to": "not-an-email", "subject": "Hi", "html": "<p>Hi</p>"},
            headers=auth_headers(),
        )
        assert response.status_code == 400
        assert "not-an-email" in response.json()["detail"]

    def test_send_without_recipients(self, client, auth_headers):
        response = client.post(
            "/api/notifications/email/send",
            json={"to": [], "subject": "Hi", "html": "<p>Hi</p>"},
            headers=auth_headers(),
        )
        assert response.status_code == 400

    def test_batch(self, client, auth_headers):
        messages = [{"to": f"c{i}@example.com", "subject": str(i), "html": "x"} for i in range(3)]
        response = client.post("/api/notifications/email/batch", json={"messages": messages}, headers=auth_headers())
        assert response.status_code == 200
        assert len(response.json()) == 3

    def test_status(self, client, auth_headers):
        response = client.get("/api/notifications/email/status", headers=auth_headers())
        assert response.json() == {"provider": "mock", "configured": True, "fromEmail": "noreply@zenvoyer.com"}

    def test_requires_auth(self, client):
        assert client.get("/api/notifications/email/status").status_code == 401
