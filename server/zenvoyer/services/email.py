"""Outbound email with interchangeable delivery providers.

A provider is picked once at startup from ``EMAIL_PROVIDER``:

    mock      logs the message, delivers nothing (development default)
    sendgrid  SendGrid v3 mail/send API
    resend    Resend emails API

``EmailService`` validates addresses before any provider is called and
re-wraps every provider failure in ``EmailSendError``.
"""

import re
import time
import uuid
import base64
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from ..config import Settings
from ..errors import EmailSendError, InvalidEmailAddressError
from ..schemas.email import EmailAttachment, EmailMessage, ProviderStatus, SendResult

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PDF_CONTENT_TYPE = "application/pdf"


def is_valid_email(address: str) -> bool:
    return bool(address) and EMAIL_PATTERN.match(address) is not None


def _message_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class EmailProvider(ABC):
    """Uniform sending capability implemented by each backend."""

    name: str = ""

    @property
    def configured(self) -> bool:
        return True

    @abstractmethod
    async def send(self, message: EmailMessage, sender: str) -> SendResult:
        """Deliver message from sender; raise on any failure."""


class MockEmailProvider(EmailProvider):
    """Development provider: logs instead of delivering."""

    name = "mock"

    async def send(self, message: EmailMessage, sender: str) -> SendResult:
        logger.info(
            f"[MOCK EMAIL] From: {sender} To: {', '.join(message.recipients)} "
            f"Subject: {message.subject}"
        )
        if message.cc:
            logger.info(f"[MOCK EMAIL] CC: {', '.join(message.cc)}")
        if message.bcc:
            logger.info(f"[MOCK EMAIL] BCC: {', '.join(message.bcc)}")
        logger.debug(f"[MOCK EMAIL] Content preview: {message.html[:100]}...")

        return SendResult(message_id=_message_id("mock"), status="sent")


class _HttpEmailProvider(EmailProvider):
    """Shared plumbing for providers with a JSON HTTP API."""

    url: str = ""

    def __init__(self, api_key: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, payload: dict) -> httpx.Response:
        if not self.api_key:
            raise RuntimeError(f"{self.name} API key not configured")

        if self._client is not None:
            response = await self._client.post(self.url, json=payload, headers=self._headers(), timeout=self.timeout)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(self.url, json=payload, headers=self._headers(), timeout=self.timeout)

        if response.status_code >= 400:
            raise RuntimeError(f"{self.name} responded {response.status_code}: {response.text[:200]}")
        return response

    @staticmethod
    def _encode(attachment: EmailAttachment) -> str:
        return base64.b64encode(attachment.content).decode("ascii")


class SendGridEmailProvider(_HttpEmailProvider):
    name = "sendgrid"
    url = "https://api.sendgrid.com/v3/mail/send"

    def build_payload(self, message: EmailMessage, sender: str) -> dict:
        personalization = {"to": [{"email": addr} for addr in message.recipients]}
        if message.cc:
            personalization["cc"] = [{"email": addr} for addr in message.cc]
        if message.bcc:
            personalization["bcc"] = [{"email": addr} for addr in message.bcc]

        content = []
        if message.text:
            content.append({"type": "text/plain", "value": message.text})
        content.append({"type": "text/html", "value": message.html})

        payload = {
            "personalizations": [personalization],
            "from": {"email": sender},
            "subject": message.subject,
            "content": content,
        }
        if message.attachments:
            payload["attachments"] = [
                {
                    "content": self._encode(att),
                    "filename": att.filename,
                    "type": att.content_type,
                    "disposition": "attachment",
                }
                for att in message.attachments
            ]
        return payload

    async def send(self, message: EmailMessage, sender: str) -> SendResult:
        response = await self._post(self.build_payload(message, sender))
        message_id = response.headers.get("x-message-id") or _message_id("sendgrid")
        return SendResult(message_id=message_id, status="sent")


class ResendEmailProvider(_HttpEmailProvider):
    name = "resend"
    url = "https://api.resend.com/emails"

    def build_payload(self, message: EmailMessage, sender: str) -> dict:
        payload = {
            "from": sender,
            "to": message.recipients,
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            payload["text"] = message.text
        if message.cc:
            payload["cc"] = message.cc
        if message.bcc:
            payload["bcc"] = message.bcc
        if message.attachments:
            payload["attachments"] = [
                {"filename": att.filename, "content": self._encode(att)}
                for att in message.attachments
            ]
        return payload

    async def send(self, message: EmailMessage, sender: str) -> SendResult:
        response = await self._post(self.build_payload(message, sender))
        message_id = response.json().get("id")
        if not message_id:
            return SendResult(message_id=_message_id("resend"), status="failed")
        return SendResult(message_id=message_id, status="sent")


def build_provider(settings: Settings, client: Optional[httpx.AsyncClient] = None) -> EmailProvider:
    """Pick the configured provider; unknown names fall back to mock."""
    provider = settings.email_provider.lower()
    if provider == "sendgrid":
        return SendGridEmailProvider(settings.sendgrid_api_key, settings.email_send_timeout, client)
    if provider == "resend":
        return ResendEmailProvider(settings.resend_api_key, settings.email_send_timeout, client)
    if provider != "mock":
        logger.warning(f"Unknown EMAIL_PROVIDER '{settings.email_provider}', using mock")
    return MockEmailProvider()


class EmailService:
    """Validate, send, and batch-send messages through one provider."""

    def __init__(
        self,
        provider: EmailProvider,
        from_email: str,
        send_timeout: float = 10.0,
        batch_concurrency: int = 5,
    ):
        self.provider = provider
        self.from_email = from_email
        self.send_timeout = send_timeout
        self.batch_concurrency = max(1, batch_concurrency)

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> "EmailService":
        return cls(
            provider=build_provider(settings, client),
            from_email=settings.email_from,
            send_timeout=settings.email_send_timeout,
            batch_concurrency=settings.email_batch_concurrency,
        )

    def validate_addresses(self, message: EmailMessage, sender: str) -> None:
        if not is_valid_email(sender):
            raise InvalidEmailAddressError(sender, "sender")
        if not message.recipients:
            raise InvalidEmailAddressError("", "recipient")
        for role, addresses in (
            ("recipient", message.recipients),
            ("cc", message.cc or []),
            ("bcc", message.bcc or []),
        ):
            for address in addresses:
                if not is_valid_email(address):
                    raise InvalidEmailAddressError(address, role)

    async def send_email(self, message: EmailMessage) -> SendResult:
        """Send one message; bad addresses fail before the provider is called."""
        sender = message.from_ or self.from_email
        self.validate_addresses(message, sender)

        try:
            result = await asyncio.wait_for(self.provider.send(message, sender), timeout=self.send_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Email send via {self.provider.name} timed out after {self.send_timeout}s")
            raise EmailSendError(f"Failed to send email: timed out after {self.send_timeout}s", e) from e
        except Exception as e:
            logger.error(f"Email send via {self.provider.name} failed: {e}")
            raise EmailSendError(f"Failed to send email: {e}", e) from e

        logger.info(f"Email sent via {self.provider.name}: {result.message_id}")
        return result

    async def send_email_with_attachment(self, message: EmailMessage, content: bytes, filename: str) -> SendResult:
        """Send message with a single PDF attachment."""
        attached = message.model_copy(update={
            "attachments": [EmailAttachment(filename=filename, content=content, content_type=PDF_CONTENT_TYPE)],
        })
        return await self.send_email(attached)

    async def send_batch(self, messages: list[EmailMessage]) -> list[SendResult]:
        """Send concurrently (bounded); results keep input order, first failure propagates."""
        semaphore = asyncio.Semaphore(self.batch_concurrency)

        async def send_one(message: EmailMessage) -> SendResult:
            async with semaphore:
                return await self.send_email(message)

        return list(await asyncio.gather(*(send_one(m) for m in messages)))

    def get_provider_status(self) -> ProviderStatus:
        return ProviderStatus(
            provider=self.provider.name,
            configured=self.provider.configured,
            from_email=self.from_email,
        )
