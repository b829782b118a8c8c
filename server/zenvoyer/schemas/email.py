"""Outbound email payloads."""

from typing import Literal, Optional, Union

from pydantic import Field

from .base import CamelModel


class EmailAttachment(CamelModel):
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class EmailMessage(CamelModel):
    """A single message handed to a provider adapter; never persisted."""
    to: Union[str, list[str]]
    from_: Optional[str] = Field(default=None, alias="from")
    subject: str
    html: str
    text: Optional[str] = None
    cc: Optional[list[str]] = None
    bcc: Optional[list[str]] = None
    attachments: Optional[list[EmailAttachment]] = None

    @property
    def recipients(self) -> list[str]:
        return [self.to] if isinstance(self.to, str) else list(self.to)


class SendResult(CamelModel):
    message_id: str
    status: Literal["sent", "queued", "failed"]


class ProviderStatus(CamelModel):
    provider: str
    configured: bool
    from_email: str
