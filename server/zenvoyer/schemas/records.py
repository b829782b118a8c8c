"""Records the dashboards aggregate over.

These mirror the persisted entities of the invoicing system closely enough to
compute dashboard projections; persistence itself lives elsewhere.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, Field

from .base import CamelModel


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so records always compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class UserRole(str, Enum):
    USER = "user"
    SUB_USER = "sub_user"
    ADMIN = "admin"
    SUB_ADMIN = "sub_admin"
    SUPER_ADMIN = "super_admin"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    PARTIAL = "partial"
    OVERDUE = "overdue"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


Severity = Literal["info", "warning", "error", "critical"]


class UserRecord(CamelModel):
    id: str = Field(default_factory=_new_id)
    email: str
    first_name: str = ""
    last_name: str = ""
    role: UserRole = UserRole.USER
    subscription_plan: Literal["free", "pro"] = "free"
    subscription_status: Literal["active", "cancelled"] = "active"
    subscription_start_date: Optional[UtcDatetime] = None
    created_at: UtcDatetime = Field(default_factory=_utcnow)


class ClientRecord(CamelModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    name: str
    email: Optional[str] = None
    created_at: UtcDatetime = Field(default_factory=_utcnow)


class InvoiceRecord(CamelModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    client_id: str
    invoice_number: str
    invoice_date: date
    due_date: date
    currency: str = "USD"
    total_amount: float = Field(default=0, ge=0)
    amount_paid: float = Field(default=0, ge=0)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    created_at: UtcDatetime = Field(default_factory=_utcnow)


class SupportTicket(CamelModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    subject: str
    status: TicketStatus = TicketStatus.OPEN
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    category: str = "general"
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    created_at: UtcDatetime = Field(default_factory=_utcnow)
    resolved_at: Optional[UtcDatetime] = None


class ActivityLog(CamelModel):
    """Append-only audit record."""
    id: str = Field(default_factory=_new_id)
    user_id: str
    user_email: str
    action: str
    resource: str
    details: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    severity: Severity = "info"
    created_at: UtcDatetime = Field(default_factory=_utcnow)
