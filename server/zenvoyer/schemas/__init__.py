"""Pydantic models for requests, responses and records."""

from .dashboard import (
    AdminDashboardResponse,
    ChartData,
    DashboardStats,
    SuperAdminDashboardResponse,
    UserDashboardResponse,
)
from .email import EmailAttachment, EmailMessage, SendResult
from .records import ActivityLog, UserRole

__all__ = [
    "AdminDashboardResponse",
    "ChartData",
    "DashboardStats",
    "SuperAdminDashboardResponse",
    "UserDashboardResponse",
    "EmailAttachment",
    "EmailMessage",
    "SendResult",
    "ActivityLog",
    "UserRole",
]
