"""Read-only dashboard response shapes, one per caller role."""

from typing import Literal, Optional

from pydantic import Field

from .base import CamelModel

Trend = Literal["up", "down", "stable"]


class DashboardStats(CamelModel):
    title: str
    value: float
    change: float = 0
    change_percent: float = 0
    trend: Trend = "stable"


class ChartData(CamelModel):
    label: str
    value: float = Field(ge=0)
    percentage: Optional[float] = None


# User dashboard

class UserStats(CamelModel):
    total_invoices: DashboardStats
    total_revenue: DashboardStats
    total_unpaid: DashboardStats
    conversion_rate: DashboardStats


class TopClient(CamelModel):
    id: str
    name: str
    total_invoices: int
    total_amount: float


class RecentInvoice(CamelModel):
    id: str
    invoice_number: str
    client_name: str
    amount: float
    status: str
    due_date: str


class OverdueInvoice(CamelModel):
    id: str
    invoice_number: str
    client_name: str
    days_overdue: int
    amount: float


class UserDashboardResponse(CamelModel):
    stats: UserStats
    revenue_chart: list[ChartData]
    status_chart: list[ChartData]
    top_clients: list[TopClient]
    recent_invoices: list[RecentInvoice]
    overdue_invoices: list[OverdueInvoice]


# Admin (support team) dashboard

class AdminStats(CamelModel):
    active_tickets: DashboardStats
    resolved_tickets: DashboardStats
    average_resolution_time: DashboardStats
    customer_satisfaction: DashboardStats


class RecentTicket(CamelModel):
    id: str
    user_id: str
    subject: str
    status: str
    priority: str
    created_at: str


class AdminDashboardResponse(CamelModel):
    stats: AdminStats
    recent_tickets: list[RecentTicket]
    user_activity: list[ChartData]
    support_category: list[ChartData]


# Super admin (platform) dashboard

class SuperAdminStats(CamelModel):
    total_users: DashboardStats
    total_revenue: DashboardStats
    mrr: DashboardStats
    churn_rate: DashboardStats


class TopPerformingUser(CamelModel):
    id: str
    email: str
    total_invoices: int
    total_revenue: float
    subscription_plan: str


class SystemHealth(CamelModel):
    database_status: str
    api_status: str
    cache_status: str
    uptime: str


class SuperAdminDashboardResponse(CamelModel):
    stats: SuperAdminStats
    user_growth: list[ChartData]
    revenue_chart: list[ChartData]
    plan_distribution: list[ChartData]
    top_performing_users: list[TopPerformingUser]
    system_health: SystemHealth
