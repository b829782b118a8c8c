"""Dashboard aggregations computed fresh per request."""

import time
from collections import Counter, defaultdict
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from ..schemas.dashboard import (
    AdminDashboardResponse,
    AdminStats,
    ChartData,
    DashboardStats,
    OverdueInvoice,
    RecentInvoice,
    RecentTicket,
    SuperAdminDashboardResponse,
    SuperAdminStats,
    SystemHealth,
    TopClient,
    TopPerformingUser,
    Trend,
    UserDashboardResponse,
    UserStats,
)
from ..schemas.records import InvoiceRecord, InvoiceStatus, TicketStatus, UserRole, as_utc
from .store import DataStore

# Pro subscription price per month (IDR)
PRO_PLAN_MONTHLY_PRICE = 50_000

TOP_CLIENTS_LIMIT = 5
RECENT_INVOICES_LIMIT = 5
OVERDUE_INVOICES_LIMIT = 5
RECENT_TICKETS_LIMIT = 10
ACTIVITY_WINDOW = 50
TOP_USERS_LIMIT = 10

ACTIVE_TICKET_STATUSES = {TicketStatus.OPEN, TicketStatus.IN_PROGRESS}
RESOLVED_TICKET_STATUSES = {TicketStatus.RESOLVED, TicketStatus.CLOSED}


def _money(value: float) -> float:
    return round(value, 2)


def month_starts(now: datetime) -> tuple[datetime, datetime]:
    """Start of the current and the previous calendar month."""
    current = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if current.month == 1:
        previous = current.replace(year=current.year - 1, month=12)
    else:
        previous = current.replace(month=current.month - 1)
    return current, previous


def trend_of(current: float, previous: float) -> Trend:
    return "up" if current >= previous else "down"


def change_percent(current: float, previous: float) -> float:
    """Relative change; 100% whenever the previous value is zero."""
    if previous == 0:
        return 100.0
    return _money((current - previous) / previous * 100)


def compare_stat(title: str, value: float, current: float, previous: float) -> DashboardStats:
    return DashboardStats(
        title=title,
        value=value,
        change=_money(current - previous),
        change_percent=change_percent(current, previous),
        trend=trend_of(current, previous),
    )


def flat_stat(title: str, value: float) -> DashboardStats:
    return DashboardStats(title=title, value=value)


def monthly_chart(items: Iterable[tuple[datetime, float]]) -> list[ChartData]:
    """Sum values per ``YYYY-MM`` label, oldest month first."""
    totals: dict[str, float] = defaultdict(float)
    for when, value in items:
        totals[when.strftime("%Y-%m")] += value
    return [ChartData(label=month, value=_money(max(total, 0))) for month, total in sorted(totals.items())]


def count_chart(labels: Iterable[str], with_percentage: bool = False) -> list[ChartData]:
    """Count occurrences per label, most frequent first."""
    counts = Counter(labels)
    total = sum(counts.values())
    return [
        ChartData(
            label=label,
            value=count,
            percentage=_money(count / total * 100) if with_percentage and total else None,
        )
        for label, count in counts.most_common()
    ]


class DashboardService:
    """Build the user, admin and super-admin dashboards from a ``DataStore``."""

    def __init__(self, store: DataStore, started_at: Optional[float] = None):
        self.store = store
        self.started_at = time.time() if started_at is None else started_at

    def _now(self, now: Optional[datetime]) -> datetime:
        return as_utc(now) if now else datetime.now(timezone.utc)

    def _client_name(self, client_id: str) -> str:
        client = self.store.client(client_id)
        return client.name if client else "Unknown"

    # User dashboard

    def get_user_dashboard(self, user_id: str, now: Optional[datetime] = None) -> UserDashboardResponse:
        now = self._now(now)
        current_start, previous_start = month_starts(now)
        invoices = self.store.invoices(user_id)

        current = [inv for inv in invoices if inv.created_at >= current_start]
        previous = [inv for inv in invoices if previous_start <= inv.created_at < current_start]

        current_revenue = sum(inv.total_amount for inv in current)
        previous_revenue = sum(inv.total_amount for inv in previous)
        total_unpaid = sum(max(inv.total_amount - inv.amount_paid, 0) for inv in invoices)
        paid = sum(1 for inv in invoices if inv.status == InvoiceStatus.PAID)
        conversion_rate = paid / len(invoices) * 100 if invoices else 0

        stats = UserStats(
            total_invoices=compare_stat("Total Invoices", len(invoices), len(current), len(previous)),
            total_revenue=compare_stat("Total Revenue", _money(current_revenue), current_revenue, previous_revenue),
            total_unpaid=flat_stat("Unpaid Amount", _money(total_unpaid)),
            conversion_rate=flat_stat("Conversion Rate", _money(conversion_rate)),
        )

        return UserDashboardResponse(
            stats=stats,
            revenue_chart=monthly_chart((inv.created_at, inv.total_amount) for inv in invoices),
            status_chart=count_chart((inv.status.value for inv in invoices), with_percentage=True),
            top_clients=self._top_clients(invoices),
            recent_invoices=[
                RecentInvoice(
                    id=inv.id,
                    invoice_number=inv.invoice_number,
                    client_name=self._client_name(inv.client_id),
                    amount=_money(inv.total_amount),
                    status=inv.status.value,
                    due_date=inv.due_date.isoformat(),
                )
                for inv in invoices[:RECENT_INVOICES_LIMIT]
            ],
            overdue_invoices=self._overdue(invoices, now.date()),
        )

    def _top_clients(self, invoices: list[InvoiceRecord]) -> list[TopClient]:
        by_client: dict[str, dict] = {}
        for inv in invoices:
            entry = by_client.setdefault(inv.client_id, {"count": 0, "amount": 0.0})
            entry["count"] += 1
            entry["amount"] += inv.total_amount

        ranked = sorted(by_client.items(), key=lambda item: item[1]["amount"], reverse=True)
        return [
            TopClient(
                id=client_id,
                name=self._client_name(client_id),
                total_invoices=entry["count"],
                total_amount=_money(entry["amount"]),
            )
            for client_id, entry in ranked[:TOP_CLIENTS_LIMIT]
        ]

    def _overdue(self, invoices: list[InvoiceRecord], today: date) -> list[OverdueInvoice]:
        overdue = [
            inv for inv in invoices
            if inv.due_date < today and inv.status != InvoiceStatus.PAID
        ]
        overdue.sort(key=lambda inv: inv.due_date)
        return [
            OverdueInvoice(
                id=inv.id,
                invoice_number=inv.invoice_number,
                client_name=self._client_name(inv.client_id),
                days_overdue=(today - inv.due_date).days,
                amount=_money(max(inv.total_amount - inv.amount_paid, 0)),
            )
            for inv in overdue[:OVERDUE_INVOICES_LIMIT]
        ]

    # Admin (support) dashboard

    def get_admin_dashboard(self, now: Optional[datetime] = None) -> AdminDashboardResponse:
        now = self._now(now)
        current_start, previous_start = month_starts(now)
        tickets = self.store.tickets()

        active = [t for t in tickets if t.status in ACTIVE_TICKET_STATUSES]
        resolved = [t for t in tickets if t.status in RESOLVED_TICKET_STATUSES]

        def resolved_between(start: datetime, end: Optional[datetime]) -> int:
            return sum(
                1 for t in resolved
                if t.resolved_at and start <= t.resolved_at and (end is None or t.resolved_at < end)
            )

        resolved_now = resolved_between(current_start, None)
        resolved_before = resolved_between(previous_start, current_start)

        durations = [
            (t.resolved_at - t.created_at).total_seconds() / 3600
            for t in resolved if t.resolved_at
        ]
        average_hours = sum(durations) / len(durations) if durations else 0
        ratings = [t.rating for t in tickets if t.rating is not None]
        satisfaction = sum(ratings) / len(ratings) if ratings else 0

        stats = AdminStats(
            active_tickets=flat_stat("Active Tickets", len(active)),
            resolved_tickets=DashboardStats(
                title="Resolved Tickets",
                value=len(resolved),
                change=resolved_now - resolved_before,
                change_percent=change_percent(resolved_now, resolved_before),
                trend=trend_of(resolved_now, resolved_before),
            ),
            average_resolution_time=flat_stat("Avg Resolution Time", _money(max(average_hours, 0))),
            customer_satisfaction=flat_stat("Customer Satisfaction", _money(satisfaction)),
        )

        logs = self.store.activity_logs(limit=ACTIVITY_WINDOW)

        return AdminDashboardResponse(
            stats=stats,
            recent_tickets=[
                RecentTicket(
                    id=t.id,
                    user_id=t.user_id,
                    subject=t.subject,
                    status=t.status.value,
                    priority=t.priority,
                    created_at=t.created_at.isoformat(),
                )
                for t in tickets[:RECENT_TICKETS_LIMIT]
            ],
            user_activity=count_chart(log.action for log in logs),
            support_category=count_chart((t.category for t in tickets), with_percentage=True),
        )

    # Super admin (platform) dashboard

    def get_super_admin_dashboard(self, now: Optional[datetime] = None, cache_status: str = "healthy") -> SuperAdminDashboardResponse:
        now = self._now(now)
        current_start, previous_start = month_starts(now)

        all_users = self.store.users()
        regular = [u for u in all_users if u.role == UserRole.USER]
        pro = [u for u in regular if u.subscription_plan == "pro" and u.subscription_status == "active"]
        cancelled = [u for u in regular if u.subscription_status == "cancelled"]

        joined_now = sum(1 for u in regular if u.created_at >= current_start)
        joined_before = sum(1 for u in regular if previous_start <= u.created_at < current_start)

        invoices = self.store.invoices()
        total_revenue = sum(inv.total_amount for inv in invoices)

        new_pro = [
            u for u in pro
            if u.subscription_start_date and u.subscription_start_date >= current_start
        ]
        mrr = len(new_pro) * PRO_PLAN_MONTHLY_PRICE
        churn_base = len(pro) + len(cancelled)
        churn_rate = len(cancelled) / churn_base * 100 if churn_base else 0

        stats = SuperAdminStats(
            total_users=compare_stat("Total Users", len(regular), joined_now, joined_before),
            total_revenue=flat_stat("Total Revenue", _money(total_revenue)),
            mrr=flat_stat("Monthly Recurring Revenue", _money(mrr)),
            churn_rate=flat_stat("Churn Rate", _money(churn_rate)),
        )

        free_count = len(regular) - len(pro)

        def share(count: int) -> float:
            return _money(count / len(regular) * 100) if regular else 0.0

        return SuperAdminDashboardResponse(
            stats=stats,
            user_growth=monthly_chart((u.created_at, 1) for u in all_users),
            revenue_chart=monthly_chart((inv.created_at, inv.total_amount) for inv in invoices),
            plan_distribution=[
                ChartData(label="Free Plan", value=free_count, percentage=share(free_count)),
                ChartData(label="Pro Plan", value=len(pro), percentage=share(len(pro))),
            ],
            top_performing_users=self._top_users(invoices),
            system_health=SystemHealth(
                database_status="healthy",
                api_status="healthy",
                cache_status=cache_status,
                uptime=self.uptime(),
            ),
        )

    def _top_users(self, invoices: list[InvoiceRecord]) -> list[TopPerformingUser]:
        by_user: dict[str, dict] = {}
        for inv in invoices:
            entry = by_user.setdefault(inv.user_id, {"count": 0, "revenue": 0.0})
            entry["count"] += 1
            entry["revenue"] += inv.total_amount

        ranked = sorted(by_user.items(), key=lambda item: item[1]["revenue"], reverse=True)
        top = []
        for user_id, entry in ranked[:TOP_USERS_LIMIT]:
            user = self.store.user(user_id)
            top.append(TopPerformingUser(
                id=user_id,
                email=user.email if user else "unknown@example.com",
                total_invoices=entry["count"],
                total_revenue=_money(entry["revenue"]),
                subscription_plan=user.subscription_plan if user else "free",
            ))
        return top

    def uptime(self) -> str:
        """Process uptime as ``<d>d <h>h <m>m``."""
        seconds = max(int(time.time() - self.started_at), 0)
        days, rest = divmod(seconds, 86400)
        hours, rest = divmod(rest, 3600)
        return f"{days}d {hours}h {rest // 60}m"
