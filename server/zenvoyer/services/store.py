"""In-memory record store backing the dashboard aggregations."""

import threading
import logging
from typing import Callable, Optional

from ..schemas.records import (
    ActivityLog,
    ClientRecord,
    InvoiceRecord,
    SupportTicket,
    UserRecord,
)

logger = logging.getLogger(__name__)

WriteListener = Callable[[str], None]


class DataStore:
    """Thread-safe holder of users, clients, invoices, tickets and activity logs.

    Every write notifies the registered listeners with the resource name
    (``"users"``, ``"invoices"``, ...) after the lock is released.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._users: dict[str, UserRecord] = {}
        self._clients: dict[str, ClientRecord] = {}
        self._invoices: list[InvoiceRecord] = []
        self._tickets: list[SupportTicket] = []
        self._activity_logs: list[ActivityLog] = []
        self._listeners: list[WriteListener] = []

    def on_write(self, listener: WriteListener) -> None:
        self._listeners.append(listener)

    def _notify(self, resource: str) -> None:
        for listener in self._listeners:
            listener(resource)

    # Writes

    def add_user(self, user: UserRecord) -> UserRecord:
        with self._lock:
            self._users[user.id] = user
        self._notify("users")
        return user

    def add_client(self, client: ClientRecord) -> ClientRecord:
        with self._lock:
            self._clients[client.id] = client
        self._notify("clients")
        return client

    def add_invoice(self, invoice: InvoiceRecord) -> InvoiceRecord:
        with self._lock:
            self._invoices.append(invoice)
        self._notify("invoices")
        return invoice

    def add_ticket(self, ticket: SupportTicket) -> SupportTicket:
        with self._lock:
            self._tickets.append(ticket)
        self._notify("tickets")
        return ticket

    def add_activity_log(self, log: ActivityLog) -> ActivityLog:
        with self._lock:
            self._activity_logs.append(log)
        self._notify("activity_logs")
        return log

    # Reads (snapshots, safe to iterate without the lock)

    def users(self) -> list[UserRecord]:
        with self._lock:
            return list(self._users.values())

    def user(self, user_id: str) -> Optional[UserRecord]:
        with self._lock:
            return self._users.get(user_id)

    def client(self, client_id: str) -> Optional[ClientRecord]:
        with self._lock:
            return self._clients.get(client_id)

    def invoices(self, user_id: Optional[str] = None) -> list[InvoiceRecord]:
        """Invoices newest first, optionally for one owner."""
        with self._lock:
            rows = [inv for inv in self._invoices if user_id is None or inv.user_id == user_id]
        return sorted(rows, key=lambda inv: inv.created_at, reverse=True)

    def tickets(self) -> list[SupportTicket]:
        with self._lock:
            rows = list(self._tickets)
        return sorted(rows, key=lambda t: t.created_at, reverse=True)

    def activity_logs(self, limit: Optional[int] = None) -> list[ActivityLog]:
        """Activity logs newest first."""
        with self._lock:
            rows = list(self._activity_logs)
        rows.sort(key=lambda log: log.created_at, reverse=True)
        return rows[:limit] if limit is not None else rows
