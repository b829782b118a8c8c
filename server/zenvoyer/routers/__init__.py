"""API Routers for Zenvoyer."""

from .stats import router as stats_router
from .dashboards import router as dashboards_router
from .activity_logs import router as activity_logs_router
from .upload import router as upload_router
from .notifications import router as notifications_router
from .i18n import router as i18n_router
from .validation import router as validation_router

__all__ = [
    "stats_router",
    "dashboards_router",
    "activity_logs_router",
    "upload_router",
    "notifications_router",
    "i18n_router",
    "validation_router",
]
