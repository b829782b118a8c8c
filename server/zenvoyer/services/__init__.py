"""Services for Zenvoyer."""

from .cache import Cache
from .dashboards import DashboardService
from .email import EmailService
from .i18n import LocaleContext, Translator
from .store import DataStore
from .uploads import UploadService

__all__ = [
    "Cache",
    "DashboardService",
    "EmailService",
    "LocaleContext",
    "Translator",
    "DataStore",
    "UploadService",
]
