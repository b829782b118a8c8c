"""Domain exceptions raised by Zenvoyer services.

Routers translate these into HTTP responses; services never raise
``HTTPException`` themselves.
"""

from typing import Optional


class ZenvoyerError(Exception):
    """Base class for all service-level errors."""


class AuthenticationError(ZenvoyerError):
    """Bearer token missing, malformed, or expired."""


class InvalidEmailAddressError(ZenvoyerError):
    """A sender or recipient address failed syntax validation."""

    def __init__(self, address: str, role: str = "recipient"):
        self.address = address
        self.role = role
        super().__init__(f"Invalid {role} email: {address}")


class EmailSendError(ZenvoyerError):
    """Delivery failed inside a provider adapter."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class UploadRejectedError(ZenvoyerError):
    """An upload did not pass the extension or size filter."""

    def __init__(self, message: str, status_code: int = 400, message_key: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message_key = message_key
