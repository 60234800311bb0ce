"""Error taxonomy surfaced by the audit engine."""

from typing import Optional


class AuditError(Exception):
    """Base class for errors that abort an audit."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.message = message
        self.url = url
        super().__init__(message)


class ValidationError(AuditError):
    """Raised when the requested URL cannot be parsed into an auditable URL."""


class UnsafeTargetError(AuditError):
    """Raised when a URL points at a blocked scheme, host or address."""


class FetchError(AuditError):
    """Raised when the page could not be retrieved.

    Covers timeouts, redirect-limit breaches, transport failures and
    error statuses. ``cause`` keeps the underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.cause = cause
        super().__init__(message, url)
