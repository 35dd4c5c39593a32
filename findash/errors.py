"""
Errors - Exception taxonomy for FinDash.

Every error carries the HTTP status it maps to. Handlers in
``findash.api.handlers`` (installed by ``findash.app``) translate them into
the ``{"success": false, "error": ...}`` envelope.
Client errors (4xx) expose their message; server errors (5xx) only ever
expose the generic ``public_message``.
"""


class FinDashError(Exception):
    """Base class for all FinDash errors."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.public_message
        super().__init__(self.message)

    @property
    def public(self) -> str:
        """Message safe to return to the client."""
        if self.status_code >= 500:
            return self.public_message
        return self.message


class Unauthorized(FinDashError):
    """Missing, invalid, expired or revoked bearer credential."""

    status_code = 401
    public_message = "Unauthorized"

    def __init__(self, reason: str | None = None):
        # The reason is for logs only
        super().__init__(self.public_message)
        self.reason = reason


class ValidationError(FinDashError):
    """Malformed input (amount, date, identifier, query parameter)."""

    status_code = 400
    public_message = "Invalid request"

    def __init__(self, message: str | None = None, field: str | None = None):
        super().__init__(message)
        self.field = field


class InvalidDate(ValidationError):
    """A value that should be a calendar date could not be parsed."""

    public_message = "Invalid date"


class InvalidAmount(ValidationError):
    """A value that should be a monetary amount could not be parsed."""

    public_message = "Invalid amount"


class NotFound(FinDashError):
    """No such record for this user."""

    status_code = 404
    public_message = "Not found"


class LedgerStoreError(FinDashError):
    """The ledger store failed. Fatal for the request, never retried."""

    status_code = 500
