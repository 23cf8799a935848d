"""
Error taxonomy shared by the identifier, cache and upstream layers.
"""
from typing import Optional


class BookBlendError(Exception):
    """Base class for errors raised by the bookblend core."""


class InvalidIdentifier(BookBlendError, ValueError):
    """Input cannot be parsed into a Goodreads user id or username."""

    def __init__(self, message: str = "Enter a valid Goodreads user ID, username, or URL"):
        super().__init__(message)
        self.message = message


class UpstreamUnavailable(BookBlendError):
    """
    The BookBlend API returned a non-2xx status or could not be reached.

    `message` is safe to show to end users; `detail` holds the raw upstream
    body or transport error and is only logged.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail


class PersistenceFailure(BookBlendError):
    """The database rejected a write (including slug unique-constraint violations)."""


class NotFound(BookBlendError):
    """A lookup legitimately found no row."""
