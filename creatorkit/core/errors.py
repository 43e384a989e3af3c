"""
Exception hierarchy for creatorkit.

Everything raised on purpose inherits from CreatorKitError so callers can
catch broad or specific failures as needed.
"""
from typing import Optional


class CreatorKitError(Exception):
    """Base exception for all creatorkit errors."""


class NotSignedInError(CreatorKitError):
    """Raised when an operation needs an authenticated user."""


class AuthError(CreatorKitError):
    """Raised when the identity service rejects sign-in or sign-up."""


class ConversationError(CreatorKitError):
    """Raised when a conversation mutation fails in the remote store.

    In-memory conversation state is left untouched when this is raised.
    """

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class QuotaExceededError(CreatorKitError):
    """Raised when a generation is attempted with no daily allowance left."""

    def __init__(self, kind: str, remaining: int = 0):
        super().__init__(f"Daily {kind} quota exhausted")
        self.kind = kind
        self.remaining = remaining


class CompletionError(CreatorKitError):
    """Raised when the completion service fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CompletionConfigError(CompletionError):
    """Raised when the completion service is not configured (no API key)."""


class CompletionAuthError(CompletionError):
    """Raised on HTTP 401 from the completion service."""


class CompletionRateLimitError(CompletionError):
    """Raised on HTTP 429 from the completion service."""


class CompletionServerError(CompletionError):
    """Raised on HTTP 5xx from the completion service."""


class CompletionNetworkError(CompletionError):
    """Raised when the completion service cannot be reached."""


class StreamCancelledError(CompletionError):
    """Raised when a streaming response is cancelled by the caller."""
