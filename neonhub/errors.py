"""Client-facing error taxonomy.

Every failure inside a proxy endpoint is raised as a ProxyError subclass and
converted to `{"error": message, ...}` with the class's HTTP status by the
exception handler in `neonhub.main`.
"""

from __future__ import annotations

from fastapi import status


class ProxyError(Exception):
    """Base class: carries an HTTP status and a message safe to show callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Bad request"

    def __init__(self, message: str | None = None, *, status_code: int | None = None, **extra):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message, **self.extra}


class Unauthenticated(ProxyError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class RateLimitExceeded(ProxyError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after: int | None = None, message: str | None = None):
        self.retry_after = retry_after
        if message is None:
            message = f"Rate limit exceeded. Try again in {retry_after} seconds."
        super().__init__(message)


class InvalidAction(ProxyError):
    message = "Invalid action"


class InvalidInput(ProxyError):
    message = "Invalid request"


class InvalidTokenFormat(ProxyError):
    message = "Invalid token format"


class InvalidCredential(ProxyError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid GitHub token"


class NotConnected(ProxyError):
    message = "GitHub not connected"


class UpstreamError(ProxyError):
    """An external API call failed; status is passed through where meaningful."""

    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Upstream request failed"


class ConfigurationError(ProxyError):
    """A required server secret is missing. Fatal for this deployment."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"
