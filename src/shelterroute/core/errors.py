"""Exception hierarchy shared by the gateway, the provider client and the API layer."""

from __future__ import annotations


class ShelterRouteError(Exception):
    """Base exception for all shelterroute errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ShelterRouteError):
    """Missing or malformed input (coordinates, request body)."""

    status_code = 400


class ConfigurationError(ShelterRouteError):
    """Required configuration is missing (e.g. the provider credential)."""

    status_code = 500


class UpstreamError(ShelterRouteError):
    """The routing provider answered with a non-2xx status.

    The provider's status code and raw body are kept so the API can pass them
    through unchanged.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: str = "",
        content_type: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.content_type = content_type


class TransientError(ShelterRouteError):
    """Network failure or unreadable provider response."""

    status_code = 500


class RateLimitError(ShelterRouteError):
    """A client exceeded its request ceiling for the current window."""

    status_code = 429

    def __init__(self, message: str, *, retry_after_seconds: int, limit: int) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds
        self.limit = limit
