"""Custom exception hierarchy for teslabus."""

from __future__ import annotations


class TeslaBusError(Exception):
    """Base exception for all teslabus errors."""


class ConfigurationError(TeslaBusError):
    """Invalid or missing configuration."""


class AuthenticationError(TeslaBusError):
    """Login failed, token exchange failed or the API rejected the token.

    The poll loop answers this error with exactly one re-authentication
    attempt before the next tick.
    """


class TelemetryFetchError(TeslaBusError):
    """A telemetry request failed (network, timeout, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "",
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.category = category
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class PublishError(TeslaBusError):
    """The bus refused (nacked) or failed to accept a snapshot."""


class BusConnectionError(TeslaBusError):
    """Could not connect to the bus or declare the exchange."""
