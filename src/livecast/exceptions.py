"""Application level exceptions shared by the gateway, transports and API."""

from __future__ import annotations

__all__ = [
    "AppError",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "RemoteError",
    "ensure_configured",
]


class AppError(Exception):
    """Base class for application specific errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(AppError):
    """Raised when required account-level settings are absent."""


class ValidationError(AppError):
    """Raised when caller-supplied input violates a precondition."""


class TransportError(AppError):
    """Raised on network-level failures (no response, abort, DNS, timeout)."""


class RemoteError(AppError):
    """Raised when the platform answers with a well-formed error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def ensure_configured(**values: str | None) -> None:
    """Raise :class:`ConfigurationError` naming every empty setting."""

    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(
            f"Stream platform credentials not configured: {', '.join(missing)}"
        )
