from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import MissingField


class TrackingError(RuntimeError):
    """Base class for every failure reported by the tracker."""


class ValidationError(TrackingError, ValueError):
    """Raised when a required tracking field is missing."""

    def __init__(self, missing: "MissingField") -> None:
        super().__init__(f"{missing.value} field is mandatory")
        self.missing = missing


class MalformedEndpointError(TrackingError):
    """Raised when the transport refuses the request URL."""


class TransportError(TrackingError):
    """Raised when the HTTP call fails at the connection or IO level."""


class UnexpectedResponseError(TrackingError):
    """Raised when Mixpanel answers with anything but ``200`` / ``1``."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TrackerClosedError(TrackingError):
    """Raised for events submitted after the tracker was closed."""


class CookieFormatError(TrackingError, ValueError):
    """Raised when the Mixpanel cookie cannot be decoded."""


class ConfigurationError(TrackingError):
    """Raised when tracker settings are missing or invalid."""
