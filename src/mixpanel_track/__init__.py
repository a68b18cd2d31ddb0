"""Asynchronous server-side client for Mixpanel's ``/track`` HTTP API."""

from .config import TrackerSettings
from .errors import (
    ConfigurationError,
    CookieFormatError,
    MalformedEndpointError,
    TrackerClosedError,
    TrackingError,
    TransportError,
    UnexpectedResponseError,
    ValidationError,
)
from .logger import NullLogger, RecordingLogger
from .models import MissingField, OutboundMessage, TrackingRequest
from .tracker import MixpanelTracker
from .transport import API_ENDPOINT, build_url, decode_payload, encode_payload

__all__ = [
    "MixpanelTracker",
    "TrackerSettings",
    "TrackingRequest",
    "OutboundMessage",
    "MissingField",
    "NullLogger",
    "RecordingLogger",
    "API_ENDPOINT",
    "build_url",
    "encode_payload",
    "decode_payload",
    "TrackingError",
    "ValidationError",
    "MalformedEndpointError",
    "TransportError",
    "UnexpectedResponseError",
    "TrackerClosedError",
    "CookieFormatError",
    "ConfigurationError",
]
