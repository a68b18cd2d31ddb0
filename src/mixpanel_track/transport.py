"""Turns outbound messages into ``/track`` request URLs."""

from __future__ import annotations

import base64

from .models import OutboundMessage

API_ENDPOINT = "http://api.mixpanel.com/track/"
DATA_PARAM = "data"


def encode_payload(message: OutboundMessage) -> str:
    """Standard-alphabet base64 of the message's compact JSON (UTF-8)."""
    raw = message.to_json().encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_payload(data: str) -> str:
    return base64.b64decode(data.encode("ascii"), validate=True).decode("utf-8")


def build_url(message: OutboundMessage) -> str:
    # The endpoint accepts the base64 text verbatim inside the query value.
    return f"{API_ENDPOINT}?{DATA_PARAM}={encode_payload(message)}"
