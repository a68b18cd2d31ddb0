"""Helpers pulling tracking metadata out of inbound FastAPI requests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Optional
from urllib.parse import unquote

from .errors import CookieFormatError

if TYPE_CHECKING:
    from fastapi import Request

IP_HEADERS = (
    "X-Forwarded-For",
    "Proxy-Client-IP",
    "WL-Proxy-Client-IP",
    "HTTP_CLIENT_IP",
    "HTTP_X_FORWARDED_FOR",
)


def client_ip(request: Request) -> Optional[str]:
    for header in IP_HEADERS:
        value = request.headers.get(header)
        if value and value.lower() != "unknown":
            return value
    if request.client is None:
        return None
    return request.client.host


def read_distinct_id(request: Request, cookie_name: str) -> Optional[str]:
    """Return ``distinct_id`` from the Mixpanel JS cookie.

    The browser library stores a URL-encoded JSON object under
    ``mp_<name>``; callers pass the full cookie name.
    """
    raw = request.cookies.get(cookie_name)
    if raw is None:
        return None
    try:
        payload = json.loads(unquote(raw))
    except ValueError as exc:
        raise CookieFormatError(f"Cookie {cookie_name} is not valid JSON") from exc
    distinct_id = payload.get("distinct_id") if isinstance(payload, dict) else None
    # identify() may store numeric ids; booleans are not ids.
    if isinstance(distinct_id, bool) or not isinstance(distinct_id, (str, int, float)):
        raise CookieFormatError(f"Cookie {cookie_name} has no distinct_id")
    return str(distinct_id)
