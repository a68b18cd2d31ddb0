from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError

TOKEN_ENV = "MIXPANEL_TOKEN"
MAX_WORKERS_ENV = "MIXPANEL_MAX_WORKERS"
TIMEOUT_ENV = "MIXPANEL_TIMEOUT"


@dataclass(frozen=True)
class TrackerSettings:
    token: str
    max_workers: Optional[int] = None
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrackerSettings":
        env = os.environ if environ is None else environ
        token = env.get(TOKEN_ENV)
        if not token:
            raise ConfigurationError(f"{TOKEN_ENV} is not set")
        return cls(
            token=token,
            max_workers=_positive(env, MAX_WORKERS_ENV, int),
            timeout=_positive(env, TIMEOUT_ENV, float),
        )


def _positive(env: Mapping[str, str], name: str, cast):
    value = env.get(name)
    if not value:
        return None
    try:
        parsed = cast(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value!r}")
    return parsed
