from __future__ import annotations

import logging
import threading
from typing import Any, List

log = logging.getLogger("mixpanel_track")


class NullLogger:
    """Inert sink used when the caller does not provide one."""

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        return None

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        return None

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        return None

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        return None


class RecordingLogger:
    """Keeps formatted log lines in memory, safe to share between workers."""

    def __init__(self) -> None:
        self._entries: List[str] = []
        self._lock = threading.Lock()

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log("DEBUG", msg, *args)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log("INFO", msg, *args)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log("WARNING", msg, *args)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log("ERROR", msg, *args)

    def log(self, level: str, msg: str, *args: Any) -> None:
        message = msg % args if args else msg
        with self._lock:
            self._entries.append(f"> [{level}] {message}")

    @property
    def entries(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def at_level(self, level: str) -> List[str]:
        prefix = f"> [{level.upper()}] "
        return [entry for entry in self.entries if entry.startswith(prefix)]


def safe_log(sink: Any, level: str, msg: str, *args: Any, **kwargs: Any) -> None:
    """Forward to ``sink`` and never let a broken sink escape."""
    try:
        getattr(sink, level)(msg, *args, **kwargs)
    except Exception:
        log.debug("Logging sink %r failed on %s", sink, level, exc_info=True)
