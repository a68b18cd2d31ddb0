"""Asynchronous Mixpanel ``/track`` client.

Example::

    tracker = MixpanelTracker("e3bc4100330c35722740fb8c6f5abddc", logging.getLogger(__name__))
    tracker.track("signup", "50479b24671bf", name_tag="Test Name", properties={"action": "play"})
    ...
    tracker.close()
    tracker.await_termination(10)

Each ``track`` call returns a :class:`concurrent.futures.Future` resolving to
``True`` or raising a :class:`~mixpanel_track.errors.TrackingError`. Most
callers can ignore it.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any, Mapping, Optional, Set

import requests

from .config import TrackerSettings
from .errors import (
    CookieFormatError,
    MalformedEndpointError,
    TrackerClosedError,
    TransportError,
    UnexpectedResponseError,
    ValidationError,
)
from .logger import NullLogger, safe_log
from .models import Timestamp, TrackingRequest
from .transport import build_url
from .web import client_ip, read_distinct_id

if TYPE_CHECKING:
    from fastapi import Request

DEFAULT_TERMINATION_TIMEOUT = 10.0


class MixpanelTracker:
    def __init__(
        self,
        token: str,
        logger: Any = None,
        executor: Optional[Executor] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.token = token
        self.logger = logger or NullLogger()
        self.executor = executor or ThreadPoolExecutor(thread_name_prefix="mixpanel-track")
        self.session = session or requests.Session()
        self.timeout = timeout
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        settings: TrackerSettings,
        logger: Any = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> "MixpanelTracker":
        return cls(
            settings.token,
            logger,
            ThreadPoolExecutor(
                max_workers=settings.max_workers,
                thread_name_prefix="mixpanel-track",
            ),
            session=session,
            timeout=settings.timeout,
        )

    @classmethod
    def from_env(
        cls,
        logger: Any = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> "MixpanelTracker":
        return cls.from_settings(TrackerSettings.from_env(environ), logger, session=session)

    @property
    def closed(self) -> bool:
        return self._closed

    def track(
        self,
        event: Optional[str],
        distinct_id: Optional[str],
        name_tag: Optional[str] = None,
        ip: Optional[str] = None,
        time: Optional[Timestamp] = None,
        properties: Optional[Mapping[str, str]] = None,
    ) -> Future:
        """Queue one event.

        ``event`` and ``distinct_id`` are required but only checked once the
        worker picks the event up, so a missing value shows up on the
        returned future rather than here.
        """
        return self.submit(
            TrackingRequest(
                event=event,
                distinct_id=distinct_id,
                name_tag=name_tag,
                ip=ip,
                time=time,
                properties=properties,
            )
        )

    def track_request(
        self,
        event: Optional[str],
        name_tag: Optional[str],
        request: Request,
        cookie_name: str,
        properties: Optional[Mapping[str, str]] = None,
    ) -> Future:
        """Queue an event for the user behind an inbound web request.

        The distinct id comes from the Mixpanel cookie named ``cookie_name``
        (``mp_<cookie_name>`` in the JS snippet's terms). Without a usable
        cookie the client IP stands in for it.
        """
        ip = client_ip(request)
        try:
            distinct_id = read_distinct_id(request, cookie_name)
        except CookieFormatError as exc:
            safe_log(self.logger, "warning", "Mixpanel cookie %s unreadable: %s", cookie_name, exc)
            distinct_id = None
        if distinct_id is None:
            safe_log(
                self.logger,
                "warning",
                "Unique ID for mixpanel cookie name: %s was not found, using IP instead",
                cookie_name,
            )
            distinct_id = ip
        return self.track(event, distinct_id, name_tag=name_tag, ip=ip, properties=properties)

    def submit(self, request: TrackingRequest) -> Future:
        with self._lock:
            if self._closed:
                return self._rejected(request, "tracker is closed")
            try:
                future = self.executor.submit(self._deliver, request)
            except RuntimeError as exc:
                return self._rejected(request, str(exc))
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def close(self) -> None:
        """Stop accepting events; queued and running ones still finish."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.executor.shutdown(wait=False)

    def await_termination(self, timeout: float = DEFAULT_TERMINATION_TIMEOUT) -> bool:
        with self._lock:
            pending = list(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        if not_done:
            safe_log(
                self.logger,
                "warning",
                "Didn't terminate after %s seconds, %d events still pending",
                timeout,
                len(not_done),
            )
            return False
        return True

    def __enter__(self) -> "MixpanelTracker":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
        self.await_termination()

    def __del__(self) -> None:
        # Best effort only; call close() explicitly.
        if getattr(self, "_closed", True):
            return
        executor = getattr(self, "executor", None)
        if executor is not None:
            executor.shutdown(wait=False)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _rejected(self, request: TrackingRequest, reason: str) -> Future:
        safe_log(self.logger, "warning", "Mixpanel event %s rejected: %s", request.event, reason)
        future: Future = Future()
        future.set_exception(TrackerClosedError(f"Mixpanel event rejected: {reason}"))
        return future

    def _deliver(self, request: TrackingRequest) -> bool:
        try:
            message = request.build_message(self.token)
        except ValidationError as exc:
            safe_log(self.logger, "warning", "Mixpanel event not sent: %s", exc)
            raise
        payload = message.to_json()
        safe_log(self.logger, "debug", "Mixpanel message to be sent: %s", payload)
        url = build_url(message)
        safe_log(self.logger, "debug", "Mixpanel URL to call: %s", url)

        try:
            response = self.session.get(url, timeout=self.timeout)
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as exc:
            warning = f"Mixpanel URL is malformed: {exc}"
            safe_log(self.logger, "warning", warning, exc_info=True)
            raise MalformedEndpointError(warning) from exc
        except requests.RequestException as exc:
            warning = f"Mixpanel IO Exception: {exc}"
            safe_log(self.logger, "warning", warning, exc_info=True)
            raise TransportError(warning) from exc

        if response.status_code != 200:
            warning = f"Mixpanel response not 200: {response.status_code}"
            safe_log(self.logger, "warning", warning)
            raise UnexpectedResponseError(warning, status_code=response.status_code)
        body = response.text
        if body != "1":
            warning = (
                f"Mixpanel event not reported successfully. Response Body: {body}"
                f" message: {payload}. url: {url}"
            )
            safe_log(self.logger, "warning", warning)
            raise UnexpectedResponseError(warning, status_code=200, body=body)
        safe_log(self.logger, "debug", "Mixpanel event reported successfully")
        return True
