"""Background I/O for the dashboard.

The event loop hands requests to ``IoWorker`` through a small bounded
queue and never waits on it. Results come back as reducer messages on the
inbound channel the loop drains between key presses.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from queue import Full, Queue

from .errors import FetchError
from .fetch import DEFAULT_URL, load_fallback, load_status
from .state import FetchFailed, ItemsLoaded, Message

logger = logging.getLogger(__name__)

REQUEST_QUEUE_SIZE = 4


@dataclass(frozen=True)
class FetchStatus:
    """Request a fresh mirror status snapshot."""

    url: str = DEFAULT_URL
    ttl_hours: int = 24
    countries: tuple[str, ...] = ()
    cache_dir: Path | None = None


IoEvent = FetchStatus


class IoWorker:
    """Single background thread serving I/O requests in order."""

    def __init__(self, inbound: "Queue[Message]", maxsize: int = REQUEST_QUEUE_SIZE) -> None:
        self._inbound = inbound
        self._requests: Queue[IoEvent | None] = Queue(maxsize=maxsize)
        self._thread: threading.Thread | None = None
        self._closed = False

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="mirro-io", daemon=True)
        self._thread.start()

    def submit(self, event: IoEvent) -> str | None:
        """Queue event without blocking.

        Returns None on success, otherwise the reason it was refused.
        """
        if self._closed:
            return "I/O worker is closed"
        try:
            self._requests.put_nowait(event)
        except Full:
            return "I/O request queue is full"
        return None

    def close(self) -> None:
        self._closed = True
        try:
            self._requests.put_nowait(None)
        except Full:
            logger.debug("request queue full while closing; worker exits with the process")

    def _run(self) -> None:
        while True:
            event = self._requests.get()
            if event is None:
                return
            self.handle(event)

    def handle(self, event: IoEvent) -> None:
        """Serve one request and post its result messages."""
        if isinstance(event, FetchStatus):
            self._fetch(event)
        else:
            logger.warning("unknown I/O event %r", event)

    def _fetch(self, event: FetchStatus) -> None:
        try:
            status = load_status(
                event.url,
                ttl_hours=event.ttl_hours,
                countries=event.countries,
                cache_dir=event.cache_dir,
            )
        except FetchError as e:
            self._inbound.put(FetchFailed(str(e)))
            self._inbound.put(ItemsLoaded(load_fallback(event.countries), source="fallback"))
            return
        self._inbound.put(ItemsLoaded(status, source="remote"))
