"""Poll-based config file watching.

Compares a cheap stat signature of the config file on an interval and,
when it changes, reloads the export settings and posts them to the
dashboard's inbound channel.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from queue import Queue
from typing import Any, Mapping

from .config import load_configuration
from .errors import ConfigError
from .state import ConfigReloaded, Message

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0


def stat_signature(path: Path) -> tuple[str, int, int]:
    """Return a stable tuple describing ``path`` existence and metadata."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return ("missing", 0, 0)
    except OSError:
        return ("error", 0, 0)
    return ("ok", st.st_mtime_ns, st.st_size)


class ConfigWatcher:
    """Background thread reloading the config file when it changes.

    Command line overrides are re-applied on every reload so they keep
    winning over the file.
    """

    def __init__(
        self,
        path: Path,
        inbound: "Queue[Message]",
        overrides: Mapping[str, Any] | None = None,
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        self.path = path
        self.overrides = dict(overrides or {})
        self.interval = interval
        self._inbound = inbound
        self._signature = stat_signature(path)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def poll(self) -> bool:
        """Check the file once; post a reload when it changed.

        Returns True if a reload was posted.
        """
        signature = stat_signature(self.path)
        if signature == self._signature:
            return False
        self._signature = signature
        try:
            configuration = load_configuration(self.path, self.overrides)
        except ConfigError as e:
            logger.warning("config change ignored: %s", e)
            return False
        logger.info("config changed: %s", self.path)
        self._inbound.put(ConfigReloaded(configuration.export_settings))
        return True

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="mirro-watch", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval * 2)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.poll()
