"""Dashboard event loop.

One thread owns ``AppState``. Key presses are read by a helper thread
(``readchar.readkey`` blocks) and queued; background work posts finished
results on a separate inbound channel. Each turn of the loop handles at
most one key, then drains whatever background results are ready, then
ticks and redraws.
"""

from __future__ import annotations

import contextlib
import logging
import os
import sys
import threading
from pathlib import Path
from queue import Empty, Queue
from typing import Callable

import readchar
from rich.console import Console
from rich.live import Live

from .config import Configuration, get_cache_dir
from .keys import classify
from .render import render, viewport_height
from .state import (
    AppState,
    DispatchFailed,
    FetchRequested,
    KeyPressed,
    Message,
    Outcome,
    Resized,
    Tick,
    initial_state,
    reduce,
    view_model,
)
from .theme import set_theme
from .watch import ConfigWatcher
from .worker import FetchStatus, IoEvent, IoWorker

logger = logging.getLogger(__name__)

DEFAULT_TICK_RATE = 0.25

_INTERRUPT = object()


@contextlib.contextmanager
def _restore_terminal():
    """Put the tty back the way we found it, even if the key reader is mid-read."""
    if os.name != "posix" or not sys.stdin.isatty():
        yield
        return
    import termios

    fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


class Dashboard:
    """Runs one interactive session and returns its final state."""

    def __init__(
        self,
        configuration: Configuration,
        console: Console | None = None,
        read_key: Callable[[], str] = readchar.readkey,
        tick_rate: float = DEFAULT_TICK_RATE,
        cache_dir: Path | None = None,
    ) -> None:
        self.configuration = configuration
        self.console = console or Console(highlight=False)
        self.tick_rate = tick_rate
        self.cache_dir = cache_dir if cache_dir is not None else get_cache_dir()
        self.inbound: Queue[Message] = Queue()
        self.keys: Queue = Queue()
        self.worker = IoWorker(self.inbound)
        self.watcher = (
            ConfigWatcher(
                configuration.config_path,
                self.inbound,
                overrides=dict(configuration.overrides),
            )
            if configuration.config_path is not None
            else None
        )
        self.state: AppState = initial_state(
            filters=configuration.filters,
            view=configuration.view,
            export=configuration.export_settings,
        )
        self._read_key = read_key

    # ── state updates ──

    def handle(self, message: Message) -> Outcome:
        transition = reduce(self.state, message)
        self.state = transition.state
        return transition.outcome

    def dispatch(self, event: IoEvent) -> None:
        """Hand event to the I/O worker; failures degrade, never abort."""
        self.handle(FetchRequested())
        reason = self.worker.submit(event)
        if reason is not None:
            self.handle(DispatchFailed(reason))

    def drain(self) -> Outcome:
        """Apply every background result that is already waiting."""
        while True:
            try:
                message = self.inbound.get_nowait()
            except Empty:
                return Outcome.CONTINUE
            if self.handle(message) is Outcome.EXIT:
                return Outcome.EXIT

    def sync_viewport(self) -> None:
        height = viewport_height(self.console.size.height)
        if height != self.state.viewport_height:
            self.handle(Resized(height))

    def step(self, timeout: float | None = None) -> Outcome:
        """Handle one key (waiting up to timeout), then background results, then a tick."""
        try:
            raw = self.keys.get(timeout=timeout) if timeout else self.keys.get_nowait()
        except Empty:
            raw = None
        if raw is _INTERRUPT:
            raise KeyboardInterrupt
        if raw is not None:
            if self.handle(KeyPressed(classify(raw))) is Outcome.EXIT:
                return Outcome.EXIT
        if self.drain() is Outcome.EXIT:
            return Outcome.EXIT
        return self.handle(Tick())

    # ── threads ──

    def _read_keys(self) -> None:
        while True:
            try:
                raw = self._read_key()
            except (KeyboardInterrupt, EOFError):
                logger.debug("key reader interrupted")
                self.keys.put(_INTERRUPT)
                return
            self.keys.put(raw)

    def _fetch_request(self) -> FetchStatus:
        return FetchStatus(
            url=self.configuration.url,
            ttl_hours=self.configuration.ttl,
            countries=self.configuration.countries,
            cache_dir=self.cache_dir,
        )

    def run(self) -> AppState:
        """Run until the user quits; returns the final state."""
        set_theme()
        logger.info("session started (config %s)", self.configuration.config_path)
        self.worker.start()
        if self.watcher is not None:
            self.watcher.start()
        try:
            # The tty is saved before the reader thread can switch it to raw mode.
            with _restore_terminal():
                threading.Thread(target=self._read_keys, name="mirro-keys", daemon=True).start()
                self.dispatch(self._fetch_request())
                with Live(
                    console=self.console,
                    screen=True,
                    auto_refresh=False,
                    transient=True,
                ) as live:
                    while True:
                        self.sync_viewport()
                        model = view_model(self.state)
                        live.update(render(model, width=self.console.size.width), refresh=True)
                        if self.step(self.tick_rate) is Outcome.EXIT:
                            break
        finally:
            self.worker.close()
            if self.watcher is not None:
                self.watcher.stop()
        return self.state
