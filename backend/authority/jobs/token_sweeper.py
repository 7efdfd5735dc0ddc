"""Periodic deletion of expired token records."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import AbstractContextManager, nullcontext
from typing import TYPE_CHECKING

from authority.core.logger import correlation_scope

if TYPE_CHECKING:
    from flask import Flask

    from authority.services.tokens.service import TokenService

LOGGER = logging.getLogger(__name__)


class TokenSweeper:
    """
    Run :meth:`TokenService.sweep_expired` every ``interval`` seconds on one
    background thread.

    A run that starts while the previous one is still going is skipped, not
    queued. Errors are logged and the loop keeps going.

    :param tokens: Token service to sweep with.
    :param interval: Seconds between runs.
    :param app: Flask app whose context wraps each run (needed by the SQL store).
    """

    def __init__(
        self, tokens: TokenService, *, interval: float = 3600, app: Flask | None = None
    ) -> None:
        if interval <= 0:
            raise ValueError("Sweep interval must be positive.")
        self.tokens = tokens
        self.interval = interval
        self.app = app
        self._running = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # ------------------------------------------------------------------ #
    # Single run
    # ------------------------------------------------------------------ #

    def run_once(self) -> int | None:
        """
        Sweep now.

        :returns: Number of deleted records, or ``None`` when skipped because
            a run was already in progress or the run failed.
        """
        if not self._running.acquire(blocking=False):
            LOGGER.info("token sweep skipped: previous run still in progress")
            return None
        try:
            with correlation_scope(), self._app_context():
                started = time.perf_counter()
                try:
                    count = self.tokens.sweep_expired()
                except Exception:
                    LOGGER.exception("token sweep failed")
                    return None
                LOGGER.info(
                    "token sweep finished",
                    extra={
                        "count": count,
                        "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
                    },
                )
                return count
        finally:
            self._running.release()

    # ------------------------------------------------------------------ #
    # Background loop
    # ------------------------------------------------------------------ #

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread (no-op when already running)."""
        if self.is_alive:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="token-sweeper", daemon=True)
        self._thread.start()
        LOGGER.info("token sweeper started (every %ss)", self.interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        LOGGER.info("token sweeper stopped")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until :meth:`stop` is called. :returns: Whether it was."""
        return self._stop.wait(timeout)

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()

    def _app_context(self) -> AbstractContextManager[object]:
        if self.app is None:
            return nullcontext()
        return self.app.app_context()
