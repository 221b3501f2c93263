"""
Background sweep of expired CAPTCHA challenges.
Runs independently of request traffic on a fixed interval; verify() and
fetch_image() never depend on it for correctness.
"""
import logging
import threading
from contextlib import nullcontext
from typing import Optional

from services.errors import StoreError

logger = logging.getLogger(__name__)


class CaptchaReclaimer:
    """Periodic reclaim_expired() runner with start/stop and a manual trigger."""

    def __init__(self, service, interval_seconds: float, app=None):
        if interval_seconds <= 0:
            raise ValueError("Reclaim interval must be positive")
        self.service = service
        self.interval_seconds = interval_seconds
        self._app = app
        self._stop_event = threading.Event()
        self._sweep_lock = threading.Lock()
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="captcha-reclaimer", daemon=True
        )
        self._thread.start()
        logger.info("CAPTCHA reclaimer started (every %.0fs)", self.interval_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Cancel the timer and wait for an in-flight sweep to finish."""
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info("CAPTCHA reclaimer stopped")

    def run_once(self) -> Optional[int]:
        """
        Sweep now. Returns the number of records removed, or None when another
        sweep is already in progress. Store errors propagate to the caller.
        """
        if not self._sweep_lock.acquire(blocking=False):
            logger.debug("CAPTCHA sweep already running; skipping")
            return None
        try:
            context = self._app.app_context() if self._app is not None else nullcontext()
            with context:
                return self.service.reclaim_expired()
        finally:
            self._sweep_lock.release()

    def _run(self, stop_event):
        while not stop_event.wait(self.interval_seconds):
            try:
                self.run_once()
            except StoreError as e:
                logger.error("CAPTCHA sweep failed: %s", e)
            except Exception:
                logger.exception("Unexpected error during CAPTCHA sweep")
