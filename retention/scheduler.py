"""
Periodic task runner for the retention jobs.

Each PeriodicTask owns a daemon thread that waits on a stop event between
runs, so cancelling wakes it immediately instead of sleeping out the
interval. A run already in progress is never interrupted.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from scoring.snapshot import utcnow

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Calls func every interval_seconds until cancelled."""

    def __init__(self, name: str, func: Callable[[], Any], interval_seconds: float,
                 run_immediately: bool = False):
        """
        Args:
            name: Identifier used in logs and status
            func: Function to call with no arguments
            interval_seconds: Time between the end of one run and the next
            run_immediately: Whether to run once as soon as started
        """
        self.name = name
        self.func = func
        self.interval = interval_seconds
        self.run_immediately = run_immediately
        self.last_run: Optional[datetime] = None
        self.run_count = 0
        self.last_error: Optional[str] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    def start(self) -> None:
        if self.active:
            logger.warning(f"Task '{self.name}' is already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop, name=f"periodic-{self.name}", daemon=True
        )
        self._thread.start()
        logger.info(f"Started task '{self.name}' with interval {self.interval}s")

    def cancel(self, wait: bool = False, timeout: float = 5.0) -> None:
        """Prevent future runs. With wait, join the thread (an in-flight run finishes first)."""
        self._stop_event.set()
        if wait and self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        logger.info(f"Cancelled task '{self.name}'")

    def _run_loop(self) -> None:
        if not self.run_immediately and self._stop_event.wait(timeout=self.interval):
            return
        while not self._stop_event.is_set():
            self._run_once()
            if self._stop_event.wait(timeout=self.interval):
                return

    def _run_once(self) -> None:
        try:
            logger.debug(f"Running task '{self.name}'")
            self.func()
            self.last_error = None
        except Exception as e:
            logger.error(f"Task '{self.name}' failed: {e}")
            self.last_error = str(e)
        finally:
            self.last_run = utcnow()
            self.run_count += 1

    def status(self) -> Dict[str, Any]:
        return {
            "interval": self.interval,
            "active": self.active,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "last_error": self.last_error,
        }
