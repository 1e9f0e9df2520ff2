"""
Flush scheduling: decides when the user table is written to disk.

Triggers are independent and may overlap:

- write-through: a store listener flushes after every successful mutation;
- interval: a daemon thread flushes every N seconds;
- signal: request_flush() (wired to SIGHUP by install_signal_handler) wakes a
  worker thread that performs one flush per wake-up;
- shutdown: stop() always attempts one final flush.

Every flush reads the table under the store's shared lock, so each one sees a
consistent snapshot. Redundant concurrent flushes are not deduplicated.
"""

from __future__ import annotations

import logging
import signal
import threading
from typing import Any

from userstore.core.errors import PersistenceSaveError
from userstore.domain.flush_policy import FlushMode, FlushPolicy
from userstore.repositories.json_storage import JSONStorage
from userstore.repositories.user_store import UserStore

logger = logging.getLogger(__name__)

DEFAULT_STOP_TIMEOUT = 5.0
# Flushes that run rarely enough to log at INFO.
_ANNOUNCED_REASONS = {"signal", "shutdown", "manual"}


class FlushScheduler:
    """Runs the background flush triggers for one store/file pair."""

    def __init__(self, store: UserStore, storage: JSONStorage, policy: FlushPolicy | None = None) -> None:
        self.store = store
        self.storage = storage
        self.policy = policy or FlushPolicy.manual()

        self._stopping = threading.Event()
        self._flush_requested = threading.Event()
        self._threads: list[threading.Thread] = []
        self._state_lock = threading.Lock()
        self._started = False
        self._stopped = False

        self._previous_handlers: dict[int, Any] = {}

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    # -------------------------- flushing --------------------------
    def flush(self, reason: str = "manual") -> int:
        """Write the store to disk now. Raises PersistenceSaveError on failure."""
        saved = self.store.save_to(self.storage)
        level = logging.INFO if reason in _ANNOUNCED_REASONS else logging.DEBUG
        logger.log(
            level,
            "Flushed %d users to %s (%s)", saved, self.storage.path, reason,
            extra={"count": saved, "reason": reason, "path": str(self.storage.path)},
        )
        return saved

    def _flush_logged(self, reason: str) -> bool:
        try:
            self.flush(reason)
        except PersistenceSaveError as exc:
            logger.warning(
                "Flush (%s) failed: %s", reason, exc,
                extra={"reason": reason, "path": exc.path},
            )
            return False
        except Exception:
            logger.exception("Unexpected error during flush (%s)", reason, extra={"reason": reason})
            return False
        return True

    def request_flush(self) -> None:
        """Ask the signal worker for one flush. Safe to call from a signal handler."""
        self._flush_requested.set()

    # -------------------------- lifecycle --------------------------
    def start(self) -> None:
        with self._state_lock:
            if self._started:
                return
            if self._stopped:
                raise RuntimeError("FlushScheduler cannot be restarted after stop()")
            self._started = True

        if self.policy.mode is FlushMode.WRITE_THROUGH:
            self.store.add_listener(self._on_mutation)
        elif self.policy.mode is FlushMode.INTERVAL:
            self._spawn("userstore-flush-interval", self._interval_loop)
        self._spawn("userstore-flush-signal", self._signal_loop)
        logger.info(
            "Flush scheduler started (policy=%s)", self.policy.describe(),
            extra={"policy": self.policy.describe()},
        )

    def stop(self, timeout: float = DEFAULT_STOP_TIMEOUT) -> bool:
        """
        Stop the background triggers and attempt one final flush.

        Returns whether the final flush succeeded; failures are only logged
        since the process is on its way out.
        """
        with self._state_lock:
            if self._stopped:
                return True
            self._stopped = True

        self.restore_signal_handlers()
        self.store.remove_listener(self._on_mutation)
        self._stopping.set()
        self._flush_requested.set()
        for thread in self._threads:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Thread %s did not stop within %.1fs", thread.name, timeout)
        self._threads.clear()

        ok = self._flush_logged("shutdown")
        logger.info("Flush scheduler stopped", extra={"reason": "shutdown"})
        return ok

    # -------------------------- signals --------------------------
    def install_signal_handler(self, signum: int | None = None) -> bool:
        """
        Route ``signum`` (SIGHUP by default) to request_flush().

        Python only accepts signal handlers from the main thread; elsewhere,
        or on platforms without the signal, nothing is installed.
        """
        if signum is None:
            signum = getattr(signal, "SIGHUP", None)
        if not self._install(signum, self._flush_signal_handler):
            return False
        logger.info("Flush on signal %s enabled", signal.Signals(signum).name)
        return True

    def install_quit_handler(self, signum: int | None = None, target: int = signal.SIGTERM) -> bool:
        """
        Turn ``signum`` (SIGQUIT by default) into ``target`` so the server
        shuts down gracefully, with the final flush, instead of dumping core.
        """
        if signum is None:
            signum = getattr(signal, "SIGQUIT", None)
        if not self._install(signum, lambda _signum, _frame: signal.raise_signal(target)):
            return False
        logger.info(
            "Signal %s stops the server like %s",
            signal.Signals(signum).name, signal.Signals(target).name,
        )
        return True

    def restore_signal_handlers(self) -> None:
        if not self._previous_handlers:
            return
        if threading.current_thread() is threading.main_thread():
            for signum, previous in self._previous_handlers.items():
                signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous_handlers.clear()

    def _install(self, signum: int | None, handler) -> bool:
        if signum is None:
            logger.info("Signal not available on this platform")
            return False
        if threading.current_thread() is not threading.main_thread():
            logger.info("Not in the main thread, handler for signal %s not installed", signum)
            return False
        previous = signal.signal(signum, handler)
        self._previous_handlers.setdefault(signum, previous)
        return True

    def _flush_signal_handler(self, signum: int, frame: Any) -> None:
        # No logging or I/O here; the worker thread does the flush.
        self.request_flush()

    # -------------------------- workers --------------------------
    def _spawn(self, name: str, target) -> None:
        thread = threading.Thread(target=target, name=name, daemon=True)
        self._threads.append(thread)
        thread.start()

    def _on_mutation(self, operation: str) -> None:
        self._flush_logged(f"write-through:{operation}")

    def _interval_loop(self) -> None:
        while not self._stopping.wait(self.policy.interval):
            self._flush_logged("interval")

    def _signal_loop(self) -> None:
        while True:
            self._flush_requested.wait()
            if self._stopping.is_set():
                return
            self._flush_requested.clear()
            self._flush_logged("signal")
