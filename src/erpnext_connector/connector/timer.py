from __future__ import annotations

import threading
from collections.abc import Callable

from erpnext_connector.common.logging import get_logger

log = get_logger("timer")


class RecurringTimer:
    """Calls ``callback`` every ``interval`` seconds on one daemon thread.

    The callback runs synchronously on the timer thread, so a slow callback
    delays the next tick instead of overlapping it.  Exceptions are logged
    and the timer keeps going.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "sync-timer") -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._callback = callback
        self._name = name
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("timer already started")
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self._callback()
            except Exception as e:
                log.error("timer_callback_failed", timer=self._name, error=str(e), exc_info=True)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stopped.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
