"""Status notifications for whatever presents the connector to an operator.

Five independent channels, each carrying one line of text.  Subscribers are
plain callables; a failing subscriber is logged and skipped so it can never
break a synchronization cycle.
"""
from __future__ import annotations

import threading
from collections.abc import Callable
from enum import Enum

from erpnext_connector.common.logging import get_logger

log = get_logger("event-bus")

Subscriber = Callable[["Channel", str], None]


class Channel(str, Enum):
    CONNECTOR_STARTED = "connector_started"
    CONNECTOR_STOPPED = "connector_stopped"
    ACCOUNTING_INFO = "accounting_info"
    CONNECTOR_INFO = "connector_info"
    LOGIN_STATE_CHANGED = "login_state_changed"


class EventBus:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[Channel, list[Subscriber]] = {c: [] for c in Channel}

    def subscribe(self, channel: Channel, fn: Subscriber) -> Callable[[], None]:
        """Register ``fn`` on ``channel``; returns a callable that unsubscribes it."""
        with self._lock:
            self._subscribers[channel].append(fn)

        def unsubscribe() -> None:
            with self._lock:
                if fn in self._subscribers[channel]:
                    self._subscribers[channel].remove(fn)

        return unsubscribe

    def subscribe_all(self, fn: Subscriber) -> None:
        for channel in Channel:
            self.subscribe(channel, fn)

    def emit(self, channel: Channel, text: str = "") -> None:
        with self._lock:
            subscribers = list(self._subscribers[channel])
        for fn in subscribers:
            try:
                fn(channel, text)
            except Exception as e:
                log.error("subscriber_failed", channel=channel.value, error=str(e), exc_info=True)

    # Convenience emitters, one per channel.

    def connector_started(self, text: str = "Connector started") -> None:
        self.emit(Channel.CONNECTOR_STARTED, text)

    def connector_stopped(self, text: str = "Connector stopped") -> None:
        self.emit(Channel.CONNECTOR_STOPPED, text)

    def accounting_info(self, text: str) -> None:
        self.emit(Channel.ACCOUNTING_INFO, text)

    def connector_info(self, text: str) -> None:
        self.emit(Channel.CONNECTOR_INFO, text)

    def login_state(self, text: str) -> None:
        self.emit(Channel.LOGIN_STATE_CHANGED, text)
