from __future__ import annotations

from collections.abc import Callable

from erpnext_connector.common.logging import get_logger
from erpnext_connector.common.settings import VERSION
from erpnext_connector.connector.accounting import Company
from erpnext_connector.connector.events import EventBus
from erpnext_connector.connector.handlers import HandlerFactory
from erpnext_connector.connector.queue import WorkQueue

log = get_logger("queue-drainer")


class QueueDrainer:
    def __init__(self, handler_factory: HandlerFactory, events: EventBus) -> None:
        self._handler_factory = handler_factory
        self._events = events

    def drain(self, queue: WorkQueue, company: Company | None, keep_going: Callable[[], bool]) -> int:
        """Apply queued documents oldest first; returns how many were handled.

        ``keep_going`` is checked before every dequeue, so a session that dies
        mid-drain leaves the rest of the queue untouched.
        """
        log.info("drain_started", version=VERSION, queued=len(queue))
        if queue.empty or company is None or company.is_closed:
            return 0

        handler = self._handler_factory(company)
        handled = 0
        while keep_going():
            document = queue.get()
            if document is None:
                self._events.connector_info("No more documents to process at the moment")
                break
            try:
                handler.handle(document)
            except Exception as e:
                log.error(
                    "document_failed", kind=document.kind.value, number=document.number, error=str(e), exc_info=True
                )
                self._events.connector_info(f"Could not process {document.kind.value} {document.number}. {e}")
            else:
                handled += 1
                log.info("document_handled", kind=document.kind.value, number=document.number)
            self._events.connector_info("Busy")
        else:
            log.info("drain_interrupted", remaining=len(queue))
            self._events.connector_info("Stopped processing documents before the queue was empty")
        return handled
