from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import httpx

from erpnext_connector.common.erpnext_client import ErpNextError, PullResponse
from erpnext_connector.common.logging import get_logger
from erpnext_connector.common.models import DOCUMENT_KINDS, DocumentKind, make_document
from erpnext_connector.connector.events import EventBus
from erpnext_connector.connector.queue import WorkQueue

log = get_logger("document-fetcher")


class DocumentSource(Protocol):
    def pull(self, kind: DocumentKind, bulk: bool = False) -> PullResponse: ...


class DocumentFetcher:
    """Pulls purchase orders, sales orders and sales invoices from ERPNext into the queue.

    A kind that fails or comes back empty is reported and skipped; the other
    kinds are still fetched.
    """

    def __init__(
        self,
        source: DocumentSource,
        events: EventBus,
        connectivity_probe: Callable[[], bool] | None = None,
    ) -> None:
        self._source = source
        self._events = events
        self._probe = connectivity_probe

    def check_connectivity(self) -> bool:
        if self._probe is None:
            return True
        if not self._probe():
            log.info("internet_unreachable")
            self._events.login_state("Logged in but this computer might not be connected to the internet")
            return False
        log.info("internet_reachable")
        self._events.accounting_info("Internet seems to be ok...")
        return True

    def fetch_kind(self, kind: DocumentKind, queue: WorkQueue, manual: bool = False) -> int:
        log.info("fetch_started", kind=kind.value, manual=manual)
        response: PullResponse | None
        try:
            response = self._source.pull(kind, bulk=manual)
        except (ErpNextError, httpx.HTTPError) as e:
            log.warning(
                "fetch_failed",
                kind=kind.value,
                status_code=getattr(e, "status_code", None),
                error=str(e),
            )
            response = None

        if response is not None:
            log.debug(
                "erpnext_response",
                kind=kind.value,
                status_code=response.status_code,
                error_message=response.error_message,
                content_length=response.content_length,
            )
        if response is None or response.message is None:
            self._events.connector_info("The server did not return data successfully")
            return 0

        added = queue.extend(make_document(kind, item) for item in response.message)
        self._events.connector_info(f"ERPNext sent {added} {kind.label}.")
        return added

    def fetch_all(
        self,
        queue: WorkQueue,
        manual: bool = False,
        keep_going: Callable[[], bool] | None = None,
    ) -> int:
        """Fetch every kind in order; returns the number of documents queued."""
        self.check_connectivity()
        total = 0
        for kind in DOCUMENT_KINDS:
            if keep_going is not None and not keep_going():
                log.info("fetch_interrupted", next_kind=kind.value)
                break
            total += self.fetch_kind(kind, queue, manual=manual)
        return total
