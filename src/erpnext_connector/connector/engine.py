"""The connector: keeps a Sage 50 session authorized and replays ERPNext documents into it.

One synchronization cycle runs at a time.  Scheduled ticks skip when a cycle
is already in progress; manual cycles run on a single background worker and
wait their turn on the same lock.
"""
from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime

from erpnext_connector.common.erpnext_client import ErpNextClient
from erpnext_connector.common.logging import get_logger
from erpnext_connector.common.settings import Settings, get_settings
from erpnext_connector.common.utils import is_connected_to_internet
from erpnext_connector.connector.accounting import AccountingSession
from erpnext_connector.connector.drainer import QueueDrainer
from erpnext_connector.connector.events import EventBus
from erpnext_connector.connector.fetcher import DocumentFetcher, DocumentSource
from erpnext_connector.connector.handlers import HandlerFactory, LoggingDocumentHandler
from erpnext_connector.connector.queue import WorkQueue
from erpnext_connector.connector.session import SessionManager
from erpnext_connector.connector.timer import RecurringTimer
from erpnext_connector.connector.window import gate_allows, is_within_time_range

log = get_logger("connector")

TimerFactory = Callable[[float, Callable[[], None]], RecurringTimer]


class Connector:
    def __init__(
        self,
        session_factory: Callable[[], AccountingSession],
        settings_loader: Callable[[], Settings] = get_settings,
        source: DocumentSource | None = None,
        handler_factory: HandlerFactory | None = None,
        events: EventBus | None = None,
        connectivity_probe: Callable[[], bool] | None = None,
        clock: Callable[[], datetime] = datetime.now,
        timer_factory: TimerFactory = RecurringTimer,
    ) -> None:
        settings = settings_loader()
        self._settings_loader = settings_loader
        self._clock = clock
        self._timer_factory = timer_factory
        self._owned_client: ErpNextClient | None = None
        if source is None:
            source = self._owned_client = ErpNextClient(settings)
        if connectivity_probe is None:
            connectivity_probe = functools.partial(
                is_connected_to_internet,
                settings.connectivity_probe_host,
                settings.connectivity_probe_port,
                settings.connectivity_probe_timeout,
            )

        self.events = events or EventBus()
        self.sessions = SessionManager(session_factory, self.events, settings.company_name, settings.company_file)
        self.queue = WorkQueue()
        self.fetcher = DocumentFetcher(source, self.events, connectivity_probe)
        self.drainer = QueueDrainer(handler_factory or LoggingDocumentHandler, self.events)

        self._can_request = False
        self._timer: RecurringTimer | None = None
        self._cycle_lock = threading.RLock()
        self._manual_pool: ThreadPoolExecutor | None = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    @property
    def can_request(self) -> bool:
        return self._can_request

    # -- lifecycle ------------------------------------------------------------

    def start(self) -> None:
        if self._timer is not None:
            log.warning("connector_already_running")
            return
        settings = self._settings_loader()
        with self._cycle_lock:
            self._can_request = True
            log.info("connector_starting", can_request=self._can_request)
            self.sessions.open_session(settings.application_id)
            self.sessions.discover_and_open_company()
        self._start_timer(settings)

    def _start_timer(self, settings: Settings) -> None:
        self._timer = self._timer_factory(settings.polling_interval_seconds, self.on_timer)
        self._timer.start()
        minutes = settings.polling_interval_minutes
        self.events.connector_started()
        log.info("timer_started", interval_minutes=minutes)
        self.events.accounting_info(f"Documents will be synchronized in {minutes:g} minutes")

    def stop(self) -> None:
        """Stop polling and release Sage 50.  Safe to call at any point, including mid-cycle."""
        self._can_request = False
        log.info("connector_stopping")
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()
        # Waits for an in-flight document to finish; the cycle then sees can_request=False.
        with self._cycle_lock:
            abandoned = self.queue.reset()
            if abandoned:
                log.info("queue_abandoned", count=len(abandoned))
            self.sessions.close_company()
            self.sessions.close_session()
        log.debug("timer_stopped")
        self.events.connector_stopped()
        self.events.connector_info("Connector has cleaned up its connection to Sage 50 and is now idling")

    def close(self) -> None:
        self.stop()
        if self._manual_pool is not None:
            self._manual_pool.shutdown(wait=True)
            self._manual_pool = None
        if self._owned_client is not None:
            self._owned_client.close()

    # -- scheduling -----------------------------------------------------------

    def on_timer(self) -> None:
        settings = self._settings_loader()
        start, end = settings.sync_start_time, settings.sync_stop_time
        now = self._clock()
        within = is_within_time_range(now, start, end)
        log.info(
            "tick",
            can_request=self._can_request,
            automatic_sync=settings.automatic_sync,
            within_time_range=within,
        )
        if not gate_allows(self._can_request, settings.automatic_sync, now, start, end):
            message = f"Connector is idling till {start:%H:%M}" if self._can_request else "Connector is stopped"
            self.events.connector_info(message)
            return

        if not self._cycle_lock.acquire(blocking=False):
            log.warning("tick_skipped_busy")
            self.events.connector_info("Previous synchronization is still running")
            return
        try:
            self.sync(manual=False)
        finally:
            self._cycle_lock.release()

    def manual_sync(self) -> Future:
        """Run one cycle in the background, ignoring the time window."""
        self._can_request = True
        log.info("manual_sync_requested")
        if self._manual_pool is None:
            self._manual_pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="manual-sync")
        return self._manual_pool.submit(self._manual_cycle)

    def _manual_cycle(self) -> None:
        with self._cycle_lock:
            if not self._can_request:
                log.info("manual_sync_cancelled")
                return
            self.sync(manual=True)

    # -- cycle ----------------------------------------------------------------

    def _keep_going(self) -> bool:
        return self._can_request and self.sessions.session_active

    def sync(self, manual: bool = False) -> None:
        with self._cycle_lock:
            try:
                self._run_cycle(manual)
            except Exception as e:
                log.error("cycle_failed", manual=manual, error=str(e), exc_info=True)
                self.events.connector_info(f"Something went wrong. {e}")

    def _run_cycle(self, manual: bool) -> None:
        self.events.connector_info("Synchronization in progress...")
        if self._can_request and not self.sessions.session_active:
            # Sage 50 was not running at start-up, or the session was lost since.
            self.sessions.open_session(self._settings_loader().application_id)
        if not self.sessions.company_open:
            self.sessions.discover_and_open_company()
        else:
            log.debug("company_already_open")

        company = self.sessions.company
        if not self.sessions.session_active or company is None:
            log.debug("cycle_preconditions_unmet", **self.sessions.describe())
            return
        if company.is_closed:
            self.events.connector_info("Could not fetch data because company is closed")
            log.debug("company_closed", **self.sessions.describe())
            return

        if not self.queue.empty:
            dropped = self.queue.reset()
            log.warning("queue_reset", dropped=len(dropped), hint="consider increasing the poll interval")
            self.events.connector_info("New documents are available so document queue has been reset.")

        self.fetcher.fetch_all(self.queue, manual=manual, keep_going=self._keep_going)
        self.drainer.drain(self.queue, company, self._keep_going)
