from __future__ import annotations

import argparse
import signal
import threading
from typing import Any

from erpnext_connector.common.logging import configure_logging, get_logger
from erpnext_connector.common.settings import VERSION, Settings, get_settings
from erpnext_connector.common.utils import load_object
from erpnext_connector.connector.engine import Connector
from erpnext_connector.connector.events import Channel
from erpnext_connector.connector.handlers import HandlerFactory, LoggingDocumentHandler

log = get_logger("connector-service")


def _log_event(channel: Channel, text: str) -> None:
    log.info("event", channel=channel.value, text=text)


def build_connector(settings: Settings) -> Connector:
    if not settings.accounting_session_factory:
        raise SystemExit("ACCOUNTING_SESSION_FACTORY is not set (expected 'module:callable')")
    session_factory: Any = load_object(settings.accounting_session_factory)
    handler_factory: HandlerFactory = LoggingDocumentHandler
    if settings.document_handler_factory:
        handler_factory = load_object(settings.document_handler_factory)
    else:
        log.warning("dry_run_handler", reason="DOCUMENT_HANDLER_FACTORY is not set")

    connector = Connector(
        session_factory=session_factory,
        settings_loader=Settings,
        handler_factory=handler_factory,
    )
    connector.events.subscribe_all(_log_event)
    return connector


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Synchronize ERPNext documents into Sage 50.")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--manual", action="store_true", help="run one manual cycle (bulk endpoints, no time window) and exit")
    mode.add_argument("--once", action="store_true", help="run one scheduled cycle (time window applies) and exit")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_file)
    log.info("connector_service_started", version=VERSION, env=settings.connector_env)

    connector = build_connector(settings)
    try:
        if args.manual:
            connector.manual_sync().result()
            return
        if args.once:
            connector.start()
            connector.on_timer()
            return

        stop_requested = threading.Event()

        def _handle_signal(signum: int, _frame: Any) -> None:
            log.info("signal_received", signal=signum)
            stop_requested.set()

        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

        connector.start()
        stop_requested.wait()
    finally:
        connector.close()


if __name__ == "__main__":
    main()
