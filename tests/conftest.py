from __future__ import annotations

import socket
import threading
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx
import pytest
import uvicorn

from erpnext_connector.common.models import Document
from erpnext_connector.common.settings import Settings
from erpnext_connector.connector.engine import Connector
from erpnext_connector.connector.events import EventBus
from fakes import EventRecorder, FakeSession, FakeSource, FakeTimer, RecordingHandler, make_settings


def get_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return int(s.getsockname()[1])


def run_uvicorn_in_thread(app: Any, port: int) -> tuple[uvicorn.Server, threading.Thread]:
    config = uvicorn.Config(
        app,
        host="127.0.0.1",
        port=port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config=config)
    server.install_signal_handlers = False  # required when running in a thread

    t = threading.Thread(target=server.run, daemon=True)
    t.start()

    # Wait until server is ready
    for _ in range(50):
        try:
            r = httpx.get(f"http://127.0.0.1:{port}/healthz", timeout=1.0)
            if r.status_code == 200:
                break
        except Exception:
            pass
        time.sleep(0.1)
    else:
        server.should_exit = True
        t.join(timeout=2)
        raise RuntimeError("uvicorn did not start")

    return server, t


def stop_uvicorn(server: uvicorn.Server, thread: threading.Thread) -> None:
    server.should_exit = True
    thread.join(timeout=5)


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def events() -> EventBus:
    return EventBus()


@pytest.fixture()
def recorder(events: EventBus) -> EventRecorder:
    return EventRecorder(events)


@pytest.fixture()
def handled() -> list[Document]:
    return []


@pytest.fixture()
def connector_factory(events: EventBus, handled: list[Document]) -> Callable[..., Connector]:
    def build(
        settings: Settings | None = None,
        session: FakeSession | None = None,
        source: FakeSource | None = None,
        now: datetime | None = None,
        fail_on: set[str] | None = None,
        online: bool = True,
    ) -> Connector:
        settings = settings or make_settings()
        session = session or FakeSession()
        return Connector(
            session_factory=lambda: session,
            settings_loader=lambda: settings,
            source=source or FakeSource(),
            handler_factory=lambda company: RecordingHandler(company, handled, fail_on),
            events=events,
            connectivity_probe=lambda: online,
            clock=lambda: now or datetime(2024, 3, 4, 12, 30),
            timer_factory=FakeTimer,
        )

    return build
