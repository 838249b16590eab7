from __future__ import annotations

from datetime import time

import pytest

from erpnext_connector.common.settings import DEFAULT_COMPANY_NAME, Settings, get_settings
from fakes import make_settings


@pytest.mark.parametrize(("raw", "expected"), [(0, 1), (2, 2), (10, 3), ("oops", 3)])
def test_retry_attempts_are_clamped(raw, expected):
    assert make_settings(ERPNEXT_RETRY_MAX_ATTEMPTS=raw).erpnext_retry_max_attempts == expected


def test_polling_interval_has_a_one_minute_floor():
    s = make_settings(POLLING_INTERVAL_MINUTES=0.1)

    assert s.polling_interval_minutes == 1.0
    assert s.polling_interval_seconds == 60.0


def test_defaults():
    s = make_settings()

    assert s.company_name == DEFAULT_COMPANY_NAME
    assert s.polling_interval_seconds == 300.0
    assert s.sync_start_time == time(8, 0)
    assert s.sync_stop_time == time(17, 0)


def test_loaded_from_environment(monkeypatch):
    monkeypatch.setenv("SAGE_APPLICATION_ID", "env-app")
    monkeypatch.setenv("ERPNEXT_BASE_URL", "https://erp.example.com")
    monkeypatch.setenv("AUTOMATIC_SYNC", "true")
    monkeypatch.setenv("SYNC_START_TIME", "22:30")
    monkeypatch.setenv("SYNC_STOP_TIME", "05:00")
    get_settings.cache_clear()
    try:
        s = get_settings()
    finally:
        get_settings.cache_clear()

    assert isinstance(s, Settings)
    assert s.application_id == "env-app"
    assert s.automatic_sync is True
    assert s.sync_start_time == time(22, 30)
    assert s.sync_stop_time == time(5, 0)
