from __future__ import annotations

from datetime import time
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VERSION = "1.5.1"
DEFAULT_COMPANY_NAME = "Electro-Comp Tape & Reel Services, LLC"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    connector_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="CONNECTOR_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str = Field(default="", alias="LOG_FILE")

    # --- Sage 50 ---
    application_id: str = Field(alias="SAGE_APPLICATION_ID")
    company_name: str = Field(default=DEFAULT_COMPANY_NAME, alias="SAGE_COMPANY_NAME")
    company_file: str = Field(default="", alias="SAGE_COMPANY_FILE")
    accounting_session_factory: str = Field(default="", alias="ACCOUNTING_SESSION_FACTORY")
    document_handler_factory: str = Field(default="", alias="DOCUMENT_HANDLER_FACTORY")

    # --- ERPNext ---
    erpnext_base_url: str = Field(alias="ERPNEXT_BASE_URL")
    erpnext_app: str = Field(default="electro_erpnext", alias="ERPNEXT_APP")
    erpnext_api_key: str = Field(default="", alias="ERPNEXT_API_KEY")
    erpnext_api_secret: str = Field(default="", alias="ERPNEXT_API_SECRET")
    erpnext_timeout_seconds: float = Field(default=30.0, alias="ERPNEXT_TIMEOUT_SECONDS")
    erpnext_retry_max_attempts: int = Field(default=3, alias="ERPNEXT_RETRY_MAX_ATTEMPTS")
    erpnext_retry_base_seconds: float = Field(default=0.5, alias="ERPNEXT_RETRY_BASE_SECONDS")
    erpnext_retry_max_seconds: float = Field(default=10.0, alias="ERPNEXT_RETRY_MAX_SECONDS")

    # --- Schedule ---
    polling_interval_minutes: float = Field(default=5.0, alias="POLLING_INTERVAL_MINUTES")
    automatic_sync: bool = Field(default=False, alias="AUTOMATIC_SYNC")
    sync_start_time: time = Field(default=time(8, 0), alias="SYNC_START_TIME")
    sync_stop_time: time = Field(default=time(17, 0), alias="SYNC_STOP_TIME")

    connectivity_probe_host: str = Field(default="google.com", alias="CONNECTIVITY_PROBE_HOST")
    connectivity_probe_port: int = Field(default=443, alias="CONNECTIVITY_PROBE_PORT")
    connectivity_probe_timeout: float = Field(default=3.0, alias="CONNECTIVITY_PROBE_TIMEOUT")

    @field_validator("erpnext_retry_max_attempts", mode="before")
    @classmethod
    def _clamp_erpnext_retry_max_attempts(cls, value: object) -> int:
        """Keep ERPNext retries within 1..3 so a cycle never stalls on one endpoint."""
        try:
            attempts = int(value)
        except Exception:
            return 3
        if attempts < 1:
            return 1
        return min(attempts, 3)

    @field_validator("polling_interval_minutes", mode="before")
    @classmethod
    def _clamp_polling_interval(cls, value: object) -> float:
        """Poll at most once a minute."""
        try:
            minutes = float(value)
        except Exception:
            return 5.0
        return max(minutes, 1.0)

    @property
    def polling_interval_seconds(self) -> float:
        return self.polling_interval_minutes * 60.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
