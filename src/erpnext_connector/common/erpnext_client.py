from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from erpnext_connector.common.logging import get_logger
from erpnext_connector.common.models import DocumentKind
from erpnext_connector.common.settings import Settings

log = get_logger("erpnext-client")


class ErpNextError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ErpNextServerError(ErpNextError):
    pass


# (default method, bulk method, extra query params for bulk)
_METHODS: dict[DocumentKind, tuple[str, str | None, dict[str, Any] | None]] = {
    DocumentKind.PURCHASE_ORDER: ("purchase_order.get_purchase_orders_for_sage", None, None),
    DocumentKind.SALES_ORDER: (
        "sales_order.get_sales_orders_for_sage",
        "sales_order.get_many_sales_orders_for_sage",
        None,
    ),
    DocumentKind.SALES_INVOICE: (
        "sales_invoice.get_sales_invoices_for_sage",
        "sales_invoice.get_many_sales_invoices_for_sage",
        {"manual": 1},
    ),
}


@dataclass(frozen=True)
class PullResponse:
    status_code: int
    error_message: str | None
    content_length: int
    message: list[Any] | None

    @property
    def count(self) -> int:
        return len(self.message) if self.message is not None else 0


def _extract_message(body: Any) -> list[Any] | None:
    if not isinstance(body, dict):
        return None
    message = body.get("message", body.get("Message"))
    if message is None:
        return None
    if isinstance(message, list):
        return message
    return [message]


class ErpNextClient:
    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self._settings = settings
        self._client = client or httpx.Client(timeout=settings.erpnext_timeout_seconds)
        self._retrying = Retrying(
            reraise=True,
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError, ErpNextServerError)),
            stop=stop_after_attempt(settings.erpnext_retry_max_attempts),
            wait=wait_exponential_jitter(
                initial=settings.erpnext_retry_base_seconds, max=settings.erpnext_retry_max_seconds
            ),
        )

    def _headers(self) -> dict[str, str]:
        h = {"Accept": "application/json"}
        if self._settings.erpnext_api_key and self._settings.erpnext_api_secret:
            h["Authorization"] = f"token {self._settings.erpnext_api_key}:{self._settings.erpnext_api_secret}"
        return h

    def method_url(self, method: str) -> str:
        base = self._settings.erpnext_base_url.rstrip("/")
        return f"{base}/api/method/{self._settings.erpnext_app}.utilities.{method}"

    def _get(self, method: str, params: dict[str, Any] | None = None) -> PullResponse:
        for attempt in self._retrying:
            with attempt:
                r = self._client.get(self.method_url(method), params=params, headers=self._headers())
                if r.status_code >= 500:
                    raise ErpNextServerError(f"ERPNext server error {r.status_code}", status_code=r.status_code)
                if r.status_code >= 400:
                    raise ErpNextError(f"ERPNext client error {r.status_code}: {r.text}", status_code=r.status_code)
                try:
                    body = r.json()
                except ValueError as e:
                    raise ErpNextError(f"ERPNext returned invalid JSON: {e}", status_code=r.status_code) from e
                header_length = r.headers.get("content-length")
                return PullResponse(
                    status_code=r.status_code,
                    error_message=body.get("exc") if isinstance(body, dict) else None,
                    content_length=int(header_length) if header_length else len(r.content),
                    message=_extract_message(body),
                )
        raise AssertionError("unreachable")  # pragma: no cover

    def pull(self, kind: DocumentKind, bulk: bool = False) -> PullResponse:
        default_method, bulk_method, bulk_params = _METHODS[kind]
        log.debug("erpnext_pull", kind=kind.value, bulk=bool(bulk and bulk_method))
        if bulk and bulk_method:
            return self._get(bulk_method, params=bulk_params)
        return self._get(default_method)

    def close(self) -> None:
        self._client.close()
