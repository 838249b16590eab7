from __future__ import annotations

import json
import os
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException

from erpnext_connector.common.logging import configure_logging, get_logger
from erpnext_connector.common.models import DocumentKind

log = get_logger("erpnext-mock")

# method suffix (after "<app>.utilities.") -> (kind, bulk)
METHODS: dict[str, tuple[DocumentKind, bool]] = {
    "purchase_order.get_purchase_orders_for_sage": (DocumentKind.PURCHASE_ORDER, False),
    "sales_order.get_sales_orders_for_sage": (DocumentKind.SALES_ORDER, False),
    "sales_order.get_many_sales_orders_for_sage": (DocumentKind.SALES_ORDER, True),
    "sales_invoice.get_sales_invoices_for_sage": (DocumentKind.SALES_INVOICE, False),
    "sales_invoice.get_many_sales_invoices_for_sage": (DocumentKind.SALES_INVOICE, True),
}

SEED_KEYS: dict[DocumentKind, str] = {
    DocumentKind.PURCHASE_ORDER: "purchase_orders",
    DocumentKind.SALES_ORDER: "sales_orders",
    DocumentKind.SALES_INVOICE: "sales_invoices",
}


def _require_token(authorization: str | None, token: str) -> None:
    if not token:
        return
    if not authorization or not authorization.startswith("token "):
        raise HTTPException(status_code=401, detail="missing api token")
    if authorization.split(" ", 1)[1].strip() != token:
        raise HTTPException(status_code=403, detail="invalid api token")


def load_seed(path: str | None) -> dict[str, list[dict[str, Any]]]:
    if not path or not os.path.exists(path):
        return {key: [] for key in SEED_KEYS.values()}
    with open(path, encoding="utf-8") as f:
        doc = json.load(f) or {}
    return {key: list(doc.get(key) or []) for key in SEED_KEYS.values()}


class SeedState:
    data: dict[str, list[dict[str, Any]]] | None = None


def get_data() -> dict[str, list[dict[str, Any]]]:
    if SeedState.data is None:
        SeedState.data = load_seed(os.getenv("ERPNEXT_MOCK_SEED_PATH"))
    return SeedState.data


app = FastAPI(title="ERPNext Mock API", version=os.getenv("APP_VERSION", "0.1.0"))


@app.on_event("startup")
def _startup() -> None:
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    data = get_data()
    log.info("startup", seed=os.getenv("ERPNEXT_MOCK_SEED_PATH"), counts={k: len(v) for k, v in data.items()})


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


def auth_dep(authorization: str | None = Header(default=None)) -> None:
    _require_token(authorization, os.getenv("ERPNEXT_MOCK_TOKEN", ""))


@app.get("/api/method/{method}", dependencies=[Depends(auth_dep)])
def call_method(method: str, data=Depends(get_data)) -> dict[str, Any]:
    _, sep, suffix = method.partition(".utilities.")
    if not sep or suffix not in METHODS:
        raise HTTPException(status_code=404, detail=f"Method {method} not found")
    kind, bulk = METHODS[suffix]
    docs = data[SEED_KEYS[kind]]
    if not bulk:
        docs = [d for d in docs if not d.get("synced")]
    log.info("method_called", method=suffix, returned=len(docs))
    return {"message": docs}
