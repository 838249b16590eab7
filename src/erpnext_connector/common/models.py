from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class DocumentKind(str, Enum):
    PURCHASE_ORDER = "purchase_order"
    SALES_ORDER = "sales_order"
    SALES_INVOICE = "sales_invoice"

    @property
    def label(self) -> str:
        """Plural, human-readable name used in status messages."""
        return self.value.replace("_", " ") + "s"


# Fetch order within a cycle.
DOCUMENT_KINDS: tuple[DocumentKind, ...] = (
    DocumentKind.PURCHASE_ORDER,
    DocumentKind.SALES_ORDER,
    DocumentKind.SALES_INVOICE,
)


@dataclass(frozen=True)
class Document:
    """One ERPNext document waiting to be written to Sage 50.

    The payload is kept as ERPNext sent it; only the document number is
    interpreted here.
    """

    kind: ClassVar[DocumentKind]
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def number(self) -> str:
        return str(self.payload.get("name") or "")

    def __str__(self) -> str:
        return f"{self.kind.value}({self.number or '?'})"


@dataclass(frozen=True)
class PurchaseOrder(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.PURCHASE_ORDER


@dataclass(frozen=True)
class SalesOrder(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.SALES_ORDER


@dataclass(frozen=True)
class SalesInvoice(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.SALES_INVOICE


DOCUMENT_TYPES: dict[DocumentKind, type[Document]] = {
    DocumentKind.PURCHASE_ORDER: PurchaseOrder,
    DocumentKind.SALES_ORDER: SalesOrder,
    DocumentKind.SALES_INVOICE: SalesInvoice,
}


def make_document(kind: DocumentKind, payload: Any) -> Document:
    if not isinstance(payload, dict):
        payload = {"value": payload}
    return DOCUMENT_TYPES[DocumentKind(kind)](payload=payload)
