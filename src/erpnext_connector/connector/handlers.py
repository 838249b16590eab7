"""Document handlers: apply one ERPNext document to the open Sage 50 company.

Writing documents into Sage 50 is done by per-kind callables supplied by the
deployment; ``DocumentTypeHandler`` routes to them.  ``LoggingDocumentHandler``
is the dry-run default.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from erpnext_connector.common.logging import get_logger
from erpnext_connector.common.models import Document, DocumentKind
from erpnext_connector.connector.accounting import Company

log = get_logger("document-handler")


class UnsupportedDocumentError(ValueError):
    pass


class DocumentHandler(Protocol):
    def handle(self, document: Document) -> None: ...


HandlerFactory = Callable[[Company], DocumentHandler]
KindHandler = Callable[[Company, Document], Any]


class DocumentTypeHandler:
    def __init__(self, company: Company, handlers: Mapping[DocumentKind, KindHandler]) -> None:
        self.company = company
        self._handlers = dict(handlers)

    def handle(self, document: Document) -> None:
        fn = self._handlers.get(document.kind)
        if fn is None:
            raise UnsupportedDocumentError(f"no handler registered for {document.kind.value}")
        log.debug("document_dispatch", kind=document.kind.value, number=document.number)
        fn(self.company, document)


class LoggingDocumentHandler:
    """Logs each document instead of writing it to Sage 50."""

    def __init__(self, company: Company) -> None:
        self.company = company
        self.handled: list[Document] = []

    def handle(self, document: Document) -> None:
        log.info("document_dry_run", kind=document.kind.value, number=document.number)
        self.handled.append(document)
