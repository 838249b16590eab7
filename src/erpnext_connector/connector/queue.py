from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable

from erpnext_connector.common.models import Document


class WorkQueue:
    """Unbounded FIFO of documents, safe to share between fetch and drain threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: deque[Document] = deque()

    def put(self, document: Document) -> None:
        with self._lock:
            self._items.append(document)

    def extend(self, documents: Iterable[Document]) -> int:
        batch = list(documents)
        with self._lock:
            self._items.extend(batch)
        return len(batch)

    def get(self) -> Document | None:
        """Pop the oldest document, or ``None`` when empty."""
        with self._lock:
            return self._items.popleft() if self._items else None

    def reset(self) -> list[Document]:
        """Swap in an empty queue and return what was discarded."""
        with self._lock:
            dropped, self._items = self._items, deque()
        return list(dropped)

    def snapshot(self) -> list[Document]:
        with self._lock:
            return list(self._items)

    @property
    def empty(self) -> bool:
        with self._lock:
            return not self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
