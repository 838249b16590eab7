from __future__ import annotations

from erpnext_connector.common.models import PurchaseOrder, SalesInvoice, SalesOrder
from erpnext_connector.connector.drainer import QueueDrainer
from erpnext_connector.connector.events import Channel
from erpnext_connector.connector.queue import WorkQueue
from fakes import DEFAULT_COMPANY, FakeCompany, RecordingHandler


def _queue(*numbers: str) -> WorkQueue:
    q = WorkQueue()
    kinds = [PurchaseOrder, SalesOrder, SalesInvoice]
    for i, n in enumerate(numbers):
        q.put(kinds[i % 3]({"name": n}))
    return q


def _drainer(events, seen, fail_on=None) -> QueueDrainer:
    return QueueDrainer(lambda company: RecordingHandler(company, seen, fail_on), events)


def test_drain_is_fifo(events, recorder, handled):
    q = _queue("A", "B", "C")

    count = _drainer(events, handled).drain(q, FakeCompany(DEFAULT_COMPANY), lambda: True)

    assert count == 3
    assert [d.number for d in handled] == ["A", "B", "C"]
    assert q.empty
    assert recorder.texts(Channel.CONNECTOR_INFO) == [
        "Busy",
        "Busy",
        "Busy",
        "No more documents to process at the moment",
    ]


def test_no_company_means_no_handler_calls(events, handled):
    q = _queue("A")

    assert _drainer(events, handled).drain(q, None, lambda: True) == 0
    assert handled == []
    assert len(q) == 1


def test_closed_company_means_no_handler_calls(events, handled):
    company = FakeCompany(DEFAULT_COMPANY)
    company.close()
    q = _queue("A")

    _drainer(events, handled).drain(q, company, lambda: True)

    assert handled == []
    assert len(q) == 1


def test_inactive_session_means_no_handler_calls(events, handled):
    q = _queue("A", "B")

    _drainer(events, handled).drain(q, FakeCompany(DEFAULT_COMPANY), lambda: False)

    assert handled == []
    assert len(q) == 2


def test_session_lost_mid_drain_leaves_rest_queued(events, recorder, handled):
    q = _queue("A", "B", "C", "D")
    # Session is revoked once two documents have been applied.
    drained = _drainer(events, handled).drain(q, FakeCompany(DEFAULT_COMPANY), lambda: len(handled) < 2)

    assert drained == 2
    assert [d.number for d in handled] == ["A", "B"]
    assert [d.number for d in q.snapshot()] == ["C", "D"]
    assert "No more documents to process at the moment" not in recorder.texts(Channel.CONNECTOR_INFO)


def test_failing_document_does_not_stop_the_drain(events, recorder, handled):
    q = _queue("A", "B", "C")

    count = _drainer(events, handled, fail_on={"B"}).drain(q, FakeCompany(DEFAULT_COMPANY), lambda: True)

    assert count == 2
    assert [d.number for d in handled] == ["A", "C"]
    assert "Could not process sales_order B. cannot post B" in recorder.texts(Channel.CONNECTOR_INFO)
