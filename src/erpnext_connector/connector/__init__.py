"""ERPNext → Sage 50 synchronization engine.

Provides:
  - Connector: start/stop lifecycle, scheduled and manual cycles
  - SessionManager: Sage 50 session and company handles
  - DocumentFetcher / QueueDrainer / WorkQueue: the fetch → queue → apply pipeline
  - EventBus: status notifications for an operator-facing surface
"""

from erpnext_connector.connector.drainer import QueueDrainer
from erpnext_connector.connector.engine import Connector
from erpnext_connector.connector.events import Channel, EventBus
from erpnext_connector.connector.fetcher import DocumentFetcher
from erpnext_connector.connector.queue import WorkQueue
from erpnext_connector.connector.session import SessionManager
from erpnext_connector.connector.window import is_within_time_range

__all__ = [
    "Connector",
    "SessionManager",
    "DocumentFetcher", "QueueDrainer", "WorkQueue",
    "Channel", "EventBus",
    "is_within_time_range",
]
