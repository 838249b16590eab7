from __future__ import annotations

from datetime import datetime, time


def is_within_time_range(now: datetime | time, start: time, end: time) -> bool:
    """True when ``now`` falls inside the daily window ``[start, end)``.

    Windows with ``start`` later than ``end`` wrap past midnight.  Hours
    strictly between the boundary hours always match; at the boundary hours
    the minutes decide.  An empty window (``start == end``) never matches.
    """
    if isinstance(now, datetime):
        now = now.time()
    if start.hour == end.hour:
        if start.minute < end.minute:
            return now.hour == start.hour and start.minute <= now.minute < end.minute
        if start.minute > end.minute:
            return not (now.hour == start.hour and end.minute <= now.minute < start.minute)
        return False
    if now.hour == start.hour:
        return now.minute >= start.minute
    if now.hour == end.hour:
        return now.minute < end.minute
    if start.hour < end.hour:
        return start.hour < now.hour < end.hour
    return now.hour > start.hour or now.hour < end.hour


def gate_allows(can_request: bool, automatic_sync: bool, now: datetime | time, start: time, end: time) -> bool:
    """A scheduled tick runs only when enabled and, in automatic mode, inside the window."""
    if not can_request:
        return False
    return not automatic_sync or is_within_time_range(now, start, end)
