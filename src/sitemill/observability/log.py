"""Event log — bounded store of the events of generation runs.

Keeps the most recent ``GenerationEvent`` objects in a ring buffer so a run
can be inspected afterwards: which states each source went through, how
many records every query page returned, and which documents were written.

Thread Safety:
    All methods are protected by a ``threading.Lock``.

"""

import threading
from collections import deque
from typing import Any

from sitemill._types import DocumentKind
from sitemill.observability.events import (
    BatchFetched,
    DocumentWritten,
    GenerationEvent,
    PingAttempted,
    SourceStateChanged,
)


def _subject(event: GenerationEvent) -> str:
    """Source name, document path or ping target an event is about."""
    match event:
        case SourceStateChanged() | BatchFetched():
            return event.source
        case DocumentWritten():
            return event.path
        case PingAttempted():
            return event.target
    return ""


class EventLog:
    """Bounded event store with query support.

    When the buffer is full, the oldest events are discarded.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[GenerationEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: GenerationEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        source: str | None = None,
        kind: DocumentKind | None = None,
        limit: int = 100,
    ) -> list[GenerationEvent]:
        """Query events with optional filters.

        Args:
            event_type: Only return events of this type.
            since_ns: Only return events at or after this timestamp.
            source: Only return events whose source name, document path or
                ping target contains this string.
            kind: Only return ``DocumentWritten`` events of this kind.
            limit: Maximum number of events to return.

        Returns:
            List of matching events, most recent first.

        """
        with self._lock:
            events = list(self._events)

        results: list[GenerationEvent] = []
        for event in reversed(events):
            if len(results) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if since_ns and event.timestamp_ns < since_ns:
                continue
            if source is not None and source not in _subject(event):
                continue
            if kind is not None and not (
                isinstance(event, DocumentWritten) and event.kind == kind
            ):
                continue
            results.append(event)
        return results

    def states(self, source: str) -> list[str]:
        """Lifecycle states of ``source``, oldest first."""
        with self._lock:
            return [
                e.state for e in self._events
                if isinstance(e, SourceStateChanged) and e.source == source
            ]

    def failed_sources(self) -> list[str]:
        """Sources whose latest recorded state is ``failed``, in order seen."""
        latest: dict[str, str] = {}
        with self._lock:
            for event in self._events:
                if isinstance(event, SourceStateChanged):
                    latest[event.source] = event.state
        return [name for name, state in latest.items() if state == "failed"]

    def recent(self, n: int = 20) -> list[GenerationEvent]:
        """Return the N most recent events."""
        with self._lock:
            items = list(self._events)
        return items[-n:]

    def clear(self) -> int:
        """Clear all events and return the count that was cleared."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Summarise stored events by type, plus URLs and documents written."""
        with self._lock:
            events = list(self._events)

        type_counts: dict[str, int] = {}
        documents = 0
        urls = 0
        for event in events:
            name = type(event).__name__
            type_counts[name] = type_counts.get(name, 0) + 1
            if isinstance(event, DocumentWritten) and event.kind == "urlset":
                documents += 1
                urls += event.urls

        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": type_counts,
            "documents": documents,
            "urls": urls,
        }
