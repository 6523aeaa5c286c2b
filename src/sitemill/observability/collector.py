"""Generation collector — records run events into an ``EventLog``.

The generator, writers and ping client report through one collector so a
whole run can be inspected afterwards.
"""

from __future__ import annotations

from sitemill._types import SourceState
from sitemill.export.writer import WrittenDocument
from sitemill.observability.events import (
    BatchFetched,
    DocumentWritten,
    PingAttempted,
    SourceStateChanged,
    now_ns,
)
from sitemill.observability.log import EventLog


class GenerationCollector:
    """Event collector for generation runs.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    def record_state(self, source: str, state: SourceState) -> None:
        """Record a source lifecycle transition."""
        self._log.append(
            SourceStateChanged(source=source, state=state, timestamp_ns=now_ns())
        )

    def record_batch(
        self,
        source: str,
        *,
        document: int,
        batch: int,
        offset: int,
        limit: int,
        records: int,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a fetched query page."""
        self._log.append(
            BatchFetched(
                source=source,
                document=document,
                batch=batch,
                offset=offset,
                limit=limit,
                records=records,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_document(self, document: WrittenDocument) -> None:
        """Record a finished file.  Matches the writer's ``on_document`` hook."""
        self._log.append(
            DocumentWritten(
                path=str(document.path),
                kind=document.kind,
                urls=document.urls,
                size_bytes=document.size_bytes,
                timestamp_ns=now_ns(),
            )
        )

    def record_ping(
        self,
        target: str,
        *,
        url: str,
        ok: bool,
        status_code: int | None = None,
        error: str | None = None,
    ) -> None:
        """Record a search engine ping."""
        self._log.append(
            PingAttempted(
                target=target,
                url=url,
                ok=ok,
                status_code=status_code,
                error=error,
                timestamp_ns=now_ns(),
            )
        )
