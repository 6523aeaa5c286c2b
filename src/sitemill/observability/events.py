"""Event model for generation runs.

Defines the events a generation run emits: source lifecycle transitions,
fetched query pages, finished documents, and search engine pings.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

"""

import time
from dataclasses import dataclass

from sitemill._types import DocumentKind, SourceState


@dataclass(frozen=True, slots=True)
class SourceStateChanged:
    """A source moved to a new lifecycle state.

    Attributes:
        source: Registered source name.
        state: The state entered.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    source: str
    state: SourceState
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class BatchFetched:
    """A query page was fetched and written.

    Attributes:
        source: Registered source name.
        document: Planned document index.
        batch: Batch index.
        offset: Query offset.
        limit: Query limit.
        records: Number of records the page returned.
        duration_ms: Time to fetch and write the page.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    source: str
    document: int
    batch: int
    offset: int
    limit: int
    records: int
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class DocumentWritten:
    """A physical sitemap file was finished.

    Attributes:
        path: Final path of the file.
        kind: ``"urlset"`` or ``"index"``.
        urls: Number of entries in the file.
        size_bytes: Uncompressed XML size.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    kind: DocumentKind
    urls: int
    size_bytes: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class PingAttempted:
    """A search engine ping was attempted or skipped.

    Attributes:
        target: Search engine name.
        url: Request URL, or empty when the ping was skipped.
        ok: True if the engine answered with a success status.
        status_code: HTTP status, if a response arrived.
        error: Failure description, if any.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    target: str
    url: str
    ok: bool
    status_code: int | None
    error: str | None
    timestamp_ns: int


type GenerationEvent = SourceStateChanged | BatchFetched | DocumentWritten | PingAttempted


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
