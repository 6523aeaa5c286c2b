"""Structured events for generation runs.

Quick Start:
    >>> from sitemill.observability import EventLog, GenerationCollector
    >>> log = EventLog()
    >>> collector = GenerationCollector(log)
    >>> # Pass collector to SitemapGenerator(config, collector=collector)

"""

from sitemill.observability.collector import GenerationCollector
from sitemill.observability.events import (
    BatchFetched,
    DocumentWritten,
    GenerationEvent,
    PingAttempted,
    SourceStateChanged,
    now_ns,
)
from sitemill.observability.log import EventLog

__all__ = [
    "BatchFetched",
    "DocumentWritten",
    "EventLog",
    "GenerationCollector",
    "GenerationEvent",
    "PingAttempted",
    "SourceStateChanged",
    "now_ns",
]
