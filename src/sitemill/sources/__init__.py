"""Record sources that count and paginate the records behind a sitemap."""

from sitemill.sources.base import (
    Condition,
    Conditions,
    RecordSource,
    as_conditions,
    record_value,
)
from sitemill.sources.memory import RecordList
from sitemill.sources.sqlite import SQLiteTable

__all__ = [
    "Condition",
    "Conditions",
    "RecordList",
    "RecordSource",
    "SQLiteTable",
    "as_conditions",
    "record_value",
]
