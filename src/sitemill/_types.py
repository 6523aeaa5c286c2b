"""Shared type definitions for sitemill."""

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Literal

# A single application record: a mapping (e.g. a SQLite row) or any object
type Record = Mapping[str, Any] | Any

# Resume token decoded from a document filename
type Identifier = int | str

# Values accepted for <lastmod>
type Timestamp = datetime | date | str

# Kind of document a writer produces
type DocumentKind = Literal["urlset", "index"]

# Lifecycle of one source within a generation run
type SourceState = Literal[
    "registered", "counting", "paginating", "writing", "closed", "failed"
]
