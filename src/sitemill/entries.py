"""URL entries and per-record field rules.

Every sitemap field of a source is either a fixed value or derived from
the record being written.  Registration accepts plain values and
callables; :func:`field_rule` wraps them as :class:`Constant` or
:class:`Derived` so the generator resolves every field the same way.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sitemill._types import Identifier, Record, Timestamp
from sitemill.sources.base import record_value

DEFAULT_CHANGE_FREQUENCY = "weekly"

# Record fields tried, in order, for <lastmod>
TIMESTAMP_FIELDS = (
    "updated_at",
    "updated_on",
    "updated",
    "created_at",
    "created_on",
    "created",
)

# Record fields tried, in order, for the last segment of the default URL
PARAM_FIELDS = ("slug", "id")


@dataclass(frozen=True, slots=True)
class Constant:
    """A field value shared by every record."""

    value: Any

    def resolve(self, record: Record) -> Any:
        return self.value


@dataclass(frozen=True, slots=True)
class Derived:
    """A field value computed from each record."""

    func: Callable[[Record], Any]

    def resolve(self, record: Record) -> Any:
        return self.func(record)


type FieldRule = Constant | Derived


def field_rule(value: Any) -> FieldRule | None:
    """Wrap a registration option as a field rule.

    *None* stays *None* (use the default), callables become
    :class:`Derived`, anything else becomes :class:`Constant`.
    """
    if value is None or isinstance(value, Constant | Derived):
        return value
    if callable(value):
        return Derived(value)
    return Constant(value)


@dataclass(frozen=True, slots=True)
class UrlEntry:
    """One ``<url>`` of a sitemap.

    Attributes:
        location: Absolute URL.
        last_modified: Value for ``<lastmod>``.
        change_frequency: Value for ``<changefreq>``.
        priority: Value for ``<priority>``.
        identifier: Record identifier; only used as a resume point.

    """

    location: str
    last_modified: Timestamp | None = None
    change_frequency: str | None = None
    priority: float | str | None = None
    identifier: Identifier | None = None


def first_timestamp(record: Record) -> Timestamp | None:
    """Return the first timestamp-like field a record carries."""
    for name in TIMESTAMP_FIELDS:
        value = record_value(record, name)
        if value is not None:
            return value
    return None


def record_param(record: Record) -> Any:
    """Return the URL segment identifying a record."""
    for name in PARAM_FIELDS:
        value = record_value(record, name)
        if value is not None:
            return value
    msg = f"Record has none of {PARAM_FIELDS} to build a default location: {record!r}"
    raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class EntryRules:
    """How a source turns records into URL entries.

    Attributes:
        base: URL prefix for default locations (``{root_url}/{path}``).
        location: Rule for ``<loc>``; default ``{base}/{slug or id}``.
        last_modified: Rule for ``<lastmod>``; default is the first
            timestamp field of the record, else the current time.
        change_frequency: Rule for ``<changefreq>``; default ``weekly``.
        priority: Rule for ``<priority>``; omitted by default.
        id_field: Record field holding the resume identifier.

    """

    base: str
    location: FieldRule | None = None
    last_modified: FieldRule | None = None
    change_frequency: FieldRule | None = None
    priority: FieldRule | None = None
    id_field: str = "id"

    def derive(self, record: Record) -> UrlEntry:
        """Build the URL entry for one record."""
        if self.location is not None:
            location = self.location.resolve(record)
        else:
            location = f"{self.base}/{record_param(record)}"

        if self.last_modified is not None:
            last_modified = self.last_modified.resolve(record)
        else:
            last_modified = first_timestamp(record) or datetime.now(UTC)

        if self.change_frequency is not None:
            change_frequency = self.change_frequency.resolve(record)
        else:
            change_frequency = DEFAULT_CHANGE_FREQUENCY

        priority = self.priority.resolve(record) if self.priority is not None else None

        return UrlEntry(
            location=location,
            last_modified=last_modified,
            change_frequency=change_frequency,
            priority=priority,
            identifier=record_value(record, self.id_field),
        )
