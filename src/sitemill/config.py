"""Sitemill configuration.

SitemillConfig is the central configuration object, frozen and validated
on creation.  Every invalid combination raises ``ConfigurationError``
immediately, so a generation run never fails halfway on bad options.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from urllib.parse import urlsplit

from sitemill._errors import ConfigurationError
from sitemill.export.writer import MAX_BYTES, MAX_URLS
from sitemill.sources.base import Condition

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True, slots=True)
class SourceSpec:
    """A SQLite table declared in the config file.

    Attributes:
        database: Path to the SQLite database.
        table: Table to read.
        name: Source name for filenames (default: the table name).
        path: URL path segment (default: the source name).
        conditions: Filter applied to every query.
        location: URL template formatted with the row, e.g.
            ``"https://example.com/posts/{slug}"``.
        change_frequency: Constant ``<changefreq>``.
        priority: Constant ``<priority>``.
        num_items: Maximum number of records to include.
        order_by: Column used for ordering and resuming.

    """

    database: Path
    table: str
    name: str | None = None
    path: str | None = None
    conditions: tuple[Condition, ...] = ()
    location: str | None = None
    change_frequency: str | None = None
    priority: float | None = None
    num_items: int | None = None
    order_by: str = "id"


@dataclass(frozen=True, slots=True)
class StaticPage:
    """A fixed URL listed in the static sitemap."""

    url: str
    last_modified: datetime | date | str | None = None
    change_frequency: str | None = None
    priority: float | None = None


@dataclass(frozen=True, slots=True)
class SitemillConfig:
    """Configuration for a sitemap generation run.

    Attributes:
        document_root: Directory served as the site root.  Required.
            Relative paths are resolved to absolute on construction.
        path: Sub-directory of ``document_root`` holding the sitemaps.
        base_url: Public site URL, e.g. ``"https://example.com"``.
            Mutually exclusive with ``host``.
        host: Public host name (alternative to ``base_url``).
        port: Public port; omitted from URLs when it is the scheme default.
        scheme: URL scheme used with ``host``.
        max_per_sitemap: Maximum URLs per document (must be > 1).
        max_bytes: Maximum uncompressed bytes per document.
        batch_size: Records fetched per query page (< max_per_sitemap).
        gzip: Write ``.xml.gz`` documents.
        geo: Write KML geo sitemaps (``_kml`` filenames).
        legacy_tail_limit: Reproduce the historical short-page limit
            that leaves out the last record of an undersized final page.
        ping_google: Ping Google after generation.
        ping_yahoo: Ping Yahoo (requires ``yahoo_app_id``).
        yahoo_app_id: Yahoo application id.
        ping_bing: Ping Bing.
        ping_ask: Ping Ask.
        ping_timeout: HTTP timeout for pings, in seconds.
        sources: SQLite tables declared in the config file.
        static_pages: Fixed URLs for the static sitemap.

    """

    document_root: Path | None = None
    path: str = "sitemaps"
    base_url: str = ""
    host: str = ""
    port: int | None = None
    scheme: str = "http"
    max_per_sitemap: int = MAX_URLS
    max_bytes: int = MAX_BYTES
    batch_size: int = 1001
    gzip: bool = True
    geo: bool = False
    legacy_tail_limit: bool = False
    ping_google: bool = True
    ping_yahoo: bool = False
    yahoo_app_id: str | None = None
    ping_bing: bool = False
    ping_ask: bool = False
    ping_timeout: float = 10.0
    sources: tuple[SourceSpec, ...] = field(default_factory=tuple)
    static_pages: tuple[StaticPage, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.max_per_sitemap <= 1:
            msg = f"max_per_sitemap must be greater than 1, got {self.max_per_sitemap}"
            raise ConfigurationError(msg)
        if self.batch_size < 1:
            msg = f"batch_size must be positive, got {self.batch_size}"
            raise ConfigurationError(msg)
        if self.batch_size >= self.max_per_sitemap:
            msg = (
                f"batch_size ({self.batch_size}) must be less than "
                f"max_per_sitemap ({self.max_per_sitemap})"
            )
            raise ConfigurationError(msg)
        if self.max_bytes <= 0:
            msg = f"max_bytes must be positive, got {self.max_bytes}"
            raise ConfigurationError(msg)

        if self.base_url and self.host:
            msg = "Specify either base_url or host/port/scheme, not both"
            raise ConfigurationError(msg)
        if not self.base_url and not self.host:
            msg = "You must specify either base_url or host (with optional port/scheme)"
            raise ConfigurationError(msg)
        if self.base_url:
            parts = urlsplit(self.base_url)
            if not parts.scheme or not parts.netloc:
                msg = f"base_url must be an absolute URL, got {self.base_url!r}"
                raise ConfigurationError(msg)

        if self.document_root is None:
            msg = "Document root must be specified with the document_root option"
            raise ConfigurationError(msg)
        root = Path(self.document_root)
        if not root.is_absolute():
            root = root.resolve()
        object.__setattr__(self, "document_root", root)

    @property
    def output_path(self) -> Path:
        """Absolute path to the sitemap directory."""
        assert self.document_root is not None
        return self.document_root / self.path.strip("/")

    @property
    def root_url(self) -> str:
        """Public site URL without a trailing slash."""
        if self.base_url:
            return self.base_url.rstrip("/")
        scheme = self.scheme or "http"
        url = f"{scheme}://{self.host}"
        if self.port is not None and self.port != _DEFAULT_PORTS.get(scheme):
            url += f":{self.port}"
        return url
