"""Streaming sitemap writer — size-capped urlset and index documents.

``DocumentWriter`` streams ``<url>`` (or ``<sitemap>``) elements straight to
disk as they are added, so a source of any size is written with constant
memory.  When a file reaches ``max_urls`` entries, or the next entry would
push it past ``max_bytes`` of uncompressed XML, the writer closes it and
continues in a new file with the next sequence number.

When a file is finished and at least one entry carried an identifier, the
file is renamed to embed the last identifier in its name (see
:mod:`sitemill.export.naming`).  That token is the resume point for
incremental updates.

Usage::

    with DocumentWriter(directory, "sitemap_posts", gzip=True) as writer:
        writer.add("https://example.com/posts/1", last_modified=now, identifier=1)
    writer.paths  # (Path('.../sitemap_posts_00001_1.xml.gz'),)

"""

from __future__ import annotations

import gzip as gzip_module
import sys
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path
from types import TracebackType
from typing import IO, Self
from xml.etree.ElementTree import Element, SubElement, indent, tostring

from sitemill._errors import IOFailure
from sitemill._types import DocumentKind, Identifier, Timestamp
from sitemill.export.naming import document_filename, format_token

# Upper bounds from the sitemaps.org protocol
MAX_URLS = 50_000
MAX_BYTES = 50 * 1024 * 1024

_SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
_GEO_NS = "http://www.google.com/geo/schemas/sitemap/1.0"

_ROOT_TAGS: dict[str, tuple[str, str]] = {
    "urlset": ("urlset", "url"),
    "index": ("sitemapindex", "sitemap"),
}

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass(frozen=True, slots=True)
class WrittenDocument:
    """Record of one physical file finished by a writer.

    Attributes:
        path: Final path of the file (after any identifier rename).
        kind: Document kind.
        urls: Number of entries in the file.
        size_bytes: Uncompressed XML size.
        last_identifier: Last identifier written into the file, if any.

    """

    path: Path
    kind: DocumentKind
    urls: int
    size_bytes: int
    last_identifier: Identifier | None


def format_timestamp(value: Timestamp | float | None) -> str | None:
    """Format a value for ``<lastmod>`` (W3C datetime, UTC)."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int | float):
        value = datetime.fromtimestamp(value, tz=UTC)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S+00:00")
    if isinstance(value, date):
        return value.isoformat()
    msg = f"Unsupported lastmod value: {value!r}"
    raise TypeError(msg)


def format_priority(value: float | str | None) -> str | None:
    """Format a value for ``<priority>``."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return f"{float(value):g}"


class DocumentWriter:
    """Writes entries to one or more size-capped sitemap files.

    The first file is opened on construction, so a writer that never
    receives an entry still leaves a valid, empty document behind.

    Args:
        directory: Directory the files are written to (must exist).
        basename: Filename stem, e.g. ``sitemap_posts``.
        kind: ``"urlset"`` for regular sitemaps, ``"index"`` for a
            sitemap index.
        max_urls: Maximum entries per file.
        max_bytes: Maximum uncompressed bytes per file.
        gzip: Write ``.xml.gz`` files instead of plain XML.
        geo: Mark every URL as a KML geo sitemap entry.
        start_sequence: Sequence number of the first file.
        numbered: If False, the first file carries no sequence suffix
            (used for the index so its URL stays stable).
        on_document: Called with a :class:`WrittenDocument` for every
            finished file.

    """

    __slots__ = (
        "_basename",
        "_bytes",
        "_closed",
        "_count",
        "_current_sequence",
        "_directory",
        "_documents",
        "_entry_tag",
        "_file",
        "_geo",
        "_gzip",
        "_kind",
        "_last_identifier",
        "_max_bytes",
        "_max_urls",
        "_numbered",
        "_on_document",
        "_path",
        "_root_tag",
        "_sequence",
    )

    def __init__(
        self,
        directory: Path,
        basename: str,
        *,
        kind: DocumentKind = "urlset",
        max_urls: int = MAX_URLS,
        max_bytes: int = MAX_BYTES,
        gzip: bool = True,
        geo: bool = False,
        start_sequence: int = 1,
        numbered: bool = True,
        on_document: Callable[[WrittenDocument], None] | None = None,
    ) -> None:
        if max_urls < 1:
            msg = f"max_urls must be positive, got {max_urls}"
            raise ValueError(msg)
        self._directory = directory
        self._basename = basename
        self._kind = kind
        self._root_tag, self._entry_tag = _ROOT_TAGS[kind]
        self._max_urls = max_urls
        self._max_bytes = max_bytes
        self._gzip = gzip
        self._geo = geo and kind == "urlset"
        self._sequence = start_sequence
        self._numbered = numbered
        self._on_document = on_document

        self._file: IO[bytes] | None = None
        self._path: Path | None = None
        self._current_sequence: int | None = None
        self._count = 0
        self._bytes = 0
        self._last_identifier: Identifier | None = None
        self._documents: list[WrittenDocument] = []
        self._closed = False

        self._open()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def paths(self) -> tuple[Path, ...]:
        """Paths of all finished files, in the order they were written."""
        return tuple(doc.path for doc in self._documents)

    @property
    def documents(self) -> tuple[WrittenDocument, ...]:
        """Records of all finished files."""
        return tuple(self._documents)

    @property
    def url_count(self) -> int:
        """Total entries written across all files so far."""
        return sum(doc.urls for doc in self._documents) + self._count

    def add(
        self,
        location: str,
        last_modified: Timestamp | float | None = None,
        change_frequency: str | None = None,
        priority: float | str | None = None,
        identifier: Identifier | None = None,
    ) -> None:
        """Append one entry, rolling over to a new file when a limit is hit."""
        if self._closed:
            msg = f"Writer for {self._basename!r} is closed"
            raise ValueError(msg)

        data = self._render(location, last_modified, change_frequency, priority)

        if self._file is not None and self._count > 0 and (
            self._count >= self._max_urls
            or self._bytes + len(data) + len(self._footer()) > self._max_bytes
        ):
            self._finish()
        if self._file is None:
            self._open()

        self._write(data)
        self._count += 1
        if identifier is not None:
            self._last_identifier = identifier

    def rotate(self) -> None:
        """Finish the current file; the next entry starts a new one.

        Does nothing while the current file is still empty.
        """
        if self._file is not None and self._count > 0:
            self._finish()

    def close(self) -> None:
        """Finish the current file.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._file is not None:
            self._finish()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # File handling
    # ------------------------------------------------------------------

    def _open(self) -> None:
        sequence: int | None = self._sequence
        if not self._numbered:
            # The unnumbered first file counts as sequence 1 on rollover
            sequence = len(self._documents) + 1 if self._documents else None
        path = self._directory / document_filename(
            self._basename, sequence, gzip=self._gzip,
        )
        try:
            if self._gzip:
                self._file = gzip_module.open(path, "wb")
            else:
                self._file = path.open("wb")
        except OSError as exc:
            msg = f"Cannot open sitemap document {path}: {exc}"
            raise IOFailure(msg) from exc

        self._path = path
        self._current_sequence = sequence
        self._count = 0
        self._bytes = 0
        self._last_identifier = None
        self._write(self._header())

    def _finish(self) -> None:
        assert self._file is not None and self._path is not None
        self._write(self._footer())
        try:
            self._file.close()
        except OSError as exc:
            msg = f"Cannot close sitemap document {self._path}: {exc}"
            raise IOFailure(msg) from exc

        path = self._path
        token = format_token(self._last_identifier)
        if self._last_identifier is not None and token is None:
            print(
                f"  Warning: identifier {self._last_identifier!r} cannot be embedded "
                f"in a filename; {path.name} will not resume updates",
                file=sys.stderr,
            )
        if token is not None:
            renamed = path.with_name(
                document_filename(
                    self._basename, self._current_sequence, token, gzip=self._gzip,
                )
            )
            try:
                path = path.replace(renamed)
            except OSError as exc:
                msg = f"Cannot rename sitemap document {path} to {renamed.name}: {exc}"
                raise IOFailure(msg) from exc

        document = WrittenDocument(
            path=path,
            kind=self._kind,
            urls=self._count,
            size_bytes=self._bytes,
            last_identifier=self._last_identifier,
        )
        self._documents.append(document)
        self._file = None
        self._path = None
        self._sequence += 1
        if self._on_document is not None:
            self._on_document(document)

    def _write(self, data: bytes) -> None:
        assert self._file is not None
        try:
            self._file.write(data)
        except OSError as exc:
            msg = f"Cannot write sitemap document {self._path}: {exc}"
            raise IOFailure(msg) from exc
        self._bytes += len(data)

    # ------------------------------------------------------------------
    # XML rendering
    # ------------------------------------------------------------------

    def _header(self) -> bytes:
        attrs = f'xmlns="{_SITEMAP_NS}"'
        if self._geo:
            attrs += f' xmlns:geo="{_GEO_NS}"'
        newline = "" if self._gzip else "\n"
        return f"{_XML_DECLARATION}<{self._root_tag} {attrs}>{newline}".encode()

    def _footer(self) -> bytes:
        return f"</{self._root_tag}>\n".encode()

    def _render(
        self,
        location: str,
        last_modified: Timestamp | float | None,
        change_frequency: str | None,
        priority: float | str | None,
    ) -> bytes:
        entry = Element(self._entry_tag)
        SubElement(entry, "loc").text = location

        lastmod = format_timestamp(last_modified)
        if lastmod is not None:
            SubElement(entry, "lastmod").text = lastmod

        if self._kind == "urlset":
            if change_frequency is not None:
                SubElement(entry, "changefreq").text = change_frequency
            pri = format_priority(priority)
            if pri is not None:
                SubElement(entry, "priority").text = pri
            if self._geo:
                geo = SubElement(entry, "geo:geo")
                SubElement(geo, "geo:format").text = "kml"

        if self._gzip:
            return tostring(entry, encoding="unicode").encode()

        # Plain files are indented for humans; gzip output stays compact
        indent(entry, space="  ", level=1)
        return ("  " + tostring(entry, encoding="unicode").rstrip() + "\n").encode()
