"""Sitemap generator — drive record sources into sitemap documents.

``SitemapGenerator`` owns the registered sources and static pages of one
output directory.  A run processes sources one at a time:

    registered → counting → paginating → writing → closed

For each source the record count is split into query windows by
:func:`~sitemill.planner.plan_batches`; every window is fetched and each
record becomes one URL entry in the source's :class:`DocumentWriter`.  The
writer starts a new file at each planned document boundary and whenever
its own size limits are reached.  After all sources, the static pages are
written and a sitemap index is built over every document of the run.

A source that fails while counting or paginating is marked ``failed``;
the remaining sources still run, and the run then raises
``GenerationError`` without writing the index.  Filesystem failures
(``IOFailure``) abort the run immediately.

Quick start::

    config = SitemillConfig(document_root=Path("public"), base_url="https://example.com")
    generator = SitemapGenerator(config)
    generator.add(SQLiteTable("app.db", "posts"), priority=0.7)
    generator.add_static("https://example.com/about")
    generator.clean().generate()
    generator.ping_search_engines()

"""

from __future__ import annotations

import sys
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

from sitemill._errors import (
    GenerationError,
    IOFailure,
    SourceFailure,
    UnsupportedSourceError,
)
from sitemill._types import Identifier, SourceState
from sitemill.entries import EntryRules, UrlEntry, field_rule
from sitemill.export.naming import (
    INDEX_BASENAME,
    INDEX_GLOBS,
    REGULAR_GLOBS,
    STATIC_NAME,
    basename_for,
    is_index_file,
)
from sitemill.export.writer import DocumentWriter
from sitemill.observability.collector import GenerationCollector
from sitemill.ping import PingResult, ping_search_engines
from sitemill.planner import plan_batches
from sitemill.sources.base import Condition, Conditions, RecordSource, as_conditions
from sitemill.tracker import UpdateTracker

if TYPE_CHECKING:
    import httpx

    from sitemill.config import SitemillConfig


@dataclass(frozen=True, slots=True)
class SourceRegistration:
    """A record source and the options it was registered with.

    Attributes:
        source: The record source.
        name: Filename segment (``sitemap_<name>_...``).
        path: URL path segment for default locations.
        conditions: Filter applied to every query.
        rules: Field rules turning records into URL entries.
        num_items: Maximum number of records to include.
        geo: Per-source override of the ``geo`` option.

    """

    source: RecordSource
    name: str
    path: str
    conditions: Conditions = ()
    rules: EntryRules = field(default_factory=lambda: EntryRules(base=""))
    num_items: int | None = None
    geo: bool | None = None


@dataclass(slots=True)
class _SourceRun:
    """Mutable lifecycle state of one source during a run."""

    name: str
    state: SourceState = "registered"


@dataclass(frozen=True, slots=True)
class SourceResult:
    """Outcome of one source in a run.

    Attributes:
        name: Source name.
        total: Records selected for the run (after ``num_items``).
        url_count: URL entries written.
        batches: Number of query windows fetched.
        paths: Documents written, in order.
        resumed_from: Resume point used by ``update``, if any.
        duration_ms: Wall-clock time for the source.

    """

    name: str
    total: int
    url_count: int
    batches: int
    paths: tuple[Path, ...]
    resumed_from: Identifier | None
    duration_ms: float


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Aggregate result of a generation run.

    Attributes:
        sources: Per-source results, in registration order.
        static_paths: Documents holding the static pages.
        index_paths: Sitemap index documents.
        indexed_paths: Documents referenced by the index.
        duration_ms: Total wall-clock time.
        output_dir: Absolute path to the sitemap directory.

    """

    sources: tuple[SourceResult, ...]
    static_paths: tuple[Path, ...]
    index_paths: tuple[Path, ...]
    indexed_paths: tuple[Path, ...]
    duration_ms: float
    output_dir: Path

    @property
    def documents(self) -> tuple[Path, ...]:
        """All regular (non-index) documents written by this run."""
        written = [p for s in self.sources for p in s.paths]
        return (*written, *self.static_paths)

    @property
    def url_count(self) -> int:
        """URL entries written for record sources."""
        return sum(s.url_count for s in self.sources)


class SitemapGenerator:
    """Generates sitemaps for registered record sources.

    Args:
        config: Frozen, validated configuration.
        collector: Receives run events; a private one is created otherwise.
        verbose: Print one progress line per source to stderr.

    Raises:
        IOFailure: If the output directory cannot be created.

    """

    def __init__(
        self,
        config: SitemillConfig,
        *,
        collector: GenerationCollector | None = None,
        verbose: bool = False,
    ) -> None:
        self._config = config
        self._collector = collector if collector is not None else GenerationCollector()
        self._verbose = verbose
        self._registrations: list[SourceRegistration] = []
        self._static_pages: list[UrlEntry] = []
        self._index_paths: tuple[Path, ...] = ()
        self._sequences: dict[str, int] = {}

        self._output_dir = config.output_path
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create sitemap directory {self._output_dir}: {exc}"
            raise IOFailure(msg) from exc
        self._tracker = UpdateTracker(self._output_dir)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> SitemillConfig:
        return self._config

    @property
    def collector(self) -> GenerationCollector:
        return self._collector

    @property
    def output_dir(self) -> Path:
        """Absolute path to the sitemap directory."""
        return self._output_dir

    @property
    def registrations(self) -> tuple[SourceRegistration, ...]:
        return tuple(self._registrations)

    @property
    def static_pages(self) -> tuple[UrlEntry, ...]:
        return tuple(self._static_pages)

    @property
    def root_url(self) -> str:
        return self._config.root_url

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add(
        self,
        source: RecordSource,
        *,
        name: str | None = None,
        path: str | None = None,
        conditions: Condition | Sequence[Condition] | Mapping[str, Any] | None = None,
        location: str | Callable[[Any], str] | None = None,
        last_modified: Any = None,
        change_frequency: str | Callable[[Any], str] | None = None,
        priority: float | Callable[[Any], float] | None = None,
        num_items: int | None = None,
        geo: bool | None = None,
        id_field: str = "id",
    ) -> Self:
        """Register a record source.

        Each field option takes a constant, a callable receiving the
        record, or *None* for the default.  Registering the same source
        twice produces two independent sources.

        Raises:
            UnsupportedSourceError: If ``source`` cannot count and fetch.

        """
        if not isinstance(source, RecordSource) or not (
            callable(source.count) and callable(source.fetch)
        ):
            msg = (
                f"{source!r} must provide count(conditions) and "
                f"fetch(conditions, offset=, limit=) methods"
            )
            raise UnsupportedSourceError(msg)

        resolved_name = name or getattr(source, "name", None) or type(source).__name__.lower()
        resolved_path = (path if path is not None else resolved_name).strip("/")
        base = "/".join(p for p in (self.root_url, resolved_path) if p)

        self._registrations.append(
            SourceRegistration(
                source=source,
                name=resolved_name,
                path=resolved_path,
                conditions=as_conditions(conditions),
                rules=EntryRules(
                    base=base,
                    location=field_rule(location),
                    last_modified=field_rule(last_modified),
                    change_frequency=field_rule(change_frequency),
                    priority=field_rule(priority),
                    id_field=id_field,
                ),
                num_items=num_items,
                geo=geo,
            )
        )
        return self

    def add_static(
        self,
        url: str,
        last_modified: Any = None,
        change_frequency: str | None = None,
        priority: float | None = None,
    ) -> Self:
        """Register a fixed URL for the static sitemap."""
        self._static_pages.append(
            UrlEntry(
                location=url,
                last_modified=last_modified,
                change_frequency=change_frequency,
                priority=priority,
            )
        )
        return self

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def clean(self) -> Self:
        """Remove all sitemap and sitemap index documents."""
        for pattern in (*REGULAR_GLOBS, *INDEX_GLOBS):
            for path in self._output_dir.glob(pattern):
                try:
                    path.unlink()
                except OSError as exc:
                    msg = f"Cannot remove {path}: {exc}"
                    raise IOFailure(msg) from exc
        return self

    def generate(self) -> GenerationResult:
        """Write every source from scratch, then the static pages and index.

        Each registered source replaces its documents from earlier runs and
        is numbered from 1.  Call :meth:`clean` first to also drop documents
        of sources that are no longer registered.
        """
        return self._run(update=False)

    def update(self) -> GenerationResult:
        """Append only records newer than the previous run.

        For each source, the last identifier embedded in its newest
        document becomes an ``id > last`` condition, and new documents
        continue the existing sequence.  A source whose documents carry
        no identifier is rebuilt from scratch.  The index covers old and new
        documents.
        """
        return self._run(update=True)

    def _run(self, *, update: bool) -> GenerationResult:
        start = time.perf_counter()
        self._sequences = {}

        existing: list[Path] = []
        if update:
            # Static documents are rewritten, so only record documents carry over
            static = set(self._tracker.documents(basename_for(STATIC_NAME, geo=self._config.geo)))
            existing = [p for p in self._regular_documents() if p not in static]

        results: list[SourceResult] = []
        failures: list[SourceFailure] = []
        for registration in self._registrations:
            run = _SourceRun(registration.name)
            try:
                results.append(self._generate_source(registration, run, update=update))
            except IOFailure:
                self._transition(run, "failed")
                raise
            except Exception as exc:
                failures.append(SourceFailure(source=run.name, state=run.state, error=exc))
                self._transition(run, "failed")
                print(f"  Error: {registration.name}: {exc}", file=sys.stderr)

        if failures:
            raise GenerationError(tuple(failures)) from failures[0].error

        static_paths = self._generate_static()

        # Sources rebuilt from scratch removed their earlier documents
        existing = [p for p in existing if p.exists()]
        produced = [p for r in results for p in r.paths]
        indexed = _unique([*existing, *produced, *static_paths])
        self._index_paths = self._generate_index(indexed)

        return GenerationResult(
            sources=tuple(results),
            static_paths=static_paths,
            index_paths=self._index_paths,
            indexed_paths=tuple(p for p in indexed if not is_index_file(p)),
            duration_ms=(time.perf_counter() - start) * 1000,
            output_dir=self._output_dir,
        )

    def _transition(self, run: _SourceRun, state: SourceState) -> None:
        run.state = state
        self._collector.record_state(run.name, state)

    def _generate_source(
        self,
        registration: SourceRegistration,
        run: _SourceRun,
        *,
        update: bool,
    ) -> SourceResult:
        t0 = time.perf_counter()
        name = registration.name
        geo = self._config.geo if registration.geo is None else registration.geo
        basename = basename_for(name, geo=geo)
        self._collector.record_state(name, run.state)

        conditions = registration.conditions
        resumed_from: Identifier | None = None
        if update:
            resumed_from = self._tracker.last_identifier(basename)
            if resumed_from is not None:
                conditions = (
                    *conditions,
                    Condition(registration.rules.id_field, ">", resumed_from),
                )
        if resumed_from is None and basename not in self._sequences:
            # Without a resume point the source is rebuilt from scratch
            self._remove_documents(basename)

        self._transition(run, "counting")
        total = registration.source.count(conditions)
        if registration.num_items is not None:
            total = min(total, registration.num_items)

        if resumed_from is not None and total == 0:
            # Nothing new: leave the existing documents as the newest ones
            self._transition(run, "closed")
            return SourceResult(
                name=name, total=0, url_count=0, batches=0, paths=(),
                resumed_from=resumed_from,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )

        windows = plan_batches(
            total,
            self._config.batch_size,
            self._config.max_per_sitemap,
            drop_tail_record=self._config.legacy_tail_limit,
        )

        writer = self._open_writer(basename, geo=geo, continue_sequence=update)
        try:
            self._transition(run, "paginating")
            current_document = windows[0].document
            for window in windows:
                if window.document != current_document:
                    writer.rotate()
                    current_document = window.document
                if window.limit <= 0:
                    continue

                batch_start = time.perf_counter()
                fetched = 0
                for record in registration.source.fetch(
                    conditions, offset=window.offset, limit=window.limit,
                ):
                    entry = registration.rules.derive(record)
                    writer.add(
                        entry.location,
                        entry.last_modified,
                        entry.change_frequency,
                        entry.priority,
                        entry.identifier,
                    )
                    fetched += 1
                self._collector.record_batch(
                    name,
                    document=window.document,
                    batch=window.batch,
                    offset=window.offset,
                    limit=window.limit,
                    records=fetched,
                    duration_ms=(time.perf_counter() - batch_start) * 1000,
                )
            self._transition(run, "writing")
        finally:
            writer.close()
        self._sequences[basename] = self._sequences.get(basename, 1) + len(writer.paths)
        self._transition(run, "closed")

        elapsed = (time.perf_counter() - t0) * 1000
        if self._verbose:
            docs = len(writer.paths)
            print(
                f"  {name}: {writer.url_count} urls in {docs} "
                f"document{'s' if docs != 1 else ''} ({elapsed:.0f}ms)",
                file=sys.stderr,
            )

        return SourceResult(
            name=name,
            total=total,
            url_count=writer.url_count,
            batches=len(windows),
            paths=writer.paths,
            resumed_from=resumed_from,
            duration_ms=elapsed,
        )

    def _open_writer(
        self,
        basename: str,
        *,
        geo: bool,
        continue_sequence: bool,
    ) -> DocumentWriter:
        if basename in self._sequences:
            # Same source registered twice in one run
            start = self._sequences[basename]
        elif continue_sequence:
            start = self._tracker.next_sequence(basename)
        else:
            start = 1
        self._sequences[basename] = start
        return DocumentWriter(
            self._output_dir,
            basename,
            max_urls=self._config.max_per_sitemap,
            max_bytes=self._config.max_bytes,
            gzip=self._config.gzip,
            geo=geo,
            start_sequence=start,
            on_document=self._collector.record_document,
        )

    def _generate_static(self) -> tuple[Path, ...]:
        if not self._static_pages:
            return ()
        basename = basename_for(STATIC_NAME, geo=self._config.geo)
        # Static pages are rewritten wholesale on every run
        self._remove_documents(basename)
        with DocumentWriter(
            self._output_dir,
            basename,
            max_urls=self._config.max_per_sitemap,
            max_bytes=self._config.max_bytes,
            gzip=self._config.gzip,
            geo=self._config.geo,
            on_document=self._collector.record_document,
        ) as writer:
            for entry in self._static_pages:
                writer.add(
                    entry.location,
                    entry.last_modified,
                    entry.change_frequency,
                    entry.priority,
                )
        return writer.paths

    def _remove_documents(self, basename: str) -> None:
        for path in self._tracker.documents(basename):
            try:
                path.unlink()
            except OSError as exc:
                msg = f"Cannot remove {path}: {exc}"
                raise IOFailure(msg) from exc

    def _generate_index(self, paths: Sequence[Path]) -> tuple[Path, ...]:
        with DocumentWriter(
            self._output_dir,
            INDEX_BASENAME,
            kind="index",
            max_urls=self._config.max_per_sitemap,
            max_bytes=self._config.max_bytes,
            gzip=self._config.gzip,
            numbered=False,
            on_document=self._collector.record_document,
        ) as writer:
            for path in paths:
                if is_index_file(path):
                    continue
                try:
                    mtime = path.stat().st_mtime
                except OSError as exc:
                    msg = f"Cannot stat {path}: {exc}"
                    raise IOFailure(msg) from exc
                writer.add(
                    self.url_for_document(path),
                    datetime.fromtimestamp(mtime, tz=UTC),
                )
        return writer.paths

    def _regular_documents(self) -> list[Path]:
        found: set[Path] = set()
        for pattern in REGULAR_GLOBS:
            found.update(self._output_dir.glob(pattern))
        return sorted(found, key=lambda p: p.name)

    # ------------------------------------------------------------------
    # Index URL and pings
    # ------------------------------------------------------------------

    def url_for_document(self, path: Path) -> str:
        """Public URL of a document in the sitemap directory."""
        segments = (self.root_url, self._config.path.strip("/"), path.name)
        return "/".join(s for s in segments if s)

    def latest_index(self) -> Path | None:
        """Newest index document of this run, or on disk from a previous one."""
        if self._index_paths:
            return self._index_paths[-1]
        on_disk: set[Path] = set()
        for pattern in INDEX_GLOBS:
            on_disk.update(self._output_dir.glob(pattern))
        if not on_disk:
            return None
        return max(on_disk, key=lambda p: p.stat().st_mtime)

    def ping_search_engines(
        self,
        *,
        client: httpx.Client | None = None,
    ) -> tuple[PingResult, ...]:
        """Ping every enabled search engine with the newest index URL.

        Never raises for delivery problems; see :mod:`sitemill.ping`.
        """
        index = self.latest_index()
        if index is None:
            print("  Warning: no sitemap index to ping; run generate first", file=sys.stderr)
            return ()
        return ping_search_engines(
            self.url_for_document(index),
            self._config,
            client=client,
            collector=self._collector,
        )


def _unique(paths: Sequence[Path]) -> list[Path]:
    seen: set[Path] = set()
    result: list[Path] = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            result.append(path)
    return result
