"""Sitemill app — config-driven entry points.

Loads ``sitemill.yaml`` (or ``.toml``) from a project root, registers the
SQLite sources and static pages it declares, and runs the generator::

    sitemill.generate("my-site/")                # full run
    sitemill.generate("my-site/", update=True)   # append new records only
    sitemill.clean("my-site/")                   # remove generated documents

"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from sitemill.config import SitemillConfig, SourceSpec
from sitemill.config_loader import load_config
from sitemill.generator import GenerationResult, SitemapGenerator
from sitemill.ping import PingResult
from sitemill.sources.sqlite import SQLiteTable


def _location_template(template: str) -> Callable[[dict[str, Any]], str]:
    """Build a location rule that formats ``template`` with a row."""

    def location(record: dict[str, Any]) -> str:
        return template.format_map(record)

    return location


def _register_source(generator: SitemapGenerator, spec: SourceSpec) -> None:
    source = SQLiteTable(spec.database, spec.table, name=spec.name, order_by=spec.order_by)
    generator.add(
        source,
        path=spec.path,
        conditions=spec.conditions,
        location=_location_template(spec.location) if spec.location else None,
        change_frequency=spec.change_frequency,
        priority=spec.priority,
        num_items=spec.num_items,
        id_field=spec.order_by,
    )


def _close_sources(generator: SitemapGenerator) -> None:
    for registration in generator.registrations:
        close = getattr(registration.source, "close", None)
        if callable(close):
            close()


def build_generator(config: SitemillConfig, *, verbose: bool = True) -> SitemapGenerator:
    """Create a generator with every source and static page from ``config``."""
    generator = SitemapGenerator(config, verbose=verbose)
    for spec in config.sources:
        _register_source(generator, spec)
    for page in config.static_pages:
        generator.add_static(
            page.url, page.last_modified, page.change_frequency, page.priority,
        )
    return generator


def generate(
    root: str | Path = ".",
    *,
    update: bool = False,
    clean: bool = False,
    ping: bool = False,
    **kwargs: object,
) -> GenerationResult:
    """Generate sitemaps for the project at ``root``.

    Args:
        root: Directory containing ``sitemill.yaml``.
        update: Append only records newer than the previous run.
        clean: Remove existing documents first (ignored with ``update``).
        ping: Notify enabled search engines afterwards.
        **kwargs: Override SitemillConfig fields.

    """
    config = load_config(Path(root), **kwargs)
    generator = build_generator(config)

    try:
        if update:
            result = generator.update()
        else:
            if clean:
                generator.clean()
            result = generator.generate()
    finally:
        _close_sources(generator)

    _print_generation_summary(result)

    if ping:
        _print_ping_summary(generator.ping_search_engines())
    return result


def clean(root: str | Path = ".", **kwargs: object) -> Path:
    """Remove generated documents for the project at ``root``."""
    config = load_config(Path(root), **kwargs)
    generator = SitemapGenerator(config)
    generator.clean()
    print(f"  Cleaned {generator.output_dir}", file=sys.stderr)
    return generator.output_dir


def ping(root: str | Path = ".", **kwargs: object) -> tuple[PingResult, ...]:
    """Ping enabled search engines with the existing sitemap index."""
    config = load_config(Path(root), **kwargs)
    results = SitemapGenerator(config).ping_search_engines()
    _print_ping_summary(results)
    return results


def _print_generation_summary(result: GenerationResult) -> None:
    """Print generation summary to stderr."""
    docs = len(result.documents)
    lines = [
        "",
        "─" * 41,
        f"  Wrote {result.url_count} url{'s' if result.url_count != 1 else ''} "
        f"from {len(result.sources)} source{'s' if len(result.sources) != 1 else ''}",
        f"  Documents: {docs} (+{len(result.index_paths)} index)",
    ]
    if result.static_paths:
        lines.append(f"  Static pages: {len(result.static_paths)} document(s)")
    lines.append(f"  Output: {result.output_dir}")
    lines.append(f"  Done in {result.duration_ms:.0f}ms")

    print("\n".join(lines), file=sys.stderr)


def _print_ping_summary(results: tuple[PingResult, ...]) -> None:
    for result in results:
        status = "ok" if result.ok else "failed"
        print(f"  Ping {result.target}: {status}", file=sys.stderr)
