"""Shared test fixtures for sitemill."""

from __future__ import annotations

import gzip
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from xml.etree.ElementTree import Element, fromstring

import pytest

from sitemill.config import SitemillConfig

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., SitemillConfig]:
    """Factory for configs rooted in ``tmp_path/public``.

    Defaults to plain XML output so documents are easy to inspect.
    """

    def factory(**overrides: Any) -> SitemillConfig:
        options: dict[str, Any] = {
            "document_root": tmp_path / "public",
            "base_url": "https://example.com",
            "gzip": False,
        }
        options.update(overrides)
        return SitemillConfig(**options)

    return factory


def make_posts(first: int, last: int) -> list[dict[str, Any]]:
    """Records with ids ``first..last`` inclusive."""
    return [
        {
            "id": i,
            "slug": f"post-{i}",
            "updated_at": datetime(2024, 1, 1, 12, 0, tzinfo=UTC),
        }
        for i in range(first, last + 1)
    ]


def read_document(path: Path) -> Element:
    """Parse a plain or gzipped sitemap document."""
    data = gzip.decompress(path.read_bytes()) if path.name.endswith(".gz") else path.read_bytes()
    return fromstring(data)


def locations(path: Path) -> list[str]:
    """All ``<loc>`` values of a urlset or index document."""
    root = read_document(path)
    return [el.text or "" for el in root.iter(f"{{{SITEMAP_NS}}}loc")]
