"""Tests for sitemill.export.writer — streaming sitemap documents."""

from __future__ import annotations

import gzip
from datetime import UTC, date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from sitemill._errors import IOFailure
from sitemill.export.writer import (
    DocumentWriter,
    WrittenDocument,
    format_priority,
    format_timestamp,
)

from .conftest import SITEMAP_NS, locations, read_document

GEO_NS = "http://www.google.com/geo/schemas/sitemap/1.0"


def _names(paths: tuple[Path, ...]) -> list[str]:
    return [p.name for p in paths]


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------


class TestFormatTimestamp:
    def test_none(self) -> None:
        assert format_timestamp(None) is None

    def test_string_passes_through(self) -> None:
        assert format_timestamp("2024-05-01") == "2024-05-01"

    def test_aware_datetime_converted_to_utc(self) -> None:
        value = datetime(2024, 5, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(value) == "2024-05-01T12:30:00+00:00"

    def test_naive_datetime_treated_as_utc(self) -> None:
        assert format_timestamp(datetime(2024, 5, 1, 8, 0)) == "2024-05-01T08:00:00+00:00"

    def test_epoch_seconds(self) -> None:
        assert format_timestamp(0) == "1970-01-01T00:00:00+00:00"

    def test_date(self) -> None:
        assert format_timestamp(date(2024, 5, 1)) == "2024-05-01"

    def test_unsupported(self) -> None:
        with pytest.raises(TypeError, match="Unsupported lastmod"):
            format_timestamp(object())  # type: ignore[arg-type]


class TestFormatPriority:
    @pytest.mark.parametrize(
        ("value", "expected"), [(0.5, "0.5"), (1, "1"), (1.0, "1"), ("0.8", "0.8"), (None, None)],
    )
    def test_values(self, value: float | str | None, expected: str | None) -> None:
        assert format_priority(value) == expected


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


class TestDocumentWriter:
    def test_empty_writer_leaves_valid_document(self, tmp_path: Path) -> None:
        writer = DocumentWriter(tmp_path, "sitemap_posts", gzip=False)
        writer.close()

        assert _names(writer.paths) == ["sitemap_posts_00001.xml"]
        root = read_document(writer.paths[0])
        assert root.tag == f"{{{SITEMAP_NS}}}urlset"
        assert len(root) == 0

    def test_entry_fields(self, tmp_path: Path) -> None:
        with DocumentWriter(tmp_path, "sitemap_posts", gzip=False) as writer:
            writer.add(
                "https://example.com/posts/1",
                datetime(2024, 1, 1, tzinfo=UTC),
                "daily",
                0.7,
            )

        url = read_document(writer.paths[0])[0]
        assert url.findtext(f"{{{SITEMAP_NS}}}loc") == "https://example.com/posts/1"
        assert url.findtext(f"{{{SITEMAP_NS}}}lastmod") == "2024-01-01T00:00:00+00:00"
        assert url.findtext(f"{{{SITEMAP_NS}}}changefreq") == "daily"
        assert url.findtext(f"{{{SITEMAP_NS}}}priority") == "0.7"

    def test_optional_fields_omitted(self, tmp_path: Path) -> None:
        with DocumentWriter(tmp_path, "sitemap_posts", gzip=False) as writer:
            writer.add("https://example.com/a")

        url = read_document(writer.paths[0])[0]
        assert [child.tag.split("}")[1] for child in url] == ["loc"]

    def test_last_identifier_in_filename(self, tmp_path: Path) -> None:
        with DocumentWriter(tmp_path, "sitemap_posts", gzip=False) as writer:
            for i in (1, 2, 3):
                writer.add(f"https://example.com/posts/{i}", identifier=i)

        assert _names(writer.paths) == ["sitemap_posts_00001_3.xml"]
        assert writer.documents[0].last_identifier == 3
        assert not (tmp_path / "sitemap_posts_00001.xml").exists()

    def test_rolls_over_at_max_urls(self, tmp_path: Path) -> None:
        with DocumentWriter(tmp_path, "sitemap_posts", max_urls=2, gzip=False) as writer:
            for i in range(1, 6):
                writer.add(f"https://example.com/posts/{i}", identifier=i)

        assert _names(writer.paths) == [
            "sitemap_posts_00001_2.xml",
            "sitemap_posts_00002_4.xml",
            "sitemap_posts_00003_5.xml",
        ]
        assert [doc.urls for doc in writer.documents] == [2, 2, 1]
        assert writer.url_count == 5

    def test_rolls_over_at_max_bytes(self, tmp_path: Path) -> None:
        with DocumentWriter(tmp_path, "sitemap_posts", max_bytes=400, gzip=False) as writer:
            for i in range(10):
                writer.add(f"https://example.com/posts/{i}")

        assert len(writer.documents) > 1
        assert all(doc.size_bytes <= 400 for doc in writer.documents)
        assert sum(doc.urls for doc in writer.documents) == 10
        for doc in writer.documents:
            assert doc.path.stat().st_size == doc.size_bytes

    def test_rotate(self, tmp_path: Path) -> None:
        with DocumentWriter(tmp_path, "sitemap_posts", gzip=False) as writer:
            writer.add("https://example.com/a", identifier=1)
            writer.rotate()
            writer.rotate()  # empty file: no-op
            writer.add("https://example.com/b", identifier=2)

        assert _names(writer.paths) == ["sitemap_posts_00001_1.xml", "sitemap_posts_00002_2.xml"]

    def test_start_sequence(self, tmp_path: Path) -> None:
        with DocumentWriter(tmp_path, "sitemap_posts", start_sequence=7, gzip=False) as writer:
            writer.add("https://example.com/a", identifier=70)

        assert _names(writer.paths) == ["sitemap_posts_00007_70.xml"]

    def test_gzip_output(self, tmp_path: Path) -> None:
        with DocumentWriter(tmp_path, "sitemap_posts") as writer:
            writer.add("https://example.com/a", identifier=1)

        path = writer.paths[0]
        assert path.name == "sitemap_posts_00001_1.xml.gz"
        assert gzip.decompress(path.read_bytes()).startswith(b"<?xml")
        assert locations(path) == ["https://example.com/a"]

    def test_unsafe_identifier_keeps_plain_name(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        with DocumentWriter(tmp_path, "sitemap_pages", gzip=False) as writer:
            writer.add("https://example.com/a", identifier="a/b")

        assert _names(writer.paths) == ["sitemap_pages_00001.xml"]
        assert "cannot be embedded" in capsys.readouterr().err

    def test_geo_entries(self, tmp_path: Path) -> None:
        with DocumentWriter(tmp_path, "sitemap_places_kml", geo=True, gzip=False) as writer:
            writer.add("https://example.com/places/1.kml")

        text = writer.paths[0].read_text()
        assert f'xmlns:geo="{GEO_NS}"' in text
        url = read_document(writer.paths[0])[0]
        assert url.findtext(f"{{{GEO_NS}}}geo/{{{GEO_NS}}}format") == "kml"

    def test_on_document_callback(self, tmp_path: Path) -> None:
        seen: list[WrittenDocument] = []
        with DocumentWriter(
            tmp_path, "sitemap_posts", max_urls=2, gzip=False, on_document=seen.append,
        ) as writer:
            for i in range(3):
                writer.add(f"https://example.com/{i}")

        assert [doc.path for doc in seen] == list(writer.paths)
        assert all(doc.kind == "urlset" for doc in seen)

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        writer = DocumentWriter(tmp_path, "sitemap_posts", gzip=False)
        writer.close()
        writer.close()
        assert len(writer.paths) == 1

    def test_add_after_close(self, tmp_path: Path) -> None:
        writer = DocumentWriter(tmp_path, "sitemap_posts", gzip=False)
        writer.close()
        with pytest.raises(ValueError, match="closed"):
            writer.add("https://example.com/a")

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(IOFailure, match="Cannot open"):
            DocumentWriter(tmp_path / "missing", "sitemap_posts")

    def test_invalid_max_urls(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="max_urls"):
            DocumentWriter(tmp_path, "sitemap_posts", max_urls=0)


class TestIndexWriter:
    def test_index_document(self, tmp_path: Path) -> None:
        with DocumentWriter(
            tmp_path, "sitemap-index", kind="index", numbered=False, gzip=False,
        ) as writer:
            writer.add("https://example.com/sitemaps/a.xml", "2024-01-01", "daily", 0.5)

        assert _names(writer.paths) == ["sitemap-index.xml"]
        root = read_document(writer.paths[0])
        assert root.tag == f"{{{SITEMAP_NS}}}sitemapindex"
        entry = root[0]
        assert entry.tag == f"{{{SITEMAP_NS}}}sitemap"
        # Index entries carry no changefreq or priority
        assert [child.tag.split("}")[1] for child in entry] == ["loc", "lastmod"]

    def test_index_rollover_names(self, tmp_path: Path) -> None:
        with DocumentWriter(
            tmp_path, "sitemap-index", kind="index", numbered=False, max_urls=2, gzip=False,
        ) as writer:
            for i in range(5):
                writer.add(f"https://example.com/sitemaps/{i}.xml")

        assert _names(writer.paths) == [
            "sitemap-index.xml",
            "sitemap-index_00002.xml",
            "sitemap-index_00003.xml",
        ]
