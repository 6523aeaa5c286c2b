"""Tests for sitemill.tracker — resume points from previous output."""

from __future__ import annotations

from pathlib import Path

from sitemill.tracker import UpdateTracker


def _touch(directory: Path, *names: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_text("")


class TestUpdateTracker:
    def test_missing_directory(self, tmp_path: Path) -> None:
        tracker = UpdateTracker(tmp_path / "missing")
        assert tracker.documents("sitemap_posts") == []
        assert tracker.last_identifier("sitemap_posts") is None
        assert tracker.next_sequence("sitemap_posts") == 1

    def test_last_identifier_from_newest_document(self, tmp_path: Path) -> None:
        _touch(
            tmp_path,
            "sitemap_posts_00001_500.xml.gz",
            "sitemap_posts_00002_1000.xml.gz",
            "sitemap_posts_00003_1200.xml.gz",
        )
        tracker = UpdateTracker(tmp_path)
        assert tracker.last_identifier("sitemap_posts") == 1200
        assert tracker.next_sequence("sitemap_posts") == 4

    def test_documents_in_generation_order(self, tmp_path: Path) -> None:
        _touch(tmp_path, "sitemap_posts_00002_9.xml", "sitemap_posts_00001_4.xml")
        names = [p.name for p in UpdateTracker(tmp_path).documents("sitemap_posts")]
        assert names == ["sitemap_posts_00001_4.xml", "sitemap_posts_00002_9.xml"]

    def test_documents_without_token_are_skipped(self, tmp_path: Path) -> None:
        _touch(tmp_path, "sitemap_posts_00001_40.xml", "sitemap_posts_00002.xml")
        tracker = UpdateTracker(tmp_path)
        assert tracker.last_identifier("sitemap_posts") == 40
        assert tracker.next_sequence("sitemap_posts") == 3

    def test_string_identifiers(self, tmp_path: Path) -> None:
        _touch(tmp_path, "sitemap_pages_00001_about-us.xml")
        assert UpdateTracker(tmp_path).last_identifier("sitemap_pages") == "about-us"

    def test_other_sources_and_index_ignored(self, tmp_path: Path) -> None:
        _touch(
            tmp_path,
            "sitemap_posts_00001_10.xml",
            "sitemap_pages_00004_99.xml",
            "sitemap-index.xml",
            "notes.txt",
        )
        tracker = UpdateTracker(tmp_path)
        assert [p.name for p in tracker.documents("sitemap_posts")] == [
            "sitemap_posts_00001_10.xml",
        ]
        assert tracker.last_identifier("sitemap_posts") == 10
        assert tracker.next_sequence("sitemap_pages") == 5

    def test_sequence_order_beyond_padding(self, tmp_path: Path) -> None:
        _touch(tmp_path, "sitemap_posts_99999_5.xml", "sitemap_posts_100000_7.xml")
        tracker = UpdateTracker(tmp_path)
        assert tracker.last_identifier("sitemap_posts") == 7
        assert tracker.next_sequence("sitemap_posts") == 100001

    def test_directory_property(self, tmp_path: Path) -> None:
        assert UpdateTracker(tmp_path).directory == tmp_path
