"""Recover the resume point of incremental updates from previous output.

Incremental updates never re-read old sitemaps.  Instead, every finished
document embeds the last identifier it contains in its filename, and the
tracker reads that token back from a directory listing.  Identifiers are
assumed to increase monotonically with generation order; sources with
non-monotonic identifiers must use a full ``clean`` + ``generate`` cycle.
"""

from __future__ import annotations

from pathlib import Path

from sitemill._types import Identifier
from sitemill.export.naming import DocumentName, parse_document_filename, parse_token


class UpdateTracker:
    """Reads document filenames in one output directory.

    Args:
        directory: The sitemap output directory.

    """

    __slots__ = ("_directory",)

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory

    def _parsed(self, basename: str) -> list[tuple[Path, DocumentName]]:
        if not self._directory.is_dir():
            return []
        found: list[tuple[Path, DocumentName]] = []
        for path in self._directory.iterdir():
            parsed = parse_document_filename(basename, path.name)
            if parsed is not None:
                found.append((path, parsed))
        found.sort(key=lambda item: (item[1].sequence, item[0].name))
        return found

    def documents(self, basename: str) -> list[Path]:
        """Existing documents of ``basename``, in generation order."""
        return [path for path, _ in self._parsed(basename)]

    def last_identifier(self, basename: str) -> Identifier | None:
        """Return the resume point for ``basename``, or *None*.

        Takes the highest-numbered document that carries an identifier
        token.  Documents without a token (empty files, sources
        without identifiers) are skipped.
        """
        for _, parsed in reversed(self._parsed(basename)):
            if parsed.token is not None:
                return parse_token(parsed.token)
        return None

    def next_sequence(self, basename: str) -> int:
        """Sequence number for the next document of ``basename``."""
        parsed = self._parsed(basename)
        if not parsed:
            return 1
        return max(name.sequence for _, name in parsed) + 1
