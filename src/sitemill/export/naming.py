"""Document filename grammar.

Regular documents::

    <basename>_<sequence>[_<identifier>].xml[.gz]

``basename`` is ``sitemap_<name>`` (``sitemap_<name>_kml`` for geo
sitemaps), ``sequence`` is a zero-padded counter that orders the files of
one source, and ``identifier`` is the last record identifier written into
the file.  The identifier is the persisted resume point for incremental
updates, so this grammar is a storage format: changing it breaks
``update`` against existing output.

The index is ``sitemap-index.xml[.gz]``; when it rolls over, further files
are ``sitemap-index_<sequence>.xml[.gz]``.  The hyphen keeps index files
out of the ``sitemap_*`` glob used for cleanup and aggregation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from sitemill._types import Identifier

SEQUENCE_WIDTH = 5

INDEX_BASENAME = "sitemap-index"
STATIC_NAME = "static"

REGULAR_GLOBS = ("sitemap_*.xml", "sitemap_*.xml.gz")
INDEX_GLOBS = (f"{INDEX_BASENAME}*.xml", f"{INDEX_BASENAME}*.xml.gz")

_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True, slots=True)
class DocumentName:
    """Parsed components of a regular document filename."""

    basename: str
    sequence: int
    token: str | None
    gzip: bool


def basename_for(name: str, *, geo: bool = False) -> str:
    """Return the filename stem shared by all documents of a source."""
    return f"sitemap_{name}{'_kml' if geo else ''}"


def format_token(identifier: Identifier | None) -> str | None:
    """Render an identifier for embedding in a filename.

    Returns *None* when the identifier cannot be embedded losslessly.
    """
    if identifier is None:
        return None
    token = str(identifier)
    if not _TOKEN_RE.match(token):
        return None
    return token


def parse_token(token: str) -> Identifier:
    """Decode a filename token; all-digit tokens become integers."""
    return int(token) if token.isdigit() else token


def document_filename(
    basename: str,
    sequence: int | None,
    token: str | None = None,
    *,
    gzip: bool = False,
) -> str:
    """Build a document filename.

    ``sequence=None`` produces the bare name used for the first index file.
    """
    stem = basename if sequence is None else f"{basename}_{sequence:0{SEQUENCE_WIDTH}d}"
    if token is not None:
        stem = f"{stem}_{token}"
    return f"{stem}.xml.gz" if gzip else f"{stem}.xml"


def _document_re(basename: str) -> re.Pattern[str]:
    return re.compile(
        rf"^{re.escape(basename)}_(\d{{{SEQUENCE_WIDTH},}})(?:_([A-Za-z0-9_-]+))?\.xml(\.gz)?$"
    )


def parse_document_filename(basename: str, filename: str) -> DocumentName | None:
    """Parse ``filename`` as a regular document of ``basename``.

    Returns *None* when the file belongs to another source or is not a
    document at all.
    """
    match = _document_re(basename).match(filename)
    if match is None:
        return None
    sequence, token, gz = match.groups()
    return DocumentName(
        basename=basename,
        sequence=int(sequence),
        token=token,
        gzip=gz is not None,
    )


def is_index_file(path: Path) -> bool:
    """Return True if ``path`` names a sitemap index file."""
    return path.name.startswith(INDEX_BASENAME)
