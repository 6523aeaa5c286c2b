"""Sitemill error hierarchy.

All sitemill-specific errors inherit from SitemillError for easy catching.
"""

from __future__ import annotations

from dataclasses import dataclass


class SitemillError(Exception):
    """Base error for all sitemill operations."""


class ConfigurationError(SitemillError):
    """Invalid or missing configuration."""


class UnsupportedSourceError(SitemillError):
    """A registered record source lacks the count/fetch capability."""


class IOFailure(SitemillError):
    """Writing or removing a sitemap document failed."""


class NotificationFailure(SitemillError):
    """A search engine ping could not be delivered."""


@dataclass(frozen=True, slots=True)
class SourceFailure:
    """A single source that failed during a generation run.

    Attributes:
        source: Registered source name.
        state: State the source was in when it failed.
        error: The exception raised by the source.

    """

    source: str
    state: str
    error: BaseException


class GenerationError(SitemillError):
    """One or more sources failed; carries every failure of the run."""

    def __init__(self, failures: tuple[SourceFailure, ...]) -> None:
        self.failures = failures
        names = ", ".join(f"{f.source} ({f.state}: {f.error})" for f in failures)
        super().__init__(f"Sitemap generation failed for: {names}")
