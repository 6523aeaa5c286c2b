"""Tests for the sitemill error hierarchy."""

from __future__ import annotations

import pytest

from sitemill._errors import (
    ConfigurationError,
    GenerationError,
    IOFailure,
    NotificationFailure,
    SitemillError,
    SourceFailure,
    UnsupportedSourceError,
)


@pytest.mark.parametrize(
    "error",
    [ConfigurationError, UnsupportedSourceError, IOFailure, NotificationFailure, GenerationError],
)
def test_all_errors_are_sitemill_errors(error: type[Exception]) -> None:
    assert issubclass(error, SitemillError)


class TestGenerationError:
    def test_carries_failures(self) -> None:
        failures = (
            SourceFailure(source="posts", state="counting", error=RuntimeError("locked")),
            SourceFailure(source="pages", state="paginating", error=ValueError("bad row")),
        )
        error = GenerationError(failures)

        assert error.failures == failures
        assert str(error) == (
            "Sitemap generation failed for: posts (counting: locked), "
            "pages (paginating: bad row)"
        )
