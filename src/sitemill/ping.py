"""Announce a freshly generated sitemap index to search engines.

Each enabled target receives one GET request with the index URL in its
query string.  Pings are fire-and-forget: failures and missing
credentials are reported on stderr and in the returned results, never
raised, and never retried.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from sitemill._errors import NotificationFailure

if TYPE_CHECKING:
    from sitemill.config import SitemillConfig
    from sitemill.observability.collector import GenerationCollector


@dataclass(frozen=True, slots=True)
class PingTarget:
    """A search engine ping endpoint.

    Attributes:
        name: Target name; ``ping_<name>`` is its config flag.
        endpoint: Endpoint URL without query string.
        sitemap_param: Query parameter carrying the sitemap URL.
        credential: Config attribute holding a required credential.
        credential_param: Query parameter carrying the credential.

    """

    name: str
    endpoint: str
    sitemap_param: str
    credential: str | None = None
    credential_param: str | None = None


@dataclass(frozen=True, slots=True)
class PingResult:
    """Outcome of one ping."""

    target: str
    url: str
    ok: bool
    status_code: int | None = None
    error: str | None = None


TARGETS: tuple[PingTarget, ...] = (
    PingTarget("google", "https://www.google.com/webmasters/tools/ping", "sitemap"),
    PingTarget(
        "yahoo",
        "http://search.yahooapis.com/SiteExplorerService/V1/updateNotification",
        "url",
        credential="yahoo_app_id",
        credential_param="appid",
    ),
    PingTarget("bing", "https://www.bing.com/webmaster/ping.aspx", "siteMap"),
    PingTarget("ask", "http://submissions.ask.com/ping", "sitemap"),
)


def enabled_targets(config: SitemillConfig) -> tuple[PingTarget, ...]:
    """Targets whose ``ping_<name>`` flag is set."""
    return tuple(t for t in TARGETS if getattr(config, f"ping_{t.name}", False))


def _ping_one(
    client: httpx.Client,
    target: PingTarget,
    sitemap_url: str,
    config: SitemillConfig,
) -> PingResult:
    params: dict[str, str] = {}
    if target.credential is not None:
        credential = getattr(config, target.credential, None)
        if not credential:
            msg = f'unable to ping {target.name}: no "{target.credential}" provided'
            raise NotificationFailure(msg)
        assert target.credential_param is not None
        params[target.credential_param] = credential
    params[target.sitemap_param] = sitemap_url

    request_url = str(httpx.URL(target.endpoint, params=params))
    try:
        response = client.get(target.endpoint, params=params)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        msg = f"unable to ping {target.name}: HTTP {exc.response.status_code}"
        raise NotificationFailure(msg) from exc
    except httpx.HTTPError as exc:
        msg = f"unable to ping {target.name}: {exc}"
        raise NotificationFailure(msg) from exc

    return PingResult(
        target=target.name,
        url=request_url,
        ok=True,
        status_code=response.status_code,
    )


def ping_search_engines(
    sitemap_url: str,
    config: SitemillConfig,
    *,
    client: httpx.Client | None = None,
    collector: GenerationCollector | None = None,
) -> tuple[PingResult, ...]:
    """Notify every enabled search engine about ``sitemap_url``.

    Args:
        sitemap_url: Absolute URL of the sitemap index.
        config: Supplies the ``ping_*`` flags and credentials.
        client: HTTP client to use; a short-lived one is created otherwise.
        collector: Receives a ``PingAttempted`` event per target.

    Returns:
        One result per enabled target, in target order.

    """
    targets = enabled_targets(config)
    if not targets:
        return ()

    owns_client = client is None
    http = client if client is not None else httpx.Client(timeout=config.ping_timeout)
    results: list[PingResult] = []
    try:
        for target in targets:
            try:
                result = _ping_one(http, target, sitemap_url, config)
            except NotificationFailure as exc:
                print(f"  Warning: {exc}", file=sys.stderr)
                status = None
                cause = exc.__cause__
                if isinstance(cause, httpx.HTTPStatusError):
                    status = cause.response.status_code
                result = PingResult(
                    target=target.name, url="", ok=False, status_code=status, error=str(exc),
                )
            results.append(result)
            if collector is not None:
                collector.record_ping(
                    result.target,
                    url=result.url,
                    ok=result.ok,
                    status_code=result.status_code,
                    error=result.error,
                )
    finally:
        if owns_client:
            http.close()

    return tuple(results)
