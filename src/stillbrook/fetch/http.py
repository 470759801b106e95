from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from stillbrook.errors import ExitCode, StillbrookError
from stillbrook.logging import get_logger
from stillbrook.urlutil import redact_url

logger = get_logger("stillbrook.fetch.http")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def default_headers() -> dict[str, str]:
    return {
        "accept": "text/html,*/*",
        "accept-language": "en-US,en;q=0.9",
        "user-agent": DEFAULT_USER_AGENT,
    }


@dataclass(frozen=True, slots=True)
class FetchSettings:
    timeout: float = 30.0
    proxy: str | None = None
    headers: dict[str, str] = field(default_factory=default_headers)
    follow_redirects: bool = True


@dataclass(frozen=True, slots=True)
class FetchResult:
    url: str
    final_url: str
    status: int
    html: str


def fetch_html(url: str, *, settings: FetchSettings) -> FetchResult:
    """Plain GET of a page without executing JavaScript."""
    client_args: dict[str, Any] = {
        "timeout": httpx.Timeout(timeout=settings.timeout),
        "follow_redirects": settings.follow_redirects,
    }
    if settings.proxy:
        client_args["proxy"] = settings.proxy

    try:
        with httpx.Client(**client_args) as client:
            resp = client.get(url, headers=settings.headers)
    except httpx.HTTPError as exc:
        raise StillbrookError(
            code="fetch_failed",
            message=f"HTTP fetch failed: {type(exc).__name__}",
            exit_code=ExitCode.RUNTIME_ERROR,
            details={"url": redact_url(url), "error": str(exc)},
        ) from exc

    status = resp.status_code
    final_url = str(resp.url)
    if status == 404:
        raise StillbrookError(
            code="not_found",
            message="URL returned 404 (not found)",
            exit_code=ExitCode.NOT_FOUND,
            details={"url": redact_url(url), "final_url": redact_url(final_url)},
        )
    if not resp.is_success:
        raise StillbrookError(
            code="http_error",
            message=f"URL returned HTTP {status}",
            exit_code=ExitCode.RUNTIME_ERROR,
            details={"url": redact_url(url), "status": status},
        )

    logger.debug("fetched page", url=redact_url(final_url), status=status, chars=len(resp.text))
    return FetchResult(url=url, final_url=final_url, status=status, html=resp.text)
