from __future__ import annotations

import os
from typing import Any
from urllib.parse import urlencode

import httpx

from stillbrook.errors import ConfigurationError, ExitCode, UpstreamError
from stillbrook.logging import get_logger
from stillbrook.search.base import ResultProvider
from stillbrook.search.types import RESULTS_PER_PAGE, SearchPage, SearchQuery, SearchResult
from stillbrook.urlutil import redact_url

logger = get_logger("stillbrook.search.serpapi")

SERPAPI_ENDPOINT = "https://serpapi.com/search"
API_KEY_ENV_VARS = ("SERPAPI_KEY", "SERP_API_KEY")

# result type code -> (payload array, field used for displayed_link)
_RESULT_ARRAYS: dict[str, tuple[str, str]] = {
    "nws": ("news_results", "source"),
    "isch": ("images_results", "source"),
    "vid": ("video_results", "displayed_link"),
    "shop": ("shopping_results", "source"),
}
_ORGANIC = ("organic_results", "displayed_link")


def _api_key_from_env() -> str | None:
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None


def _as_position(value: Any, fallback: int) -> int:
    try:
        position = int(value)
    except (TypeError, ValueError):
        return fallback
    return position if position > 0 else fallback


def _text(value: Any) -> str:
    return str(value) if value else ""


def map_result(item: dict[str, Any], index: int, result_type: str | None) -> SearchResult:
    _, source_field = _RESULT_ARRAYS.get(result_type or "", _ORGANIC)

    link = item.get("link")
    if not link and result_type == "isch":
        link = item.get("original")
    snippet = item.get("snippet")
    if not snippet and result_type == "shop":
        snippet = item.get("price")

    redirect = item.get("redirect_link")
    return SearchResult(
        position=_as_position(item.get("position"), index + 1),
        title=_text(item.get("title")),
        link=_text(link),
        snippet=_text(snippet),
        displayed_link=_text(item.get(source_field)),
        redirect_link=str(redirect) if isinstance(redirect, str) and redirect else None,
    )


def map_payload(payload: dict[str, Any], result_type: str | None) -> list[SearchResult]:
    array_name, _ = _RESULT_ARRAYS.get(result_type or "", _ORGANIC)
    items = payload.get(array_name) or []
    results = [
        map_result(item, index, result_type)
        for index, item in enumerate(items)
        if isinstance(item, dict)
    ]
    if not results:
        logger.info("provider returned no results", array=array_name, result_type=result_type)
    else:
        logger.debug("mapped provider results", array=array_name, count=len(results))
    return results


class SerpApiResultProvider(ResultProvider):
    id = "serpapi"

    def __init__(
        self, *, api_key: str | None = None, timeout: float = 30.0, proxy: str | None = None
    ) -> None:
        self._api_key = api_key or _api_key_from_env()
        self._timeout = timeout
        self._proxy = proxy

    def is_enabled(self) -> tuple[bool, str | None]:
        if not self._api_key:
            return False, "missing SERPAPI_KEY"
        return True, None

    def build_params(self, query: SearchQuery) -> dict[str, str]:
        params: dict[str, str] = {
            "engine": "google",
            "q": query.keyword,
        }
        if query.location:
            params["location"] = query.location
        params["gl"] = query.country_code or "us"
        if query.domain:
            params["google_domain"] = query.domain
        params["hl"] = query.language or "en"
        if query.result_type:
            params["tbm"] = query.result_type
        params["api_key"] = self._api_key or ""
        params["num"] = str(RESULTS_PER_PAGE)
        if query.page > 0:
            params["start"] = str(query.offset)
        return params

    def fetch(self, query: SearchQuery) -> SearchPage:
        enabled, reason = self.is_enabled()
        if not enabled:
            raise ConfigurationError(
                code="provider_not_configured",
                message="SerpAPI key not configured. Please set SERPAPI_KEY environment variable.",
                exit_code=ExitCode.INVALID_USAGE,
                details={"reason": reason},
            )

        url = f"{SERPAPI_ENDPOINT}?{urlencode(self.build_params(query))}"
        logger.info(
            "fetching search results",
            url=redact_url(url),
            keyword=query.keyword,
            page=query.page,
            result_type=query.result_type,
        )

        try:
            with httpx.Client(timeout=httpx.Timeout(self._timeout), proxy=self._proxy) as client:
                resp = client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise UpstreamError(
                code="provider_unreachable",
                message=f"SerpAPI error: {type(exc).__name__}",
                details={"page": query.page},
            ) from exc

        if not resp.is_success:
            raise UpstreamError(
                code="provider_error",
                message=f"SerpAPI error: {resp.status_code} - {resp.reason_phrase}",
                details={"status": resp.status_code, "page": query.page},
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamError(
                code="provider_bad_payload",
                message="SerpAPI error: response was not valid JSON",
                details={"page": query.page},
            ) from exc
        if not isinstance(payload, dict):
            raise UpstreamError(
                code="provider_bad_payload",
                message="SerpAPI error: unexpected response shape",
                details={"page": query.page},
            )
        if payload.get("error"):
            raise UpstreamError(
                code="provider_error",
                message=f"SerpAPI error: {payload['error']}",
                details={"page": query.page},
            )

        metadata = payload.get("search_metadata") or {}
        return SearchPage(
            results=map_payload(payload, query.result_type),
            raw_html_url=metadata.get("raw_html_file") or None,
            search_id=metadata.get("id") or None,
        )
