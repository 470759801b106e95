from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from stillbrook.audit import (
    STATUS_ERROR,
    STATUS_NO_RESULTS,
    STATUS_SUCCESS,
    AuditEntry,
    build_audit_entry,
)
from stillbrook.classify import MatchClassifier
from stillbrook.errors import StillbrookError
from stillbrook.fetch.http import FetchSettings
from stillbrook.highlight.engine import Highlighter, KeywordOptions
from stillbrook.highlight.preview import build_preview
from stillbrook.logging import get_logger
from stillbrook.models import AuthenticatedUser, MatchSet, SearchRequest, SearchResponse
from stillbrook.render.browser import RenderOptions, RenderResult, render_html
from stillbrook.search.base import ResultProvider
from stillbrook.search.types import SearchPage

logger = get_logger("stillbrook.orchestrator")

NO_RESULTS_MESSAGE = "No search results found."
NO_MATCHES_MESSAGE = "No matching results found"

RenderFn = Callable[..., RenderResult]


@dataclass(frozen=True, slots=True)
class RunSearchResult:
    status_code: int
    response: SearchResponse
    audit_entry: AuditEntry


def elapsed_ms(start_time: float) -> int:
    return max(0, int((time.time() - start_time) * 1000))


class SearchOrchestrator:
    """Fetch, classify, render and highlight one search across one or two pages.

    ``start_time`` passed to :meth:`run_search` is a ``time.time()`` value
    taken by the caller when the request arrived.
    """

    def __init__(
        self,
        provider: ResultProvider,
        classifier: MatchClassifier,
        highlighter: Highlighter | None = None,
        render: RenderFn = render_html,
        *,
        render_options: RenderOptions | None = None,
        fetch_settings: FetchSettings | None = None,
    ) -> None:
        self._provider = provider
        self._classifier = classifier
        self._highlighter = highlighter or Highlighter()
        self._render = render
        self._render_options = render_options
        self._fetch_settings = fetch_settings

    def run_search(
        self,
        user: AuthenticatedUser,
        request: SearchRequest,
        start_time: float | None = None,
    ) -> RunSearchResult:
        if start_time is None:
            start_time = time.time()

        try:
            page1 = self._provider.fetch(request.query(page=0))
        except StillbrookError as exc:
            logger.error("search fetch failed", code=exc.code, error=exc.message)
            return self._error_result(user, request, exc.message, start_time)

        page2: SearchPage | None = None
        if request.include_page2:
            try:
                page2 = self._provider.fetch(request.query(page=1))
            except StillbrookError as exc:
                logger.warning(
                    "page 2 fetch failed, continuing with page 1",
                    code=exc.code,
                    error=exc.message,
                )

        page2_results = page2.results if page2 is not None else []
        combined = [*page1.results, *page2_results]
        if not combined:
            logger.info("no search results", keyword=request.keyword)
            entry = build_audit_entry(
                user,
                request,
                status=STATUS_NO_RESULTS,
                processing_time_ms=elapsed_ms(start_time),
                error_message="No search results found",
                search_id=page1.search_id,
                raw_html_url=page1.raw_html_url,
            )
            return RunSearchResult(
                status_code=404,
                response=SearchResponse(error=NO_RESULTS_MESSAGE),
                audit_entry=entry,
            )

        config = request.rule_config()
        matches = self._classifier.classify(combined, config)
        keyword_options = KeywordOptions()
        if matches.all:
            keyword_options = KeywordOptions(
                negative_keywords=config.negative.active_keywords,
                positive_keywords=config.positive.active_keywords,
            )

        html_preview = self._annotate_page(page1, matches, request, keyword_options, label="1")
        page2_html_preview: str | None = None
        if request.include_page2:
            page2_html_preview = ""
            if page2 is not None and page2.results:
                page2_html_preview = self._annotate_page(
                    page2, matches, request, keyword_options, label="2"
                )

        processing_time_ms = elapsed_ms(start_time)
        if not matches.all:
            logger.info("search complete without matches", results=len(combined))
            entry = build_audit_entry(
                user,
                request,
                status=STATUS_NO_RESULTS,
                processing_time_ms=processing_time_ms,
                error_message=NO_MATCHES_MESSAGE,
                search_id=page1.search_id,
                raw_html_url=page1.raw_html_url,
                has_highlighted_content=bool(html_preview),
            )
            response = SearchResponse(
                matched_results=[],
                results=combined,
                html_preview=html_preview,
                page2_html_preview=page2_html_preview,
                total_results=len(combined),
                no_matches=True,
            )
            return RunSearchResult(status_code=200, response=response, audit_entry=entry)

        logger.info(
            "search complete",
            results=len(combined),
            matched=len(matches.all),
            negative=len(matches.negative),
            positive=len(matches.positive),
            processing_time_ms=processing_time_ms,
        )
        entry = build_audit_entry(
            user,
            request,
            status=STATUS_SUCCESS,
            processing_time_ms=processing_time_ms,
            matched_results_count=len(matches.all),
            search_id=page1.search_id,
            raw_html_url=page1.raw_html_url,
            has_highlighted_content=bool(html_preview),
        )
        response = SearchResponse(
            matched_results=matches.all,
            results=combined,
            html_preview=html_preview,
            page2_html_preview=page2_html_preview,
            total_results=len(combined),
        )
        return RunSearchResult(status_code=200, response=response, audit_entry=entry)

    def _annotate_page(
        self,
        page: SearchPage,
        matches: MatchSet,
        request: SearchRequest,
        keyword_options: KeywordOptions,
        *,
        label: str,
    ) -> str:
        page_matches = matches.for_results(page.results)
        html = ""
        if page.raw_html_url:
            try:
                rendered = self._render(
                    page.raw_html_url,
                    options=self._render_options,
                    fetch_settings=self._fetch_settings,
                )
                html = self._highlighter.apply(
                    rendered.html,
                    page_matches.negative,
                    page_matches.positive,
                    result_type=request.result_type,
                    keyword_options=keyword_options,
                )
            except StillbrookError as exc:
                logger.warning(
                    "page render failed, using synthetic preview",
                    page=label,
                    code=exc.code,
                    error=exc.message,
                )
                html = ""
            except Exception as exc:
                logger.warning(
                    "page render failed, using synthetic preview",
                    page=label,
                    error=str(exc),
                    error_type=type(exc).__name__,
                    exc_info=True,
                )
                html = ""
        else:
            logger.info("no raw HTML snapshot for page", page=label)

        if html:
            return html
        return build_preview(
            page.results,
            {r.position for r in page_matches.negative},
            {r.position for r in page_matches.positive},
            request.keyword,
            request.is_image_search,
        )

    def _error_result(
        self,
        user: AuthenticatedUser,
        request: SearchRequest,
        message: str,
        start_time: float,
    ) -> RunSearchResult:
        entry = build_audit_entry(
            user,
            request,
            status=STATUS_ERROR,
            processing_time_ms=elapsed_ms(start_time),
            error_message=message,
        )
        return RunSearchResult(
            status_code=500,
            response=SearchResponse(error=message),
            audit_entry=entry,
        )
