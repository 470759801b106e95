from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from stillbrook.search.types import SearchQuery, SearchResult


def dedup_key(result: SearchResult) -> tuple[str, Any]:
    if result.link:
        return ("link", result.link)
    position = result.position
    if isinstance(position, (int, float)) and not isinstance(position, bool):
        if math.isfinite(position):
            return ("position", position)
    return ("text", f"{result.title}\n{result.snippet}")


def dedupe_results(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Drop later entries sharing a dedup key; keeps first-seen order."""
    seen: set[tuple[str, Any]] = set()
    unique: list[SearchResult] = []
    for result in results:
        key = dedup_key(result)
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


@dataclass(frozen=True, slots=True)
class RuleChannel:
    urls: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    enable_urls: bool = False
    enable_keywords: bool = False
    enable_sentiment: bool = False

    @property
    def active_keywords(self) -> tuple[str, ...]:
        return self.keywords if self.enable_keywords else ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "urls": list(self.urls),
            "keywords": list(self.keywords),
            "enable_urls": self.enable_urls,
            "enable_keywords": self.enable_keywords,
            "enable_sentiment": self.enable_sentiment,
        }


@dataclass(frozen=True, slots=True)
class MatchRuleConfig:
    negative: RuleChannel = field(default_factory=RuleChannel)
    positive: RuleChannel = field(default_factory=RuleChannel)


@dataclass(frozen=True, slots=True)
class MatchSet:
    negative: list[SearchResult] = field(default_factory=list)
    positive: list[SearchResult] = field(default_factory=list)
    all: list[SearchResult] = field(default_factory=list)

    def for_results(self, page_results: list[SearchResult]) -> MatchSet:
        """Restrict the set to matches that belong to one page's result list.

        Link identity is primary: positions are only unique per page, so a
        match with a link is attributed by link alone and replaced by the
        page's own copy of that result, keeping page-local positions.
        """
        by_link: dict[str, SearchResult] = {}
        for r in page_results:
            if r.link:
                by_link.setdefault(r.link, r)
        positions = {r.position for r in page_results}

        def localize(matches: list[SearchResult]) -> list[SearchResult]:
            local: list[SearchResult] = []
            for match in matches:
                if match.link:
                    if match.link in by_link:
                        local.append(by_link[match.link])
                elif match.position in positions:
                    local.append(match)
            return local

        return MatchSet(
            negative=localize(self.negative),
            positive=localize(self.positive),
            all=localize(self.all),
        )


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    id: int | None
    username: str | None = None
    email: str | None = None


@dataclass(frozen=True, slots=True)
class SearchRequest:
    keyword: str
    screenshot_type: str = "combined"
    url: str | None = None
    urls: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    positive_urls: tuple[str, ...] = ()
    positive_keywords: tuple[str, ...] = ()
    location: str | None = None
    domain: str | None = None
    language: str = "en"
    result_type: str | None = None
    country: str = "us"
    country_code: str = "us"
    saved_search_id: str | None = None
    include_page2: bool = False
    enable_negative_urls: bool = False
    enable_negative_keywords: bool = False
    enable_negative_sentiment: bool = False
    enable_positive_urls: bool = False
    enable_positive_keywords: bool = False
    enable_positive_sentiment: bool = False

    @property
    def is_image_search(self) -> bool:
        return self.result_type == "isch"

    def rule_config(self) -> MatchRuleConfig:
        negative_urls = self.urls or ((self.url,) if self.url else ())
        return MatchRuleConfig(
            negative=RuleChannel(
                urls=tuple(negative_urls),
                keywords=tuple(self.keywords),
                enable_urls=self.enable_negative_urls,
                enable_keywords=self.enable_negative_keywords,
                enable_sentiment=self.enable_negative_sentiment,
            ),
            positive=RuleChannel(
                urls=tuple(self.positive_urls),
                keywords=tuple(self.positive_keywords),
                enable_urls=self.enable_positive_urls,
                enable_keywords=self.enable_positive_keywords,
                enable_sentiment=self.enable_positive_sentiment,
            ),
        )

    def query(self, *, page: int = 0) -> SearchQuery:
        return SearchQuery(
            keyword=self.keyword,
            location=self.location,
            domain=self.domain,
            language=self.language or "en",
            result_type=self.result_type,
            country_code=self.country_code or "us",
            page=page,
        )


@dataclass(frozen=True, slots=True)
class SearchResponse:
    matched_results: list[SearchResult] | None = None
    results: list[SearchResult] | None = None
    html_preview: str | None = None
    page2_html_preview: str | None = None
    total_results: int | None = None
    no_matches: bool | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.matched_results is not None:
            data["matchedResults"] = [r.to_dict() for r in self.matched_results]
        if self.results is not None:
            data["results"] = [r.to_dict() for r in self.results]
        if self.html_preview is not None:
            data["htmlPreview"] = self.html_preview
        if self.page2_html_preview is not None:
            data["page2HtmlPreview"] = self.page2_html_preview
        if self.total_results is not None:
            data["totalResults"] = self.total_results
        if self.no_matches is not None:
            data["noMatches"] = self.no_matches
        if self.error is not None:
            data["error"] = self.error
        return data
