from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

RESULTS_PER_PAGE = 10


@dataclass(frozen=True, slots=True)
class SearchQuery:
    keyword: str
    location: str | None = None
    domain: str | None = None
    language: str = "en"
    result_type: str | None = None
    country_code: str = "us"
    page: int = 0

    @property
    def offset(self) -> int:
        return self.page * RESULTS_PER_PAGE


@dataclass(frozen=True, slots=True)
class SearchResult:
    position: int
    title: str
    link: str
    snippet: str = ""
    displayed_link: str = ""
    redirect_link: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "position": self.position,
            "title": self.title,
            "link": self.link,
            "snippet": self.snippet,
            "displayed_link": self.displayed_link,
        }
        if self.redirect_link:
            data["redirect_link"] = self.redirect_link
        return data


@dataclass(frozen=True, slots=True)
class SearchPage:
    results: list[SearchResult] = field(default_factory=list)
    raw_html_url: str | None = None
    search_id: str | None = None
