from __future__ import annotations

from stillbrook.models import SearchRequest

EXACT_URL_MATCH = "exact_url_match"
POSITIVE_URL_MATCH = "positive_url_match"
KEYWORD_MATCH = "keyword_match"
POSITIVE_KEYWORD_MATCH = "positive_keyword_match"


def validate_search_request(request: SearchRequest) -> str | None:
    """Return a user-facing message for the first problem found, else None."""
    if not request.keyword or not request.keyword.strip() or not request.screenshot_type:
        return "Invalid input: keyword and screenshot type are required."

    mode = request.screenshot_type
    if mode == EXACT_URL_MATCH and not request.url and not request.urls:
        return "URL or URLs are required for Exact URL Match."
    if mode == POSITIVE_URL_MATCH and not request.positive_urls:
        return "URLs are required for Positive URL Match."
    if mode == KEYWORD_MATCH and not request.keywords:
        return "Keywords are required for Keyword Match."
    if mode == POSITIVE_KEYWORD_MATCH and not request.positive_keywords:
        return "Keywords are required for Positive Keyword Match."
    return None
