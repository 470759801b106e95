from __future__ import annotations

import pytest

from stillbrook.models import SearchRequest
from stillbrook.validation import validate_search_request


def test_valid_combined_request() -> None:
    assert validate_search_request(SearchRequest(keyword="acme")) is None


@pytest.mark.parametrize(
    ("request_", "message"),
    [
        (SearchRequest(keyword=""), "Invalid input: keyword and screenshot type are required."),
        (
            SearchRequest(keyword="acme", screenshot_type=""),
            "Invalid input: keyword and screenshot type are required.",
        ),
        (
            SearchRequest(keyword="acme", screenshot_type="exact_url_match"),
            "URL or URLs are required for Exact URL Match.",
        ),
        (
            SearchRequest(keyword="acme", screenshot_type="positive_url_match"),
            "URLs are required for Positive URL Match.",
        ),
        (
            SearchRequest(keyword="acme", screenshot_type="keyword_match"),
            "Keywords are required for Keyword Match.",
        ),
        (
            SearchRequest(keyword="acme", screenshot_type="positive_keyword_match"),
            "Keywords are required for Positive Keyword Match.",
        ),
    ],
)
def test_invalid_requests(request_: SearchRequest, message: str) -> None:
    assert validate_search_request(request_) == message


def test_mode_requirements_are_satisfied() -> None:
    assert (
        validate_search_request(
            SearchRequest(keyword="acme", screenshot_type="exact_url_match", url="a.example")
        )
        is None
    )
    assert (
        validate_search_request(
            SearchRequest(keyword="acme", screenshot_type="exact_url_match", urls=("a.example",))
        )
        is None
    )
    assert (
        validate_search_request(
            SearchRequest(
                keyword="acme", screenshot_type="positive_keyword_match", positive_keywords=("x",)
            )
        )
        is None
    )
