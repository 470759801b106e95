from __future__ import annotations

from stillbrook.models import MatchSet, SearchRequest, SearchResponse, dedupe_results
from stillbrook.search.types import SearchResult


def test_dedupe_prefers_link_then_position_then_text() -> None:
    results = [
        SearchResult(position=1, title="A", link="https://a.example"),
        SearchResult(position=2, title="A again", link="https://a.example"),
        SearchResult(position=3, title="No link", link=""),
        SearchResult(position=3, title="Same position", link=""),
        SearchResult(position=4, title="Other", link="https://b.example"),
    ]
    unique = dedupe_results(results)
    assert [r.title for r in unique] == ["A", "No link", "Other"]
    # idempotent
    assert dedupe_results(unique) == unique


def test_dedupe_falls_back_to_title_and_snippet() -> None:
    nan = float("nan")
    results = [
        SearchResult(position=nan, title="T", link="", snippet=snippet)  # type: ignore[arg-type]
        for snippet in ("S", "S", "other")
    ]
    assert [r.snippet for r in dedupe_results(results)] == ["S", "other"]


def test_match_set_for_results_attributes_by_link_first() -> None:
    page1 = [
        SearchResult(position=1, title="p1-1", link="https://one.example"),
        SearchResult(position=2, title="p1-2", link="https://two.example"),
    ]
    page2 = [
        SearchResult(position=1, title="p2-1", link="https://three.example"),
        SearchResult(position=2, title="p2-2", link=""),
    ]
    matches = MatchSet(
        negative=[page2[0]],
        positive=[page1[1], page2[1]],
        all=[page2[0], page1[1], page2[1]],
    )

    first = matches.for_results(page1)
    assert first.negative == []
    # linkless page-2 match falls back to position and lands on page 1 too
    assert [r.title for r in first.positive] == ["p1-2", "p2-2"]

    second = matches.for_results(page2)
    assert [r.title for r in second.negative] == ["p2-1"]
    assert [r.title for r in second.positive] == ["p2-2"]


def test_match_set_for_results_uses_the_page_copy_of_a_repeated_link() -> None:
    first_seen = SearchResult(position=7, title="page 1 copy", link="https://dup.example")
    page2 = [
        SearchResult(position=1, title="page 2 copy", link="https://dup.example"),
        SearchResult(position=2, title="other", link="https://other.example"),
    ]
    matches = MatchSet(negative=[first_seen], all=[first_seen])

    local = matches.for_results(page2)

    assert [(r.position, r.title) for r in local.negative] == [(1, "page 2 copy")]
    assert local.all == [page2[0]]


def test_rule_config_uses_legacy_url_when_urls_empty() -> None:
    request = SearchRequest(keyword="acme", url="https://bad.example", enable_negative_urls=True)
    config = request.rule_config()
    assert config.negative.urls == ("https://bad.example",)
    assert config.negative.enable_urls is True

    request = SearchRequest(keyword="acme", url="https://bad.example", urls=("x.example",))
    assert request.rule_config().negative.urls == ("x.example",)


def test_rule_config_active_keywords_follow_enable_flag() -> None:
    request = SearchRequest(keyword="acme", keywords=("fraud",), positive_keywords=("award",))
    config = request.rule_config()
    assert config.negative.active_keywords == ()
    assert config.positive.active_keywords == ()

    request = SearchRequest(
        keyword="acme",
        keywords=("fraud",),
        enable_negative_keywords=True,
    )
    assert request.rule_config().negative.active_keywords == ("fraud",)


def test_search_response_omits_absent_fields() -> None:
    assert SearchResponse(error="No search results found.").to_dict() == {
        "error": "No search results found."
    }

    result = SearchResult(position=1, title="A", link="https://a.example")
    payload = SearchResponse(
        matched_results=[],
        results=[result],
        html_preview="<div></div>",
        total_results=1,
        no_matches=True,
    ).to_dict()
    assert payload["matchedResults"] == []
    assert payload["results"][0]["link"] == "https://a.example"
    assert payload["noMatches"] is True
    assert "page2HtmlPreview" not in payload
    assert "error" not in payload
