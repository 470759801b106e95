from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from stillbrook.classify import AfinnScorer, MatchClassifier, keyword_matches
from stillbrook.models import MatchRuleConfig, RuleChannel
from stillbrook.search.types import SearchResult


class _TableScorer:
    """Scores text by exact lookup; unknown text is neutral."""

    def __init__(self, table: dict[str, float]) -> None:
        self._table = table

    def score(self, text: str) -> float:
        return self._table.get(text, 0.0)


def _result(position: int, link: str, snippet: str = "", title: str = "") -> SearchResult:
    return SearchResult(
        position=position, title=title or f"Title {position}", link=link, snippet=snippet
    )


RESULTS = [
    _result(1, "https://www.example.com/about", snippet="acme is great"),
    _result(2, "https://news.example.com/story", snippet="acme scandal"),
    _result(3, "https://other.org/page", snippet="neutral words"),
]


def test_url_rule_matches_subdomains() -> None:
    config = MatchRuleConfig(negative=RuleChannel(urls=("example.com",), enable_urls=True))
    matches = MatchClassifier(_TableScorer({})).classify(RESULTS, config)

    assert [r.position for r in matches.negative] == [1, 2]
    assert matches.positive == []
    assert [r.position for r in matches.all] == [1, 2]


def test_disabled_rules_do_not_match() -> None:
    config = MatchRuleConfig(
        negative=RuleChannel(urls=("example.com",), keywords=("acme",)),
        positive=RuleChannel(urls=("other.org",)),
    )
    matches = MatchClassifier(_TableScorer({})).classify(RESULTS, config)
    assert matches.all == []


def test_channels_are_independent() -> None:
    config = MatchRuleConfig(
        negative=RuleChannel(keywords=("acme",), enable_keywords=True),
        positive=RuleChannel(urls=("example.com",), enable_urls=True),
    )
    matches = MatchClassifier(_TableScorer({})).classify(RESULTS, config)

    assert [r.position for r in matches.negative] == [1, 2]
    assert [r.position for r in matches.positive] == [1, 2]
    # a result in both sets appears once in the combined list
    assert [r.position for r in matches.all] == [1, 2]


def test_rules_overlapping_in_one_channel_are_deduplicated() -> None:
    config = MatchRuleConfig(
        negative=RuleChannel(
            urls=("example.com",),
            keywords=("acme", "scandal"),
            enable_urls=True,
            enable_keywords=True,
        )
    )
    matches = MatchClassifier(_TableScorer({})).classify(RESULTS, config)
    links = [r.link for r in matches.negative]
    assert links == ["https://www.example.com/about", "https://news.example.com/story"]
    assert len(links) == len(set(links))


@pytest.mark.parametrize(
    ("score", "negative", "positive"),
    [(-2.0, True, False), (-1.0, False, False), (1.0, False, False), (2.0, False, True)],
)
def test_sentiment_thresholds(score: float, negative: bool, positive: bool) -> None:
    results = [_result(1, "https://example.com", snippet="scored text")]
    config = MatchRuleConfig(
        negative=RuleChannel(enable_sentiment=True),
        positive=RuleChannel(enable_sentiment=True),
    )
    matches = MatchClassifier(_TableScorer({"scored text": score})).classify(results, config)
    assert bool(matches.negative) is negative
    assert bool(matches.positive) is positive


def test_sentiment_falls_back_to_title_when_snippet_empty() -> None:
    results = [_result(1, "https://example.com", snippet="", title="terrible title")]
    config = MatchRuleConfig(negative=RuleChannel(enable_sentiment=True))
    matches = MatchClassifier(_TableScorer({"terrible title": -3.0})).classify(results, config)
    assert [r.position for r in matches.negative] == [1]


def test_invalid_rule_url_is_skipped_with_warning() -> None:
    config = MatchRuleConfig(
        negative=RuleChannel(urls=("not a domain", "other.org"), enable_urls=True)
    )
    with capture_logs() as logs:
        matches = MatchClassifier(_TableScorer({})).classify(RESULTS, config)

    assert [r.position for r in matches.negative] == [3]
    warnings = [e for e in logs if e["log_level"] == "warning"]
    assert warnings and warnings[0]["url"] == "not a domain"


def test_unparseable_result_link_is_skipped() -> None:
    results = [_result(1, "not a link"), _result(2, "https://example.com/x")]
    config = MatchRuleConfig(negative=RuleChannel(urls=("example.com",), enable_urls=True))
    matches = MatchClassifier(_TableScorer({})).classify(results, config)
    assert [r.position for r in matches.negative] == [2]


def test_empty_results_produce_empty_sets() -> None:
    config = MatchRuleConfig(negative=RuleChannel(enable_sentiment=True))
    matches = MatchClassifier(_TableScorer({})).classify([], config)
    assert (matches.negative, matches.positive, matches.all) == ([], [], [])


def test_keyword_matches_is_case_insensitive() -> None:
    results = [_result(1, "https://a.example", snippet="ACME Corp announces"), RESULTS[2]]
    assert [r.position for r in keyword_matches(results, ["acme"])] == [1]
    assert [r.position for r in keyword_matches(results, ["AcMe"])] == [1]
    assert keyword_matches(results, ["", "  "]) == []


def test_afinn_scorer_signs() -> None:
    scorer = AfinnScorer()
    assert scorer.score("This is a terrible, horrible scandal") <= -2
    assert scorer.score("A wonderful, excellent company") >= 2
    assert scorer.score("") == 0
