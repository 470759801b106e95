from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from afinn import Afinn

from stillbrook.logging import get_logger
from stillbrook.models import MatchRuleConfig, MatchSet, RuleChannel, dedupe_results
from stillbrook.search.types import SearchResult
from stillbrook.urlutil import get_host, host_matches_domain, normalize_domain

logger = get_logger("stillbrook.classify")

NEGATIVE_SENTIMENT_THRESHOLD = -2.0
POSITIVE_SENTIMENT_THRESHOLD = 2.0


class SentimentScorer(Protocol):
    def score(self, text: str) -> float: ...


class AfinnScorer:
    """Lexical sentiment: sum of AFINN-165 word valences over the text."""

    def __init__(self, *, language: str = "en") -> None:
        self._afinn = Afinn(language=language)

    def score(self, text: str) -> float:
        return float(self._afinn.score(text))


class MatchClassifier:
    def __init__(
        self,
        scorer: SentimentScorer,
        *,
        negative_threshold: float = NEGATIVE_SENTIMENT_THRESHOLD,
        positive_threshold: float = POSITIVE_SENTIMENT_THRESHOLD,
    ) -> None:
        self._scorer = scorer
        self._negative_threshold = negative_threshold
        self._positive_threshold = positive_threshold

    def classify(self, results: Sequence[SearchResult], config: MatchRuleConfig) -> MatchSet:
        if not results:
            return MatchSet()

        negative = dedupe_results(self._run_channel(results, config.negative, "negative"))
        positive = dedupe_results(self._run_channel(results, config.positive, "positive"))
        # negative first so a result matched by both keeps its negative entry
        combined = dedupe_results([*negative, *positive])

        logger.info(
            "classified results",
            results=len(results),
            negative=len(negative),
            positive=len(positive),
            total=len(combined),
        )
        return MatchSet(negative=negative, positive=positive, all=combined)

    def _run_channel(
        self, results: Sequence[SearchResult], channel: RuleChannel, polarity: str
    ) -> list[SearchResult]:
        matches: list[SearchResult] = []
        if channel.enable_urls and channel.urls:
            matches.extend(self._url_matches(results, channel.urls, polarity))
        if channel.enable_keywords and channel.keywords:
            matches.extend(keyword_matches(results, channel.keywords))
        if channel.enable_sentiment:
            matches.extend(self._sentiment_matches(results, polarity))
        return matches

    def _url_matches(
        self, results: Sequence[SearchResult], urls: Sequence[str], polarity: str
    ) -> list[SearchResult]:
        domains: list[str] = []
        for value in urls:
            normalized = normalize_domain(value)
            if normalized.domain is None:
                logger.warning(
                    "skipping invalid rule URL",
                    polarity=polarity,
                    url=value,
                    reason=normalized.error,
                )
                continue
            domains.append(normalized.domain)
        if not domains:
            return []

        matched: list[SearchResult] = []
        for result in results:
            host = get_host(result.link)
            if host is None:
                logger.warning(
                    "skipping result with unparseable link",
                    position=result.position,
                    link=result.link,
                )
                continue
            if any(host_matches_domain(host, domain) for domain in domains):
                matched.append(result)
        return matched

    def _sentiment_matches(
        self, results: Sequence[SearchResult], polarity: str
    ) -> list[SearchResult]:
        matched: list[SearchResult] = []
        for result in results:
            text = result.snippet or result.title
            if not text:
                continue
            score = self._scorer.score(text)
            if polarity == "negative" and score <= self._negative_threshold:
                matched.append(result)
            elif polarity == "positive" and score >= self._positive_threshold:
                matched.append(result)
        return matched


def keyword_matches(
    results: Sequence[SearchResult], keywords: Sequence[str]
) -> list[SearchResult]:
    needles = [kw.strip().lower() for kw in keywords if kw and kw.strip()]
    if not needles:
        return []
    matched: list[SearchResult] = []
    for result in results:
        haystack = f"{result.title or ''} {result.snippet or ''}".lower()
        if any(needle in haystack for needle in needles):
            matched.append(result)
    return matched
