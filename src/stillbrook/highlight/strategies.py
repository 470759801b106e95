from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator

from bs4 import BeautifulSoup, Tag

from stillbrook.highlight.markup import (
    find_container,
    has_class,
    iter_containers,
    markup_contains,
    visible_text,
)
from stillbrook.highlight.selectors import HighlightSelectorSet
from stillbrook.search.types import SearchResult
from stillbrook.urlutil import apex_domain


class LocatingStrategy(ABC):
    """One way of finding the container that holds a search result."""

    name: str

    @abstractmethod
    def candidates(
        self,
        soup: BeautifulSoup,
        result: SearchResult,
        link: str,
        selectors: HighlightSelectorSet,
    ) -> Iterator[Tag]:
        """Yield the result containers this strategy finds, in document order."""
        raise NotImplementedError


def _anchors(soup: BeautifulSoup, link: str) -> Iterator[Tag]:
    if not link:
        return
    for anchor in soup.find_all("a", href=True):
        if anchor.get("href") == link:
            yield anchor


def _containers_of(nodes: Iterator[Tag], selectors: HighlightSelectorSet) -> Iterator[Tag]:
    seen: set[int] = set()
    for node in nodes:
        container = find_container(node, selectors)
        if container is None or id(container) in seen:
            continue
        seen.add(id(container))
        yield container


class LinkClassAnchorStrategy(LocatingStrategy):
    name = "anchor_with_link_class"

    def candidates(self, soup, result, link, selectors):
        if not selectors.link_class:
            return
        anchors = (a for a in _anchors(soup, link) if has_class(a, selectors.link_class))
        yield from _containers_of(anchors, selectors)


class AnchorStrategy(LocatingStrategy):
    name = "anchor"

    def candidates(self, soup, result, link, selectors):
        yield from _containers_of(_anchors(soup, link), selectors)


class ResultIndexStrategy(LocatingStrategy):
    name = "result_index"

    def candidates(self, soup, result, link, selectors):
        if not isinstance(result.position, int) or result.position < 1:
            return
        index = str(result.position - 1)
        nodes = soup.find_all(attrs={"data-result-index": index})
        yield from _containers_of(iter(nodes), selectors)


class DomainCooccurrenceStrategy(LocatingStrategy):
    """Containers mentioning the link's apex domain and carrying the literal href."""

    name = "domain_cooccurrence"

    def candidates(self, soup, result, link, selectors):
        domain = apex_domain(link)
        if not domain:
            return
        for container in iter_containers(soup, selectors):
            if domain in visible_text(container) and markup_contains(container, link):
                yield container


DEFAULT_STRATEGIES: tuple[LocatingStrategy, ...] = (
    LinkClassAnchorStrategy(),
    AnchorStrategy(),
    ResultIndexStrategy(),
    DomainCooccurrenceStrategy(),
)
