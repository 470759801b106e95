from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from stillbrook.highlight.markup import (
    TagOutcome,
    add_class,
    has_class,
    is_document,
    iter_containers,
    parse_html,
    remove_class,
    serialize,
    tag_container,
    visible_text,
)
from stillbrook.highlight.selectors import HighlightSelectorSet, selectors_for
from stillbrook.highlight.strategies import DEFAULT_STRATEGIES, LocatingStrategy
from stillbrook.highlight.styles import (
    NEGATIVE_CLASS,
    NEGATIVE_COLOR,
    POSITIVE_CLASS,
    POSITIVE_COLOR,
    ensure_styles_injected,
    wrapper_style,
)
from stillbrook.logging import get_logger
from stillbrook.search.types import SearchResult

logger = get_logger("stillbrook.highlight.engine")

SHOPPING_ITEM_CLASS = "I8iMf"
SHOPPING_CARD_CLASSES = ("MtXiu", "gkQHve", "SsM98d", "RmEs5b")


@dataclass(frozen=True, slots=True)
class KeywordOptions:
    negative_keywords: tuple[str, ...] = ()
    positive_keywords: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Polarity:
    name: str
    target_class: str
    opposite_class: str
    color: str
    overwrite_opposite: bool


NEGATIVE = Polarity(
    name="negative",
    target_class=NEGATIVE_CLASS,
    opposite_class=POSITIVE_CLASS,
    color=NEGATIVE_COLOR,
    overwrite_opposite=True,
)
POSITIVE = Polarity(
    name="positive",
    target_class=POSITIVE_CLASS,
    opposite_class=NEGATIVE_CLASS,
    color=POSITIVE_COLOR,
    overwrite_opposite=False,
)


def _normalize_title(title: str) -> str:
    return " ".join(title.lower().split())


def find_image_element(soup: BeautifulSoup, title: str) -> Tag | None:
    """An <img> whose alt mentions the title, else a text-only <div> that does."""
    image = soup.find("img", alt=lambda alt: bool(alt) and title in _normalize_title(alt))
    if image is not None:
        return image
    return soup.find(
        lambda tag: tag.name == "div"
        and tag.find(True) is None
        and title in _normalize_title(tag.get_text())
    )


def find_shopping_element(soup: BeautifulSoup, title: str) -> Tag | None:
    item = soup.find(
        lambda tag: tag.name == "li"
        and has_class(tag, SHOPPING_ITEM_CLASS)
        and title in visible_text(tag)
    )
    if item is not None:
        return item
    return soup.find(
        lambda tag: tag.name == "div"
        and any(has_class(tag, name) for name in SHOPPING_CARD_CLASSES)
        and title in visible_text(tag)
    )


_WRAP_FINDERS: dict[str, tuple[Callable[[BeautifulSoup, str], Tag | None], str]] = {
    "isch": (find_image_element, "inline-block"),
    "shop": (find_shopping_element, "block"),
}


class Highlighter:
    """Marks matched results inside a rendered results page.

    The negative pass always runs first so that a negative mark wins over a
    positive one for the same container.
    """

    def __init__(self, strategies: Sequence[LocatingStrategy] | None = None) -> None:
        self._strategies = tuple(strategies) if strategies is not None else DEFAULT_STRATEGIES

    def apply(
        self,
        html: str,
        negative: Sequence[SearchResult],
        positive: Sequence[SearchResult],
        *,
        result_type: str | None = None,
        keyword_options: KeywordOptions | None = None,
    ) -> str:
        if not html:
            return html
        keyword_options = keyword_options or KeywordOptions()
        soup = parse_html(ensure_styles_injected(html))
        selectors = selectors_for(result_type)

        passes = (
            (NEGATIVE, negative, keyword_options.negative_keywords),
            (POSITIVE, positive, keyword_options.positive_keywords),
        )
        for polarity, matches, keywords in passes:
            if result_type in _WRAP_FINDERS:
                self._wrap_pass(soup, matches, polarity, result_type)
                continue
            self._locate_pass(soup, matches, polarity, selectors)
            if keywords:
                self._keyword_pass(soup, keywords, polarity, selectors)
        return serialize(soup, fragment=not is_document(html))

    def _locate_pass(
        self,
        soup: BeautifulSoup,
        matches: Sequence[SearchResult],
        polarity: Polarity,
        selectors: HighlightSelectorSet,
    ) -> None:
        for result in matches:
            if self._locate(soup, result, polarity, selectors):
                continue
            logger.error(
                "could not locate result container",
                polarity=polarity.name,
                position=result.position,
                title=result.title,
                link=result.link,
                displayed_link=result.displayed_link,
            )

    def _locate(
        self,
        soup: BeautifulSoup,
        result: SearchResult,
        polarity: Polarity,
        selectors: HighlightSelectorSet,
    ) -> bool:
        links = list(dict.fromkeys(link for link in (result.link, result.redirect_link) if link))
        for link in links or [""]:
            for strategy in self._strategies:
                located = False
                for container in strategy.candidates(soup, result, link, selectors):
                    outcome = tag_container(
                        container,
                        target_class=polarity.target_class,
                        opposite_class=polarity.opposite_class,
                        overwrite_opposite=polarity.overwrite_opposite,
                        selectors=selectors,
                    )
                    if outcome is TagOutcome.APPLIED:
                        logger.debug(
                            "highlighted result",
                            polarity=polarity.name,
                            position=result.position,
                            strategy=strategy.name,
                        )
                        return True
                    located = located or outcome.located
                if located:
                    logger.debug(
                        "result container already marked",
                        polarity=polarity.name,
                        position=result.position,
                        strategy=strategy.name,
                    )
                    return True
        return False

    def _keyword_pass(
        self,
        soup: BeautifulSoup,
        keywords: Sequence[str],
        polarity: Polarity,
        selectors: HighlightSelectorSet,
    ) -> None:
        needles = [kw.strip().lower() for kw in keywords if kw and kw.strip()]
        if not needles:
            return
        flagged = 0
        for container in list(iter_containers(soup, selectors)):
            text = visible_text(container)
            if not any(needle in text for needle in needles):
                continue
            outcome = tag_container(
                container,
                target_class=polarity.target_class,
                opposite_class=polarity.opposite_class,
                overwrite_opposite=polarity.overwrite_opposite,
                selectors=selectors,
            )
            if outcome is TagOutcome.APPLIED:
                flagged += 1
        logger.debug("keyword pass complete", polarity=polarity.name, flagged=flagged)

    def _wrap_pass(
        self,
        soup: BeautifulSoup,
        matches: Sequence[SearchResult],
        polarity: Polarity,
        result_type: str,
    ) -> None:
        finder, display = _WRAP_FINDERS[result_type]
        for result in matches:
            title = _normalize_title(result.title or "")
            element = finder(soup, title) if title else None
            if element is None:
                logger.warning(
                    "no element matched result title",
                    polarity=polarity.name,
                    result_type=result_type,
                    position=result.position,
                    title=result.title,
                )
                continue

            existing = element.find_parent("div", class_=[NEGATIVE_CLASS, POSITIVE_CLASS])
            if existing is not None:
                if has_class(existing, polarity.target_class):
                    continue
                if not polarity.overwrite_opposite:
                    continue
                remove_class(existing, polarity.opposite_class)
                add_class(existing, polarity.target_class)
                existing["style"] = wrapper_style(polarity.color, display=display)
                continue

            wrapper = soup.new_tag(
                "div",
                attrs={
                    "class": polarity.target_class,
                    "style": wrapper_style(polarity.color, display=display),
                },
            )
            element.wrap(wrapper)
            logger.debug(
                "wrapped result",
                polarity=polarity.name,
                result_type=result_type,
                position=result.position,
            )
