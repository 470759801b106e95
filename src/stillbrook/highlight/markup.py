from __future__ import annotations

import html as html_lib
import re
from collections.abc import Iterator
from enum import Enum

from bs4 import BeautifulSoup, Comment, Tag

from stillbrook.highlight.selectors import HighlightSelectorSet

_WS_RE = re.compile(r"\s+")
_SKIP_TEXT_PARENTS = {"script", "style", "noscript", "template"}
_DOCUMENT_RE = re.compile(r"<(?:!doctype|html)[\s>]", re.IGNORECASE)


class TagOutcome(Enum):
    APPLIED = "applied"
    ALREADY_TAGGED = "already_tagged"
    BLOCKED = "blocked"
    REJECTED = "rejected"

    @property
    def located(self) -> bool:
        return self is not TagOutcome.REJECTED


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def is_document(html: str) -> bool:
    return _DOCUMENT_RE.search(html) is not None


def serialize(soup: BeautifulSoup, *, fragment: bool = False) -> str:
    """Render the tree back to markup, unwrapping the parser's html/head/body for fragments."""
    if not fragment or soup.body is None:
        return str(soup)
    head = soup.head.decode_contents() if soup.head is not None else ""
    return head + soup.body.decode_contents()


def class_list(tag: Tag) -> list[str]:
    value = tag.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(tag: Tag, name: str) -> bool:
    return bool(name) and name in class_list(tag)


def add_class(tag: Tag, name: str) -> None:
    classes = class_list(tag)
    if name not in classes:
        classes.append(name)
    tag["class"] = classes


def remove_class(tag: Tag, name: str) -> None:
    classes = [c for c in class_list(tag) if c != name]
    if classes:
        tag["class"] = classes
    elif tag.has_attr("class"):
        del tag["class"]


def visible_text(tag: Tag) -> str:
    """Lower-cased, whitespace-collapsed text with script/style bodies removed."""
    parts: list[str] = []
    for string in tag.find_all(string=True):
        if isinstance(string, Comment):
            continue
        parent = string.parent
        if parent is not None and parent.name in _SKIP_TEXT_PARENTS:
            continue
        parts.append(str(string))
    return _WS_RE.sub(" ", " ".join(parts)).strip().lower()


def markup_contains(tag: Tag, literal: str) -> bool:
    if not literal:
        return False
    markup = str(tag)
    return literal in markup or html_lib.escape(literal, quote=False) in markup


def _matches(tag: Tag, predicate_kind: str, selectors: HighlightSelectorSet) -> bool:
    if predicate_kind == "class":
        return has_class(tag, selectors.container_class)
    if predicate_kind == "data":
        return any(tag.has_attr(attr) for attr in selectors.data_attributes)
    return any(has_class(tag, name) for name in selectors.additional_classes)


def is_container(tag: Tag, selectors: HighlightSelectorSet) -> bool:
    return any(_matches(tag, kind, selectors) for kind in ("class", "data", "additional"))


def find_container(node: Tag, selectors: HighlightSelectorSet) -> Tag | None:
    """Nearest enclosing result container of ``node`` (inclusive).

    Container class wins over data attributes, which win over additional
    classes, regardless of which one is nearer.
    """
    lineage = [node, *node.parents]
    for kind in ("class", "data", "additional"):
        for tag in lineage:
            if isinstance(tag, Tag) and not isinstance(tag, BeautifulSoup):
                if _matches(tag, kind, selectors):
                    return tag
    return None


def iter_containers(soup: BeautifulSoup, selectors: HighlightSelectorSet) -> Iterator[Tag]:
    """Outermost result containers in document order."""
    found = soup.find_all(lambda tag: is_container(tag, selectors))
    found_ids = {id(tag) for tag in found}
    for tag in found:
        if any(id(parent) in found_ids for parent in tag.parents):
            continue
        yield tag


def is_excluded(tag: Tag, selectors: HighlightSelectorSet) -> bool:
    excluded = selectors.excluded_wrapper_class
    if not excluded:
        return False
    if has_class(tag, excluded):
        return True
    return tag.find_parent(class_=excluded) is not None


def tag_container(
    container: Tag,
    *,
    target_class: str,
    opposite_class: str,
    overwrite_opposite: bool,
    selectors: HighlightSelectorSet,
) -> TagOutcome:
    if is_excluded(container, selectors):
        return TagOutcome.REJECTED
    if not visible_text(container):
        return TagOutcome.REJECTED
    if has_class(container, target_class):
        return TagOutcome.ALREADY_TAGGED
    if has_class(container, opposite_class):
        if not overwrite_opposite:
            return TagOutcome.BLOCKED
        remove_class(container, opposite_class)
    add_class(container, target_class)
    return TagOutcome.APPLIED
