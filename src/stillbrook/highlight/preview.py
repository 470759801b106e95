from __future__ import annotations

import html as html_lib
import re
from collections.abc import Collection, Sequence
from urllib.parse import quote

from stillbrook.highlight.styles import (
    KEYWORD_CLASS,
    NEGATIVE_CLASS,
    POSITIVE_CLASS,
    ensure_styles_injected,
)
from stillbrook.search.types import SearchResult
from stillbrook.urlutil import get_host

PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/300x200/f0f0f0/666?text="

_EMPTY_PREVIEW = """
<div class="result-preview-root standard">
  <p class="result-summary" style="text-align:center;">No results found</p>
</div>
"""


def _escape(text: str) -> str:
    return html_lib.escape(text or "", quote=True)


def highlight_keyword(text: str, keyword: str) -> str:
    """Escape ``text`` and wrap case-insensitive occurrences of ``keyword``."""
    if not text:
        return ""
    if not keyword or not keyword.strip():
        return _escape(text)
    pattern = re.compile(re.escape(keyword.strip()), re.IGNORECASE)
    parts: list[str] = []
    cursor = 0
    for match in pattern.finditer(text):
        parts.append(_escape(text[cursor : match.start()]))
        parts.append(f'<mark class="{KEYWORD_CLASS}">{_escape(match.group(0))}</mark>')
        cursor = match.end()
    parts.append(_escape(text[cursor:]))
    return "".join(parts)


def _container_classes(
    result: SearchResult, negative_positions: Collection[int], positive_positions: Collection[int]
) -> list[str]:
    classes = ["result-container"]
    if result.position in negative_positions:
        classes.append(NEGATIVE_CLASS)
    elif result.position in positive_positions:
        classes.append(POSITIVE_CLASS)
    return classes


def _image_card(result: SearchResult, classes: list[str], keyword: str) -> str:
    image_url = PLACEHOLDER_IMAGE_URL + quote(result.title[:20], safe="")
    classes = [*classes, "image-card"]
    return f"""
<div class="{' '.join(classes)}">
  <div class="result-image-frame">
    <img src="{_escape(image_url)}" alt="{_escape(result.title or 'Image')}"
         style="width: 100%; height: 100%; object-fit: cover; display: block;">
  </div>
  <div class="result-image-title">{highlight_keyword(result.title, keyword)}</div>
</div>
"""


def _web_card(result: SearchResult, classes: list[str], keyword: str) -> str:
    shown_link = result.displayed_link or get_host(result.link) or result.link
    return f"""
<div class="{' '.join(classes)}">
  <div style="margin-bottom: 4px;">
    <div style="font-size: 14px; line-height: 1.3;">
      <a href="{_escape(result.link)}"
         style="color: #1a0dab; text-decoration: none; font-size: 20px; display: block;">
        {highlight_keyword(result.title, keyword)}
      </a>
    </div>
    <div style="font-size: 14px; color: #006621; margin-bottom: 3px;">{_escape(shown_link)}</div>
  </div>
  <div style="font-size: 14px; color: #4d5156; line-height: 1.58; max-width: 600px;">
    {highlight_keyword(result.snippet, keyword)}
  </div>
</div>
"""


def build_preview(
    results: Sequence[SearchResult],
    negative_positions: Collection[int],
    positive_positions: Collection[int],
    keyword: str,
    is_image_search: bool = False,
) -> str:
    """Standalone results fragment used when the live page could not be captured.

    Highlight classes are applied while building, with negative taking
    precedence over positive for the same position.
    """
    if not results:
        return ensure_styles_injected(_EMPTY_PREVIEW)

    cards: list[str] = []
    for result in results:
        classes = _container_classes(result, negative_positions, positive_positions)
        if is_image_search and result.title:
            cards.append(_image_card(result, classes, keyword))
        else:
            cards.append(_web_card(result, classes, keyword))

    root_class = "result-preview-root image" if is_image_search else "result-preview-root standard"
    grid_style = (
        "display: flex; flex-wrap: wrap; gap: 10px; justify-content: flex-start;"
        if is_image_search
        else ""
    )
    body = "".join(cards)
    preview = f"""
<div class="{root_class}">
  <div style="margin-bottom: 25px;">
    <div class="result-summary">About {len(results):,} results</div>
    <div style="{grid_style}">{body}</div>
  </div>
</div>
"""
    return ensure_styles_injected(preview)
