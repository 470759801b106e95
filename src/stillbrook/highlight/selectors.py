from __future__ import annotations

from dataclasses import dataclass

EXCLUDED_CONTAINER_WRAPPER_CLASS = "ULSxyf"


@dataclass(frozen=True, slots=True)
class HighlightSelectorSet:
    container_class: str
    link_class: str = ""
    data_attributes: tuple[str, ...] = ()
    additional_classes: tuple[str, ...] = ()
    excluded_wrapper_class: str = EXCLUDED_CONTAINER_WRAPPER_CLASS


DEFAULT_HIGHLIGHT_SELECTORS = HighlightSelectorSet(
    container_class="MjjYud",
    link_class="zReHs",
    data_attributes=("data-news-doc-id",),
    additional_classes=("b2Rnsc",),
)

NEWS_HIGHLIGHT_SELECTORS = HighlightSelectorSet(
    container_class="SoaBEf",
    link_class="WlydOe",
    data_attributes=("data-news-doc-id",),
    additional_classes=("qR29te",),
)

_SELECTORS_BY_RESULT_TYPE: dict[str, HighlightSelectorSet] = {
    "nws": NEWS_HIGHLIGHT_SELECTORS,
}


def selectors_for(result_type: str | None) -> HighlightSelectorSet:
    if result_type and result_type in _SELECTORS_BY_RESULT_TYPE:
        return _SELECTORS_BY_RESULT_TYPE[result_type]
    return DEFAULT_HIGHLIGHT_SELECTORS
