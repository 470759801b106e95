from __future__ import annotations

from abc import ABC, abstractmethod

from stillbrook.search.types import SearchPage, SearchQuery


class ResultProvider(ABC):
    id: str

    @abstractmethod
    def is_enabled(self) -> tuple[bool, str | None]:
        """Return (enabled, reason_if_disabled)."""

    @abstractmethod
    def fetch(self, query: SearchQuery) -> SearchPage:
        raise NotImplementedError
