from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

from stillbrook.logging import get_logger
from stillbrook.models import AuthenticatedUser, SearchRequest

logger = get_logger("stillbrook.audit")

DEFAULT_AUDIT_LOCATION = "New York"

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"
STATUS_NO_RESULTS = "no_results"


@dataclass(frozen=True, slots=True)
class AuditEntry:
    user_id: int | None
    search_query: str
    search_type: str
    status: str
    username: str | None = None
    email: str | None = None
    saved_search_id: int | None = None
    urls: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    positive_urls: list[str] = field(default_factory=list)
    positive_keywords: list[str] = field(default_factory=list)
    location: str = DEFAULT_AUDIT_LOCATION
    language: str = "en"
    country: str = "us"
    matched_results_count: int = 0
    error_message: str | None = None
    search_id: str | None = None
    raw_html_url: str | None = None
    has_highlighted_content: bool = False
    processing_time_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_saved_search_id(value: str | int | None) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def build_audit_entry(
    user: AuthenticatedUser,
    request: SearchRequest,
    *,
    status: str,
    processing_time_ms: int,
    matched_results_count: int = 0,
    error_message: str | None = None,
    search_id: str | None = None,
    raw_html_url: str | None = None,
    has_highlighted_content: bool = False,
) -> AuditEntry:
    return AuditEntry(
        user_id=user.id,
        username=user.username or None,
        email=user.email or None,
        search_query=request.keyword,
        search_type=request.screenshot_type,
        status=status,
        saved_search_id=parse_saved_search_id(request.saved_search_id),
        urls=list(request.urls),
        keywords=list(request.keywords),
        positive_urls=list(request.positive_urls),
        positive_keywords=list(request.positive_keywords),
        location=request.location or DEFAULT_AUDIT_LOCATION,
        language=request.language or "en",
        country=request.country or "us",
        matched_results_count=matched_results_count,
        error_message=error_message,
        search_id=search_id,
        raw_html_url=raw_html_url,
        has_highlighted_content=has_highlighted_content,
        processing_time_ms=processing_time_ms,
    )


class AuditSink(Protocol):
    def record(self, entry: AuditEntry) -> None: ...


class LoggingAuditSink:
    """Writes each audit entry as one structured log event."""

    def record(self, entry: AuditEntry) -> None:
        logger.info("search audit", **entry.to_dict())


def submit_audit(sink: AuditSink, entry: AuditEntry) -> bool:
    """Hand ``entry`` to ``sink``; failures are logged, never raised."""
    try:
        sink.record(entry)
    except Exception as exc:
        logger.error(
            "failed to record audit entry",
            status=entry.status,
            search_query=entry.search_query,
            error=str(exc),
        )
        return False
    return True
