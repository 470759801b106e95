from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import ParseResult, urlparse, urlunparse

_HOST_RE = re.compile(r"^[\w.-]+$")


@dataclass(frozen=True, slots=True)
class DomainResult:
    domain: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.domain is not None


def normalize_host(host: str) -> str:
    host = host.strip().strip(".").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def normalize_domain(value: str) -> DomainResult:
    """Canonical apex-or-subdomain form of a user-supplied URL or bare domain."""
    candidate = value.strip() if value else ""
    if not candidate:
        return DomainResult(error="empty value")
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    try:
        hostname = urlparse(candidate).hostname
    except ValueError as exc:
        return DomainResult(error=f"unparseable URL: {exc}")
    if not hostname:
        return DomainResult(error="missing hostname")
    domain = normalize_host(hostname)
    if not _HOST_RE.match(domain):
        return DomainResult(error=f"invalid hostname: {domain!r}")
    if "." not in domain:
        return DomainResult(error=f"not a plausible domain: {domain!r}")
    return DomainResult(domain=domain)


def get_host(url: str) -> str | None:
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return None
    if not parsed.scheme or not hostname:
        return None
    return normalize_host(hostname)


def host_matches_domain(host: str, domain: str) -> bool:
    domain_norm = normalize_host(domain)
    if not domain_norm:
        return False
    if host == domain_norm:
        return True
    return host.endswith(f".{domain_norm}")


def apex_domain(url: str) -> str | None:
    host = get_host(url)
    if host is None:
        return None
    labels = host.split(".")
    if len(labels) <= 2:
        return host
    return ".".join(labels[-2:])


def redact_url(url: str) -> str:
    parsed = urlparse(url)
    hostname = parsed.hostname or ""
    netloc = hostname
    if parsed.port:
        netloc = f"{hostname}:{parsed.port}"
    if not netloc:
        netloc = parsed.netloc
    redacted = ParseResult(
        scheme=parsed.scheme,
        netloc=netloc,
        path=parsed.path,
        params=parsed.params,
        query="",
        fragment="",
    )
    return urlunparse(redacted)
