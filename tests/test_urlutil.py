from __future__ import annotations

from stillbrook.urlutil import (
    apex_domain,
    get_host,
    host_matches_domain,
    normalize_domain,
    redact_url,
)


def test_get_host() -> None:
    assert get_host("https://WWW.Example.COM/path") == "example.com"
    assert get_host("not a url") is None
    assert get_host("") is None


def test_normalize_domain_accepts_bare_domains_and_urls() -> None:
    assert normalize_domain("example.com").domain == "example.com"
    assert normalize_domain("  https://www.Example.com/a?b=c ").domain == "example.com"
    assert normalize_domain("news.example.co.uk").domain == "news.example.co.uk"


def test_normalize_domain_reports_errors_without_raising() -> None:
    assert normalize_domain("").ok is False
    assert normalize_domain("localhost").error is not None
    assert normalize_domain("https://").ok is False
    assert normalize_domain("http://[broken").ok is False


def test_host_matches_domain_subdomain_containment() -> None:
    assert host_matches_domain("example.com", "example.com") is True
    assert host_matches_domain("news.example.com", "example.com") is True
    assert host_matches_domain("example.com", "news.example.com") is False
    assert host_matches_domain("badexample.com", "example.com") is False


def test_apex_domain() -> None:
    assert apex_domain("https://www.news.example.com/story") == "example.com"
    assert apex_domain("https://example.org") == "example.org"
    assert apex_domain("garbage") is None


def test_redact_url() -> None:
    assert redact_url("https://serpapi.com/search?api_key=abc#frag") == "https://serpapi.com/search"
