from __future__ import annotations

import argparse
import sys
import time

from stillbrook.audit import AuditSink, LoggingAuditSink, submit_audit
from stillbrook.classify import AfinnScorer, MatchClassifier
from stillbrook.cli_support import (
    envelope_and_exit,
    fetch_settings_from_args,
    render_options_from_args,
    wants_json,
    wants_plain,
)
from stillbrook.errors import ExitCode, StillbrookError
from stillbrook.models import AuthenticatedUser, SearchRequest
from stillbrook.orchestrator import RunSearchResult, SearchOrchestrator
from stillbrook.output import EnvelopeMeta, write_text
from stillbrook.render.browser import render_html
from stillbrook.search.base import ResultProvider
from stillbrook.search.serpapi_provider import SerpApiResultProvider
from stillbrook.validation import validate_search_request

_STATUS_EXIT_CODES = {
    200: ExitCode.OK,
    400: ExitCode.INVALID_USAGE,
    404: ExitCode.NOT_FOUND,
}


def register(
    subparsers: argparse._SubParsersAction, *, parents: list[argparse.ArgumentParser]
) -> None:
    p = subparsers.add_parser(
        "search", parents=parents, help="Search, classify and highlight matching results"
    )
    p.set_defaults(_handler=run)

    p.add_argument("keyword", type=str, help="Search keyword")
    p.add_argument(
        "--screenshot-type",
        type=str,
        default="combined",
        help="Match mode label (exact_url_match, keyword_match, ...; default: combined)",
    )
    p.add_argument("--url", type=str, default=None, help="Single negative URL (legacy)")
    p.add_argument(
        "--negative-url", action="append", default=[], help="Negative URL/domain (repeatable)"
    )
    p.add_argument(
        "--negative-keyword", action="append", default=[], help="Negative keyword (repeatable)"
    )
    p.add_argument(
        "--positive-url", action="append", default=[], help="Positive URL/domain (repeatable)"
    )
    p.add_argument(
        "--positive-keyword", action="append", default=[], help="Positive keyword (repeatable)"
    )
    for polarity in ("negative", "positive"):
        for rule in ("urls", "keywords", "sentiment"):
            p.add_argument(
                f"--enable-{polarity}-{rule}",
                action="store_true",
                default=False,
                help=f"Enable the {polarity} {rule} rule",
            )
    p.add_argument("--location", type=str, default=None, help="Search location")
    p.add_argument(
        "--google-domain", type=str, default=None, help="Google domain (e.g. google.co.uk)"
    )
    p.add_argument("--language", type=str, default="en", help="Interface language (default: en)")
    p.add_argument(
        "--result-type",
        type=str,
        default=None,
        help="Result kind: nws, isch, vid or shop (default: web)",
    )
    p.add_argument("--country", type=str, default="us", help="Country recorded for audit")
    p.add_argument("--country-code", type=str, default="us", help="Provider country code")
    p.add_argument("--saved-search-id", type=str, default=None, help="Saved search id")
    p.add_argument(
        "--page2", action="store_true", default=False, help="Also fetch and highlight page 2"
    )
    p.add_argument("--html-out", type=str, default=None, help="Write page 1 HTML to this path")
    p.add_argument(
        "--page2-html-out", type=str, default=None, help="Write page 2 HTML to this path"
    )
    p.add_argument("--user-id", type=int, default=None, help="Requesting user id")
    p.add_argument("--username", type=str, default=None, help="Requesting username")
    p.add_argument("--email", type=str, default=None, help="Requesting user email")


def request_from_args(args: argparse.Namespace) -> SearchRequest:
    return SearchRequest(
        keyword=str(args.keyword).strip(),
        screenshot_type=str(args.screenshot_type or ""),
        url=args.url,
        urls=tuple(args.negative_url or ()),
        keywords=tuple(args.negative_keyword or ()),
        positive_urls=tuple(args.positive_url or ()),
        positive_keywords=tuple(args.positive_keyword or ()),
        location=args.location,
        domain=args.google_domain,
        language=args.language or "en",
        result_type=args.result_type,
        country=args.country or "us",
        country_code=args.country_code or "us",
        saved_search_id=args.saved_search_id,
        include_page2=bool(args.page2),
        enable_negative_urls=bool(args.enable_negative_urls),
        enable_negative_keywords=bool(args.enable_negative_keywords),
        enable_negative_sentiment=bool(args.enable_negative_sentiment),
        enable_positive_urls=bool(args.enable_positive_urls),
        enable_positive_keywords=bool(args.enable_positive_keywords),
        enable_positive_sentiment=bool(args.enable_positive_sentiment),
    )


def make_provider(args: argparse.Namespace) -> ResultProvider:
    return SerpApiResultProvider(timeout=float(args.timeout), proxy=args.proxy)


def make_audit_sink() -> AuditSink:
    return LoggingAuditSink()


def make_orchestrator(args: argparse.Namespace, provider: ResultProvider) -> SearchOrchestrator:
    return SearchOrchestrator(
        provider,
        MatchClassifier(AfinnScorer()),
        render=render_html,
        render_options=render_options_from_args(args),
        fetch_settings=fetch_settings_from_args(args),
    )


def run(*, args: argparse.Namespace, start: float, warnings: list[str]) -> int:
    request = request_from_args(args)
    problem = validate_search_request(request)
    if problem:
        raise StillbrookError(
            code="invalid_request",
            message=problem,
            exit_code=ExitCode.INVALID_USAGE,
        )

    provider = make_provider(args)
    enabled, reason = provider.is_enabled()
    if not enabled and reason:
        warnings.append(reason)

    user = AuthenticatedUser(id=args.user_id, username=args.username, email=args.email)
    outcome = make_orchestrator(args, provider).run_search(user, request, start)
    submit_audit(make_audit_sink(), outcome.audit_entry)

    _write_html(args, outcome)
    response = outcome.response
    exit_code = _STATUS_EXIT_CODES.get(outcome.status_code, ExitCode.RUNTIME_ERROR)

    if wants_plain(args):
        if response.error:
            print(f"error: {response.error}", file=sys.stderr)
            return exit_code
        for result in response.matched_results or []:
            print(result.link)
        return exit_code

    if not wants_json(args):
        _print_summary(outcome)
        return exit_code

    meta = EnvelopeMeta(
        duration_ms=int((time.time() - start) * 1000),
        providers=[provider.id],
        status_code=outcome.status_code,
    )
    error = None
    if outcome.status_code != 200:
        error = StillbrookError(
            code="not_found" if outcome.status_code == 404 else "search_failed",
            message=response.error or "search failed",
            exit_code=exit_code,
        )
    return envelope_and_exit(
        args=args,
        command="search",
        ok=error is None,
        data=response.to_dict(),
        warnings=warnings,
        error=error,
        meta=meta,
    )


def _write_html(args: argparse.Namespace, outcome: RunSearchResult) -> None:
    response = outcome.response
    if args.html_out and response.html_preview:
        write_text(args.html_out, response.html_preview)
    if args.page2_html_out and response.page2_html_preview:
        write_text(args.page2_html_out, response.page2_html_preview)


def _print_summary(outcome: RunSearchResult) -> None:
    response = outcome.response
    if response.error:
        print(f"error: {response.error}", file=sys.stderr)
        return
    matched = response.matched_results or []
    print(f"{len(matched)} matched of {response.total_results or 0} results")
    if response.no_matches:
        print("no matching results")
        return
    for result in matched:
        print(f"{result.position}. {result.title}")
        print(f"   {result.link}")
