from __future__ import annotations

import argparse
from pathlib import Path

from stillbrook import __version__
from stillbrook.errors import ExitCode, StillbrookError
from stillbrook.fetch.http import FetchSettings
from stillbrook.output import EnvelopeMeta, make_envelope, print_json
from stillbrook.render.browser import RenderOptions


def wants_json(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json", False) or getattr(args, "pretty", False))


def wants_plain(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "plain", False) and not wants_json(args))


def log_level_from_args(args: argparse.Namespace) -> str | None:
    if getattr(args, "verbose", False):
        return "DEBUG"
    if getattr(args, "quiet", False):
        return "WARNING"
    return None


def log_file_from_args(args: argparse.Namespace) -> Path | None:
    value = getattr(args, "log_file", None)
    return Path(str(value)).expanduser() if value else None


def add_global_flags(parser: argparse.ArgumentParser, *, suppress_defaults: bool) -> None:
    def default(value):
        return argparse.SUPPRESS if suppress_defaults else value

    parser.add_argument(
        "--json",
        action="store_true",
        default=default(False),
        help="Output machine-readable JSON",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        default=default(False),
        help="Pretty-print JSON (implies --json)",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        default=default(False),
        help="Stable text output for piping",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        default=default(False),
        help="Only log warnings and errors",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=default(False),
        help="Debug logging to stderr",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=default(None),
        help="Also write JSON logs to this file",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=default(30.0),
        help="Network and navigation timeout in seconds",
    )
    parser.add_argument(
        "--proxy",
        type=str,
        default=default(None),
        help="HTTP(S) proxy URL",
    )


def fetch_settings_from_args(args: argparse.Namespace) -> FetchSettings:
    return FetchSettings(timeout=float(args.timeout), proxy=args.proxy)


def render_options_from_args(args: argparse.Namespace, **overrides) -> RenderOptions:
    return RenderOptions(timeout=float(args.timeout), proxy=args.proxy, **overrides)


def print_envelope(args: argparse.Namespace, payload: dict) -> None:
    if not wants_json(args):
        return
    print_json(payload, pretty=bool(getattr(args, "pretty", False)))


def envelope_and_exit(
    *,
    args: argparse.Namespace,
    command: str,
    ok: bool,
    data: object,
    warnings: list[str],
    error: StillbrookError | None,
    meta: EnvelopeMeta,
) -> int:
    payload = make_envelope(
        ok=ok,
        command=command,
        version=__version__,
        data=data,
        warnings=warnings,
        error=None if error is None else error.to_error_dict(),
        meta=meta,
    )
    print_envelope(args, payload)
    return ExitCode.OK if ok else (error.exit_code if error is not None else ExitCode.RUNTIME_ERROR)
