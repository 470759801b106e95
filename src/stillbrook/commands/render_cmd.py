from __future__ import annotations

import argparse
import sys
import time

from stillbrook.cli_support import (
    envelope_and_exit,
    fetch_settings_from_args,
    render_options_from_args,
    wants_json,
    wants_plain,
)
from stillbrook.errors import ExitCode, StillbrookError
from stillbrook.output import EnvelopeMeta, write_text
from stillbrook.render.browser import render_html
from stillbrook.urlutil import redact_url


def register(
    subparsers: argparse._SubParsersAction, *, parents: list[argparse.ArgumentParser]
) -> None:
    p = subparsers.add_parser(
        "render", parents=parents, help="Render a results snapshot URL to final HTML"
    )
    p.set_defaults(_handler=run)

    p.add_argument("url", type=str, help="URL to render")
    p.add_argument("--out", type=str, default=None, help="Write the HTML to this path")
    p.add_argument(
        "--no-wait-images",
        action="store_false",
        dest="wait_for_images",
        help="Skip the image load delay",
    )
    p.add_argument(
        "--no-scroll",
        action="store_false",
        dest="scroll_for_lazy_load",
        help="Do not scroll image searches for lazy-loaded images",
    )
    p.add_argument(
        "--wait-for",
        action="append",
        default=[],
        help="CSS selector to wait for (repeatable; default: auto)",
    )
    p.add_argument(
        "--headful", action="store_true", default=False, help="Show the browser window"
    )


def run(*, args: argparse.Namespace, start: float, warnings: list[str]) -> int:
    url = str(args.url)
    if not url.startswith(("http://", "https://")):
        raise StillbrookError(
            code="invalid_url",
            message="URL must start with http:// or https://",
            exit_code=ExitCode.INVALID_USAGE,
            details={"url": url},
        )

    options = render_options_from_args(
        args,
        headless=not args.headful,
        wait_for_images=bool(args.wait_for_images),
        scroll_for_lazy_load=bool(args.scroll_for_lazy_load),
        wait_for_selectors=tuple(args.wait_for or ()),
    )
    result = render_html(url, options=options, fetch_settings=fetch_settings_from_args(args))
    if result.method != "browser":
        warnings.append("browser render failed; HTML came from a plain HTTP fetch")

    written = write_text(args.out, result.html) if args.out else None

    if wants_plain(args):
        print(written if written is not None else redact_url(result.url))
        return ExitCode.OK

    if not wants_json(args):
        if written is not None:
            print(f"{result.method.upper()} {redact_url(result.url)} -> {written}")
        else:
            sys.stdout.write(result.html)
            if not result.html.endswith("\n"):
                sys.stdout.write("\n")
        return ExitCode.OK

    meta = EnvelopeMeta(
        duration_ms=int((time.time() - start) * 1000),
        providers=[result.method],
    )
    data = {
        "url": result.url,
        "method": result.method,
        "chars": len(result.html),
        "images": {
            "real": result.image_stats.real,
            "placeholders": result.image_stats.placeholders,
        },
        "path": None if written is None else str(written),
    }
    if written is None:
        data["html"] = result.html
    return envelope_and_exit(
        args=args,
        command="render",
        ok=True,
        data=data,
        warnings=warnings,
        error=None,
        meta=meta,
    )
