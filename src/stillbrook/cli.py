from __future__ import annotations

import argparse
import sys
import time

from stillbrook import __version__
from stillbrook.cli_support import (
    add_global_flags,
    envelope_and_exit,
    log_file_from_args,
    log_level_from_args,
    wants_json,
)
from stillbrook.commands import render_cmd, search_cmd
from stillbrook.errors import ExitCode, StillbrookError
from stillbrook.logging import setup_logging
from stillbrook.output import EnvelopeMeta

_COMMANDS = (search_cmd, render_cmd)


def build_parser() -> argparse.ArgumentParser:
    global_root = argparse.ArgumentParser(add_help=False)
    add_global_flags(global_root, suppress_defaults=False)

    global_sub = argparse.ArgumentParser(add_help=False)
    add_global_flags(global_sub, suppress_defaults=True)

    parser = argparse.ArgumentParser(prog="stillbrook", parents=[global_root], add_help=True)
    parser.add_argument("--version", action="version", version=__version__)
    subparsers = parser.add_subparsers(dest="command", required=True)
    for module in _COMMANDS:
        module.register(subparsers, parents=[global_sub])
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=log_level_from_args(args), log_file=log_file_from_args(args))

    command = str(args.command)
    start = time.time()
    warnings: list[str] = []

    try:
        return int(args._handler(args=args, start=start, warnings=warnings))
    except StillbrookError as e:
        meta = EnvelopeMeta(duration_ms=int((time.time() - start) * 1000))
        if wants_json(args):
            return envelope_and_exit(
                args=args,
                command=command,
                ok=False,
                data={},
                warnings=warnings,
                error=e,
                meta=meta,
            )
        print(f"error: {e.message}", file=sys.stderr)
        if e.details and args.verbose:
            print(f"details: {e.details}", file=sys.stderr)
        return e.exit_code if e.exit_code else ExitCode.RUNTIME_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
