from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class EnvelopeMeta:
    duration_ms: int
    providers: list[str] = field(default_factory=list)
    status_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration_ms": self.duration_ms,
            "providers": self.providers,
            "status_code": self.status_code,
        }


def make_envelope(
    *,
    ok: bool,
    command: str,
    version: str,
    data: Any,
    warnings: list[str],
    error: dict[str, Any] | None,
    meta: EnvelopeMeta,
) -> dict[str, Any]:
    return {
        "ok": ok,
        "command": command,
        "version": version,
        "data": data,
        "warnings": warnings,
        "error": error,
        "meta": meta.to_dict(),
    }


def print_json(payload: dict[str, Any], *, pretty: bool) -> None:
    if pretty:
        json.dump(payload, sys.stdout, ensure_ascii=False, indent=2, sort_keys=False)
    else:
        json.dump(payload, sys.stdout, ensure_ascii=False, separators=(",", ":"))
    sys.stdout.write("\n")


def write_text(path: str, text: str) -> Path:
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    return target
