from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ExitCode:
    OK = 0
    RUNTIME_ERROR = 1
    INVALID_USAGE = 2
    NOT_FOUND = 3


@dataclass(frozen=True, slots=True)
class StillbrookError(Exception):
    code: str
    message: str
    exit_code: int = ExitCode.RUNTIME_ERROR
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message

    def to_error_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(StillbrookError):
    """A required setting (usually the provider credential) is missing."""


class UpstreamError(StillbrookError):
    """The search provider answered with an HTTP, transport or payload error."""


class RenderError(StillbrookError):
    """Browser rendering and the plain HTTP fallback both failed."""
