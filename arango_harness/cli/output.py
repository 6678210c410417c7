"""JSON output formatting for the harness CLI.

Every command prints one JSON document on stdout so results can be piped
into other tools. Progress messages go to stderr through rich.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import orjson
from rich.console import Console

_stderr_console = Console(stderr=True, highlight=False)


class ErrorCode(str, Enum):
    """Error codes reported in the ``error.code`` field."""

    CONFIG_ERROR = "CONFIG_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    JOB_NOT_FOUND = "JOB_NOT_FOUND"
    JOB_ERROR = "JOB_ERROR"
    TIMEOUT = "TIMEOUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass
class CLIResponse:
    """One command result: ``data`` on success, ``error`` on failure."""

    success: bool
    command: str
    data: dict[str, Any] | list[Any] | None = None
    error: dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def payload(self) -> dict[str, Any]:
        optional = {"data": self.data, "error": self.error, "metadata": self.metadata or None}
        return {
            "success": self.success,
            "command": self.command,
            **{key: value for key, value in optional.items() if value is not None},
        }

    def to_json(self, indent: bool = True) -> str:
        return orjson.dumps(
            self.payload(),
            option=orjson.OPT_INDENT_2 if indent else 0,
            default=str,
        ).decode()


def _timing(start_time: float | None) -> dict[str, Any]:
    if start_time is None:
        return {}
    return {"duration_ms": int((time.time() - start_time) * 1000)}


def success_response(
    command: str,
    data: dict[str, Any] | list[Any],
    start_time: float | None = None,
    **extra_metadata: Any,
) -> CLIResponse:
    """Wrap command data; lists also report their length as ``count``."""
    metadata = _timing(start_time)
    if isinstance(data, list):
        metadata["count"] = len(data)
    metadata.update(extra_metadata)
    return CLIResponse(success=True, command=command, data=data, metadata=metadata)


def error_response(
    command: str,
    code: ErrorCode,
    message: str,
    details: dict[str, Any] | None = None,
    start_time: float | None = None,
) -> CLIResponse:
    error: dict[str, Any] = {"code": code.value, "message": message}
    if details:
        error["details"] = details
    return CLIResponse(success=False, command=command, error=error, metadata=_timing(start_time))


def print_response(response: CLIResponse) -> None:
    print(response.to_json())


def progress(message: str) -> None:
    """Report progress on stderr; markup is dropped when stderr is not a terminal."""
    _stderr_console.print(f"[dim]{message}[/dim]")
