"""CLI command decorators."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

import typer

from ..config import ConfigError
from ..connection.errors import ArangoError, TransportError, is_not_found
from ..polling import PollTimeoutError
from .output import (
    CLIResponse,
    ErrorCode,
    error_response,
    print_response,
)

F = TypeVar("F", bound=Callable[..., Any])

_JOB_CODES = (ErrorCode.JOB_ERROR, ErrorCode.JOB_NOT_FOUND)


def _classify(error: Exception, default: ErrorCode) -> tuple[ErrorCode, dict[str, Any] | None]:
    if isinstance(error, ConfigError):
        return ErrorCode.CONFIG_ERROR, None
    if isinstance(error, TransportError):
        return ErrorCode.NETWORK_ERROR, {"endpoint": error.endpoint}
    if isinstance(error, PollTimeoutError):
        return ErrorCode.TIMEOUT, {"attempts": error.attempts}
    if isinstance(error, ArangoError):
        details = {"status_code": error.status_code, "error_num": error.error_num}
        if default not in _JOB_CODES:
            return ErrorCode.SERVER_ERROR, details
        return (ErrorCode.JOB_NOT_FOUND if is_not_found(error) else ErrorCode.JOB_ERROR), details
    return default, None


def cli_command(
    command_name: str,
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
) -> Callable[[F], F]:
    """Decorator that wraps CLI commands with standard error handling.

    The decorated function receives ``start_time`` as a keyword argument and
    returns a CLIResponse. Exceptions become JSON error responses and exit
    code 1; configuration, network, timeout and server errors get their own
    error codes.

    Usage:
        @jobs_app.command("list")
        @cli_command("jobs.list", ErrorCode.JOB_ERROR)
        def jobs_list(..., start_time: float = typer.Option(0.0, hidden=True)) -> CLIResponse:
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> None:
            start_time = time.time()
            # Typer passes the hidden placeholder option; the real value wins.
            kwargs.pop("start_time", None)

            try:
                response = func(*args, start_time=start_time, **kwargs)

                if isinstance(response, CLIResponse):
                    print_response(response)
                    if not response.success:
                        raise typer.Exit(1) from None

            except typer.Exit:
                raise
            except Exception as e:
                code, details = _classify(e, error_code)
                response = error_response(
                    command=command_name,
                    code=code,
                    message=str(e),
                    details=details,
                    start_time=start_time,
                )
                print_response(response)
                raise typer.Exit(1) from None

        return wrapper  # type: ignore[return-value]

    return decorator
