"""Error types raised by the connection layer and predicates over them.

Server-side failures surface as :class:`ArangoError`, built from the JSON
error body ArangoDB returns. The ``is_*`` predicates accept any exception and
follow ``__cause__`` so callers can classify wrapped errors without caring
which layer raised them.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

# General errors
ERROR_REQUEST_CANCELED = 21

# Storage errors
ERROR_ARANGO_CONFLICT = 1200
ERROR_ARANGO_DOCUMENT_NOT_FOUND = 1202
ERROR_ARANGO_DATA_SOURCE_NOT_FOUND = 1203
ERROR_ARANGO_ILLEGAL_NAME = 1208
ERROR_ARANGO_UNIQUE_CONSTRAINT_VIOLATED = 1210
ERROR_ARANGO_DATABASE_NOT_FOUND = 1228
ERROR_ARANGO_DATABASE_NAME_INVALID = 1229

# Cluster errors
ERROR_CLUSTER_LEADERSHIP_CHALLENGE_ONGOING = 1495
ERROR_CLUSTER_NOT_LEADER = 1496

# User management
ERROR_USER_DUPLICATE = 1702


class ArangoError(RuntimeError):
    """Raised when the ArangoDB HTTP API reports an error."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: dict[str, Any] | None = None,
        error_num: int | None = None,
    ) -> None:
        super().__init__(f"ArangoDB HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.details = details or {}
        if error_num is None:
            raw = self.details.get("errorNum")
            error_num = raw if isinstance(raw, int) else 0
        self.error_num = error_num

    @classmethod
    def from_body(cls, status_code: int, body: Any, fallback: str = "") -> ArangoError:
        """Build an error from a decoded response body."""
        details = body if isinstance(body, dict) else {}
        message = details.get("errorMessage") or details.get("message") or fallback or f"unexpected status {status_code}"
        return cls(status_code, message, details)

    def full_error(self) -> str:
        return f"ArangoError: Code {self.status_code}, ErrorNum {self.error_num}: {self.message}"


class InvalidArgumentError(ValueError):
    """A client-side argument is invalid; nothing was sent to the server."""


class NoEndpointsError(RuntimeError):
    """Endpoint selection was attempted on an empty endpoint set."""


class UnsupportedContentTypeError(RuntimeError):
    """No codec is registered for the requested content type."""


class TransportError(RuntimeError):
    """The request could not be delivered to the endpoint."""

    def __init__(self, endpoint: str, message: str) -> None:
        super().__init__(f"{endpoint}: {message}")
        self.endpoint = endpoint


def _check_cause(error: BaseException | None, predicate: Callable[[BaseException], bool]) -> bool:
    seen: set[int] = set()
    while error is not None and id(error) not in seen:
        if predicate(error):
            return True
        seen.add(id(error))
        error = error.__cause__
    return False


def is_arango_error_with_code(error: BaseException | None, code: int) -> bool:
    return _check_cause(error, lambda e: isinstance(e, ArangoError) and e.status_code == code)


def is_arango_error_with_error_num(error: BaseException | None, *error_nums: int) -> bool:
    return _check_cause(error, lambda e: isinstance(e, ArangoError) and e.error_num in error_nums)


def is_invalid_request(error: BaseException | None) -> bool:
    return is_arango_error_with_code(error, 400)


def is_unauthorized(error: BaseException | None) -> bool:
    return is_arango_error_with_code(error, 401)


def is_forbidden(error: BaseException | None) -> bool:
    return is_arango_error_with_code(error, 403)


def is_not_found(error: BaseException | None) -> bool:
    return is_arango_error_with_code(error, 404) or is_arango_error_with_error_num(
        error,
        ERROR_ARANGO_DOCUMENT_NOT_FOUND,
        ERROR_ARANGO_DATA_SOURCE_NOT_FOUND,
        ERROR_ARANGO_DATABASE_NOT_FOUND,
    )


def is_conflict(error: BaseException | None) -> bool:
    return is_arango_error_with_code(error, 409) or is_arango_error_with_error_num(error, ERROR_USER_DUPLICATE)


def is_precondition_failed(error: BaseException | None) -> bool:
    return is_arango_error_with_code(error, 412) or is_arango_error_with_error_num(
        error,
        ERROR_ARANGO_CONFLICT,
        ERROR_ARANGO_UNIQUE_CONSTRAINT_VIOLATED,
    )


def is_invalid_name(error: BaseException | None) -> bool:
    return is_arango_error_with_error_num(
        error,
        ERROR_ARANGO_ILLEGAL_NAME,
        ERROR_ARANGO_DATABASE_NAME_INVALID,
    )


def is_cancelled(error: BaseException | None) -> bool:
    """True for the error a cancelled async job reports when its result is read."""
    return is_arango_error_with_code(error, 410) or is_arango_error_with_error_num(error, ERROR_REQUEST_CANCELED)


def is_no_leader(error: BaseException | None) -> bool:
    return is_arango_error_with_code(error, 503) and is_arango_error_with_error_num(
        error,
        ERROR_CLUSTER_LEADERSHIP_CHALLENGE_ONGOING,
        ERROR_CLUSTER_NOT_LEADER,
    )


def is_timeout(error: BaseException | None) -> bool:
    return is_arango_error_with_code(error, 408) or is_arango_error_with_code(error, 504)


def is_temporary(error: BaseException | None) -> bool:
    return is_arango_error_with_code(error, 503)


def is_invalid_argument(error: BaseException | None) -> bool:
    return _check_cause(error, lambda e: isinstance(e, InvalidArgumentError))


__all__ = [
    "ArangoError",
    "InvalidArgumentError",
    "NoEndpointsError",
    "TransportError",
    "UnsupportedContentTypeError",
    "is_arango_error_with_code",
    "is_arango_error_with_error_num",
    "is_cancelled",
    "is_conflict",
    "is_forbidden",
    "is_invalid_argument",
    "is_invalid_name",
    "is_invalid_request",
    "is_no_leader",
    "is_not_found",
    "is_precondition_failed",
    "is_temporary",
    "is_timeout",
    "is_unauthorized",
]
