"""Connection wrappers: async job dispatch and retries.

Async dispatch replaces "error carrying a job id" with an explicit result:
:meth:`AsyncConnectionWrapper.submit` returns :class:`JobPending`, and
:meth:`AsyncConnectionWrapper.resume` returns either the job's stored
response or another :class:`JobPending` while the server is still working.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .base import Connection, ConnectionWrapper, Request, Response
from .errors import ArangoError, TransportError

logger = logging.getLogger(__name__)

ASYNC_HEADER = "x-arango-async"
ASYNC_HEADER_VALUE = "store"
ASYNC_ID_HEADER = "x-arango-async-id"


@dataclass(frozen=True)
class JobPending:
    """An async job whose result is not available yet.

    ``decode`` turns the job's eventual response into the value the
    original operation would have returned.
    """

    job_id: str
    decode: Callable[[Response], Any] | None = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"Job with ID {self.job_id} in progress"


class AsyncConnectionWrapper(ConnectionWrapper):
    """Dispatches requests as server-side async jobs on demand.

    Plain ``do`` calls pass straight through.
    """

    def submit(self, request: Request, decode: Callable[[Response], Any] | None = None) -> JobPending:
        """Send the request as an async job and return its handle."""
        request.add_header(ASYNC_HEADER, ASYNC_HEADER_VALUE)
        response = self._connection.do(request, 202)

        job_id = response.header(ASYNC_ID_HEADER)
        if not job_id:
            raise ArangoError(response.status_code, "missing async key response")

        logger.debug(f"Submitted {request.method} {request.path} as job {job_id}")
        return JobPending(job_id, decode)

    def resume(self, job_id: str, *allowed_status_codes: int) -> Response | JobPending:
        """Fetch the stored result of a job.

        Reading a finished job's result removes it from the server.

        Raises:
            ArangoError: If the job is unknown, or the stored response status
                is not among allowed_status_codes
        """
        request = self._connection.new_request("PUT", "_api", "job", job_id)
        response = self._connection.do(request)
        answered_by_job = response.header(ASYNC_ID_HEADER) == job_id

        if response.status_code == 204 and not answered_by_job:
            return JobPending(job_id)

        if response.status_code == 404 and not answered_by_job:
            raise ArangoError.from_body(404, response.body(), f"job {job_id} not found")

        if allowed_status_codes and response.status_code not in allowed_status_codes:
            raise ArangoError.from_body(response.status_code, response.body())

        return response


# Receives the response (or None) and the error (or None) of one attempt.
RetryPredicate = Callable[[Response | None, BaseException | None], bool]


class RetryWrapper(ConnectionWrapper):
    """Repeats a request while the predicate asks for it, up to ``retries`` attempts."""

    def __init__(self, connection: Connection, retries: int, should_retry: RetryPredicate) -> None:
        super().__init__(connection)
        self._retries = max(retries, 1)
        self._should_retry = should_retry

    def do(self, request: Request, *allowed_status_codes: int) -> Response:
        attempt = 1
        while True:
            try:
                response = self._connection.do(request, *allowed_status_codes)
            except (ArangoError, TransportError) as e:
                if not self._again(attempt, None, e):
                    raise
            else:
                if not self._again(attempt, response, None):
                    return response

            logger.debug(f"Retrying {request.method} {request.path} (attempt {attempt}/{self._retries})")
            attempt += 1

    def _again(self, attempt: int, response: Response | None, error: BaseException | None) -> bool:
        return attempt < self._retries and self._should_retry(response, error)


def _is_503(response: Response | None, error: BaseException | None) -> bool:
    if error is not None:
        return isinstance(error, ArangoError) and error.status_code == 503
    return response is not None and response.status_code == 503


def retry_on_503(connection: Connection, retries: int) -> RetryWrapper:
    """Retry requests answered with 503 Service Unavailable."""
    return RetryWrapper(connection, retries, _is_503)


__all__ = [
    "ASYNC_HEADER",
    "ASYNC_HEADER_VALUE",
    "ASYNC_ID_HEADER",
    "AsyncConnectionWrapper",
    "JobPending",
    "RetryPredicate",
    "RetryWrapper",
    "retry_on_503",
]
