"""Async job management (``/_api/job``).

A request sent through an async-wrapped connection yields a
:class:`~arango_harness.connection.wrappers.JobPending` instead of a result.
:class:`AsyncJobClient` lists, inspects, fetches, cancels and deletes such
jobs:

    job = client.asynchronous().version()
    client.async_jobs.list(JobStatus.PENDING)      # [job.job_id]
    info = client.async_jobs.wait(job, timeout=10, interval=0.1)
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from ..connection.base import Connection, Response, unwrap
from ..connection.errors import ArangoError, InvalidArgumentError
from ..connection.wrappers import AsyncConnectionWrapper, JobPending
from ..polling import Interrupt, Timeout

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    DONE = "done"
    PENDING = "pending"


class DeleteScope(str, Enum):
    """Which jobs a delete call removes."""

    SINGLE = "single"
    DONE = "done"
    ALL = "all"
    EXPIRED = "expired"


def decode_job_response(job: JobPending, response: Response) -> Any:
    """Turn a finished job's stored response into the operation's result.

    Raises:
        ArangoError: The operation's own error, or the cancellation error of a
            cancelled job
    """
    if job.decode is not None:
        return job.decode(response)
    if response.status_code >= 400:
        raise ArangoError.from_body(response.status_code, response.body(), f"job {job.job_id} failed")
    return response.body()


class AsyncJobClient:
    """Client for the server's async job registry."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def list(self, status: JobStatus, count: int | None = None) -> list[str]:
        """
        List job IDs in the given state.

        Args:
            status: DONE or PENDING
            count: Maximum number of IDs to return

        Returns:
            Job IDs, without results
        """
        request = self._connection.new_request("GET", "_api", "job", JobStatus(status).value)
        if count:
            request.add_query("count", str(count))

        response = self._connection.do(request, 200)
        return list(response.body() or [])

    def status(self, job_id: str) -> JobStatus:
        """
        Return the state of a job without consuming its result.

        Raises:
            ArangoError: If the job is unknown (404)
        """
        request = self._connection.new_request("GET", "_api", "job", job_id)
        response = self._connection.do(request, 200, 204)
        return JobStatus.DONE if response.status_code == 200 else JobStatus.PENDING

    def fetch(self, job: JobPending | str) -> Any:
        """
        Read the result of a job.

        Reading a finished job removes it from the done list.

        Returns:
            The decoded result, or a JobPending while the job is still running

        Raises:
            ArangoError: If the job is unknown, failed, or was cancelled
        """
        if isinstance(job, str):
            job = JobPending(job)

        outcome = self._async_wrapper().resume(job.job_id)
        if isinstance(outcome, JobPending):
            return JobPending(job.job_id, job.decode)
        return decode_job_response(job, outcome)

    def wait(self, job: JobPending | str, timeout: float = 60.0, interval: float = 0.5) -> Any:
        """
        Poll a job until it finishes and return its result.

        Raises:
            PollTimeoutError: If the job is still pending after timeout
            ArangoError: If the job is unknown, failed, or was cancelled
        """
        result: list[Any] = []

        def probe() -> None:
            value = self.fetch(job)
            if not isinstance(value, JobPending):
                result.append(value)
                raise Interrupt()

        Timeout(probe).run(timeout, interval)
        return result[0]

    def cancel(self, job_id: str) -> bool:
        """
        Cancel a running job.

        The job moves to the done list; fetching it afterwards raises an
        error for which ``is_cancelled`` holds.
        """
        request = self._connection.new_request("PUT", "_api", "job", job_id, "cancel")
        response = self._connection.do(request, 200)
        body = response.body() or {}
        logger.debug(f"Cancelled job {job_id}: {body.get('result')}")
        return bool(body.get("result", False))

    def delete(
        self,
        scope: DeleteScope,
        job_id: str | None = None,
        stamp: datetime | float | None = None,
    ) -> bool:
        """
        Delete job results.

        Args:
            scope: SINGLE (needs job_id), DONE, ALL or EXPIRED (needs stamp)
            job_id: Job to delete for SINGLE
            stamp: Jobs created before this moment are removed for EXPIRED

        Returns:
            The server's ``result`` flag

        Raises:
            InvalidArgumentError: If job_id or stamp is missing for its scope
            ArangoError: If a single job is unknown
        """
        scope = DeleteScope(scope)

        if scope == DeleteScope.DONE:
            # The server has no "done only" delete; remove each finished job.
            deleted = True
            for done_id in self.list(JobStatus.DONE):
                deleted = self.delete(DeleteScope.SINGLE, done_id) and deleted
            return deleted

        if scope == DeleteScope.SINGLE:
            if not job_id:
                raise InvalidArgumentError("jobID must be set when deleting a single job")
            request = self._connection.new_request("DELETE", "_api", "job", job_id)
        elif scope == DeleteScope.EXPIRED:
            if stamp is None:
                raise InvalidArgumentError("stamp must be set when deleting expired jobs")
            request = self._connection.new_request("DELETE", "_api", "job", "expired")
            request.add_query("stamp", str(int(_timestamp(stamp))))
        else:
            request = self._connection.new_request("DELETE", "_api", "job", "all")

        response = self._connection.do(request, 200)
        body = response.body() or {}
        return bool(body.get("result", False))

    def _async_wrapper(self) -> AsyncConnectionWrapper:
        wrapper = unwrap(self._connection, AsyncConnectionWrapper)
        if wrapper is None:
            # Resuming only needs the job endpoint; any connection can serve it.
            return AsyncConnectionWrapper(self._connection)
        return wrapper


def _timestamp(stamp: datetime | float) -> float:
    if isinstance(stamp, datetime):
        return stamp.timestamp()
    return float(stamp)


__all__ = ["AsyncJobClient", "DeleteScope", "JobStatus", "decode_job_response"]
