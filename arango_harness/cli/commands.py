"""Command implementations for the harness CLI.

Each function opens a client from the harness configuration, performs one
operation and returns a CLIResponse.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from ..client import ArangoClient, DeleteScope, JobStatus
from ..config import HarnessConfig
from ..connection.errors import ArangoError, TransportError
from ..connection.factory import ConnectionFactory
from ..polling import Interrupt, Timeout
from .output import CLIResponse, ErrorCode, error_response, progress, success_response


@contextmanager
def open_client(config: HarnessConfig) -> Iterator[ArangoClient]:
    client = ArangoClient(ConnectionFactory(config).build())
    try:
        yield client
    finally:
        client.close()


def wait_ready(config: HarnessConfig, timeout: float, interval: float, start_time: float) -> CLIResponse:
    """Poll server availability until the server is ready."""
    with open_client(config) as client:
        last_error: list[str] = []

        def probe() -> None:
            try:
                available = client.server_availability()
            except (ArangoError, TransportError) as e:
                last_error[:] = [str(e)]
                progress(f"Server not ready: {e}")
                return
            if available:
                raise Interrupt()
            progress("Server not available yet")

        attempts = Timeout(probe).run(timeout, interval)

    return success_response(
        "ready",
        {"ready": True, "endpoints": config.endpoints},
        start_time,
        attempts=attempts,
    )


def get_version(config: HarnessConfig, details: bool, start_time: float) -> CLIResponse:
    with open_client(config) as client:
        info = client.version(details)

    data: dict[str, Any] = {
        "server": info.server,
        "version": str(info.version),
        "license": info.license,
        "enterprise": info.is_enterprise,
    }
    if details:
        data["details"] = info.details
    return success_response("version", data, start_time)


def get_health(config: HarnessConfig, start_time: float) -> CLIResponse:
    """Probe every configured endpoint."""
    with open_client(config) as client:
        health = client.endpoint_health()

    data = {
        "healthy": health.healthy,
        "endpoints": [
            {
                "endpoint": endpoint,
                "reachable": status is not None,
                "status_code": status,
                "error": health.errors.get(endpoint),
            }
            for endpoint, status in health.statuses.items()
        ],
    }
    if not health.healthy:
        return error_response("health", ErrorCode.NETWORK_ERROR, "no endpoint reachable", data, start_time)
    return success_response("health", data, start_time)


def list_jobs(config: HarnessConfig, status: JobStatus, count: int | None, start_time: float) -> CLIResponse:
    with open_client(config) as client:
        jobs = client.async_jobs.list(status, count)
    return success_response("jobs.list", jobs, start_time, status=JobStatus(status).value)


def job_status(config: HarnessConfig, job_id: str, start_time: float) -> CLIResponse:
    with open_client(config) as client:
        status = client.async_jobs.status(job_id)
    return success_response("jobs.status", {"job_id": job_id, "status": status.value}, start_time)


def cancel_job(config: HarnessConfig, job_id: str, start_time: float) -> CLIResponse:
    with open_client(config) as client:
        cancelled = client.async_jobs.cancel(job_id)
    return success_response("jobs.cancel", {"job_id": job_id, "cancelled": cancelled}, start_time)


def delete_jobs(
    config: HarnessConfig,
    scope: DeleteScope,
    job_id: str | None,
    stamp: datetime | None,
    start_time: float,
) -> CLIResponse:
    with open_client(config) as client:
        deleted = client.async_jobs.delete(scope, job_id=job_id, stamp=stamp)
    return success_response(
        "jobs.delete",
        {"scope": DeleteScope(scope).value, "job_id": job_id, "deleted": deleted},
        start_time,
    )
