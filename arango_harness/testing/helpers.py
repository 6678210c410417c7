"""Scenario helpers: readiness wait, scoped resources and version/mode gating.

Helpers that fail or skip do so through pytest, so they are meant to be
called from inside a test body or fixture.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import pytest
import structlog

from ..client import ArangoClient, Version, VersionInfo
from ..config import DeploymentMode, HarnessConfig
from ..connection.errors import ArangoError, TransportError, is_not_found
from ..connection.wrappers import JobPending
from ..polling import Interrupt, PollTimeoutError, Timeout

logger = structlog.get_logger(__name__)

CONNECTION_TIMEOUT = 60.0
CONNECTION_INTERVAL = 2.0
COLLECTION_VISIBLE_TIMEOUT = 15.0
COLLECTION_VISIBLE_INTERVAL = 0.125


def unique_name(prefix: str = "test") -> str:
    return f"{prefix}-{uuid.uuid4()}"


def eventually(probe: Callable[[], object], timeout: float, interval: float) -> int:
    """Run the polling combinator, failing the current test on timeout or error."""
    try:
        return Timeout(probe).run(timeout, interval)
    except PollTimeoutError as e:
        pytest.fail(str(e))
    except Exception as e:
        pytest.fail(f"Polling failed: {e}")


def wait_for_connection(
    client: ArangoClient,
    timeout: float = CONNECTION_TIMEOUT,
    interval: float = CONNECTION_INTERVAL,
) -> ArangoClient:
    """Block until the server reports itself available.

    Connection errors and 503 answers count as "not yet".
    """
    sync = client.synchronous()

    def probe() -> None:
        try:
            available = sync.server_availability()
        except (ArangoError, TransportError) as e:
            logger.debug("server_not_ready", error=str(e))
            return
        if available:
            raise Interrupt()

    eventually(probe, timeout, interval)
    return client


@contextmanager
def with_database(
    client: ArangoClient,
    options: dict[str, Any] | None = None,
    log: Any = None,
) -> Iterator[ArangoClient]:
    """Create a uniquely named database for the block and drop it afterwards."""
    log = log or logger
    name = unique_name()
    sync = client.synchronous()

    log.info("creating_database", database=name)
    sync.create_database(name, options)
    try:
        # Same mode as the caller.
        yield client.db(name)
    finally:
        log.info("removing_database", database=name)
        try:
            sync.drop_database(name)
        except ArangoError as e:
            if not is_not_found(e):
                raise


@contextmanager
def with_collection(
    db: ArangoClient,
    options: dict[str, Any] | None = None,
    log: Any = None,
) -> Iterator[str]:
    """Create a uniquely named collection, wait until it is visible, drop it afterwards.

    Yields the collection name.
    """
    log = log or logger
    name = unique_name()
    sync = db.synchronous()

    log.info("creating_collection", database=db.database, collection=name)
    sync.create_collection(name, options)

    def probe() -> None:
        try:
            sync.collection(name)
        except ArangoError as e:
            if is_not_found(e):
                return
            raise
        raise Interrupt()

    try:
        eventually(probe, COLLECTION_VISIBLE_TIMEOUT, COLLECTION_VISIBLE_INTERVAL)
        yield name
    finally:
        log.info("removing_collection", database=db.database, collection=name)
        try:
            sync.drop_collection(name)
        except ArangoError as e:
            if not is_not_found(e):
                raise


# ----------------------------------------------------------------------
# Gating
# ----------------------------------------------------------------------
def require_mode(config: HarnessConfig, mode: DeploymentMode) -> None:
    if config.mode != DeploymentMode(mode):
        pytest.skip(f"the test requires {DeploymentMode(mode).value} mode")


def require_cluster_mode(config: HarnessConfig) -> None:
    require_mode(config, DeploymentMode.CLUSTER)


def require_single_mode(config: HarnessConfig) -> None:
    require_mode(config, DeploymentMode.SINGLE)


def skip_resilient_single_mode(config: HarnessConfig) -> None:
    if config.mode == DeploymentMode.RESILIENT_SINGLE:
        pytest.skip("the test is not supported in resilientsingle mode")


def require_extra_features(config: HarnessConfig) -> None:
    if not config.enable_database_extra_features:
        pytest.skip("requires ENABLE_DATABASE_EXTRA_FEATURES")


def skip_below_version(client: ArangoClient, version: str | Version) -> VersionInfo:
    """Skip unless the server is at least ``version``; returns the server version info."""
    try:
        info = client.synchronous().version()
    except (ArangoError, TransportError) as e:
        pytest.fail(f"Failed to get version info: {e}")

    minimum = Version.parse(version) if isinstance(version, str) else version
    if info.version < minimum:
        pytest.skip(f"Skipping below version '{minimum}', got version '{info.version}'")
    return info


def skip_no_enterprise(client: ArangoClient) -> None:
    info = client.synchronous().version()
    if not info.is_enterprise:
        pytest.skip("Skipping test, no enterprise version")


# ----------------------------------------------------------------------
# Async scenarios
# ----------------------------------------------------------------------
def run_long_request(db: ArangoClient, seconds: int, collection: str) -> JobPending:
    """Start a JS transaction that sleeps server-side for ``seconds``.

    ``db`` must be an asynchronous client.
    """
    job = db.transaction_js(
        f"function () {{require('internal').sleep({seconds});}}",
        read=[collection],
    )
    if not isinstance(job, JobPending):
        pytest.fail("expected the transaction to run as an async job")
    return job


__all__ = [
    "eventually",
    "require_cluster_mode",
    "require_extra_features",
    "require_mode",
    "require_single_mode",
    "run_long_request",
    "skip_below_version",
    "skip_no_enterprise",
    "skip_resilient_single_mode",
    "unique_name",
    "wait_for_connection",
    "with_database",
    "with_collection",
]
