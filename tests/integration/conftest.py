"""Shared fixtures for integration tests against a running ArangoDB server."""

from collections.abc import Iterator

import pytest

from arango_harness.client import ArangoClient, DeleteScope


@pytest.fixture
def clean_jobs(client: ArangoClient) -> Iterator[ArangoClient]:
    """Start and finish with an empty async job registry."""
    client.async_jobs.delete(DeleteScope.ALL)
    yield client
    client.async_jobs.delete(DeleteScope.ALL)
