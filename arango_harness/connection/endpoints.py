"""Endpoint selection strategies.

A connection asks its :class:`Endpoint` for a server address on every
request. Strategies are interchangeable, so switching from round-robin to
consistent hashing does not change any call site.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from .errors import NoEndpointsError
from .maglev import MaglevTable, next_prime

# Receives request method and full path, returns the value to hash.
RequestHashValueExtractor = Callable[[str, str], str]


class Endpoint(ABC):
    """Chooses the server endpoint for a request."""

    @abstractmethod
    def get(self, provided: str = "", method: str = "", path: str = "") -> str:
        """Return the endpoint to use.

        Args:
            provided: Endpoint explicitly requested by the caller, if any
            method: HTTP method of the request
            path: Request path

        Raises:
            NoEndpointsError: If no endpoints are known
        """

    @abstractmethod
    def list(self) -> list[str]:
        """Return all known endpoints."""


class RoundRobinEndpoints(Endpoint):
    """Cycles through endpoints in order."""

    def __init__(self, endpoints: Sequence[str]) -> None:
        self._endpoints = list(endpoints)
        self._index = 0
        self._lock = threading.Lock()

    def list(self) -> list[str]:
        return list(self._endpoints)

    def get(self, provided: str = "", method: str = "", path: str = "") -> str:
        with self._lock:
            if provided:
                return provided

            if not self._endpoints:
                raise NoEndpointsError("no endpoints known")

            if self._index >= len(self._endpoints):
                self._index = 0

            endpoint = self._endpoints[self._index]
            self._index += 1
            return endpoint


def request_db_name_value_extractor(method: str, path: str) -> str:
    """Hash on the database name of ``/_db/<name>/...`` paths.

    Falls back to ``<method>_<path>`` for paths without a database segment.
    """
    parts = path.strip().strip("/").split("/")
    if len(parts) >= 3 and parts[0] == "_db":
        return parts[1]
    return f"{method}_{path}"


class MaglevHashEndpoints(Endpoint):
    """Consistently maps requests to endpoints by a value extracted from the request.

    With :func:`request_db_name_value_extractor`, every request for the same
    database goes to the same endpoint.
    """

    def __init__(
        self,
        endpoints: Sequence[str],
        extractor: RequestHashValueExtractor = request_db_name_value_extractor,
    ) -> None:
        # Order of endpoints affects the hashing result.
        self._endpoints = sorted(endpoints)
        self._extractor = extractor
        self._table: MaglevTable | None = None
        if self._endpoints:
            self._table = MaglevTable(self._endpoints, next_prime(len(self._endpoints)))

    def list(self) -> list[str]:
        return list(self._endpoints)

    def get(self, provided: str = "", method: str = "", path: str = "") -> str:
        if self._table is None:
            raise NoEndpointsError("no endpoints known")

        if provided in self._endpoints:
            return provided

        try:
            value = self._extractor(method, path)
        except Exception as e:
            raise ValueError(f"could not extract value for method '{method}' path '{path}'") from e

        return self._table.get(value)


__all__ = [
    "Endpoint",
    "MaglevHashEndpoints",
    "RequestHashValueExtractor",
    "RoundRobinEndpoints",
    "request_db_name_value_extractor",
]
