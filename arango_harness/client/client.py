"""Thin ArangoDB client used by the harness.

Only the operations the test scenarios need are provided; everything else can
go through :meth:`ArangoClient.request`.

In asynchronous mode (see :meth:`ArangoClient.asynchronous`) every operation
returns a :class:`~arango_harness.connection.wrappers.JobPending` carrying the
job ID and the decoder that turns the job's eventual response into the value
the synchronous call would have returned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..connection.base import Connection, Request, Response, unwrap
from ..connection.errors import ArangoError, InvalidArgumentError, TransportError
from ..connection.wrappers import AsyncConnectionWrapper, JobPending
from .asyncjob import AsyncJobClient
from .version import VersionInfo

logger = logging.getLogger(__name__)

SYSTEM_DATABASE = "_system"

Decoder = Callable[[Response], Any]


@dataclass
class EndpointHealth:
    """Reachability of every configured endpoint."""

    # endpoint -> HTTP status of the availability probe, or None if unreachable
    statuses: dict[str, int | None] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def reachable(self) -> list[str]:
        return [ep for ep, status in self.statuses.items() if status is not None]

    @property
    def healthy(self) -> bool:
        return bool(self.reachable)


class ArangoClient:
    """ArangoDB operations bound to one database."""

    def __init__(self, connection: Connection, database: str = SYSTEM_DATABASE, *, asynchronous: bool = False) -> None:
        self._connection = connection
        self.database = database
        self._async: AsyncConnectionWrapper | None = None
        if asynchronous:
            self._async = self._find_async_wrapper()

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def is_async(self) -> bool:
        return self._async is not None

    @property
    def async_jobs(self) -> AsyncJobClient:
        return AsyncJobClient(self._connection)

    def asynchronous(self) -> ArangoClient:
        """
        Return a view of this client whose operations run as async jobs.

        Raises:
            InvalidArgumentError: If the connection is not async-wrapped
        """
        return ArangoClient(self._connection, self.database, asynchronous=True)

    def synchronous(self) -> ArangoClient:
        return ArangoClient(self._connection, self.database)

    def db(self, name: str) -> ArangoClient:
        """Same connection and mode, different database."""
        return ArangoClient(self._connection, name, asynchronous=self.is_async)

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> ArangoClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - context helper
        self.close()

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------
    def version(self, details: bool = False) -> VersionInfo | JobPending:
        """Server name, version and license."""
        request = self._connection.new_request("GET", "_api", "version")
        if details:
            request.add_query("details", "true")
        return self._call(request, lambda r: VersionInfo.from_body(r.body() or {}))

    def server_availability(self) -> bool | JobPending:
        """True if the server answers 200 on ``/_admin/server/availability``; 503 means not ready."""
        request = self._connection.new_request("GET", "_admin", "server", "availability")
        return self._call(request, lambda r: r.status_code == 200, accept=(200, 503))

    def server_role(self) -> str | JobPending:
        """SINGLE, COORDINATOR, PRIMARY, AGENT or UNDEFINED."""
        request = self._connection.new_request("GET", "_admin", "server", "role")
        return self._call(request, lambda r: (r.body() or {}).get("role", "UNDEFINED"))

    def endpoint_health(self) -> EndpointHealth:
        """
        Probe every known endpoint directly.

        Always synchronous. The deployment is healthy if at least one endpoint
        answers, whatever its availability status.
        """
        health = EndpointHealth()
        for endpoint in self._connection.get_endpoint().list():
            request = self._connection.new_request_with_endpoint(endpoint, "GET", "_admin", "server", "availability")
            try:
                response = self._connection.do(request)
            except TransportError as e:
                logger.debug(f"Endpoint {endpoint} unreachable: {e}")
                health.statuses[endpoint] = None
                health.errors[endpoint] = str(e)
                continue
            health.statuses[endpoint] = response.status_code
        return health

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------
    def create_database(
        self,
        name: str,
        options: dict[str, Any] | None = None,
        users: Iterable[dict[str, Any]] | None = None,
    ) -> ArangoClient | JobPending:
        """Create a database and return a client bound to it."""
        body: dict[str, Any] = {"name": name}
        if options:
            body["options"] = options
        if users:
            body["users"] = list(users)

        request = self._system_request("POST", "_api", "database")
        request.set_body(body)
        return self._call(request, lambda r: self.synchronous().db(name))

    def drop_database(self, name: str) -> bool | JobPending:
        request = self._system_request("DELETE", "_api", "database", name)
        return self._call(request, _result_flag)

    def list_databases(self) -> list[str] | JobPending:
        request = self._system_request("GET", "_api", "database")
        return self._call(request, lambda r: list((r.body() or {}).get("result", [])))

    def database_exists(self, name: str) -> bool:
        databases = self.synchronous().list_databases()
        return name in databases

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------
    def create_collection(self, name: str, options: dict[str, Any] | None = None) -> dict[str, Any] | JobPending:
        """Create a collection in this database; returns its properties."""
        request = self._db_request("POST", "_api", "collection")
        request.set_body({"name": name, **(options or {})})
        return self._call(request, _body)

    def drop_collection(self, name: str) -> bool | JobPending:
        request = self._db_request("DELETE", "_api", "collection", name)
        return self._call(request, lambda r: True)

    def collection(self, name: str) -> dict[str, Any] | JobPending:
        """
        Collection properties.

        Raises:
            ArangoError: not-found if the collection does not exist (yet)
        """
        request = self._db_request("GET", "_api", "collection", name)
        return self._call(request, _body)

    def list_collections(self, exclude_system: bool = True) -> list[str] | JobPending:
        request = self._db_request("GET", "_api", "collection")
        if exclude_system:
            request.add_query("excludeSystem", "true")
        return self._call(request, lambda r: [c["name"] for c in (r.body() or {}).get("result", [])])

    # ------------------------------------------------------------------
    # Queries and transactions
    # ------------------------------------------------------------------
    def query(
        self,
        aql: str,
        bind_vars: dict[str, Any] | None = None,
        batch_size: int = 1000,
        full_count: bool = False,
    ) -> list[Any] | JobPending:
        """Execute an AQL query and return the full result set."""
        request = self._db_request("POST", "_api", "cursor")
        request.set_body({
            "query": aql,
            "batchSize": batch_size,
            "bindVars": bind_vars or {},
            "options": {"fullCount": full_count},
        })
        return self._call(request, self._drain_cursor)

    def transaction_js(
        self,
        action: str,
        *,
        read: Iterable[str] = (),
        write: Iterable[str] = (),
        exclusive: Iterable[str] = (),
        params: Any = None,
        lock_timeout: float | None = None,
    ) -> Any:
        """Run a JavaScript transaction; returns its ``result``."""
        body: dict[str, Any] = {
            "collections": {
                "read": list(read),
                "write": list(write),
                "exclusive": list(exclusive),
            },
            "action": action,
        }
        if params is not None:
            body["params"] = params
        if lock_timeout is not None:
            body["lockTimeout"] = lock_timeout

        request = self._db_request("POST", "_api", "transaction")
        request.set_body(body)
        return self._call(request, lambda r: (r.body() or {}).get("result"))

    def request(
        self,
        method: str,
        *path_parts: str,
        body: Any = None,
        query: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        accept: tuple[int, ...] = (),
    ) -> Any:
        """Perform an arbitrary request against the REST API; returns the decoded body."""
        request = self._connection.new_request(method, *path_parts)
        if body is not None:
            request.set_body(body)
        for key, value in (query or {}).items():
            request.add_query(key, value)
        for key, value in (headers or {}).items():
            request.add_header(key, value)
        return self._call(request, _body, accept=accept)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _call(self, request: Request, decode: Decoder, accept: tuple[int, ...] = ()) -> Any:
        if self._async is not None:
            return self._async.submit(request, _checked(decode, accept))

        response = self._connection.do(request)
        return _checked(decode, accept)(response)

    def _db_request(self, method: str, *path_parts: str) -> Request:
        return self._connection.new_request(method, "_db", self.database, *path_parts)

    def _system_request(self, method: str, *path_parts: str) -> Request:
        return self._connection.new_request(method, "_db", SYSTEM_DATABASE, *path_parts)

    def _drain_cursor(self, response: Response) -> list[Any]:
        data = response.body() or {}
        results = list(data.get("result", []))
        cursor_id = data.get("id")
        while data.get("hasMore") and cursor_id:
            follow = self._db_request("PUT", "_api", "cursor", cursor_id)
            # Follow-up batches are always fetched synchronously.
            data = self._connection.do(follow, 200).body() or {}
            results.extend(data.get("result", []))
            cursor_id = data.get("id")
        return results

    def _find_async_wrapper(self) -> AsyncConnectionWrapper:
        wrapper = unwrap(self._connection, AsyncConnectionWrapper)
        if wrapper is None:
            raise InvalidArgumentError("asynchronous mode requires a connection wrapped with AsyncConnectionWrapper")
        return wrapper  # type: ignore[return-value]


def _checked(decode: Decoder, accept: tuple[int, ...]) -> Decoder:
    def run(response: Response) -> Any:
        failed = response.status_code not in accept if accept else response.status_code >= 400
        if failed:
            raise ArangoError.from_body(response.status_code, response.body())
        return decode(response)

    return run


def _body(response: Response) -> Any:
    return response.body()


def _result_flag(response: Response) -> bool:
    return bool((response.body() or {}).get("result", False))


__all__ = ["ArangoClient", "EndpointHealth", "SYSTEM_DATABASE"]
