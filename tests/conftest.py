"""Shared fixtures: an in-memory ArangoDB stand-in served through httpx.MockTransport."""

from __future__ import annotations

import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import orjson
import pytest

from arango_harness.client import ArangoClient
from arango_harness.config import HarnessConfig
from arango_harness.connection import (
    AsyncConnectionWrapper,
    ConnectionFactory,
    HttpConfiguration,
    HttpConnection,
    RoundRobinEndpoints,
)

pytest_plugins = ["arango_harness.testing.plugin"]

ENDPOINT = "http://arango.test:8529"

CANCELED = {
    "error": True,
    "code": 410,
    "errorNum": 21,
    "errorMessage": "canceled request",
}


def json_response(status_code: int, body: Any = None, headers: dict[str, str] | None = None) -> httpx.Response:
    content = b"" if body is None else orjson.dumps(body)
    merged = {"content-type": "application/json"} if body is not None else {}
    merged.update(headers or {})
    return httpx.Response(status_code, content=content, headers=merged)


def error_body(code: int, error_num: int, message: str) -> dict[str, Any]:
    return {"error": True, "code": code, "errorNum": error_num, "errorMessage": message}


@dataclass
class FakeJob:
    job_id: str
    created: float
    status: int = 0
    body: Any = None
    done: bool = False


@dataclass
class FakeArangoServer:
    """Enough of the REST API for the harness: version, availability,
    databases, collections, cursors, JS transactions and the async job registry.

    Async jobs stay pending until :meth:`finish` (or :meth:`finish_all`) is
    called, unless ``auto_finish`` is set.
    """

    version: str = "3.11.4"
    license: str = "community"
    available: bool = True
    auto_finish: bool = False
    clock: Callable[[], float] = time.time
    databases: dict[str, set[str]] = field(default_factory=lambda: {"_system": set()})
    jobs: dict[str, FakeJob] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    cursor_batches: list[list[Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._ids = itertools.count(1000)

    # ------------------------------------------------------------------
    # Test controls
    # ------------------------------------------------------------------
    def finish(self, job_id: str) -> None:
        self.jobs[job_id].done = True

    def finish_all(self) -> None:
        for job in self.jobs.values():
            job.done = True

    def ids(self, done: bool) -> list[str]:
        return [job.job_id for job in self.jobs.values() if job.done == done]

    def transport(self) -> httpx.MockTransport:
        # Late lookup so tests can replace handle on the instance.
        return httpx.MockTransport(lambda request: self.handle(request))

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------
    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = [p for p in request.url.path.split("/") if p]

        if parts[:2] == ["_api", "job"]:
            return self._job_api(request, parts[2:])

        status, body = self._route(request, parts)

        if request.headers.get("x-arango-async") == "store":
            job_id = str(next(self._ids))
            self.jobs[job_id] = FakeJob(job_id, self.clock(), status, body, done=self.auto_finish)
            return json_response(202, headers={"x-arango-async-id": job_id})

        return json_response(status, body)

    def _route(self, request: httpx.Request, parts: list[str]) -> tuple[int, Any]:
        method = request.method
        database = "_system"
        if parts[:1] == ["_db"]:
            database, parts = parts[1], parts[2:]
            if database not in self.databases:
                return 404, error_body(404, 1228, "database not found")

        match (method, parts):
            case ("GET", ["_api", "version"]):
                body = {"server": "arango", "version": self.version, "license": self.license}
                if request.url.params.get("details") == "true":
                    body["details"] = {"mode": "server"}
                return 200, body
            case ("GET", ["_admin", "server", "availability"]):
                if not self.available:
                    return 503, error_body(503, 503, "service unavailable")
                return 200, {"mode": "default"}
            case ("GET", ["_admin", "server", "role"]):
                return 200, {"role": "SINGLE", "mode": "default"}
            case ("POST", ["_open", "auth"]):
                return 200, {"jwt": "header.e30.sig"}
            case ("GET", ["_api", "database"]):
                return 200, {"result": sorted(self.databases)}
            case ("POST", ["_api", "database"]):
                name = orjson.loads(request.content)["name"]
                if name in self.databases:
                    return 409, error_body(409, 1207, "duplicate name")
                self.databases[name] = set()
                return 201, {"result": True}
            case ("DELETE", ["_api", "database", name]):
                if self.databases.pop(name, None) is None:
                    return 404, error_body(404, 1228, "database not found")
                return 200, {"result": True}
            case ("GET", ["_api", "collection"]):
                return 200, {"result": [{"name": c} for c in sorted(self.databases[database])]}
            case ("POST", ["_api", "collection"]):
                name = orjson.loads(request.content)["name"]
                if name in self.databases[database]:
                    return 409, error_body(409, 1207, "duplicate name")
                self.databases[database].add(name)
                return 200, {"name": name, "type": 2, "status": 3}
            case ("GET", ["_api", "collection", name]):
                if name not in self.databases[database]:
                    return 404, error_body(404, 1203, "collection or view not found")
                return 200, {"name": name, "type": 2, "status": 3}
            case ("DELETE", ["_api", "collection", name]):
                if name not in self.databases[database]:
                    return 404, error_body(404, 1203, "collection or view not found")
                self.databases[database].discard(name)
                return 200, {"id": "1"}
            case ("POST", ["_api", "cursor"]):
                return 201, self._cursor_batch("77")
            case ("PUT", ["_api", "cursor", cursor_id]):
                return 200, self._cursor_batch(cursor_id)
            case ("POST", ["_api", "transaction"]):
                return 200, {"result": None}

        return 404, error_body(404, 404, f"unknown path {request.url.path}")

    def _cursor_batch(self, cursor_id: str) -> dict[str, Any]:
        batch = self.cursor_batches.pop(0) if self.cursor_batches else []
        has_more = bool(self.cursor_batches)
        body: dict[str, Any] = {"result": batch, "hasMore": has_more}
        if has_more:
            body["id"] = cursor_id
        return body

    def _job_api(self, request: httpx.Request, parts: list[str]) -> httpx.Response:
        match (request.method, parts):
            case ("GET", [("done" | "pending") as state]):
                ids = self.ids(done=state == "done")
                if count := request.url.params.get("count"):
                    ids = ids[: int(count)]
                return json_response(200, ids)
            case ("DELETE", ["all"]):
                self.jobs.clear()
                return json_response(200, {"result": True})
            case ("DELETE", ["expired"]):
                stamp = float(request.url.params["stamp"])
                for job_id in [j.job_id for j in self.jobs.values() if j.created < stamp]:
                    del self.jobs[job_id]
                return json_response(200, {"result": True})
            case ("PUT", [job_id, "cancel"]):
                job = self.jobs.get(job_id)
                if job is None:
                    return json_response(404, error_body(404, 404, "not found"))
                if not job.done:
                    job.done, job.status, job.body = True, 410, CANCELED
                return json_response(200, {"result": True})
            case ("GET", [job_id]):
                job = self.jobs.get(job_id)
                if job is None:
                    return json_response(404, error_body(404, 404, "not found"))
                return json_response(200 if job.done else 204)
            case ("PUT", [job_id]):
                job = self.jobs.get(job_id)
                if job is None:
                    return json_response(404, error_body(404, 404, "not found"))
                if not job.done:
                    return json_response(204)
                del self.jobs[job_id]
                return json_response(job.status, job.body, headers={"x-arango-async-id": job_id})
            case ("DELETE", [job_id]):
                if self.jobs.pop(job_id, None) is None:
                    return json_response(404, error_body(404, 404, "not found"))
                return json_response(200, {"result": True})

        return json_response(400, error_body(400, 10, "bad parameter"))


@pytest.fixture
def fake_server() -> FakeArangoServer:
    """In-memory ArangoDB stand-in."""
    return FakeArangoServer()


@pytest.fixture
def make_connection() -> Callable[..., HttpConnection]:
    """Build an HttpConnection whose requests go to a handler or MockTransport."""

    def build(handler: Callable[[httpx.Request], httpx.Response] | httpx.BaseTransport, **kwargs: Any) -> HttpConnection:
        transport = handler if isinstance(handler, httpx.BaseTransport) else httpx.MockTransport(handler)
        kwargs.setdefault("endpoint", RoundRobinEndpoints([ENDPOINT]))
        return HttpConnection(HttpConfiguration(transport=transport, **kwargs))

    return build


@pytest.fixture
def fake_client(fake_server: FakeArangoServer, make_connection) -> ArangoClient:
    """Client over an async-capable connection to the fake server."""
    return ArangoClient(AsyncConnectionWrapper(make_connection(fake_server.transport())))


@pytest.fixture
def harness_factory(fake_server: FakeArangoServer) -> ConnectionFactory:
    config = HarnessConfig(endpoints=[ENDPOINT])
    return ConnectionFactory(config, transport=fake_server.transport())
