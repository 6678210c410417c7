"""Round-robin pool of connections built by a factory."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

import httpx

from .base import Codec, Connection, Request, Response
from .endpoints import Endpoint

logger = logging.getLogger(__name__)

ConnectionFactoryFn = Callable[[], Connection]


class ConnectionPool(Connection):
    """Spreads requests over ``size`` independent connections."""

    def __init__(self, size: int, factory: ConnectionFactoryFn) -> None:
        if size < 1:
            raise ValueError(f"pool size must be at least 1, got {size}")

        self._factory = factory
        self._connections: list[Connection] = []
        try:
            for _ in range(size):
                self._connections.append(factory())
        except Exception:
            self.close()
            raise

        self._lock = threading.Lock()
        self._next = 0

    def __len__(self) -> int:
        return len(self._connections)

    def new_request(self, method: str, *path_parts: str) -> Request:
        return self._connections[0].new_request(method, *path_parts)

    def new_request_with_endpoint(self, endpoint: str, method: str, *path_parts: str) -> Request:
        return self._connections[0].new_request_with_endpoint(endpoint, method, *path_parts)

    def do(self, request: Request, *allowed_status_codes: int) -> Response:
        return self._connection().do(request, *allowed_status_codes)

    def get_endpoint(self) -> Endpoint:
        return self._connections[0].get_endpoint()

    def set_endpoint(self, endpoint: Endpoint) -> None:
        with self._lock:
            applied: list[tuple[Connection, Endpoint]] = []
            try:
                for connection in self._connections:
                    previous = connection.get_endpoint()
                    connection.set_endpoint(endpoint)
                    applied.append((connection, previous))
            except Exception:
                for connection, previous in applied:
                    connection.set_endpoint(previous)
                raise

    def get_authentication(self) -> httpx.Auth | None:
        return self._connections[0].get_authentication()

    def set_authentication(self, authentication: httpx.Auth | None) -> None:
        with self._lock:
            applied: list[tuple[Connection, httpx.Auth | None]] = []
            try:
                for connection in self._connections:
                    previous = connection.get_authentication()
                    connection.set_authentication(authentication)
                    applied.append((connection, previous))
            except Exception:
                for connection, previous in applied:
                    connection.set_authentication(previous)
                raise

    def codec(self, content_type: str | None = None) -> Codec:
        return self._connections[0].codec(content_type)

    def close(self) -> None:
        for connection in self._connections:
            connection.close()

    def _connection(self) -> Connection:
        with self._lock:
            connection = self._connections[self._next]
            self._next = (self._next + 1) % len(self._connections)
            return connection


__all__ = ["ConnectionPool", "ConnectionFactoryFn"]
