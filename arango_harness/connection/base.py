"""Connection interface and the request/response types it moves around."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx
import orjson

from .endpoints import Endpoint


class ContentType(str, Enum):
    """Body encodings ArangoDB accepts."""

    JSON = "application/json"
    VPACK = "application/x-velocypack"


class HttpVersion(str, Enum):
    HTTP1 = "HTTP/1.1"
    HTTP2 = "HTTP/2"


class Codec(ABC):
    """Encodes request bodies and decodes response bodies for one content type."""

    content_type: str

    @abstractmethod
    def encode(self, value: Any) -> bytes: ...

    @abstractmethod
    def decode(self, data: bytes) -> Any: ...


class JsonCodec(Codec):
    content_type = ContentType.JSON.value

    def encode(self, value: Any) -> bytes:
        return orjson.dumps(value)

    def decode(self, data: bytes) -> Any:
        return orjson.loads(data)


def join_path(*parts: str) -> str:
    """Build an absolute request path, escaping each segment."""
    segments = [quote(part.strip("/"), safe="/") for part in parts if part and part.strip("/")]
    return "/" + "/".join(segments)


@dataclass
class Request:
    """A request not yet bound to an endpoint."""

    method: str
    path: str
    endpoint: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    body: Any = None
    raw_body: bytes | None = None

    def add_header(self, key: str, value: str) -> None:
        self.headers[key] = value

    def add_query(self, key: str, value: str) -> None:
        self.query[key] = value

    def get_header(self, key: str) -> str | None:
        lowered = key.lower()
        for name, value in self.headers.items():
            if name.lower() == lowered:
                return value
        return None

    def get_query(self, key: str) -> str | None:
        return self.query.get(key)

    def set_body(self, body: Any) -> None:
        self.body = body
        self.raw_body = None


@dataclass
class Response:
    """A response as returned by the server, body not yet decoded."""

    status_code: int
    headers: Mapping[str, str]
    endpoint: str
    content: bytes = b""
    http_version: str = HttpVersion.HTTP1.value
    codec: Codec | None = None

    def __post_init__(self) -> None:
        # Header lookups are case-insensitive.
        self.headers = httpx.Headers(self.headers)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    def header(self, name: str) -> str | None:
        return self.headers.get(name)

    def body(self) -> Any:
        """Decode the body; None when empty."""
        if not self.content:
            return None
        if self.codec is not None:
            return self.codec.decode(self.content)
        try:
            return orjson.loads(self.content)
        except orjson.JSONDecodeError:
            return {"raw": self.content.decode("utf-8", errors="replace")}


def response_from_httpx(response: httpx.Response, endpoint: str, codec: Codec | None) -> Response:
    return Response(
        status_code=response.status_code,
        headers=response.headers,
        endpoint=endpoint,
        content=response.content,
        http_version=response.http_version,
        codec=codec,
    )


class Connection(ABC):
    """Executes requests against an ArangoDB deployment."""

    @abstractmethod
    def new_request(self, method: str, *path_parts: str) -> Request: ...

    @abstractmethod
    def new_request_with_endpoint(self, endpoint: str, method: str, *path_parts: str) -> Request: ...

    @abstractmethod
    def do(self, request: Request, *allowed_status_codes: int) -> Response:
        """Execute the request.

        If allowed status codes are given and the response status is not
        among them, the error body is raised as ArangoError.
        """

    @abstractmethod
    def get_endpoint(self) -> Endpoint: ...

    @abstractmethod
    def set_endpoint(self, endpoint: Endpoint) -> None: ...

    @abstractmethod
    def get_authentication(self) -> httpx.Auth | None: ...

    @abstractmethod
    def set_authentication(self, authentication: httpx.Auth | None) -> None: ...

    @abstractmethod
    def codec(self, content_type: str | None = None) -> Codec: ...

    @abstractmethod
    def close(self) -> None: ...

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - context helper
        self.close()


class ConnectionWrapper(Connection):
    """Delegates everything to the wrapped connection; subclasses override what they change."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    @property
    def wrapped(self) -> Connection:
        return self._connection

    def new_request(self, method: str, *path_parts: str) -> Request:
        return self._connection.new_request(method, *path_parts)

    def new_request_with_endpoint(self, endpoint: str, method: str, *path_parts: str) -> Request:
        return self._connection.new_request_with_endpoint(endpoint, method, *path_parts)

    def do(self, request: Request, *allowed_status_codes: int) -> Response:
        return self._connection.do(request, *allowed_status_codes)

    def get_endpoint(self) -> Endpoint:
        return self._connection.get_endpoint()

    def set_endpoint(self, endpoint: Endpoint) -> None:
        self._connection.set_endpoint(endpoint)

    def get_authentication(self) -> httpx.Auth | None:
        return self._connection.get_authentication()

    def set_authentication(self, authentication: httpx.Auth | None) -> None:
        self._connection.set_authentication(authentication)

    def codec(self, content_type: str | None = None) -> Codec:
        return self._connection.codec(content_type)

    def close(self) -> None:
        self._connection.close()


def unwrap(connection: Connection, kind: type[Connection]) -> Connection | None:
    """Find a connection of the given type in a wrapper chain."""
    current: Connection | None = connection
    while current is not None:
        if isinstance(current, kind):
            return current
        current = current.wrapped if isinstance(current, ConnectionWrapper) else None
    return None


__all__ = [
    "Codec",
    "Connection",
    "ConnectionWrapper",
    "ContentType",
    "HttpVersion",
    "JsonCodec",
    "Request",
    "Response",
    "join_path",
    "response_from_httpx",
    "unwrap",
]
