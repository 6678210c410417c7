"""HTTP/1.1 and HTTP/2 connections to ArangoDB built on httpx.

Protocol note: HTTP/2 is used with prior knowledge (h2c) on cleartext
endpoints, the way ArangoDB serves it; HTTP/1.1 is disabled on such
connections. HTTPS endpoints negotiate the same way over TLS.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

import httpx

from .base import (
    Codec,
    Connection,
    ContentType,
    HttpVersion,
    JsonCodec,
    Request,
    Response,
    join_path,
    response_from_httpx,
)
from .endpoints import Endpoint
from .errors import ArangoError, TransportError, UnsupportedContentTypeError

logger = logging.getLogger(__name__)


@dataclass
class HttpConfiguration:
    """Configuration for an HTTP connection."""

    endpoint: Endpoint
    content_type: ContentType = ContentType.JSON
    http_version: HttpVersion = HttpVersion.HTTP1
    authentication: httpx.Auth | None = None
    verify_tls: bool = False
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    pool_limits: httpx.Limits | None = None
    codecs: dict[str, Codec] = field(default_factory=dict)
    # Replaces the network transport, e.g. httpx.MockTransport in tests.
    transport: httpx.BaseTransport | None = None


class HttpConnection(Connection):
    """Connection to one endpoint set over a single httpx client."""

    def __init__(self, config: HttpConfiguration) -> None:
        self._config = config
        self._lock = threading.Lock()
        self._endpoint = config.endpoint
        self._authentication = config.authentication

        self._codecs: dict[str, Codec] = {ContentType.JSON.value: JsonCodec()}
        self._codecs.update(config.codecs)
        content_type = ContentType(config.content_type).value
        if content_type not in self._codecs:
            raise UnsupportedContentTypeError(f"no codec registered for {content_type}")
        self._content_type = content_type

        use_http2 = HttpVersion(config.http_version) == HttpVersion.HTTP2
        transport = config.transport
        if transport is None:
            transport = httpx.HTTPTransport(
                verify=config.verify_tls,
                http1=not use_http2,
                http2=use_http2,
                limits=config.pool_limits or httpx.Limits(),
                retries=0,
            )

        timeout = httpx.Timeout(
            connect=config.connect_timeout,
            read=config.read_timeout,
            write=config.write_timeout,
            pool=config.connect_timeout,
        )

        self._client = httpx.Client(
            transport=transport,
            timeout=timeout,
        )

    @property
    def content_type(self) -> str:
        return self._content_type

    # ------------------------------------------------------------------
    # Connection API
    # ------------------------------------------------------------------
    def new_request(self, method: str, *path_parts: str) -> Request:
        return Request(method=method.upper(), path=join_path(*path_parts))

    def new_request_with_endpoint(self, endpoint: str, method: str, *path_parts: str) -> Request:
        request = self.new_request(method, *path_parts)
        request.endpoint = endpoint
        return request

    def do(self, request: Request, *allowed_status_codes: int) -> Response:
        endpoint = self._endpoint.get(request.endpoint, request.method, request.path)
        codec = self._codecs[self._content_type]

        headers = {"Accept": self._content_type}
        content: bytes | None = request.raw_body
        if content is None and request.body is not None:
            content = codec.encode(request.body)
            headers["Content-Type"] = self._content_type
        headers.update(request.headers)

        try:
            raw = self._client.request(
                request.method,
                endpoint + request.path,
                params=request.query or None,
                headers=headers,
                content=content,
                auth=self._authentication,
            )
        except httpx.TransportError as e:
            logger.debug(f"{request.method} {request.path} failed on {endpoint}: {e}")
            raise TransportError(endpoint, str(e)) from e

        if raw.http_version not in {HttpVersion.HTTP1.value, HttpVersion.HTTP2.value}:
            raise TransportError(
                endpoint,
                f"unexpected HTTP version {raw.http_version!r} for {request.method} {request.path}",
            )

        response = response_from_httpx(raw, endpoint, self._codec_for(raw.headers.get("content-type", "")))

        if allowed_status_codes and response.status_code not in allowed_status_codes:
            raise ArangoError.from_body(response.status_code, response.body(), raw.reason_phrase)

        return response

    def get_endpoint(self) -> Endpoint:
        return self._endpoint

    def set_endpoint(self, endpoint: Endpoint) -> None:
        with self._lock:
            self._endpoint = endpoint
        logger.info(f"Endpoints changed to {endpoint.list()}")

    def get_authentication(self) -> httpx.Auth | None:
        return self._authentication

    def set_authentication(self, authentication: httpx.Auth | None) -> None:
        with self._lock:
            self._authentication = authentication

    def codec(self, content_type: str | None = None) -> Codec:
        key = content_type or self._content_type
        try:
            return self._codecs[key]
        except KeyError as e:
            raise UnsupportedContentTypeError(f"no codec registered for {key}") from e

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _codec_for(self, header: str) -> Codec | None:
        media_type = header.split(";", 1)[0].strip().lower()
        return self._codecs.get(media_type)


__all__ = ["HttpConfiguration", "HttpConnection"]
