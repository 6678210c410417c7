"""Builds configured connections from a :class:`HarnessConfig`.

The factory is the single place that turns configuration into a connection
stack. From the inside out:

    HttpConnection -> JWTAuthWrapper -> RetryWrapper -> ConnectionPool
        -> AsyncConnectionWrapper

Layers that are not requested are left out.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

import httpx

from ..config import AuthKind, ConfigError, HarnessConfig
from .auth import JWTAuthWrapper, basic_authentication
from .base import Codec, Connection, ContentType, HttpVersion
from .endpoints import (
    Endpoint,
    MaglevHashEndpoints,
    RequestHashValueExtractor,
    RoundRobinEndpoints,
    request_db_name_value_extractor,
)
from .http import HttpConfiguration, HttpConnection
from .pool import ConnectionPool
from .wrappers import AsyncConnectionWrapper, retry_on_503

if TYPE_CHECKING:
    from ..testing.variants import ConnectionVariant

logger = logging.getLogger(__name__)


class EndpointStrategy(str, Enum):
    """How requests are spread over the configured endpoints."""

    ROUND_ROBIN = "round-robin"
    MAGLEV = "maglev"


class ConnectionFactory:
    """Creates connections for one harness configuration."""

    def __init__(
        self,
        config: HarnessConfig,
        codecs: dict[str, Codec] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self._codecs = dict(codecs or {})
        self._transport = transport

    def endpoints(
        self,
        strategy: EndpointStrategy = EndpointStrategy.ROUND_ROBIN,
        extractor: RequestHashValueExtractor = request_db_name_value_extractor,
    ) -> Endpoint:
        """Endpoint set for the configured addresses.

        Raises:
            ConfigError: If no endpoints are configured
        """
        if not self.config.endpoints:
            raise ConfigError("No endpoints found in environment variable TEST_ENDPOINTS")

        if EndpointStrategy(strategy) == EndpointStrategy.MAGLEV:
            return MaglevHashEndpoints(self.config.endpoints, extractor)
        return RoundRobinEndpoints(self.config.endpoints)

    def build(
        self,
        content_type: ContentType = ContentType.JSON,
        http_version: HttpVersion = HttpVersion.HTTP1,
        *,
        async_mode: bool = False,
        strategy: EndpointStrategy = EndpointStrategy.ROUND_ROBIN,
        extractor: RequestHashValueExtractor = request_db_name_value_extractor,
        pool_size: int = 1,
        retries_on_503: int = 0,
    ) -> Connection:
        """
        Build a connection stack.

        Args:
            content_type: Body encoding
            http_version: HTTP/1.1 or HTTP/2
            async_mode: Wrap with AsyncConnectionWrapper
            strategy: Endpoint selection strategy
            extractor: Hash value extractor for the maglev strategy
            pool_size: Number of pooled connections
            retries_on_503: Attempts per request while the server answers 503

        Returns:
            Connection ready for use

        Raises:
            ConfigError: If no endpoints are configured
            UnsupportedContentTypeError: If no codec handles content_type
        """
        endpoint = self.endpoints(strategy, extractor)

        def make() -> Connection:
            return self._single(endpoint, content_type, http_version, retries_on_503)

        connection = make() if pool_size <= 1 else ConnectionPool(pool_size, make)

        if async_mode:
            connection = AsyncConnectionWrapper(connection)

        logger.debug(
            f"Built {ContentType(content_type).name}/{HttpVersion(http_version).value} connection "
            f"to {endpoint.list()} (async={async_mode}, pool={pool_size})"
        )
        return connection

    def build_variant(self, variant: ConnectionVariant, **kwargs) -> Connection:
        """Build the connection described by one entry of the test matrix."""
        return self.build(
            variant.content_type,
            variant.http_version,
            async_mode=variant.async_mode,
            **kwargs,
        )

    def _single(
        self,
        endpoint: Endpoint,
        content_type: ContentType,
        http_version: HttpVersion,
        retries_on_503: int,
    ) -> Connection:
        http_config = HttpConfiguration(
            endpoint=endpoint,
            content_type=content_type,
            http_version=http_version,
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
            write_timeout=self.config.read_timeout,
            codecs=self._codecs,
            transport=self._transport,
        )

        auth = self.config.authentication
        if auth is not None and auth.kind == AuthKind.BASIC:
            http_config.authentication = basic_authentication(auth.username, auth.password.get_secret_value())

        connection: Connection = HttpConnection(http_config)

        if auth is not None and auth.kind == AuthKind.JWT:
            connection = JWTAuthWrapper(connection, auth.username, auth.password.get_secret_value())

        if retries_on_503 > 0:
            connection = retry_on_503(connection, retries_on_503)

        return connection


__all__ = ["ConnectionFactory", "EndpointStrategy"]
