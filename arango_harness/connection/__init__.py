"""
Connection Layer
================

HTTP/1.1 and HTTP/2 connections to ArangoDB, endpoint selection, authentication
and wrappers for async dispatch, retries and pooling.
"""

from .auth import HeaderAuthentication, JWTAuthWrapper, basic_authentication, parse_jwt_expiry
from .base import (
    Codec,
    Connection,
    ConnectionWrapper,
    ContentType,
    HttpVersion,
    JsonCodec,
    Request,
    Response,
    unwrap,
)
from .endpoints import (
    Endpoint,
    MaglevHashEndpoints,
    RoundRobinEndpoints,
    request_db_name_value_extractor,
)
from .errors import (
    ArangoError,
    InvalidArgumentError,
    NoEndpointsError,
    TransportError,
    UnsupportedContentTypeError,
    is_cancelled,
    is_conflict,
    is_forbidden,
    is_invalid_argument,
    is_invalid_name,
    is_invalid_request,
    is_no_leader,
    is_not_found,
    is_precondition_failed,
    is_temporary,
    is_timeout,
    is_unauthorized,
)
from .factory import ConnectionFactory, EndpointStrategy
from .http import HttpConfiguration, HttpConnection
from .pool import ConnectionPool
from .wrappers import AsyncConnectionWrapper, JobPending, RetryWrapper, retry_on_503

__all__ = [
    "ArangoError",
    "AsyncConnectionWrapper",
    "Codec",
    "Connection",
    "ConnectionFactory",
    "ConnectionPool",
    "ConnectionWrapper",
    "ContentType",
    "Endpoint",
    "EndpointStrategy",
    "HeaderAuthentication",
    "HttpConfiguration",
    "HttpConnection",
    "HttpVersion",
    "InvalidArgumentError",
    "JWTAuthWrapper",
    "JobPending",
    "JsonCodec",
    "MaglevHashEndpoints",
    "NoEndpointsError",
    "Request",
    "Response",
    "RetryWrapper",
    "RoundRobinEndpoints",
    "TransportError",
    "UnsupportedContentTypeError",
    "basic_authentication",
    "is_cancelled",
    "is_conflict",
    "is_forbidden",
    "is_invalid_argument",
    "is_invalid_name",
    "is_invalid_request",
    "is_no_leader",
    "is_not_found",
    "is_precondition_failed",
    "is_temporary",
    "is_timeout",
    "is_unauthorized",
    "parse_jwt_expiry",
    "request_db_name_value_extractor",
    "retry_on_503",
    "unwrap",
]
