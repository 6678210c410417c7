"""Authentication for ArangoDB connections.

Authentications are plain ``httpx.Auth`` objects applied per request.
JWT is handled by :class:`JWTAuthWrapper`, which fetches a token from
``/_open/auth`` and refreshes it when it expires or the server answers 401.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Generator

import httpx
import jwt

from .base import Connection, ConnectionWrapper, Request, Response
from .errors import ArangoError, InvalidArgumentError

logger = logging.getLogger(__name__)

# Token lifetime assumed when the expiry claim cannot be read.
FALLBACK_TOKEN_LIFETIME = 60.0


class HeaderAuthentication(httpx.Auth):
    """Sets a fixed header on every request."""

    def __init__(self, name: str, value: str) -> None:
        self.name = name
        self.value = value

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers[self.name] = self.value
        yield request


def basic_authentication(username: str, password: str) -> httpx.Auth:
    return httpx.BasicAuth(username, password)


def parse_jwt_expiry(token: str) -> float:
    """Return the ``exp`` claim of a JWT as a Unix timestamp.

    Raises:
        ValueError: If the token is malformed or has no expiry
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
        return float(claims["exp"])
    except jwt.PyJWTError as e:
        raise ValueError(f"invalid JWT: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"JWT has no usable exp claim: {e}") from e


class JWTAuthWrapper(ConnectionWrapper):
    """Authenticates with a JWT obtained from username and password."""

    def __init__(
        self,
        connection: Connection,
        username: str,
        password: str,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(connection)
        self._username = username
        self._password = password
        self._clock = clock
        self._token: str | None = None
        self._expiry = 0.0
        self._lock = threading.Lock()

    @property
    def token(self) -> str | None:
        return self._token

    def do(self, request: Request, *allowed_status_codes: int) -> Response:
        self._ensure_token()

        try:
            response = self._connection.do(request, *allowed_status_codes)
        except ArangoError as e:
            if e.status_code != 401:
                raise
        else:
            if response.status_code != 401:
                return response

        logger.info("Received 401, re-authenticating")
        self._ensure_token(force=True)
        return self._connection.do(request, *allowed_status_codes)

    def set_authentication(self, authentication: httpx.Auth | None) -> None:
        raise InvalidArgumentError("Unable to override authentication when it is wrapped by an authentication wrapper")

    def _ensure_token(self, force: bool = False) -> None:
        with self._lock:
            if not force and self._token is not None and self._clock() < self._expiry:
                return

            # The previous header stays installed until a new token is issued.
            self._refresh()
            self._connection.set_authentication(HeaderAuthentication("Authorization", f"bearer {self._token}"))

    def _refresh(self) -> None:
        request = self._connection.new_request("POST", "_open", "auth")
        request.set_body({"username": self._username, "password": self._password})

        response = self._connection.do(request)
        if response.status_code != 200:
            raise ArangoError.from_body(response.status_code, response.body(), "unexpected code")

        body = response.body() or {}
        token = body.get("jwt")
        if not token:
            raise ArangoError(response.status_code, "authentication response carries no token", body)

        self._token = token
        try:
            self._expiry = parse_jwt_expiry(token)
        except ValueError as e:
            logger.warning(f"failed to parse JWT expiry: {e}")
            self._expiry = self._clock() + FALLBACK_TOKEN_LIFETIME


__all__ = [
    "FALLBACK_TOKEN_LIFETIME",
    "HeaderAuthentication",
    "JWTAuthWrapper",
    "basic_authentication",
    "parse_jwt_expiry",
]
