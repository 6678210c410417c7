"""Harness configuration.

:class:`HarnessConfig` is the explicit configuration object passed through
test setup, the connection factory and the CLI. It is usually built from the
``TEST_*`` environment variables, optionally layered over a YAML or JSON
file:

    TEST_ENDPOINTS=http://localhost:8529,http://localhost:8539
    TEST_MODE=cluster
    TEST_AUTHENTICATION=jwt:root:secret
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, SecretStr, SerializationInfo, field_serializer, field_validator

from ..logging.logging import _validate_log_level
from .config_base import REVEAL_SECRETS, BaseConfig, ConfigValidationError, deep_merge, read_mapping

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http://", "https://")

_SCHEME_ALIASES = {
    "tcp://": "http://",
    "ssl://": "https://",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


class DeploymentMode(str, Enum):
    """Server deployment the tests run against."""

    SINGLE = "single"
    CLUSTER = "cluster"
    RESILIENT_SINGLE = "resilientsingle"


class AuthKind(str, Enum):
    BASIC = "basic"
    JWT = "jwt"


class AuthenticationSpec(BaseModel):
    """Credentials and the scheme used to present them."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    kind: AuthKind
    username: str = Field(min_length=1)
    password: SecretStr = SecretStr("")

    @field_serializer("password")
    def serialize_password(self, value: SecretStr, info: SerializationInfo):
        if info.context and info.context.get(REVEAL_SECRETS):
            return value.get_secret_value()
        return str(value) if info.mode_is_json() else value

    @classmethod
    def parse(cls, spec: str) -> AuthenticationSpec:
        """Parse ``basic:user:pass`` or ``jwt:user:pass``.

        The password is everything after the second colon.
        """
        parts = spec.strip().split(":", 2)
        kind = parts[0]
        if kind not in {k.value for k in AuthKind}:
            raise ConfigValidationError("Invalid authentication", [f"Unknown authentication: '{kind}'"])
        if len(parts) != 3:
            raise ConfigValidationError(
                "Invalid authentication",
                [f"Expected username & password for {kind} authentication"],
            )
        return cls(kind=kind, username=parts[1], password=SecretStr(parts[2]))


def normalize_endpoint(endpoint: str) -> str:
    """Map ``tcp://``/``ssl://`` to HTTP schemes and drop trailing slashes."""
    endpoint = endpoint.strip()
    for alias, scheme in _SCHEME_ALIASES.items():
        if endpoint.startswith(alias):
            endpoint = scheme + endpoint[len(alias):]
            break
    return endpoint.rstrip("/")


def _env_flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() in _TRUE_VALUES


class HarnessConfig(BaseConfig):
    """
    Configuration for connecting the harness to an ArangoDB deployment.

    Covers endpoint list, deployment mode, authentication, feature gates,
    backup repository settings and transport timeouts.
    """

    endpoints: list[str] = Field(
        default_factory=list,
        description="Server endpoints, e.g. http://localhost:8529"
    )

    mode: DeploymentMode | None = Field(
        default=None,
        description="Deployment mode of the server under test"
    )

    authentication: AuthenticationSpec | None = Field(
        default=None,
        description="Authentication scheme and credentials"
    )

    enable_database_extra_features: bool = Field(
        default=False,
        description="Run tests for optional database features"
    )

    backup_remote_repo: str | None = Field(
        default=None,
        description="Remote repository for backup upload/download tests"
    )

    backup_remote_config: dict[str, Any] | None = Field(
        default=None,
        description="rclone-style configuration for the backup repository"
    )

    connect_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Connection timeout in seconds"
    )

    read_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Read/write timeout in seconds"
    )

    log_level: str = Field(
        default="INFO",
        description="Log level for harness logging"
    )

    @field_validator("endpoints", mode="before")
    @classmethod
    def _split_endpoints(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list | tuple):
            return [normalize_endpoint(str(ep)) for ep in value if str(ep).strip()]
        return value

    def validate_semantics(self) -> list[str]:
        """
        Validate harness configuration semantics.

        Returns:
            List of validation errors
        """
        errors = []

        for endpoint in self.endpoints:
            if not endpoint.startswith(ALLOWED_SCHEMES):
                errors.append(f"Unsupported endpoint scheme: {endpoint}")

        if len(set(self.endpoints)) != len(self.endpoints):
            errors.append("Endpoints must be unique")

        try:
            _validate_log_level(self.log_level)
        except ValueError as e:
            errors.append(str(e))

        return errors

    @property
    def is_cluster(self) -> bool:
        return self.mode == DeploymentMode.CLUSTER

    @classmethod
    def env_overrides(cls, environ: Mapping[str, str] | None = None) -> dict[str, Any]:
        """
        Collect configuration values from environment variables.

        Only variables that are set contribute a key.

        Raises:
            ConfigValidationError: If a variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}

        if endpoints := env.get("TEST_ENDPOINTS"):
            data["endpoints"] = endpoints

        if mode := env.get("TEST_MODE", "").strip():
            data["mode"] = mode

        if auth := env.get("TEST_AUTHENTICATION", "").strip():
            data["authentication"] = AuthenticationSpec.parse(auth)

        if "ENABLE_DATABASE_EXTRA_FEATURES" in env:
            data["enable_database_extra_features"] = _env_flag(env.get("ENABLE_DATABASE_EXTRA_FEATURES"))

        if repo := env.get("TEST_BACKUP_REMOTE_REPO"):
            data["backup_remote_repo"] = repo

        if remote_config := env.get("TEST_BACKUP_REMOTE_CONFIG"):
            try:
                parsed = orjson.loads(remote_config)
            except orjson.JSONDecodeError as e:
                raise ConfigValidationError("Invalid TEST_BACKUP_REMOTE_CONFIG", [str(e)]) from e
            if not isinstance(parsed, dict):
                raise ConfigValidationError("Invalid TEST_BACKUP_REMOTE_CONFIG", ["expected a JSON object"])
            data["backup_remote_config"] = parsed

        for var, key in (("TEST_CONNECT_TIMEOUT", "connect_timeout"), ("TEST_READ_TIMEOUT", "read_timeout")):
            if raw := env.get(var):
                try:
                    data[key] = float(raw)
                except ValueError as e:
                    raise ConfigValidationError(f"Invalid {var}", [f"not a number: {raw!r}"]) from e

        if level := env.get("TEST_LOG_LEVEL"):
            data["log_level"] = level

        return data

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> HarnessConfig:
        """
        Create configuration from ``TEST_*`` environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Validated configuration with source "environment"
        """
        instance = cls.from_dict(cls.env_overrides(environ))
        instance.source = "environment"
        return instance


def load_harness_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> HarnessConfig:
    """
    Load harness configuration with environment values taking priority.

    Args:
        path: Optional YAML or JSON file
        environ: Mapping to read instead of os.environ

    Returns:
        Validated configuration
    """
    data: dict[str, Any] = {}
    source = "environment"

    if path is not None:
        file_path = Path(path)
        data = read_mapping(file_path)
        source = str(file_path)
        logger.debug(f"Loaded harness configuration from {file_path}")

    merged = deep_merge(data, HarnessConfig.env_overrides(environ))
    config = HarnessConfig.from_dict(merged)
    config.source = source
    return config


__all__ = [
    "AuthKind",
    "AuthenticationSpec",
    "DeploymentMode",
    "HarnessConfig",
    "load_harness_config",
    "normalize_endpoint",
]
