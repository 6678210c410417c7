"""
Harness Configuration Module
============================

Provides validated configuration for connecting the harness to ArangoDB.

Key Components:
- BaseConfig: Abstract configuration foundation with Pydantic validation
- HarnessConfig: Endpoints, mode, authentication and feature gates
- load_harness_config: File + environment resolution
"""

from .config_base import (
    BaseConfig,
    ConfigError,
    ConfigValidationError,
)
from .harness_config import (
    AuthenticationSpec,
    AuthKind,
    DeploymentMode,
    HarnessConfig,
    load_harness_config,
    normalize_endpoint,
)

__all__ = [
    'AuthKind',
    'AuthenticationSpec',
    'BaseConfig',
    'ConfigError',
    'ConfigValidationError',
    'DeploymentMode',
    'HarnessConfig',
    'load_harness_config',
    'normalize_endpoint',
]
