"""
Test Harness
============

Connection matrix, readiness wait, scoped databases and collections, and
version/mode gating for scenario tests. The pytest fixtures live in
:mod:`arango_harness.testing.plugin`.
"""

from .helpers import (
    eventually,
    require_cluster_mode,
    require_extra_features,
    require_mode,
    require_single_mode,
    run_long_request,
    skip_below_version,
    skip_no_enterprise,
    skip_resilient_single_mode,
    unique_name,
    wait_for_connection,
    with_collection,
    with_database,
)
from .variants import ConnectionVariant, WrapOptions, variants

__all__ = [
    "ConnectionVariant",
    "WrapOptions",
    "eventually",
    "require_cluster_mode",
    "require_extra_features",
    "require_mode",
    "require_single_mode",
    "run_long_request",
    "skip_below_version",
    "skip_no_enterprise",
    "skip_resilient_single_mode",
    "unique_name",
    "variants",
    "wait_for_connection",
    "with_collection",
    "with_database",
]
