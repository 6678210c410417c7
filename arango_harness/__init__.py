"""
arango-harness
==============

Client-side harness for exercising an ArangoDB server through its REST API:
a polling combinator, a connection factory, async job correlation and
environment-driven test scaffolding.
"""

from .client import ArangoClient, AsyncJobClient, DeleteScope, JobStatus
from .config import HarnessConfig, load_harness_config
from .connection import ConnectionFactory, ContentType, EndpointStrategy, HttpVersion, JobPending
from .polling import Interrupt, PollTimeoutError, Timeout, poll

__version__ = "0.1.0"

__all__ = [
    "ArangoClient",
    "AsyncJobClient",
    "ConnectionFactory",
    "ContentType",
    "DeleteScope",
    "EndpointStrategy",
    "HarnessConfig",
    "HttpVersion",
    "Interrupt",
    "JobPending",
    "JobStatus",
    "PollTimeoutError",
    "Timeout",
    "load_harness_config",
    "poll",
]
