"""
ArangoDB Client
===============

Server, database, collection and async-job operations over a connection.
"""

from .asyncjob import AsyncJobClient, DeleteScope, JobStatus
from .client import SYSTEM_DATABASE, ArangoClient, EndpointHealth
from .version import Version, VersionInfo

__all__ = [
    "ArangoClient",
    "AsyncJobClient",
    "DeleteScope",
    "EndpointHealth",
    "JobStatus",
    "SYSTEM_DATABASE",
    "Version",
    "VersionInfo",
]
