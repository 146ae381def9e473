"""Persistence gateways for BOM snapshots, version logs and the component catalog."""

from .database_client import DatabaseClient
from .memory_client import MemoryClient
from .postgres_client import PostgresClient, SCHEMA_SQL

__all__ = [
    "DatabaseClient",
    "MemoryClient",
    "PostgresClient",
    "SCHEMA_SQL",
]
