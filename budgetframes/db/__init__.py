"""
Database Package

Engine and transaction helpers, the relational schema, storage errors,
and the SQL-backed audit storage.
"""

from budgetframes.db.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    StorageError,
)
from budgetframes.db.database import Database, Tx, get_database
from budgetframes.db.audit_storage import SqlAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # SQL implementation
    "Database",
    "SqlAuditStorage",
    "Tx",
    "get_database",
]
