from .database import Database
from .database_provider import DatabaseConnectionError, DatabaseProvider
from .postgresql_database_provider import PostgreSQLDatabaseProvider

__all__ = [
    "Database",
    "DatabaseProvider",
    "DatabaseConnectionError",
    "PostgreSQLDatabaseProvider",
]
