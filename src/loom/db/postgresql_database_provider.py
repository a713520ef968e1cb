"""
PostgreSQL database provider with connection pooling.

Uses a psycopg2 SimpleConnectionPool. Autocommit stays off, so every
connection handed out begins a transaction implicitly.
"""

import logging
from typing import Optional

import psycopg2
from psycopg2 import pool

from loom.config.application_config import DatabaseConfig
from loom.db.database_provider import DatabaseConnectionError, DatabaseProvider

logger = logging.getLogger(__name__)


class PostgreSQLDatabaseProvider(DatabaseProvider):
    """PostgreSQL backing store, exposed under ``config.name``."""

    def __init__(self, config: DatabaseConfig):
        """
        Args:
            config: Connection settings of this backing store
        """
        super().__init__(config.name)
        self.db_config = config
        self._pool: Optional[pool.SimpleConnectionPool] = None

    def start(self) -> None:
        """
        Create the connection pool.

        Raises:
            DatabaseConnectionError: If pool creation fails
        """
        if self._pool is not None:
            return
        try:
            self._pool = pool.SimpleConnectionPool(
                minconn=self.db_config.min_connections,
                maxconn=self.db_config.max_connections,
                host=self.db_config.host,
                port=self.db_config.port,
                database=self.db_config.database,
                user=self.db_config.username,
                password=self.db_config.password,
            )
            logger.info(f"Connection pool for '{self.name}' initialized")
        except psycopg2.Error as e:
            logger.error(f"Failed to create connection pool for '{self.name}': {str(e)}")
            raise DatabaseConnectionError(f"Pool creation failed: {str(e)}") from e

    def get_transaction_connection(self) -> psycopg2.extensions.connection:
        if self._pool is None:
            raise DatabaseConnectionError(f"Provider '{self.name}' has not been started")
        try:
            connection = self._pool.getconn()
        except psycopg2.Error as e:
            raise DatabaseConnectionError(f"Connection error: {str(e)}") from e
        if connection is None:
            raise DatabaseConnectionError("Failed to obtain connection from pool")
        return connection

    def exit_transaction(self, connection: psycopg2.extensions.connection, should_commit: bool) -> None:
        try:
            if should_commit:
                connection.commit()
                logger.debug(f"Transaction on '{self.name}' committed")
            else:
                connection.rollback()
                logger.debug(f"Transaction on '{self.name}' rolled back")
        finally:
            if self._pool is not None:
                self._pool.putconn(connection)

    def close(self) -> None:
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info(f"All connections of '{self.name}' closed")
