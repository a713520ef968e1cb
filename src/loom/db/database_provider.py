"""
Database provider interface.

A provider manages connections to one named backing store and knows how to
open and close a transaction on one of them.
"""

from abc import ABC, abstractmethod
from typing import Any


class DatabaseProvider(ABC):
    """One backing store made available through the ``$DB`` built-in."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def start(self) -> None:
        """Open connection pools; called once when the application starts."""
        pass

    @abstractmethod
    def get_transaction_connection(self) -> Any:
        """
        Return a connection with an open transaction.

        Raises:
            DatabaseConnectionError: If no connection can be obtained
        """
        pass

    @abstractmethod
    def exit_transaction(self, connection: Any, should_commit: bool) -> None:
        """Commit or roll back, then release the connection."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close all pooled connections."""
        pass


class DatabaseConnectionError(Exception):
    """Exception raised for database connection-related errors."""
    pass
