"""
Data-access handle injectable as the ``$DB`` built-in.

``transaction()`` opens one transaction per configured provider and yields
them keyed by provider name:

    with db.transaction() as tx:
        cursor = tx["postgres"].cursor()

All transactions commit together on success and roll back together on
error. In test mode every transaction is rolled back.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Sequence

from loom.db.database_provider import DatabaseProvider
from loom.error.application_error import DuplicateEntryError

logger = logging.getLogger(__name__)


class Database:
    """Transactions across every configured backing store."""

    def __init__(self, providers: Sequence[DatabaseProvider] = (), always_rollback: bool = False):
        names = [provider.name for provider in providers]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise DuplicateEntryError(f"Duplicate database provider names: {sorted(duplicates)}")
        self._providers: List[DatabaseProvider] = list(providers)
        self.always_rollback = always_rollback

    @property
    def provider_names(self) -> List[str]:
        return [provider.name for provider in self._providers]

    def start(self) -> None:
        for provider in self._providers:
            provider.start()

    def close(self) -> None:
        for provider in self._providers:
            provider.close()

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, Any]]:
        opened: Dict[str, Any] = {}
        try:
            for provider in self._providers:
                opened[provider.name] = provider.get_transaction_connection()
            yield dict(opened)
        except BaseException:
            self._exit(opened, should_commit=False)
            raise
        else:
            self._exit(opened, should_commit=not self.always_rollback)

    def _exit(self, opened: Dict[str, Any], should_commit: bool) -> None:
        for provider in self._providers:
            if provider.name in opened:
                provider.exit_transaction(opened[provider.name], should_commit)
        if opened and not should_commit:
            logger.debug(f"Rolled back transactions on {list(opened)}")
