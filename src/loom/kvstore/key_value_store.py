"""
Key-value store handle injectable as the ``$KV`` built-in.

Wraps a redis client and prefixes every key with the application's key
prefix, so several applications can share one redis database.
"""

import logging
from typing import Any, Optional

import redis

from loom.config.application_config import RedisConfig

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Prefixed view over a redis client."""

    def __init__(self, client: redis.Redis, prefix: str):
        self._client = client
        self.prefix = prefix

    @classmethod
    def from_config(cls, config: RedisConfig) -> "KeyValueStore":
        client = redis.Redis(
            host=config.host,
            port=config.port,
            password=config.password,
            db=config.db,
            decode_responses=True,
        )
        return cls(client, config.key_prefix)

    @property
    def client(self) -> redis.Redis:
        return self._client

    def key(self, name: str) -> str:
        return f"{self.prefix}:{name}"

    def get(self, name: str) -> Optional[Any]:
        return self._client.get(self.key(name))

    def set(self, name: str, value: Any, expire_seconds: Optional[int] = None) -> None:
        self._client.set(self.key(name), value, ex=expire_seconds)

    def delete(self, name: str) -> int:
        return self._client.delete(self.key(name))

    def exists(self, name: str) -> bool:
        return bool(self._client.exists(self.key(name)))

    def flushdb(self) -> None:
        """Remove every key of the selected redis database."""
        self._client.flushdb()
        logger.info("Key-value store flushed")
