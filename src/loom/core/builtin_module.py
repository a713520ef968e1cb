"""Built-in dependencies wired with the injector library.

Built-ins are constructed once per application, before any user module,
and are exposed to user definitions under reserved ``$`` names.
"""

import logging
from typing import Any, Dict, Type

from injector import Injector, InstanceProvider, Module, provider, singleton

from loom.broadcast.broadcast import Broadcast
from loom.broadcast.room import RoomResolver
from loom.config.application_config import LoomConfig
from loom.core.parameters import Parameters
from loom.core.registry import Registry
from loom.db.database import Database
from loom.db.postgresql_database_provider import PostgreSQLDatabaseProvider
from loom.error.application_error import ErrorKinds
from loom.kvstore.key_value_store import KeyValueStore
from loom.logging.log import Log

logger = logging.getLogger(__name__)

BUILTIN_NAMES: Dict[str, Type[Any]] = {
    "$L": Log,
    "log": Log,
    "$E": ErrorKinds,
    "$Params": Parameters,
    "$Config": LoomConfig,
    "$KV": KeyValueStore,
    "$DB": Database,
    "$Broadcast": Broadcast,
}


class BuiltinModule(Module):
    """Binds the framework collaborators of one application."""

    def __init__(self, config: LoomConfig, parameters: Parameters, registry: Registry):
        self._config = config
        self._parameters = parameters
        self._registry = registry

    def configure(self, binder) -> None:  # type: ignore[no-untyped-def,override]
        binder.bind(LoomConfig, to=self._config)
        binder.bind(Parameters, to=self._parameters)
        binder.bind(Registry, to=self._registry)
        binder.bind(ErrorKinds, to=InstanceProvider(ErrorKinds))

    @provider
    @singleton
    def provide_log(self, config: LoomConfig) -> Log:
        return Log(config.app_name)

    @provider
    @singleton
    def provide_database(self, config: LoomConfig) -> Database:
        return Database([PostgreSQLDatabaseProvider(db) for db in config.databases])

    @provider
    @singleton
    def provide_key_value_store(self, config: LoomConfig) -> KeyValueStore:
        return KeyValueStore.from_config(config.redis)

    @provider
    @singleton
    def provide_broadcast(self, registry: Registry) -> Broadcast:
        return Broadcast(RoomResolver(registry))


def build_builtins(injector: Injector) -> Dict[str, Any]:
    """Instances for every reserved built-in name."""
    builtins = {name: injector.get(interface) for name, interface in BUILTIN_NAMES.items()}
    logger.debug(f"Built-ins ready: {sorted(builtins)}")
    return builtins
