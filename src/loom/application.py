"""
The loom application context.

An Application owns every registry, the singleton cache, the parameters and
the built-in collaborators of one application instance. Nothing is shared
between instances, so several applications (e.g. one per test) can coexist
without any reset step.

    app = Application(LoomConfig(app_name="todo"))
    app.module("users", UserService)
    app.resources("./resources")
    app.start()
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from flask import Flask
from injector import Injector, Module

from loom.bootstrap.lifecycle_orchestrator import LifecycleOrchestrator
from loom.broadcast.broadcast import Broadcast
from loom.config.application_config import LoomConfig
from loom.config.service_config_loader import ServiceConfigLoader
from loom.core.builtin_module import BuiltinModule, build_builtins
from loom.core.dependency_resolver import DependencyResolver
from loom.core.directory_scanner import DirectoryScanner
from loom.core.parameters import Parameters
from loom.core.readiness import ReadinessTracker
from loom.core.registration_kind import RegistrationKind
from loom.core.registry import KindLike, Registration, Registry
from loom.db.database import Database
from loom.error.application_error import IllegalValueError
from loom.kvstore.key_value_store import KeyValueStore
from loom.logging.log import Log
from loom.logging.service_logger import configure_service_logging
from loom.web.app_factory import create_app

logger = logging.getLogger(__name__)

LOG_LEVEL_PARAMETER = "log level"


class Application:
    """Registration surface and lifecycle entry point of one application."""

    def __init__(self, config: Optional[LoomConfig] = None, modules: Sequence[Module] = ()):
        """
        Args:
            config: Application configuration, defaults to LoomConfig(app_name="loom")
            modules: Extra injector modules; their bindings override the built-in ones
        """
        self.config = config or LoomConfig(app_name="loom")
        self._listeners: Dict[str, List[Callable[..., None]]] = defaultdict(list)

        self.parameters = Parameters()
        self.parameters.register(LOG_LEVEL_PARAMETER)
        self.parameters.load(self.config.parameters)

        self.registry = Registry()
        self.injector = Injector([BuiltinModule(self.config, self.parameters, self.registry), *modules])
        self.log: Log = self.injector.get(Log)

        self.resolver = DependencyResolver(
            self.registry,
            build_builtins(self.injector),
            ReadinessTracker(self.config.readiness_timeout_seconds),
        )
        self.registry.attach_resolver(self.resolver)
        self._scanner = DirectoryScanner(self.registry)

        self._orchestrator = LifecycleOrchestrator(
            app_name=self.config.app_name,
            registry=self.registry,
            resolver=self.resolver,
            emit=self.emit,
            parameters=self.parameters,
            database=self.db,
            kvstore=self.kvstore,
            app_factory=lambda: create_app(self.config),
            serve=lambda flask_app: self._serve(flask_app),
        )
        self.on("start", self._apply_log_level)

    @classmethod
    def from_config_dir(
        cls,
        config_dir: Optional[str] = None,
        config_class: Type[LoomConfig] = LoomConfig,
        modules: Sequence[Module] = (),
    ) -> "Application":
        """Load configuration from application.yaml, configure logging and build the application."""
        config = ServiceConfigLoader.load_config(config_class, config_dir)
        configure_service_logging(config.logging, config.app_name, config.stage)
        return cls(config, modules)

    # Built-ins

    @property
    def db(self) -> Database:
        return self.injector.get(Database)

    @property
    def kvstore(self) -> KeyValueStore:
        return self.injector.get(KeyValueStore)

    @property
    def broadcast(self) -> Broadcast:
        return self.injector.get(Broadcast)

    # Lifecycle events

    def on(self, event: str, callback: Callable[..., None]) -> None:
        self._listeners[event].append(callback)

    def once(self, event: str, callback: Callable[..., None]) -> None:
        def wrapper(*args: Any) -> None:
            self._listeners[event].remove(wrapper)
            callback(*args)
        self._listeners[event].append(wrapper)

    def emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(*args)

    # Parameters

    def register_parameter(self, name: str, required: bool = False) -> None:
        self.parameters.register(name, required)

    def set(self, name: str, value: Any) -> None:
        self.parameters.set(name, value)

    def get(self, name: str) -> Any:
        return self.parameters.get(name)

    # Registration

    def register(self, kind: KindLike, key: str, definition: Any) -> Registration:
        return self.registry.register(kind, key, definition)

    def register_tree(self, kind: KindLike, base_path: str) -> List[str]:
        return self._scanner.register_tree(kind, base_path)

    def module(self, name: str, definition: Any) -> Registration:
        return self.register(RegistrationKind.MODULE, name, definition)

    def modules(self, base_path: str) -> List[str]:
        return self.register_tree(RegistrationKind.MODULE, base_path)

    def resource(self, definition: Any, base_path: Optional[str] = None) -> Registration:
        """Register a resource mounted at base_path, or at its own ``base_path`` attribute."""
        key = base_path or getattr(definition, "base_path", None)
        if not key:
            raise IllegalValueError(
                f"Resource {getattr(definition, '__name__', definition)!r} needs a base path"
            )
        return self.registry.register(RegistrationKind.RESOURCE, key, definition, mount_path=base_path)

    def resources(self, base_path: str) -> List[str]:
        return self.register_tree(RegistrationKind.RESOURCE, base_path)

    def routes(self, definition: Any, key: Optional[str] = None) -> Registration:
        return self.register(RegistrationKind.ROUTE, key or getattr(definition, "__qualname__", ""), definition)

    def routes_tree(self, base_path: str) -> List[str]:
        return self.register_tree(RegistrationKind.ROUTE, base_path)

    def room(self, path: str, definition: Any) -> Registration:
        return self.register(RegistrationKind.ROOM, path, definition)

    # Resolution

    def resolve(self, name: str) -> Any:
        return self.resolver.resolve(name)

    def instantiate(self, definition: Any, *extra_args: Any) -> Any:
        return self.resolver.instantiate(definition, *extra_args)

    # Startup sequences

    def test(self) -> List[Any]:
        """Instantiate modules only, for testing. No web server is started."""
        return self._orchestrator.run_test_mode()

    def start(self) -> Flask:
        """Instantiate everything and serve traffic."""
        return self._orchestrator.run_full_start()

    def stop(self) -> None:
        self.resolver.readiness.shutdown()
        self.db.close()
        logger.info(f"{self.config.app_name} stopped")

    def _serve(self, flask_app: Flask) -> None:
        flask_app.run(host=self.config.web.host, port=self.config.web.port)

    def _apply_log_level(self) -> None:
        if self.parameters.is_set(LOG_LEVEL_PARAMETER):
            self.log.set_level(self.parameters.get(LOG_LEVEL_PARAMETER))
        else:
            self.log.set_level(self.config.logging.level)
