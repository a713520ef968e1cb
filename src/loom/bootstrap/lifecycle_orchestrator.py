"""
Lifecycle orchestration for loom applications.

Two mutually exclusive startup sequences bring registered definitions to
life through the dependency resolver:

Test mode:
1. Check that every required parameter has a value
2. Emit ``start``
3. Prepare the data-access handle, forced to roll back every transaction
4. Flush the key-value store
5. Instantiate every module (registration order)
6. Wait for outstanding module readiness

Full start:
1. Check that every required parameter has a value
2. Emit ``start``
3. Prepare the data-access handle
4. Create the hosting web application
5. Instantiate every module, then every resource, then every route
6. Wait for outstanding module readiness
7. Begin accepting traffic

Any failure aborts the sequence; traffic is never accepted with a partially
constructed dependency graph.
"""

import logging
from typing import Any, Callable, List, Optional

from flask import Flask

from loom.bootstrap.startup_context import StartupContext
from loom.core.parameters import Parameters
from loom.core.dependency_resolver import DependencyResolver
from loom.core.registration_kind import RegistrationKind
from loom.core.registry import Registry
from loom.db.database import Database
from loom.error.application_error import IllegalValueError
from loom.kvstore.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

Emit = Callable[..., None]


class LifecycleOrchestrator:
    """Runs exactly one startup sequence for one application."""

    def __init__(
        self,
        app_name: str,
        registry: Registry,
        resolver: DependencyResolver,
        emit: Emit,
        parameters: Parameters,
        database: Database,
        kvstore: KeyValueStore,
        app_factory: Callable[[], Flask],
        serve: Callable[[Flask], None],
    ):
        """
        Args:
            app_name: Name used in startup summaries
            registry: Registrations to bring to life
            resolver: Resolver used by every registration factory
            emit: Lifecycle event emitter
            parameters: Application parameters, validated before anything starts
            database: Data-access handle built-in
            kvstore: Key-value store built-in
            app_factory: Creates the hosting web application
            serve: Starts accepting traffic on the hosting web application
        """
        self.app_name = app_name
        self._registry = registry
        self._resolver = resolver
        self._emit = emit
        self._parameters = parameters
        self._database = database
        self._kvstore = kvstore
        self._app_factory = app_factory
        self._serve = serve
        self._sequence: Optional[str] = None

    @property
    def sequence(self) -> Optional[str]:
        """Name of the sequence that ran, if any."""
        return self._sequence

    def run_test_mode(self) -> List[Any]:
        """
        Instantiate modules only, with writes discarded and an empty key-value store.

        Returns:
            Module instances, in registration order
        """
        ctx = self._begin("test")
        try:
            with ctx.phase("parameters"):
                self._parameters.validate()

            with ctx.phase("start_event"):
                self._emit("start")

            with ctx.phase("data_access"):
                self._database.always_rollback = True
                self._database.start()

            with ctx.phase("kvstore"):
                self._kvstore.flushdb()

            with ctx.phase("modules"):
                modules = self._instantiate(RegistrationKind.MODULE)
                ctx.attribute("modules", len(modules))

            with ctx.phase("readiness"):
                self._resolver.readiness.wait_all()

            self._emit("post init")
        except Exception as e:
            self._abort(ctx, e)
            raise

        ctx.emit_summary(logger)
        return modules

    def run_full_start(self) -> Flask:
        """
        Instantiate modules, resources and routes, then serve traffic.

        Returns:
            The hosting web application, once serving has returned
        """
        ctx = self._begin("start")
        try:
            with ctx.phase("parameters"):
                self._parameters.validate()

            with ctx.phase("start_event"):
                self._emit("start")

            with ctx.phase("data_access"):
                self._database.start()

            with ctx.phase("web_interface"):
                flask_app = self._app_factory()

            with ctx.phase("modules"):
                ctx.attribute("modules", len(self._instantiate(RegistrationKind.MODULE)))

            with ctx.phase("resources"):
                ctx.attribute("resources", len(self._instantiate(RegistrationKind.RESOURCE, flask_app)))

            with ctx.phase("routes"):
                ctx.attribute("routes", len(self._instantiate(RegistrationKind.ROUTE, flask_app)))

            with ctx.phase("readiness"):
                self._resolver.readiness.wait_all()

            self._emit("post init")
        except Exception as e:
            self._abort(ctx, e)
            raise

        ctx.emit_summary(logger)
        logger.info(f"{self.app_name} started, accepting traffic")
        self._emit("listening", flask_app)
        self._serve(flask_app)
        return flask_app

    def _begin(self, sequence: str) -> StartupContext:
        if self._sequence is not None:
            raise IllegalValueError(
                f"Cannot run '{sequence}': '{self._sequence}' already ran for this application"
            )
        self._sequence = sequence
        self._registry.seal()
        logger.info(f"Starting {self.app_name} ({sequence} sequence)")
        return StartupContext(self.app_name, sequence)

    def _instantiate(self, kind: RegistrationKind, *args: Any) -> List[Any]:
        instances = []
        for registration in self._registry.registrations(kind):
            logger.debug(f"Instantiating {kind.value} '{registration.key}'")
            instances.append(registration.factory(*args))
        return instances

    def _abort(self, ctx: StartupContext, error: Exception) -> None:
        logger.error(f"Failed to start {self.app_name}: {error}")
        ctx.emit_summary(logger)
        self._resolver.readiness.shutdown()
        try:
            self._database.close()
        except Exception as e:
            logger.error(f"Could not close data access after failed start: {e}")
        try:
            self._emit("error", error)
        except Exception:
            logger.exception(f"An error listener of {self.app_name} failed")
