import logging
from unittest.mock import Mock

import pytest
from injector import Binder, InstanceProvider, Module

from loom.application import Application
from loom.config.application_config import LoomConfig
from loom.core.readiness import ReadinessTracker
from loom.core.registry import Registry
from loom.core.dependency_resolver import DependencyResolver
from loom.db.database import Database
from loom.kvstore.key_value_store import KeyValueStore


class InMemoryBackendModule(Module):
    """Replaces the network-backed built-ins with test doubles."""

    def __init__(self, kvstore: KeyValueStore, database: Database):
        self._kvstore = kvstore
        self._database = database

    def configure(self, binder: Binder) -> None:  # type: ignore[override]
        binder.bind(KeyValueStore, to=InstanceProvider(self._kvstore))
        binder.bind(Database, to=InstanceProvider(self._database))


@pytest.fixture
def loom_config() -> LoomConfig:
    """Application configuration with a short readiness bound."""
    return LoomConfig(app_name="loom-test", readiness_timeout_seconds=2.0)


@pytest.fixture
def kvstore_mock() -> Mock:
    return Mock(spec=KeyValueStore)


@pytest.fixture
def database() -> Database:
    return Database()


@pytest.fixture
def app(loom_config: LoomConfig, kvstore_mock: Mock, database: Database):
    """A fresh application whose key-value store and database are test doubles.

    Yields:
        Application instance, stopped after the test
    """
    application = Application(loom_config, modules=[InMemoryBackendModule(kvstore_mock, database)])
    yield application
    application.resolver.readiness.shutdown()


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture
def resolver(registry: Registry) -> DependencyResolver:
    """Resolver with a single ``$L`` built-in attached to the registry fixture."""
    resolver = DependencyResolver(registry, {"$L": Mock(name="log")}, ReadinessTracker(timeout_seconds=2.0))
    registry.attach_resolver(resolver)
    yield resolver
    resolver.readiness.shutdown()


@pytest.fixture
def isolated_logging():
    """Restore the framework logger after a test applies a logging configuration."""
    loggers = [logging.getLogger(name) for name in ("loom", "loom-test", "from-yaml")]
    saved = [(logger, logger.level, logger.propagate, list(logger.handlers)) for logger in loggers]
    yield
    for logger, level, propagate, handlers in saved:
        logger.setLevel(level)
        logger.propagate = propagate
        logger.handlers[:] = handlers
