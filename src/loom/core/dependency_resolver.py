"""
Dependency resolver for loom applications.

Resolves dependency names to instances in a fixed order of precedence:
built-ins, cached singletons, registered modules (constructed recursively)
and finally external libraries importable by name.
"""

import importlib
import logging
from types import ModuleType
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from loom.core.readiness import ReadinessTracker
from loom.core.registration_kind import RegistrationKind
from loom.decorator.inject_decorator import get_dependencies
from loom.error.application_error import (
    CircularDependencyError,
    IllegalValueError,
    NotFoundError,
)

if TYPE_CHECKING:
    from loom.core.registry import Registry

logger = logging.getLogger(__name__)

BUILTIN_PREFIX = "$"

# Insertion-ordered set of module names under construction
ResolutionPath = Dict[str, None]


class DependencyResolver:
    """
    Resolves dependency names and instantiates definitions.

    Owns the singleton cache for user modules and the cache of external
    libraries. One resolver belongs to exactly one application instance.
    """

    def __init__(
        self,
        registry: "Registry",
        builtins: Mapping[str, Any],
        readiness: Optional[ReadinessTracker] = None,
    ):
        """
        Args:
            registry: Registry consulted for unresolved module names
            builtins: Built-in instances, keyed by reserved name
            readiness: Tracker for module startup hooks
        """
        self._registry = registry
        self._builtins = dict(builtins)
        self._readiness = readiness or ReadinessTracker()
        self._singletons: Dict[str, Any] = {}
        self._libraries: Dict[str, ModuleType] = {}

    @property
    def readiness(self) -> ReadinessTracker:
        return self._readiness

    def is_builtin(self, name: str) -> bool:
        return name.startswith(BUILTIN_PREFIX) or name in self._builtins

    def is_resolved(self, name: str) -> bool:
        return name in self._singletons

    def resolved_modules(self) -> List[str]:
        """Names of constructed modules, in construction order."""
        return list(self._singletons)

    def resolve(self, name: str) -> Any:
        """
        Resolve a single dependency name to an instance.

        Raises:
            IllegalValueError: If the name is not a non-empty string
            NotFoundError: If nothing answers to the name
            CircularDependencyError: If the name is already under construction
        """
        return self._resolve(name, {})

    def instantiate(self, definition: Any, *extra_args: Any) -> Any:
        """
        Construct a definition with its declared dependencies.

        Dependencies are passed positionally in declared order, followed by
        any extra arguments.
        """
        return self._instantiate(definition, {}, extra_args)

    def _resolve(self, name: str, path: ResolutionPath) -> Any:
        if not isinstance(name, str) or not name:
            raise IllegalValueError(f"Dependency name must be a non-empty string, got {name!r}")

        if self.is_builtin(name):
            if name not in self._builtins:
                raise NotFoundError(f"Unknown built-in dependency '{name}'")
            return self._builtins[name]

        if name in self._singletons:
            return self._singletons[name]

        if name in path:
            cycle = " -> ".join(list(path) + [name])
            raise CircularDependencyError(f"Circular dependency detected: {cycle}")

        registration = self._registry.get(RegistrationKind.MODULE, name)
        if registration is not None:
            return self._construct_module(name, registration.definition, path)

        return self._load_library(name)

    def _construct_module(self, name: str, definition: Any, path: ResolutionPath) -> Any:
        path[name] = None
        try:
            instance = self._instantiate(definition, path, ())
        finally:
            del path[name]
        self._singletons[name] = instance
        self._readiness.track(name, instance)
        logger.debug(f"Constructed module '{name}'")
        return instance

    def _instantiate(self, definition: Any, path: ResolutionPath, extra_args: tuple) -> Any:
        names = get_dependencies(definition)
        args = [self._resolve(dependency, path) for dependency in names]
        # dependencies must be ready before the dependent is built
        for dependency in names:
            if dependency in self._singletons:
                self._readiness.wait_for(dependency)
        return definition(*args, *extra_args)

    def _load_library(self, name: str) -> ModuleType:
        if name in self._libraries:
            return self._libraries[name]
        try:
            library = importlib.import_module(name)
        except (ImportError, TypeError) as e:
            raise NotFoundError(
                f"Unable to resolve dependency '{name}': not a built-in, "
                f"registered module or importable library"
            ) from e
        self._libraries[name] = library
        logger.debug(f"Loaded external library '{name}'")
        return library
