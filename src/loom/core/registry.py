"""
Registration namespaces for modules, resources, routes and rooms.

The registry maps a key (a name, or a relative file path for scanned
definitions) to a deferred Registration. Nothing is constructed at
registration time; each Registration carries a factory that the lifecycle
orchestrator invokes later.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple, Union

from loom.core.registration_kind import RegistrationKind
from loom.error.application_error import DuplicateEntryError, IllegalValueError
from loom.web.resource import RESOURCE_VERBS, derive_base_path, mount_resource, normalize_path

if TYPE_CHECKING:
    from loom.core.dependency_resolver import DependencyResolver

logger = logging.getLogger(__name__)

KindLike = Union[RegistrationKind, str]

ROUTE_CAPABILITIES: Tuple[str, ...] = ("mount",)
ROOM_CAPABILITIES: Tuple[str, ...] = ("authorize",)


@dataclass
class Registration:
    """A registered, not yet constructed, definition."""

    kind: RegistrationKind
    key: str
    definition: Any
    factory: Callable[..., Any] = field(repr=False)
    # resources only
    mount_path: Optional[str] = None


class Registry:
    """
    Holds the four registration namespaces of one application.

    Registration order is preserved within each kind. The registry is sealed
    once orchestration begins; registering afterwards is an error.
    """

    def __init__(self) -> None:
        self._entries: Dict[RegistrationKind, Dict[str, Registration]] = {
            kind: {} for kind in RegistrationKind
        }
        self._resolver: Optional["DependencyResolver"] = None
        self._sealed = False

    def attach_resolver(self, resolver: "DependencyResolver") -> None:
        self._resolver = resolver

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        self._sealed = True
        logger.debug(f"Registry sealed: {self}")

    def register(
        self, kind: KindLike, key: str, definition: Any, mount_path: Optional[str] = None
    ) -> Registration:
        """
        Register a definition under a key for a kind.

        Args:
            kind: One of module, resource, route, room
            key: Module/room name or relative path of a scanned file
            definition: Class or factory to construct later
            mount_path: Resources only. Path to mount at; defaults to the
                definition's ``base_path`` attribute, then to the path derived from key

        Returns:
            The stored Registration

        Raises:
            IllegalValueError: If the kind or key is invalid, the definition
                does not have the shape the kind requires, or the registry is sealed
            DuplicateEntryError: If the key is already registered for the kind,
                or another resource is already mounted at the same path
        """
        registration_kind = self._coerce_kind(kind)
        if self._sealed:
            raise IllegalValueError(
                f"Cannot register {registration_kind.value} '{key}' after the application has started"
            )
        if not isinstance(key, str) or not key:
            raise IllegalValueError(f"Registration key must be a non-empty string, got {key!r}")

        namespace = self._entries[registration_kind]
        if key in namespace:
            raise DuplicateEntryError(
                f"A {registration_kind.value} named '{key}' is already registered"
            )

        self._validate_definition(registration_kind, key, definition)
        if registration_kind == RegistrationKind.RESOURCE:
            mount_path = self._claim_mount_path(key, definition, mount_path)
        elif mount_path is not None:
            raise IllegalValueError(
                f"Only resources take a mount path, got one for {registration_kind.value} '{key}'"
            )

        registration = Registration(
            kind=registration_kind,
            key=key,
            definition=definition,
            factory=self._build_factory(registration_kind, key, definition, mount_path),
            mount_path=mount_path,
        )
        namespace[key] = registration
        logger.debug(f"Registered {registration_kind.value} '{key}': {definition}")
        return registration

    def get(self, kind: KindLike, key: str) -> Optional[Registration]:
        return self._entries[self._coerce_kind(kind)].get(key)

    def registrations(self, kind: KindLike) -> List[Registration]:
        """Registrations of a kind, in registration order."""
        return list(self._entries[self._coerce_kind(kind)].values())

    def keys(self, kind: KindLike) -> List[str]:
        return list(self._entries[self._coerce_kind(kind)])

    @staticmethod
    def _coerce_kind(kind: KindLike) -> RegistrationKind:
        try:
            return RegistrationKind(kind)
        except ValueError as e:
            raise IllegalValueError(
                f"Unknown registration kind {kind!r}, expected one of "
                f"{[k.value for k in RegistrationKind]}"
            ) from e

    def _validate_definition(self, kind: RegistrationKind, key: str, definition: Any) -> None:
        if kind == RegistrationKind.MODULE:
            if not callable(definition):
                raise IllegalValueError(
                    f"Module '{key}' must be a class or factory callable, got {type(definition).__name__}"
                )
            return

        if not isinstance(definition, type):
            raise IllegalValueError(
                f"{kind.value.capitalize()} '{key}' must be a class, got {type(definition).__name__}"
            )

        required = {
            RegistrationKind.RESOURCE: RESOURCE_VERBS,
            RegistrationKind.ROUTE: ROUTE_CAPABILITIES,
            RegistrationKind.ROOM: ROOM_CAPABILITIES,
        }[kind]
        missing = [name for name in required if not callable(getattr(definition, name, None))]
        if missing:
            raise IllegalValueError(
                f"{kind.value.capitalize()} '{key}' ({definition.__name__}) is missing "
                f"required methods: {', '.join(missing)}"
            )

    def _claim_mount_path(self, key: str, definition: Any, mount_path: Optional[str]) -> str:
        path = normalize_path(mount_path or getattr(definition, "base_path", None) or derive_base_path(key))
        for other in self._entries[RegistrationKind.RESOURCE].values():
            if other.mount_path == path:
                raise DuplicateEntryError(
                    f"Resource '{key}' would mount at '{path}', already taken by resource '{other.key}'"
                )
        return path

    def _build_factory(
        self, kind: RegistrationKind, key: str, definition: Any, mount_path: Optional[str] = None
    ) -> Callable[..., Any]:
        if kind == RegistrationKind.MODULE:
            def module_factory() -> Any:
                return self._require_resolver().resolve(key)
            return module_factory

        if kind == RegistrationKind.RESOURCE:
            def resource_factory(app: Any) -> Any:
                instance = self._require_resolver().instantiate(definition)
                mount_resource(app, instance, mount_path, name=key)
                return instance
            return resource_factory

        if kind == RegistrationKind.ROUTE:
            def route_factory(app: Any) -> Any:
                instance = self._require_resolver().instantiate(definition)
                instance.mount(app)
                return instance
            return route_factory

        built: List[Any] = []

        def room_factory() -> Any:
            if not built:
                built.append(self._require_resolver().instantiate(definition))
            return built[0]
        return room_factory

    def _require_resolver(self) -> "DependencyResolver":
        if self._resolver is None:
            raise IllegalValueError("Registry has no resolver attached")
        return self._resolver

    def __len__(self) -> int:
        return sum(len(namespace) for namespace in self._entries.values())

    def __repr__(self) -> str:
        counts = ", ".join(f"{kind.value}={len(ns)}" for kind, ns in self._entries.items())
        return f"{self.__class__.__name__}({counts})"
