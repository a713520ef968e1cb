"""
Dependency declaration for loom definitions.

Dependency names are kept in a side-table keyed by the identity of the
definition (class or factory callable) instead of being written onto the
definition itself. A definition may still carry a plain ``inject`` list or
tuple as a class attribute; that list is honoured as the first declaration.

Two surfaces are provided:

    # explicit call, successive calls append
    declare_dependencies(UserService, "$L", "$DB")
    declare_dependencies(UserService, "users")

    # decorator, stacked decorators keep their top-to-bottom order
    @inject("$L", "$DB")
    @inject("users")
    class UserService: ...

Both yield ``["$L", "$DB", "users"]``.
"""

import logging
import weakref
from dataclasses import dataclass
from typing import Any, Callable, List, MutableMapping, Sequence, Tuple, TypeVar

from loom.error.application_error import IllegalValueError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

INJECT_SLOT = "inject"

_declarations: MutableMapping[Any, List[str]] = weakref.WeakKeyDictionary()


@dataclass(frozen=True)
class DependencyDescriptor:
    """The complete dependency list attached to a definition."""

    definition: Any
    names: Tuple[str, ...]


def _validate_names(names: Sequence[Any]) -> List[str]:
    if len(names) == 0:
        raise NotFoundError(
            "Dependency declaration requires at least one dependency name."
        )
    for name in names:
        if not isinstance(name, str):
            raise IllegalValueError(
                f"Dependency names must be strings, got {type(name).__name__}: {name!r}"
            )
    return list(names)


def _slot_names(definition: Any) -> List[str]:
    """Read a pre-existing ``inject`` slot, rejecting foreign values."""
    if not hasattr(definition, INJECT_SLOT):
        return []
    value = getattr(definition, INJECT_SLOT)
    if not isinstance(value, (list, tuple)):
        raise IllegalValueError(
            f"{_name_of(definition)} already has a non-list '{INJECT_SLOT}' attribute "
            f"of type {type(value).__name__}."
        )
    for name in value:
        if not isinstance(name, str):
            raise IllegalValueError(
                f"{_name_of(definition)}.{INJECT_SLOT} contains a non-string entry: {name!r}"
            )
    return list(value)


def _name_of(definition: Any) -> str:
    return getattr(definition, "__qualname__", None) or repr(definition)


def _store(definition: Any, names: List[str]) -> None:
    try:
        _declarations[definition] = names
    except TypeError as e:
        raise IllegalValueError(
            f"Cannot declare dependencies on {_name_of(definition)}: {e}"
        ) from e


def _declared(definition: Any) -> List[str]:
    try:
        if definition in _declarations:
            return list(_declarations[definition])
    except TypeError:
        return []
    if isinstance(definition, type):
        for base in definition.__mro__[1:]:
            if base in _declarations:
                return list(_declarations[base])
    return []


def _has_own_declaration(definition: Any) -> bool:
    try:
        return definition in _declarations
    except TypeError:
        return False


def declare_dependencies(definition: Any, *names: str) -> DependencyDescriptor:
    """
    Append dependency names to a definition.

    Args:
        definition: Class or factory callable receiving the dependencies
        *names: Dependency names, in constructor argument order

    Returns:
        DependencyDescriptor with the full list now attached

    Raises:
        NotFoundError: If no names are supplied
        IllegalValueError: If a name is not a string, or the definition has a
            foreign non-list ``inject`` attribute
    """
    validated = _validate_names(names)
    slot = _slot_names(definition)
    current = _declared(definition) if _has_own_declaration(definition) else slot
    combined = current + validated
    _store(definition, combined)
    logger.debug(f"Declared dependencies for {_name_of(definition)}: {combined}")
    return DependencyDescriptor(definition, tuple(combined))


def inject(*names: str) -> Callable[[T], T]:
    """
    Decorator form of declare_dependencies.

    Decorators apply bottom-up, so each application prepends its names to
    whatever was declared by decorators below it.
    """
    validated = _validate_names(names)

    def decorator(definition: T) -> T:
        slot = _slot_names(definition)
        if _has_own_declaration(definition):
            below = _declared(definition)
            # slot names always lead the list
            below = below[len(slot):]
        else:
            below = []
        _store(definition, slot + validated + below)
        return definition

    return decorator


def get_dependencies(definition: Any) -> List[str]:
    """
    Return the dependency list of a definition, empty if none was declared.

    Raises:
        IllegalValueError: If the ``inject`` slot holds a malformed value
    """
    slot = _slot_names(definition)
    declared = _declared(definition)
    if declared:
        return declared
    return slot
