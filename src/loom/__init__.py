"""loom: dependency-injected application framework."""

from loom.application import Application
from loom.broadcast.room import Room
from loom.config.application_config import LoomConfig
from loom.core.registration_kind import RegistrationKind
from loom.decorator.inject_decorator import declare_dependencies, get_dependencies, inject
from loom.web.resource import Resource
from loom.web.routes import Routes

__all__ = [
    "Application",
    "LoomConfig",
    "RegistrationKind",
    "Resource",
    "Routes",
    "Room",
    "inject",
    "declare_dependencies",
    "get_dependencies",
]
