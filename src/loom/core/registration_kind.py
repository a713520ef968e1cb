from enum import Enum


class RegistrationKind(str, Enum):
    """The four independent registration namespaces."""

    MODULE = "module"
    RESOURCE = "resource"
    ROUTE = "route"
    ROOM = "room"
