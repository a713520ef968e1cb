from .application_error import (
    AccessError,
    ApplicationError,
    CircularDependencyError,
    DuplicateEntryError,
    ErrorKinds,
    IllegalValueError,
    NotFoundError,
    NotImplementedYetError,
    ReadinessTimeoutError,
)

__all__ = [
    "ApplicationError",
    "IllegalValueError",
    "AccessError",
    "NotFoundError",
    "DuplicateEntryError",
    "CircularDependencyError",
    "NotImplementedYetError",
    "ReadinessTimeoutError",
    "ErrorKinds",
]
