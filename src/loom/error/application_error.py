"""
Error taxonomy for the loom framework.

Every error raised by registration, declaration and resolution derives from
ApplicationError. Each subclass carries an HTTP-style status code so that
web handlers can translate errors into responses without a lookup table.
"""

from typing import Dict, Type


class ApplicationError(Exception):
    """Base class for all framework errors."""

    code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IllegalValueError(ApplicationError):
    """Malformed registration/declaration input or dependency list."""

    code = 400


class AccessError(ApplicationError):
    """Caller is not allowed to perform the operation."""

    code = 403


class NotFoundError(ApplicationError):
    """Unresolvable dependency name, unknown parameter or empty declaration."""

    code = 404


class DuplicateEntryError(ApplicationError):
    """Key collision within a registration kind."""

    code = 409


class CircularDependencyError(ApplicationError):
    """Cycle detected among module dependencies during resolution."""

    code = 500


class NotImplementedYetError(ApplicationError):
    """Endpoint exists but has no handler."""

    code = 501


class ReadinessTimeoutError(ApplicationError):
    """A module did not signal readiness within the configured bound."""

    code = 504


class ErrorKinds:
    """
    Injectable set of error kinds.

    Exposed to user modules under the ``$E`` built-in name so they can raise
    framework errors without importing this module.
    """

    ApplicationError = ApplicationError
    IllegalValue = IllegalValueError
    Access = AccessError
    NotFound = NotFoundError
    DuplicateEntry = DuplicateEntryError
    CircularDependency = CircularDependencyError
    NotImplemented = NotImplementedYetError
    Timeout = ReadinessTimeoutError

    @classmethod
    def as_dict(cls) -> Dict[str, Type[ApplicationError]]:
        return {
            name: value
            for name, value in vars(cls).items()
            if isinstance(value, type) and issubclass(value, ApplicationError)
        }
