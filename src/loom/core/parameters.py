"""
Named application parameters, injectable as the ``$Params`` built-in.

Parameters must be registered before they can be set or read. Required
parameters that were never set make ``get`` fail, optional ones read as None.
"""

import logging
from typing import Any, Dict, Mapping

from loom.error.application_error import IllegalValueError, NotFoundError

logger = logging.getLogger(__name__)


class Parameters:
    """Registry and store of application parameters."""

    def __init__(self) -> None:
        self._known: Dict[str, bool] = {}
        self._values: Dict[str, Any] = {}

    def register(self, name: str, required: bool = False) -> None:
        """Declare a parameter; re-registering only tightens ``required``."""
        if not isinstance(name, str) or not name:
            raise IllegalValueError(f"Parameter name must be a non-empty string, got {name!r}")
        self._known[name] = self._known.get(name, False) or required

    def set(self, name: str, value: Any) -> None:
        """
        Raises:
            NotFoundError: If the parameter was never registered
        """
        if name not in self._known:
            raise NotFoundError(f"Parameter '{name}' was not registered")
        self._values[name] = value

    def get(self, name: str) -> Any:
        """
        Raises:
            NotFoundError: If the parameter is unknown, or required and unset
        """
        if name not in self._known:
            raise NotFoundError(f"Parameter '{name}' was not registered")
        if name not in self._values:
            if self._known[name]:
                raise NotFoundError(f"Required parameter '{name}' has no value")
            return None
        return self._values[name]

    def is_set(self, name: str) -> bool:
        return name in self._values

    def load(self, values: Mapping[str, Any]) -> None:
        """Register (as optional) and set every entry of a mapping."""
        for name, value in values.items():
            self.register(name)
            self.set(name, value)

    def missing_required(self) -> list:
        return [name for name, required in self._known.items() if required and name not in self._values]

    def validate(self) -> None:
        """
        Raises:
            NotFoundError: If any required parameter has no value
        """
        missing = self.missing_required()
        if missing:
            raise NotFoundError(f"Required parameters have no value: {', '.join(missing)}")
        logger.debug(f"All {len(self._known)} parameters valid")
