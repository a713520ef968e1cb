from abc import ABC, abstractmethod

from flask import Flask


class Routes(ABC):
    """
    Base class for free-form route definitions.

    Unlike a Resource, a Routes definition decides its own URL rules. It
    receives the hosting Flask application once during full start.
    """

    @abstractmethod
    def mount(self, app: Flask) -> None:
        """Register URL rules on the hosting application."""
        pass
