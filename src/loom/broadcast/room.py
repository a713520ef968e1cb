"""
Realtime rooms and their path patterns.

A room is registered under a path pattern such as ``/projects/:id/chat``.
Segments starting with ``:`` match any single segment and are captured as
parameters handed to ``Room.authorize``.
"""

from typing import Any, Dict, List, Optional, Tuple

from loom.core.registration_kind import RegistrationKind
from loom.core.registry import Registration, Registry


class Room:
    """Base class for realtime rooms; grants every user membership by default."""

    def authorize(self, user_id: Any, params: Dict[str, str]) -> bool:
        return True


def _segments(path: str) -> List[str]:
    return [segment for segment in path.strip("/").split("/") if segment]


def match_pattern(pattern: str, channel: str) -> Optional[Dict[str, str]]:
    """Parameters captured by pattern from channel, or None when it does not match."""
    expected = _segments(pattern)
    actual = _segments(channel)
    if len(expected) != len(actual):
        return None
    params: Dict[str, str] = {}
    for want, got in zip(expected, actual):
        if want.startswith(":"):
            params[want[1:]] = got
        elif want != got:
            return None
    return params


class RoomResolver:
    """Finds the registered room that owns a channel."""

    def __init__(self, registry: Registry):
        self._registry = registry

    def resolve(self, channel: str) -> Optional[Tuple[Registration, Dict[str, str]]]:
        """First matching room in registration order, with its captured parameters."""
        for registration in self._registry.registrations(RegistrationKind.ROOM):
            params = match_pattern(registration.key, channel)
            if params is not None:
                return registration, params
        return None
