"""
Realtime broadcast facility injectable as the ``$Broadcast`` built-in.

Delivers events to listeners subscribed to channels of registered rooms,
within the current process. Transport to remote clients is left to the
listeners themselves.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple

from loom.broadcast.room import RoomResolver
from loom.error.application_error import AccessError, NotFoundError

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


class Broadcast:
    """In-process fan-out of room events."""

    def __init__(self, rooms: RoomResolver):
        self._rooms = rooms
        self._listeners: Dict[str, List[Tuple[Any, Listener]]] = defaultdict(list)

    def subscribe(self, channel: str, user_id: Any, listener: Listener) -> None:
        """
        Join a channel.

        Raises:
            NotFoundError: If no registered room owns the channel
            AccessError: If the room refuses the user
        """
        registration, params = self._owning_room(channel)
        room = registration.factory()
        if not room.authorize(user_id, params):
            raise AccessError(f"User {user_id!r} may not join channel '{channel}'")
        self._listeners[channel].append((user_id, listener))
        logger.debug(f"User {user_id!r} joined channel '{channel}'")

    def unsubscribe(self, channel: str, user_id: Any) -> None:
        self._listeners[channel] = [
            (member, listener) for member, listener in self._listeners[channel] if member != user_id
        ]

    def members(self, channel: str) -> List[Any]:
        return [member for member, _ in self._listeners.get(channel, [])]

    def emit(self, channel: str, event: str, payload: Any = None) -> int:
        """
        Deliver an event to every listener of a channel.

        Returns:
            Number of listeners the event was delivered to

        Raises:
            NotFoundError: If no registered room owns the channel
        """
        self._owning_room(channel)
        listeners = list(self._listeners.get(channel, []))
        for _, listener in listeners:
            listener(event, payload)
        logger.debug(f"Emitted '{event}' on '{channel}' to {len(listeners)} listener(s)")
        return len(listeners)

    def _owning_room(self, channel: str):
        resolved = self._rooms.resolve(channel)
        if resolved is None:
            raise NotFoundError(f"No room registered for channel '{channel}'")
        return resolved
