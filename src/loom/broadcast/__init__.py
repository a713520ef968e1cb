from .broadcast import Broadcast
from .room import Room, RoomResolver, match_pattern

__all__ = ["Broadcast", "Room", "RoomResolver", "match_pattern"]
