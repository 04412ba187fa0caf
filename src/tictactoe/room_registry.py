import random
import string
import threading
from typing import Callable, Dict, List, Optional

from loguru import logger
from .room import Room


ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_ROOM_ID_LENGTH = 5


def random_room_id(length: int = DEFAULT_ROOM_ID_LENGTH) -> str:
    """Return a random uppercase alphanumeric room code."""
    return ''.join(random.choices(ROOM_ID_ALPHABET, k=length))


def normalize_room_id(room_id) -> Optional[str]:
    """Uppercase and strip a client-supplied room id.  Non-strings give None."""
    if not isinstance(room_id, str):
        return None
    return room_id.strip().upper()


class RoomRegistry(object):
    """Represents the set of live rooms in this process.

    The model here is:
    - Each room has a short code that is unique among the live rooms.  Codes
      are recycled once a room is destroyed.
    - A room is destroyed as soon as its last player leaves.
    - The set of room codes is guarded by a single lock; each room guards its
      own state with its own lock.

    """
    def __init__(self, id_generator: Optional[Callable[[], str]] = None):
        """Initialize the registry with no rooms.

        `id_generator` produces candidate codes; it defaults to random
        5-character codes.

        """
        self.rooms: Dict[str, Room] = {}  # room_id -> Room
        self.id_generator = id_generator or random_room_id
        self._lock = threading.Lock()

    def create_room(self) -> Room:
        """Create an empty room with a fresh code and return it.

        The caller is responsible for seating the creator.

        """
        with self._lock:
            room_id = normalize_room_id(self.id_generator())
            while room_id in self.rooms:
                room_id = normalize_room_id(self.id_generator())
            room = Room(room_id)
            self.rooms[room_id] = room
        logger.info(f"[{room_id}] Room created ({len(self.rooms)} live)")
        return room

    def find_room(self, room_id) -> Optional[Room]:
        """Look up a room by code, case-insensitively."""
        room_id = normalize_room_id(room_id)
        if not room_id:
            return None
        with self._lock:
            return self.rooms.get(room_id)

    def find_waiting_room(self, exclude: Optional[str] = None) -> Optional[Room]:
        """Return some room with exactly one player waiting for an opponent.

        The room with code `exclude`, if given, is never returned.  Which room
        is returned when several qualify is unspecified.

        """
        with self._lock:
            for room_id, room in self.rooms.items():
                if room_id == exclude:
                    continue
                if room.player_count == 1 and room.awaiting_opponent and not room.closed:
                    return room
        return None

    def destroy_room(self, room_id: str):
        """Remove the given room.  Does nothing if it is already gone."""
        with self._lock:
            room = self.rooms.pop(room_id, None)
        if room is not None:
            logger.info(f"[{room_id}] Room destroyed ({len(self.rooms)} live)")

    def release_player(self, room: Room, sid: str) -> bool:
        """Remove a player from a room, destroying the room if it empties.

        Returns True if the room was destroyed.

        """
        empty = room.remove_player(sid)
        if empty:
            self.destroy_room(room.room_id)
        return empty

    def list_room_ids(self) -> List[str]:
        """Lists current room codes."""
        with self._lock:
            return list(self.rooms.keys())

    def count_waiting_rooms(self) -> int:
        with self._lock:
            return sum(1 for room in self.rooms.values() if room.player_count == 1)

    def __len__(self):
        return len(self.rooms)

    def __contains__(self, room_id):
        return normalize_room_id(room_id) in self.rooms
