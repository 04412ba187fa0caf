"""
Per-connection protocol logic.

A SessionHandler is bound to one connected client.  It tracks which room and
marker the connection currently owns, turns inbound protocol events into
registry and room operations, and broadcasts the resulting state.  Every
RoomError is caught here and reported to the requesting connection only.
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger
from .channel import Channel
from .room import Room, RoomError, RoomFull, RoomNotFound
from .room_registry import RoomRegistry, normalize_room_id


# Outbound event names
JOINED_ROOM = 'joined-room'
GAME_STATE = 'game-state'
REMATCH_STARTED = 'rematch-started'
ERROR = 'error'


@dataclass
class Session(object):
    """What a single connection currently holds."""
    sid: str
    room_id: Optional[str] = None
    marker: Optional[str] = None

    def clear(self):
        self.room_id = None
        self.marker = None


class SessionHandler(object):
    """Handles protocol events for one connection.

    Args:
        sid: Connection identifier
        registry: The process-wide room registry
        channel: Channel used to reach this and other connections
    """

    def __init__(self, sid: str, registry: RoomRegistry, channel: Channel):
        self.session = Session(sid)
        self.registry = registry
        self.channel = channel

    @property
    def sid(self) -> str:
        return self.session.sid

    def current_room(self) -> Optional[Room]:
        """Return the room this connection occupies, if it still exists."""
        if self.session.room_id is None:
            return None
        return self.registry.find_room(self.session.room_id)

    def quick_match(self):
        """Join any other room with a waiting player, or open a new one.

        The current room is only vacated once a seat elsewhere is secured, so
        a player never gets matched back into the room they are leaving.

        """
        room = self.registry.find_waiting_room(exclude=self.session.room_id)
        if room is not None:
            try:
                self._seat(room)
                return
            except (RoomFull, RoomNotFound):
                # Another connection claimed or emptied it first
                logger.debug(f"[{room.room_id}] Lost quick-match race for {self.sid}")
        self._seat(self.registry.create_room())

    def create_room(self):
        """Always open a new room and take the first seat."""
        self._seat(self.registry.create_room())

    def join_room_by_id(self, room_id):
        """Seat this connection in the room with the given code.

        On failure the connection stays in whatever room it was in.

        """
        normalized = normalize_room_id(room_id)
        if normalized is not None and normalized == self.session.room_id:
            room = self.current_room()
            if room is not None:
                self.channel.send(self.sid, JOINED_ROOM, {
                    'room_id': room.room_id,
                    'marker': self.session.marker,
                })
                self.channel.send(self.sid, GAME_STATE, room.snapshot())
                return

        try:
            room = self.registry.find_room(normalized)
            if room is None:
                raise RoomNotFound()
            self._seat(room)
        except RoomError as e:
            self._reject('join-room-by-id', e)

    def make_move(self, index):
        """Attempt a move as this connection's marker."""
        room = self.current_room()
        if room is None:
            return
        try:
            with room.lock:
                state = room.apply_move(self.sid, index)
                self.channel.broadcast(room.room_id, GAME_STATE, state)
        except RoomError as e:
            self._reject('make-move', e)
            return
        logger.debug(f"[{room.room_id}] {self.session.marker} played {index}")

    def play_again(self):
        """Reset the current room for a rematch."""
        room = self.current_room()
        if room is None:
            return
        try:
            with room.lock:
                state = room.request_rematch()
                self.channel.broadcast(room.room_id, REMATCH_STARTED)
                self.channel.broadcast(room.room_id, GAME_STATE, state)
        except RoomError as e:
            self._reject('play-again', e)
            return
        logger.info(f"[{room.room_id}] Rematch started, {state['turn']} opens")

    def leave_room(self):
        """Vacate the current room.  Does nothing if not in a room."""
        self._leave_current_room()

    def disconnect(self):
        """Clean up after the connection has gone away."""
        self._leave_current_room()

    def _seat(self, room: Room):
        # add_player raises before anything changes, so the previous room is
        # only vacated once the new seat is held.
        with room.lock:
            marker = room.add_player(self.sid)
        if self.session.room_id not in (None, room.room_id):
            self._leave_current_room()
        with room.lock:
            self.channel.join_group(self.sid, room.room_id)
            self.session.room_id = room.room_id
            self.session.marker = marker
            logger.info(f"[{room.room_id}] {self.sid} seated as {marker} "
                        f"({room.player_count}/2)")
            self.channel.send(self.sid, JOINED_ROOM, {
                'room_id': room.room_id,
                'marker': marker,
            })
            self.channel.broadcast(room.room_id, GAME_STATE, room.snapshot())

    def _leave_current_room(self):
        room_id = self.session.room_id
        if room_id is None:
            return
        room = self.registry.find_room(room_id)
        self.channel.leave_group(self.sid, room_id)
        if room is not None:
            logger.info(f"[{room_id}] {self.sid} ({self.session.marker}) leaving")
            with room.lock:
                destroyed = self.registry.release_player(room, self.sid)
                if not destroyed:
                    self.channel.broadcast(room_id, GAME_STATE, room.snapshot())
        self.session.clear()

    def _reject(self, event: str, error: RoomError):
        logger.debug(f"{self.sid} {event} rejected: {type(error).__name__}")
        self.channel.send(self.sid, ERROR, error.message)
