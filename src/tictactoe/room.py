"""The authoritative state of a single tic-tac-toe match.

The model here is:
- A room has two seats, one per marker ('X' and 'O').
- A match is playable only while both seats are filled and the outcome is
  in progress.
- When a player leaves mid-game the remaining player keeps a frozen view of
  the board with the outcome set to opponent-left, until a new opponent
  joins (which starts a fresh match) or they leave too.
- A room that has been emptied is closed and can never be joined again; the
  registry drops it.

Every mutating method validates before it writes, so a rejected call leaves
the room exactly as it was.

"""
import threading
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .board import (MARKER_X, MARKER_O, BOARD_SIZE, empty_board, other_marker,
                    detect_win, detect_draw)


class RoomError(Exception):
    """Base class for rejected room operations.

    The message is human readable and is sent verbatim to the client that
    made the request.
    """
    message = "Room operation failed."

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RoomNotFound(RoomError):
    message = "Room not found."


class RoomFull(RoomError):
    message = "Room is full. Cannot join."


class NotYourTurn(RoomError):
    message = "Invalid move: not your turn."


class CellOccupied(RoomError):
    message = "Invalid move: cell already occupied."


class GameNotActive(RoomError):
    message = "Game is not active."


class NotEnoughPlayers(RoomError):
    message = "A rematch needs two players in the room."


class IndexOutOfRange(RoomError):
    message = "Invalid move: cell index must be between 0 and 8."


class Outcome(Enum):
    IN_PROGRESS = 'in-progress'
    X_WINS = 'X-wins'
    O_WINS = 'O-wins'
    DRAW = 'draw'
    OPPONENT_LEFT = 'opponent-left'


WIN_OUTCOMES = {MARKER_X: Outcome.X_WINS, MARKER_O: Outcome.O_WINS}


class Room(object):
    """One match between at most two connections.

    Parameters
    ----------
    room_id : str
        The (already normalized) room identifier

    """
    def __init__(self, room_id: str):
        self.room_id = room_id
        self.players: Dict[str, str] = {}  # sid -> marker
        self.board: List[Optional[str]] = empty_board()
        self.turn = MARKER_X
        self.starting_marker = MARKER_X
        self.outcome = Outcome.IN_PROGRESS
        self.win_line: Optional[Tuple[int, int, int]] = None
        self.last_move_index: Optional[int] = None
        self.started = False
        self.closed = False
        self.version = 0
        # Reentrant so callers can hold it across a mutation and the
        # broadcast that follows it.
        self.lock = threading.RLock()

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def awaiting_opponent(self) -> bool:
        return self.player_count < 2

    @property
    def status(self) -> str:
        """Coarse lifecycle state, as shown to clients."""
        if self.outcome == Outcome.OPPONENT_LEFT:
            return 'opponent-left'
        if self.player_count < 2:
            return 'waiting'
        if self.outcome == Outcome.IN_PROGRESS:
            return 'playing'
        return 'finished'

    @property
    def winner(self) -> Optional[str]:
        for marker, outcome in WIN_OUTCOMES.items():
            if self.outcome == outcome:
                return marker
        return None

    def marker_for(self, sid: str) -> Optional[str]:
        return self.players.get(sid)

    def player_for(self, marker: str) -> Optional[str]:
        """Return the sid holding the given marker, if any."""
        for sid, held in self.players.items():
            if held == marker:
                return sid
        return None

    def add_player(self, sid: str) -> str:
        """Seat a connection and return its marker.

        Raises RoomNotFound if the room has already been closed, and RoomFull
        if both seats are taken.  A connection that is already seated simply
        gets its marker back.

        """
        with self.lock:
            if self.closed:
                raise RoomNotFound()
            if sid in self.players:
                return self.players[sid]
            if self.player_count >= 2:
                raise RoomFull()

            marker = MARKER_X if self.player_for(MARKER_X) is None else MARKER_O
            self.players[sid] = marker

            if self.player_count == 2:
                if self.outcome == Outcome.OPPONENT_LEFT:
                    self._reset_board(MARKER_X)
                self.started = True
            self.version += 1
            return marker

    def apply_move(self, sid: str, index) -> dict:
        """Place the marker of `sid` at `index` and return the new snapshot.

        Raises GameNotActive, IndexOutOfRange, NotYourTurn or CellOccupied
        (checked in that order).  None of them modify the room.

        """
        with self.lock:
            if self.outcome != Outcome.IN_PROGRESS or self.player_count != 2:
                raise GameNotActive()
            if isinstance(index, bool) or not isinstance(index, int) \
                    or not 0 <= index < BOARD_SIZE:
                raise IndexOutOfRange()
            marker = self.players.get(sid)
            if marker is None or marker != self.turn:
                raise NotYourTurn()
            if self.board[index] is not None:
                raise CellOccupied()

            self.board[index] = marker
            self.last_move_index = index

            win = detect_win(self.board)
            if win is not None:
                self.outcome = WIN_OUTCOMES[win.marker]
                self.win_line = win.line
            elif detect_draw(self.board):
                self.outcome = Outcome.DRAW
            else:
                self.turn = other_marker(marker)
            self.version += 1
            return self.snapshot()

    def request_rematch(self) -> dict:
        """Reset the board for another match between the same two players.

        The opening move goes to the marker that did not open the previous
        match, whatever the previous result was.  Raises NotEnoughPlayers
        unless both seats are filled.

        """
        with self.lock:
            if self.player_count != 2:
                raise NotEnoughPlayers()
            self._reset_board(other_marker(self.starting_marker))
            self.version += 1
            return self.snapshot()

    def remove_player(self, sid: str) -> bool:
        """Vacate the seat held by `sid`.

        Returns True if the room is now empty, in which case it is closed and
        should be dropped from the registry.

        """
        with self.lock:
            if sid not in self.players:
                return self.player_count == 0
            del self.players[sid]
            if self.player_count == 0:
                self.closed = True
            else:
                self.outcome = Outcome.OPPONENT_LEFT
                self.started = False
            self.version += 1
            return self.closed

    def snapshot(self) -> dict:
        """Return the full JSON-serializable state broadcast to clients."""
        with self.lock:
            return {
                'room_id': self.room_id,
                'board': list(self.board),
                'turn': self.turn,
                'outcome': self.outcome.value,
                'winner': self.winner,
                'win_line': list(self.win_line) if self.win_line else None,
                'status': self.status,
                'started': self.started,
                'player_count': self.player_count,
                'awaiting_opponent': self.awaiting_opponent,
                'player_x_id': self.player_for(MARKER_X),
                'player_o_id': self.player_for(MARKER_O),
                'last_move_index': self.last_move_index,
                'version': self.version,
            }

    def _reset_board(self, opener: str):
        self.board = empty_board()
        self.outcome = Outcome.IN_PROGRESS
        self.win_line = None
        self.last_move_index = None
        self.turn = opener
        self.starting_marker = opener

    def __repr__(self):
        return (f"Room({self.room_id!r}, players={self.player_count}, "
                f"outcome={self.outcome.value!r})")
