"""
WebSocket event handlers for real-time game communication.

This module binds the Socket.IO events of the tic-tac-toe protocol to a
SessionHandler per connection.  The sid -> SessionHandler mapping is looked
up explicitly on every event.
"""

from functools import wraps
from typing import Dict

from flask import request
from flask_socketio import SocketIO, emit
from loguru import logger
from .channel import SocketIOChannel
from .room_registry import RoomRegistry
from .session import SessionHandler, ERROR


def _payload_value(data, key):
    """Accept either a bare value or a {key: value} object."""
    if isinstance(data, dict):
        return data.get(key)
    return data


def init_socketio_handlers(socketio: SocketIO, registry: RoomRegistry) -> Dict[str, SessionHandler]:
    """Initialize WebSocket event handlers.

    Returns the live sid -> SessionHandler mapping.
    """
    channel = SocketIOChannel(socketio)
    sessions: Dict[str, SessionHandler] = {}

    def session_event(name):
        """Register `f(handler, data)` for an event, shielding other clients from failures."""
        def decorator(f):
            @wraps(f)
            def wrapped(data=None):
                # Sessions only exist between connect and disconnect
                handler = sessions.get(request.sid)
                if handler is None:
                    logger.debug(f"Ignoring '{name}' from unknown connection {request.sid}")
                    return
                try:
                    f(handler, data)
                except Exception:
                    logger.exception(f"Unhandled error in '{name}' from {request.sid}")
                    emit(ERROR, 'Internal server error.')
            socketio.on_event(name, wrapped)
            return wrapped
        return decorator

    @socketio.on('connect')
    def handle_connect(auth=None):
        """Handle WebSocket connection."""
        sessions[request.sid] = SessionHandler(request.sid, registry, channel)
        logger.info(f"User connected: {request.sid} ({len(sessions)} connected)")

    @socketio.on('disconnect')
    def handle_disconnect(reason=None):
        """Handle WebSocket disconnection; same cleanup as leaving the room."""
        logger.info(f"User disconnected: {request.sid}")
        handler = sessions.pop(request.sid, None)
        if handler is None:
            return
        try:
            handler.disconnect()
        except Exception:
            logger.exception(f"Cleanup failed for {request.sid}")

    @session_event('quick-match')
    def handle_quick_match(handler, data):
        handler.quick_match()

    @session_event('create-room')
    def handle_create_room(handler, data):
        handler.create_room()

    @session_event('join-room-by-id')
    def handle_join_room_by_id(handler, data):
        handler.join_room_by_id(_payload_value(data, 'room_id'))

    @session_event('make-move')
    def handle_make_move(handler, data):
        handler.make_move(_payload_value(data, 'index'))

    @session_event('play-again')
    def handle_play_again(handler, data):
        handler.play_again()

    @session_event('leave-room')
    def handle_leave_room(handler, data):
        handler.leave_room()

    return sessions
