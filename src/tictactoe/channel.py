"""
Message channel used by the session layer to talk to connected clients.

The session handlers never touch Socket.IO directly; they go through a
Channel, which can send to a single connection, broadcast to a named group
and move connections in and out of groups.  SocketIOChannel is the
production implementation.
"""

from flask_socketio import SocketIO


class Channel(object):
    """Abstract connection channel."""

    def send(self, sid: str, event: str, payload=None):
        """Send an event to a single connection."""
        raise NotImplementedError

    def broadcast(self, group: str, event: str, payload=None):
        """Send an event to every connection in a group."""
        raise NotImplementedError

    def join_group(self, sid: str, group: str):
        raise NotImplementedError

    def leave_group(self, sid: str, group: str):
        raise NotImplementedError


class SocketIOChannel(Channel):
    """Channel backed by a Flask-SocketIO server.

    Groups map onto Socket.IO rooms in the given namespace.

    Args:
        socketio: The Flask-SocketIO instance
        namespace: Socket.IO namespace the game runs on
    """

    def __init__(self, socketio: SocketIO, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, sid, event, payload=None):
        self._emit(event, payload, sid)

    def broadcast(self, group, event, payload=None):
        self._emit(event, payload, group)

    def join_group(self, sid, group):
        self.socketio.server.enter_room(sid, group, namespace=self.namespace)

    def leave_group(self, sid, group):
        self.socketio.server.leave_room(sid, group, namespace=self.namespace)

    def _emit(self, event, payload, to):
        if payload is None:
            self.socketio.emit(event, to=to, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=to, namespace=self.namespace)
