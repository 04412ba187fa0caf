"""
Tests for the Socket.IO protocol, driven through Flask-SocketIO test clients.
"""

import pytest
from src.tictactoe.app import create_app


@pytest.fixture
def app():
    """Create a test Flask application."""
    app, socketio = create_app({'TESTING': True})
    app.socketio = socketio  # Store socketio instance for testing
    return app


@pytest.fixture
def connect(app):
    """Factory for connected Socket.IO test clients."""
    clients = []

    def factory():
        client = app.socketio.test_client(app)
        assert client.is_connected()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        if client.is_connected():
            client.disconnect()


def received(client, name=None):
    """Return (name, args) for everything received, optionally filtered by name."""
    return [(msg['name'], msg['args']) for msg in client.get_received()
            if name is None or msg['name'] == name]


def last_state(messages):
    states = [args[0] for name, args in messages if name == 'game-state']
    return states[-1]


@pytest.fixture
def pair(connect):
    """Two clients playing in the same room; returns (x_client, o_client, room_id)."""
    client_x = connect()
    client_o = connect()
    client_x.emit('create-room')
    room_id = received(client_x, 'joined-room')[0][1][0]['room_id']
    client_o.emit('join-room-by-id', room_id.lower())
    client_x.get_received()
    client_o.get_received()
    return client_x, client_o, room_id


class TestRoomLifecycle:
    """Test cases for creating, joining and matching rooms."""

    def test_create_room(self, connect):
        """Test that creating a room returns the code, marker X and a waiting state."""
        client = connect()
        client.emit('create-room')
        messages = received(client)

        name, args = messages[0]
        assert name == 'joined-room'
        assert args[0]['marker'] == 'X'
        assert len(args[0]['room_id']) == 5
        state = last_state(messages)
        assert state['room_id'] == args[0]['room_id']
        assert state['player_count'] == 1
        assert state['awaiting_opponent'] is True

    def test_join_by_id(self, connect):
        """Test that joining by code seats the client as O and starts the match."""
        client_x = connect()
        client_o = connect()
        client_x.emit('create-room')
        room_id = received(client_x, 'joined-room')[0][1][0]['room_id']

        client_o.emit('join-room-by-id', {'room_id': room_id})
        joined = received(client_o, 'joined-room')
        assert joined == [('joined-room', [{'room_id': room_id, 'marker': 'O'}])]

        state = last_state(received(client_x))
        assert state['started'] is True
        assert state['player_count'] == 2

    def test_join_unknown_room(self, connect):
        """Test that an unknown code gives a room-not-found error."""
        client = connect()
        client.emit('join-room-by-id', 'ZZZZZ')
        assert received(client) == [('error', ['Room not found.'])]

    def test_room_full(self, pair, connect):
        """Test that a third client gets room-full and the players hear nothing."""
        client_x, client_o, room_id = pair
        client_c = connect()
        client_c.emit('join-room-by-id', room_id)
        assert received(client_c) == [('error', ['Room is full. Cannot join.'])]
        assert received(client_x) == []
        assert received(client_o) == []

    def test_quick_match_pairs_two_clients(self, connect):
        """Test that two quick-matching clients end up in the same room."""
        client_a = connect()
        client_b = connect()
        client_a.emit('quick-match')
        client_b.emit('quick-match')

        room_a = received(client_a, 'joined-room')[0][1][0]
        room_b = received(client_b, 'joined-room')[0][1][0]
        assert room_a['room_id'] == room_b['room_id']
        assert {room_a['marker'], room_b['marker']} == {'X', 'O'}


class TestGameplay:
    """Test cases for moves and rematches."""

    def test_x_wins(self, pair):
        """Test that both clients see the same X win."""
        client_x, client_o, room_id = pair
        for client, index in [(client_x, 0), (client_o, 3), (client_x, 1),
                              (client_o, 4), (client_x, 2)]:
            client.emit('make-move', index)

        state_x = last_state(received(client_x))
        state_o = last_state(received(client_o))
        assert state_x == state_o
        assert state_x['outcome'] == 'X-wins'
        assert state_x['win_line'] == [0, 1, 2]

    def test_move_as_object_payload(self, pair):
        """Test that a move can be sent as an object with an index."""
        client_x, client_o, room_id = pair
        client_x.emit('make-move', {'index': 8})
        assert last_state(received(client_o))['board'][8] == 'X'

    def test_invalid_move_only_reaches_mover(self, pair):
        """Test that an invalid move error reaches only the mover."""
        client_x, client_o, room_id = pair
        client_o.emit('make-move', 0)
        assert received(client_o) == [('error', ['Invalid move: not your turn.'])]
        assert received(client_x) == []

    def test_rematch(self, pair):
        """Test that a rematch sends rematch-started then a reset state to both."""
        client_x, client_o, room_id = pair
        for client, index in [(client_x, 0), (client_o, 3), (client_x, 1),
                              (client_o, 4), (client_x, 2)]:
            client.emit('make-move', index)
        client_x.get_received()
        client_o.get_received()

        client_o.emit('play-again')
        for client in (client_x, client_o):
            messages = received(client)
            assert [name for name, _ in messages] == ['rematch-started', 'game-state']
            state = last_state(messages)
            assert state['board'] == [None] * 9
            assert state['turn'] == 'O'


class TestDeparture:
    """Test cases for leaving and disconnecting."""

    def test_leave_room_notifies_opponent(self, pair):
        """Test that leaving notifies the opponent with a frozen board."""
        client_x, client_o, room_id = pair
        client_x.emit('make-move', 4)
        client_x.get_received()
        client_o.get_received()

        client_o.emit('leave-room')
        assert received(client_o) == []
        state = last_state(received(client_x))
        assert state['outcome'] == 'opponent-left'
        assert state['player_count'] == 1
        assert state['awaiting_opponent'] is True
        assert state['board'][4] == 'X'

    def test_disconnect_notifies_opponent(self, pair):
        """Test that a disconnect is handled like leaving."""
        client_x, client_o, room_id = pair
        client_x.disconnect()
        state = last_state(received(client_o))
        assert state['outcome'] == 'opponent-left'
        assert state['player_x_id'] is None

    def test_empty_room_is_destroyed(self, app, pair):
        """Test that a room is destroyed once both players are gone."""
        client_x, client_o, room_id = pair
        registry = app.extensions['tictactoe']['registry']
        client_x.disconnect()
        client_o.emit('leave-room')
        assert registry.find_room(room_id) is None

    def test_disconnect_drops_session(self, app, connect):
        """Test that a disconnect removes the connection's session."""
        client = connect()
        sessions = app.extensions['tictactoe']['sessions']
        assert len(sessions) == 1
        client.disconnect()
        assert len(sessions) == 0

    def test_commands_without_room_are_silent(self, connect):
        """Test that room commands outside a room produce no output."""
        client = connect()
        client.emit('make-move', 0)
        client.emit('play-again')
        client.emit('leave-room')
        assert received(client) == []

    def test_events_from_unknown_connection_are_ignored(self, app, connect):
        """Test that an event from a connection without a session creates nothing."""
        client = connect()
        sessions = app.extensions['tictactoe']['sessions']
        sessions.clear()

        client.emit('create-room')

        assert received(client) == []
        assert sessions == {}
        assert len(app.extensions['tictactoe']['registry']) == 0
