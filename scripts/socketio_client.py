#!/usr/bin/env python3
"""
Socket.IO console client for the tic-tac-toe game server.

This client connects to the Flask-SocketIO server and allows interactive
gameplay from the command line.

Usage:
    python socketio_client.py http://localhost:5000

Commands:
    quick - Quick match (join a waiting player or open a room)
    create - Create a new room and share its code
    join <room_id> - Join a room by code
    <0-8> - Play a cell (cells are numbered row by row)
    again - Ask for a rematch
    leave - Leave the current room
    exit - Exit the program
"""

import sys
import socketio
from typing import Optional, Dict, Any


class TicTacToeSocketIOClient:
    """Socket.IO client for the tic-tac-toe game server."""

    def __init__(self, server_url: str):
        self.server_url = server_url.rstrip('/')
        self.sio = socketio.Client()
        self.room_id: Optional[str] = None
        self.marker: Optional[str] = None
        self.last_version = -1
        self.setup_socketio_handlers()

    def setup_socketio_handlers(self):
        """Set up Socket.IO event handlers."""

        @self.sio.on('joined-room')
        def on_joined_room(data):
            self.room_id = data['room_id']
            self.marker = data['marker']
            self.last_version = -1
            print(f"\n✓ Joined room {self.room_id} as {self.marker}")

        @self.sio.on('game-state')
        def on_game_state(data):
            # Drop out-of-date states
            if data.get('room_id') != self.room_id or data.get('version', 0) < self.last_version:
                return
            self.last_version = data.get('version', 0)
            self.display_game_state(data)

        @self.sio.on('rematch-started')
        def on_rematch_started(*args):
            print("\n🔁 Rematch started")

        @self.sio.on('error')
        def on_error(message):
            print(f"\n❌ Server error: {message}")

        @self.sio.on('connect')
        def on_connect():
            print("🔌 Socket.IO connected")

        @self.sio.on('disconnect')
        def on_disconnect(*args):
            print("🔌 Socket.IO disconnected")

    def display_game_state(self, state: Dict[str, Any]):
        """Print the board and a one-line status."""
        board = state['board']
        print()
        for row in range(3):
            cells = [board[row * 3 + col] or str(row * 3 + col) for col in range(3)]
            print(' ' + ' | '.join(cells))
            if row < 2:
                print('---+---+---')

        status = state['status']
        if status == 'waiting':
            print(f"Waiting for an opponent... share code {state['room_id']}")
        elif status == 'opponent-left':
            print("Your opponent left the room.")
        elif status == 'playing':
            whose = "your" if state['turn'] == self.marker else "opponent's"
            print(f"It is {whose} turn ({state['turn']})")
        elif state['winner']:
            result = "You win!" if state['winner'] == self.marker else "You lose."
            print(f"{result} Line: {state['win_line']}. Type 'again' for a rematch.")
        else:
            print("It's a draw! Type 'again' for a rematch.")

    def connect_socketio(self) -> bool:
        """Connect to the Socket.IO server."""
        try:
            self.sio.connect(self.server_url)
            return True
        except Exception as e:
            print(f"✗ Socket.IO connection failed: {e}")
            return False

    def disconnect_socketio(self):
        """Disconnect from Socket.IO server."""
        if self.sio.connected:
            self.sio.disconnect()

    def handle_command(self, command: str) -> bool:
        """Handle one command line.  Returns False when the user wants to exit."""
        parts = command.split()
        cmd = parts[0].lower()

        if cmd == 'exit':
            return False
        elif cmd == 'quick':
            self.sio.emit('quick-match')
        elif cmd == 'create':
            self.sio.emit('create-room')
        elif cmd == 'join':
            if len(parts) != 2:
                print("Usage: join <room_id>")
            else:
                self.sio.emit('join-room-by-id', parts[1])
        elif cmd.isdigit():
            self.sio.emit('make-move', int(cmd))
        elif cmd == 'again':
            self.sio.emit('play-again')
        elif cmd == 'leave':
            self.sio.emit('leave-room')
            self.room_id = None
            self.marker = None
            print("📴 Left room")
        else:
            print("Unknown command. Available: quick, create, join <room_id>, 0-8, again, leave, exit")
        return True


def main():
    """Main function."""
    if len(sys.argv) != 2:
        print("Usage: python socketio_client.py SERVER_URL")
        print("Example: python socketio_client.py http://localhost:5000")
        sys.exit(1)

    server_url = sys.argv[1]
    client = TicTacToeSocketIOClient(server_url)

    print(f"Connecting to server at {server_url}")
    if not client.connect_socketio():
        sys.exit(1)

    print("\nAvailable commands:")
    print("  quick - Quick match")
    print("  create - Create a new room")
    print("  join <room_id> - Join a room by code")
    print("  0-8 - Play a cell")
    print("  again - Rematch")
    print("  leave - Leave the room")
    print("  exit - Exit the program")

    try:
        while True:
            command = input().strip()
            if not command:
                continue
            if not client.handle_command(command):
                print("Goodbye!")
                break
    except (KeyboardInterrupt, EOFError):
        print("\n👋 Exiting...")
    finally:
        client.disconnect_socketio()


if __name__ == "__main__":
    main()
