"""Runnable driver script to play a room locally, without a server.

Two fake connections are seated in one room.  Moves are entered as a cell
index (0-8) and are played by whoever's turn it is; 'again' starts a rematch
once the match is over and 'quit' exits.

"""

import sys
import os

# Add the repository root to the path so we can import the game modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from src.tictactoe.room import Room, RoomError


def display_room(room):
    """Display the current board and status."""
    state = room.snapshot()
    print("\n--- Board ---")
    for row in range(3):
        print(' '.join(cell or '.' for cell in state['board'][row * 3:row * 3 + 3]))
    print(f"Status: {state['status']}, outcome: {state['outcome']}, turn: {state['turn']}")
    if state['win_line']:
        print(f"Winning line: {state['win_line']}")
    print("-------------\n")


def main():
    """Main driver function."""
    print("=== Local Tic-Tac-Toe ===")

    room = Room('LOCAL')
    seats = {}
    for sid in ('player-1', 'player-2'):
        seats[room.add_player(sid)] = sid

    display_room(room)

    while True:
        user_input = input(f"{room.turn} to move (0-8, 'again' or 'quit'): ").strip().lower()

        if user_input == 'quit':
            break

        try:
            if user_input == 'again':
                room.request_rematch()
            elif user_input.isdigit():
                room.apply_move(seats[room.turn], int(user_input))
            else:
                print("Invalid input.")
                continue
        except RoomError as e:
            print(f"Error: {e.message}")
            continue

        display_room(room)


if __name__ == "__main__":
    main()
