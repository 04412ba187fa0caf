"""Contains the pure board logic for tic-tac-toe: win and draw detection.

The board is a sequence of 9 cells in row-major order.  Each cell is either
None (empty) or one of the two markers.  The room state machine lives in
room.py.

"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple


MARKER_X = 'X'
MARKER_O = 'O'
MARKERS = (MARKER_X, MARKER_O)

BOARD_SIZE = 9

# Rows, then columns, then diagonals
WIN_LINES = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


@dataclass(frozen=True)
class WinResult(object):
    """Dataclass describing a completed line.

    Attributes
    ----------
    marker : str
        The marker occupying all three cells of the line
    line : Tuple[int, int, int]
        The board indices forming the line

    """
    marker: str
    line: Tuple[int, int, int]


def empty_board() -> List[Optional[str]]:
    """Return a fresh board with all 9 cells empty."""
    return [None] * BOARD_SIZE


def other_marker(marker: str) -> str:
    """Return the opposing marker."""
    return MARKER_O if marker == MARKER_X else MARKER_X


def detect_win(board: Sequence[Optional[str]]) -> Optional[WinResult]:
    """Look for a completed line on the board.

    Lines are checked in the fixed order of WIN_LINES and the first complete
    one is returned.  A legal move sequence can never produce two winners, so
    no attempt is made to report more than one line.

    Parameters
    ----------
    board : Sequence[Optional[str]]
        9 cells, each None or a marker

    Returns
    -------
    Optional[WinResult]
        The winning marker and line, or None if no line is complete

    """
    for a, b, c in WIN_LINES:
        if board[a] is not None and board[a] == board[b] == board[c]:
            return WinResult(marker=board[a], line=(a, b, c))
    return None


def detect_draw(board: Sequence[Optional[str]]) -> bool:
    """True iff the board is full and nobody has a line."""
    return detect_win(board) is None and all(cell is not None for cell in board)
