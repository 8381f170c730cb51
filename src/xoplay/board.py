"""
Board basics: representation, serialization, move application.

Teaching notes:
- A board is a tuple of 9 cells, row-major: "X", "O" or None for empty.
- Boards are never mutated; each move yields a fresh snapshot, which is what
  lets the session keep a replayable history.
- X always moves first, so X is to move whenever the counts are equal.
"""
from typing import List, Optional, Sequence, Tuple

from .errors import IllegalMoveError, InvalidBoardError

X = "X"
O = "O"
EMPTY = None
MARKS = (X, O)

Cell = Optional[str]
Board = Tuple[Cell, ...]
Line = Tuple[int, int, int]

BOARD_SIZE = 9

# Scan order matters: evaluate() reports the first completed line.
LINES: Tuple[Line, ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)

CENTER = 4
CORNERS = (0, 2, 6, 8)
EDGES = (1, 3, 5, 7)

_PARSE_MAP = {
    "X": X, "x": X, "1": X,
    "O": O, "o": O, "2": O,
    ".": EMPTY, "-": EMPTY, "_": EMPTY, "0": EMPTY, " ": EMPTY,
}


def empty_board() -> Board:
    return (EMPTY,) * BOARD_SIZE


def validate_board(board: Sequence[Cell]) -> Board:
    """Return ``board`` as a tuple, raising InvalidBoardError if malformed."""
    if len(board) != BOARD_SIZE:
        raise InvalidBoardError(f"Board must have {BOARD_SIZE} cells, got {len(board)}")
    for i, v in enumerate(board):
        if v is not EMPTY and v not in MARKS:
            raise InvalidBoardError(f"Invalid cell value at {i}: {v!r}")
    return tuple(board)


def empty_squares(board: Sequence[Cell]) -> List[int]:
    return [i for i, v in enumerate(board) if v is EMPTY]


def other_mark(mark: str) -> str:
    if mark not in MARKS:
        raise InvalidBoardError(f"Not a mark: {mark!r}")
    return O if mark == X else X


def next_mark(board: Sequence[Cell]) -> str:
    return X if board.count(X) == board.count(O) else O


def apply_move(board: Board, index: int, mark: str) -> Board:
    """Copy ``board`` with ``mark`` placed at ``index``."""
    if mark not in MARKS:
        raise IllegalMoveError(f"Not a mark: {mark!r}")
    if not 0 <= index < BOARD_SIZE:
        raise IllegalMoveError(f"Square {index} is off the board")
    if board[index] is not EMPTY:
        raise IllegalMoveError(f"Square {index} is already taken by {board[index]}")
    lst = list(board)
    lst[index] = mark
    return tuple(lst)


def line_winner(board: Sequence[Cell], line: Line) -> Cell:
    a, b, c = line
    v = board[a]
    if v is not EMPTY and v == board[b] and v == board[c]:
        return v
    return EMPTY


def is_reachable(board: Sequence[Cell]) -> bool:
    """True if the position can arise from legal alternating play, X first."""
    x_count, o_count = board.count(X), board.count(O)
    if not (x_count == o_count or x_count == o_count + 1):
        return False
    x_wins = any(line_winner(board, ln) == X for ln in LINES)
    o_wins = any(line_winner(board, ln) == O for ln in LINES)
    if x_wins and o_wins:
        return False
    if x_wins and x_count != o_count + 1:
        return False
    if o_wins and x_count != o_count:
        return False
    return True


def parse_board(text: str) -> Board:
    """Parse a 9-character board string, e.g. ``"X.O.X...."`` or ``"100020000"``."""
    raw = text.strip("\n")
    if len(raw) != BOARD_SIZE or any(c not in _PARSE_MAP for c in raw):
        raise InvalidBoardError(
            "Board must be 9 chars of X/O (or 1/2) and ./-/_/0 for empty squares"
        )
    return tuple(_PARSE_MAP[c] for c in raw)


def serialize_board(board: Sequence[Cell]) -> str:
    return "".join("." if v is EMPTY else v for v in board)


def format_board(board: Sequence[Cell]) -> str:
    """Render a 3x3 grid; empty squares show their index."""
    rows = []
    for r in range(3):
        cells = []
        for c in range(3):
            i = r * 3 + c
            cells.append(str(i) if board[i] is EMPTY else board[i])
        rows.append(" " + " | ".join(cells))
    return "\n---+---+---\n".join(rows)
