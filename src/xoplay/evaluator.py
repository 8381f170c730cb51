"""
Game-state evaluation: ongoing, won by X, won by O, or drawn.

Lines are scanned in the fixed LINES order and the first completed one is
reported. Two completed lines cannot arise in legal play; if they are fed in
anyway the earlier line wins.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence

from .board import EMPTY, LINES, Board, Cell, Line, line_winner, validate_board


@dataclass(frozen=True)
class GameVerdict:
    is_over: bool = False
    winner: Cell = None
    is_draw: bool = False
    winning_line: Optional[Line] = None

    def result_message(self) -> Optional[str]:
        if self.winner is not None:
            return f"{self.winner} wins!"
        if self.is_draw:
            return "It's a draw!"
        return None

    def status_text(self, current_mark: str, ai_thinking: bool = False) -> str:
        if self.winner is not None:
            return f"Winner: {self.winner}"
        if self.is_draw:
            return "Game ended in a draw!"
        if ai_thinking:
            return "AI is thinking..."
        return f"{current_mark}'s turn"


ONGOING = GameVerdict()


@lru_cache(maxsize=None)
def _evaluate_tuple(board_t: Board) -> GameVerdict:
    for line in LINES:
        w = line_winner(board_t, line)
        if w is not EMPTY:
            return GameVerdict(is_over=True, winner=w, is_draw=False, winning_line=line)
    if EMPTY not in board_t:
        return GameVerdict(is_over=True, winner=None, is_draw=True, winning_line=None)
    return ONGOING


def evaluate(board: Sequence[Cell]) -> GameVerdict:
    return _evaluate_tuple(validate_board(board))
