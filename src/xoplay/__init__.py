"""xoplay package.

Tic-tac-toe game core: board evaluation, an AI opponent with three
difficulty tiers, a session controller with move history and scores, and a
small CLI.

Convenience imports are exposed for common workflows.
"""

from .ai import Difficulty, select_move
from .board import Board, empty_board, parse_board
from .evaluator import GameVerdict, evaluate
from .session import GameSession, Scores

__all__ = [
    "Board",
    "Difficulty",
    "GameSession",
    "GameVerdict",
    "Scores",
    "empty_board",
    "evaluate",
    "parse_board",
    "select_move",
]
