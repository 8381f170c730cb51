"""
Tactics and simple motifs: immediate wins, blocks, forks.
Teaching notes:
- These one-ply checks are what a human looks for first; the CLI uses them
  to give hints without running a full search.
"""
from typing import List, Sequence

from .board import EMPTY, Cell, apply_move, other_mark
from .evaluator import evaluate


def immediate_winning_moves(board: Sequence[Cell], mark: str) -> List[int]:
    b = tuple(board)
    wins: List[int] = []
    for i, v in enumerate(b):
        if v is not EMPTY:
            continue
        if evaluate(apply_move(b, i, mark)).winner == mark:
            wins.append(i)
    return wins


def blocking_moves(board: Sequence[Cell], mark: str) -> List[int]:
    return immediate_winning_moves(board, other_mark(mark))


def fork_moves(board: Sequence[Cell], mark: str) -> List[int]:
    b = tuple(board)
    forks: List[int] = []
    for i, v in enumerate(b):
        if v is not EMPTY:
            continue
        if len(immediate_winning_moves(apply_move(b, i, mark), mark)) >= 2:
            forks.append(i)
    return forks


def gives_opponent_immediate_win(board: Sequence[Cell], mark: str, move: int) -> bool:
    if board[move] is not EMPTY:
        return False
    child = apply_move(tuple(board), move, mark)
    return len(immediate_winning_moves(child, other_mark(mark))) > 0
