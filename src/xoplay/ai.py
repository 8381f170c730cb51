"""
AI move selection: random, blended, and minimax with alpha-beta pruning.

Scoring is from the AI's point of view, measured in plies from the root:
- AI win: 10 - depth (quicker wins score higher)
- Opponent win: depth - 10 (slower losses score higher)
- Draw or depth limit reached: 0

Moves are searched in index order and only a strictly better score replaces
the running best, so ties go to the lowest index.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence

import numpy as np

from .board import (
    CENTER,
    CORNERS,
    EMPTY,
    Board,
    Cell,
    apply_move,
    empty_squares,
    other_mark,
    validate_board,
)
from .evaluator import evaluate

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# Tuning knobs; values follow the shipped game's feel.
MEDIUM_RANDOM_PROBABILITY = 0.3
DEFAULT_MAX_DEPTH = 6
ENDGAME_MAX_DEPTH = 9
ENDGAME_EMPTY_THRESHOLD = 5
WIN_SCORE = 10

# With this many empty squares at the root the search is skipped in favour
# of the first free square in ROOT_PRIORITY_MOVES.
ROOT_PRIORITY_MIN_EMPTY = 7
ROOT_PRIORITY_MOVES = (CENTER, 0, 2, 6, 8)


@dataclass(frozen=True)
class SearchResult:
    score: int
    move: Optional[int] = None


def random_move(board: Sequence[Cell], rng: np.random.Generator) -> Optional[int]:
    moves = empty_squares(board)
    if not moves:
        return None
    return int(rng.choice(moves))


def minimax(
    board: Board,
    to_move: str,
    ai_mark: str,
    depth: int = 0,
    alpha: float = -math.inf,
    beta: float = math.inf,
    max_depth: int = DEFAULT_MAX_DEPTH,
    stats: Optional[Dict[str, int]] = None,
) -> SearchResult:
    """Depth-limited minimax with alpha-beta pruning.

    ``to_move`` places the next mark; the node maximises when it is ``ai_mark``.
    """
    if stats is not None:
        stats["nodes"] = stats.get("nodes", 0) + 1
    verdict = evaluate(board)
    if verdict.is_over or depth >= max_depth:
        if verdict.winner == ai_mark:
            return SearchResult(WIN_SCORE - depth)
        if verdict.winner is not None:
            return SearchResult(depth - WIN_SCORE)
        return SearchResult(0)

    moves = empty_squares(board)
    if not moves:
        return SearchResult(0)

    maximizing = to_move == ai_mark
    best_score = -math.inf if maximizing else math.inf
    best_move: Optional[int] = None
    for mv in moves:
        child = apply_move(board, mv, to_move)
        score = minimax(
            child, other_mark(to_move), ai_mark, depth + 1, alpha, beta, max_depth, stats
        ).score
        if maximizing:
            if score > best_score:
                best_score, best_move = score, mv
            alpha = max(alpha, best_score)
        else:
            if score < best_score:
                best_score, best_move = score, mv
            beta = min(beta, best_score)
        if beta <= alpha:
            break
    return SearchResult(int(best_score), best_move)


def search_depth(empty_count: int) -> int:
    if empty_count <= ENDGAME_EMPTY_THRESHOLD:
        return ENDGAME_MAX_DEPTH
    return DEFAULT_MAX_DEPTH


def best_move(board: Board, ai_mark: str) -> Optional[int]:
    """Hard-tier move for ``ai_mark`` to play on ``board``."""
    moves = empty_squares(board)
    if not moves:
        return None
    if len(moves) >= ROOT_PRIORITY_MIN_EMPTY:
        for mv in ROOT_PRIORITY_MOVES:
            if board[mv] is EMPTY:
                return mv
    stats: Dict[str, int] = {}
    max_depth = search_depth(len(moves))
    res = minimax(board, ai_mark, ai_mark, max_depth=max_depth, stats=stats)
    logger.debug(
        "minimax ai=%s depth_limit=%d nodes=%d move=%s score=%d",
        ai_mark, max_depth, stats.get("nodes", 0), res.move, res.score,
    )
    return res.move


def select_move(
    board: Sequence[Cell],
    ai_mark: str,
    difficulty: Difficulty | str = Difficulty.MEDIUM,
    rng: Optional[np.random.Generator] = None,
) -> Optional[int]:
    """Choose the square ``ai_mark`` plays next, or None on a full board.

    ``rng`` drives every random choice. Without one a fresh unseeded generator
    is used, so replaying a position may give a different Medium move.
    """
    b = validate_board(board)
    other_mark(ai_mark)
    difficulty = Difficulty(difficulty)
    if rng is None:
        rng = np.random.default_rng()

    moves = empty_squares(b)
    if not moves:
        return None

    # Opening book, regardless of difficulty.
    if len(moves) == 9:
        return CENTER
    if len(moves) == 8:
        if b[CENTER] is not EMPTY:
            return int(rng.choice(CORNERS))
        return CENTER

    if difficulty is Difficulty.EASY:
        return random_move(b, rng)
    if difficulty is Difficulty.MEDIUM and rng.random() < MEDIUM_RANDOM_PROBABILITY:
        return random_move(b, rng)
    return best_move(b, ai_mark)
