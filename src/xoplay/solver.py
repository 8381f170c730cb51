"""
Exact game-theoretic solver (minimax with memoization), from the side-to-move perspective.
Tie-break policy:
- Prefer win over draw over loss.
- Among wins/draws, prefer shorter distance (plies) to termination.
- Among losses, prefer longer distance (delay the loss).

Used as a reference when grading the AI tiers; the game itself plays through
``xoplay.ai``.
"""
from collections import deque
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from .board import Board, Cell, apply_move, empty_board, empty_squares, next_mark, validate_board
from .evaluator import evaluate


@dataclass(frozen=True)
class SolveResult:
    value: int
    plies_to_end: int
    optimal_moves: Tuple[int, ...]
    q_values: Tuple[Optional[int], ...]


_TERMINAL_Q = (None,) * 9


def _prefer(q: int, dtt: int, best_q: int, best_dtt: int) -> int:
    """1 if (q, dtt) beats the running best, 0 if tied, -1 if worse."""
    if q != best_q:
        return 1 if q > best_q else -1
    if dtt == best_dtt:
        return 0
    if q == -1:
        return 1 if dtt > best_dtt else -1
    return 1 if dtt < best_dtt else -1


@lru_cache(maxsize=None)
def _solve_tuple(board_t: Board) -> SolveResult:
    verdict = evaluate(board_t)
    if verdict.winner is not None:
        # The side to move did not make the last move, so it has lost.
        return SolveResult(-1, 0, (), _TERMINAL_Q)
    if verdict.is_draw:
        return SolveResult(0, 0, (), _TERMINAL_Q)

    mark = next_mark(board_t)
    q_vals: List[Optional[int]] = [None] * 9
    best_q: Optional[int] = None
    best_dtt = 0
    best_moves: List[int] = []
    for mv in empty_squares(board_t):
        child = _solve_tuple(apply_move(board_t, mv, mark))
        q = -child.value
        dtt = 1 + child.plies_to_end
        q_vals[mv] = q
        if best_q is None:
            best_q, best_dtt, best_moves = q, dtt, [mv]
            continue
        cmp = _prefer(q, dtt, best_q, best_dtt)
        if cmp > 0:
            best_q, best_dtt, best_moves = q, dtt, [mv]
        elif cmp == 0:
            best_moves.append(mv)
    return SolveResult(best_q, best_dtt, tuple(best_moves), tuple(q_vals))


def solve_state(board: Sequence[Cell]) -> SolveResult:
    return _solve_tuple(validate_board(board))


def move_is_optimal(board: Sequence[Cell], move: int) -> bool:
    """True if ``move`` keeps the best achievable game value for the side to move."""
    res = solve_state(board)
    return res.q_values[move] == res.value


def reachable_boards() -> List[Board]:
    """Every position reachable from the empty board, in breadth-first order."""
    start = empty_board()
    seen = {start}
    order = [start]
    q = deque([start])
    while q:
        s = q.popleft()
        if evaluate(s).is_over:
            continue
        mark = next_mark(s)
        for mv in empty_squares(s):
            child = apply_move(s, mv, mark)
            if child not in seen:
                seen.add(child)
                order.append(child)
                q.append(child)
    return order
