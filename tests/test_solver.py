import pytest

from xoplay.board import apply_move, empty_board, empty_squares, next_mark, parse_board
from xoplay.evaluator import evaluate
from xoplay.solver import move_is_optimal, reachable_boards, solve_state


@pytest.fixture(scope="module")
def reachable():
    return reachable_boards()


def test_reachable_state_count(reachable):
    # Well-known count of distinct positions reachable from the empty board.
    assert len(reachable) == 5478
    assert reachable[0] == empty_board()


def test_empty_board_is_draw_and_all_moves_optimal():
    s = solve_state(empty_board())
    assert s.value == 0
    assert len(s.optimal_moves) == 9
    assert s.plies_to_end == 9


def test_terminal_positions_values():
    assert solve_state(parse_board("XXXOO....")).value == -1
    assert solve_state(parse_board("XXXOO....")).plies_to_end == 0
    draw = solve_state(parse_board("XXOOOXXOX"))
    assert draw.value == 0
    assert draw.optimal_moves == ()


def test_immediate_win_preferred():
    # X to move, immediate win at 2
    s = solve_state(parse_board("XX..O..O."))
    assert s.value == 1
    assert s.optimal_moves == (2,)
    assert s.plies_to_end == 1


def test_losses_are_delayed_and_wins_hurried(reachable):
    checked = 0
    for b in reachable:
        if evaluate(b).is_over:
            continue
        s = solve_state(b)
        mark = next_mark(b)
        lengths = {
            mv: 1 + solve_state(apply_move(b, mv, mark)).plies_to_end for mv in s.optimal_moves
        }
        same_value = [
            1 + solve_state(apply_move(b, mv, mark)).plies_to_end
            for mv in empty_squares(b)
            if s.q_values[mv] == s.value
        ]
        if s.value == -1:
            assert s.plies_to_end == max(same_value)
            checked += 1
        else:
            assert s.plies_to_end == min(same_value)
        assert set(lengths.values()) == {s.plies_to_end}
    assert checked > 0


def test_move_is_optimal_matches_q_values():
    board = parse_board("XX.OO....")
    assert move_is_optimal(board, 2)
    assert not move_is_optimal(board, 8)


def test_solver_values_are_consistent_with_children(reachable):
    for b in reachable[:400]:
        if evaluate(b).is_over:
            continue
        s = solve_state(b)
        legal = empty_squares(b)
        assert all(s.q_values[i] is not None for i in legal)
        assert max(s.q_values[i] for i in legal) == s.value
        assert set(s.optimal_moves) <= set(legal)
        assert next_mark(b) in ("X", "O")
