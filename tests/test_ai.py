from collections import Counter

import numpy as np
import pytest

from xoplay import ai
from xoplay.ai import Difficulty, minimax, select_move
from xoplay.board import CORNERS, O, X, apply_move, empty_board, empty_squares, parse_board
from xoplay.evaluator import evaluate


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_empty_board_takes_center(difficulty, rng):
    assert select_move(empty_board(), X, difficulty, rng) == 4


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_second_move_takes_center_when_free(difficulty, rng):
    assert select_move(parse_board("X........"), O, difficulty, rng) == 4


def test_second_move_takes_a_corner_when_center_taken():
    seen = set()
    for seed in range(40):
        mv = select_move(parse_board("....X...."), O, Difficulty.HARD, np.random.default_rng(seed))
        assert mv in CORNERS
        seen.add(mv)
    assert seen == set(CORNERS)


def test_full_board_returns_none(rng):
    for d in Difficulty:
        assert select_move(parse_board("XXOOOXXOX"), X, d, rng) is None


def test_hard_takes_immediate_win():
    board = parse_board("XX.OO....")
    assert select_move(board, X, Difficulty.HARD) == 2


def test_hard_prefers_win_over_block():
    # X threatens 2, but O completing its own row at 5 comes first.
    board = parse_board("XX.OO.X..")
    assert select_move(board, O, Difficulty.HARD) == 5


def test_hard_blocks_opponent_win():
    board = parse_board("OO.X.....")
    assert select_move(board, X, Difficulty.HARD) == 2


def test_hard_uses_root_priority_with_seven_empty():
    # X to move with one mark each: no search, first free of 4, 0, 2, 6, 8.
    assert select_move(parse_board("XO......."), X, Difficulty.HARD) == 4
    assert select_move(parse_board("O...X...."), X, Difficulty.HARD) == 2


def test_hard_is_deterministic():
    board = parse_board("X.O.X...O")
    moves = {select_move(board, X, Difficulty.HARD) for _ in range(5)}
    assert len(moves) == 1


def test_minimax_scores_quick_win_higher_than_slow():
    board = parse_board("XX.OO....")
    res = minimax(board, X, X, max_depth=9)
    assert res.move == 2
    assert res.score == ai.WIN_SCORE - 1


def test_minimax_takes_own_win_before_blocking():
    # O completes the bottom row at 8, which also blocks the X diagonal.
    board = parse_board("X..XX.OO.")
    res = minimax(board, O, O, max_depth=9)
    assert res.move == 8
    assert res.score == ai.WIN_SCORE - 1


def test_minimax_depth_limit_scores_zero():
    board = parse_board("X...O....")
    res = minimax(board, X, X, max_depth=0)
    assert res.score == 0
    assert res.move is None


def test_minimax_ties_go_to_lowest_index():
    # X wins at 2 (row) or 6 (column) with the same score.
    board = parse_board("XX.XOO.O.")
    res = minimax(board, X, X, max_depth=9)
    assert res.move == 2
    assert res.score == ai.WIN_SCORE - 1
    assert select_move(board, X, Difficulty.HARD) == 2


def test_search_depth_thresholds():
    assert ai.search_depth(9) == ai.DEFAULT_MAX_DEPTH == 6
    assert ai.search_depth(6) == 6
    assert ai.search_depth(5) == ai.ENDGAME_MAX_DEPTH == 9
    assert ai.search_depth(1) == 9


def test_easy_only_returns_empty_squares_uniformly():
    board = parse_board("X.O.X....")
    legal = empty_squares(board)
    rng = np.random.default_rng(7)
    counts = Counter(select_move(board, O, Difficulty.EASY, rng) for _ in range(3000))
    assert set(counts) == set(legal)
    expected = 3000 / len(legal)
    for sq in legal:
        assert abs(counts[sq] - expected) < 0.2 * expected


def test_medium_blends_random_and_hard():
    # Hard always wins at 2 here; Medium deviates roughly 30% * 4/5 of the time.
    board = parse_board("XX.OO....")
    rng = np.random.default_rng(99)
    picks = [select_move(board, X, Difficulty.MEDIUM, rng) for _ in range(2000)]
    non_hard = sum(1 for m in picks if m != 2) / len(picks)
    expected = ai.MEDIUM_RANDOM_PROBABILITY * 4 / 5
    assert abs(non_hard - expected) < 0.05


def test_difficulty_accepts_strings():
    assert select_move(parse_board("XX.OO...."), X, "hard") == 2
    with pytest.raises(ValueError):
        select_move(empty_board(), X, "impossible")


def test_hard_never_plays_occupied_square_against_random_opponent():
    rng = np.random.default_rng(3)
    for hard_mark in (X, O):
        for _ in range(25):
            board = empty_board()
            mark = X
            while not evaluate(board).is_over:
                tier = Difficulty.HARD if mark == hard_mark else Difficulty.EASY
                mv = select_move(board, mark, tier, rng)
                assert mv in empty_squares(board)
                board = apply_move(board, mv, mark)
                mark = O if mark == X else X
