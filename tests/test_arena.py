import json
from pathlib import Path

import numpy as np
import pytest

from xoplay.ai import Difficulty
from xoplay.arena import ArenaArgs, play_game, run_arena, summarize


def test_play_game_produces_complete_record():
    rec = play_game(Difficulty.HARD, Difficulty.EASY, np.random.default_rng(0))
    assert 5 <= len(rec.moves) <= 9
    assert len(set(rec.moves)) == len(rec.moves)
    assert rec.winner in (None, "X")
    assert rec.played["X"] + rec.played["O"] == len(rec.moves)
    assert rec.optimal["X"] <= rec.played["X"]


def test_hard_vs_hard_always_draws():
    summary = run_arena(ArenaArgs(games=10, x_difficulty="hard", o_difficulty="hard", seed=1))
    assert summary.scores.ties == 10
    assert summary.draw_rate == 1.0
    assert summary.mean_length == 9.0


def test_hard_beats_or_draws_easy_and_plays_optimally_late():
    summary = run_arena(ArenaArgs(games=60, x_difficulty="hard", o_difficulty="easy", seed=7))
    assert summary.scores.o == 0
    assert summary.scores.x > summary.scores.ties
    assert summary.x_optimal_rate > summary.o_optimal_rate
    assert summary.x_win_rate + summary.o_win_rate + summary.draw_rate == pytest.approx(1.0)
    assert set(summary.ci95_half_width) == {"x", "o", "draw"}
    assert summary.ci95_half_width["x"] >= 0


def test_arena_is_reproducible_for_a_seed():
    a = run_arena(ArenaArgs(games=20, x_difficulty="medium", o_difficulty="easy", seed=42))
    b = run_arena(ArenaArgs(games=20, x_difficulty="medium", o_difficulty="easy", seed=42))
    assert a.as_dict() == b.as_dict()


def test_arena_writes_csv_and_manifest(tmp_path: Path):
    out = tmp_path / "arena"
    run_arena(ArenaArgs(games=5, seed=3, out=out, cli_argv=["arena", "--games", "5"]))
    rows = (out / "games.csv").read_text().splitlines()
    assert rows[0].startswith("game,winner,plies,moves")
    assert len(rows) == 6
    manifest = json.loads((out / "manifest.json").read_text())
    assert manifest["args"]["games"] == 5
    assert manifest["args"]["x_difficulty"] == "hard"
    assert manifest["summary"]["games"] == 5
    assert manifest["files"]["games_csv"].endswith("games.csv")
    assert manifest["cli_argv"] == ["arena", "--games", "5"]


def test_arena_rejects_bad_arguments(tmp_path: Path):
    with pytest.raises(ValueError):
        run_arena(ArenaArgs(games=0))
    with pytest.raises(ValueError):
        run_arena(ArenaArgs(games=1, out=tmp_path, format="xlsx"))


def test_summarize_empty_optimal_rate_is_nan():
    summary = summarize([])
    assert summary.games == 0
    assert np.isnan(summary.x_optimal_rate)


def _reject_constant(name):
    raise ValueError(f"non-standard JSON constant {name}")


def test_single_game_manifest_is_strict_json(tmp_path: Path):
    out = tmp_path / "one"
    run_arena(ArenaArgs(games=1, seed=0, out=out))
    manifest = json.loads((out / "manifest.json").read_text(), parse_constant=_reject_constant)
    assert manifest["summary"]["games"] == 1
    assert manifest["summary"]["ci95_half_width"] == {"x": None, "o": None, "draw": None}
