"""
Arena: AI-vs-AI self-play for comparing difficulty tiers.

Every move is graded against the exact solver, so a run reports both the
results table and how often each side picked a game-theoretically optimal
move. Runs are reproducible for a given seed.
"""
from __future__ import annotations

import csv
import importlib.util
import json
import logging
import math
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from .ai import Difficulty, select_move
from .board import O, X, Board, apply_move, empty_board, next_mark, serialize_board
from .config import get_git_commit
from .evaluator import evaluate
from .session import Scores
from .solver import move_is_optimal
from .tracking import log_artifact, log_metrics, log_params, maybe_mlflow_run

logger = logging.getLogger(__name__)

ARENA_VERSION = "1.0.0"
EXPORT_FORMATS = ("csv", "parquet", "both")


@dataclass
class ArenaArgs:
    games: int = 100
    x_difficulty: Difficulty = Difficulty.HARD
    o_difficulty: Difficulty = Difficulty.EASY
    seed: Optional[int] = None
    out: Optional[Path] = None
    format: str = "csv"  # one of: "csv", "parquet", "both"
    tracking: bool = False
    log_dir: Optional[Path] = None
    cli_argv: Optional[List[str]] = None


@dataclass
class GameRecord:
    moves: List[int] = field(default_factory=list)
    winner: Optional[str] = None
    optimal: Dict[str, int] = field(default_factory=lambda: {X: 0, O: 0})
    played: Dict[str, int] = field(default_factory=lambda: {X: 0, O: 0})
    final_board: str = ""


@dataclass
class ArenaSummary:
    games: int
    scores: Scores
    x_win_rate: float
    o_win_rate: float
    draw_rate: float
    ci95_half_width: Dict[str, float]
    x_optimal_rate: float
    o_optimal_rate: float
    mean_length: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def play_game(
    x_difficulty: Difficulty, o_difficulty: Difficulty, rng: np.random.Generator
) -> GameRecord:
    tiers = {X: Difficulty(x_difficulty), O: Difficulty(o_difficulty)}
    board: Board = empty_board()
    rec = GameRecord()
    verdict = evaluate(board)
    while not verdict.is_over:
        mark = next_mark(board)
        mv = select_move(board, mark, tiers[mark], rng)
        if mv is None:
            break
        rec.played[mark] += 1
        if move_is_optimal(board, mv):
            rec.optimal[mark] += 1
        board = apply_move(board, mv, mark)
        rec.moves.append(mv)
        verdict = evaluate(board)
    rec.winner = verdict.winner
    rec.final_board = serialize_board(board)
    return rec


def _ci95(hits: np.ndarray) -> float:
    if hits.size < 2:
        return float("nan")
    p = float(hits.mean())
    return float(1.96 * np.sqrt(p * (1.0 - p) / hits.size))


def summarize(records: List[GameRecord]) -> ArenaSummary:
    scores = Scores()
    for r in records:
        if r.winner == X:
            scores.x += 1
        elif r.winner == O:
            scores.o += 1
        else:
            scores.ties += 1
    outcomes = {
        "x": np.array([r.winner == X for r in records], dtype=bool),
        "o": np.array([r.winner == O for r in records], dtype=bool),
        "draw": np.array([r.winner is None for r in records], dtype=bool),
    }
    n = max(len(records), 1)

    def rate(mark: str) -> float:
        played = sum(r.played[mark] for r in records)
        return sum(r.optimal[mark] for r in records) / played if played else float("nan")

    lengths = np.array([len(r.moves) for r in records], dtype=float)
    return ArenaSummary(
        games=len(records),
        scores=scores,
        x_win_rate=scores.x / n,
        o_win_rate=scores.o / n,
        draw_rate=scores.ties / n,
        ci95_half_width={k: _ci95(v) for k, v in outcomes.items()},
        x_optimal_rate=rate(X),
        o_optimal_rate=rate(O),
        mean_length=float(lengths.mean()) if lengths.size else 0.0,
    )


def _rows(records: List[GameRecord]) -> List[Dict[str, Any]]:
    rows = []
    for i, r in enumerate(records):
        rows.append({
            "game": i,
            "winner": r.winner or "draw",
            "plies": len(r.moves),
            "moves": " ".join(map(str, r.moves)),
            "final_board": r.final_board,
            "x_optimal_moves": r.optimal[X],
            "x_moves": r.played[X],
            "o_optimal_moves": r.optimal[O],
            "o_moves": r.played[O],
        })
    return rows


def _finite(obj: Any) -> Any:
    """Replace NaN and infinities with None so the manifest is strict JSON."""
    if isinstance(obj, dict):
        return {k: _finite(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_finite(v) for v in obj]
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    return obj


def _write_outputs(args: ArenaArgs, records: List[GameRecord], summary: ArenaSummary) -> Dict[str, Optional[str]]:
    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)
    rows = _rows(records)
    fmt = (args.format or "csv").lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format: {args.format}")

    files: Dict[str, Optional[str]] = {"games_csv": None, "games_parquet": None}
    if fmt in {"parquet", "both"}:
        have_parquet = (
            importlib.util.find_spec("pandas") is not None
            and importlib.util.find_spec("pyarrow") is not None
        )
        if not have_parquet:
            msg = "Parquet dependencies not available (install pandas and pyarrow, pip install .[parquet])."
            if fmt == "parquet":
                raise RuntimeError(msg)
            logger.warning("%s Proceeding with CSV only.", msg)
            fmt = "csv"

    if fmt in {"csv", "both"}:
        path = out / "games.csv"
        with path.open("w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=list(rows[0].keys()) if rows else ["game"])
            w.writeheader()
            w.writerows(rows)
        files["games_csv"] = str(path)
        logger.info("Wrote %s (%d rows)", path, len(rows))
    if fmt in {"parquet", "both"}:
        import pandas as pd  # type: ignore

        path = out / "games.parquet"
        pd.DataFrame(rows).to_parquet(path)
        files["games_parquet"] = str(path)
        logger.info("Wrote %s", path)

    manifest = {
        "arena_version": ARENA_VERSION,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "args": {
            "games": args.games,
            "x_difficulty": Difficulty(args.x_difficulty).value,
            "o_difficulty": Difficulty(args.o_difficulty).value,
            "seed": args.seed,
            "format": args.format,
        },
        "git_commit": get_git_commit(),
        "python_version": sys.version.split(" ")[0],
        "numpy_version": np.__version__,
        "cli_argv": args.cli_argv,
        "summary": summary.as_dict(),
        "files": files,
    }
    (out / "manifest.json").write_text(json.dumps(_finite(manifest), indent=2, allow_nan=False))
    files["manifest"] = str(out / "manifest.json")
    return files


def run_arena(args: ArenaArgs) -> ArenaSummary:
    if args.games < 1:
        raise ValueError(f"games must be >= 1, got {args.games}")
    rng = np.random.default_rng(args.seed)
    x_tier, o_tier = Difficulty(args.x_difficulty), Difficulty(args.o_difficulty)
    logger.info("Arena: %d games, X=%s vs O=%s (seed=%s)", args.games, x_tier.value, o_tier.value, args.seed)
    with maybe_mlflow_run(args.tracking, run_name="arena", log_dir=args.log_dir):
        log_params({"games": args.games, "x_difficulty": x_tier.value,
                    "o_difficulty": o_tier.value, "seed": args.seed})
        records = [play_game(x_tier, o_tier, rng) for _ in range(args.games)]
        summary = summarize(records)
        log_metrics({
            "x_win_rate": summary.x_win_rate,
            "o_win_rate": summary.o_win_rate,
            "draw_rate": summary.draw_rate,
            "x_optimal_rate": summary.x_optimal_rate,
            "o_optimal_rate": summary.o_optimal_rate,
        })
        if args.out is not None:
            files = _write_outputs(args, records, summary)
            for p in files.values():
                if p is not None:
                    log_artifact(Path(p))
    logger.info(
        "X wins %d, O wins %d, draws %d; optimal-move rate X=%.3f O=%.3f",
        summary.scores.x, summary.scores.o, summary.scores.ties,
        summary.x_optimal_rate, summary.o_optimal_rate,
    )
    return summary
