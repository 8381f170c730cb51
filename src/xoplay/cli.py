from __future__ import annotations

import argparse
import csv
import logging
import math
import sys
from pathlib import Path
from typing import Optional, TextIO

import numpy as np

from .ai import Difficulty, select_move
from .arena import EXPORT_FORMATS, ArenaArgs, run_arena
from .board import Board, format_board, is_reachable, next_mark, parse_board
from .config import GameMode, load_settings, parse_mark
from .errors import XoplayError
from .evaluator import evaluate
from .session import GameSession
from .solver import solve_state
from .tactics import blocking_moves, fork_moves, immediate_winning_moves

logger = logging.getLogger("xoplay")

DIFFICULTIES = [d.value for d in Difficulty]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="xoplay", description="Tic-tac-toe with a minimax AI")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument(
        "--info",
        action="store_true",
        help="Print environment and dependency info and exit",
    )
    p.add_argument("--seed", type=int, default=None, help="Seed for the AI's random choices")

    board_help = "Board string, 9 chars of X/O/. (or 1/2/0), e.g. X...O...."

    p_eval = sub.add_parser("evaluate", help="Report win/draw/ongoing for a board")
    p_eval.add_argument("--board", help=board_help + " (omit with --stdin)")
    p_eval.add_argument(
        "--stdin", action="store_true", help="Read many boards from stdin and stream CSV output"
    )

    p_move = sub.add_parser("move", help="Ask the AI for its move on a board")
    p_move.add_argument("--board", required=True, help=board_help)
    p_move.add_argument("--ai", default=None, help="Mark the AI plays (default: side to move)")
    p_move.add_argument("--difficulty", choices=DIFFICULTIES, default="hard")

    p_tac = sub.add_parser("tactics", help="List immediate wins, blocks and forks for side-to-move")
    p_tac.add_argument("--board", required=True, help=board_help)

    p_sol = sub.add_parser("solve", help="Solve a board via perfect play from side-to-move")
    p_sol.add_argument("--board", required=True, help=board_help)

    p_play = sub.add_parser("play", help="Play an interactive game in the terminal")
    p_play.add_argument("--mode", choices=[m.value for m in GameMode], default=None)
    p_play.add_argument("--difficulty", choices=DIFFICULTIES, default=None)
    p_play.add_argument("--human", default=None, help="Mark the human plays in AI mode (X or O)")
    p_play.add_argument("--delay", type=float, default=None, help="AI think time in seconds")

    p_arena = sub.add_parser("arena", help="Pit two AI tiers against each other")
    p_arena.add_argument("--games", type=int, default=100)
    p_arena.add_argument("--x", dest="x_difficulty", choices=DIFFICULTIES, default="hard")
    p_arena.add_argument("--o", dest="o_difficulty", choices=DIFFICULTIES, default="easy")
    p_arena.add_argument("--out", type=Path, default=None, help="Directory for games.csv and manifest.json")
    p_arena.add_argument("--format", choices=list(EXPORT_FORMATS), default="csv")
    p_arena.add_argument(
        "--tracking",
        choices=["none", "mlflow"],
        default="none",
        help="Experiment tracking backend",
    )
    p_arena.add_argument(
        "--log-dir",
        type=Path,
        default=Path("runs"),
        help="Directory for tracking logs (mlflow local backend)",
    )

    return p


def _print_info() -> None:
    import importlib.util
    import platform

    print(f"python={sys.version.split()[0]} platform={platform.platform()}")
    for pkg in ["numpy", "pandas", "pyarrow", "mlflow"]:
        spec = importlib.util.find_spec(pkg)
        if spec is None:
            print(f"{pkg}=<not installed>")
        else:
            mod = __import__(pkg)
            ver = getattr(mod, "__version__", "?")
            print(f"{pkg}={ver}")


def _read_board(raw: Optional[str]) -> Optional[Board]:
    try:
        board = parse_board(raw or "")
    except XoplayError as e:
        logger.error("Invalid board string: %s", e)
        return None
    if not is_reachable(board):
        logger.error("Board is not a valid reachable state.")
        return None
    return board


def _cmd_evaluate(ns: argparse.Namespace) -> int:
    if ns.stdin:
        w = csv.writer(sys.stdout)
        w.writerow(["board", "is_over", "winner", "is_draw", "winning_line"])
        for line in sys.stdin:
            raw = line.strip()
            if not raw:
                continue
            try:
                board = parse_board(raw)
            except XoplayError:
                logger.debug("skipping malformed board %r", raw)
                continue
            v = evaluate(board)
            w.writerow([
                raw,
                int(v.is_over),
                v.winner or "",
                int(v.is_draw),
                " ".join(map(str, v.winning_line)) if v.winning_line else "",
            ])
        return 0
    board = _read_board(ns.board)
    if board is None:
        return 2
    v = evaluate(board)
    logger.info(
        "is_over=%s winner=%s is_draw=%s line=%s",
        v.is_over, v.winner, v.is_draw, list(v.winning_line) if v.winning_line else None,
    )
    return 0


def _cmd_move(ns: argparse.Namespace, rng: np.random.Generator) -> int:
    board = _read_board(ns.board)
    if board is None:
        return 2
    if evaluate(board).is_over:
        logger.error("Game is already over; no move to make.")
        return 2
    try:
        ai = parse_mark(ns.ai) if ns.ai else next_mark(board)
    except XoplayError as e:
        logger.error("%s", e)
        return 2
    mv = select_move(board, ai, ns.difficulty, rng)
    logger.info("ai=%s difficulty=%s move=%s", ai, ns.difficulty, mv)
    return 0


def _cmd_tactics(ns: argparse.Namespace) -> int:
    board = _read_board(ns.board)
    if board is None:
        return 2
    p = next_mark(board)
    logger.info(
        "to_move=%s wins=%s blocks=%s forks=%s",
        p,
        immediate_winning_moves(board, p),
        blocking_moves(board, p),
        fork_moves(board, p),
    )
    return 0


def _cmd_solve(ns: argparse.Namespace) -> int:
    board = _read_board(ns.board)
    if board is None:
        return 2
    res = solve_state(board)
    logger.info(
        "value=%s plies=%s optimal=%s",
        res.value,
        res.plies_to_end,
        list(res.optimal_moves),
    )
    return 0


PLAY_HELP = "Commands: 0-8 place a mark, 'jump N' to revisit ply N, 'new', 'scores', 'quit'"


def play_loop(session: GameSession, stdin: TextIO, stdout: TextIO) -> int:
    """Drive ``session`` from line-based terminal input until EOF or 'quit'."""
    def show() -> None:
        print(format_board(session.current_board), file=stdout)
        print(session.status_text(), file=stdout)

    print(PLAY_HELP, file=stdout)
    while True:
        while session.needs_ai_move():
            print(session.verdict.status_text(session.current_mark, ai_thinking=True), file=stdout)
            session.take_ai_turn()
        show()
        print("> ", end="", file=stdout, flush=True)
        line = stdin.readline()
        if not line:
            return 0
        cmd = line.strip().lower()
        if cmd in ("q", "quit", "exit"):
            return 0
        if cmd == "new":
            session.start_new_game()
        elif cmd == "scores":
            s = session.scores
            print(f"X: {s.x}  O: {s.o}  Ties: {s.ties}", file=stdout)
        elif cmd.startswith("jump"):
            parts = cmd.split()
            if len(parts) == 2 and parts[1].isdigit() and int(parts[1]) < len(session.history):
                session.jump_to(int(parts[1]))
            else:
                print(f"Usage: jump N with N in 0..{len(session.history) - 1}", file=stdout)
        elif cmd.isdigit():
            if not session.play(int(cmd)):
                print("That move is not allowed right now.", file=stdout)
        else:
            print(PLAY_HELP, file=stdout)


def _cmd_play(ns: argparse.Namespace, rng: np.random.Generator) -> int:
    try:
        settings = load_settings()
        if ns.mode:
            settings.mode = GameMode(ns.mode)
        if ns.difficulty:
            settings.difficulty = Difficulty(ns.difficulty)
        if ns.human:
            settings.human_mark = parse_mark(ns.human)
        if ns.delay is not None:
            if not math.isfinite(ns.delay) or ns.delay < 0:
                logger.error("--delay must be a finite number >= 0")
                return 2
            settings.ai_delay = ns.delay
    except XoplayError as e:
        logger.error("%s", e)
        return 2
    session = GameSession(settings, on_notify=lambda msg: print(f"* {msg}"), rng=rng)
    return play_loop(session, sys.stdin, sys.stdout)


def _cmd_arena(ns: argparse.Namespace, argv: Optional[list[str]]) -> int:
    if ns.games < 1:
        logger.error("--games must be at least 1")
        return 2
    summary = run_arena(ArenaArgs(
        games=ns.games,
        x_difficulty=Difficulty(ns.x_difficulty),
        o_difficulty=Difficulty(ns.o_difficulty),
        seed=ns.seed,
        out=ns.out,
        format=ns.format,
        tracking=ns.tracking == "mlflow",
        log_dir=ns.log_dir,
        cli_argv=list(argv) if argv is not None else None,
    ))
    logger.info(
        "x_wins=%d o_wins=%d draws=%d x_optimal=%.3f o_optimal=%.3f",
        summary.scores.x, summary.scores.o, summary.scores.ties,
        summary.x_optimal_rate, summary.o_optimal_rate,
    )
    if ns.out is not None:
        logger.info("Wrote arena results to: %s", ns.out)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    # Early exits
    if ns.version:
        from importlib.metadata import PackageNotFoundError, version as _ver

        try:
            print(_ver("xoplay"))
        except PackageNotFoundError:
            print("unknown")
        return 0
    if ns.info:
        _print_info()
        return 0

    rng = np.random.default_rng(ns.seed)

    if ns.cmd == "evaluate":
        return _cmd_evaluate(ns)
    if ns.cmd == "move":
        return _cmd_move(ns, rng)
    if ns.cmd == "tactics":
        return _cmd_tactics(ns)
    if ns.cmd == "solve":
        return _cmd_solve(ns)
    if ns.cmd == "play":
        return _cmd_play(ns, rng)
    if ns.cmd == "arena":
        return _cmd_arena(ns, argv)

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
