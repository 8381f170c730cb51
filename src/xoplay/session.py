"""
Session and turn orchestration: history timeline, turn order, scores.

The session is the only caller of the evaluator and the move selector. It
holds a list of board snapshots (``history[0]`` is the empty board) and a
cursor ``current_ply``; jumping back and playing again discards the future.
Every move that finishes a game is scored, so a branch played after a jump
records its own result.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from .ai import Difficulty, select_move
from .board import BOARD_SIZE, EMPTY, O, X, Board, apply_move, empty_board, other_mark
from .config import GameMode, Settings, parse_mark
from .evaluator import GameVerdict, evaluate

logger = logging.getLogger(__name__)


@dataclass
class Scores:
    x: int = 0
    o: int = 0
    ties: int = 0

    def record(self, verdict: GameVerdict) -> None:
        if verdict.winner == X:
            self.x += 1
        elif verdict.winner == O:
            self.o += 1
        elif verdict.is_draw:
            self.ties += 1

    def reset(self) -> None:
        self.x = self.o = self.ties = 0

    @property
    def games(self) -> int:
        return self.x + self.o + self.ties


class GameSession:
    """One player's (or two players') running session.

    ``on_notify`` receives short user-facing messages such as "X wins!".
    ``sleep`` is used for the artificial AI think time; tests pass a stub.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        on_notify: Optional[Callable[[str], None]] = None,
        rng: Optional[np.random.Generator] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or Settings()
        self.mode = self.settings.mode
        self.difficulty = self.settings.difficulty
        self.human_mark = self.settings.human_mark
        self.scores = Scores()
        self.on_notify = on_notify
        self.rng = rng
        self.sleep = sleep
        self.history: List[Board] = [empty_board()]
        self.current_ply = 0
        self.ai_thinking = False
        self._pending_mark: Optional[str] = None

    # -- derived state -----------------------------------------------------

    @property
    def current_board(self) -> Board:
        return self.history[self.current_ply]

    @property
    def current_mark(self) -> str:
        return X if self.current_ply % 2 == 0 else O

    @property
    def ai_mark(self) -> str:
        return other_mark(self.human_mark)

    @property
    def verdict(self) -> GameVerdict:
        return evaluate(self.current_board)

    @property
    def is_human_turn(self) -> bool:
        return self.mode is GameMode.HUMAN or self.current_mark == self.human_mark

    @property
    def game_in_progress(self) -> bool:
        return len(self.history) > 1

    def status_text(self) -> str:
        return self.verdict.status_text(self.current_mark, self.ai_thinking)

    # -- moves --------------------------------------------------------------

    def play(self, index: int) -> bool:
        """Apply a human move; returns False when the input is ignored."""
        if not 0 <= index < BOARD_SIZE:
            logger.debug("ignoring out-of-range square %s", index)
            return False
        if self.current_board[index] is not EMPTY:
            logger.debug("ignoring move on filled square %d", index)
            return False
        if self.verdict.is_over or self.ai_thinking or not self.is_human_turn:
            logger.debug("ignoring move on %d: not accepting human input", index)
            return False
        self._push(apply_move(self.current_board, index, self.current_mark))
        return True

    def needs_ai_move(self) -> bool:
        return (
            self.mode is GameMode.AI
            and not self.ai_thinking
            and not self.verdict.is_over
            and self.current_mark == self.ai_mark
        )

    def begin_ai_turn(self) -> bool:
        if not self.needs_ai_move():
            return False
        self.ai_thinking = True
        self._pending_mark = self.current_mark
        return True

    def complete_ai_turn(self) -> Optional[int]:
        if not self.ai_thinking:
            return None
        mark = self._pending_mark
        try:
            move = select_move(self.current_board, mark, self.difficulty, self.rng)
            if move is not None:
                logger.info("AI (%s, %s) plays %d", mark, self.difficulty.value, move)
                self._push(apply_move(self.current_board, move, mark))
            return move
        finally:
            self.ai_thinking = False
            self._pending_mark = None

    def take_ai_turn(self, delay: Optional[float] = None) -> Optional[int]:
        """Run a whole AI turn, pausing ``delay`` seconds before moving."""
        if not self.begin_ai_turn():
            return None
        wait = self.settings.ai_delay if delay is None else delay
        if wait > 0:
            self.sleep(wait)
        return self.complete_ai_turn()

    def _push(self, board: Board) -> None:
        self.history = self.history[: self.current_ply + 1] + [board]
        self.current_ply = len(self.history) - 1
        verdict = evaluate(board)
        if verdict.is_over:
            self.scores.record(verdict)
            self._notify(verdict.result_message())

    # -- timeline and settings ---------------------------------------------

    def jump_to(self, ply: int) -> None:
        if not 0 <= ply < len(self.history):
            raise IndexError(f"ply {ply} outside history of {len(self.history)} snapshots")
        if self.ai_thinking:
            logger.debug("ignoring jump while AI is thinking")
            return
        self.current_ply = ply

    def start_new_game(
        self,
        mode: Optional[GameMode | str] = None,
        difficulty: Optional[Difficulty | str] = None,
        human_mark: Optional[str] = None,
    ) -> None:
        if mode is not None:
            self.mode = GameMode(mode)
        if difficulty is not None:
            self.difficulty = Difficulty(difficulty)
        if human_mark is not None:
            self.human_mark = parse_mark(human_mark)
        self.history = [empty_board()]
        self.current_ply = 0
        self.ai_thinking = False
        self._pending_mark = None
        self._notify("New game started!")

    def set_mode(self, mode: GameMode | str) -> None:
        self.mode = GameMode(mode)
        self._notify(f"Game mode changed to {self.mode.label}")

    def set_difficulty(self, difficulty: Difficulty | str) -> None:
        self.difficulty = Difficulty(difficulty)
        self._notify(f"AI difficulty set to {self.difficulty.value}")

    def set_human_mark(self, mark: str) -> None:
        self.human_mark = parse_mark(mark)
        self._notify(f"Playing as {self.human_mark}")

    def reset_scores(self) -> None:
        self.scores.reset()
        self._notify("Scores reset!")

    def _notify(self, message: Optional[str]) -> None:
        if not message:
            return
        logger.info(message)
        if self.on_notify is not None:
            self.on_notify(message)
