"""Session settings and filesystem helpers.

Environment-first: every setting can be overridden with an ``XOPLAY_*``
variable, falling back to the defaults of the shipped game (human vs human,
medium AI, human plays X).
"""

from __future__ import annotations

import math
import os
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .ai import Difficulty
from .board import MARKS, X
from .errors import ConfigError

DEFAULT_AI_DELAY = 0.6


class GameMode(str, Enum):
    HUMAN = "human"
    AI = "ai"

    @property
    def label(self) -> str:
        return "Human vs Human" if self is GameMode.HUMAN else "Human vs AI"


def runs_dir() -> Path:
    p = os.getenv("XOPLAY_RUNS_DIR")
    return Path(p) if p else Path.cwd() / "runs"


@dataclass
class Settings:
    mode: GameMode = GameMode.HUMAN
    difficulty: Difficulty = Difficulty.MEDIUM
    human_mark: str = X
    ai_delay: float = DEFAULT_AI_DELAY
    runs_dir: Path = field(default_factory=runs_dir)

    def __post_init__(self) -> None:
        self.mode = _coerce(GameMode, self.mode, "mode")
        self.difficulty = _coerce(Difficulty, self.difficulty, "difficulty")
        self.human_mark = parse_mark(self.human_mark)
        if not math.isfinite(self.ai_delay) or self.ai_delay < 0:
            raise ConfigError(f"ai_delay must be a finite number >= 0, got {self.ai_delay}")
        self.runs_dir = Path(self.runs_dir)


def _coerce(enum_cls, value, name: str):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(e.value for e in enum_cls)
        raise ConfigError(f"Invalid {name} {value!r}; expected one of: {choices}") from None


def parse_mark(value: str) -> str:
    mark = str(value).strip().upper()
    if mark not in MARKS:
        raise ConfigError(f"Invalid mark {value!r}; expected X or O")
    return mark


def load_settings() -> Settings:
    """Build Settings from XOPLAY_* environment variables."""
    kwargs = {}
    if os.getenv("XOPLAY_MODE"):
        kwargs["mode"] = os.environ["XOPLAY_MODE"].strip().lower()
    if os.getenv("XOPLAY_DIFFICULTY"):
        kwargs["difficulty"] = os.environ["XOPLAY_DIFFICULTY"].strip().lower()
    if os.getenv("XOPLAY_HUMAN"):
        kwargs["human_mark"] = os.environ["XOPLAY_HUMAN"]
    if os.getenv("XOPLAY_AI_DELAY"):
        raw = os.environ["XOPLAY_AI_DELAY"]
        try:
            kwargs["ai_delay"] = float(raw)
        except ValueError:
            raise ConfigError(f"XOPLAY_AI_DELAY must be a number, got {raw!r}") from None
    return Settings(**kwargs)


def get_git_commit(root: Path | None = None) -> str | None:
    """Return the current git commit hash if available, else None."""
    root = root or Path.cwd()
    try:
        out = subprocess.check_output(
            ["git", "-C", str(root), "rev-parse", "HEAD"],
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=2.0,
        )
        return out.strip() or None
    except (OSError, subprocess.SubprocessError):
        return None
