"""
Configuration - Engine tunables read from the environment.

Environment variables:
    TILEMATCH_PAIR_COUNT        Pairs per deck (default 12, a 4x6 grid)
    TILEMATCH_MISMATCH_DELAY    Seconds a mismatched pair stays up (default 0.9)
    TILEMATCH_LEADERBOARD_ID    Board used for both submit and load
    TILEMATCH_SUBMIT_POLICY     "improvement" or "always"
    TILEMATCH_DEBUG             1/true/yes enables debug logging
    ALLOWED_ORIGINS             Comma-separated CORS origins for the API
"""

from __future__ import annotations
from dataclasses import dataclass, field
from functools import lru_cache
import os

from .scoring.reconcile import SubmitPolicy

DEFAULT_PAIR_COUNT = 12
DEFAULT_MISMATCH_DELAY = 0.9
DEFAULT_LEADERBOARD_ID = "KingOfTheHill"


@dataclass(frozen=True)
class GameConfig:
    """
    Settings shared by every engine in the process.

    The leaderboard id is used for both submission and loading;
    a mismatch between the two would reconcile against the wrong board.
    """
    pair_count: int = DEFAULT_PAIR_COUNT
    mismatch_delay: float = DEFAULT_MISMATCH_DELAY
    leaderboard_id: str = DEFAULT_LEADERBOARD_ID
    submit_policy: SubmitPolicy = SubmitPolicy.IMPROVEMENT
    debug: bool = False
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        if self.mismatch_delay < 0:
            raise ValueError(f"mismatch_delay must be >= 0, got {self.mismatch_delay}")
        if not self.leaderboard_id:
            raise ValueError("leaderboard_id must not be empty")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> GameConfig:
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ

        try:
            pair_count = int(env.get("TILEMATCH_PAIR_COUNT", DEFAULT_PAIR_COUNT))
            mismatch_delay = float(env.get("TILEMATCH_MISMATCH_DELAY", DEFAULT_MISMATCH_DELAY))
        except ValueError as e:
            raise ValueError(f"Invalid numeric setting: {e}") from e

        return cls(
            pair_count=pair_count,
            mismatch_delay=mismatch_delay,
            leaderboard_id=env.get("TILEMATCH_LEADERBOARD_ID", DEFAULT_LEADERBOARD_ID),
            submit_policy=SubmitPolicy(env.get("TILEMATCH_SUBMIT_POLICY", "improvement").lower()),
            debug=env.get("TILEMATCH_DEBUG", "0").lower() in ("1", "true", "yes"),
            allowed_origins=env.get("ALLOWED_ORIGINS", "*").split(","),
        )


@lru_cache
def get_config() -> GameConfig:
    return GameConfig.from_env()
