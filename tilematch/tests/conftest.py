"""
Pytest fixtures for Tilematch tests.
"""

import asyncio
import random

import pytest

from ..config import GameConfig
from ..engine_core import GameEngine
from ..errors import ScoreServiceError
from ..scoring import InMemoryScoreService, SubmitPolicy

# Positions 0-3: A B A B
SCENARIO_SYMBOLS = ["A", "B", "A", "B"]


class ScriptedScoreService(InMemoryScoreService):
    """
    In-memory leaderboard with failure injection and latency gates.

    Set `load_gate` / `submit_gate` to an unset asyncio.Event to hold
    calls in flight until the test sets it.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.submitted: list[tuple[int, str]] = []
        self.load_calls: list[str] = []
        self.fail_submit = False
        self.fail_load = False
        self.load_gate: asyncio.Event | None = None
        self.submit_gate: asyncio.Event | None = None

    async def submit_score(self, value: int, leaderboard_id: str) -> None:
        self.submitted.append((value, leaderboard_id))
        if self.submit_gate is not None:
            await self.submit_gate.wait()
        if self.fail_submit:
            raise ScoreServiceError("submit failed")
        await super().submit_score(value, leaderboard_id)

    async def load_personal_best(self, leaderboard_id: str) -> int | None:
        self.load_calls.append(leaderboard_id)
        if self.load_gate is not None:
            await self.load_gate.wait()
        if self.fail_load:
            raise ScoreServiceError("load failed")
        return await super().load_personal_best(leaderboard_id)


@pytest.fixture
def config() -> GameConfig:
    """Small deck, short grace period."""
    return GameConfig(
        pair_count=2,
        mismatch_delay=0.01,
        leaderboard_id="TestBoard",
        submit_policy=SubmitPolicy.IMPROVEMENT,
    )


@pytest.fixture
def score_service() -> ScriptedScoreService:
    return ScriptedScoreService(player_id="tester")


@pytest.fixture
def engine(score_service: ScriptedScoreService, config: GameConfig) -> GameEngine:
    """Engine with a seeded random deck; tests deal SCENARIO_SYMBOLS themselves."""
    return GameEngine(score_service, config=config, rng=random.Random(1234))


def run(coro):
    """Drive one async test scenario to completion."""
    return asyncio.run(coro)
