"""
In-memory score service - Offline leaderboard backend.

Keeps the lowest score per leaderboard id for a single local player.
Nothing is persisted; a fresh instance starts with empty boards.
"""

from __future__ import annotations
import logging

from ..errors import NotAuthenticatedError
from .service import AuthState, ScoreService

logger = logging.getLogger(__name__)


class InMemoryScoreService(ScoreService):
    """
    ScoreService backed by a dict.

    Usage:
        service = InMemoryScoreService(player_id="local")
        await service.authenticate()
        await service.submit_score(18, "KingOfTheHill")
        await service.load_personal_best("KingOfTheHill")  # -> 18
    """

    def __init__(self, player_id: str = "local", can_authenticate: bool = True):
        self.player_id = player_id
        self.can_authenticate = can_authenticate
        self.is_authenticated = False
        self._boards: dict[str, int] = {}

    def seed(self, leaderboard_id: str, value: int):
        """Preload a recorded best (e.g. from an earlier run)."""
        self._boards[leaderboard_id] = value

    def recorded_best(self, leaderboard_id: str) -> int | None:
        return self._boards.get(leaderboard_id)

    async def authenticate(self) -> AuthState:
        if not self.can_authenticate:
            self.is_authenticated = False
            return AuthState.signed_out("Sign-in unavailable")
        self.is_authenticated = True
        return AuthState.signed_in(self.player_id)

    async def submit_score(self, value: int, leaderboard_id: str) -> None:
        self._require_auth()
        best = self._boards.get(leaderboard_id)
        if best is None or value < best:
            self._boards[leaderboard_id] = value
        logger.debug("Recorded %d on %s (best %d)", value, leaderboard_id, self._boards[leaderboard_id])

    async def load_personal_best(self, leaderboard_id: str) -> int | None:
        self._require_auth()
        return self._boards.get(leaderboard_id)

    def _require_auth(self):
        if not self.is_authenticated:
            raise NotAuthenticatedError(f"Player {self.player_id} is not signed in")
