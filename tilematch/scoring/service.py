"""
Score Service - Interface to the external leaderboard.

The service is an external actor:
- Every call is asynchronous and may fail
- It shares no mutable state with the engine beyond return values
- The engine receives it by reference (no global manager)

Failures are signalled by raising ScoreServiceError; the engine catches
them at its boundary and turns them into "no update".
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AuthState:
    """
    Result of an authentication attempt.

    `player_id` is only set when authenticated.
    `error` carries the backend's reason when sign-in failed.
    """
    authenticated: bool
    player_id: str | None = None
    error: str | None = None

    @classmethod
    def signed_in(cls, player_id: str) -> AuthState:
        return cls(authenticated=True, player_id=player_id)

    @classmethod
    def signed_out(cls, error: str | None = None) -> AuthState:
        return cls(authenticated=False, error=error)


class ScoreService(ABC):
    """
    Abstract leaderboard backend.

    Implementations must treat "no recorded score" as None, never as 0.
    """

    @abstractmethod
    async def authenticate(self) -> AuthState:
        """
        Sign the local player in.

        May involve external UI; the engine only observes the result.
        Should report failure through the returned AuthState rather than raise.
        """

    @abstractmethod
    async def submit_score(self, value: int, leaderboard_id: str) -> None:
        """
        Record a score on a leaderboard.

        Raises:
            NotAuthenticatedError: if the player is not signed in
            ScoreServiceError: on any other failure
        """

    @abstractmethod
    async def load_personal_best(self, leaderboard_id: str) -> int | None:
        """
        Fetch the player's lowest recorded score.

        Returns None when the player has no score on the board.

        Raises:
            NotAuthenticatedError: if the player is not signed in
            ScoreServiceError: on any other failure
        """
