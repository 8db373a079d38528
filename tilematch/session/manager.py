"""
Session Manager - Creates and tracks engine sessions.

A session is one player's engine plus its score service:
- Created when a client starts playing
- Holds the live GameEngine (which deals new rounds itself)
- Destroyed when the client leaves or the session goes stale

PERSISTENCE RULES:
- Sessions are in-memory only
- One score service per player name, shared by all of that player's
  sessions, so a best recorded in one session is loaded by the next
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import logging
import random
import time
import uuid

from ..config import GameConfig
from ..engine_core import GameEngine
from ..scoring import InMemoryScoreService, ScoreService

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """
    An ephemeral game session.

    `last_active` is refreshed on every command and drives stale cleanup.
    """
    session_id: str
    player_name: str
    engine: GameEngine
    created_at: float
    last_active: float = 0.0

    def touch(self):
        self.last_active = time.time()


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions (one engine each, one score service per player)
    - Track active sessions
    - Clean up ended and stale sessions
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        score_service_factory: Callable[[str], ScoreService] | None = None,
    ):
        self.config = config or GameConfig()
        self.score_service_factory = score_service_factory or (
            lambda player_name: InMemoryScoreService(player_id=player_name)
        )
        self._sessions: dict[str, Session] = {}
        self._score_services: dict[str, ScoreService] = {}

    def create_session(
        self,
        player_name: str = "Player",
        random_seed: int | None = None,
    ) -> Session:
        """
        Create a new session with a freshly dealt deck.

        The caller is responsible for awaiting `session.engine.connect()`.
        """
        session_id = str(uuid.uuid4())
        rng = random.Random(random_seed) if random_seed is not None else None

        engine = GameEngine(
            score_service=self.score_service_for(player_name),
            config=self.config,
            rng=rng,
        )

        now = time.time()
        session = Session(
            session_id=session_id,
            player_name=player_name,
            engine=engine,
            created_at=now,
            last_active=now,
        )
        self._sessions[session_id] = session
        logger.info("Session %s created for %s", session_id, player_name)
        return session

    def score_service_for(self, player_name: str) -> ScoreService:
        """Get the player's score service, creating it on first use."""
        service = self._score_services.get(player_name)
        if service is None:
            service = self.score_service_factory(player_name)
            self._score_services[player_name] = service
        return service

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """
        End a session and cancel its deferred work.

        Returns False if the session did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False
        session.engine.close()
        logger.info("Session %s ended", session_id)
        return True

    def list_sessions(self) -> list[str]:
        """List IDs of live sessions."""
        return list(self._sessions.keys())

    def cleanup_stale_sessions(self, max_idle_seconds: int = 3600) -> int:
        """
        End sessions idle for longer than max_idle_seconds.

        Returns the number of sessions removed.
        """
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.last_active > max_idle_seconds
        ]
        for session_id in stale:
            self.end_session(session_id)
        return len(stale)
