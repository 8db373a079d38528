"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Manages sessions
2. Forwards commands to the session's engine
3. Formats engine snapshots for clients

This layer is framework-agnostic. Commands are coroutines because the
engine schedules its deferred work on the running event loop.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..engine_core import GameSnapshot, RevealOutcome
from ..session import Session, SessionManager
from .schemas import (
    CreateSessionRequest,
    EndSessionResponse,
    ErrorCode,
    ErrorResponse,
    GameStateResponse,
    PendingStateName,
    RevealOutcomeName,
    RevealResponse,
    SessionResponse,
    TileInfo,
)


def session_not_found(session_id: str) -> ErrorResponse:
    return ErrorResponse(
        error=f"Session {session_id} not found",
        error_code=ErrorCode.SESSION_NOT_FOUND,
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        session = await service.create_session(CreateSessionRequest())
        result = await service.reveal(session.session_id, 0)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    async def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """Create a session, sign in to the score service, load the best."""
        session = self.session_manager.create_session(
            player_name=request.player_name,
            random_seed=request.random_seed,
        )
        await session.engine.connect()
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return session_not_found(session_id)
        return self._session_to_response(session)

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return session_not_found(session_id)
        return self._snapshot_to_response(session_id, session.engine.snapshot())

    async def reveal(self, session_id: str, index: int) -> RevealResponse | ErrorResponse:
        """
        Turn a tile face up.

        Rejected reveals are not errors: the response simply carries
        outcome=rejected and the unchanged state.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return session_not_found(session_id)
        session.touch()

        engine = session.engine
        events: dict[str, list[int]] = {}
        unsubscribers = [
            engine.matched.subscribe(lambda pair: events.__setitem__("matched", list(pair))),
            engine.mismatched.subscribe(lambda pair: events.__setitem__("mismatched", list(pair))),
        ]
        try:
            outcome = engine.reveal(index)
        finally:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return RevealResponse(
            outcome=RevealOutcomeName(outcome.value),
            accepted=outcome is not RevealOutcome.REJECTED,
            matched=events.get("matched"),
            mismatched=events.get("mismatched"),
            state=self._snapshot_to_response(session_id, engine.snapshot()),
        )

    async def new_game(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return session_not_found(session_id)
        session.touch()
        session.engine.new_game()
        return self._snapshot_to_response(session_id, session.engine.snapshot())

    async def connect(self, session_id: str) -> SessionResponse | ErrorResponse:
        """Retry sign-in for a session that started (or fell) offline."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return session_not_found(session_id)
        session.touch()
        await session.engine.connect()
        return self._session_to_response(session)

    def end_session(self, session_id: str) -> EndSessionResponse:
        success = self.session_manager.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_sessions()

    # =========================================================================
    # Conversion helpers
    # =========================================================================

    def _session_to_response(self, session: Session) -> SessionResponse:
        return SessionResponse(
            session_id=session.session_id,
            player_name=session.player_name,
            created_at=session.created_at,
            state=self._snapshot_to_response(session.session_id, session.engine.snapshot()),
        )

    def _snapshot_to_response(self, session_id: str, snapshot: GameSnapshot) -> GameStateResponse:
        tiles = [
            TileInfo(
                position=i,
                tile_id=tile.tile_id,
                symbol=tile.symbol if tile.face_up else None,
                face_up=tile.face_up,
                matched=tile.matched,
            )
            for i, tile in enumerate(snapshot.tiles)
        ]
        return GameStateResponse(
            session_id=session_id,
            generation=snapshot.generation,
            tiles=tiles,
            move_count=snapshot.move_count,
            is_won=snapshot.is_won,
            personal_best=snapshot.personal_best,
            pending=list(snapshot.pending),
            pending_state=PendingStateName(snapshot.pending_state.value),
            total_pairs=snapshot.total_pairs,
            pairs_solved=snapshot.pairs_solved,
            progress=snapshot.progress,
            is_authenticated=snapshot.is_authenticated,
        )
