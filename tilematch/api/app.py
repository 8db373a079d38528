"""
FastAPI Application - REST API for game clients.

Endpoints:
    GET    /health                              Liveness check
    POST   /api/v1/sessions                     Create session (deals a round)
    GET    /api/v1/sessions                     List sessions
    GET    /api/v1/sessions/{id}                Get session
    DELETE /api/v1/sessions/{id}                End session
    GET    /api/v1/sessions/{id}/state          Get current round state
    POST   /api/v1/sessions/{id}/connect        Retry score service sign-in
    POST   /api/v1/sessions/{id}/new-game       Deal a new round
    POST   /api/v1/sessions/{id}/reveal         Reveal a tile

A mismatched pair stays face up for the configured grace period;
clients poll /state (or simply reveal again) to see it hidden.
"""

from typing import Optional, Union
import logging

from .. import __version__
from ..config import GameConfig, get_config

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_app(service=None, config: Optional[GameConfig] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        config: Optional GameConfig (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from ..session import SessionManager
    from .service import APIService
    from .schemas import (
        CreateSessionRequest,
        EndSessionResponse,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        RevealRequest,
        RevealResponse,
        SessionListResponse,
        SessionResponse,
    )

    config = config or get_config()
    configure_logging(config.debug)

    app = FastAPI(
        title="Tilematch API",
        description="Concentration puzzle engine with personal-best tracking.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(session_manager=SessionManager(config=config))

    def error_json(error: ErrorResponse, status_code: int = 404) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(
            version=__version__,
            active_sessions=len(api_service.list_sessions()),
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(body: Optional[CreateSessionRequest] = None) -> SessionResponse:
        """Create a session, deal the first round and load the personal best."""
        return await api_service.create_session(body or CreateSessionRequest())

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return error_json(response)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        return api_service.end_session(session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the current round",
    )
    async def get_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return error_json(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/connect",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Retry score service sign-in",
    )
    async def connect(session_id: str) -> Union[SessionResponse, JSONResponse]:
        response = await api_service.connect(session_id)
        if isinstance(response, ErrorResponse):
            return error_json(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/new-game",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Deal a new round",
    )
    async def new_game(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        response = await api_service.new_game(session_id)
        if isinstance(response, ErrorResponse):
            return error_json(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/reveal",
        response_model=RevealResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Reveal a tile",
    )
    async def reveal(session_id: str, body: RevealRequest) -> Union[RevealResponse, JSONResponse]:
        """
        Turn the tile at `index` face up.

        Invalid reveals (bad index, tile already up, pair still resolving)
        return `outcome=rejected` with the unchanged state.
        """
        response = await api_service.reveal(session_id, body.index)
        if isinstance(response, ErrorResponse):
            return error_json(response)
        return response

    return app
