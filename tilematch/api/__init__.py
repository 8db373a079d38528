"""
API Module - HTTP interface for game clients.

Exposes the engine via REST:
1. Clients create a session (a round is dealt immediately)
2. Clients reveal tiles and receive the outcome plus the new state
3. Clients deal new rounds at any time

All state is session-scoped. The personal best comes from the score service.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    RevealRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    RevealResponse,
    ErrorResponse,
    # Shared
    TileInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    "CreateSessionRequest",
    "RevealRequest",
    "SessionResponse",
    "GameStateResponse",
    "RevealResponse",
    "ErrorResponse",
    "TileInfo",
    "ErrorCode",
    "APIService",
    "create_app",
]
