"""
Pydantic Schemas for API - Request/response models for OpenAPI.

Face-down tiles never expose their symbol: `symbol` is only set
while a tile is face up (revealed, mismatched-and-waiting, or matched).

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- VALIDATION_ERROR: Request body is malformed
- INTERNAL_ERROR: Unexpected server failure
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PendingStateName(str, Enum):
    """State of the pending-pair sub-machine."""
    IDLE = "idle"
    ONE_UP = "one_up"
    RESOLVING = "resolving"


class RevealOutcomeName(str, Enum):
    """What a reveal command did."""
    REJECTED = "rejected"
    FIRST = "first"
    MATCH = "match"
    MISMATCH = "mismatch"


# =============================================================================
# Shared Models
# =============================================================================

class TileInfo(BaseModel):
    """A tile at one grid position."""
    position: int
    tile_id: str
    symbol: Optional[str] = Field(None, description="Only set while the tile is face up")
    face_up: bool = False
    matched: bool = False


class GameStateResponse(BaseModel):
    """Full state of a session's current round."""
    session_id: str
    generation: int = Field(description="Round number within the session")
    tiles: list[TileInfo] = Field(default_factory=list)
    move_count: int = 0
    is_won: bool = False
    personal_best: Optional[int] = None
    pending: list[int] = Field(default_factory=list)
    pending_state: PendingStateName = PendingStateName.IDLE
    total_pairs: int = 0
    pairs_solved: int = 0
    progress: float = Field(0.0, ge=0.0, le=1.0)
    is_authenticated: bool = False


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    player_name: str = Field("Player", min_length=1, description="Display name")
    random_seed: Optional[int] = Field(None, description="Seed for reproducible deals")


class RevealRequest(BaseModel):
    """Request to turn a tile face up."""
    index: int = Field(..., description="Grid position; invalid positions are ignored")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict] = None


class SessionResponse(BaseModel):
    """A session and its current round."""
    session_id: str
    player_name: str
    created_at: float
    state: GameStateResponse


class RevealResponse(BaseModel):
    """Result of a reveal command."""
    outcome: RevealOutcomeName
    accepted: bool
    matched: Optional[list[int]] = Field(None, description="Pair confirmed by this reveal")
    mismatched: Optional[list[int]] = Field(
        None, description="Pair that will be hidden after the grace period"
    )
    state: GameStateResponse


class SessionListResponse(BaseModel):
    """List of live session IDs."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Result of ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    active_sessions: int = 0
