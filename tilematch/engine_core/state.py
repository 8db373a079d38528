"""
Game State - Tiles, the pending-pair sub-machine, and read-only snapshots.

Design principles:
- The engine owns the only mutable copy of the tiles
- Collaborators only ever see frozen copies (TileView / GameSnapshot)
- `matched` and `is_won` are monotonic within a session
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import uuid


class PendingState(Enum):
    """State of the pending-pair sub-machine."""
    IDLE = "idle"  # Nothing revealed-but-unconfirmed
    ONE_UP = "one_up"  # One tile waiting for its partner
    RESOLVING = "resolving"  # Two tiles up, mismatch waiting to be hidden

    @classmethod
    def for_pending(cls, count: int) -> PendingState:
        if count == 0:
            return cls.IDLE
        if count == 1:
            return cls.ONE_UP
        return cls.RESOLVING


class RevealOutcome(Enum):
    """What a single reveal command did."""
    REJECTED = "rejected"
    FIRST = "first"
    MATCH = "match"
    MISMATCH = "mismatch"

    @property
    def accepted(self) -> bool:
        return self is not RevealOutcome.REJECTED


@dataclass
class Tile:
    """
    A tile in the live deck.

    `tile_id` is unique for the lifetime of one deck.
    Two tiles in every deck share each symbol.
    """
    symbol: str
    tile_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    face_up: bool = False
    matched: bool = False

    @property
    def is_pending(self) -> bool:
        """Face-up but not yet confirmed as part of a pair."""
        return self.face_up and not self.matched

    def view(self) -> TileView:
        return TileView(
            tile_id=self.tile_id,
            symbol=self.symbol,
            face_up=self.face_up,
            matched=self.matched,
        )


@dataclass(frozen=True)
class TileView:
    """Immutable copy of a tile handed to collaborators."""
    tile_id: str
    symbol: str
    face_up: bool
    matched: bool


@dataclass(frozen=True)
class GameSnapshot:
    """
    Polled view of a session at one instant.

    Contains:
    - Tiles in position order
    - Move counter and win flag
    - The reconciled personal best (None until known)
    - Progress metrics for the UI
    """
    generation: int
    tiles: tuple[TileView, ...]
    move_count: int
    is_won: bool
    personal_best: int | None
    pending: tuple[int, ...]
    pending_state: PendingState
    is_authenticated: bool = False

    @property
    def total_pairs(self) -> int:
        return len(self.tiles) // 2

    @property
    def pairs_solved(self) -> int:
        return sum(1 for t in self.tiles if t.matched) // 2

    @property
    def progress(self) -> float:
        """Fraction of tiles matched, 0.0 for an empty deck."""
        if not self.tiles:
            return 0.0
        return sum(1 for t in self.tiles if t.matched) / len(self.tiles)
