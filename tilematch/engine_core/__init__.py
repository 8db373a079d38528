"""
Engine Core - Deck generation and the concentration state machine.

The engine:
1. Deals a shuffled deck of symbol pairs
2. Accepts reveal commands and resolves pairs
3. Hides mismatches after a grace period
4. Detects the win and reconciles the personal best
"""

from .state import Tile, TileView, GameSnapshot, PendingState, RevealOutcome
from .deck import DEFAULT_ALPHABET, generate_deck, deck_from_symbols, validate_alphabet
from .events import EventChannel
from .engine import GameEngine

__all__ = [
    "Tile",
    "TileView",
    "GameSnapshot",
    "PendingState",
    "RevealOutcome",
    "DEFAULT_ALPHABET",
    "generate_deck",
    "deck_from_symbols",
    "validate_alphabet",
    "EventChannel",
    "GameEngine",
]
