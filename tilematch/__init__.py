"""
Tilematch - Concentration puzzle engine

A single-player tile-matching game core. The engine provides:
- Deck generation (shuffled symbol pairs)
- The reveal / match / mismatch state machine
- Move counting and win detection
- Personal-best reconciliation against a remote leaderboard service
"""

__version__ = "0.1.0"
