"""
Session Module - Manages ephemeral game sessions.

A session represents one player at the table:
- Created when a client starts playing
- Holds the engine, which deals successive rounds
- Destroyed when the client leaves

Sessions are EPHEMERAL: nothing but the remote personal best survives them.
"""

from .manager import SessionManager, Session

__all__ = [
    "SessionManager",
    "Session",
]
