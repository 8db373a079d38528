"""
Errors - Exception hierarchy for the engine and its collaborators.

Invalid player commands are NOT errors: a bad reveal is a silent no-op.
Exceptions are reserved for configuration bugs and external-service failures.
"""


class TileMatchError(Exception):
    """Base class for all tilematch errors."""


class DeckConfigurationError(TileMatchError, ValueError):
    """
    A deck was requested that the symbol alphabet cannot satisfy.

    This is a programmer error (bad configuration), raised at
    construction time and never recovered from.
    """


class ScoreServiceError(TileMatchError):
    """A leaderboard call failed (network, backend, missing board)."""


class NotAuthenticatedError(ScoreServiceError):
    """The local player is not signed in to the score service."""
