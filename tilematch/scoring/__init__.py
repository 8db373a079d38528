"""Score service facade and personal-best reconciliation."""

from .service import ScoreService, AuthState
from .reconcile import SubmitPolicy, SyncPhase, reconcile_best, is_improvement, should_submit
from .memory import InMemoryScoreService

__all__ = [
    "ScoreService",
    "AuthState",
    "SubmitPolicy",
    "SyncPhase",
    "reconcile_best",
    "is_improvement",
    "should_submit",
    "InMemoryScoreService",
]
