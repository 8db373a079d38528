"""
Score reconciliation - Pure rules for merging local and remote bests.

Lower is better. A remote "no score" (None) never overwrites a known
value and is never read as zero.
"""

from __future__ import annotations
from enum import Enum


class SubmitPolicy(str, Enum):
    """When a winning move count is sent to the leaderboard."""
    IMPROVEMENT = "improvement"  # Only when it beats the known best
    ALWAYS = "always"  # Every win; the backend keeps the minimum


class SyncPhase(Enum):
    """Progress of one post-win score round trip."""
    IDLE = "idle"
    SUBMITTING = "submitting"
    RELOADING = "reloading"


def reconcile_best(current: int | None, incoming: int | None) -> int | None:
    """
    Merge an incoming best into the current one.

    Returns min(current, incoming), treating None as "unknown".
    """
    if incoming is None:
        return current
    if current is None:
        return incoming
    return min(current, incoming)


def is_improvement(candidate: int, best: int | None) -> bool:
    """True if `candidate` beats `best` (or no best is known yet)."""
    return best is None or candidate < best


def should_submit(policy: SubmitPolicy, candidate: int, best: int | None) -> bool:
    if policy is SubmitPolicy.ALWAYS:
        return True
    return is_improvement(candidate, best)
