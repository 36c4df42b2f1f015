"""
cleanup.py - Compaction of completed locks

Fully released locks carry no balance effect; they only cost iteration time
on every evaluation. Compaction drops them and renumbers the survivors.

Rules:
    - Only locks with released=True are removed.
    - Survivors keep their relative order (index order = creation order).
    - The completed-lock counter restarts at 0.
"""

from __future__ import annotations
from typing import Sequence, Tuple

from .core import Lock, AutoCleanupConfig


def compact_locks(locks: Sequence[Lock]) -> Tuple[Tuple[Lock, ...], int]:
    """
    Split a lock list into the surviving locks and the number removed.

    PURE FUNCTION - returns new values, never drops an unreleased lock.

    Returns:
        (kept, removed_count)
    """
    kept = tuple(lock for lock in locks if not lock.released)
    return kept, len(locks) - len(kept)


def should_auto_cleanup(config: AutoCleanupConfig, completed_count: int) -> bool:
    """True when auto cleanup is on and the completed counter reached the threshold."""
    return config.enabled and config.threshold > 0 and completed_count >= config.threshold
