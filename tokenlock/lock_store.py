"""
lock_store.py - Lock Record Store

Per-account ordered collections of Lock records plus the bookkeeping that
drives compaction.

Addressing:
    Locks are addressed by (account, index). Index = position in the
    account's list = creation order. Indices are stable until the account is
    compacted; after compaction the surviving locks are renumbered from 0 in
    their original relative order. Callers must not cache indices across a
    compaction.

The store holds immutable Lock values. Updates install whole new lists, so a
caller can compute every change first and commit in one step.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple
import logging

from .core import Lock, LockNotFound, LockInvariantViolation

logger = logging.getLogger(__name__)


class LockStore:
    """
    Arena of locks, one ordered list per account.

    Also tracks, per account:
        completed_count: locks that reached released=True since the last compaction
        total_released:  cumulative amount ever released (survives compaction)

    Thread Safety:
        Not thread-safe. Calls are expected to be serialized per instance.
    """

    def __init__(self):
        self._locks: Dict[str, List[Lock]] = defaultdict(list)
        self._completed: Dict[str, int] = defaultdict(int)
        self._released: Dict[str, int] = defaultdict(int)

    # ========================================================================
    # READS
    # ========================================================================

    def locks(self, account: str) -> Tuple[Lock, ...]:
        """All locks of an account, in index order."""
        return tuple(self._locks.get(account, ()))

    def count(self, account: str) -> int:
        return len(self._locks.get(account, ()))

    def get(self, account: str, index: int) -> Lock:
        """
        Return the lock at `index`.

        Raises:
            LockNotFound: If index is out of range (negative indices included).
        """
        self.check_index(account, index)
        return self._locks[account][index]

    def check_index(self, account: str, index: int) -> None:
        count = self.count(account)
        if not isinstance(index, int) or index < 0 or index >= count:
            raise LockNotFound(account, index, count)

    def completed_count(self, account: str) -> int:
        return self._completed.get(account, 0)

    def total_released(self, account: str) -> int:
        return self._released.get(account, 0)

    def accounts(self) -> List[str]:
        """Accounts that currently hold at least one lock, sorted."""
        return sorted(a for a, locks in self._locks.items() if locks)

    # ========================================================================
    # WRITES
    # ========================================================================

    def append(self, account: str, lock: Lock) -> int:
        """Append a lock and return its index."""
        self._locks[account].append(lock)
        return len(self._locks[account]) - 1

    def commit(
        self,
        account: str,
        locks: Sequence[Lock],
        newly_completed: int = 0,
        released: int = 0,
    ) -> None:
        """
        Install an updated lock list for an account in one step.

        The new list must have the same length as the current one (use
        compact() to remove entries). Completed locks stay completed and
        released amounts never decrease, except where a lock was explicitly
        re-shaped by an amount modification that still covers what was released.

        Args:
            account: Account whose locks are replaced
            locks: New lock list, same length and order
            newly_completed: Locks that transitioned to released in this change
            released: Amount newly credited back to the spendable balance

        Raises:
            LockInvariantViolation: If the change would un-release a lock or
                shrink a released amount.
        """
        current = self._locks.get(account, [])
        if len(locks) != len(current):
            raise LockInvariantViolation(
                f"{account}: commit changes lock count {len(current)} -> {len(locks)}"
            )
        for index, (old, new) in enumerate(zip(current, locks)):
            if old.released and not new.released:
                raise LockInvariantViolation(f"{account}: lock {index} cannot be un-released")
            if new.released_amount < old.released_amount:
                raise LockInvariantViolation(
                    f"{account}: lock {index} released_amount decreased "
                    f"{old.released_amount} -> {new.released_amount}"
                )
        if newly_completed < 0 or released < 0:
            raise LockInvariantViolation(
                f"{account}: negative bookkeeping delta ({newly_completed}, {released})"
            )

        self._locks[account] = list(locks)
        self._completed[account] += newly_completed
        self._released[account] += released

    def compact(self, account: str, kept: Sequence[Lock]) -> int:
        """
        Replace an account's locks with the surviving subset and reset its completed counter.

        Returns:
            Number of locks removed.

        Raises:
            LockInvariantViolation: If an unreleased lock would be dropped.
        """
        current = self._locks.get(account, [])
        unreleased_before = [lock for lock in current if not lock.released]
        unreleased_after = [lock for lock in kept if not lock.released]
        if unreleased_before != unreleased_after:
            raise LockInvariantViolation(f"{account}: compaction would drop active locks")

        removed = len(current) - len(kept)
        self._locks[account] = list(kept)
        self._completed[account] = 0
        logger.debug("Compacted %s: removed %d, remaining %d", account, removed, len(kept))
        return removed
