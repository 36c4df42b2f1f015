"""
auto_release.py - Auto-Release Trigger

Commits due releases lazily: whenever tokens are about to leave an account
(transfer, transfer_from, burn) or a release is requested explicitly.

This module computes, it does not mutate. compute_release() returns the
updated locks and the notifications to record; the caller installs them in
the LockStore only after every check passed. That is what makes a rejected
debit leave no trace.

Flow for a debit of `amount` from `account`:
    1. balance < amount            -> do nothing, the ledger raises InsufficientFunds
    2. outcome = compute_release(account, locks, now)
    3. check_debit_allowed(account, balance, outcome.locks, now, amount)
         spendable = balance - committed_locked(outcome.locks)
         spendable < amount        -> InsufficientGraduallyReleasedBalance / InsufficientUnlockedBalance
    4. commit outcome, record notifications, auto cleanup if threshold reached
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Tuple
import logging

from .core import (
    Lock,
    InsufficientUnlockedBalance, InsufficientGraduallyReleasedBalance,
    LockInvariantViolation,
)
from .release_policy import evaluate_lock, is_gradual_in_progress
from .reconciler import calculate_committed_locked, calculate_next_release_time
from .events import Notification, tokens_unlocked, tokens_gradually_released

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    """
    Result of applying due releases to an account's locks.

    Attributes:
        locks: Full lock list after the release, same length and order as the input
        released_total: Sum released across all touched locks
        newly_completed: Locks that reached released=True in this pass
        notifications: One release notification per touched lock, in index order
    """
    locks: Tuple[Lock, ...]
    released_total: int
    newly_completed: int
    notifications: Tuple[Notification, ...]

    def is_empty(self) -> bool:
        return self.released_total == 0


def release_lock(lock: Lock, amount: int) -> Lock:
    """Return a copy of `lock` with `amount` more released."""
    released_amount = lock.released_amount + amount
    if released_amount > lock.amount:
        raise LockInvariantViolation(
            f"release of {amount} would exceed lock amount {lock.amount} "
            f"(already released {lock.released_amount})"
        )
    return replace(
        lock,
        released_amount=released_amount,
        released=released_amount == lock.amount,
    )


def compute_release(
    account: str,
    locks: Sequence[Lock],
    now: int,
    indices: Optional[Iterable[int]] = None,
    cliff_only: bool = False,
) -> ReleaseOutcome:
    """
    Apply every due release to the selected locks.

    PURE FUNCTION - All inputs explicit, returns new values.

    Args:
        account: Owner of the locks (for notifications)
        locks: The account's full lock list
        now: Current time
        indices: Restrict to these lock indices (None = all locks)
        cliff_only: Skip gradual locks entirely

    Returns:
        ReleaseOutcome. Untouched locks are carried over unchanged.

    Example:
        # 30000 locked on a 10-day/2-day schedule, evaluated at release_time
        outcome = compute_release("alice", [lock], T)
        outcome.released_total         # 6000
        outcome.notifications[0].kind  # "TokensGraduallyReleased"
    """
    selected = set(range(len(locks))) if indices is None else set(indices)

    updated: List[Lock] = []
    notifications: List[Notification] = []
    released_total = 0
    newly_completed = 0

    for index, lock in enumerate(locks):
        if index not in selected or lock.released or (cliff_only and lock.is_gradual):
            updated.append(lock)
            continue

        available = evaluate_lock(lock, now).available_now
        if available == 0:
            updated.append(lock)
            continue

        new_lock = release_lock(lock, available)
        updated.append(new_lock)
        released_total += available
        if new_lock.released:
            newly_completed += 1

        if lock.is_gradual:
            notifications.append(tokens_gradually_released(now, account, available, index))
        else:
            notifications.append(tokens_unlocked(now, account, available, index))

    return ReleaseOutcome(
        locks=tuple(updated),
        released_total=released_total,
        newly_completed=newly_completed,
        notifications=tuple(notifications),
    )


def check_debit_allowed(
    account: str,
    balance: int,
    locks_after: Sequence[Lock],
    now: int,
    requested: int,
) -> int:
    """
    Check that `requested` can leave the account once due releases are applied.

    Args:
        account: Account being debited
        balance: Nominal ledger balance
        locks_after: Lock list after compute_release()
        now: Current time
        requested: Amount about to be debited

    Returns:
        The spendable balance.

    Raises:
        InsufficientGraduallyReleasedBalance: Short, and some gradual lock is mid-release.
        InsufficientUnlockedBalance: Short, and nothing more is eligible for release yet.
    """
    locked = calculate_committed_locked(locks_after)
    spendable = balance - locked
    if spendable >= requested:
        return spendable

    available = max(0, spendable)
    if any(is_gradual_in_progress(lock, now) for lock in locks_after):
        next_release = calculate_next_release_time(locks_after, now)
        logger.warning(
            "Debit of %d from %s rejected: available %d, locked %d, next release at %d",
            requested, account, available, locked, next_release,
        )
        raise InsufficientGraduallyReleasedBalance(account, requested, available, locked, next_release)

    logger.warning(
        "Debit of %d from %s rejected: available %d, locked %d",
        requested, account, available, locked,
    )
    raise InsufficientUnlockedBalance(account, requested, available, locked)
