"""
reconciler.py - Balance Reconciler

Aggregates lock state into account-level answers: how much is locked, how
much is spendable, what is about to be released.

Every function here is pure and idempotent: it takes the nominal balance and
the account's locks as explicit inputs and never mutates anything. Committing
releases is the job of the auto-release path.

Two views of "locked":
    committed  = sum(amount - released_amount)     what the store records now
    effective  = sum(amount - total_releasable)    what stays locked once every
                                                   due release is applied
The difference between them is the pending release.
"""

from __future__ import annotations
from typing import Sequence

from .core import Lock, DetailedBalance
from .release_policy import evaluate_lock


def calculate_committed_locked(locks: Sequence[Lock]) -> int:
    """Sum of unreleased remainders as recorded, ignoring what is due."""
    return sum(lock.remaining for lock in locks if not lock.released)


def calculate_locked_amount(locks: Sequence[Lock], now: int) -> int:
    """
    Amount that remains locked at `now` after every due release.

    PURE FUNCTION - All inputs explicit, no hidden state.
    """
    locked = 0
    for lock in locks:
        if lock.released:
            continue
        locked += lock.amount - evaluate_lock(lock, now).total_releasable
    return locked


def calculate_pending_release(locks: Sequence[Lock], now: int) -> int:
    """Sum of amounts that are due but not yet committed."""
    return sum(evaluate_lock(lock, now).available_now for lock in locks if not lock.released)


def calculate_next_release_time(locks: Sequence[Lock], now: int) -> int:
    """Earliest upcoming release across all locks, or 0 if none is scheduled."""
    upcoming = [
        status.next_release_time
        for status in (evaluate_lock(lock, now) for lock in locks if not lock.released)
        if status.next_release_time > 0
    ]
    return min(upcoming) if upcoming else 0


def calculate_available_balance(balance: int, locks: Sequence[Lock], now: int) -> int:
    """
    Spendable balance at `now`: nominal balance minus what stays locked.

    Floors at 0 when locks exceed the balance (locks can be created over
    tokens the account does not hold yet).
    """
    return max(0, balance - calculate_locked_amount(locks, now))


def calculate_detailed_balance(balance: int, locks: Sequence[Lock], now: int) -> DetailedBalance:
    """
    Full balance breakdown for an account.

    PURE FUNCTION - All inputs explicit, no hidden state.

    Key Formulas:
        currently_locked = sum(amount - released_amount) over unreleased locks
        pending_release  = sum(available_now) over unreleased locks
        available_now    = total_balance - currently_locked + pending_release

    Args:
        balance: Nominal ledger balance
        locks: The account's locks
        now: Current time

    Returns:
        DetailedBalance with all five figures.

    Example:
        # 100000 balance, one 30000 lock on a 10-day/2-day schedule, at release_time
        d = calculate_detailed_balance(100000, [lock], T)
        d.currently_locked  # 30000
        d.pending_release   # 6000
        d.available_now     # 76000
    """
    currently_locked = 0
    pending_release = 0
    upcoming = []
    for lock in locks:
        if lock.released:
            continue
        status = evaluate_lock(lock, now)
        currently_locked += lock.remaining
        pending_release += status.available_now
        if status.next_release_time > 0:
            upcoming.append(status.next_release_time)

    return DetailedBalance(
        total_balance=balance,
        currently_locked=currently_locked,
        available_now=max(0, balance - currently_locked + pending_release),
        pending_release=pending_release,
        next_release_time=min(upcoming) if upcoming else 0,
    )
