"""
lifecycle.py - Lock Lifecycle Manager

Validation and transformation for creating and modifying locks.

PURE FUNCTIONS - All inputs explicit, no store access. Each function either
raises a LockValidationError or returns the new immutable Lock value. The
token facade installs the result only after every check passed, so a
rejected call changes nothing.

Modification rules:
    amount        >= released_amount and > 0; equal to released_amount completes the lock
    release_time  strictly in the future
    gradual config validated like at creation, applied prospectively
    released locks are terminal and cannot be modified

Already released portions are never clawed back. The release schedule is
re-evaluated against the (possibly new) release_time anchor, and the floor
max(schedule, released_amount) in the release policy keeps it from moving
backwards.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional, Tuple

from .core import (
    Lock, GradualReleaseConfig,
    InvalidLockAmount, InvalidReleaseTime, LockAlreadyReleased,
)
from .release_policy import validate_gradual_config


def _require_int(name: str, value, error):
    if not isinstance(value, int) or isinstance(value, bool):
        raise error(f"{name} must be int, got {type(value).__name__}")


def _require_active(account: str, index: int, lock: Lock) -> None:
    if lock.released:
        raise LockAlreadyReleased(account, index)


# ============================================================================
# CREATION
# ============================================================================

def compute_new_lock(
    amount: int,
    release_time: int,
    config: GradualReleaseConfig,
    now: int,
) -> Lock:
    """
    Build a fresh lock.

    Args:
        amount: Quantity to lock (> 0)
        release_time: Cliff time, not in the past (release_time == now is allowed)
        config: Release policy, already resolved (explicit or the token default)
        now: Current time

    Raises:
        InvalidLockAmount: amount <= 0 or not an int
        InvalidReleaseTime: release_time < now
        InvalidGradualReleaseConfig: config enabled but unusable
    """
    _require_int("amount", amount, InvalidLockAmount)
    if amount <= 0:
        raise InvalidLockAmount(f"Lock amount must be positive, got {amount}")
    _require_int("release_time", release_time, InvalidReleaseTime)
    if release_time < now:
        raise InvalidReleaseTime(f"release_time {release_time} is in the past (now {now})")
    validate_gradual_config(config)
    return Lock(amount=amount, release_time=release_time, gradual_config=config)


# ============================================================================
# MODIFICATION
# ============================================================================

def compute_modified_amount(account: str, index: int, lock: Lock, new_amount: int) -> Lock:
    """
    Change the locked quantity.

    Setting new_amount == released_amount completes the lock; callers should
    count it as a completion.
    """
    _require_active(account, index, lock)
    _require_int("new_amount", new_amount, InvalidLockAmount)
    if new_amount <= 0:
        raise InvalidLockAmount(f"Lock amount must be positive, got {new_amount}")
    if new_amount < lock.released_amount:
        raise InvalidLockAmount(
            f"new amount {new_amount} is below already released {lock.released_amount}"
        )
    return replace(lock, amount=new_amount, released=new_amount == lock.released_amount)


def compute_modified_release_time(
    account: str,
    index: int,
    lock: Lock,
    new_release_time: int,
    now: int,
) -> Lock:
    """Move the cliff. The new time must be strictly after now."""
    _require_active(account, index, lock)
    _require_int("new_release_time", new_release_time, InvalidReleaseTime)
    if new_release_time <= now:
        raise InvalidReleaseTime(
            f"new release_time {new_release_time} must be in the future (now {now})"
        )
    return replace(lock, release_time=new_release_time)


def compute_modified_config(
    account: str,
    index: int,
    lock: Lock,
    new_config: GradualReleaseConfig,
) -> Lock:
    """Swap the release policy. release_time stays the anchor."""
    _require_active(account, index, lock)
    validate_gradual_config(new_config)
    return replace(lock, gradual_config=new_config)


def compute_modified_lock(
    account: str,
    index: int,
    lock: Lock,
    new_amount: int,
    new_release_time: int,
    new_config: Optional[GradualReleaseConfig],
    now: int,
    apply_config: bool = True,
) -> Lock:
    """
    Composite modification: amount, release time and (optionally) policy.

    All three are validated before anything is returned. With
    apply_config=False (or new_config=None) the policy is left untouched.

    Raises:
        LockAlreadyReleased, InvalidLockAmount, InvalidReleaseTime,
        InvalidGradualReleaseConfig
    """
    modified = compute_modified_release_time(account, index, lock, new_release_time, now)
    if apply_config and new_config is not None:
        modified = compute_modified_config(account, index, modified, new_config)
    return compute_modified_amount(account, index, modified, new_amount)


def compute_extended_lock(
    account: str,
    index: int,
    lock: Lock,
    new_release_time: int,
    now: int,
) -> Tuple[Lock, int]:
    """
    Push the release time later.

    Returns:
        (new_lock, old_release_time)

    Raises:
        InvalidReleaseTime: new time not after the current release_time, or not in the future
    """
    _require_active(account, index, lock)
    _require_int("new_release_time", new_release_time, InvalidReleaseTime)
    if new_release_time <= lock.release_time:
        raise InvalidReleaseTime(
            f"new release_time {new_release_time} must be after current {lock.release_time}"
        )
    return compute_modified_release_time(account, index, lock, new_release_time, now), lock.release_time
