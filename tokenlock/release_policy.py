"""
release_policy.py - Release Policy Evaluator

Pure functions that decide how much of a lock is releasable at a given instant.
No ledger access, no hidden state: every input is a parameter.

Two policies share one model:
    Cliff   (gradual_config.enabled is False): everything at release_time.
    Gradual (gradual_config.enabled is True):  equal slices per interval, the
            first slice available at release_time itself.

Key Formulas (gradual):
    elapsed          = now - release_time
    total_intervals  = ceil(duration / interval)
    n                = min(elapsed // interval + 1, total_intervals)
    schedule         = amount                              if elapsed >= duration
                     = min(amount, amount * n // total_intervals)   otherwise
    total_releasable = max(schedule, released_amount)
    available_now    = total_releasable - released_amount

Multiplying before dividing keeps small amounts exact. Missed intervals are
folded into a single evaluation (catch-up) and can never be released twice,
because available_now is always measured against released_amount.
"""

from __future__ import annotations

from .core import (
    GradualReleaseConfig, Lock, ReleaseStatus,
    InvalidGradualReleaseConfig, LockInvariantViolation,
)


def validate_gradual_config(config: GradualReleaseConfig) -> GradualReleaseConfig:
    """
    Check that a config can drive a release schedule.

    Disabled (cliff) configs are accepted as-is. Enabled configs need
    0 < interval <= duration.

    Returns:
        The same config, for chaining.

    Raises:
        InvalidGradualReleaseConfig: If enabled and the interval/duration pair is unusable.
    """
    if not config.enabled:
        return config
    if config.duration <= 0:
        raise InvalidGradualReleaseConfig(
            f"duration must be positive, got {config.duration}"
        )
    if config.interval <= 0:
        raise InvalidGradualReleaseConfig(
            f"interval must be positive, got {config.interval}"
        )
    if config.interval > config.duration:
        raise InvalidGradualReleaseConfig(
            f"interval {config.interval} exceeds duration {config.duration}"
        )
    return config


def total_intervals(config: GradualReleaseConfig) -> int:
    """Number of release slices, ceil(duration / interval)."""
    return -(-config.duration // config.interval)


def _completed_intervals(config: GradualReleaseConfig, elapsed: int) -> int:
    # The first slice opens at elapsed == 0.
    return min(elapsed // config.interval + 1, total_intervals(config))


def calculate_scheduled_release(lock: Lock, now: int) -> int:
    """
    Cumulative amount the schedule unlocks at `now`, ignoring what was already released.

    PURE FUNCTION - All inputs explicit, no hidden state.
    """
    if now < lock.release_time:
        return 0

    config = lock.gradual_config
    if not config.enabled:
        return lock.amount

    elapsed = now - lock.release_time
    if elapsed >= config.duration:
        return lock.amount

    n = _completed_intervals(config, elapsed)
    return min(lock.amount, lock.amount * n // total_intervals(config))


def calculate_next_release_time(lock: Lock, now: int) -> int:
    """
    Timestamp of the next boundary at which something new unlocks, or 0 when
    nothing more is scheduled.

    Boundaries where the schedule stays at or below what is already
    releasable are skipped: after a slower policy is applied the lock can
    sit ahead of its schedule for several intervals, and small amounts
    round down to the same slice across boundaries.

    Key Formulas:
        R = max(schedule(now), released_amount)
        k = ceil((R + 1) * total_intervals / amount)   first slice with amount * k // total > R
        next_release_time = release_time + (k - 1) * interval
    """
    if lock.released:
        return 0

    config = lock.gradual_config
    if not config.enabled:
        return lock.release_time if now < lock.release_time else 0

    releasable = max(calculate_scheduled_release(lock, now), lock.released_amount)
    if releasable >= lock.amount:
        return 0

    total = total_intervals(config)
    k = -(-(releasable + 1) * total // lock.amount)
    return min(lock.release_time + (k - 1) * config.interval, lock.release_time + config.duration)


def evaluate_lock(lock: Lock, now: int) -> ReleaseStatus:
    """
    Evaluate one lock at one instant.

    PURE FUNCTION - All inputs explicit, no hidden state.

    The schedule never goes below released_amount: after a modification that
    slows the schedule (larger duration, later release_time, smaller amount)
    the already released part stays released and nothing new becomes
    available until the schedule catches up.

    Args:
        lock: Lock to evaluate
        now: Current time (Unix seconds)

    Returns:
        ReleaseStatus(available_now, next_release_time, total_releasable)

    Raises:
        LockInvariantViolation: If the lock has released more than it holds or
            the computed availability is negative.

    Example:
        lock = Lock(30000, release_time=T, gradual_config=GradualReleaseConfig(10 * DAY, 2 * DAY))
        evaluate_lock(lock, T).available_now            # 6000
        evaluate_lock(lock, T + 10 * DAY).available_now  # 30000
    """
    if lock.released_amount > lock.amount:
        raise LockInvariantViolation(
            f"released_amount {lock.released_amount} exceeds amount {lock.amount}"
        )
    if lock.released:
        return ReleaseStatus(available_now=0, next_release_time=0, total_releasable=lock.amount)

    scheduled = calculate_scheduled_release(lock, now)
    total_releasable = max(scheduled, lock.released_amount)
    available_now = total_releasable - lock.released_amount
    if available_now < 0 or total_releasable > lock.amount:
        raise LockInvariantViolation(
            f"computed availability {available_now} (releasable {total_releasable}) "
            f"out of bounds for lock of {lock.amount}"
        )

    return ReleaseStatus(
        available_now=available_now,
        next_release_time=calculate_next_release_time(lock, now),
        total_releasable=total_releasable,
    )


def is_gradual_in_progress(lock: Lock, now: int) -> bool:
    """True when a gradual lock has started releasing but is not finished."""
    return (
        lock.gradual_config.enabled
        and not lock.released
        and now >= lock.release_time
    )
