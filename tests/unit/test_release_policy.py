"""
test_release_policy.py - Unit tests for the release policy evaluator

Tests:
- Config validation (enabled and disabled)
- Cliff evaluation around release_time
- Gradual slices, catch-up and next release time
- Integer precision for small amounts
- The released_amount floor after modifications
- Lock construction invariants
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tokenlock import (
    GradualReleaseConfig, Lock,
    validate_gradual_config, total_intervals, calculate_scheduled_release,
    calculate_next_release_time, evaluate_lock, is_gradual_in_progress,
    InvalidGradualReleaseConfig, LockInvariantViolation,
    DAY, WEEK,
)
from tests.helpers import T0, make_lock


MONTH = 30 * DAY


class TestValidateGradualConfig:
    """Tests for validate_gradual_config()."""

    @pytest.mark.parametrize("duration,interval", [
        (0, DAY),
        (MONTH, 0),
        (DAY, WEEK),
    ])
    def test_rejects_unusable_enabled_configs(self, duration, interval):
        with pytest.raises(InvalidGradualReleaseConfig):
            validate_gradual_config(GradualReleaseConfig(duration, interval, True))

    def test_accepts_disabled_config_with_zeros(self):
        config = GradualReleaseConfig(0, 0, False)
        assert validate_gradual_config(config) is config

    def test_accepts_single_interval(self):
        validate_gradual_config(GradualReleaseConfig(DAY, DAY))

    def test_negative_values_rejected_at_construction(self):
        with pytest.raises(InvalidGradualReleaseConfig):
            GradualReleaseConfig(-1, DAY)
        with pytest.raises(InvalidGradualReleaseConfig):
            GradualReleaseConfig(DAY, -DAY)

    def test_non_int_rejected_at_construction(self):
        with pytest.raises(InvalidGradualReleaseConfig):
            GradualReleaseConfig(1.5, 1)

    def test_invalid_config_is_also_value_error(self):
        with pytest.raises(ValueError):
            validate_gradual_config(GradualReleaseConfig(DAY, WEEK))

    def test_total_intervals_rounds_up(self):
        assert total_intervals(GradualReleaseConfig(10 * DAY, 2 * DAY)) == 5
        assert total_intervals(GradualReleaseConfig(10 * DAY, 3 * DAY)) == 4
        assert total_intervals(GradualReleaseConfig(DAY, DAY)) == 1


class TestCliffEvaluation:
    """A disabled config releases everything at release_time."""

    def test_nothing_before_release_time(self):
        status = evaluate_lock(make_lock(1000, T0), T0 - 1)
        assert status.available_now == 0
        assert status.next_release_time == T0
        assert status.total_releasable == 0

    def test_everything_at_release_time(self):
        status = evaluate_lock(make_lock(1000, T0), T0)
        assert status.available_now == 1000
        assert status.next_release_time == 0
        assert status.total_releasable == 1000

    def test_released_lock_has_nothing_left(self):
        status = evaluate_lock(make_lock(1000, T0, released_amount=1000), T0 + DAY)
        assert status.available_now == 0
        assert status.next_release_time == 0
        assert status.total_releasable == 1000


class TestGradualEvaluation:
    """30000 over 10 days in 2-day slices: 6000 per slice."""

    @pytest.fixture
    def lock(self, ten_day_config):
        return Lock(30_000, T0, ten_day_config)

    def test_first_slice_available_at_release_time(self, lock):
        status = evaluate_lock(lock, T0)
        assert status.available_now == 6000
        assert status.next_release_time == T0 + 2 * DAY

    def test_slice_boundaries(self, lock):
        assert evaluate_lock(lock, T0 + 2 * DAY - 1).available_now == 6000
        assert evaluate_lock(lock, T0 + 2 * DAY).available_now == 12_000
        assert evaluate_lock(lock, T0 + 8 * DAY).available_now == 30_000

    def test_full_amount_after_duration(self, lock):
        status = evaluate_lock(lock, T0 + 10 * DAY)
        assert status.available_now == 30_000
        assert status.next_release_time == 0

    def test_catch_up_after_partial_release(self, ten_day_config):
        lock = Lock(30_000, T0, ten_day_config, released_amount=6000)
        status = evaluate_lock(lock, T0 + 20 * DAY)
        assert status.available_now == 24_000
        assert status.total_releasable == 30_000

    def test_nothing_new_within_same_slice_after_release(self, ten_day_config):
        lock = Lock(30_000, T0, ten_day_config, released_amount=6000)
        assert evaluate_lock(lock, T0 + DAY).available_now == 0

    def test_single_interval_releases_everything_at_release_time(self):
        lock = Lock(12_000, T0, GradualReleaseConfig(DAY, DAY))
        assert evaluate_lock(lock, T0).available_now == 12_000

    def test_uneven_interval_last_slice_is_complete(self):
        # 10 days in 3-day slices: 4 slices, the last one shorter.
        lock = Lock(100, T0, GradualReleaseConfig(10 * DAY, 3 * DAY))
        assert evaluate_lock(lock, T0).available_now == 25
        assert evaluate_lock(lock, T0 + 3 * DAY).available_now == 50
        status = evaluate_lock(lock, T0 + 9 * DAY)
        assert status.available_now == 100
        assert status.next_release_time == 0

    def test_small_amount_multiplies_before_dividing(self):
        lock = Lock(3, T0, GradualReleaseConfig(5 * DAY, DAY))
        assert calculate_scheduled_release(lock, T0) == 0
        assert calculate_scheduled_release(lock, T0 + DAY) == 1
        assert calculate_scheduled_release(lock, T0 + 3 * DAY) == 2
        assert calculate_scheduled_release(lock, T0 + 4 * DAY) == 3

    def test_next_release_time_before_start(self, lock):
        assert calculate_next_release_time(lock, T0 - 100) == T0


class TestReleasedAmountFloor:
    """A slower schedule never claws back what was already released."""

    def test_longer_duration_keeps_released_part(self):
        lock = Lock(30_000, T0, GradualReleaseConfig(MONTH, DAY), released_amount=12_000)
        status = evaluate_lock(lock, T0)
        assert status.total_releasable == 12_000
        assert status.available_now == 0

    def test_later_release_time_keeps_released_part(self, ten_day_config):
        lock = Lock(30_000, T0 + WEEK, ten_day_config, released_amount=6000)
        status = evaluate_lock(lock, T0)
        assert status.total_releasable == 6000
        assert status.available_now == 0
        # The first slice at T0 + WEEK is already out; the second one is next.
        assert status.next_release_time == T0 + WEEK + 2 * DAY


class TestNextReleaseTime:
    """next_release_time names a boundary where something new actually unlocks."""

    def test_skips_boundaries_behind_released_amount(self):
        # 12000 out on a 10d/2d schedule, then slowed to 20d/2d: 3000 per slice.
        lock = Lock(30_000, T0, GradualReleaseConfig(20 * DAY, 2 * DAY), released_amount=12_000)
        assert calculate_next_release_time(lock, T0 + 2 * DAY) == T0 + 8 * DAY
        assert evaluate_lock(lock, T0 + 8 * DAY - 1).available_now == 0
        assert evaluate_lock(lock, T0 + 8 * DAY).available_now == 3000

    def test_skips_flat_slices_of_small_amounts(self, ten_day_config):
        lock = Lock(1, T0, ten_day_config)
        assert calculate_next_release_time(lock, T0) == T0 + 8 * DAY
        assert evaluate_lock(lock, T0 + 6 * DAY).available_now == 0
        assert evaluate_lock(lock, T0 + 8 * DAY).available_now == 1

    def test_small_amount_before_start(self):
        lock = Lock(2, T0 + DAY, GradualReleaseConfig(4 * DAY, DAY))
        # Slices: 0, 1, 1, 2
        assert calculate_next_release_time(lock, T0) == T0 + 2 * DAY

    @given(
        st.integers(min_value=1, max_value=10**6),
        st.integers(min_value=1, max_value=5 * DAY),
        st.integers(min_value=1, max_value=12),
        st.integers(min_value=0, max_value=40 * DAY),
        st.integers(min_value=0, max_value=100),
    )
    @settings(max_examples=50)
    def test_reported_time_unlocks_something(self, amount, interval, slices, elapsed, released_pct):
        config = GradualReleaseConfig(interval * slices, interval)
        lock = make_lock(amount, T0, config, released_amount=min(amount - 1, amount * released_pct // 100))
        now = T0 + elapsed
        releasable = evaluate_lock(lock, now).total_releasable

        next_time = calculate_next_release_time(lock, now)
        if next_time == 0:
            assert releasable == amount
            return
        assert next_time > now
        assert evaluate_lock(lock, next_time).total_releasable > releasable
        assert evaluate_lock(lock, next_time - 1).total_releasable == releasable


class TestLockInvariants:
    """Lock refuses to be constructed in an impossible state."""

    def test_zero_amount(self, cliff):
        with pytest.raises(LockInvariantViolation):
            Lock(0, T0, cliff)

    def test_released_more_than_amount(self, cliff):
        with pytest.raises(LockInvariantViolation):
            Lock(100, T0, cliff, released_amount=101, released=False)

    def test_released_flag_must_match(self, cliff):
        with pytest.raises(LockInvariantViolation):
            Lock(100, T0, cliff, released_amount=100, released=False)
        with pytest.raises(LockInvariantViolation):
            Lock(100, T0, cliff, released_amount=50, released=True)

    def test_remaining(self, cliff):
        assert Lock(100, T0, cliff, released_amount=40).remaining == 60


class TestGradualInProgress:

    def test_cliff_is_never_in_progress(self):
        assert not is_gradual_in_progress(make_lock(100, T0), T0)

    def test_gradual_in_progress_after_start(self, ten_day_config):
        lock = Lock(100, T0, ten_day_config)
        assert not is_gradual_in_progress(lock, T0 - 1)
        assert is_gradual_in_progress(lock, T0)


class TestEvaluationProperties:
    """Property-based checks on the evaluator."""

    @given(
        amount=st.integers(min_value=1, max_value=10**24),
        interval_days=st.integers(min_value=1, max_value=10),
        slices=st.integers(min_value=1, max_value=12),
        t1=st.integers(min_value=-DAY, max_value=200 * DAY),
        dt=st.integers(min_value=0, max_value=200 * DAY),
    )
    @settings(max_examples=50)
    def test_releasable_is_bounded_and_monotone(self, amount, interval_days, slices, t1, dt):
        """
        PROPERTY: 0 <= total_releasable <= amount, non-decreasing in time.
        """
        config = GradualReleaseConfig(interval_days * DAY * slices, interval_days * DAY)
        lock = Lock(amount, T0, config)
        first = evaluate_lock(lock, T0 + t1)
        second = evaluate_lock(lock, T0 + t1 + dt)
        assert 0 <= first.total_releasable <= second.total_releasable <= amount
        assert first.available_now >= 0

    @given(
        amount=st.integers(min_value=1, max_value=10**9),
        released=st.integers(min_value=0, max_value=10**9),
        t=st.integers(min_value=-DAY, max_value=60 * DAY),
    )
    @settings(max_examples=50)
    def test_available_never_negative(self, amount, released, t):
        """
        PROPERTY: available_now >= 0 for any consistent lock.
        """
        config = GradualReleaseConfig(10 * DAY, 2 * DAY)
        released = min(released, amount)
        lock = Lock(amount, T0, config, released_amount=released,
                    released=released == amount)
        status = evaluate_lock(lock, T0 + t)
        assert status.available_now >= 0
        assert status.available_now + lock.released_amount == status.total_releasable
