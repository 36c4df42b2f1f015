"""
tokenlock - Time-Locked Token Ledger

A fungible token ledger whose balances can be locked on cliff or gradual
release schedules. Releases are lazy: they are applied when tokens leave an
account, or when a release is requested explicitly.

Usage:
    from tokenlock import TimeLockToken, GradualReleaseConfig, DAY

    T = 1_700_000_000
    token = TimeLockToken("Time Lock Token", "TLT", owner="treasury",
                          initial_supply=1_000_000, initial_time=T)
    token.transfer("treasury", "alice", 100_000)

    # 30000 locked, released in 5 slices over 10 days starting at T + DAY
    token.create_time_lock("treasury", "alice", 30_000, T + DAY,
                           GradualReleaseConfig(duration=10 * DAY, interval=2 * DAY))

    token.get_available_balance("alice")   # 70000
    token.advance_time(T + DAY)
    token.get_available_balance("alice")   # 76000
    token.transfer("alice", "bob", 76_000) # releases 6000, then debits
"""

# Core types
from .core import (
    TokenView,
    AccessControl,
    Move,
    GradualReleaseConfig,
    Lock,
    ReleaseStatus,
    GradualReleaseStatus,
    DetailedBalance,
    AutoCleanupConfig,
    default_gradual_config,
    LedgerError,
    InsufficientFunds,
    InsufficientAllowance,
    Unauthorized,
    LockValidationError,
    InvalidLockAmount,
    InvalidReleaseTime,
    InvalidGradualReleaseConfig,
    InvalidCleanupThreshold,
    LockNotFound,
    LockAlreadyReleased,
    InsufficientUnlockedBalance,
    InsufficientGraduallyReleasedBalance,
    LockInvariantViolation,
    SYSTEM_WALLET,
    MINUTE,
    HOUR,
    DAY,
    WEEK,
    DEFAULT_GRADUAL_DURATION,
    DEFAULT_GRADUAL_INTERVAL,
    DEFAULT_CLEANUP_THRESHOLD,
    VERSION,
)

# Pure calculators
from .release_policy import (
    validate_gradual_config,
    total_intervals,
    calculate_scheduled_release,
    calculate_next_release_time,
    evaluate_lock,
    is_gradual_in_progress,
)
from .reconciler import (
    calculate_committed_locked,
    calculate_locked_amount,
    calculate_pending_release,
    calculate_available_balance,
    calculate_detailed_balance,
)
from .auto_release import ReleaseOutcome, compute_release, check_debit_allowed
from .lifecycle import (
    compute_new_lock,
    compute_modified_amount,
    compute_modified_release_time,
    compute_modified_config,
    compute_modified_lock,
    compute_extended_lock,
)
from .cleanup import compact_locks, should_auto_cleanup

# Stateful components
from .lock_store import LockStore
from .ledger import TokenLedger
from .token import TimeLockToken, OwnerAccessControl

# Notifications and configuration
from .events import Notification, filter_notifications
from .config import TokenConfig, load_config

__version__ = VERSION

__all__ = [
    # Core
    'TokenView', 'AccessControl', 'Move', 'GradualReleaseConfig', 'Lock',
    'ReleaseStatus', 'GradualReleaseStatus', 'DetailedBalance', 'AutoCleanupConfig',
    'default_gradual_config',
    # Errors
    'LedgerError', 'InsufficientFunds', 'InsufficientAllowance', 'Unauthorized',
    'LockValidationError', 'InvalidLockAmount', 'InvalidReleaseTime',
    'InvalidGradualReleaseConfig', 'InvalidCleanupThreshold', 'LockNotFound',
    'LockAlreadyReleased', 'InsufficientUnlockedBalance',
    'InsufficientGraduallyReleasedBalance', 'LockInvariantViolation',
    # Constants
    'SYSTEM_WALLET', 'MINUTE', 'HOUR', 'DAY', 'WEEK',
    'DEFAULT_GRADUAL_DURATION', 'DEFAULT_GRADUAL_INTERVAL', 'DEFAULT_CLEANUP_THRESHOLD',
    'VERSION',
    # Release policy
    'validate_gradual_config', 'total_intervals', 'calculate_scheduled_release',
    'calculate_next_release_time', 'evaluate_lock', 'is_gradual_in_progress',
    # Reconciler
    'calculate_committed_locked', 'calculate_locked_amount', 'calculate_pending_release',
    'calculate_available_balance', 'calculate_detailed_balance',
    # Auto-release
    'ReleaseOutcome', 'compute_release', 'check_debit_allowed',
    # Lifecycle
    'compute_new_lock', 'compute_modified_amount', 'compute_modified_release_time',
    'compute_modified_config', 'compute_modified_lock', 'compute_extended_lock',
    # Cleanup
    'compact_locks', 'should_auto_cleanup',
    # Stateful
    'LockStore', 'TokenLedger', 'TimeLockToken', 'OwnerAccessControl',
    # Notifications / config
    'Notification', 'filter_notifications', 'TokenConfig', 'load_config',
]
