"""
Core types and constants for the time-locked token ledger.

This module provides the foundational data structures and protocols:
1. Protocols: TokenView for read-only ledger access, AccessControl for admin gating
2. Immutable data structures: Move, GradualReleaseConfig, Lock, result records
3. Exceptions: LedgerError and the lock-specific error taxonomy
4. Type aliases: BalanceMap, AllowanceMap
5. Constants: time units, defaults, SYSTEM_WALLET

Amounts are integer token base units and times are integer Unix seconds.
Every record here is frozen: a state change produces a new instance.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Tuple, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

VERSION = "3.0.0"

# Reserved wallet for issuance and redemption.
# Mint moves tokens out of it, burn moves tokens into it. It is never
# subject to lock accounting and is excluded from total supply.
SYSTEM_WALLET = "system"

# Time units in seconds.
MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY

# Default gradual release policy for locks created without one:
# 30 days, released in daily slices.
DEFAULT_GRADUAL_DURATION = 30 * DAY
DEFAULT_GRADUAL_INTERVAL = DAY

# Number of completed locks that triggers automatic compaction.
DEFAULT_CLEANUP_THRESHOLD = 10


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from account to token balance.
BalanceMap = Dict[str, int]

# Mapping from (owner, spender) to approved amount.
AllowanceMap = Dict[Tuple[str, str], int]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class TokenView(Protocol):
    """
    Read-only interface to token ledger state.

    Functions accepting a TokenView declare their read-only intent. The
    TokenLedger class implements this protocol but also provides the
    mutating debit/credit primitives.
    """

    @property
    def current_time(self) -> int:
        """Return the current logical time (Unix seconds)."""
        ...

    def balance_of(self, account: str) -> int:
        """Return the nominal balance of an account (0 if unknown)."""
        ...

    def total_supply(self) -> int:
        """Return the sum of all non-system balances."""
        ...


class AccessControl(Protocol):
    """Gate for administrative calls. Raises Unauthorized to reject."""

    def require_admin(self, caller: str) -> None:
        ...


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class InsufficientFunds(LedgerError):
    """Raised when a debit exceeds the account's nominal balance."""

    def __init__(self, account: str, requested: int, balance: int):
        self.account = account
        self.requested = requested
        self.balance = balance
        super().__init__(
            f"{account}: insufficient balance {balance} < {requested}"
        )


class InsufficientAllowance(LedgerError):
    """Raised when a spender tries to move more than it was approved for."""

    def __init__(self, owner: str, spender: str, requested: int, allowance: int):
        self.owner = owner
        self.spender = spender
        self.requested = requested
        self.allowance = allowance
        super().__init__(
            f"{spender} allowance on {owner}: {allowance} < {requested}"
        )


class Unauthorized(LedgerError):
    """Raised when a non-administrator calls an administrative operation."""

    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"{caller} is not authorized for administrative calls")


class LockValidationError(LedgerError, ValueError):
    """Base for caller-fixable lock errors. No state is changed when raised."""
    pass


class InvalidLockAmount(LockValidationError):
    """Raised for a zero lock amount or an amount below what was already released."""
    pass


class InvalidReleaseTime(LockValidationError):
    """Raised for a release time in the past (or not strictly in the future on modify)."""
    pass


class InvalidGradualReleaseConfig(LockValidationError):
    """Raised when an enabled config does not satisfy 0 < interval <= duration."""
    pass


class InvalidCleanupThreshold(LockValidationError):
    """Raised when auto cleanup is enabled with a zero threshold."""
    pass


class LockNotFound(LockValidationError):
    """Raised when a lock index is out of range for the account."""

    def __init__(self, account: str, index: int, count: int):
        self.account = account
        self.index = index
        self.count = count
        super().__init__(f"{account} has no lock at index {index} ({count} locks)")


class LockAlreadyReleased(LockValidationError):
    """Raised when modifying a lock that is already fully released."""

    def __init__(self, account: str, index: int):
        self.account = account
        self.index = index
        super().__init__(f"Lock {index} of {account} is already fully released")


class InsufficientUnlockedBalance(LedgerError):
    """
    Raised when a debit exceeds the spendable balance because funds are time-locked.

    The account holds enough tokens nominally; the shortfall is locked and
    nothing more is eligible for release yet. Distinct from InsufficientFunds,
    which means the tokens do not exist at all.

    Attributes:
        account: Account being debited
        requested: Amount the caller tried to debit
        available: Spendable balance after all due releases were applied
        locked: Amount still locked after all due releases were applied
    """

    def __init__(self, account: str, requested: int, available: int, locked: int):
        self.account = account
        self.requested = requested
        self.available = available
        self.locked = locked
        super().__init__(self._describe())

    def _describe(self) -> str:
        return (
            f"{self.account}: requested {self.requested}, available {self.available}, "
            f"locked {self.locked} (nothing eligible for release yet)"
        )


class InsufficientGraduallyReleasedBalance(InsufficientUnlockedBalance):
    """
    Raised when a debit exceeds the spendable balance while a gradual release is in progress.

    Part of the locked amount has been released and more will follow at
    next_release_time.
    """

    def __init__(
        self,
        account: str,
        requested: int,
        available: int,
        locked: int,
        next_release_time: int,
    ):
        self.next_release_time = next_release_time
        super().__init__(account, requested, available, locked)

    def _describe(self) -> str:
        return (
            f"{self.account}: requested {self.requested}, available {self.available}, "
            f"locked {self.locked} (gradual release in progress, next at {self.next_release_time})"
        )


class LockInvariantViolation(LedgerError):
    """
    Raised when lock accounting reaches an impossible state.

    Indicates a logic defect (released more than locked, negative availability).
    Never clamped: the triggering call aborts.
    """
    pass


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of tokens between two accounts.

    Mints move from SYSTEM_WALLET, burns move to SYSTEM_WALLET.

    Attributes:
        quantity: Amount transferred (positive integer).
        source: Account debited.
        dest: Account credited.
        timestamp: Ledger time at which the move was applied.
    """
    quantity: int
    source: str
    dest: str
    timestamp: int

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise ValueError(f"Move quantity must be int, got {type(self.quantity)}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity}: {self.source}→{self.dest} @ {self.timestamp})"


@dataclass(frozen=True, slots=True)
class GradualReleaseConfig:
    """
    Release policy attached to a lock (value type, owned by the lock).

    Attributes:
        duration: Total span in seconds over which release is spread after release_time.
        interval: Length in seconds of one release sub-period.
        enabled: If False, the lock is a cliff lock: everything is released at release_time.

    Structural checks only (non-negative integers). Whether an enabled config
    is usable (0 < interval <= duration) is checked by validate_gradual_config().
    """
    duration: int
    interval: int
    enabled: bool = True

    def __post_init__(self):
        for name in ('duration', 'interval'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidGradualReleaseConfig(f"{name} must be int, got {type(value)}")
            if value < 0:
                raise InvalidGradualReleaseConfig(f"{name} cannot be negative, got {value}")

    @classmethod
    def cliff(cls) -> GradualReleaseConfig:
        """A disabled config: release everything at release_time."""
        return cls(duration=0, interval=0, enabled=False)


@dataclass(frozen=True, slots=True)
class Lock:
    """
    One scheduled restriction on a quantity of an account's tokens.

    Attributes:
        amount: Total quantity locked.
        release_time: Cliff time (Unix seconds) after which release may begin.
        gradual_config: Release policy captured when the lock was created or modified.
        released_amount: Cumulative amount already released (0 <= released_amount <= amount).
        released: True once released_amount == amount. Terminal.

    Raises LockInvariantViolation if constructed in an inconsistent state.
    """
    amount: int
    release_time: int
    gradual_config: GradualReleaseConfig
    released_amount: int = 0
    released: bool = False

    def __post_init__(self):
        if self.amount <= 0:
            raise LockInvariantViolation(f"Lock amount must be positive, got {self.amount}")
        if self.released_amount < 0:
            raise LockInvariantViolation(
                f"released_amount cannot be negative, got {self.released_amount}"
            )
        if self.released_amount > self.amount:
            raise LockInvariantViolation(
                f"released_amount {self.released_amount} exceeds amount {self.amount}"
            )
        if self.released != (self.released_amount == self.amount):
            raise LockInvariantViolation(
                f"released={self.released} inconsistent with "
                f"released_amount={self.released_amount}, amount={self.amount}"
            )

    @property
    def remaining(self) -> int:
        """Amount not yet released."""
        return self.amount - self.released_amount

    @property
    def is_gradual(self) -> bool:
        return self.gradual_config.enabled


# ============================================================================
# RESULT RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class ReleaseStatus:
    """
    Output of evaluating one lock at one instant.

    available_now: Newly releasable amount not yet marked released.
    next_release_time: Next interval boundary, or 0 when nothing more is scheduled.
    total_releasable: Cumulative amount that should be unlocked at this instant.
    """
    available_now: int
    next_release_time: int
    total_releasable: int


@dataclass(frozen=True, slots=True)
class GradualReleaseStatus:
    """Per-lock release progress as reported to callers."""
    available_now: int
    next_release_time: int
    total_released: int
    total_amount: int


@dataclass(frozen=True, slots=True)
class DetailedBalance:
    """
    Account-level balance breakdown.

    total_balance: Nominal ledger balance.
    currently_locked: Amount the lock store still holds locked (committed state).
    available_now: Spendable once due releases are applied.
    pending_release: Due but not yet committed releases.
    next_release_time: Earliest upcoming release across all locks, 0 if none.
    """
    total_balance: int
    currently_locked: int
    available_now: int
    pending_release: int
    next_release_time: int


@dataclass(frozen=True, slots=True)
class AutoCleanupConfig:
    """Threshold-triggered compaction settings."""
    enabled: bool = True
    threshold: int = DEFAULT_CLEANUP_THRESHOLD

    def __post_init__(self):
        if not isinstance(self.threshold, int) or isinstance(self.threshold, bool):
            raise InvalidCleanupThreshold(f"threshold must be int, got {type(self.threshold)}")
        if self.threshold < 0:
            raise InvalidCleanupThreshold(f"threshold cannot be negative, got {self.threshold}")
        if self.enabled and self.threshold == 0:
            raise InvalidCleanupThreshold("threshold must be positive when auto cleanup is enabled")


def default_gradual_config() -> GradualReleaseConfig:
    """The out-of-the-box default policy: 30 days, daily intervals."""
    return GradualReleaseConfig(
        duration=DEFAULT_GRADUAL_DURATION,
        interval=DEFAULT_GRADUAL_INTERVAL,
        enabled=True,
    )
