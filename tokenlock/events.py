"""
events.py - Notifications

Every state change on a TimeLockToken records one or more Notification
values. They are plain data: immutable, hashable, and ordered by the time
they were recorded. The notification list is the audit trail for lock
activity, the way the transaction log is the audit trail for balances.

Core concepts:
1. Notification: kind + account + parameters, stamped with ledger time
2. Factory functions: one per kind, so parameter names stay consistent
3. filter_notifications: select by kind and/or account
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .core import GradualReleaseConfig


# ============================================================================
# KINDS
# ============================================================================

TOKENS_LOCKED = "TokensLocked"
TOKENS_UNLOCKED = "TokensUnlocked"
TOKENS_GRADUALLY_RELEASED = "TokensGraduallyReleased"
LOCK_MODIFIED = "LockModified"
LOCK_EXTENDED = "LockExtended"
AUTO_CLEANUP_CONFIGURED = "AutoCleanupConfigured"
LOCKS_CLEANED_UP = "LocksCleanedUp"
GRADUAL_RELEASE_CONFIG_UPDATED = "GradualReleaseConfigUpdated"
TRANSFER = "Transfer"
APPROVAL = "Approval"

ALL_KINDS = frozenset({
    TOKENS_LOCKED, TOKENS_UNLOCKED, TOKENS_GRADUALLY_RELEASED,
    LOCK_MODIFIED, LOCK_EXTENDED, AUTO_CLEANUP_CONFIGURED, LOCKS_CLEANED_UP,
    GRADUAL_RELEASE_CONFIG_UPDATED, TRANSFER, APPROVAL,
})


# ============================================================================
# NOTIFICATION DATA STRUCTURE
# ============================================================================

@dataclass(frozen=True, slots=True)
class Notification:
    """
    Immutable record of one observable state change.

    Attributes:
        timestamp: Ledger time at which the change happened
        kind: One of the kind constants above
        account: Account the change applies to ("" for token-wide settings)
        params: Kind-specific parameters as frozen tuple of (key, value) pairs
    """
    timestamp: int
    kind: str
    account: str = ""
    params: tuple = ()

    def __post_init__(self):
        if self.kind not in ALL_KINDS:
            raise ValueError(f"Unknown notification kind: {self.kind!r}")

    @property
    def params_dict(self) -> Dict[str, Any]:
        """Get params as a dictionary for convenience."""
        return dict(self.params)

    @property
    def event_id(self) -> str:
        """Deterministic ID (includes params for uniqueness)."""
        params_str = "|".join(f"{k}={v}" for k, v in sorted(self.params))
        return f"{self.kind}:{self.account}:{self.timestamp}:{params_str}"


def _config_params(config: GradualReleaseConfig) -> tuple:
    return (
        ("duration", config.duration),
        ("interval", config.interval),
        ("enabled", config.enabled),
    )


def filter_notifications(
    notifications: Iterable[Notification],
    kind: Optional[str] = None,
    account: Optional[str] = None,
) -> List[Notification]:
    """Notifications matching kind and/or account, in recorded order."""
    return [
        n for n in notifications
        if (kind is None or n.kind == kind) and (account is None or n.account == account)
    ]


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def tokens_locked(
    timestamp: int,
    account: str,
    amount: int,
    release_time: int,
    index: int,
    config: GradualReleaseConfig,
) -> Notification:
    """Create a lock-creation notification."""
    return Notification(
        timestamp=timestamp,
        kind=TOKENS_LOCKED,
        account=account,
        params=(
            ("amount", amount),
            ("release_time", release_time),
            ("index", index),
        ) + _config_params(config),
    )


def tokens_unlocked(timestamp: int, account: str, amount: int, index: int) -> Notification:
    """Create a cliff release notification."""
    return Notification(
        timestamp=timestamp,
        kind=TOKENS_UNLOCKED,
        account=account,
        params=(("amount", amount), ("index", index)),
    )


def tokens_gradually_released(timestamp: int, account: str, amount: int, index: int) -> Notification:
    """Create a gradual release notification (one per lock per commit)."""
    return Notification(
        timestamp=timestamp,
        kind=TOKENS_GRADUALLY_RELEASED,
        account=account,
        params=(("amount", amount), ("index", index)),
    )


def lock_modified(
    timestamp: int,
    account: str,
    index: int,
    amount: int,
    release_time: int,
    config: GradualReleaseConfig,
) -> Notification:
    """Create a lock modification notification carrying the lock's new shape."""
    return Notification(
        timestamp=timestamp,
        kind=LOCK_MODIFIED,
        account=account,
        params=(
            ("index", index),
            ("amount", amount),
            ("release_time", release_time),
        ) + _config_params(config),
    )


def lock_extended(
    timestamp: int,
    account: str,
    index: int,
    old_release_time: int,
    new_release_time: int,
) -> Notification:
    return Notification(
        timestamp=timestamp,
        kind=LOCK_EXTENDED,
        account=account,
        params=(
            ("index", index),
            ("old_release_time", old_release_time),
            ("new_release_time", new_release_time),
        ),
    )


def auto_cleanup_configured(timestamp: int, enabled: bool, threshold: int) -> Notification:
    return Notification(
        timestamp=timestamp,
        kind=AUTO_CLEANUP_CONFIGURED,
        params=(("enabled", enabled), ("threshold", threshold)),
    )


def locks_cleaned_up(timestamp: int, account: str, removed: int, remaining: int) -> Notification:
    """Create a compaction notification."""
    return Notification(
        timestamp=timestamp,
        kind=LOCKS_CLEANED_UP,
        account=account,
        params=(("removed", removed), ("remaining", remaining)),
    )


def gradual_release_config_updated(timestamp: int, config: GradualReleaseConfig) -> Notification:
    return Notification(
        timestamp=timestamp,
        kind=GRADUAL_RELEASE_CONFIG_UPDATED,
        params=_config_params(config),
    )


def transfer(timestamp: int, source: str, dest: str, amount: int) -> Notification:
    """Create a balance movement notification (mints and burns use SYSTEM_WALLET)."""
    return Notification(
        timestamp=timestamp,
        kind=TRANSFER,
        account=source,
        params=(("to", dest), ("amount", amount)),
    )


def approval(timestamp: int, owner: str, spender: str, amount: int) -> Notification:
    return Notification(
        timestamp=timestamp,
        kind=APPROVAL,
        account=owner,
        params=(("spender", spender), ("amount", amount)),
    )
