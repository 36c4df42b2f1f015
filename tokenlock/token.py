"""
token.py - TimeLockToken

The TimeLockToken class is the only module that mutates lock state. It owns a
TokenLedger (balances) and a LockStore (locks), installs the auto-release
pre-debit hook on the ledger, and records a Notification for every change.

Key responsibilities:
    - Ledger pass-through (balance_of, transfer, approve, mint, burn, burn_from, ...)
    - Lock lifecycle: create, mint-with-lock, modify, extend
    - Release: lazy on every debit, or explicit per lock / per account
    - Compaction: manual, or automatic once an account's completed-lock
      counter reaches the configured threshold
    - Admin gating through an AccessControl collaborator

Every mutation follows the same shape: validate and compute with pure
functions, then commit in one step. A call that raises has changed nothing.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Tuple
import logging

from .core import (
    Lock, Move, GradualReleaseConfig, GradualReleaseStatus, DetailedBalance,
    AutoCleanupConfig, AccessControl,
    Unauthorized,
    VERSION, default_gradual_config,
)
from .ledger import TokenLedger, validate_account, validate_amount
from .lock_store import LockStore
from .release_policy import validate_gradual_config, evaluate_lock
from .reconciler import (
    calculate_locked_amount, calculate_available_balance,
    calculate_detailed_balance, calculate_committed_locked,
)
from .auto_release import ReleaseOutcome, compute_release, check_debit_allowed
from .lifecycle import (
    compute_new_lock, compute_modified_amount, compute_modified_release_time,
    compute_modified_config, compute_modified_lock, compute_extended_lock,
)
from .cleanup import compact_locks, should_auto_cleanup
from .config import TokenConfig
from . import events
from .events import Notification

logger = logging.getLogger(__name__)


class OwnerAccessControl:
    """Single-owner gate: only `owner` may make administrative calls."""

    def __init__(self, owner: str):
        validate_account("owner", owner)
        self.owner = owner

    def require_admin(self, caller: str) -> None:
        if caller != self.owner:
            raise Unauthorized(caller)


class TimeLockToken:
    """
    Fungible token whose balances can be locked on cliff or gradual schedules.

    Thread Safety:
        Not thread-safe. Calls are expected to be serialized per instance.

    Example:
        token = TimeLockToken("Time Lock Token", "TLT", owner="treasury",
                              initial_supply=1_000_000, initial_time=T)
        token.transfer("treasury", "alice", 100_000)
        token.create_time_lock("treasury", "alice", 30_000, T + DAY,
                               GradualReleaseConfig(10 * DAY, 2 * DAY))
        token.advance_time(T + DAY)
        token.get_available_balance("alice")  # 76_000
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        owner: str,
        decimals: int = 18,
        initial_supply: int = 0,
        initial_time: int = 0,
        default_gradual: Optional[GradualReleaseConfig] = None,
        auto_cleanup: Optional[AutoCleanupConfig] = None,
        access_control: Optional[AccessControl] = None,
    ):
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.owner = owner
        self.access = access_control or OwnerAccessControl(owner)
        self.ledger = TokenLedger(symbol, initial_time=initial_time,
                                  pre_debit=self._auto_release_before_debit)
        self.locks = LockStore()
        self.notifications: List[Notification] = []
        self._default_gradual = validate_gradual_config(default_gradual or default_gradual_config())
        self._auto_cleanup = auto_cleanup or AutoCleanupConfig()

        if initial_supply:
            self._record_move(self.ledger.mint(owner, initial_supply))

    @classmethod
    def from_config(cls, config: TokenConfig, initial_time: int = 0) -> TimeLockToken:
        """Build a token from a TokenConfig."""
        return cls(
            name=config.name,
            symbol=config.symbol,
            owner=config.owner,
            decimals=config.decimals,
            initial_supply=config.initial_supply,
            initial_time=initial_time,
            default_gradual=config.default_gradual_config,
            auto_cleanup=config.auto_cleanup,
        )

    @staticmethod
    def version() -> str:
        return VERSION

    # ========================================================================
    # LEDGER PASS-THROUGH
    # ========================================================================

    @property
    def current_time(self) -> int:
        return self.ledger.current_time

    def advance_time(self, new_time: int) -> None:
        self.ledger.advance_time(new_time)

    def balance_of(self, account: str) -> int:
        return self.ledger.balance_of(account)

    def total_supply(self) -> int:
        return self.ledger.total_supply()

    def allowance(self, owner: str, spender: str) -> int:
        return self.ledger.allowance(owner, spender)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        self.ledger.approve(owner, spender, amount)
        self.notifications.append(events.approval(self.current_time, owner, spender, amount))

    def transfer(self, source: str, dest: str, amount: int) -> Move:
        """
        Transfer tokens, releasing due locks on `source` first.

        Raises:
            InsufficientFunds: source does not hold `amount` at all
            InsufficientUnlockedBalance / InsufficientGraduallyReleasedBalance:
                the tokens exist but are time-locked
        """
        return self._record_move(self.ledger.transfer(source, dest, amount))

    def transfer_from(self, spender: str, owner: str, dest: str, amount: int) -> Move:
        return self._record_move(self.ledger.transfer_from(spender, owner, dest, amount))

    def burn(self, account: str, amount: int) -> Move:
        return self._record_move(self.ledger.burn(account, amount))

    def burn_from(self, spender: str, owner: str, amount: int) -> Move:
        """Burn from `owner` on `spender`'s allowance, releasing due locks on `owner` first."""
        return self._record_move(self.ledger.burn_from(spender, owner, amount))

    def mint(self, caller: str, account: str, amount: int) -> Move:
        self.access.require_admin(caller)
        return self._record_move(self.ledger.mint(account, amount))

    def batch_mint(self, caller: str, recipients: Sequence[str], amounts: Sequence[int]) -> List[Move]:
        """
        Mint to many accounts at once. All arguments are validated before
        the first mint, so either every recipient is credited or none is.
        """
        self.access.require_admin(caller)
        if not recipients:
            raise ValueError("recipients cannot be empty")
        if len(recipients) != len(amounts):
            raise ValueError(
                f"recipients and amounts length mismatch: {len(recipients)} != {len(amounts)}"
            )
        for account, amount in zip(recipients, amounts):
            validate_account("account", account)
            validate_amount(amount)

        moves = [self._record_move(self.ledger.mint(a, q)) for a, q in zip(recipients, amounts)]
        logger.info("Batch minted %d to %d accounts", sum(amounts), len(moves))
        return moves

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_locked_amount(self, account: str) -> int:
        """Amount that stays locked at current time once due releases are applied."""
        return calculate_locked_amount(self.locks.locks(account), self.current_time)

    def total_locked_amount(self, account: str) -> int:
        """Amount the store still records as locked, ignoring pending releases."""
        return calculate_committed_locked(self.locks.locks(account))

    def get_available_balance(self, account: str) -> int:
        return calculate_available_balance(
            self.balance_of(account), self.locks.locks(account), self.current_time
        )

    def get_detailed_balance(self, account: str) -> DetailedBalance:
        return calculate_detailed_balance(
            self.balance_of(account), self.locks.locks(account), self.current_time
        )

    def get_time_locks(self, account: str) -> Tuple[Lock, ...]:
        return self.locks.locks(account)

    def get_time_lock(self, account: str, index: int) -> Lock:
        return self.locks.get(account, index)

    def get_time_lock_count(self, account: str) -> int:
        return self.locks.count(account)

    def get_gradual_release_status(self, account: str, index: int) -> GradualReleaseStatus:
        """
        Release progress of one lock.

        Raises:
            LockNotFound: index out of range
        """
        lock = self.locks.get(account, index)
        status = evaluate_lock(lock, self.current_time)
        return GradualReleaseStatus(
            available_now=status.available_now,
            next_release_time=status.next_release_time,
            total_released=lock.released_amount,
            total_amount=lock.amount,
        )

    def get_completed_lock_count(self, account: str) -> int:
        return self.locks.completed_count(account)

    def total_released(self, account: str) -> int:
        """Cumulative amount ever released to `account` (survives compaction)."""
        return self.locks.total_released(account)

    def get_auto_cleanup_config(self) -> AutoCleanupConfig:
        return self._auto_cleanup

    def default_gradual_release_config(self) -> GradualReleaseConfig:
        return self._default_gradual

    # ========================================================================
    # LOCK LIFECYCLE (admin)
    # ========================================================================

    def create_time_lock(
        self,
        caller: str,
        account: str,
        amount: int,
        release_time: int,
        config: Optional[GradualReleaseConfig] = None,
    ) -> int:
        """
        Lock `amount` of `account`'s tokens until `release_time`.

        With config omitted the current default policy is captured.

        Returns:
            Index of the new lock.

        Raises:
            Unauthorized, InvalidLockAmount, InvalidReleaseTime,
            InvalidGradualReleaseConfig
        """
        self.access.require_admin(caller)
        validate_account("account", account)
        if config is None:
            config = self._default_gradual
        lock = compute_new_lock(amount, release_time, config, self.current_time)
        return self._append_lock(account, lock)

    def mint_with_lock(
        self,
        caller: str,
        account: str,
        amount: int,
        release_time: int,
        config: Optional[GradualReleaseConfig] = None,
    ) -> int:
        """Mint `amount` to `account` and lock it. Both happen or neither does."""
        self.access.require_admin(caller)
        validate_account("account", account)
        if config is None:
            config = self._default_gradual
        lock = compute_new_lock(amount, release_time, config, self.current_time)
        self._record_move(self.ledger.mint(account, amount))
        return self._append_lock(account, lock)

    def modify_lock_amount(self, caller: str, account: str, index: int, new_amount: int) -> Lock:
        self.access.require_admin(caller)
        lock = self.locks.get(account, index)
        return self._install_modified(account, index, lock,
                                      compute_modified_amount(account, index, lock, new_amount))

    def modify_lock_release_time(self, caller: str, account: str, index: int, new_release_time: int) -> Lock:
        self.access.require_admin(caller)
        lock = self.locks.get(account, index)
        modified = compute_modified_release_time(account, index, lock, new_release_time, self.current_time)
        return self._install_modified(account, index, lock, modified)

    def modify_lock_gradual_config(
        self, caller: str, account: str, index: int, new_config: GradualReleaseConfig,
    ) -> Lock:
        self.access.require_admin(caller)
        lock = self.locks.get(account, index)
        return self._install_modified(account, index, lock,
                                      compute_modified_config(account, index, lock, new_config))

    def modify_lock(
        self,
        caller: str,
        account: str,
        index: int,
        new_amount: int,
        new_release_time: int,
        new_config: Optional[GradualReleaseConfig] = None,
        apply_config: bool = True,
    ) -> Lock:
        """Change amount, release time and (when apply_config) policy in one call."""
        self.access.require_admin(caller)
        lock = self.locks.get(account, index)
        modified = compute_modified_lock(
            account, index, lock, new_amount, new_release_time, new_config,
            self.current_time, apply_config=apply_config,
        )
        return self._install_modified(account, index, lock, modified)

    def extend_lock(self, caller: str, account: str, index: int, new_release_time: int) -> Lock:
        """Push a lock's release time later. Emits LockExtended."""
        self.access.require_admin(caller)
        lock = self.locks.get(account, index)
        extended, old_time = compute_extended_lock(account, index, lock, new_release_time, self.current_time)
        self._replace_lock(account, index, extended)
        self.notifications.append(
            events.lock_extended(self.current_time, account, index, old_time, new_release_time)
        )
        logger.info("Extended lock %d of %s: %d -> %d", index, account, old_time, new_release_time)
        return extended

    # ========================================================================
    # RELEASE
    # ========================================================================

    def release_specific_lock(self, account: str, index: int) -> int:
        """
        Release whatever is due on one lock. Returns the amount released (0 if nothing).

        Raises:
            LockNotFound: index out of range
        """
        self.locks.check_index(account, index)
        outcome = compute_release(account, self.locks.locks(account), self.current_time, indices=[index])
        return self._commit_release(account, outcome).released_total

    def release_expired_locks(self, account: str) -> int:
        """Release every due cliff lock. Gradual locks are left alone."""
        outcome = compute_release(account, self.locks.locks(account), self.current_time, cliff_only=True)
        return self._commit_release(account, outcome).released_total

    def release_gradual_unlocks(self, account: str) -> int:
        """Release everything due across all of the account's locks."""
        outcome = compute_release(account, self.locks.locks(account), self.current_time)
        return self._commit_release(account, outcome).released_total

    def get_available_balance_with_auto_release(self, account: str) -> int:
        """Commit due releases, then return the spendable balance."""
        self.release_gradual_unlocks(account)
        return self.get_available_balance(account)

    # ========================================================================
    # CLEANUP AND CONFIGURATION (admin)
    # ========================================================================

    def configure_auto_cleanup(self, caller: str, enabled: bool, threshold: int) -> AutoCleanupConfig:
        """
        Raises:
            InvalidCleanupThreshold: enabled with threshold 0
        """
        self.access.require_admin(caller)
        self._auto_cleanup = AutoCleanupConfig(enabled=enabled, threshold=threshold)
        self.notifications.append(events.auto_cleanup_configured(self.current_time, enabled, threshold))
        logger.info("Auto cleanup configured: enabled=%s threshold=%d", enabled, threshold)
        return self._auto_cleanup

    def cleanup_released_locks(self, caller: str, account: str) -> int:
        """Drop every fully released lock of `account`. Returns the number removed."""
        self.access.require_admin(caller)
        return self._compact(account)

    def set_default_gradual_release_config(
        self, caller: str, duration: int, interval: int, enabled: bool = True,
    ) -> GradualReleaseConfig:
        """New default for future locks. Existing locks keep their own policy."""
        self.access.require_admin(caller)
        config = validate_gradual_config(GradualReleaseConfig(duration, interval, enabled))
        self._default_gradual = config
        self.notifications.append(events.gradual_release_config_updated(self.current_time, config))
        logger.info("Default gradual release config set to %s", config)
        return config

    # ========================================================================
    # AUTO-RELEASE HOOK
    # ========================================================================

    def _auto_release_before_debit(self, account: str, amount: int) -> None:
        """
        Pre-debit hook installed on the ledger.

        Applies due releases to `account` and rejects the debit when the
        spendable balance is still short. A nominal shortfall is left to the
        ledger, which raises InsufficientFunds without touching any lock.
        """
        balance = self.balance_of(account)
        if balance < amount:
            return
        locks = self.locks.locks(account)
        if not locks:
            return

        now = self.current_time
        outcome = compute_release(account, locks, now)
        check_debit_allowed(account, balance, outcome.locks, now, amount)
        self._commit_release(account, outcome)

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _record_move(self, move: Move) -> Move:
        self.notifications.append(events.transfer(move.timestamp, move.source, move.dest, move.quantity))
        return move

    def _append_lock(self, account: str, lock: Lock) -> int:
        index = self.locks.append(account, lock)
        self.notifications.append(events.tokens_locked(
            self.current_time, account, lock.amount, lock.release_time, index, lock.gradual_config,
        ))
        logger.info("Locked %d for %s until %d (lock %d)", lock.amount, account, lock.release_time, index)
        return index

    def _replace_lock(self, account: str, index: int, new_lock: Lock, newly_completed: int = 0) -> None:
        locks = list(self.locks.locks(account))
        locks[index] = new_lock
        self.locks.commit(account, locks, newly_completed=newly_completed)

    def _install_modified(self, account: str, index: int, old: Lock, new: Lock) -> Lock:
        completed = 1 if new.released and not old.released else 0
        self._replace_lock(account, index, new, newly_completed=completed)
        self.notifications.append(events.lock_modified(
            self.current_time, account, index, new.amount, new.release_time, new.gradual_config,
        ))
        logger.info("Modified lock %d of %s: amount=%d release_time=%d",
                    index, account, new.amount, new.release_time)
        if completed and should_auto_cleanup(self._auto_cleanup, self.locks.completed_count(account)):
            self._compact(account)
        return new

    def _commit_release(self, account: str, outcome: ReleaseOutcome) -> ReleaseOutcome:
        if not outcome.is_empty():
            self.locks.commit(
                account, outcome.locks,
                newly_completed=outcome.newly_completed,
                released=outcome.released_total,
            )
            self.notifications.extend(outcome.notifications)
            logger.debug("Released %d for %s across %d locks (%d completed)",
                         outcome.released_total, account, len(outcome.notifications),
                         outcome.newly_completed)
        if should_auto_cleanup(self._auto_cleanup, self.locks.completed_count(account)):
            self._compact(account)
        return outcome

    def _compact(self, account: str) -> int:
        kept, _ = compact_locks(self.locks.locks(account))
        removed = self.locks.compact(account, kept)
        self.notifications.append(events.locks_cleaned_up(self.current_time, account, removed, len(kept)))
        logger.info("Cleaned up %d released locks for %s (%d remaining)", removed, account, len(kept))
        return removed
