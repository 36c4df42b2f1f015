"""
ledger.py - Fungible Token Ledger

The TokenLedger class is the only module that mutates balances. It holds
balances, allowances and the move log, and keeps the logical clock.

Key responsibilities:
    - Implements the TokenView protocol for read-only access by pure functions
    - Applies debits atomically: every check runs before any balance changes
    - Calls an optional pre-debit hook before every debit (transfer,
      transfer_from, burn, burn_from) so lock accounting can release or reject first
    - Mints and burns through SYSTEM_WALLET, so sum(all balances) == 0 always
    - Records every applied Move in transaction_log
"""

from __future__ import annotations
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional
import logging

from .core import (
    Move, BalanceMap, AllowanceMap,
    SYSTEM_WALLET,
    InsufficientFunds, InsufficientAllowance,
)

logger = logging.getLogger(__name__)

# Hook signature: (account, amount) -> None. Raises to veto the debit.
PreDebitHook = Callable[[str, int], None]


def validate_account(name: str, account: str) -> None:
    if not isinstance(account, str) or not account.strip():
        raise ValueError(f"{name} must be a non-empty string, got {account!r}")
    if account == SYSTEM_WALLET:
        raise ValueError(f"{name} cannot be the reserved {SYSTEM_WALLET!r} wallet")


def validate_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ValueError(f"amount must be int, got {type(amount).__name__}")
    if amount <= 0:
        raise ValueError(f"amount must be positive, got {amount}")


class TokenLedger:
    """
    Single-asset token ledger with allowances and a pre-debit hook.

    Implements the TokenView protocol, allowing the ledger to be passed to
    pure functions that only read balances and time.

    Design Principles:
        - Always validates: arguments, allowance and balance are checked
          before anything is written.
        - Always logs: every applied Move is appended to transaction_log.
        - The pre-debit hook runs after argument validation and before the
          balance check. If it raises, nothing has been debited.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own TokenLedger instance.

    Example:
        ledger = TokenLedger("TLT", initial_time=1_700_000_000)
        ledger.mint("alice", 1000)
        ledger.transfer("alice", "bob", 250)
        ledger.balance_of("bob")  # 250
    """

    def __init__(
        self,
        name: str,
        initial_time: int = 0,
        pre_debit: Optional[PreDebitHook] = None,
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier (usually the token symbol)
            initial_time: Starting time in Unix seconds (default: 0)
            pre_debit: Optional hook called before every debit
        """
        if not isinstance(initial_time, int) or isinstance(initial_time, bool):
            raise ValueError(f"initial_time must be int, got {type(initial_time).__name__}")
        self.name = name
        self.balances: BalanceMap = defaultdict(int)
        self.allowances: AllowanceMap = defaultdict(int)
        self.transaction_log: List[Move] = []
        self._current_time: int = initial_time
        self._pre_debit = pre_debit

    # ========================================================================
    # TokenView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_time(self) -> int:
        """Current logical time of the ledger."""
        return self._current_time

    def balance_of(self, account: str) -> int:
        """Nominal balance (0 for unknown accounts)."""
        return self.balances.get(account, 0)

    def total_supply(self) -> int:
        """
        Sum of all non-system balances.

        Accounts are sorted before summation to keep accumulation order deterministic.
        """
        return sum(self.balances[a] for a in sorted(self.balances) if a != SYSTEM_WALLET)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def holders(self) -> List[str]:
        """Accounts with a non-zero balance, sorted."""
        return sorted(a for a, b in self.balances.items() if b != 0 and a != SYSTEM_WALLET)

    def verify_conservation(self, expected_supply: Optional[int] = None) -> Dict[str, Any]:
        """
        Verify that balances are conserved.

        Every Move debits one account and credits another, and issuance is
        drawn from SYSTEM_WALLET, so the sum over all accounts (system
        included) is always zero and total_supply == -balance(SYSTEM_WALLET).

        Args:
            expected_supply: Optional total supply to check against

        Returns:
            Dict with keys:
            - 'valid': bool - True if all conservation laws hold
            - 'supply': int - Current total supply
            - 'discrepancies': List[Dict] - Details of any violation

        Example:
            result = ledger.verify_conservation(expected_supply=1_000_000)
            assert result['valid'], result['discrepancies']
        """
        supply = self.total_supply()
        discrepancies = []

        net = sum(self.balances.values())
        if net != 0:
            discrepancies.append({'check': 'net_zero', 'expected': 0, 'actual': net})
        if expected_supply is not None and supply != expected_supply:
            discrepancies.append({
                'check': 'supply',
                'expected': expected_supply,
                'actual': supply,
                'difference': supply - expected_supply,
            })

        return {
            'valid': len(discrepancies) == 0,
            'supply': supply,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: int) -> None:
        """
        Advance the ledger's logical clock to a new time.

        Time can only move forward, never backward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    def set_pre_debit_hook(self, hook: Optional[PreDebitHook]) -> None:
        self._pre_debit = hook

    # ========================================================================
    # TOKEN OPERATIONS (Mutating)
    # ========================================================================

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set (not add to) the amount spender may move out of owner's balance."""
        validate_account("owner", owner)
        validate_account("spender", spender)
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"allowance must be a non-negative int, got {amount!r}")
        self.allowances[(owner, spender)] = amount

    def mint(self, account: str, amount: int) -> Move:
        """Issue new tokens to an account. No pre-debit hook: the source is SYSTEM_WALLET."""
        validate_account("account", account)
        validate_amount(amount)
        return self._apply(Move(amount, SYSTEM_WALLET, account, self._current_time))

    def burn(self, account: str, amount: int) -> Move:
        """
        Destroy tokens held by an account.

        Raises:
            InsufficientFunds: If the balance is below amount
            Any error raised by the pre-debit hook
        """
        validate_account("account", account)
        validate_amount(amount)
        self._debit_checks(account, amount)
        return self._apply(Move(amount, account, SYSTEM_WALLET, self._current_time))

    def transfer(self, source: str, dest: str, amount: int) -> Move:
        """
        Move tokens from source to dest.

        Raises:
            ValueError: Malformed arguments (empty account, non-positive amount, source == dest)
            InsufficientFunds: If source's balance is below amount
            Any error raised by the pre-debit hook
        """
        validate_account("source", source)
        validate_account("dest", dest)
        validate_amount(amount)
        move = Move(amount, source, dest, self._current_time)
        self._debit_checks(source, amount)
        return self._apply(move)

    def transfer_from(self, spender: str, owner: str, dest: str, amount: int) -> Move:
        """
        Move tokens out of owner's balance on spender's allowance.

        The allowance is checked first and consumed only after the debit
        checks (hook included) have passed.

        Raises:
            InsufficientAllowance: If spender's allowance on owner is below amount
            InsufficientFunds: If owner's balance is below amount
            Any error raised by the pre-debit hook
        """
        validate_account("spender", spender)
        validate_account("owner", owner)
        validate_account("dest", dest)
        validate_amount(amount)
        move = Move(amount, owner, dest, self._current_time)

        current = self._check_allowance(owner, spender, amount)
        self._debit_checks(owner, amount)
        self.allowances[(owner, spender)] = current - amount
        return self._apply(move)

    def burn_from(self, spender: str, owner: str, amount: int) -> Move:
        """
        Destroy tokens out of owner's balance on spender's allowance.

        Same order of checks as transfer_from: allowance, then the debit
        checks, then the allowance is consumed.

        Raises:
            InsufficientAllowance: If spender's allowance on owner is below amount
            InsufficientFunds: If owner's balance is below amount
            Any error raised by the pre-debit hook
        """
        validate_account("spender", spender)
        validate_account("owner", owner)
        validate_amount(amount)
        move = Move(amount, owner, SYSTEM_WALLET, self._current_time)

        current = self._check_allowance(owner, spender, amount)
        self._debit_checks(owner, amount)
        self.allowances[(owner, spender)] = current - amount
        return self._apply(move)

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _check_allowance(self, owner: str, spender: str, amount: int) -> int:
        current = self.allowance(owner, spender)
        if current < amount:
            raise InsufficientAllowance(owner, spender, amount, current)
        return current

    def _debit_checks(self, account: str, amount: int) -> None:
        if self._pre_debit is not None:
            self._pre_debit(account, amount)
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientFunds(account, amount, balance)

    def _apply(self, move: Move) -> Move:
        self.balances[move.source] -= move.quantity
        self.balances[move.dest] += move.quantity
        self.transaction_log.append(move)
        logger.debug("Applied %r", move)
        return move
