"""
helpers.py - Constants and helper functions shared by the test suite

Fixtures live in conftest.py; plain values and functions live here so test
modules can import them directly.
"""

from tokenlock import TimeLockToken, GradualReleaseConfig, Lock


T0 = 1_700_000_000
OWNER = "treasury"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"

INITIAL_SUPPLY = 1_000_000


def make_lock(amount, release_time, config=None, released_amount=0):
    """Build a Lock with a consistent released flag."""
    if config is None:
        config = GradualReleaseConfig.cliff()
    return Lock(
        amount=amount,
        release_time=release_time,
        gradual_config=config,
        released_amount=released_amount,
        released=released_amount == amount,
    )


def kinds(token, account=None):
    """Notification kinds recorded so far, optionally for one account."""
    return [n.kind for n in token.notifications if account is None or n.account == account]


def last_of_kind(token, kind):
    matches = [n for n in token.notifications if n.kind == kind]
    assert matches, f"no {kind} notification recorded"
    return matches[-1]


def new_token(**kwargs):
    params = dict(
        name="Time Lock Token",
        symbol="TLT",
        owner=OWNER,
        initial_supply=INITIAL_SUPPLY,
        initial_time=T0,
    )
    params.update(kwargs)
    return TimeLockToken(**params)
