"""
conftest.py - Shared pytest fixtures for tokenlock tests

Provides common fixtures used across unit, conformance and functional tests:
- Tokens (fresh, funded, with a gradual lock already in place)
- Standard release configs
- Helpers and constants live in tests/helpers.py
"""

import pytest

from tokenlock import GradualReleaseConfig, DAY, WEEK

from tests.helpers import T0, OWNER, ALICE, new_token


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def cliff():
    return GradualReleaseConfig.cliff()


@pytest.fixture
def ten_day_config():
    """5 slices: 10 days, one every 2 days."""
    return GradualReleaseConfig(duration=10 * DAY, interval=2 * DAY)


@pytest.fixture
def weekly_config():
    return GradualReleaseConfig(duration=4 * WEEK, interval=WEEK)


# =============================================================================
# TOKEN FIXTURES
# =============================================================================

@pytest.fixture
def token():
    """Fresh token: owner holds the whole initial supply."""
    return new_token()


@pytest.fixture
def funded_token(token):
    """Token where alice holds 100000 and no locks exist."""
    token.transfer(OWNER, ALICE, 100_000)
    return token


@pytest.fixture
def gradual_token(funded_token, ten_day_config):
    """
    alice: 100000 balance, one 30000 lock released over 10 days in 2-day
    slices, starting 10 seconds after T0.
    """
    funded_token.create_time_lock(OWNER, ALICE, 30_000, T0 + 10, ten_day_config)
    return funded_token


@pytest.fixture
def cliff_token(funded_token, cliff):
    """alice: 100000 balance, one 30000 cliff lock releasing at T0 + DAY."""
    funded_token.create_time_lock(OWNER, ALICE, 30_000, T0 + DAY, cliff)
    return funded_token
