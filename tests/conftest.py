"""
Shared test fixtures.
"""

import logging

import pytest

from helpers.wallet import FrozenClock, Wallet
from starledger import StarRegistry


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def wallet():
    return Wallet(0x5EED0001)


@pytest.fixture
def other_wallet():
    return Wallet(0x5EED0002)


@pytest.fixture
def registry(clock):
    return StarRegistry(clock=clock)


@pytest.fixture
def claim(registry, wallet):
    """Returns submit(star=None) which registers a freshly signed star for wallet."""
    def submit(star=None):
        message = registry.request_message_ownership_verification(wallet.address)
        return registry.submit_star(
            wallet.address,
            message,
            wallet.sign(message),
            star if star is not None else {"ra": "1h", "dec": "2°", "story": "s"},
        )
    return submit


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """CLI runs call configure_logging(); undo it so caplog keeps working."""
    logger    = logging.getLogger("starledger")
    handlers  = list(logger.handlers)
    level     = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
