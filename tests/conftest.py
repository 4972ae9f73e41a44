"""Pytest configuration and fixtures."""

import pytest

from swapengine.config import EngineConfig
from swapengine.engine import SwapEngine
from tests.helpers.constants import FEE, TKA, TKB, TKC, USER
from tests.helpers.factories import make_config, make_engine
from tests.helpers.fake_chain import FakeChain


@pytest.fixture
def config() -> EngineConfig:
    """Default config with zero backoff and small poll budgets."""
    return make_config()


@pytest.fixture
def chain(config: EngineConfig) -> FakeChain:
    """Fake chain with four test tokens and no pairs."""
    chain = FakeChain(config, accounts=[USER])
    chain.add_token(TKA, "TKA", name="Token A")
    chain.add_token(TKB, "TKB", name="Token B")
    chain.add_token(TKC, "TKC", decimals=6, name="Token C")
    chain.add_token(FEE, "FEE", name="Fee Token", fee_views={"_taxFee": 5})
    return chain


@pytest.fixture
def engine(chain: FakeChain, config: EngineConfig) -> SwapEngine:
    """Engine connected as USER over the fake chain."""
    return make_engine(chain, config)
