"""Test helpers module for shared test utilities.

- constants: Token addresses, Token objects and accounts
- fake_chain: In-memory provider answering engine reads and writes
- factories: Pool, config and engine factory functions
"""

from tests.helpers.constants import (
    FEE,
    NATIVE,
    ONE,
    OTHER,
    TKA,
    TKB,
    TKC,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    TOKEN_FEE,
    USER,
    WRAPPED,
)
from tests.helpers.factories import make_config, make_engine, make_pool
from tests.helpers.fake_chain import FakeChain, revert

__all__ = [
    # Constants
    "TKA",
    "TKB",
    "TKC",
    "FEE",
    "USER",
    "OTHER",
    "ONE",
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    "TOKEN_FEE",
    "NATIVE",
    "WRAPPED",
    # Fakes and factories
    "FakeChain",
    "revert",
    "make_config",
    "make_engine",
    "make_pool",
]
