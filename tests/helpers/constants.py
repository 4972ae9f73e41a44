"""Shared token constants for tests.

All addresses are lowercase for consistency with normalize_address().

Usage:
    from tests.helpers import TKA, TKB, USER
"""

from swapengine.constants import NATIVE_ADDRESS, WNATIVE
from swapengine.models.token import Token

# =============================================================================
# Test tokens (not deployed anywhere)
# =============================================================================

TKA = "0xa1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1"  # 18 decimals
TKB = "0xb2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2"  # 18 decimals
TKC = "0xc3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3"  # 6 decimals
FEE = "0xfefefefefefefefefefefefefefefefefefefefe"  # taxed on transfer

# =============================================================================
# Accounts
# =============================================================================

USER = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"

TOKEN_A = Token(symbol="TKA", name="Token A", address=TKA, decimals=18)
TOKEN_B = Token(symbol="TKB", name="Token B", address=TKB, decimals=18)
TOKEN_C = Token(symbol="TKC", name="Token C", address=TKC, decimals=6)
TOKEN_FEE = Token(symbol="FEE", name="Fee Token", address=FEE, decimals=18)
NATIVE = Token(symbol="LOOP", name="Loop Network", address=NATIVE_ADDRESS, decimals=18)
WRAPPED = Token(symbol="wLOOP", name="Wrapped Loop", address=WNATIVE, decimals=18)

ONE = 10**18
