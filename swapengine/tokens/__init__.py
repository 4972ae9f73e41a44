"""Token metadata and fee-on-transfer detection."""

from swapengine.tokens.fee_detection import (
    FeeOnTransferDetector,
    FeeTokenInfo,
    FeeTokenSource,
    StaticFeeTokenSource,
    default_fee_token_source,
)
from swapengine.tokens.registry import DEFAULT_TOKENS, LOOP, WLOOP, TokenRegistry, fetch_token

__all__ = [
    "FeeOnTransferDetector",
    "FeeTokenInfo",
    "FeeTokenSource",
    "StaticFeeTokenSource",
    "default_fee_token_source",
    "DEFAULT_TOKENS",
    "LOOP",
    "WLOOP",
    "TokenRegistry",
    "fetch_token",
]
