"""Constant-product AMM math."""

from swapengine.amm.base import AMM, SwapResult
from swapengine.amm.constant_product import ConstantProduct, ConstantProductPool, constant_product
from swapengine.amm.liquidity import LiquidityMath, MintQuote, BurnQuote, liquidity_math

__all__ = [
    "AMM",
    "SwapResult",
    "ConstantProduct",
    "ConstantProductPool",
    "constant_product",
    "LiquidityMath",
    "MintQuote",
    "BurnQuote",
    "liquidity_math",
]
