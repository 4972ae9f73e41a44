"""Multi-router quote and transaction orchestration engine for V2-style DEXes."""

from swapengine.engine import SwapEngine, SwapOutcome, SwapParams

__version__ = "0.1.0"
__all__ = ["SwapEngine", "SwapOutcome", "SwapParams", "__version__"]
