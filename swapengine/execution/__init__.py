"""Transaction planning and orchestration."""

from swapengine.execution.calls import (
    ActionPlan,
    AllowanceRequirement,
    BalanceRequirement,
    ContractCall,
    GasKind,
    SwapKind,
    build_add_liquidity_plan,
    build_remove_liquidity_plan,
    build_swap_plan,
    build_wrap_plan,
)
from swapengine.execution.orchestrator import FlowResult, ReceiptStatus, TransactionOrchestrator
from swapengine.execution.state import TransactionStateMachine

__all__ = [
    "ActionPlan",
    "AllowanceRequirement",
    "BalanceRequirement",
    "ContractCall",
    "GasKind",
    "SwapKind",
    "build_add_liquidity_plan",
    "build_remove_liquidity_plan",
    "build_swap_plan",
    "build_wrap_plan",
    "FlowResult",
    "ReceiptStatus",
    "TransactionOrchestrator",
    "TransactionStateMachine",
]
