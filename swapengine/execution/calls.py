"""Router call selection and action plans.

An ActionPlan is everything the orchestrator needs to execute one user
action: the balances to check, the allowances to ensure, and the final
contract call.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

from swapengine.chain import abi
from swapengine.config import EngineConfig, GasPolicy
from swapengine.constants import BPS_DENOMINATOR
from swapengine.models.quote import Operation, QuoteDirection, RouteQuote
from swapengine.models.token import Token
from swapengine.models.types import normalize_address
from swapengine.routing.pricing import minimum_received
from swapengine.safe_int import UINT256_MAX, S


class GasKind(str, Enum):
    SWAP = "swap"
    APPROVE = "approve"
    WRAP = "wrap"
    ADD_LIQUIDITY = "add_liquidity"
    REMOVE_LIQUIDITY = "remove_liquidity"
    OTHER = "other"

    def multiplier_bps(self, policy: GasPolicy) -> int:
        if self is GasKind.SWAP:
            return policy.swap_multiplier_bps
        if self in (GasKind.ADD_LIQUIDITY, GasKind.REMOVE_LIQUIDITY):
            return policy.liquidity_multiplier_bps
        return policy.approve_multiplier_bps

    def fallback(self, policy: GasPolicy) -> int:
        return {
            GasKind.SWAP: policy.swap_fallback,
            GasKind.APPROVE: policy.approve_fallback,
            GasKind.WRAP: policy.wrap_fallback,
            GasKind.ADD_LIQUIDITY: policy.add_liquidity_fallback,
            GasKind.REMOVE_LIQUIDITY: policy.remove_liquidity_fallback,
        }.get(self, policy.default_fallback)


class SwapKind(str, Enum):
    """Router function family, chosen by which side is the native coin."""

    ETH_FOR_TOKENS = "eth_for_tokens"
    TOKENS_FOR_ETH = "tokens_for_eth"
    TOKENS_FOR_TOKENS = "tokens_for_tokens"


@dataclass(frozen=True)
class ContractCall:
    """A transaction to send: target, calldata and attached value."""

    to: str
    data: str
    value: int
    function: str
    gas_kind: GasKind

    def to_tx(self, sender: str) -> dict[str, str]:
        tx = {"from": sender, "to": self.to, "data": self.data}
        if self.value:
            tx["value"] = hex(self.value)
        return tx


@dataclass(frozen=True)
class AllowanceRequirement:
    """Allowance the spender needs before the action.

    Attributes:
        required: Allowance that must be in place (spend plus buffer)
        approve_amount: Amount to approve when the allowance is short
    """

    token: str
    symbol: str
    spender: str
    required: int
    approve_amount: int


@dataclass(frozen=True)
class BalanceRequirement:
    token: str
    symbol: str
    amount: int


@dataclass(frozen=True)
class ActionPlan:
    description: str
    call: ContractCall
    allowances: tuple[AllowanceRequirement, ...] = ()
    balances: tuple[BalanceRequirement, ...] = ()


def deadline(config: EngineConfig, now: float | None = None) -> int:
    return int(now if now is not None else time.time()) + config.deadline_seconds


def swap_kind(token_in: Token, token_out: Token) -> SwapKind:
    if token_in.is_native:
        return SwapKind.ETH_FOR_TOKENS
    if token_out.is_native:
        return SwapKind.TOKENS_FOR_ETH
    return SwapKind.TOKENS_FOR_TOKENS


def allowance_requirement(
    token: Token, spender: str, spend: int, fee_on_transfer: bool, config: EngineConfig
) -> AllowanceRequirement:
    """Buffered allowance for spending `spend` of token."""
    buffer_bps = config.fee_token_allowance_buffer_bps if fee_on_transfer else config.allowance_buffer_bps
    required = (S(spend) * (BPS_DENOMINATOR + buffer_bps)).ceiling_div(BPS_DENOMINATOR).value
    return AllowanceRequirement(
        token=token.address,
        symbol=token.symbol,
        spender=normalize_address(spender),
        required=required,
        approve_amount=UINT256_MAX if config.approve_unlimited else required,
    )


_EXACT_IN = {
    (SwapKind.ETH_FOR_TOKENS, False): abi.SWAP_EXACT_ETH_FOR_TOKENS,
    (SwapKind.ETH_FOR_TOKENS, True): abi.SWAP_EXACT_ETH_FOR_TOKENS_FOT,
    (SwapKind.TOKENS_FOR_ETH, False): abi.SWAP_EXACT_TOKENS_FOR_ETH,
    (SwapKind.TOKENS_FOR_ETH, True): abi.SWAP_EXACT_TOKENS_FOR_ETH_FOT,
    (SwapKind.TOKENS_FOR_TOKENS, False): abi.SWAP_EXACT_TOKENS_FOR_TOKENS,
    (SwapKind.TOKENS_FOR_TOKENS, True): abi.SWAP_EXACT_TOKENS_FOR_TOKENS_FOT,
}

_EXACT_OUT = {
    SwapKind.ETH_FOR_TOKENS: abi.SWAP_ETH_FOR_EXACT_TOKENS,
    SwapKind.TOKENS_FOR_ETH: abi.SWAP_TOKENS_FOR_EXACT_ETH,
    SwapKind.TOKENS_FOR_TOKENS: abi.SWAP_TOKENS_FOR_EXACT_TOKENS,
}


def select_swap_function(
    kind: SwapKind, direction: QuoteDirection, fee_on_transfer: bool
) -> abi.ContractFunction:
    """Router function for a swap.

    Fee-on-transfer tokens always use the exact-input supporting variant;
    exact-output functions assume the full amount arrives.
    """
    if fee_on_transfer or direction is QuoteDirection.EXACT_IN:
        return _EXACT_IN[(kind, fee_on_transfer)]
    return _EXACT_OUT[kind]


def build_swap_plan(
    quote: RouteQuote,
    router: str,
    recipient: str,
    config: EngineConfig,
    *,
    now: float | None = None,
) -> ActionPlan:
    """Plan for executing a swap quote through a router.

    For fee-on-transfer tokens an exact-output quote executes as an exact
    input of the quoted input amount, and the output floor uses at least the
    fee-on-transfer slippage.
    """
    if quote.operation is not Operation.SWAP:
        raise ValueError(f"Not a swap quote: {quote.operation.value}")

    kind = swap_kind(quote.token_in, quote.token_out)
    fot = quote.fee_on_transfer
    fn = select_swap_function(kind, quote.direction, fot)
    path = list(quote.path)
    to = normalize_address(recipient)
    expiry = deadline(config, now)

    if fot or quote.direction is QuoteDirection.EXACT_IN:
        spend = quote.amount_in
        min_out = quote.minimum_received
        if fot:
            min_out = minimum_received(quote.amount_out, max(quote.slippage_bps, config.fee_on_transfer_slippage_bps))
        if kind is SwapKind.ETH_FOR_TOKENS:
            data = fn.encode(min_out, path, to, expiry)
        else:
            data = fn.encode(spend, min_out, path, to, expiry)
    else:
        spend = quote.maximum_input
        if kind is SwapKind.ETH_FOR_TOKENS:
            data = fn.encode(quote.amount_out, path, to, expiry)
        else:
            data = fn.encode(quote.amount_out, spend, path, to, expiry)

    value = spend if kind is SwapKind.ETH_FOR_TOKENS else 0
    allowances = ()
    if not quote.token_in.is_native:
        allowances = (allowance_requirement(quote.token_in, router, spend, fot, config),)

    return ActionPlan(
        description=f"Swap {quote.token_in.symbol} for {quote.token_out.symbol}",
        call=ContractCall(to=normalize_address(router), data=data, value=value, function=fn.name, gas_kind=GasKind.SWAP),
        allowances=allowances,
        balances=(BalanceRequirement(quote.token_in.address, quote.token_in.symbol, spend),),
    )


def build_wrap_plan(quote: RouteQuote, config: EngineConfig) -> ActionPlan:
    """Plan for a wrap (deposit) or unwrap (withdraw) quote."""
    wnative = config.wrapped_native
    if quote.operation is Operation.WRAP:
        call = ContractCall(
            to=wnative, data=abi.DEPOSIT.encode(), value=quote.amount_in, function="deposit", gas_kind=GasKind.WRAP
        )
        description = f"Wrap {quote.token_in.symbol}"
    elif quote.operation is Operation.UNWRAP:
        call = ContractCall(
            to=wnative,
            data=abi.WITHDRAW.encode(quote.amount_in),
            value=0,
            function="withdraw",
            gas_kind=GasKind.WRAP,
        )
        description = f"Unwrap {quote.token_in.symbol}"
    else:
        raise ValueError(f"Not a wrap quote: {quote.operation.value}")
    return ActionPlan(
        description=description,
        call=call,
        balances=(BalanceRequirement(quote.token_in.address, quote.token_in.symbol, quote.amount_in),),
    )


def build_add_liquidity_plan(
    router: str,
    token_a: Token,
    token_b: Token,
    amount_a: int,
    amount_b: int,
    min_a: int,
    min_b: int,
    recipient: str,
    config: EngineConfig,
    *,
    now: float | None = None,
) -> ActionPlan:
    """Plan for addLiquidity / addLiquidityETH."""
    router = normalize_address(router)
    to = normalize_address(recipient)
    expiry = deadline(config, now)

    if token_a.is_native and token_b.is_native:
        raise ValueError("Cannot pair the native coin with itself")
    if token_a.is_native or token_b.is_native:
        if token_a.is_native:
            token, amount_token, min_token, amount_eth, min_eth = token_b, amount_b, min_b, amount_a, min_a
        else:
            token, amount_token, min_token, amount_eth, min_eth = token_a, amount_a, min_a, amount_b, min_b
        data = abi.ADD_LIQUIDITY_ETH.encode(token.address, amount_token, min_token, min_eth, to, expiry)
        call = ContractCall(router, data, amount_eth, abi.ADD_LIQUIDITY_ETH.name, GasKind.ADD_LIQUIDITY)
        allowances = (allowance_requirement(token, router, amount_token, False, config),)
    else:
        data = abi.ADD_LIQUIDITY.encode(
            token_a.address, token_b.address, amount_a, amount_b, min_a, min_b, to, expiry
        )
        call = ContractCall(router, data, 0, abi.ADD_LIQUIDITY.name, GasKind.ADD_LIQUIDITY)
        allowances = (
            allowance_requirement(token_a, router, amount_a, False, config),
            allowance_requirement(token_b, router, amount_b, False, config),
        )

    return ActionPlan(
        description=f"Add {token_a.symbol}/{token_b.symbol} liquidity",
        call=call,
        allowances=allowances,
        balances=(
            BalanceRequirement(token_a.address, token_a.symbol, amount_a),
            BalanceRequirement(token_b.address, token_b.symbol, amount_b),
        ),
    )


def build_remove_liquidity_plan(
    router: str,
    pair: str,
    token_a: Token,
    token_b: Token,
    liquidity: int,
    min_a: int,
    min_b: int,
    recipient: str,
    config: EngineConfig,
    *,
    fee_on_transfer: bool = False,
    now: float | None = None,
) -> ActionPlan:
    """Plan for removeLiquidity / removeLiquidityETH.

    The LP token (the pair itself) must be approved to the router for
    exactly the liquidity burned.
    """
    router = normalize_address(router)
    pair = normalize_address(pair)
    to = normalize_address(recipient)
    expiry = deadline(config, now)

    if token_a.is_native or token_b.is_native:
        if token_a.is_native:
            token, min_token, min_eth = token_b, min_b, min_a
        else:
            token, min_token, min_eth = token_a, min_a, min_b
        fn = abi.REMOVE_LIQUIDITY_ETH_FOT if fee_on_transfer else abi.REMOVE_LIQUIDITY_ETH
        data = fn.encode(token.address, liquidity, min_token, min_eth, to, expiry)
    else:
        fn = abi.REMOVE_LIQUIDITY
        data = fn.encode(token_a.address, token_b.address, liquidity, min_a, min_b, to, expiry)

    lp = AllowanceRequirement(
        token=pair,
        symbol="LP",
        spender=router,
        required=liquidity,
        approve_amount=UINT256_MAX if config.approve_unlimited else liquidity,
    )
    return ActionPlan(
        description=f"Remove {token_a.symbol}/{token_b.symbol} liquidity",
        call=ContractCall(router, data, 0, fn.name, GasKind.REMOVE_LIQUIDITY),
        allowances=(lp,),
        balances=(BalanceRequirement(pair, "LP", liquidity),),
    )


__all__ = [
    "GasKind",
    "SwapKind",
    "ContractCall",
    "AllowanceRequirement",
    "BalanceRequirement",
    "ActionPlan",
    "deadline",
    "swap_kind",
    "allowance_requirement",
    "select_swap_function",
    "build_swap_plan",
    "build_wrap_plan",
    "build_add_liquidity_plan",
    "build_remove_liquidity_plan",
]
