"""Engine entry point.

SwapEngine composes pair resolution, quoting, fee-on-transfer detection and
transaction orchestration over one wallet connection. Quotes never raise for
chain read failures; they resolve to a Route or a NoRoute. Write flows report
progress through TransactionState snapshots and finish with a SwapOutcome.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

import structlog

from swapengine.amm.constant_product import constant_product
from swapengine.amm.liquidity import liquidity_math
from swapengine.chain.client import ChainClient
from swapengine.chain.provider import ChainContext
from swapengine.config import DEFAULT_CONFIG, EngineConfig, RouterConfig
from swapengine.errors import (
    ErrorKind,
    InsufficientLiquidity,
    ProviderUnavailable,
    QuoteStale,
    SwapEngineError,
    classify_error,
    error_for_kind,
)
from swapengine.execution.calls import (
    ActionPlan,
    build_add_liquidity_plan,
    build_remove_liquidity_plan,
    build_swap_plan,
    build_wrap_plan,
)
from swapengine.execution.orchestrator import FlowResult, TransactionOrchestrator
from swapengine.execution.state import Observer, TransactionStateMachine
from swapengine.models.liquidity import LiquidityQuote, Position, RemovalQuote
from swapengine.models.quote import NoRoute, Operation, QuoteDirection, Route, RouteQuote
from swapengine.models.token import Token
from swapengine.routing.prices import ReservePriceEstimator
from swapengine.routing.pricing import (
    maximum_input,
    minimum_received,
    price_impact,
    recommend_slippage,
)
from swapengine.routing.quoter import QuoteCalculator
from swapengine.routing.resolver import PairResolver, PairState
from swapengine.routing.wrap import WrapKind, classify, wrap_quote
from swapengine.tokens.fee_detection import FeeOnTransferDetector, FeeTokenSource
from swapengine.tokens.registry import TokenRegistry, fetch_token

logger = structlog.get_logger()

SwapOutcome = FlowResult


@dataclass(frozen=True)
class SwapParams:
    """A swap request.

    Attributes:
        amount: Input amount for EXACT_IN, output amount for EXACT_OUT (base units)
        slippage_bps: Tolerance; the engine default when None
        recipient: Receiver of the output; the connected account when None
        accepted_quote: Quote the user confirmed. Execution re-quotes and
            refuses with QuoteStale if the fresh price falls outside its bounds.
    """

    token_in: Token
    token_out: Token
    amount: int
    direction: QuoteDirection = QuoteDirection.EXACT_IN
    slippage_bps: int | None = None
    recipient: str | None = None
    accepted_quote: RouteQuote | None = None

    @classmethod
    def from_quote(cls, quote: RouteQuote, recipient: str | None = None) -> SwapParams:
        amount = quote.amount_in if quote.direction is QuoteDirection.EXACT_IN else quote.amount_out
        return cls(
            token_in=quote.token_in,
            token_out=quote.token_out,
            amount=amount,
            direction=quote.direction,
            slippage_bps=quote.slippage_bps,
            recipient=recipient,
            accepted_quote=quote,
        )


class SwapEngine:
    """Quotes and executes swaps and liquidity actions across the configured routers.

    Args:
        context: Wallet connection; read-only use needs no account
        config: Engine configuration; DEFAULT_CONFIG when None
        registry: Token list used by import_token
        fee_tokens: Source of known fee-on-transfer tokens and probe functions
    """

    def __init__(
        self,
        context: ChainContext,
        config: EngineConfig | None = None,
        registry: TokenRegistry | None = None,
        fee_tokens: FeeTokenSource | None = None,
    ) -> None:
        self.context = context
        self.config = config if config is not None else DEFAULT_CONFIG
        self.client = ChainClient(context, self.config)
        self.resolver = PairResolver(self.client)
        self.calculator = QuoteCalculator(self.resolver)
        self.prices = ReservePriceEstimator(self.resolver)
        self.fee_detector = FeeOnTransferDetector(self.client, fee_tokens)
        self.orchestrator = TransactionOrchestrator(self.client)
        self.registry = registry if registry is not None else TokenRegistry()

    def _slippage(self, slippage_bps: int | None) -> int:
        return self.config.default_slippage_bps if slippage_bps is None else slippage_bps

    # Quotes

    async def get_quote(
        self,
        token_in: Token,
        token_out: Token,
        amount: int,
        direction: QuoteDirection = QuoteDirection.EXACT_IN,
        slippage_bps: int | None = None,
    ) -> Route | NoRoute:
        """Quote a trade.

        Wrap and unwrap are answered 1:1 without touching any pair. Otherwise
        the highest-priority router with a direct pair wins, falling back to a
        hop through wrapped native.

        Args:
            amount: Input amount for EXACT_IN, output amount for EXACT_OUT (base units)

        Raises:
            ValueError: If slippage_bps is outside [0, 10000]
        """
        slippage = self._slippage(slippage_bps)
        if not 0 <= slippage <= 10_000:
            raise ValueError(f"slippage_bps must be in [0, 10000], got {slippage}")
        if amount <= 0:
            return NoRoute(reason="Enter an amount greater than zero")
        if token_in.address == token_out.address:
            return NoRoute(reason="Input and output tokens are the same")

        if classify(token_in.address, token_out.address, self.config) is not WrapKind.NONE:
            return Route(wrap_quote(token_in, token_out, amount, direction, slippage, self.config))

        try:
            result, fee_in, fee_out = await asyncio.gather(
                self.calculator.quote(token_in.address, token_out.address, amount, direction),
                self.fee_detector.probe(token_in.address),
                self.fee_detector.probe(token_out.address),
            )
        except Exception as e:
            error = classify_error(e)
            logger.warning(
                "quote_failed",
                token_in=token_in.symbol,
                token_out=token_out.symbol,
                error=error.message,
            )
            return NoRoute(reason=error.message, kind=error.kind)

        if isinstance(result, NoRoute):
            logger.info("no_route", token_in=token_in.symbol, token_out=token_out.symbol, reason=result.reason)
            return result

        if direction is QuoteDirection.EXACT_IN and result.amount_out == 0:
            logger.info("quote_rounds_to_zero", token_in=token_in.symbol, token_out=token_out.symbol, amount=amount)
            return NoRoute(reason="Amount too small", kind=ErrorKind.INSUFFICIENT_LIQUIDITY)

        fee_on_transfer = fee_in or fee_out
        impact = price_impact(result.amount_in, result.amount_out, result.hops)
        router = self.config.router(result.router)
        quote = RouteQuote(
            token_in=token_in,
            token_out=token_out,
            direction=direction,
            amount_in=result.amount_in,
            amount_out=result.amount_out,
            slippage_bps=slippage,
            minimum_received=minimum_received(result.amount_out, slippage),
            maximum_input=maximum_input(result.amount_in, slippage),
            price_impact=impact,
            recommended_slippage_bps=recommend_slippage(impact, slippage, fee_on_transfer, self.config),
            router=router.id,
            gas_estimate_wei=router.gas_cost_wei,
            fee_on_transfer=fee_on_transfer,
            path=result.path,
            hops=result.hops,
        )
        logger.debug(
            "quote_computed",
            router=router.id,
            path_length=len(result.path),
            amount_in=result.amount_in,
            amount_out=result.amount_out,
            impact_ppm=impact.ppm,
        )
        return Route(quote)

    async def _pair(
        self, token_a: Token, token_b: Token, router_id: str | None
    ) -> tuple[RouterConfig, PairState]:
        """Pair on the requested router, else the highest-priority router where it exists.

        Raises:
            ProviderUnavailable: If a router that could hold the pair could not be read
        """
        if router_id is not None:
            router = self.config.router(router_id)
            states = [await self.resolver.resolve(token_a.address, token_b.address, router)]
            routers = [router]
        else:
            routers = self.config.routers_by_priority
            states = await self.resolver.resolve_all(token_a.address, token_b.address)

        for router, state in zip(routers, states):
            if state.lookup_failed:
                logger.warning("pair_state_unknown", router=router.id, token_a=token_a.symbol, token_b=token_b.symbol)
                raise ProviderUnavailable(f"Could not read the {token_a.symbol}/{token_b.symbol} pair on {router.name}")
            if state.pair_exists:
                return router, state
        return routers[0], states[0]

    async def quote_add_liquidity(
        self,
        token_a: Token,
        token_b: Token,
        amount_a: int,
        amount_b: int | None = None,
        slippage_bps: int | None = None,
        router_id: str | None = None,
    ) -> LiquidityQuote | NoRoute:
        """Quote a deposit.

        With amount_b omitted the paired amount is derived from the pool
        ratio; a pool without reserves needs both amounts since the deposit
        sets the price.
        """
        slippage = self._slippage(slippage_bps)
        if amount_a <= 0 or (amount_b is not None and amount_b <= 0):
            return NoRoute(reason="Enter an amount greater than zero")

        try:
            router, state = await self._pair(token_a, token_b, router_id)
        except ProviderUnavailable as e:
            return NoRoute(reason=e.message, kind=e.kind)
        empty = state.reserve_a == 0 and state.reserve_b == 0
        if amount_b is None:
            if empty:
                return NoRoute(reason="The first deposit must set both amounts")
            amount_b = constant_product.quote(amount_a, state.reserve_a, state.reserve_b)

        try:
            mint = liquidity_math.mint(amount_a, amount_b, state.reserve_a, state.reserve_b, state.total_supply)
        except InsufficientLiquidity as e:
            return NoRoute(reason=e.message, kind=e.kind)

        return LiquidityQuote(
            router=router.id,
            token_a=token_a,
            token_b=token_b,
            amount_a=mint.amount_a,
            amount_b=mint.amount_b,
            minimum_a=minimum_received(mint.amount_a, slippage),
            minimum_b=minimum_received(mint.amount_b, slippage),
            liquidity=mint.liquidity,
            share_of_pool_bps=mint.share_of_pool_bps,
            first_liquidity=mint.first_liquidity,
            slippage_bps=slippage,
            pair_address=state.pool_address,
        )

    async def quote_remove_liquidity(
        self,
        token_a: Token,
        token_b: Token,
        liquidity: int,
        slippage_bps: int | None = None,
        router_id: str | None = None,
    ) -> RemovalQuote | NoRoute:
        """Quote burning LP tokens for their pro-rata share of the reserves."""
        slippage = self._slippage(slippage_bps)
        if liquidity <= 0:
            return NoRoute(reason="Enter an amount greater than zero")

        try:
            router, state = await self._pair(token_a, token_b, router_id)
        except ProviderUnavailable as e:
            return NoRoute(reason=e.message, kind=e.kind)
        if not state.pair_exists or state.pool_address is None:
            return NoRoute(reason=f"No {token_a.symbol}/{token_b.symbol} pair", kind=ErrorKind.INSUFFICIENT_LIQUIDITY)
        try:
            burn = liquidity_math.burn(liquidity, state.reserve_a, state.reserve_b, state.total_supply)
        except InsufficientLiquidity as e:
            return NoRoute(reason=e.message, kind=e.kind)

        other = token_b if token_a.is_native else token_a
        fee_on_transfer = (token_a.is_native or token_b.is_native) and await self.fee_detector.probe(other.address)
        return RemovalQuote(
            router=router.id,
            pair_address=state.pool_address,
            token_a=token_a,
            token_b=token_b,
            liquidity=liquidity,
            amount_a=burn.amount_a,
            amount_b=burn.amount_b,
            minimum_a=minimum_received(burn.amount_a, slippage),
            minimum_b=minimum_received(burn.amount_b, slippage),
            share_of_pool_bps=burn.share_of_pool_bps,
            slippage_bps=slippage,
            fee_on_transfer=fee_on_transfer,
        )

    # Account reads

    async def get_position(
        self,
        token_a: Token,
        token_b: Token,
        owner: str | None = None,
        router_id: str | None = None,
    ) -> Position | None:
        """LP position of owner (default: the connected account), or None if the pair is missing.

        Raises:
            ProviderUnavailable: If the pair or the LP balance cannot be read
        """
        account = owner or self.context.require_account()
        router, state = await self._pair(token_a, token_b, router_id)
        if not state.pair_exists or state.pool_address is None:
            return None

        try:
            balance = await self.client.balance_of(state.pool_address, account)
        except Exception as e:
            raise ProviderUnavailable(f"Could not read the LP balance of {account}") from e
        if state.total_supply > 0:
            burn = liquidity_math.burn(balance, state.reserve_a, state.reserve_b, state.total_supply)
            amount_a, amount_b, share = burn.amount_a, burn.amount_b, burn.share_of_pool_bps
        else:
            amount_a = amount_b = share = 0
        return Position(
            router=router.id,
            pair_address=state.pool_address,
            token_a=token_a,
            token_b=token_b,
            liquidity=balance,
            total_supply=state.total_supply,
            share_of_pool_bps=share,
            amount_a=amount_a,
            amount_b=amount_b,
        )

    async def get_balances(self, tokens: Sequence[Token], owner: str | None = None) -> dict[str, int]:
        """Balances by token address, read concurrently.

        Tokens whose balance cannot be read are logged and left out.
        """
        account = owner or self.context.require_account()
        results = await self.client.gather_bounded(
            (self.client.token_balance(t.address, account) for t in tokens),
            return_exceptions=True,
        )
        balances: dict[str, int] = {}
        for token, result in zip(tokens, results):
            if isinstance(result, BaseException):
                logger.warning("balance_read_failed", token=token.symbol, error=str(result))
                continue
            balances[token.address] = result
        return balances

    async def price_of(self, token: Token) -> Decimal | None:
        """Reference price of one whole token from its wrapped-native pair, or None without one."""
        return (await self.prices.estimate_price(token)).price

    async def get_prices(self, tokens: Sequence[Token]) -> dict[str, Decimal]:
        """Reference prices by token address; tokens without a priced pair are left out."""
        estimates = await self.prices.estimate_prices(tokens)
        return {address: e.price for address, e in estimates.items() if e.price is not None}

    async def with_prices(self, tokens: Sequence[Token]) -> list[Token]:
        """Copies of tokens with price filled in where a pair prices them."""
        prices = await self.get_prices(tokens)
        return [t.model_copy(update={"price": prices.get(t.address)}) for t in tokens]

    async def import_token(self, address: str) -> Token:
        """Add a token by address, reading its metadata from chain.

        Raises:
            InvalidToken: If the address is malformed or the token cannot be read
        """
        existing = self.registry.get(address)
        if existing is not None:
            return existing
        token = await fetch_token(self.client, address)
        logger.info("token_imported", address=token.address, symbol=token.symbol, decimals=token.decimals)
        return self.registry.add(token)

    # Write flows

    def new_flow(self, on_progress: Observer | None = None) -> TransactionStateMachine:
        """State machine to pass to a write flow.

        Reusing it for the same action after a failure retries the flow
        with its earlier hashes kept; flow.cancel() abandons it while in INPUT.
        """
        return TransactionStateMachine([on_progress] if on_progress else None)

    def _failed(
        self, error: SwapEngineError, on_progress: Observer | None, flow: TransactionStateMachine | None
    ) -> SwapOutcome:
        machine = self.orchestrator.start(flow, [on_progress] if on_progress else None)
        machine.fail(error)
        return SwapOutcome(success=False, tx_hash=None, error=error.message, state=machine.state.snapshot())

    async def _run(
        self, plan: ActionPlan, on_progress: Observer | None, flow: TransactionStateMachine | None
    ) -> SwapOutcome:
        result = await self.orchestrator.run(plan, [on_progress] if on_progress else None, flow)
        logger.info(
            "flow_finished",
            action=plan.description,
            success=result.success,
            step=result.state.step.value,
            tx_hash=result.tx_hash,
        )
        return result

    async def _executable_quote(self, params: SwapParams) -> RouteQuote:
        """Fresh quote for params, or the accepted quote if it is still within bounds.

        Raises:
            SwapEngineError: If no route exists or the accepted quote is stale
        """
        outcome = await self.get_quote(
            params.token_in, params.token_out, params.amount, params.direction, params.slippage_bps
        )
        if isinstance(outcome, NoRoute):
            raise error_for_kind(outcome.kind, outcome.reason)

        fresh = outcome.quote
        accepted = params.accepted_quote
        if accepted is None:
            return fresh
        if accepted.direction is QuoteDirection.EXACT_IN and fresh.amount_out < accepted.minimum_received:
            logger.warning("quote_stale", expected_min=accepted.minimum_received, fresh=fresh.amount_out)
            raise QuoteStale()
        if accepted.direction is QuoteDirection.EXACT_OUT and fresh.amount_in > accepted.maximum_input:
            logger.warning("quote_stale", expected_max=accepted.maximum_input, fresh=fresh.amount_in)
            raise QuoteStale()
        return accepted

    async def execute_swap(
        self,
        params: SwapParams,
        on_progress: Observer | None = None,
        flow: TransactionStateMachine | None = None,
    ) -> SwapOutcome:
        """Quote and execute a swap, wrap or unwrap.

        Never raises for chain or wallet failures; they are reported in the
        outcome and its final state. Pass the flow of a failed attempt to
        retry it.
        """
        try:
            account = self.context.require_account()
            quote = await self._executable_quote(params)
        except Exception as e:
            error = classify_error(e)
            logger.warning("swap_not_started", error=error.message, kind=error.kind.value)
            return self._failed(error, on_progress, flow)

        if quote.operation is Operation.SWAP:
            router = self.config.router(quote.router)
            plan = build_swap_plan(quote, router.router, params.recipient or account, self.config)
        else:
            plan = build_wrap_plan(quote, self.config)
        return await self._run(plan, on_progress, flow)

    async def add_liquidity(
        self,
        quote: LiquidityQuote,
        on_progress: Observer | None = None,
        recipient: str | None = None,
        flow: TransactionStateMachine | None = None,
    ) -> SwapOutcome:
        try:
            account = self.context.require_account()
        except Exception as e:
            return self._failed(classify_error(e), on_progress, flow)
        plan = build_add_liquidity_plan(
            self.config.router(quote.router).router,
            quote.token_a,
            quote.token_b,
            quote.amount_a,
            quote.amount_b,
            quote.minimum_a,
            quote.minimum_b,
            recipient or account,
            self.config,
        )
        return await self._run(plan, on_progress, flow)

    async def remove_liquidity(
        self,
        quote: RemovalQuote,
        on_progress: Observer | None = None,
        recipient: str | None = None,
        flow: TransactionStateMachine | None = None,
    ) -> SwapOutcome:
        try:
            account = self.context.require_account()
        except Exception as e:
            return self._failed(classify_error(e), on_progress, flow)
        plan = build_remove_liquidity_plan(
            self.config.router(quote.router).router,
            quote.pair_address,
            quote.token_a,
            quote.token_b,
            quote.liquidity,
            quote.minimum_a,
            quote.minimum_b,
            recipient or account,
            self.config,
            fee_on_transfer=quote.fee_on_transfer,
        )
        return await self._run(plan, on_progress, flow)


__all__ = ["SwapEngine", "SwapOutcome", "SwapParams"]
