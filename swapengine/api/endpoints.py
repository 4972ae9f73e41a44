"""API endpoints for the quote service."""

from functools import lru_cache

import structlog
from fastapi import APIRouter, Depends, HTTPException

from swapengine.chain.provider import ChainContext, WalletType, Web3WalletProvider
from swapengine.config import EngineConfig
from swapengine.engine import SwapEngine
from swapengine.errors import SwapEngineError
from swapengine.models.api import QuoteRequest, QuoteResponse, TokenInfo
from swapengine.models.quote import NoRoute
from swapengine.models.token import Token

logger = structlog.get_logger()

router = APIRouter()


@lru_cache(maxsize=1)
def _default_engine() -> SwapEngine:
    config = EngineConfig.from_env()
    logger.info("engine_created", rpc_url=config.rpc_url[:50], chain_id=config.chain_id)
    context = ChainContext(
        provider=Web3WalletProvider(config.rpc_url),
        wallet_type=WalletType.READ_ONLY,
        chain_id=config.chain_id,
    )
    return SwapEngine(context, config)


def get_engine() -> SwapEngine:
    """Dependency provider for the engine instance.

    Override this in tests to inject an engine over a fake chain:
        app.dependency_overrides[get_engine] = lambda: engine
    """
    return _default_engine()


async def _resolve_token(engine: SwapEngine, address: str) -> Token:
    known = engine.registry.get(address)
    if known is not None:
        return known
    try:
        return await engine.import_token(address)
    except SwapEngineError as e:
        raise HTTPException(status_code=400, detail=e.message) from e


@router.get("/tokens", response_model_exclude_none=True)
async def list_tokens(prices: bool = False, engine: SwapEngine = Depends(get_engine)) -> list[TokenInfo]:
    """Tokens known to the engine, including imported ones.

    With prices=true each token carries its reference price from its
    wrapped-native pair, where one exists.
    """
    tokens = list(engine.registry)
    if prices:
        tokens = await engine.with_prices(tokens)
    return [TokenInfo.from_token(t) for t in tokens]


@router.post("/quote", response_model_exclude_none=True)
async def quote(request: QuoteRequest, engine: SwapEngine = Depends(get_engine)) -> QuoteResponse:
    """Quote a swap, wrap or unwrap.

    Error Handling:
        - Invalid request schema: 422 (Pydantic)
        - Unknown token that cannot be imported: 400
        - No route or chain read failure: 200 with available=false
    """
    token_in = await _resolve_token(engine, request.token_in)
    token_out = await _resolve_token(engine, request.token_out)
    logger.info(
        "received_quote_request",
        token_in=token_in.symbol,
        token_out=token_out.symbol,
        amount=str(request.amount),
        direction=request.direction.value,
    )

    outcome = await engine.get_quote(
        token_in, token_out, request.amount, request.direction, request.slippage_bps
    )
    if isinstance(outcome, NoRoute):
        return QuoteResponse.unavailable(outcome)
    return QuoteResponse.from_quote(outcome.quote)
