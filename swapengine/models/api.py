"""Pydantic models for the HTTP quote service."""

from pydantic import BaseModel, Field

from swapengine.models.quote import NoRoute, QuoteDirection, RouteQuote
from swapengine.models.token import Token
from swapengine.models.types import Address, Amount, SlippageBps


class QuoteRequest(BaseModel):
    """A quote request.

    The amount is the input for exact_in and the output for exact_out.
    """

    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    amount: Amount
    direction: QuoteDirection = QuoteDirection.EXACT_IN
    slippage_bps: SlippageBps | None = Field(default=None, alias="slippageBps")

    model_config = {"populate_by_name": True}


class TokenInfo(BaseModel):
    address: Address
    symbol: str
    name: str
    decimals: int
    price: str | None = None

    @classmethod
    def from_token(cls, token: Token) -> "TokenInfo":
        return cls(
            address=token.address,
            symbol=token.symbol,
            name=token.name,
            decimals=token.decimals,
            price=str(token.price) if token.price is not None else None,
        )


class QuoteResponse(BaseModel):
    """A quote, or the reason none is available.

    Amounts are decimal strings in base units.
    """

    available: bool
    reason: str | None = None
    error_kind: str | None = Field(default=None, alias="errorKind")
    operation: str | None = None
    router: str | None = None
    direction: QuoteDirection | None = None
    amount_in: str | None = Field(default=None, alias="amountIn")
    amount_out: str | None = Field(default=None, alias="amountOut")
    minimum_received: str | None = Field(default=None, alias="minimumReceived")
    maximum_input: str | None = Field(default=None, alias="maximumInput")
    price_impact_bps: int | None = Field(default=None, alias="priceImpactBps")
    recommended_slippage_bps: int | None = Field(default=None, alias="recommendedSlippageBps")
    fee_on_transfer: bool | None = Field(default=None, alias="feeOnTransfer")
    gas_estimate_wei: str | None = Field(default=None, alias="gasEstimateWei")
    path: list[str] | None = None

    model_config = {"populate_by_name": True}

    @classmethod
    def unavailable(cls, outcome: NoRoute) -> "QuoteResponse":
        return cls(
            available=False,
            reason=outcome.reason,
            error_kind=outcome.kind.value if outcome.kind else None,
        )

    @classmethod
    def from_quote(cls, quote: RouteQuote) -> "QuoteResponse":
        return cls(
            available=True,
            operation=quote.operation.value,
            router=quote.router,
            direction=quote.direction,
            amount_in=str(quote.amount_in),
            amount_out=str(quote.amount_out),
            minimum_received=str(quote.minimum_received),
            maximum_input=str(quote.maximum_input),
            price_impact_bps=quote.price_impact.bps,
            recommended_slippage_bps=quote.recommended_slippage_bps,
            fee_on_transfer=quote.fee_on_transfer,
            gas_estimate_wei=str(quote.gas_estimate_wei),
            path=list(quote.path),
        )
