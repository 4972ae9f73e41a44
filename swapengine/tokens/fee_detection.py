"""Fee-on-transfer token detection.

A token is treated as fee-on-transfer when it is on the known list, or when
one of the common fee/reflection view functions answers with a non-zero
value. Probe failures never block a quote: they are logged and the token is
treated as a normal ERC-20.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Protocol

import structlog

from swapengine import constants
from swapengine.chain.abi import ContractFunction, decode_uint
from swapengine.chain.client import ChainClient
from swapengine.errors import ProviderError
from swapengine.models.types import normalize_address

logger = structlog.get_logger()

# View functions that fee and reflection tokens commonly expose
DEFAULT_PROBE_SIGNATURES: tuple[str, ...] = (
    "_taxFee()",
    "_liquidityFee()",
    "_burnFee()",
    "_marketingFee()",
    "_devFee()",
    "buyTaxFee()",
    "sellTaxFee()",
    "totalFees()",
)


@dataclass(frozen=True)
class FeeTokenInfo:
    """Fee characteristics of a token.

    Attributes:
        address: Token address (lowercase)
        has_transfer_fee: Whether transfers deliver less than the sent amount
        buy_fee: Fee fraction on buys (0.05 = 5%), if known
        sell_fee: Fee fraction on sells, if known
        is_reflection: Whether the token redistributes fees to holders
    """

    address: str
    has_transfer_fee: bool
    buy_fee: Decimal | None = None
    sell_fee: Decimal | None = None
    is_reflection: bool = False

    @classmethod
    def no_fee(cls, address: str) -> FeeTokenInfo:
        return cls(address=normalize_address(address), has_transfer_fee=False, buy_fee=Decimal(0), sell_fee=Decimal(0))


class FeeTokenSource(Protocol):
    """Where fee-token data comes from; swap implementations to update it."""

    def known(self, address: str) -> FeeTokenInfo | None:
        """Info for a listed fee token, or None if unlisted."""
        ...

    @property
    def probe_functions(self) -> tuple[ContractFunction, ...]:
        """No-argument uint views to probe for unlisted tokens."""
        ...


@dataclass
class StaticFeeTokenSource:
    """In-memory fee-token list plus probe function signatures."""

    tokens: dict[str, FeeTokenInfo] = field(default_factory=dict)
    probe_signatures: tuple[str, ...] = DEFAULT_PROBE_SIGNATURES

    def __post_init__(self) -> None:
        self.tokens = {normalize_address(k): v for k, v in self.tokens.items()}
        self._probes = tuple(ContractFunction(sig, ("uint256",)) for sig in self.probe_signatures)

    def known(self, address: str) -> FeeTokenInfo | None:
        return self.tokens.get(normalize_address(address))

    @property
    def probe_functions(self) -> tuple[ContractFunction, ...]:
        return self._probes

    @classmethod
    def from_json(cls, path: str | Path) -> StaticFeeTokenSource:
        """Load a source from JSON.

        Format:
            {"tokens": {"0x...": {"buy_fee": "0.05", "sell_fee": "0.05", "is_reflection": false}},
             "probe_signatures": ["_taxFee()", ...]}
        """
        data = json.loads(Path(path).read_text())
        tokens = {}
        for address, entry in data.get("tokens", {}).items():
            tokens[normalize_address(address, validate=True)] = FeeTokenInfo(
                address=normalize_address(address),
                has_transfer_fee=True,
                buy_fee=Decimal(str(entry["buy_fee"])) if "buy_fee" in entry else None,
                sell_fee=Decimal(str(entry["sell_fee"])) if "sell_fee" in entry else None,
                is_reflection=bool(entry.get("is_reflection", False)),
            )
        signatures = tuple(data.get("probe_signatures", DEFAULT_PROBE_SIGNATURES))
        return cls(tokens=tokens, probe_signatures=signatures)


def default_fee_token_source() -> StaticFeeTokenSource:
    """Listed fee tokens on the Loop network."""
    return StaticFeeTokenSource(
        tokens={
            constants.KYC: FeeTokenInfo(
                address=constants.KYC,
                has_transfer_fee=True,
                buy_fee=Decimal("0.05"),
                sell_fee=Decimal("0.05"),
            ),
            constants.GIKO: FeeTokenInfo(
                address=constants.GIKO,
                has_transfer_fee=True,
                buy_fee=Decimal("0.03"),
                sell_fee=Decimal("0.03"),
            ),
        }
    )


class FeeOnTransferDetector:
    """Classifies tokens as fee-on-transfer or normal.

    Results are not cached; every call reflects the current source and chain.
    """

    def __init__(self, client: ChainClient, source: FeeTokenSource | None = None):
        self.client = client
        self.source = source if source is not None else default_fee_token_source()

    def _exempt(self, address: str) -> bool:
        return address in (self.client.config.native_address, self.client.config.wrapped_native)

    async def probe(self, address: str) -> bool:
        """True if the token takes a fee on transfer."""
        return (await self.details(address)).has_transfer_fee

    async def details(self, address: str) -> FeeTokenInfo:
        """Fee info for a token.

        Native and wrapped native never carry a fee. Provider failures are
        logged and yield a no-fee result.
        """
        token = normalize_address(address)
        if self._exempt(token):
            return FeeTokenInfo.no_fee(token)

        listed = self.source.known(token)
        if listed is not None:
            return listed

        try:
            detected = await self._probe_views(token)
        except Exception as e:
            logger.warning("fee_probe_failed", token=token, error=str(e))
            return FeeTokenInfo.no_fee(token)

        if detected:
            logger.info("fee_on_transfer_detected", token=token, function=detected)
            return FeeTokenInfo(address=token, has_transfer_fee=True, is_reflection=True)
        return FeeTokenInfo.no_fee(token)

    async def _probe_views(self, token: str) -> str | None:
        """Name of the first fee view returning non-zero, or None.

        A revert means the function is absent; any other provider error
        propagates to the caller.
        """
        for fn in self.source.probe_functions:
            try:
                result = await self.client.call(token, fn.encode())
            except ProviderError as e:
                if _is_revert(e):
                    continue
                raise
            try:
                value = decode_uint(result)
            except ValueError:
                continue
            if value > 0:
                return fn.name
        return None


def _is_revert(error: ProviderError) -> bool:
    return error.code == 3 or "revert" in error.message.lower()


__all__ = [
    "FeeTokenInfo",
    "FeeTokenSource",
    "StaticFeeTokenSource",
    "FeeOnTransferDetector",
    "default_fee_token_source",
    "DEFAULT_PROBE_SIGNATURES",
]
