"""Wallet provider abstraction and the connection context.

Anything that can answer EIP-1193 style ``request(method, params)`` calls can
drive the engine: a browser-bridged wallet, a local signer, or a test fake.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import structlog

from swapengine.errors import ProviderError
from swapengine.models.types import normalize_address

logger = structlog.get_logger()


@runtime_checkable
class WalletProvider(Protocol):
    """EIP-1193 style provider.

    Implementations raise ProviderError (with the JSON-RPC / EIP-1193 code
    when known) for errors returned by the node or wallet.
    """

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """Perform a JSON-RPC request and return its ``result``."""
        ...


class WalletType(str, Enum):
    INJECTED = "injected"
    WALLETCONNECT = "walletconnect"
    LOCAL = "local"
    READ_ONLY = "read_only"


@dataclass
class ChainContext:
    """Everything needed to talk to the chain for one wallet connection.

    Passed explicitly to every engine component.

    Attributes:
        provider: The wallet/RPC provider
        account: Connected account, None for read-only use
        wallet_type: How the account is connected
        chain_id: Chain id the connection is on, if known
        flight_lock: Held while an orchestrated transaction flow runs
    """

    provider: WalletProvider
    account: str | None = None
    wallet_type: WalletType = WalletType.INJECTED
    chain_id: int | None = None
    flight_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self) -> None:
        if self.account is not None:
            self.account = normalize_address(self.account, validate=True)

    @property
    def is_connected(self) -> bool:
        return self.account is not None

    def require_account(self) -> str:
        """The connected account.

        Raises:
            ProviderError: If no account is connected
        """
        if self.account is None:
            raise ProviderError("No wallet connected", code=4100)
        return self.account


class Web3WalletProvider:
    """Provider backed by a web3 HTTP connection.

    With a private key, eth_sendTransaction is signed locally and submitted
    as a raw transaction; eth_accounts reports the key's address.
    """

    def __init__(self, rpc_url: str, private_key: str | None = None, request_timeout: float = 30.0):
        from eth_account import Account
        from web3 import AsyncHTTPProvider, AsyncWeb3

        self.w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout}))
        self._account = Account.from_key(private_key) if private_key else None

    @property
    def address(self) -> str | None:
        return normalize_address(self._account.address) if self._account else None

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        if method == "eth_accounts" or method == "eth_requestAccounts":
            return [self._account.address] if self._account else await self._rpc(method, params)
        if method == "eth_sendTransaction" and self._account is not None:
            return await self._send_signed(dict((params or [{}])[0]))
        return await self._rpc(method, params)

    async def _rpc(self, method: str, params: list[Any] | None) -> Any:
        response = await self.w3.provider.make_request(method, params or [])  # type: ignore[arg-type]
        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise ProviderError(str(error.get("message", error)), error.get("code"), error.get("data"))
            raise ProviderError(str(error))
        return response.get("result")

    async def _send_signed(self, tx: dict[str, Any]) -> str:
        assert self._account is not None
        sender = self._account.address
        if "nonce" not in tx:
            tx["nonce"] = await self._rpc("eth_getTransactionCount", [sender, "pending"])
        if "gasPrice" not in tx and "maxFeePerGas" not in tx:
            tx["gasPrice"] = await self._rpc("eth_gasPrice", [])
        if "chainId" not in tx:
            tx["chainId"] = await self._rpc("eth_chainId", [])
        tx.pop("from", None)
        unsigned = {k: _to_int(v) if k in _INT_FIELDS else v for k, v in tx.items()}
        unsigned["to"] = self.w3.to_checksum_address(unsigned["to"])
        signed = self._account.sign_transaction(unsigned)
        logger.debug("transaction_signed_locally", sender=sender, nonce=unsigned["nonce"])
        return await self._rpc("eth_sendRawTransaction", ["0x" + bytes(signed.raw_transaction).hex()])


_INT_FIELDS = frozenset({"nonce", "gas", "gasPrice", "value", "chainId", "maxFeePerGas", "maxPriorityFeePerGas"})


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


__all__ = ["WalletProvider", "WalletType", "ChainContext", "Web3WalletProvider"]
