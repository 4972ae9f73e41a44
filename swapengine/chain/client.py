"""Typed on-chain reads and transaction submission.

ChainClient turns the raw provider interface into the handful of calls the
engine needs. Reads raise on failure; callers on the quote path decide how to
degrade.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

from swapengine.chain import abi
from swapengine.chain.provider import ChainContext
from swapengine.chain.retry import retry_async
from swapengine.config import EngineConfig, RetryPolicy
from swapengine.models.types import normalize_address

T = TypeVar("T")


def to_hex(value: int) -> str:
    return hex(value)


def from_hex(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    return int(value, 16) if value.startswith("0x") else int(value)


class ChainClient:
    """Reads and writes against one chain connection."""

    def __init__(self, context: ChainContext, config: EngineConfig):
        self.context = context
        self.config = config
        self._read_slots: asyncio.Semaphore | None = None
        self._slots_loop: asyncio.AbstractEventLoop | None = None

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        return await self.context.provider.request(method, params or [])

    async def call(self, to: str, data: str) -> str:
        """eth_call at the latest block, returning hex return data."""
        result = await self.request("eth_call", [{"to": normalize_address(to), "data": data}, "latest"])
        return result or "0x"

    async def call_function(self, to: str, fn: abi.ContractFunction, *args: Any) -> tuple[Any, ...]:
        return fn.decode_output(await self.call(to, fn.encode(*args)))

    # --- pair / factory reads ---

    async def get_pair(self, factory: str, token_a: str, token_b: str) -> str:
        (pair,) = await self.call_function(factory, abi.GET_PAIR, token_a, token_b)
        return normalize_address(pair)

    async def get_reserves(self, pair: str) -> tuple[int, int]:
        reserve0, reserve1, _ = await self.call_function(pair, abi.GET_RESERVES)
        return int(reserve0), int(reserve1)

    async def token0(self, pair: str) -> str:
        (token,) = await self.call_function(pair, abi.TOKEN0)
        return normalize_address(token)

    async def token1(self, pair: str) -> str:
        (token,) = await self.call_function(pair, abi.TOKEN1)
        return normalize_address(token)

    async def total_supply(self, token: str) -> int:
        (supply,) = await self.call_function(token, abi.TOTAL_SUPPLY)
        return int(supply)

    # --- token reads ---

    async def balance_of(self, token: str, owner: str) -> int:
        (balance,) = await self.call_function(token, abi.BALANCE_OF, owner)
        return int(balance)

    async def native_balance(self, owner: str) -> int:
        return from_hex(await self.request("eth_getBalance", [normalize_address(owner), "latest"]))

    async def token_balance(self, token: str, owner: str) -> int:
        """Balance of an ERC-20 or, for the native sentinel, the coin."""
        if normalize_address(token) == self.config.native_address:
            return await self.native_balance(owner)
        return await self.balance_of(token, owner)

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        (value,) = await self.call_function(token, abi.ALLOWANCE, owner, spender)
        return int(value)

    async def allowance_with_retry(
        self, token: str, owner: str, spender: str, policy: RetryPolicy | None = None
    ) -> int:
        """Allowance read retried on transient failures."""
        return await retry_async(
            lambda: self.allowance(token, owner, spender),
            policy or self.config.allowance_retry,
            operation="allowance",
        )

    async def decimals(self, token: str) -> int:
        (value,) = await self.call_function(token, abi.DECIMALS)
        return int(value)

    async def symbol(self, token: str) -> str:
        return abi.decode_string_or_bytes32(await self.call(token, abi.SYMBOL.encode()))

    async def name(self, token: str) -> str:
        return abi.decode_string_or_bytes32(await self.call(token, abi.NAME.encode()))

    async def get_code(self, address: str) -> str:
        return await self.request("eth_getCode", [normalize_address(address), "latest"]) or "0x"

    # --- writes ---

    async def chain_id(self) -> int:
        return from_hex(await self.request("eth_chainId"))

    async def accounts(self) -> list[str]:
        return [normalize_address(a) for a in (await self.request("eth_accounts") or [])]

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        return from_hex(await self.request("eth_estimateGas", [tx]))

    async def send_transaction(self, tx: dict[str, Any]) -> str:
        """Submit a transaction through the wallet; returns the hash immediately."""
        return await self.request("eth_sendTransaction", [tx])

    async def get_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        return await self.request("eth_getTransactionReceipt", [tx_hash])

    # --- fan-out ---

    def _slots(self) -> asyncio.Semaphore:
        # A semaphore is tied to the loop it first waits on
        loop = asyncio.get_running_loop()
        if self._read_slots is None or self._slots_loop is not loop:
            self._read_slots = asyncio.Semaphore(self.config.read_concurrency)
            self._slots_loop = loop
        return self._read_slots

    async def bounded(self, awaitable: Awaitable[T]) -> T:
        """Await under the client's read-concurrency limit."""
        async with self._slots():
            return await awaitable

    async def gather_bounded(self, awaitables: Iterable[Awaitable[T]], *, return_exceptions: bool = False) -> list[Any]:
        """asyncio.gather with at most read_concurrency reads in flight."""
        return list(
            await asyncio.gather(*(self.bounded(a) for a in awaitables), return_exceptions=return_exceptions)
        )


__all__ = ["ChainClient", "to_hex", "from_hex"]
