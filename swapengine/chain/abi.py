"""Fixed function table for the contracts the engine talks to.

Calldata is built with eth_abi; selectors are derived from the canonical
signatures so the table cannot drift from the ABI.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any

from eth_abi import decode, encode  # type: ignore[attr-defined]
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from swapengine.models.types import normalize_address


@dataclass(frozen=True)
class ContractFunction:
    """A contract function identified by its canonical signature.

    Attributes:
        signature: e.g. "getPair(address,address)"
        outputs: ABI types of the return values
    """

    signature: str
    outputs: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.signature.split("(", 1)[0]

    @cached_property
    def input_types(self) -> tuple[str, ...]:
        inner = self.signature[self.signature.index("(") + 1 : -1]
        return tuple(t for t in inner.split(",") if t)

    @cached_property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    @property
    def selector_hex(self) -> str:
        return "0x" + self.selector.hex()

    def encode(self, *args: Any) -> str:
        """Calldata as a 0x-prefixed hex string."""
        if len(args) != len(self.input_types):
            raise TypeError(f"{self.signature} takes {len(self.input_types)} arguments, got {len(args)}")
        body = encode(list(self.input_types), [_prepare(t, a) for t, a in zip(self.input_types, args)])
        return "0x" + (self.selector + body).hex()

    def decode_input(self, calldata: str | bytes) -> tuple[Any, ...]:
        """Decode arguments from calldata (selector included)."""
        raw = to_bytes(calldata)
        if raw[:4] != self.selector:
            raise ValueError(f"Calldata does not call {self.signature}")
        return tuple(decode(list(self.input_types), raw[4:]))

    def decode_output(self, data: str | bytes) -> tuple[Any, ...]:
        """Decode return data.

        Raises:
            ValueError: If the data is empty or malformed
        """
        raw = to_bytes(data)
        if not raw and self.outputs:
            raise ValueError(f"Empty return data from {self.signature}")
        try:
            return tuple(decode(list(self.outputs), raw))
        except DecodingError as err:
            raise ValueError(f"Malformed return data from {self.signature}: {err}") from err


def _prepare(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return normalize_address(value)
    if abi_type == "address[]":
        return [normalize_address(v) for v in value]
    return value


def to_bytes(data: str | bytes) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    text = data[2:] if data.startswith("0x") else data
    return bytes.fromhex(text)


def decode_uint(data: str | bytes) -> int:
    """Decode a single uint256 return value."""
    raw = to_bytes(data)
    if len(raw) < 32:
        raise ValueError("Return data too short for uint256")
    return decode(["uint256"], raw[:32])[0]


def decode_string_or_bytes32(data: str | bytes) -> str:
    """Decode a string return value, accepting legacy bytes32 tokens (e.g. MKR)."""
    raw = to_bytes(data)
    try:
        (value,) = decode(["string"], raw)
        return value
    except (DecodingError, OverflowError, ValueError):
        if len(raw) == 32:
            return raw.rstrip(b"\x00").decode("utf-8", errors="ignore")
        raise ValueError("Return data is neither string nor bytes32") from None


# Factory
GET_PAIR = ContractFunction("getPair(address,address)", ("address",))

# Pair
GET_RESERVES = ContractFunction("getReserves()", ("uint112", "uint112", "uint32"))
TOKEN0 = ContractFunction("token0()", ("address",))
TOKEN1 = ContractFunction("token1()", ("address",))
TOTAL_SUPPLY = ContractFunction("totalSupply()", ("uint256",))

# ERC-20
BALANCE_OF = ContractFunction("balanceOf(address)", ("uint256",))
ALLOWANCE = ContractFunction("allowance(address,address)", ("uint256",))
APPROVE = ContractFunction("approve(address,uint256)", ("bool",))
DECIMALS = ContractFunction("decimals()", ("uint8",))
SYMBOL = ContractFunction("symbol()", ("string",))
NAME = ContractFunction("name()", ("string",))

# Wrapped native
DEPOSIT = ContractFunction("deposit()")
WITHDRAW = ContractFunction("withdraw(uint256)")

# Router
SWAP_EXACT_TOKENS_FOR_TOKENS = ContractFunction(
    "swapExactTokensForTokens(uint256,uint256,address[],address,uint256)", ("uint256[]",)
)
SWAP_TOKENS_FOR_EXACT_TOKENS = ContractFunction(
    "swapTokensForExactTokens(uint256,uint256,address[],address,uint256)", ("uint256[]",)
)
SWAP_EXACT_ETH_FOR_TOKENS = ContractFunction(
    "swapExactETHForTokens(uint256,address[],address,uint256)", ("uint256[]",)
)
SWAP_ETH_FOR_EXACT_TOKENS = ContractFunction(
    "swapETHForExactTokens(uint256,address[],address,uint256)", ("uint256[]",)
)
SWAP_EXACT_TOKENS_FOR_ETH = ContractFunction(
    "swapExactTokensForETH(uint256,uint256,address[],address,uint256)", ("uint256[]",)
)
SWAP_TOKENS_FOR_EXACT_ETH = ContractFunction(
    "swapTokensForExactETH(uint256,uint256,address[],address,uint256)", ("uint256[]",)
)
SWAP_EXACT_TOKENS_FOR_TOKENS_FOT = ContractFunction(
    "swapExactTokensForTokensSupportingFeeOnTransferTokens(uint256,uint256,address[],address,uint256)"
)
SWAP_EXACT_ETH_FOR_TOKENS_FOT = ContractFunction(
    "swapExactETHForTokensSupportingFeeOnTransferTokens(uint256,address[],address,uint256)"
)
SWAP_EXACT_TOKENS_FOR_ETH_FOT = ContractFunction(
    "swapExactTokensForETHSupportingFeeOnTransferTokens(uint256,uint256,address[],address,uint256)"
)
ADD_LIQUIDITY = ContractFunction(
    "addLiquidity(address,address,uint256,uint256,uint256,uint256,address,uint256)",
    ("uint256", "uint256", "uint256"),
)
ADD_LIQUIDITY_ETH = ContractFunction(
    "addLiquidityETH(address,uint256,uint256,uint256,address,uint256)",
    ("uint256", "uint256", "uint256"),
)
REMOVE_LIQUIDITY = ContractFunction(
    "removeLiquidity(address,address,uint256,uint256,uint256,address,uint256)",
    ("uint256", "uint256"),
)
REMOVE_LIQUIDITY_ETH = ContractFunction(
    "removeLiquidityETH(address,uint256,uint256,uint256,address,uint256)",
    ("uint256", "uint256"),
)
REMOVE_LIQUIDITY_ETH_FOT = ContractFunction(
    "removeLiquidityETHSupportingFeeOnTransferTokens(address,uint256,uint256,uint256,address,uint256)",
    ("uint256",),
)

__all__ = [
    "ContractFunction",
    "decode_uint",
    "decode_string_or_bytes32",
    "to_bytes",
    "GET_PAIR",
    "GET_RESERVES",
    "TOKEN0",
    "TOKEN1",
    "TOTAL_SUPPLY",
    "BALANCE_OF",
    "ALLOWANCE",
    "APPROVE",
    "DECIMALS",
    "SYMBOL",
    "NAME",
    "DEPOSIT",
    "WITHDRAW",
    "SWAP_EXACT_TOKENS_FOR_TOKENS",
    "SWAP_TOKENS_FOR_EXACT_TOKENS",
    "SWAP_EXACT_ETH_FOR_TOKENS",
    "SWAP_ETH_FOR_EXACT_TOKENS",
    "SWAP_EXACT_TOKENS_FOR_ETH",
    "SWAP_TOKENS_FOR_EXACT_ETH",
    "SWAP_EXACT_TOKENS_FOR_TOKENS_FOT",
    "SWAP_EXACT_ETH_FOR_TOKENS_FOT",
    "SWAP_EXACT_TOKENS_FOR_ETH_FOT",
    "ADD_LIQUIDITY",
    "ADD_LIQUIDITY_ETH",
    "REMOVE_LIQUIDITY",
    "REMOVE_LIQUIDITY_ETH",
    "REMOVE_LIQUIDITY_ETH_FOT",
]
