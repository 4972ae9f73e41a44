"""On-chain data access: ABI encoding, providers and typed reads."""

from swapengine.chain.client import ChainClient
from swapengine.chain.provider import ChainContext, WalletProvider, WalletType, Web3WalletProvider

__all__ = ["ChainClient", "ChainContext", "WalletProvider", "WalletType", "Web3WalletProvider"]
