"""Chain client protocol — EVM JSON-RPC abstraction."""
from typing import Protocol


class ChainClient(Protocol):
    """Abstract interface for read-only blockchain RPC interactions."""

    async def block_number(self) -> int: ...

    async def eth_call(self, to: str, data: str) -> str: ...
