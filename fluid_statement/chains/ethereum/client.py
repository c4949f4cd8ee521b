"""Ethereum JSON-RPC client with fallback support."""
import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import ConnectivityError, ContractCallError

logger = logging.getLogger(__name__)


class EthereumClient:
    """Read-only EVM RPC client with automatic endpoint fallback."""

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.chain_id = config.chain_id
        self.current_rpc_index = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints.

        Transport failures move on to the next endpoint. A JSON-RPC error
        object is the node's answer and is raised as ``ContractCallError``
        without trying other endpoints.
        """
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        if response.status != 200:
                            raise aiohttp.ClientResponseError(
                                response.request_info,
                                (),
                                status=response.status,
                                message=f"HTTP {response.status}",
                            )
                        result = await response.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

            if "error" in result:
                error = result["error"] or {}
                raise ContractCallError(
                    f"RPC Error: {error.get('message', error)}",
                    code=error.get("code"),
                    details={"method": method, "data": error.get("data")},
                )

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            return result.get("result")

        raise ConnectivityError(
            f"All RPC endpoints failed. Last error: {last_error}",
            endpoint=self.endpoints[self.current_rpc_index] if self.endpoints else None,
        )

    async def block_number(self) -> int:
        """Latest block number; doubles as the connectivity probe."""
        result = await self.rpc_call("eth_blockNumber", [])
        return int(result, 16)

    async def eth_call(self, to: str, data: str) -> str:
        """Execute a read-only contract call against the latest block."""
        result = await self.rpc_call("eth_call", [{"to": to, "data": data}, "latest"])
        if not isinstance(result, str):
            raise ContractCallError(f"Unexpected eth_call result: {result!r}")
        return result
