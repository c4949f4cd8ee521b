"""Fluid vault resolver — on-chain position and token metadata reads."""
from __future__ import annotations

import asyncio
import logging
from typing import Mapping

from eth_abi.exceptions import EncodingError
from eth_utils import is_address, to_checksum_address

from ...config import FluidConfig
from ...errors import ContractCallError, DecodeError, InvalidInputError, NotFoundError
from ...interfaces.chain import ChainClient
from ...models import RawPosition, RawVault, TokenMetadata
from . import abi
from .constants import (
    MAINNET_TOKENS,
    UNKNOWN_TOKEN_DECIMALS,
    UNKNOWN_TOKEN_NAME,
    UNKNOWN_TOKEN_SYMBOL,
)

logger = logging.getLogger(__name__)


class FluidResolver:
    """Query positions through the VaultResolver and ERC-20 metadata."""

    def __init__(
        self,
        chain_client: ChainClient,
        config: FluidConfig,
        token_table: Mapping[str, TokenMetadata] = MAINNET_TOKENS,
    ) -> None:
        self._client = chain_client
        self._resolver_address = to_checksum_address(config.vault_resolver)
        self._tokens = token_table

    async def position_by_id(self, nft_id: int) -> tuple[RawPosition, RawVault] | None:
        """Position and vault for one NFT id, or ``None`` if it does not exist."""
        if nft_id <= 0:
            raise InvalidInputError(f"NFT id must be a positive integer, got {nft_id}")
        try:
            data = abi.encode_call(abi.POSITION_BY_NFT_ID, ["uint256"], [nft_id])
        except EncodingError as e:
            raise InvalidInputError(f"NFT id {nft_id} is out of range") from e

        try:
            result = await self._client.eth_call(self._resolver_address, data)
        except ContractCallError as e:
            logger.warning("positionByNftId(%s) failed: %s", nft_id, e)
            return None
        return abi.decode_position_by_nft_id(result)

    async def positions_by_owner(
        self, owner: str
    ) -> tuple[list[RawPosition], list[RawVault]]:
        """All positions of ``owner`` with their index-aligned vaults."""
        if not is_address(owner):
            raise InvalidInputError(f"Invalid Ethereum address: {owner!r}")
        owner = to_checksum_address(owner)
        data = abi.encode_call(abi.POSITIONS_BY_USER, ["address"], [owner])

        try:
            result = await self._client.eth_call(self._resolver_address, data)
        except ContractCallError as e:
            raise NotFoundError(
                f"Failed to fetch positions for {owner}. Is this address correct?",
                details={"owner": owner, "error": e.message},
            ) from e
        return abi.decode_positions_by_user(result)

    def static_metadata(self, token_address: str) -> TokenMetadata | None:
        return self._tokens.get(token_address.lower())

    async def metadata(self, token_address: str) -> TokenMetadata:
        """Token metadata, from the static table when present, else on-chain.

        An on-chain failure degrades to an ``UNKNOWN`` token with 18
        decimals instead of failing the position.
        """
        known = self.static_metadata(token_address)
        if known is not None:
            return known

        address = to_checksum_address(token_address)
        try:
            symbol_hex, decimals_hex, name_hex = await asyncio.gather(
                self._client.eth_call(address, abi.selector(abi.ERC20_SYMBOL)),
                self._client.eth_call(address, abi.selector(abi.ERC20_DECIMALS)),
                self._client.eth_call(address, abi.selector(abi.ERC20_NAME)),
            )
            return TokenMetadata(
                address=address,
                symbol=abi.decode_string(symbol_hex),
                decimals=abi.decode_uint(decimals_hex),
                name=abi.decode_string(name_hex),
            )
        except (ContractCallError, DecodeError) as e:
            logger.error("Error fetching token metadata for %s: %s", address, e)
            return TokenMetadata(
                address=address,
                symbol=UNKNOWN_TOKEN_SYMBOL,
                decimals=UNKNOWN_TOKEN_DECIMALS,
                name=UNKNOWN_TOKEN_NAME,
            )
