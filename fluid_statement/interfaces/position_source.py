"""Position and token metadata source protocols."""
from typing import Protocol

from ..models import RawPosition, RawVault, TokenMetadata


class PositionSource(Protocol):
    """Read-only query interface over vault positions."""

    async def position_by_id(
        self, nft_id: int
    ) -> tuple[RawPosition, RawVault] | None: ...

    async def positions_by_owner(
        self, owner: str
    ) -> tuple[list[RawPosition], list[RawVault]]: ...


class TokenMetadataSource(Protocol):
    """ERC-20 metadata lookup, consulted after a static-table miss."""

    async def metadata(self, token_address: str) -> TokenMetadata: ...


class VaultReader(PositionSource, TokenMetadataSource, Protocol):
    """Positions and the metadata of the tokens they hold."""
