"""Integration tests for the Fluid adapter with a mocked resolver."""
from __future__ import annotations

from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from fluid_statement.errors import NoPositionsError, NotFoundError
from fluid_statement.models import RawPosition, RawVault, TokenMetadata
from fluid_statement.protocols.fluid.adapter import FluidAdapter
from fluid_statement.protocols.fluid.constants import MAINNET_TOKENS

OWNER = "0x1111111111111111111111111111111111111111"


@pytest.fixture()
def mock_resolver() -> AsyncMock:
    resolver = AsyncMock()
    resolver.metadata.side_effect = lambda address: MAINNET_TOKENS[address.lower()]
    return resolver


@pytest.fixture()
def adapter(mock_resolver: AsyncMock) -> FluidAdapter:
    return FluidAdapter(mock_resolver)


class TestFluidAdapter:
    def test_protocol_name(self, adapter: FluidAdapter) -> None:
        assert adapter.protocol_name == "fluid"

    @pytest.mark.asyncio
    async def test_fetch_positions(
        self,
        adapter: FluidAdapter,
        mock_resolver: AsyncMock,
        sample_raw_position: RawPosition,
        sample_vault: RawVault,
    ) -> None:
        mock_resolver.positions_by_owner.return_value = (
            [sample_raw_position],
            [sample_vault],
        )

        positions = await adapter.fetch_positions(OWNER)

        assert len(positions) == 1
        position = positions[0]
        assert position.id == 1234
        assert position.collateral.symbol == "WETH"
        assert position.debt.symbol == "USDC"
        assert position.ltv_percent == pytest.approx(40.0)
        assert position.health_factor == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_excluded_positions_are_filtered(
        self,
        adapter: FluidAdapter,
        mock_resolver: AsyncMock,
        sample_raw_position: RawPosition,
        sample_vault: RawVault,
    ) -> None:
        raws = [
            sample_raw_position,
            replace(sample_raw_position, nft_id=2, is_liquidated=True),
            replace(sample_raw_position, nft_id=3, supply_raw=0),
            replace(sample_raw_position, nft_id=4, is_smart_debt=True),
            replace(sample_raw_position, nft_id=5, is_supply_only=True),
        ]
        mock_resolver.positions_by_owner.return_value = (raws, [sample_vault] * 5)

        positions = await adapter.fetch_positions(OWNER)

        assert [p.id for p in positions] == [1234]

    @pytest.mark.asyncio
    async def test_metadata_resolved_once_per_token(
        self,
        adapter: FluidAdapter,
        mock_resolver: AsyncMock,
        sample_raw_position: RawPosition,
        sample_vault: RawVault,
    ) -> None:
        raws = [sample_raw_position, replace(sample_raw_position, nft_id=2)]
        mock_resolver.positions_by_owner.return_value = (raws, [sample_vault] * 2)

        positions = await adapter.fetch_positions(OWNER)

        assert len(positions) == 2
        assert mock_resolver.metadata.call_count == 2

    @pytest.mark.asyncio
    async def test_no_positions_raises_not_found(
        self, adapter: FluidAdapter, mock_resolver: AsyncMock
    ) -> None:
        mock_resolver.positions_by_owner.return_value = ([], [])

        with pytest.raises(NotFoundError, match="No positions found"):
            await adapter.fetch_positions(OWNER)

    @pytest.mark.asyncio
    async def test_all_excluded_raises_no_positions(
        self,
        adapter: FluidAdapter,
        mock_resolver: AsyncMock,
        sample_raw_position: RawPosition,
        sample_vault: RawVault,
    ) -> None:
        mock_resolver.positions_by_owner.return_value = (
            [replace(sample_raw_position, is_smart_collateral=True)],
            [sample_vault],
        )

        with pytest.raises(NoPositionsError) as exc_info:
            await adapter.fetch_positions(OWNER)

        assert exc_info.value.excluded == 1
        assert isinstance(exc_info.value, NotFoundError)

    @pytest.mark.asyncio
    async def test_fetch_position_keeps_liquidated(
        self,
        adapter: FluidAdapter,
        mock_resolver: AsyncMock,
        sample_raw_position: RawPosition,
        sample_vault: RawVault,
    ) -> None:
        mock_resolver.position_by_id.return_value = (
            replace(sample_raw_position, is_liquidated=True),
            sample_vault,
        )

        position = await adapter.fetch_position(1234)

        assert position.id == 1234
        assert position.is_liquidated is True

    @pytest.mark.asyncio
    async def test_fetch_position_missing(
        self, adapter: FluidAdapter, mock_resolver: AsyncMock
    ) -> None:
        mock_resolver.position_by_id.return_value = None

        with pytest.raises(NotFoundError, match="Position NFT #999 not found"):
            await adapter.fetch_position(999)

    @pytest.mark.asyncio
    async def test_unknown_token_metadata(
        self,
        adapter: FluidAdapter,
        mock_resolver: AsyncMock,
        sample_raw_position: RawPosition,
        sample_vault: RawVault,
        usdc_meta: TokenMetadata,
    ) -> None:
        unknown = TokenMetadata(
            address=sample_vault.supply_token,
            symbol="UNKNOWN",
            decimals=18,
            name="Unknown Token",
        )
        mock_resolver.metadata.side_effect = lambda address: (
            usdc_meta if address == usdc_meta.address.lower() else unknown
        )
        mock_resolver.position_by_id.return_value = (sample_raw_position, sample_vault)

        position = await adapter.fetch_position(1234)

        assert position.collateral.symbol == "UNKNOWN"
        assert position.collateral.amount == pytest.approx(2.0)
