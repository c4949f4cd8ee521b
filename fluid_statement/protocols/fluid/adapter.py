"""Fluid protocol adapter — fetches and normalizes vault positions."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from ...config import RateScaleConfig
from ...errors import NoPositionsError, NotFoundError
from ...interfaces.position_source import VaultReader
from ...models import Position, RawPosition, RawVault, TokenMetadata
from . import parser

logger = logging.getLogger(__name__)


class FluidAdapter:
    """Fetch and normalize Fluid vault positions."""

    def __init__(
        self, resolver: VaultReader, rate_scales: RateScaleConfig | None = None
    ) -> None:
        self._resolver = resolver
        self._scales = rate_scales or RateScaleConfig()

    @property
    def protocol_name(self) -> str:
        return "fluid"

    async def _resolve_metadata(
        self, token_addresses: Iterable[str]
    ) -> dict[str, TokenMetadata]:
        """Metadata for each distinct token, lookups issued concurrently."""
        unique = list(dict.fromkeys(a.lower() for a in token_addresses))
        results = await asyncio.gather(*(self._resolver.metadata(a) for a in unique))
        return dict(zip(unique, results))

    def _normalize(
        self,
        position: RawPosition,
        vault: RawVault,
        metadata: dict[str, TokenMetadata],
    ) -> Position:
        normalized = parser.normalize_position(
            position,
            vault,
            metadata[vault.supply_token.lower()],
            metadata[vault.borrow_token.lower()],
            self._scales,
        )
        self._log_position(normalized)
        return normalized

    async def fetch_position(self, nft_id: int) -> Position:
        """Normalize one position by NFT id regardless of its status flags."""
        logger.info("Fetching Fluid position #%s", nft_id)
        found = await self._resolver.position_by_id(nft_id)
        if found is None:
            raise NotFoundError(
                f"Position NFT #{nft_id} not found", details={"nft_id": nft_id}
            )

        position, vault = found
        metadata = await self._resolve_metadata([vault.supply_token, vault.borrow_token])
        return self._normalize(position, vault, metadata)

    async def fetch_positions(self, owner: str) -> list[Position]:
        """Normalize every reportable position of ``owner``.

        Liquidated, empty, smart-vault and supply-only positions are
        excluded. A position that fails to normalize is logged and skipped.
        """
        logger.info("Checking Fluid positions for wallet: %s", owner)
        raw_positions, raw_vaults = await self._resolver.positions_by_owner(owner)
        logger.info("Found %d positions", len(raw_positions))

        if not raw_positions:
            raise NotFoundError(
                f"No positions found for {owner}", details={"owner": owner}
            )

        selected: list[tuple[RawPosition, RawVault]] = []
        for position, vault in zip(raw_positions, raw_vaults):
            reason = parser.exclusion_reason(position)
            if reason:
                logger.debug("Skipping position #%s (%s)", position.nft_id, reason)
                continue
            selected.append((position, vault))

        if not selected:
            raise NoPositionsError(
                "No active positions found for this address "
                "(smart/DEX positions are excluded)",
                excluded=len(raw_positions),
                details={"owner": owner},
            )

        metadata = await self._resolve_metadata(
            token
            for _, vault in selected
            for token in (vault.supply_token, vault.borrow_token)
        )

        positions: list[Position] = []
        for position, vault in selected:
            try:
                positions.append(self._normalize(position, vault, metadata))
            except (ValueError, ArithmeticError) as e:
                logger.error("Could not normalize position #%s: %s", position.nft_id, e)

        return positions

    @staticmethod
    def _log_position(position: Position) -> None:
        logger.info("=" * 60)
        logger.info("POSITION #%s (%s)", position.id, position.vault_address)
        logger.info(
            "  Collateral:            %.6f %s",
            position.collateral.amount,
            position.collateral.symbol,
        )
        logger.info(
            "  Debt:                  %.6f %s", position.debt.amount, position.debt.symbol
        )
        logger.info("  LTV:                   %.2f%%", position.ltv_percent)
        logger.info("  Health Factor:         %.4f", position.health_factor)
        logger.info(
            "  Liquidation Threshold: %.2f%%", position.liquidation_threshold_percent
        )
        logger.info("  Borrow APY:            %.2f%%", position.borrow_apy_percent)
        logger.info("  Supply APY:            %.2f%%", position.supply_apy_percent)
        if position.is_liquidated:
            logger.info("  Liquidated:            YES")
        logger.info("=" * 60)
