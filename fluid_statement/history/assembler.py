"""Transaction history assembly across the vaults a caller holds positions in."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from ..errors import DecodeError, RateLimitedError
from ..interfaces.log_source import LogSource
from ..models import LedgerRow, Position, VaultContext
from .decoder import decode_log, parse_log_entry

logger = logging.getLogger(__name__)


def build_vault_contexts(positions: Iterable[Position]) -> dict[str, VaultContext]:
    """Group positions by vault; token details come from the first position seen.

    Every position on a vault shares its token pair, so any one of them
    describes the vault.
    """
    first: dict[str, Position] = {}
    nft_ids: dict[str, set[int]] = {}
    for position in positions:
        first.setdefault(position.vault_address, position)
        nft_ids.setdefault(position.vault_address, set()).add(position.id)

    return {
        vault: VaultContext(
            vault_address=vault,
            supply_symbol=pos.collateral.symbol,
            supply_decimals=pos.collateral.decimals,
            supply_name=pos.collateral.name,
            borrow_symbol=pos.debt.symbol,
            borrow_decimals=pos.debt.decimals,
            borrow_name=pos.debt.name,
            nft_ids=frozenset(nft_ids[vault]),
        )
        for vault, pos in first.items()
    }


class TransactionHistoryAssembler:
    """Build a ledger of the caller's own LogOperate activity."""

    def __init__(self, log_source: LogSource, topic: str) -> None:
        self._source = log_source
        self._topic = topic

    async def _vault_logs(self, vault_address: str) -> list[dict]:
        try:
            return await self._source.fetch_all_logs(vault_address, self._topic)
        except RateLimitedError as e:
            logger.warning(
                "Using %d partial logs for %s: %s",
                len(e.partial),
                vault_address,
                e.message,
            )
            return e.partial

    def _vault_rows(
        self,
        context: VaultContext,
        entries: list[dict],
        prices: dict[str, float],
    ) -> list[LedgerRow]:
        rows: list[LedgerRow] = []
        skipped = 0
        for entry in entries:
            try:
                event = decode_log(
                    parse_log_entry(entry, context.vault_address), context, prices
                )
            except DecodeError as e:
                skipped += 1
                logger.warning("Failed to decode LogOperate event: %s", e)
                continue

            if event is None:
                continue
            # The vault emits events for every user; keep only the caller's NFTs.
            if event.nft_id not in context.nft_ids:
                continue
            rows.extend(event.rows)

        logger.info(
            "Vault %s: %d ledger rows from %d logs (%d undecodable)",
            context.vault_address,
            len(rows),
            len(entries),
            skipped,
        )
        return rows

    async def assemble(
        self, positions: Iterable[Position], prices: dict[str, float]
    ) -> list[LedgerRow]:
        """Ledger rows for ``positions``, newest first.

        Vaults are fetched one after another; rows with equal timestamps keep
        the order they were encountered in.
        """
        ledger: list[LedgerRow] = []
        for vault_address, context in build_vault_contexts(positions).items():
            entries = await self._vault_logs(vault_address)
            ledger.extend(self._vault_rows(context, entries, prices))

        ledger.sort(key=lambda row: row.timestamp, reverse=True)
        return ledger
