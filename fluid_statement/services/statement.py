"""Statement generation — positions, prices and history for one owner."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from eth_utils import is_address, to_checksum_address

from ..chains.ethereum import EthereumClient
from ..config import AppConfig
from ..errors import InvalidInputError
from ..history import EtherscanLogSource, TransactionHistoryAssembler
from ..interfaces.price_oracle import PriceOracle
from ..models import LedgerRow, Position, StatementReport
from ..oracles import CoinGeckoOracle
from ..protocols.fluid import FluidAdapter, FluidResolver
from .summary import summarize_positions

logger = logging.getLogger(__name__)


def parse_nft_id(value: str | int) -> int:
    """Validate a user-supplied NFT id."""
    try:
        nft_id = int(str(value).strip().lstrip("#"))
    except ValueError as e:
        raise InvalidInputError(f"NFT id must be a positive integer, got {value!r}") from e
    if nft_id <= 0:
        raise InvalidInputError(f"NFT id must be a positive integer, got {value!r}")
    return nft_id


def parse_address(value: str) -> str:
    """Validate a user-supplied wallet address and return its checksum form."""
    value = value.strip()
    if not is_address(value):
        raise InvalidInputError(f"Invalid Ethereum address format: {value!r}")
    return to_checksum_address(value)


class StatementService:
    """Builds a ``StatementReport`` for a wallet address or a single NFT id."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

        self._client = EthereumClient(config.chain)
        self._adapter = FluidAdapter(
            FluidResolver(self._client, config.fluid), config.rates
        )
        self._oracle: PriceOracle = CoinGeckoOracle(config.coingecko)

        # History needs an Etherscan key; without one the ledger is omitted.
        self._history: TransactionHistoryAssembler | None = None
        if config.etherscan.api_key:
            self._history = TransactionHistoryAssembler(
                EtherscanLogSource(config.etherscan, config.chain.chain_id),
                config.fluid.logoperate_topic,
            )
        else:
            logger.info("No Etherscan API key configured; history disabled")

    async def fetch_positions(
        self, address: str | None = None, nft_id: str | int | None = None
    ) -> tuple[str, list[Position]]:
        """Owner address and normalized positions for the requested target.

        An NFT id takes precedence over an address and is never filtered.
        """
        if nft_id is None and not address:
            raise InvalidInputError("Please enter a wallet address or NFT ID")

        if nft_id is not None:
            position = await self._adapter.fetch_position(parse_nft_id(nft_id))
            return position.owner, [position]

        owner = parse_address(address or "")
        return owner, await self._adapter.fetch_positions(owner)

    async def _ledger(
        self, positions: list[Position], prices: dict[str, float]
    ) -> tuple[LedgerRow, ...] | None:
        if self._history is None:
            return None
        try:
            return tuple(await self._history.assemble(positions, prices))
        except Exception as e:
            logger.warning("Failed to fetch transaction history: %s", e)
            return None

    async def generate(
        self,
        address: str | None = None,
        nft_id: str | int | None = None,
        include_history: bool = True,
    ) -> StatementReport:
        """Generate a full statement.

        Raises ``InvalidInputError`` for malformed input, ``ConnectivityError``
        when no RPC endpoint answers and ``NotFoundError`` (or its subclass
        ``NoPositionsError``) when there is nothing to report. A price-feed
        outage or a failed history fetch only degrades the report.
        """
        if nft_id is None and not address:
            raise InvalidInputError("Please enter a wallet address or NFT ID")

        logger.info("Connecting to %s", self._config.chain.network)
        block = await self._client.block_number()
        logger.info("Connected at block %d", block)

        owner, positions = await self.fetch_positions(address=address, nft_id=nft_id)

        symbols: list[str] = []
        for position in positions:
            symbols.extend((position.collateral.symbol, position.debt.symbol))
        prices, degraded = await self._oracle.resolve_prices_with_status(symbols)

        ledger = await self._ledger(positions, prices) if include_history else None

        report = StatementReport(
            owner=owner,
            chain_id=self._config.chain.chain_id,
            network=self._config.chain.network,
            positions=tuple(positions),
            ledger=ledger or (),
            prices=prices,
            summary=summarize_positions(positions, prices),
            generated_at=datetime.now(timezone.utc),
            history_included=ledger is not None,
            prices_degraded=degraded,
        )
        logger.info(
            "Statement ready: %d position(s), %d ledger row(s)%s",
            len(report.positions),
            len(report.ledger),
            " (approximate prices)" if degraded else "",
        )
        return report
