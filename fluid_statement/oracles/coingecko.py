"""CoinGecko price oracle service."""
from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import Iterable

import aiohttp
import certifi

from ..config import CoinGeckoConfig
from ..errors import PriceUnavailableError

logger = logging.getLogger(__name__)


class CoinGeckoOracle:
    """Resolve token symbols to USD prices with one batched CoinGecko request."""

    def __init__(self, config: CoinGeckoConfig) -> None:
        self.price_url = config.price_url
        self.timeout = config.timeout
        self.ids = dict(config.ids)
        self.stable_symbols = tuple(config.stable_symbols)
        self.fallback_prices = dict(config.fallback_prices)

    async def resolve_prices(self, symbols: Iterable[str]) -> dict[str, float]:
        """USD price per symbol; symbols without a known price are absent."""
        prices, _ = await self.resolve_prices_with_status(symbols)
        return prices

    fetch_prices = resolve_prices

    async def resolve_prices_with_status(
        self, symbols: Iterable[str]
    ) -> tuple[dict[str, float], bool]:
        """Like ``resolve_prices``, plus whether fallback prices were used."""
        symbols = list(dict.fromkeys(symbols))
        prices: dict[str, float] = {s: 1.0 for s in self.stable_symbols}

        # Create reverse mapping from CoinGecko id to symbols
        id_to_symbols: dict[str, list[str]] = {}
        for symbol in symbols:
            gecko_id = self.ids.get(symbol)
            if gecko_id:
                id_to_symbols.setdefault(gecko_id, []).append(symbol)

        if not id_to_symbols:
            return prices, False

        try:
            data = await self._fetch(sorted(id_to_symbols))
        except PriceUnavailableError as e:
            logger.warning("Could not fetch live prices, using defaults: %s", e)
            prices.update(self.fallback_prices)
            return prices, True

        for gecko_id, mapped in id_to_symbols.items():
            quote = data.get(gecko_id)
            if not isinstance(quote, dict) or "usd" not in quote:
                continue
            for symbol in mapped:
                prices[symbol] = float(quote["usd"])

        logger.info("Fetched prices from CoinGecko:")
        for symbol, price in sorted(prices.items()):
            logger.info("  %s: $%.4f", symbol, price)

        return prices, False

    async def _fetch(self, gecko_ids: list[str]) -> dict:
        params = {"ids": ",".join(gecko_ids), "vs_currencies": "usd"}

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    self.price_url,
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise PriceUnavailableError(
                            f"CoinGecko API error: HTTP {response.status}",
                            status_code=response.status,
                        )
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            raise PriceUnavailableError(f"CoinGecko request failed: {e}") from e

        if not isinstance(data, dict):
            raise PriceUnavailableError("CoinGecko returned an unexpected payload")
        return data
