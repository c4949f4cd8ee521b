"""Price oracle protocol — price feed abstraction."""
from collections.abc import Iterable
from typing import Protocol


class PriceOracle(Protocol):
    """Abstract interface for resolving symbols to USD prices."""

    async def resolve_prices(self, symbols: Iterable[str]) -> dict[str, float]: ...

    async def resolve_prices_with_status(
        self, symbols: Iterable[str]
    ) -> tuple[dict[str, float], bool]: ...
