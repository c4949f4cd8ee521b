"""Static Fluid protocol data: known token metadata."""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ...models import TokenMetadata


def _table(entries: list[tuple[str, str, int, str]]) -> Mapping[str, TokenMetadata]:
    return MappingProxyType(
        {
            address.lower(): TokenMetadata(
                address=address, symbol=symbol, decimals=decimals, name=name
            )
            for address, symbol, decimals, name in entries
        }
    )


# Keyed by lowercase address. Read-only for the lifetime of the process;
# lookups that hit this table never go on-chain.
MAINNET_TOKENS: Mapping[str, TokenMetadata] = _table(
    [
        ("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "WETH", 18, "Wrapped Ether"),
        ("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "USDC", 6, "USD Coin"),
        ("0xdAC17F958D2ee523a2206206994597C13D831ec7", "USDT", 6, "Tether USD"),
        ("0x6B175474E89094C44Da98b954EedeAC495271d0F", "DAI", 18, "Dai Stablecoin"),
        ("0x7f39C581F595B53c5cb19bD0b3f8dA6c935E2Ca0", "wstETH", 18, "Wrapped stETH"),
        ("0xae78736Cd615f374D3085123A210448E74Fc6393", "rETH", 18, "Rocket Pool ETH"),
        ("0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", "WBTC", 8, "Wrapped BTC"),
        ("0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE", "ETH", 18, "Ether"),
        ("0xCd5fE23C85820F7B72D0926FC9b05b43E359b7ee", "weETH", 18, "Wrapped eETH"),
        (
            "0xBe9895146f7AF43049ca1c1AE358B0541Ea49704",
            "cbETH",
            18,
            "Coinbase Wrapped Staked ETH",
        ),
        ("0xf939E0A03FB07F59A73314E73794Be0E57ac1b4E", "crvUSD", 18, "Curve USD"),
        ("0x83F20F44975D03b1b09e64809B757c47f942BEeA", "sDAI", 18, "Savings DAI"),
        ("0x7A56E1C57C7475CCf742b1B0A76528344a234aC8", "sUSDe", 18, "Staked USDe"),
        ("0x4c9EDD5852cd905f086C759E8383e09bff1E68B3", "USDe", 18, "Ethena USDe"),
    ]
)

UNKNOWN_TOKEN_SYMBOL = "UNKNOWN"
UNKNOWN_TOKEN_NAME = "Unknown Token"
UNKNOWN_TOKEN_DECIMALS = 18
