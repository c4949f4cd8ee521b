"""Protocol interfaces for the statement pipeline."""
from .chain import ChainClient
from .log_source import LogSource
from .position_source import PositionSource, TokenMetadataSource, VaultReader
from .price_oracle import PriceOracle

__all__ = [
    "ChainClient",
    "LogSource",
    "PositionSource",
    "PriceOracle",
    "TokenMetadataSource",
    "VaultReader",
]
