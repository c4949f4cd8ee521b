from .client import EthereumClient

__all__ = ["EthereumClient"]
