"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
ETHERSCAN_MAX_PAGE_SIZE = 1000

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    chain_id: int = 1
    network: str = "Ethereum Mainnet"
    rpc_endpoints: tuple[str, ...] = ("https://ethereum-rpc.publicnode.com",)
    rpc_timeout: int = 30


@dataclass(frozen=True)
class FluidConfig:
    vault_resolver: str = "0xA5C3E16523eeeDDcC34706b0E6bE88b4c6EA95cC"
    logoperate_topic: str = (
        "0xfef64760e30a41b9d5ba7dd65ff7236a61d89ed8b44c67a29e84db1a67513a1c"
    )


@dataclass(frozen=True)
class RateScaleConfig:
    """Magnitude heuristic for vault rate encodings.

    Rates above ``ray_threshold`` are ray-scaled (1e27) and divided by
    ``ray_divisor`` to get a percentage with two implied decimals; the rest
    are basis-point-like and divided by ``bp_divisor``.
    """

    ray_threshold: int = 10**18
    ray_divisor: int = 10**23
    bp_divisor: int = 10**2


@dataclass(frozen=True)
class EtherscanConfig:
    base_url: str = "https://api.etherscan.io/v2/api"
    api_key: str = ""
    page_size: int = 1000
    request_delay: float = 0.22
    rate_limit_backoff: float = 1.0
    backoff_multiplier: float = 2.0
    max_rate_limit_retries: int = 5
    request_timeout: int = 30


@dataclass(frozen=True)
class CoinGeckoConfig:
    price_url: str = "https://api.coingecko.com/api/v3/simple/price"
    timeout: int = 15
    ids: dict[str, str] = field(
        default_factory=lambda: {
            "ETH": "ethereum",
            "WETH": "ethereum",
            "wstETH": "wrapped-steth",
            "weETH": "wrapped-eeth",
            "rETH": "rocket-pool-eth",
            "cbETH": "coinbase-wrapped-staked-eth",
            "WBTC": "wrapped-bitcoin",
            "USDC": "usd-coin",
            "USDT": "tether",
            "DAI": "dai",
            "crvUSD": "crvusd",
            "sDAI": "savings-dai",
            "sUSDe": "ethena-staked-usde",
            "USDe": "ethena-usde",
        }
    )
    stable_symbols: tuple[str, ...] = ("USDC", "USDT", "DAI", "crvUSD", "USDe")
    fallback_prices: dict[str, float] = field(
        default_factory=lambda: {
            "ETH": 2500.0,
            "WETH": 2500.0,
            "wstETH": 2900.0,
            "weETH": 2700.0,
            "rETH": 2700.0,
            "cbETH": 2600.0,
            "WBTC": 45000.0,
            "sDAI": 1.05,
            "sUSDe": 1.10,
        }
    )


@dataclass(frozen=True)
class AppConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    fluid: FluidConfig = field(default_factory=FluidConfig)
    rates: RateScaleConfig = field(default_factory=RateScaleConfig)
    etherscan: EtherscanConfig = field(default_factory=EtherscanConfig)
    coingecko: CoinGeckoConfig = field(default_factory=CoinGeckoConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    default = ChainConfig()
    return ChainConfig(
        chain_id=int(raw.get("chain_id", default.chain_id)),
        network=raw.get("network", default.network),
        rpc_endpoints=tuple(
            e for e in raw.get("rpc_endpoints", default.rpc_endpoints) if e
        ),
        rpc_timeout=int(raw.get("rpc_timeout", default.rpc_timeout)),
    )


def _build_fluid(raw: dict[str, Any]) -> FluidConfig:
    default = FluidConfig()
    return FluidConfig(
        vault_resolver=raw.get("vault_resolver", default.vault_resolver),
        logoperate_topic=raw.get("logoperate_topic", default.logoperate_topic),
    )


def _build_rates(raw: dict[str, Any]) -> RateScaleConfig:
    default = RateScaleConfig()
    return RateScaleConfig(
        ray_threshold=int(raw.get("ray_threshold", default.ray_threshold)),
        ray_divisor=int(raw.get("ray_divisor", default.ray_divisor)),
        bp_divisor=int(raw.get("bp_divisor", default.bp_divisor)),
    )


def _build_etherscan(raw: dict[str, Any]) -> EtherscanConfig:
    default = EtherscanConfig()
    return EtherscanConfig(
        base_url=raw.get("base_url", default.base_url),
        api_key=raw.get("api_key") or os.environ.get("ETHERSCAN_API_KEY", ""),
        page_size=int(raw.get("page_size", default.page_size)),
        request_delay=float(raw.get("request_delay", default.request_delay)),
        rate_limit_backoff=float(
            raw.get("rate_limit_backoff", default.rate_limit_backoff)
        ),
        backoff_multiplier=float(
            raw.get("backoff_multiplier", default.backoff_multiplier)
        ),
        max_rate_limit_retries=int(
            raw.get("max_rate_limit_retries", default.max_rate_limit_retries)
        ),
        request_timeout=int(raw.get("request_timeout", default.request_timeout)),
    )


def _build_coingecko(raw: dict[str, Any]) -> CoinGeckoConfig:
    default = CoinGeckoConfig()
    return CoinGeckoConfig(
        price_url=raw.get("price_url", default.price_url),
        timeout=int(raw.get("timeout", default.timeout)),
        ids={**default.ids, **dict(raw.get("ids", {}))},
        stable_symbols=tuple(raw.get("stable_symbols", default.stable_symbols)),
        fallback_prices={
            k: float(v)
            for k, v in {
                **default.fallback_prices,
                **dict(raw.get("fallback_prices", {})),
            }.items()
        },
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root; when that default file does not exist the built-in
            mainnet defaults are used.
    """
    load_dotenv()

    explicit = config_path is not None
    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        raw: dict[str, Any] = {}
    else:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        chain=_build_chain(raw.get("chain", {})),
        fluid=_build_fluid(raw.get("fluid", {})),
        rates=_build_rates(raw.get("rates", {})),
        etherscan=_build_etherscan(raw.get("etherscan", {})),
        coingecko=_build_coingecko(raw.get("coingecko", {})),
    )

    _validate(cfg)
    logger.info(
        "Configuration loaded from %s",
        config_path if config_path.exists() else "built-in defaults",
    )
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")
    if not _ADDRESS_RE.match(cfg.fluid.vault_resolver):
        raise ValueError(
            f"Vault resolver '{cfg.fluid.vault_resolver}' is not a valid address"
        )
    if not 0 < cfg.etherscan.page_size <= ETHERSCAN_MAX_PAGE_SIZE:
        raise ValueError(
            f"Etherscan page_size must be between 1 and {ETHERSCAN_MAX_PAGE_SIZE}"
        )
    if cfg.etherscan.request_delay < 0 or cfg.etherscan.rate_limit_backoff < 0:
        raise ValueError("Etherscan delays must not be negative")
    if cfg.etherscan.max_rate_limit_retries < 0:
        raise ValueError("Etherscan max_rate_limit_retries must not be negative")
    if cfg.rates.ray_divisor <= 0 or cfg.rates.bp_divisor <= 0:
        raise ValueError("Rate divisors must be positive")
