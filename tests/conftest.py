"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from fluid_statement.config import (
    AppConfig,
    ChainConfig,
    CoinGeckoConfig,
    EtherscanConfig,
    FluidConfig,
    RateScaleConfig,
)
from fluid_statement.models import (
    Position,
    RawPosition,
    RawVault,
    TokenMetadata,
    VaultContext,
)
from fluid_statement.protocols.fluid.constants import MAINNET_TOKENS
from fluid_statement.protocols.fluid.parser import normalize_position

OWNER = "0x1111111111111111111111111111111111111111"
VAULT = "0x2222222222222222222222222222222222222222"
OTHER_VAULT = "0x3333333333333333333333333333333333333333"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
TOPIC = "0xfef64760e30a41b9d5ba7dd65ff7236a61d89ed8b44c67a29e84db1a67513a1c"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_etherscan_config() -> EtherscanConfig:
    return EtherscanConfig(
        base_url="https://etherscan.example.com/v2/api",
        api_key="test-key",
        page_size=1000,
        request_delay=0.0,
        rate_limit_backoff=0.0,
        backoff_multiplier=2.0,
        max_rate_limit_retries=3,
        request_timeout=5,
    )


@pytest.fixture()
def sample_app_config(sample_etherscan_config: EtherscanConfig) -> AppConfig:
    return AppConfig(
        chain=ChainConfig(
            chain_id=1,
            network="Ethereum Mainnet",
            rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
            rpc_timeout=5,
        ),
        fluid=FluidConfig(),
        rates=RateScaleConfig(),
        etherscan=sample_etherscan_config,
        coingecko=CoinGeckoConfig(price_url="https://prices.example.com"),
    )


# ---------------------------------------------------------------------------
# Raw on-chain records
# ---------------------------------------------------------------------------


@pytest.fixture()
def weth_meta() -> TokenMetadata:
    return MAINNET_TOKENS[WETH.lower()]


@pytest.fixture()
def usdc_meta() -> TokenMetadata:
    return MAINNET_TOKENS[USDC.lower()]


@pytest.fixture()
def sample_vault() -> RawVault:
    """WETH/USDC vault; oracle prices 1 WETH at 2500 USDC."""
    return RawVault(
        vault_address=VAULT,
        supply_token=WETH,
        borrow_token=USDC,
        collateral_factor_bp=7500,
        liquidation_threshold_bp=8000,
        liquidation_max_limit_bp=9000,
        liquidation_penalty_bp=300,
        borrow_fee_bp=0,
        # 1e18 wei * 2.5e18 / 1e27 = 2500e6 USDC base units
        oracle_price_operate=2_500 * 10**15,
        supply_rate_raw=32 * 10**24,  # ray-scaled 3.20%
        borrow_rate_raw=450,  # 4.50%
        vault_id=11,
    )


@pytest.fixture()
def sample_raw_position() -> RawPosition:
    """2 WETH collateral, 2000 USDC debt: LTV 40%."""
    return RawPosition(
        nft_id=1234,
        owner=OWNER,
        is_liquidated=False,
        is_supply_only=False,
        is_smart_collateral=False,
        is_smart_debt=False,
        tick=-120,
        supply_raw=2 * 10**18,
        borrow_raw=2_000 * 10**6,
    )


@pytest.fixture()
def sample_position(
    sample_raw_position: RawPosition,
    sample_vault: RawVault,
    weth_meta: TokenMetadata,
    usdc_meta: TokenMetadata,
) -> Position:
    return normalize_position(sample_raw_position, sample_vault, weth_meta, usdc_meta)


@pytest.fixture()
def sample_context() -> VaultContext:
    return VaultContext(
        vault_address=VAULT,
        supply_symbol="WETH",
        supply_decimals=18,
        supply_name="Wrapped Ether",
        borrow_symbol="USDC",
        borrow_decimals=6,
        borrow_name="USD Coin",
        nft_ids=frozenset({1234}),
    )


@pytest.fixture()
def sample_prices() -> dict[str, float]:
    return {"WETH": 2500.0, "USDC": 1.0, "USDT": 1.0, "wstETH": 2900.0}


# ---------------------------------------------------------------------------
# LogOperate payloads
# ---------------------------------------------------------------------------


def _word(value: int) -> str:
    return format(value % (1 << 256), "064x")


@pytest.fixture()
def make_log_data() -> Callable[[int, int, int], str]:
    """Build LogOperate ``data``: user, nftId, colAmt, debtAmt, to."""

    def _make(nft_id: int, col_amt: int, debt_amt: int) -> str:
        user = int(OWNER, 16)
        return "0x" + "".join(
            _word(v) for v in (user, nft_id, col_amt, debt_amt, user)
        )

    return _make


@pytest.fixture()
def make_log(make_log_data: Callable[[int, int, int], str]) -> Callable[..., dict]:
    """Etherscan getLogs result item for a LogOperate event."""

    def _make(
        nft_id: int,
        col_amt: int,
        debt_amt: int,
        timestamp: int,
        tx_hash: str = "0xabc",
        address: str = VAULT,
    ) -> dict:
        return {
            "address": address.lower(),
            "topics": [TOPIC],
            "data": make_log_data(nft_id, col_amt, debt_amt),
            "blockNumber": hex(19_000_000 + timestamp),
            "timeStamp": hex(timestamp),
            "logIndex": "0x1",
            "transactionHash": tx_hash,
        }

    return _make


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    chain:
      chain_id: 1
      network: Ethereum Mainnet
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    fluid:
      vault_resolver: "0xA5C3E16523eeeDDcC34706b0E6bE88b4c6EA95cC"
    rates:
      ray_threshold: 1000000000000000000
    etherscan:
      api_key: "key-123"
      page_size: 500
      request_delay: 0.5
      max_rate_limit_retries: 2
    coingecko:
      ids: {FLUID: fluid}
      fallback_prices: {FLUID: 5.0}
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
