"""Data models — all frozen (immutable)."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class TransactionType(str, Enum):
    """Ledger row description derived from the sign of a LogOperate delta."""

    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    BORROW = "Borrow"
    REPAYMENT = "Repayment"


@dataclass(frozen=True)
class TokenMetadata:
    """ERC-20 metadata, from the static token table or an on-chain lookup."""

    address: str
    symbol: str
    decimals: int
    name: str


# ---------------------------------------------------------------------------
# Raw on-chain records (decoded once at the resolver boundary)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawPosition:
    """Vault position as reported by the resolver; amounts in base units."""

    nft_id: int
    owner: str
    is_liquidated: bool
    is_supply_only: bool
    is_smart_collateral: bool
    is_smart_debt: bool
    tick: int
    supply_raw: int
    borrow_raw: int


@dataclass(frozen=True)
class RawVault:
    """Vault configuration and rates; ``*_bp`` fields are percent x 100."""

    vault_address: str
    supply_token: str
    borrow_token: str
    collateral_factor_bp: int
    liquidation_threshold_bp: int
    liquidation_max_limit_bp: int
    liquidation_penalty_bp: int
    borrow_fee_bp: int
    oracle_price_operate: int
    supply_rate_raw: int
    borrow_rate_raw: int
    vault_id: int = 0


@dataclass(frozen=True)
class RawLogEntry:
    """LogOperate log entry; ``data`` is the 0x-prefixed packed payload."""

    vault_address: str
    data: str
    block_timestamp: int
    transaction_hash: str
    block_number: int = 0
    log_index: int = 0


# ---------------------------------------------------------------------------
# Normalized records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenAmount:
    """Human-readable token quantity (collateral or debt side)."""

    amount: float
    symbol: str
    name: str
    decimals: int = 18
    address: str = ""
    raw: int = 0


@dataclass(frozen=True)
class Position:
    """Normalized vault position."""

    id: int
    owner: str
    is_liquidated: bool
    vault_address: str
    collateral: TokenAmount
    debt: TokenAmount
    ltv_percent: float
    health_factor: float
    liquidation_threshold_percent: float
    borrow_apy_percent: float
    supply_apy_percent: float
    collateral_factor_percent: float = 0.0
    liquidation_max_limit_percent: float = 0.0
    liquidation_penalty_percent: float = 0.0
    borrow_fee_percent: float = 0.0
    oracle_price: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if math.isinf(self.health_factor):
            data["health_factor"] = None
        return data


@dataclass(frozen=True)
class VaultContext:
    """Token pair details of one vault plus the caller's NFT ids on it."""

    vault_address: str
    supply_symbol: str
    supply_decimals: int
    supply_name: str
    borrow_symbol: str
    borrow_decimals: int
    borrow_name: str
    nft_ids: frozenset[int] = frozenset()


@dataclass(frozen=True)
class LedgerRow:
    """One transaction-history line; a single log yields at most two."""

    date: datetime
    timestamp: int
    description: TransactionType
    asset: str
    signed_amount: float
    usd_value: float
    transaction_hash: str
    is_credit: bool
    nft_id: int = 0
    vault_address: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "timestamp": self.timestamp,
            "description": self.description.value,
            "asset": self.asset,
            "signed_amount": self.signed_amount,
            "usd_value": self.usd_value,
            "transaction_hash": self.transaction_hash,
            "is_credit": self.is_credit,
            "nft_id": self.nft_id,
            "vault_address": self.vault_address,
        }


@dataclass(frozen=True)
class DecodedEvent:
    """Result of decoding one LogOperate log."""

    nft_id: int
    rows: tuple[LedgerRow, ...]


# ---------------------------------------------------------------------------
# Report output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PortfolioSummary:
    """Aggregate USD figures across reported positions."""

    total_collateral_usd: Decimal = Decimal(0)
    total_debt_usd: Decimal = Decimal(0)
    net_value_usd: Decimal = Decimal(0)
    weighted_ltv_percent: Decimal = Decimal(0)
    weighted_borrow_apy_percent: Decimal = Decimal(0)
    weighted_liquidation_threshold_percent: Decimal = Decimal(0)
    collateral_breakdown: dict[str, Decimal] = field(default_factory=dict)
    debt_breakdown: dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_collateral_usd": str(self.total_collateral_usd),
            "total_debt_usd": str(self.total_debt_usd),
            "net_value_usd": str(self.net_value_usd),
            "weighted_ltv_percent": str(self.weighted_ltv_percent),
            "weighted_borrow_apy_percent": str(self.weighted_borrow_apy_percent),
            "weighted_liquidation_threshold_percent": str(
                self.weighted_liquidation_threshold_percent
            ),
            "collateral_breakdown": {
                k: str(v) for k, v in self.collateral_breakdown.items()
            },
            "debt_breakdown": {k: str(v) for k, v in self.debt_breakdown.items()},
        }


@dataclass(frozen=True)
class StatementReport:
    """Sole output contract handed to report consumers."""

    owner: str
    chain_id: int
    network: str
    positions: tuple[Position, ...]
    ledger: tuple[LedgerRow, ...]
    prices: dict[str, float]
    summary: PortfolioSummary
    generated_at: datetime
    history_included: bool = False
    prices_degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "chain_id": self.chain_id,
            "network": self.network,
            "generated_at": self.generated_at.isoformat(),
            "history_included": self.history_included,
            "prices_degraded": self.prices_degraded,
            "positions": [p.to_dict() for p in self.positions],
            "ledger": [r.to_dict() for r in self.ledger],
            "prices": dict(self.prices),
            "summary": self.summary.to_dict(),
        }
