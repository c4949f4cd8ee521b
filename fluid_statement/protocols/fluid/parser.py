"""Pure normalization functions for Fluid vault positions — no I/O."""
from __future__ import annotations

from ...config import RateScaleConfig
from ...models import Position, RawPosition, RawVault, TokenAmount, TokenMetadata
from ...units import bp_to_percent, rate_to_apy, to_decimal

ORACLE_PRICE_SCALE = 10**27


def collateral_value_in_debt(supply_raw: int, oracle_price_operate: int) -> int:
    """Collateral value in debt-token base units (floor division).

    ``oracle_price_operate`` is the ratio debt/collateral scaled by 1e27.
    """
    return supply_raw * oracle_price_operate // ORACLE_PRICE_SCALE


def calc_ltv(debt_amount: float, collateral_value: float) -> float:
    """Loan-to-value as a percentage; 0 unless both sides are positive."""
    if debt_amount <= 0 or collateral_value <= 0:
        return 0.0
    return (debt_amount / collateral_value) * 100


def calc_health_factor(liquidation_threshold_percent: float, ltv_percent: float) -> float:
    """Health factor = liquidation threshold % / LTV %.

    An LTV of 0 (no debt or no collateral value) gives infinity.
    """
    if ltv_percent == 0:
        return float("inf")
    return liquidation_threshold_percent / ltv_percent


def exclusion_reason(position: RawPosition) -> str | None:
    """Why a position is left out of multi-position reports, if it is."""
    if position.is_liquidated:
        return "liquidated"
    if position.supply_raw == 0:
        return "no supply"
    if position.is_smart_collateral or position.is_smart_debt:
        return "smart vault"
    if position.is_supply_only:
        return "supply-only"
    return None


def is_reportable(position: RawPosition) -> bool:
    return exclusion_reason(position) is None


def _token_amount(raw: int, meta: TokenMetadata) -> TokenAmount:
    return TokenAmount(
        amount=to_decimal(raw, meta.decimals),
        symbol=meta.symbol,
        name=meta.name,
        decimals=meta.decimals,
        address=meta.address,
        raw=raw,
    )


def normalize_position(
    position: RawPosition,
    vault: RawVault,
    supply_meta: TokenMetadata,
    borrow_meta: TokenMetadata,
    scales: RateScaleConfig | None = None,
) -> Position:
    """Map a raw position and its vault onto a normalized ``Position``.

    Collateral is valued in debt-token units through the vault oracle, so
    LTV needs no USD prices. Flags such as ``is_liquidated`` are carried
    through, never filtered here.
    """
    scales = scales or RateScaleConfig()

    collateral = _token_amount(position.supply_raw, supply_meta)
    debt = _token_amount(position.borrow_raw, borrow_meta)

    col_value_raw = collateral_value_in_debt(
        position.supply_raw, vault.oracle_price_operate
    )
    col_value = to_decimal(col_value_raw, borrow_meta.decimals)

    ltv = calc_ltv(debt.amount, col_value)
    liquidation_threshold = bp_to_percent(vault.liquidation_threshold_bp)
    oracle_price = (
        col_value / collateral.amount if collateral.amount > 0 and col_value > 0 else 0.0
    )

    return Position(
        id=position.nft_id,
        owner=position.owner,
        is_liquidated=position.is_liquidated,
        vault_address=vault.vault_address,
        collateral=collateral,
        debt=debt,
        ltv_percent=ltv,
        health_factor=calc_health_factor(liquidation_threshold, ltv),
        liquidation_threshold_percent=liquidation_threshold,
        borrow_apy_percent=rate_to_apy(vault.borrow_rate_raw, scales),
        supply_apy_percent=rate_to_apy(vault.supply_rate_raw, scales),
        collateral_factor_percent=bp_to_percent(vault.collateral_factor_bp),
        liquidation_max_limit_percent=bp_to_percent(vault.liquidation_max_limit_bp),
        liquidation_penalty_percent=bp_to_percent(vault.liquidation_penalty_bp),
        borrow_fee_percent=bp_to_percent(vault.borrow_fee_bp),
        oracle_price=oracle_price,
    )
