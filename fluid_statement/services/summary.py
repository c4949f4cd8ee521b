"""Portfolio totals across normalized positions, in pure Decimal arithmetic."""
from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, localcontext

from ..models import PortfolioSummary, Position
from ..units import to_exact_decimal

_PERCENT_QUANTUM = Decimal("0.01")
# uint256 amounts have up to 78 digits; sums of their products with prices fit
_SUMMARY_PRECISION = 160


def _price(prices: dict[str, float], symbol: str, default: float) -> Decimal:
    return Decimal(str(prices.get(symbol, default)))


def _weighted(total: Decimal, weight: Decimal) -> Decimal:
    if weight <= 0:
        return Decimal("0.00")
    return (total / weight).quantize(_PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def summarize_positions(
    positions: Iterable[Position], prices: dict[str, float]
) -> PortfolioSummary:
    """USD totals plus debt-weighted LTV/APY and collateral-weighted threshold.

    Amounts are rebuilt from base units and summed in a Decimal context wide
    enough for uint256 values, so totals carry no rounding. A missing
    collateral price counts as 0, a missing debt price as 1.
    """
    with localcontext() as ctx:
        ctx.prec = _SUMMARY_PRECISION
        return _summarize(positions, prices)


def _summarize(
    positions: Iterable[Position], prices: dict[str, float]
) -> PortfolioSummary:
    total_collateral = Decimal(0)
    total_debt = Decimal(0)
    ltv_weight = Decimal(0)
    rate_weight = Decimal(0)
    threshold_weight = Decimal(0)
    collateral_breakdown: dict[str, Decimal] = {}
    debt_breakdown: dict[str, Decimal] = {}

    for position in positions:
        collateral_amount = to_exact_decimal(
            position.collateral.raw, position.collateral.decimals
        )
        debt_amount = to_exact_decimal(position.debt.raw, position.debt.decimals)

        collateral_usd = collateral_amount * _price(
            prices, position.collateral.symbol, 0.0
        )
        debt_usd = debt_amount * _price(prices, position.debt.symbol, 1.0)

        total_collateral += collateral_usd
        total_debt += debt_usd
        ltv_weight += Decimal(str(position.ltv_percent)) * debt_usd
        rate_weight += Decimal(str(position.borrow_apy_percent)) * debt_usd
        threshold_weight += (
            Decimal(str(position.liquidation_threshold_percent)) * collateral_usd
        )

        symbol = position.collateral.symbol
        collateral_breakdown[symbol] = (
            collateral_breakdown.get(symbol, Decimal(0)) + collateral_amount
        )
        symbol = position.debt.symbol
        debt_breakdown[symbol] = debt_breakdown.get(symbol, Decimal(0)) + debt_amount

    return PortfolioSummary(
        total_collateral_usd=total_collateral,
        total_debt_usd=total_debt,
        net_value_usd=total_collateral - total_debt,
        weighted_ltv_percent=_weighted(ltv_weight, total_debt),
        weighted_borrow_apy_percent=_weighted(rate_weight, total_debt),
        weighted_liquidation_threshold_percent=_weighted(
            threshold_weight, total_collateral
        ),
        collateral_breakdown=collateral_breakdown,
        debt_breakdown=debt_breakdown,
    )
