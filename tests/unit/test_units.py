"""Unit tests for unit conversions — pure functions, no I/O."""
from __future__ import annotations

from decimal import Decimal

import pytest

from fluid_statement.config import RateScaleConfig
from fluid_statement.errors import DecodeError
from fluid_statement.units import (
    bp_to_percent,
    decode_address,
    decode_int256,
    decode_uint256,
    format_units,
    rate_to_apy,
    split_words,
    to_decimal,
    to_exact_decimal,
)

ALL_ONES = "f" * 64


# ---------------------------------------------------------------------------
# format_units / to_decimal
# ---------------------------------------------------------------------------


class TestFormatUnits:
    def test_six_decimals(self) -> None:
        assert format_units(1_500_000, 6) == "1.500000"

    def test_pads_small_fraction(self) -> None:
        assert format_units(5, 6) == "0.000005"

    def test_zero_decimals_has_no_fraction(self) -> None:
        assert format_units(42, 0) == "42"

    def test_zero_amount(self) -> None:
        assert format_units(0, 18) == "0.000000000000000000"

    def test_large_balance_is_exact(self) -> None:
        raw = 123_456_789_012_345_678_901_234_567_890
        assert format_units(raw, 18) == "123456789012.345678901234567890"

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            format_units(-1, 6)


class TestToDecimal:
    def test_basic(self) -> None:
        assert to_decimal(2_000 * 10**6, 6) == 2000.0

    def test_exact_decimal(self) -> None:
        assert to_exact_decimal(1, 18) == Decimal("0.000000000000000001")

    @pytest.mark.parametrize("decimals", [0, 1, 6, 8, 12, 18])
    @pytest.mark.parametrize("raw", [0, 1, 999, 123_456_789, 10**15 - 1])
    def test_round_trip_to_base_units(self, raw: int, decimals: int) -> None:
        assert round(to_decimal(raw, decimals) * 10**decimals) == raw


# ---------------------------------------------------------------------------
# rate_to_apy
# ---------------------------------------------------------------------------


class TestRateToApy:
    def test_basis_point_scale(self) -> None:
        assert rate_to_apy(450) == pytest.approx(4.5)

    def test_ray_scale(self) -> None:
        # 3.2% in ray: 3.2e25 → // 1e23 = 320 → / 100
        assert rate_to_apy(32 * 10**24) == pytest.approx(3.2)

    def test_threshold_itself_is_basis_point_scale(self) -> None:
        assert rate_to_apy(10**18) == pytest.approx(10**16)

    def test_ray_scale_floors_extra_precision(self) -> None:
        assert rate_to_apy(32 * 10**24 + 99_999) == pytest.approx(3.2)

    def test_zero(self) -> None:
        assert rate_to_apy(0) == 0.0

    @pytest.mark.parametrize("magnitude", [1, 450, 10**18, 10**18 + 1, 5 * 10**25])
    def test_sign_preserving(self, magnitude: int) -> None:
        assert rate_to_apy(-magnitude) == -rate_to_apy(magnitude)

    def test_custom_scales(self) -> None:
        scales = RateScaleConfig(ray_threshold=10**6, ray_divisor=10**4, bp_divisor=10)
        assert rate_to_apy(5 * 10**7, scales) == pytest.approx(500.0)
        assert rate_to_apy(50, scales) == pytest.approx(5.0)


class TestBpToPercent:
    def test_liquidation_threshold(self) -> None:
        assert bp_to_percent(8500) == 85.0


# ---------------------------------------------------------------------------
# ABI words
# ---------------------------------------------------------------------------


class TestInt256:
    def test_all_ones_is_minus_one(self) -> None:
        assert decode_int256(ALL_ONES) == -1

    def test_one(self) -> None:
        assert decode_int256("0" * 63 + "1") == 1

    def test_boundary_is_minimum(self) -> None:
        word = format(2**255, "064x")
        assert decode_int256(word) == -(2**255)

    def test_max_positive(self) -> None:
        word = format(2**255 - 1, "064x")
        assert decode_int256(word) == 2**255 - 1

    def test_uint_of_all_ones(self) -> None:
        assert decode_uint256(ALL_ONES) == 2**256 - 1

    def test_large_negative_is_exact(self) -> None:
        value = -(10**30 + 7)
        assert decode_int256(format(value % 2**256, "064x")) == value


class TestSplitWords:
    def test_five_words(self) -> None:
        data = "0x" + "".join(format(i, "064x") for i in range(5))
        words = split_words(data, 5)
        assert len(words) == 5
        assert decode_uint256(words[3]) == 3

    def test_short_payload_raises(self) -> None:
        with pytest.raises(DecodeError, match="Expected 160 bytes"):
            split_words("0x" + "00" * 128, 5)

    def test_long_payload_raises(self) -> None:
        with pytest.raises(DecodeError):
            split_words("0x" + "00" * 192, 5)

    def test_non_hex_raises(self) -> None:
        with pytest.raises(DecodeError, match="not valid hex"):
            split_words("0x" + "zz" * 160, 5)

    def test_underscore_raises(self) -> None:
        word = "_" + "1" * 63
        with pytest.raises(DecodeError, match="not valid hex"):
            split_words("0x" + word + "0" * 64, 2)

    def test_address_word(self) -> None:
        word = "0" * 24 + "11" * 20
        assert decode_address(word) == "0x" + "11" * 20
