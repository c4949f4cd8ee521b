"""Pure unit conversions — base-unit integers, encoded rates, ABI words."""
from __future__ import annotations

import string
from decimal import Decimal

from .config import RateScaleConfig
from .errors import DecodeError

WORD_HEX_CHARS = 64
UINT256_MAX = (1 << 256) - 1
INT256_MAX = (1 << 255) - 1

_DEFAULT_SCALES = RateScaleConfig()


def format_units(raw: int, decimals: int) -> str:
    """Render a base-unit integer as an exact decimal string.

    Integer division gives the whole part and the zero-padded remainder
    gives the fraction, so no precision is lost on large balances.

    Examples:
        format_units(1500000, 6) → "1.500000"
        format_units(42, 0) → "42"
    """
    if raw < 0:
        raise ValueError(f"raw amount must be non-negative, got {raw}")
    if not 0 <= decimals <= 77:
        raise ValueError(f"decimals out of range: {decimals}")
    if decimals == 0:
        return str(raw)
    divisor = 10**decimals
    whole, frac = divmod(raw, divisor)
    return f"{whole}.{str(frac).zfill(decimals)}"


def to_decimal(raw: int, decimals: int) -> float:
    """Convert a base-unit integer to a float via its exact decimal string."""
    return float(format_units(raw, decimals))


def to_exact_decimal(raw: int, decimals: int) -> Decimal:
    """Convert a base-unit integer to a ``Decimal`` without rounding."""
    return Decimal(format_units(raw, decimals))


def rate_to_apy(raw_rate: int, scales: RateScaleConfig = _DEFAULT_SCALES) -> float:
    """Convert a signed vault rate to an annual percentage.

    Magnitudes above ``scales.ray_threshold`` are ray-encoded: divide by
    ``ray_divisor`` (floor) to get percent x 100. Smaller magnitudes are
    already percent x 100. The sign is carried through unchanged.
    """
    magnitude = abs(raw_rate)
    sign = -1 if raw_rate < 0 else 1
    if magnitude > scales.ray_threshold:
        return sign * (magnitude // scales.ray_divisor) / scales.bp_divisor
    return sign * magnitude / scales.bp_divisor


def bp_to_percent(bp: int) -> float:
    """Basis-point-like config value (percent x 100) to a display percentage."""
    return bp / 100


# ---------------------------------------------------------------------------
# ABI word decoding
# ---------------------------------------------------------------------------


def split_words(hex_data: str, count: int) -> list[str]:
    """Split a 0x-prefixed payload into exactly ``count`` 32-byte hex words."""
    body = hex_data[2:] if hex_data.startswith(("0x", "0X")) else hex_data
    expected = count * WORD_HEX_CHARS
    if len(body) != expected:
        raise DecodeError(
            f"Expected {count * 32} bytes of log data, got {len(body) / 2:g}",
            details={"length": len(body) // 2, "expected": count * 32},
        )
    if not all(c in string.hexdigits for c in body):
        raise DecodeError("Log data is not valid hex")
    return [body[i * WORD_HEX_CHARS:(i + 1) * WORD_HEX_CHARS] for i in range(count)]


def decode_uint256(word: str) -> int:
    """Interpret a 64-char hex word as an unsigned 256-bit integer."""
    return int(word, 16)


def decode_int256(word: str) -> int:
    """Interpret a 64-char hex word as a two's-complement signed integer."""
    value = decode_uint256(word)
    if value > INT256_MAX:
        return value - (1 << 256)
    return value


def decode_address(word: str) -> str:
    """Right-aligned 20-byte address inside a 32-byte word."""
    return "0x" + word[-40:]
