"""Vault resolver ABI — call encoding and tuple → record decoding.

Resolver results are decoded here once and handed onward only as
``RawPosition`` / ``RawVault`` records.
"""
from __future__ import annotations

from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, encode_hex, function_signature_to_4byte_selector
from eth_utils import to_checksum_address

from ...errors import DecodeError
from ...models import RawPosition, RawVault

# ---------------------------------------------------------------------------
# Struct layouts (field order matches the on-chain Solidity structs)
# ---------------------------------------------------------------------------

USER_POSITION = (
    "(uint256,address,bool,bool,int256,uint256,"
    "uint256,uint256,uint256,uint256,uint256,uint256)"
)
_TOKENS = "(address,address)"
CONSTANT_VIEWS = (
    "(address,address,address,address,address,address,address,address,"
    f"{_TOKENS},{_TOKENS},uint256,uint256,bytes32,bytes32,bytes32,bytes32)"
)
CONFIGS = (
    "(uint16,uint16,uint16,uint16,uint16,uint16,uint16,uint16,"
    "address,uint256,uint256,address,uint256)"
)
EXCHANGE_PRICES_AND_RATES = (
    "(uint256,uint256,uint256,uint256,uint256,uint256,uint256,uint256,"
    "uint256,uint256,int256,int256,int256,int256)"
)
TOTAL_SUPPLY_AND_BORROW = "(uint256,uint256,uint256,uint256,uint256,uint256)"
LIMITS_AND_AVAILABILITY = (
    "(uint256,uint256,uint256,uint256,uint256,uint256,uint256,uint256)"
)
BRANCH_STATE = "(uint256,int256,uint256,uint256,uint256,uint256,int256)"
VAULT_STATE = f"(uint256,int256,uint256,uint256,uint256,uint256,{BRANCH_STATE})"
USER_SUPPLY_DATA = (
    "(bool,uint256,uint256,uint256,uint256,uint256,uint256,uint256,uint256,"
    "uint256,uint256)"
)
USER_BORROW_DATA = (
    "(bool,uint256,uint256,uint256,uint256,uint256,uint256,uint256,uint256,"
    "uint256,uint256)"
)
VAULT_ENTIRE_DATA = (
    f"(address,bool,bool,{CONSTANT_VIEWS},{CONFIGS},{EXCHANGE_PRICES_AND_RATES},"
    f"{TOTAL_SUPPLY_AND_BORROW},{LIMITS_AND_AVAILABILITY},{VAULT_STATE},"
    f"{USER_SUPPLY_DATA},{USER_BORROW_DATA})"
)

POSITION_BY_NFT_ID = "positionByNftId(uint256)"
POSITIONS_BY_USER = "positionsByUser(address)"
ERC20_SYMBOL = "symbol()"
ERC20_DECIMALS = "decimals()"
ERC20_NAME = "name()"

# Field offsets inside the tuples above
_POS_NFT_ID, _POS_OWNER, _POS_LIQUIDATED, _POS_SUPPLY_ONLY, _POS_TICK = 0, 1, 2, 3, 4
_POS_SUPPLY, _POS_BORROW = 9, 10
_VAULT_ADDRESS, _VAULT_SMART_COL, _VAULT_SMART_DEBT = 0, 1, 2
_VAULT_CONSTANTS, _VAULT_CONFIGS, _VAULT_RATES = 3, 4, 5
_CONST_SUPPLY_TOKEN, _CONST_BORROW_TOKEN, _CONST_VAULT_ID = 8, 9, 10
_CFG_COLLATERAL_FACTOR, _CFG_LIQ_THRESHOLD, _CFG_LIQ_MAX_LIMIT = 2, 3, 4
_CFG_LIQ_PENALTY, _CFG_BORROW_FEE, _CFG_ORACLE_PRICE_OPERATE = 6, 7, 9
_RATE_SUPPLY_VAULT, _RATE_BORROW_VAULT = 10, 11


def selector(signature: str) -> str:
    """0x-prefixed 4-byte function selector."""
    return encode_hex(function_signature_to_4byte_selector(signature))


def encode_call(signature: str, arg_types: list[str], args: list[Any]) -> str:
    """Calldata for ``signature`` with ABI-encoded arguments."""
    body = encode(arg_types, args) if arg_types else b""
    return selector(signature) + body.hex()


def _decode(types: list[str], result_hex: str) -> tuple[Any, ...]:
    try:
        return decode(types, decode_hex(result_hex))
    except (DecodingError, ValueError, TypeError) as e:
        raise DecodeError(f"Could not decode {types}: {e}") from e


# ---------------------------------------------------------------------------
# Tuple → record
# ---------------------------------------------------------------------------


def to_raw_vault(vault: tuple[Any, ...]) -> RawVault:
    """Build a ``RawVault`` from a decoded VaultEntireData tuple."""
    constants = vault[_VAULT_CONSTANTS]
    configs = vault[_VAULT_CONFIGS]
    rates = vault[_VAULT_RATES]
    return RawVault(
        vault_address=to_checksum_address(vault[_VAULT_ADDRESS]),
        supply_token=to_checksum_address(constants[_CONST_SUPPLY_TOKEN][0]),
        borrow_token=to_checksum_address(constants[_CONST_BORROW_TOKEN][0]),
        collateral_factor_bp=int(configs[_CFG_COLLATERAL_FACTOR]),
        liquidation_threshold_bp=int(configs[_CFG_LIQ_THRESHOLD]),
        liquidation_max_limit_bp=int(configs[_CFG_LIQ_MAX_LIMIT]),
        liquidation_penalty_bp=int(configs[_CFG_LIQ_PENALTY]),
        borrow_fee_bp=int(configs[_CFG_BORROW_FEE]),
        oracle_price_operate=int(configs[_CFG_ORACLE_PRICE_OPERATE]),
        supply_rate_raw=int(rates[_RATE_SUPPLY_VAULT]),
        borrow_rate_raw=int(rates[_RATE_BORROW_VAULT]),
        vault_id=int(constants[_CONST_VAULT_ID]),
    )


def to_raw_position(position: tuple[Any, ...], vault: tuple[Any, ...]) -> RawPosition:
    """Build a ``RawPosition``; smart-vault flags live on the vault tuple."""
    return RawPosition(
        nft_id=int(position[_POS_NFT_ID]),
        owner=to_checksum_address(position[_POS_OWNER]),
        is_liquidated=bool(position[_POS_LIQUIDATED]),
        is_supply_only=bool(position[_POS_SUPPLY_ONLY]),
        is_smart_collateral=bool(vault[_VAULT_SMART_COL]),
        is_smart_debt=bool(vault[_VAULT_SMART_DEBT]),
        tick=int(position[_POS_TICK]),
        supply_raw=int(position[_POS_SUPPLY]),
        borrow_raw=int(position[_POS_BORROW]),
    )


def decode_position_by_nft_id(result_hex: str) -> tuple[RawPosition, RawVault] | None:
    """Decode ``positionByNftId``; ``None`` when the resolver reports NFT id 0."""
    position, vault = _decode([USER_POSITION, VAULT_ENTIRE_DATA], result_hex)
    if int(position[_POS_NFT_ID]) == 0:
        return None
    return to_raw_position(position, vault), to_raw_vault(vault)


def decode_positions_by_user(
    result_hex: str,
) -> tuple[list[RawPosition], list[RawVault]]:
    """Decode ``positionsByUser`` into index-aligned position and vault lists."""
    positions, vaults = _decode(
        [f"{USER_POSITION}[]", f"{VAULT_ENTIRE_DATA}[]"], result_hex
    )
    if len(positions) != len(vaults):
        raise DecodeError(
            f"positionsByUser returned {len(positions)} positions "
            f"but {len(vaults)} vaults"
        )
    return (
        [to_raw_position(p, v) for p, v in zip(positions, vaults)],
        [to_raw_vault(v) for v in vaults],
    )


def decode_string(result_hex: str) -> str:
    """Decode an ERC-20 string return, tolerating legacy bytes32 tokens."""
    data = decode_hex(result_hex)
    if len(data) == 32:
        return data.rstrip(b"\x00").decode("utf-8", errors="replace")
    (value,) = _decode(["string"], result_hex)
    return value


def decode_uint(result_hex: str) -> int:
    (value,) = _decode(["uint256"], result_hex)
    return int(value)
