"""LogOperate event decoding — pure functions, no I/O.

``LogOperate(address user, uint256 nftId, int256 colAmt, int256 debtAmt,
address to)`` carries no indexed parameters, so all five values sit in the
log ``data`` as consecutive 32-byte words.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..errors import DecodeError
from ..models import DecodedEvent, LedgerRow, RawLogEntry, TransactionType, VaultContext
from ..units import decode_int256, decode_uint256, split_words, to_decimal

LOGOPERATE_WORDS = 5
_WORD_NFT_ID, _WORD_COL_AMT, _WORD_DEBT_AMT = 1, 2, 3


def _hex_int(value: Any, field_name: str) -> int:
    if isinstance(value, int):
        return value
    text = str(value or "").strip()
    if text in ("", "0x"):
        return 0
    try:
        return int(text, 16) if text.startswith("0x") else int(text)
    except ValueError as e:
        raise DecodeError(f"Invalid {field_name}: {value!r}") from e


def parse_log_entry(entry: dict[str, Any], vault_address: str = "") -> RawLogEntry:
    """Convert one Etherscan getLogs result item into a ``RawLogEntry``."""
    if not isinstance(entry, dict):
        raise DecodeError(f"Log entry is not an object: {entry!r}")
    if "data" not in entry or "timeStamp" not in entry:
        raise DecodeError("Log entry is missing data or timeStamp")
    return RawLogEntry(
        vault_address=entry.get("address") or vault_address,
        data=str(entry["data"]),
        block_timestamp=_hex_int(entry["timeStamp"], "timeStamp"),
        transaction_hash=str(entry.get("transactionHash", "")),
        block_number=_hex_int(entry.get("blockNumber"), "blockNumber"),
        log_index=_hex_int(entry.get("logIndex"), "logIndex"),
    )


def _block_date(timestamp: int) -> datetime:
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as e:
        raise DecodeError(f"Invalid timeStamp: {timestamp}") from e


def _row(
    log: RawLogEntry,
    date: datetime,
    delta: int,
    decimals: int,
    symbol: str,
    price: float,
    increase: TransactionType,
    decrease: TransactionType,
    nft_id: int,
) -> LedgerRow:
    amount = to_decimal(abs(delta), decimals)
    return LedgerRow(
        date=date,
        timestamp=log.block_timestamp,
        description=increase if delta > 0 else decrease,
        asset=symbol,
        signed_amount=amount if delta > 0 else -amount,
        usd_value=amount * price,
        transaction_hash=log.transaction_hash,
        is_credit=delta < 0,
        nft_id=nft_id,
        vault_address=log.vault_address,
    )


def decode_log(
    log: RawLogEntry, context: VaultContext, prices: dict[str, float]
) -> DecodedEvent | None:
    """Decode one LogOperate log into at most two ledger rows.

    A non-zero collateral delta gives a Deposit/Withdrawal row, a non-zero
    debt delta a Borrow/Repayment row. Both deltas zero is a no-op and
    returns ``None``. A payload of the wrong length raises ``DecodeError``.
    """
    words = split_words(log.data, LOGOPERATE_WORDS)
    nft_id = decode_uint256(words[_WORD_NFT_ID])
    col_amt = decode_int256(words[_WORD_COL_AMT])
    debt_amt = decode_int256(words[_WORD_DEBT_AMT])

    date = _block_date(log.block_timestamp)

    rows: list[LedgerRow] = []
    if col_amt != 0:
        rows.append(
            _row(
                log,
                date,
                col_amt,
                context.supply_decimals,
                context.supply_symbol,
                prices.get(context.supply_symbol, 0.0),
                TransactionType.DEPOSIT,
                TransactionType.WITHDRAWAL,
                nft_id,
            )
        )
    if debt_amt != 0:
        rows.append(
            _row(
                log,
                date,
                debt_amt,
                context.borrow_decimals,
                context.borrow_symbol,
                prices.get(context.borrow_symbol, 0.0),
                TransactionType.BORROW,
                TransactionType.REPAYMENT,
                nft_id,
            )
        )

    if not rows:
        return None
    return DecodedEvent(nft_id=nft_id, rows=tuple(rows))
