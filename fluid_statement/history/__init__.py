"""Transaction history: log retrieval, decoding and ledger assembly."""
from .assembler import TransactionHistoryAssembler, build_vault_contexts
from .decoder import decode_log, parse_log_entry
from .etherscan import EtherscanLogSource, PageOutcome, classify_page

__all__ = [
    "EtherscanLogSource",
    "PageOutcome",
    "TransactionHistoryAssembler",
    "build_vault_contexts",
    "classify_page",
    "decode_log",
    "parse_log_entry",
]
