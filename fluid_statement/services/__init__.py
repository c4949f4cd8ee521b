"""Service modules"""
from .statement import StatementService
from .summary import summarize_positions

__all__ = ["StatementService", "summarize_positions"]
