"""Fluid lending statements: normalized positions and transaction history."""

__version__ = "0.1.0"
