"""Error hierarchy for statement generation.

Pipeline-level errors (connectivity, bad input, nothing found) abort a
report. Record-level errors (a malformed log, a throttled vault) are caught
by the component that owns the batch and never abort it.
"""
from __future__ import annotations

from typing import Any


class StatementError(Exception):
    """Base exception for all statement pipeline errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConnectivityError(StatementError):
    """RPC source unreachable — fatal to the whole report."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.endpoint = endpoint


class InvalidInputError(StatementError, ValueError):
    """Malformed address or NFT id supplied by the caller."""


class NotFoundError(StatementError):
    """Requested NFT id or owner address yields nothing."""


class NoPositionsError(NotFoundError):
    """Owner has positions, but none survive reporting filters."""

    def __init__(
        self,
        message: str,
        excluded: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.excluded = excluded


class DecodeError(StatementError):
    """A single log or ABI payload is malformed."""


class RateLimitedError(StatementError):
    """Log API throttling persisted past the retry cap.

    ``partial`` holds the raw log entries collected before giving up.
    """

    def __init__(
        self,
        message: str,
        partial: list[dict[str, Any]] | None = None,
        attempts: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.partial = partial or []
        self.attempts = attempts


class PriceUnavailableError(StatementError):
    """Price feed request failed; handled by falling back to approximations."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class ContractCallError(StatementError):
    """Node answered, but the call itself failed (revert, bad params)."""

    def __init__(
        self,
        message: str,
        code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.code = code
