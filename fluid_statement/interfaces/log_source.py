"""Log source protocol — paginated event-log retrieval."""
from typing import Any, Protocol


class LogSource(Protocol):
    """Abstract interface for fetching every log of one contract and topic."""

    async def fetch_all_logs(
        self, vault_address: str, topic: str
    ) -> list[dict[str, Any]]: ...
