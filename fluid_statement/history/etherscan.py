"""Etherscan V2 log source — paginated getLogs with rate-limit handling."""
from __future__ import annotations

import asyncio
import logging
import ssl
from enum import Enum
from typing import Any

import aiohttp
import certifi

from ..config import EtherscanConfig
from ..errors import RateLimitedError

logger = logging.getLogger(__name__)

NO_RECORDS_MESSAGE = "No records found"


class PageOutcome(str, Enum):
    """Transition taken after one page request."""

    MORE = "more"
    DONE = "done"
    RETRY = "retry"
    ABORTED = "aborted"


class _HttpStatusError(Exception):
    def __init__(self, status: int) -> None:
        super().__init__(f"HTTP {status}")
        self.status = status


def _is_rate_limited(payload: dict[str, Any]) -> bool:
    result = payload.get("result")
    message = str(payload.get("message", ""))
    text = result if isinstance(result, str) else ""
    return "rate limit" in text.lower() or "rate limit" in message.lower()


def classify_page(payload: Any, page_size: int) -> PageOutcome:
    """Decide the next pagination step from one getLogs response.

    ``status == "0"`` covers three cases: "No records found" is an empty
    success, a rate-limit notice is transient, anything else aborts. A full
    page means more may follow.
    """
    if not isinstance(payload, dict):
        return PageOutcome.ABORTED
    if str(payload.get("status")) == "0":
        if payload.get("message") == NO_RECORDS_MESSAGE:
            return PageOutcome.DONE
        if _is_rate_limited(payload):
            return PageOutcome.RETRY
        return PageOutcome.ABORTED

    result = payload.get("result")
    if not isinstance(result, list):
        return PageOutcome.ABORTED
    if len(result) < page_size:
        return PageOutcome.DONE
    return PageOutcome.MORE


class EtherscanLogSource:
    """Fetch every log of a contract/topic pair from the Etherscan V2 API."""

    def __init__(self, config: EtherscanConfig, chain_id: int = 1) -> None:
        self.base_url = config.base_url
        self.api_key = config.api_key
        self.chain_id = chain_id
        self.page_size = config.page_size
        self.request_delay = config.request_delay
        self.rate_limit_backoff = config.rate_limit_backoff
        self.backoff_multiplier = config.backoff_multiplier
        self.max_rate_limit_retries = config.max_rate_limit_retries
        self.timeout = config.request_timeout

    def _params(self, vault_address: str, topic: str, page: int) -> dict[str, str]:
        return {
            "chainid": str(self.chain_id),
            "module": "logs",
            "action": "getLogs",
            "address": vault_address,
            "topic0": topic,
            "fromBlock": "0",
            "toBlock": "latest",
            "page": str(page),
            "offset": str(self.page_size),
            "apikey": self.api_key,
        }

    async def _get_page(
        self, session: aiohttp.ClientSession, params: dict[str, str]
    ) -> Any:
        async with session.get(
            self.base_url,
            params=params,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            if response.status != 200:
                raise _HttpStatusError(response.status)
            return await response.json(content_type=None)

    async def fetch_all_logs(
        self, vault_address: str, topic: str
    ) -> list[dict[str, Any]]:
        """All raw log entries for ``vault_address`` matching ``topic``.

        Pages are requested sequentially with a fixed delay between them.
        Rate-limit answers re-issue the same page after an exponentially
        growing backoff; past ``max_rate_limit_retries`` a
        ``RateLimitedError`` carrying the partial logs is raised. Any other
        failure stops pagination and returns the pages collected so far.
        """
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            return await self._paginate(session, vault_address, topic)

    async def _paginate(
        self, session: aiohttp.ClientSession, vault_address: str, topic: str
    ) -> list[dict[str, Any]]:
        logs: list[dict[str, Any]] = []
        page = 1
        retries = 0
        backoff = self.rate_limit_backoff

        while True:
            params = self._params(vault_address, topic, page)
            try:
                payload = await self._get_page(session, params)
                outcome = classify_page(payload, self.page_size)
            except _HttpStatusError as e:
                payload = {}
                outcome = PageOutcome.RETRY if e.status == 429 else PageOutcome.ABORTED
                if outcome is PageOutcome.ABORTED:
                    logger.warning(
                        "Etherscan API error for %s page %d: %s", vault_address, page, e
                    )
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
                payload = {}
                logger.warning(
                    "Etherscan request failed for %s page %d: %s", vault_address, page, e
                )
                outcome = PageOutcome.ABORTED

            if outcome is PageOutcome.RETRY:
                if retries >= self.max_rate_limit_retries:
                    raise RateLimitedError(
                        f"Etherscan rate limit persisted for {vault_address} "
                        f"after {retries} retries",
                        partial=logs,
                        attempts=retries,
                        details={"vault": vault_address, "page": page},
                    )
                retries += 1
                logger.warning(
                    "Etherscan rate limited on %s page %d, retry %d/%d in %.2fs",
                    vault_address,
                    page,
                    retries,
                    self.max_rate_limit_retries,
                    backoff,
                )
                await asyncio.sleep(backoff)
                backoff *= self.backoff_multiplier
                continue

            if outcome is PageOutcome.ABORTED:
                if isinstance(payload, dict) and payload:
                    logger.warning(
                        "Etherscan returned an error for %s page %d: %s (%s)",
                        vault_address,
                        page,
                        payload.get("message"),
                        payload.get("result"),
                    )
                elif not isinstance(payload, dict):
                    logger.warning(
                        "Etherscan returned a non-object body for %s page %d: %r",
                        vault_address,
                        page,
                        payload,
                    )
                logger.warning(
                    "Stopping pagination for %s with %d logs collected",
                    vault_address,
                    len(logs),
                )
                break

            retries = 0
            backoff = self.rate_limit_backoff
            if payload.get("message") != NO_RECORDS_MESSAGE:
                logs.extend(payload.get("result") or [])

            if outcome is PageOutcome.DONE:
                break

            page += 1
            await asyncio.sleep(self.request_delay)

        logger.info("Fetched %d logs for vault %s", len(logs), vault_address)
        return logs
