"""
Resilient Overpass fetcher.

The retry loop is an explicit state machine:

    ATTEMPTING(n) --success--> SUCCEEDED
    ATTEMPTING(n) --failure--> ATTEMPTING(n + 1)   if n + 1 < max_attempts
    ATTEMPTING(n) --failure--> EXHAUSTED            otherwise

Endpoint choice and backoff delay are pure functions of the attempt index.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from core.exceptions import FetchExhaustedError, TransientFetchError

from .schemas import FetchConfig


logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class FetchState(str, Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class FetchProgress:
    state: FetchState = FetchState.ATTEMPTING
    attempt: int = 0
    elements: Optional[List[Dict[str, Any]]] = None
    last_error: Optional[Exception] = None


def select_endpoint(endpoints: Sequence[str], attempt: int) -> str:
    """Round-robin failover: attempt 0 -> A, 1 -> B, 2 -> A, ..."""
    if not endpoints:
        raise ValueError("at least one Overpass endpoint is required")
    return endpoints[attempt % len(endpoints)]


def backoff_delay(attempt: int, base_s: float = 1.0) -> float:
    """Seconds to wait after failed attempt `attempt` (1s, 2s, 4s, ... for base 1)."""
    return base_s * (2 ** attempt)


def advance(
    progress: FetchProgress,
    max_attempts: int,
    elements: Optional[List[Dict[str, Any]]] = None,
    error: Optional[Exception] = None,
) -> FetchProgress:
    """Transition on the outcome of the current attempt."""
    if progress.state is not FetchState.ATTEMPTING:
        return progress
    if error is None:
        return FetchProgress(FetchState.SUCCEEDED, progress.attempt, elements or [], None)
    next_attempt = progress.attempt + 1
    if next_attempt >= max_attempts:
        return FetchProgress(FetchState.EXHAUSTED, progress.attempt, None, error)
    return FetchProgress(FetchState.ATTEMPTING, next_attempt, None, error)


class ResilientFetcher:
    """Runs one Overpass query with per-attempt timeout, backoff and endpoint failover."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: FetchConfig,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.client = client
        self.config = config
        self._sleep = sleep

    async def fetch(self, query: str, kind: str = "query") -> List[Dict[str, Any]]:
        """
        Return the `elements` array of the query result.

        Raises:
            FetchExhaustedError: every attempt failed; carries the last error message.
        """
        progress = FetchProgress()
        while True:
            endpoint = select_endpoint(self.config.endpoints, progress.attempt)
            logger.info(
                "[%s] attempt %d/%d: querying %s",
                kind, progress.attempt + 1, self.config.max_attempts, endpoint,
            )
            try:
                elements = await self._attempt(endpoint, query)
                progress = advance(progress, self.config.max_attempts, elements=elements)
            except TransientFetchError as exc:
                logger.warning(
                    "[%s] attempt %d/%d failed on %s: %s",
                    kind, progress.attempt + 1, self.config.max_attempts, endpoint, exc,
                )
                progress = advance(progress, self.config.max_attempts, error=exc)

            if progress.state is FetchState.SUCCEEDED:
                logger.info("[%s] retrieved %d elements from %s", kind, len(progress.elements), endpoint)
                return progress.elements
            if progress.state is FetchState.EXHAUSTED:
                logger.error(
                    "[%s] all %d attempts failed, last error: %s",
                    kind, self.config.max_attempts, progress.last_error,
                )
                raise FetchExhaustedError(
                    str(progress.last_error) or "All retry attempts failed",
                    query_kind=kind,
                    attempts=self.config.max_attempts,
                )

            delay = backoff_delay(progress.attempt - 1, self.config.backoff_base_s)
            logger.info("[%s] waiting %.1fs before retry", kind, delay)
            await self._sleep(delay)

    async def _attempt(self, endpoint: str, query: str) -> List[Dict[str, Any]]:
        headers = {
            "User-Agent": self.config.user_agent,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        timeout = self.config.attempt_timeout_s
        try:
            # wait_for cancels the in-flight request when the deadline passes
            response = await asyncio.wait_for(
                self.client.post(endpoint, data={"data": query}, headers=headers),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise TransientFetchError(f"Overpass request timed out after {timeout:g}s", endpoint) from exc
        except httpx.HTTPError as exc:
            raise TransientFetchError(f"Overpass request failed ({endpoint}): {exc}", endpoint) from exc

        if response.status_code != 200:
            raise TransientFetchError(
                f"Overpass API error: {response.status_code}",
                endpoint,
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            preview = (response.text or "").strip().replace("\n", " ")[:200]
            raise TransientFetchError(f"Overpass returned non-JSON response: {preview}", endpoint) from exc
        if not isinstance(payload, dict):
            raise TransientFetchError("Overpass response is not a JSON object", endpoint)

        elements = payload.get("elements") or []
        if not isinstance(elements, list):
            raise TransientFetchError("Overpass 'elements' is not an array", endpoint)
        return elements
