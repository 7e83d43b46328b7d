"""AdLens — Upstream Ads API Client.

Handles retry logic, rate limiting, and batched concurrent pagination
against the upstream campaigns / creatives / ads / insights collections.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from adlens.config import settings
from adlens.core.aio import gather_or_cancel
from adlens.core.logging import get_logger

logger = get_logger("upstream.client")

ProgressCallback = Callable[[int, int], None]


class UpstreamAPIError(Exception):
    """Raised when the upstream API fails for good (non-retryable or retries exhausted)."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


def _retry_after_seconds(resp: httpx.Response, default_ms: int) -> float:
    """Server-suggested wait from a 429 body, in seconds."""
    try:
        body = resp.json()
    except ValueError:
        body = {}
    retry_after = body.get("retryAfterMs") if isinstance(body, dict) else None
    if not isinstance(retry_after, (int, float)) or retry_after < 0:
        retry_after = default_ms
    return retry_after / 1000


async def with_retry(
    operation: Callable[[], Awaitable[httpx.Response]],
    max_retries: int = 5,
    retry_delay_ms: int = 1000,
    context: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    """Run one request with retries, return its parsed JSON body.

    429 waits the server's retryAfterMs, 5xx and transport errors wait the
    base delay, other error statuses fail immediately. Never makes more
    than max_retries attempts. `context` (collection, page) is attached to
    every retry log record.
    """
    delay = retry_delay_ms / 1000
    context = context or {}

    for attempt in range(1, max_retries + 1):
        last_attempt = attempt == max_retries
        try:
            resp = await operation()
        except httpx.RequestError as e:
            if last_attempt:
                raise UpstreamAPIError(
                    f"Connection failed after {max_retries} attempts: {e}"
                ) from e
            logger.warning(
                f"Request error: {e}. Retrying in {delay}s (attempt {attempt}/{max_retries})",
                extra={**context, "attempt": attempt},
            )
            await asyncio.sleep(delay)
            continue

        # Rate limited
        if resp.status_code == 429:
            if last_attempt:
                break
            wait = _retry_after_seconds(resp, retry_delay_ms)
            logger.warning(
                f"Rate limited (429). Retrying in {wait}s (attempt {attempt}/{max_retries})",
                extra={**context, "attempt": attempt, "status_code": 429},
            )
            await asyncio.sleep(wait)
            continue

        if resp.status_code >= 500:
            if last_attempt:
                raise UpstreamAPIError(
                    f"Server error {resp.status_code} after {max_retries} attempts",
                    resp.status_code,
                )
            logger.warning(
                f"Server error {resp.status_code}. Retrying in {delay}s",
                extra={**context, "attempt": attempt, "status_code": resp.status_code},
            )
            await asyncio.sleep(delay)
            continue

        if resp.is_error:
            raise UpstreamAPIError(
                f"HTTP {resp.status_code}: {resp.reason_phrase}", resp.status_code
            )

        return resp.json()

    raise UpstreamAPIError("Max retries exceeded", 429)


class UpstreamClient:
    """Async HTTP client for the upstream paginated ads API."""

    def __init__(
        self,
        base_url: str | None = None,
        max_retries: int | None = None,
        retry_delay_ms: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.upstream_base_url).rstrip("/")
        self.max_retries = max_retries or settings.fetch_max_retries
        self.retry_delay_ms = (
            settings.fetch_retry_delay_ms if retry_delay_ms is None else retry_delay_ms
        )
        self.timeout = timeout or settings.upstream_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def get_page(
        self,
        collection: str,
        page: int,
        params: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        """Fetch one page of a collection with retry + rate-limit handling."""
        client = await self._get_client()
        url = f"{self.base_url}/{collection}"
        query = {**(params or {}), "page": str(page)}

        return await with_retry(
            lambda: client.get(url, params=query),
            max_retries=self.max_retries,
            retry_delay_ms=self.retry_delay_ms,
            context={"collection": collection, "page": page},
        )

    # ── Pagination ──

    async def fetch_all_pages(
        self,
        collection: str,
        params: Dict[str, str] | None = None,
        max_concurrent: int = 20,
        on_progress: ProgressCallback | None = None,
    ) -> List[Dict[str, Any]]:
        """Fetch every page of a collection.

        Page 1 gives the page count; the rest are requested in concurrent
        batches of max_concurrent, one batch at a time. Progress is reported
        after page 1, every second batch, and the final batch.
        """
        first = await self.get_page(collection, 1, params)
        all_data: List[Dict[str, Any]] = list(first.get("data", []))
        pagination = first.get("pagination", {})
        total_pages = int(pagination.get("totalPages", 1) or 1)
        page_size = int(pagination.get("pageSize", len(all_data)) or len(all_data))
        expected_total = total_pages * page_size

        if on_progress:
            on_progress(len(all_data), expected_total)

        if total_pages <= 1:
            logger.info(
                f"Fetched {len(all_data)} {collection} (1 page)",
                extra={"collection": collection, "page": 1},
            )
            return all_data

        remaining = list(range(2, total_pages + 1))
        batch_size = max(1, max_concurrent)
        batch_count = 0

        for start in range(0, len(remaining), batch_size):
            batch = remaining[start : start + batch_size]
            responses = await gather_or_cancel(
                *(self.get_page(collection, page, params) for page in batch)
            )
            for resp in responses:
                all_data.extend(resp.get("data", []))

            batch_count += 1
            is_last = start + batch_size >= len(remaining)
            if on_progress and (batch_count % 2 == 0 or is_last):
                on_progress(len(all_data), expected_total)

        logger.info(
            f"Fetched {len(all_data)} {collection} ({total_pages} pages)",
            extra={"collection": collection, "page": total_pages},
        )
        return all_data
