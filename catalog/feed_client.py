"""HTTP client for the product feed, as used by consuming views.

A view issues one fetch per parameter change. :class:`ProductFeed` owns the
cancellation token of the in-flight fetch: starting a new fetch cancels the
previous one, and a cancelled fetch resolves to ``None`` ("no update") rather
than to an error.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .config import settings
from .params import QueryParams

logger = logging.getLogger(__name__)

UNREACHABLE = "Unable to reach the product feed."
UNEXPECTED_RESPONSE = "Unexpected response from product feed."


class CancelToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass
class FeedResponse:
    """Outcome of one fetch: either ``products`` or ``error`` is meaningful."""

    products: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    total_count: Optional[int] = None
    page: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_feed_payload(payload: Any, requested_page: int) -> FeedResponse:
    if not isinstance(payload, dict) or not isinstance(payload.get("products"), list):
        error = payload.get("error") if isinstance(payload, dict) else None
        return FeedResponse(error=error or UNEXPECTED_RESPONSE)
    total = payload.get("totalCount")
    page = payload.get("page")
    return FeedResponse(
        products=payload["products"],
        error=payload.get("error"),
        total_count=total if isinstance(total, int) else None,
        page=page if isinstance(page, int) else requested_page,
    )


class ProductFeedClient:
    def __init__(self, endpoint: str = settings.products_endpoint, client: Optional[httpx.AsyncClient] = None) -> None:
        self.endpoint = endpoint
        self._client = client or httpx.AsyncClient(timeout=30.0)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, params: QueryParams) -> FeedResponse:
        try:
            response = await self._client.get(
                self.endpoint,
                params=params.to_query(),
                headers={"Cache-Control": "no-store"},
            )
        except httpx.HTTPError as exc:
            logger.warning("Product feed request failed: %s", exc)
            return FeedResponse(error=str(exc) or UNREACHABLE)

        if response.is_error:
            detail = response.text.strip()
            return FeedResponse(
                error=f"Product feed unavailable ({response.status_code}). {detail or 'Try again shortly.'}"
            )
        try:
            payload = response.json()
        except ValueError:
            return FeedResponse(error=UNEXPECTED_RESPONSE)
        return parse_feed_payload(payload, params.page)

    async def fetch(self, params: QueryParams, token: Optional[CancelToken] = None) -> Optional[FeedResponse]:
        """Fetch one page; returns ``None`` when ``token`` is cancelled first."""
        if token is None:
            return await self._request(params)
        if token.cancelled:
            return None

        request = asyncio.ensure_future(self._request(params))
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({request, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not request.done():
                request.cancel()
        if token.cancelled:
            logger.debug("Discarding cancelled fetch for page %s", params.page)
            return None
        return request.result()


class ProductFeed:
    """Keeps at most one fetch in flight and remembers the latest settled state."""

    def __init__(self, client: ProductFeedClient) -> None:
        self.client = client
        self.state: Optional[FeedResponse] = None
        self._token: Optional[CancelToken] = None

    def cancel(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None

    async def load(self, params: QueryParams) -> Optional[FeedResponse]:
        self.cancel()
        token = CancelToken()
        self._token = token
        result = await self.client.fetch(params, token)
        if result is None:
            return None
        if self._token is token:
            self._token = None
        self.state = result
        return result
