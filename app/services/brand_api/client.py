import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from app.core.exceptions import FetchError

logger = logging.getLogger(__name__)


@dataclass
class UpstreamPage:
    """One decoded upstream response"""
    payload: Any
    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    next_url: Optional[str] = None


class UpstreamClient:
    """
    Thin async HTTP client shared by every brand adapter.

    Adapters own the URLs and auth headers; this class owns the transport:
    timeouts, status checking, JSON decoding and Link-header pagination.
    Every failure surfaces as FetchError so the sync orchestrator only has one
    thing to catch.
    """

    DEFAULT_HEADERS = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    async def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> UpstreamPage:
        return await self._make_request("GET", url, headers=headers, params=params)

    async def _make_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> UpstreamPage:
        request_headers = {**self.DEFAULT_HEADERS, **(headers or {})}
        logger.debug(f"Making {method} request to {url}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=request_headers,
                    params=params
                )
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling {url}: {str(e)}")
            raise FetchError(f"Request to {url} timed out: {str(e)}")
        except httpx.RequestError as e:
            logger.error(f"Network error calling {url}: {str(e)}")
            raise FetchError(f"Network error calling {url}: {str(e)}")

        if not 200 <= response.status_code < 300:
            logger.error(f"Upstream error {response.status_code} from {url}: {response.text[:500]}")
            raise FetchError(f"Upstream API error: {response.status_code} {response.reason_phrase}")

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(f"Upstream response from {url} is not valid JSON: {str(e)}")

        next_link = response.links.get("next") or {}
        return UpstreamPage(
            payload=payload,
            status_code=response.status_code,
            headers=httpx.Headers(response.headers),
            next_url=next_link.get("url"),
        )
