# src/jobfeed/clients/listing.py

"""
Async client for the job listing gateway.

- Keeps *all* HTTP details here (URL, timeouts, retry policy) so the cache only
  sees records or one of our errors.
- Every failure leaves this module as FetchError or NotFoundError, with the
  httpx/json exception chained for debugging.
"""

from __future__ import annotations
from typing import Dict, List, Optional
import logging

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from jobfeed.errors import FetchError, NotFoundError
from jobfeed.pipeline.normalize import extract_records, normalize_site

logger = logging.getLogger(__name__)


def _default_headers() -> Dict[str, str]:
    return {"User-Agent": "job-feed/0.1", "Accept": "application/json"}


class ListingClient:
    """
    Talks to the listing endpoint: GET <base_url> for the whole collection,
    GET <base_url>?id=<job_id> for one job. Research-opportunity sites live
    behind a second gateway, `sites_url`.

    `retries` is the number of attempts per request. The default (1) means no
    retry; only transport errors (connect/read failures) are ever retried,
    never HTTP status errors.
    """

    def __init__(
        self,
        base_url: str,
        *,
        sites_url: Optional[str] = None,
        timeout: float = 20,
        retries: int = 1,
        client: Optional[httpx.AsyncClient] = None,
        wait=None,
    ):
        if retries < 1:
            raise ValueError("retries must be >= 1")
        self.base_url = base_url
        self.sites_url = sites_url
        self.retries = retries
        self._wait = wait if wait is not None else wait_exponential(min=1, max=16)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=_default_headers())

    async def __aenter__(self) -> "ListingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        # only close what we opened; an injected client belongs to the caller
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Dict:
        try:
            async for attempt in AsyncRetrying(
                wait=self._wait,
                stop=stop_after_attempt(self.retries),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    resp = await self._client.get(url, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(f"Listing gateway returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Listing gateway request failed: {e!r}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise FetchError("Listing gateway returned a body that is not JSON") from e

    async def _get_records(self, url: str, params: Optional[Dict[str, str]] = None) -> List[dict]:
        payload = await self._get_json(url, params)
        try:
            return extract_records(payload)
        except ValueError as e:
            raise FetchError(str(e)) from e

    async def fetch_listing(self) -> List[dict]:
        """Fetch every job record. May be empty."""
        records = await self._get_records(self.base_url)
        logger.debug("Fetched %d job records", len(records))
        return records

    async def fetch_detail(self, job_id: str) -> dict:
        """Fetch one job by id; the first element of the body array is the match."""
        records = await self._get_records(self.base_url, params={"id": str(job_id)})
        if not records:
            raise NotFoundError(str(job_id))
        return records[0]

    async def fetch_sites(self) -> List[dict]:
        """Fetch every research-opportunity site, renamed to ResearchSite keys."""
        if not self.sites_url:
            raise ValueError("ListingClient was built without a sites_url")
        records = await self._get_records(self.sites_url)
        logger.debug("Fetched %d research sites", len(records))
        return [normalize_site(r) for r in records]
