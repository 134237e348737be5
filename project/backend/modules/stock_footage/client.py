"""
Stock video search via the Pixabay videos API.

Returns one direct-download URL per search term: the first hit, preferring the
medium rendition.
"""
from typing import List, Optional

import httpx

from shared.config import settings
from shared.errors import StockFootageError
from shared.logging import get_logger
from shared.models.collaborators import StockVideoHit

logger = get_logger("stock_footage.client")

RENDITION_PREFERENCE = ["medium", "small", "large", "tiny"]


class StockFootageClient:
    """Thin async client for the stock video provider."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        per_page: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 20.0
    ):
        self.api_key = api_key if api_key is not None else settings.pixabay_api_key
        self.base_url = base_url or settings.pixabay_base_url
        self.per_page = per_page or settings.stock_results_per_term
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def search(self, client: httpx.AsyncClient, term: str) -> List[StockVideoHit]:
        """Search one term. Raises httpx errors to the caller."""
        response = await client.get(
            f"{self.base_url}/videos/",
            params={
                "key": self.api_key,
                "q": term,
                "safesearch": "true",
                "per_page": self.per_page,
            }
        )
        response.raise_for_status()
        hits = response.json().get("hits") or []
        return [StockVideoHit.model_validate(hit) for hit in hits]

    async def find_video_urls(self, terms: List[str]) -> List[str]:
        """
        Pick one video URL per term.

        Terms whose search fails or returns nothing are skipped; duplicates
        are dropped.

        Raises:
            StockFootageError: Not configured, or no term produced a URL
        """
        if not self.configured:
            raise StockFootageError("Stock footage service not configured")

        urls: List[str] = []
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            for term in terms:
                try:
                    hits = await self.search(client, term)
                except (httpx.HTTPError, ValueError) as e:
                    logger.warning(f"Failed to fetch videos for: {term}", extra={"term": term, "error": str(e)})
                    continue

                if not hits:
                    continue
                url = hits[0].best_url(RENDITION_PREFERENCE)
                if url and url not in urls:
                    urls.append(url)

        if not urls:
            raise StockFootageError("No videos found.", status_code=404)

        logger.info(f"Found {len(urls)} videos for {len(terms)} terms", extra={"count": len(urls)})
        return urls
