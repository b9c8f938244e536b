"""
Page Fetcher Adapter for the Place Scraper service.
Downloads the detail page with mobile-browser headers.
"""
from typing import Optional

import httpx

from place_scraper.config import config
from place_scraper.errors import FetchError, NetworkError
from place_scraper.models.place import RawDocument, ResolvedUrl
from place_scraper.utils.logger import LayerLogger


REFERER = "https://m.naver.com/"


class PageFetcher:
    """
    Fetches detail pages.

    One GET per call, no retries. Retry policy belongs to the caller.
    """

    def __init__(
        self,
        timeout: float = config.REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.transport = transport
        self.logger = LayerLogger("page_fetcher")

    async def fetch(self, resolved: ResolvedUrl) -> RawDocument:
        """
        Fetch the page behind ``resolved``.

        Raises:
            FetchError: the server answered with a non-2xx status.
            NetworkError: the request failed in transport or timed out.
        """
        url = resolved.url
        self.logger.log_action("fetch_html", "started", url=url)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url, headers=self._get_headers())
        except httpx.TransportError as e:
            self.logger.log_error(
                f"Failed to fetch URL: {str(e)}",
                error_type="network_error",
                url=url
            )
            raise NetworkError(f"Failed to fetch detail page: {e}", url=url) from e

        if not response.is_success:
            self.logger.log_error(
                f"Detail page answered HTTP {response.status_code}",
                error_type="http_error",
                url=url,
                status_code=response.status_code,
            )
            raise FetchError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status=response.status_code,
                url=url,
            )

        html = response.text
        self.logger.log_action(
            "fetch_html",
            "completed",
            url=url,
            status_code=response.status_code,
            content_length=len(html)
        )
        return RawDocument(url=str(response.url), status_code=response.status_code, text=html)

    def _get_headers(self) -> dict:
        """Get request headers mimicking a mobile browser."""
        return {
            "User-Agent": config.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": config.ACCEPT_LANGUAGE,
            "Referer": REFERER,
        }
