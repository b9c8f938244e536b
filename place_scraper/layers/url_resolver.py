"""
URL Resolution Layer for the Place Scraper service.
Turns short links, map listing URLs and detail URLs into one fetchable
mobile detail-page URL.
"""
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx

from place_scraper.config import config
from place_scraper.errors import InvalidUrlError, NetworkError, RedirectResolutionError
from place_scraper.models.place import ResolvedUrl, UrlKind
from place_scraper.utils.logger import LayerLogger


SHORT_LINK_HOSTS = frozenset({"naver.me"})
LISTING_HOSTS = frozenset({"map.naver.com", "m.map.naver.com"})
DETAIL_HOSTS = frozenset({"m.place.naver.com", "pcmap.place.naver.com"})

DETAIL_URL_TEMPLATE = "https://m.place.naver.com/place/{place_id}/review/visitor?entry=ple"

_PLACE_ID_PATTERNS = (
    re.compile(r"place/(\d+)"),
    re.compile(r"restaurant/(\d+)"),
)


def classify_url(url: str) -> UrlKind:
    """
    Classify a URL into its family.

    Raises:
        InvalidUrlError: the URL is not http(s) or its host is outside the
            supported domain family.
    """
    try:
        parsed = urlparse(url.strip())
    except ValueError as e:
        raise InvalidUrlError(f"Unparseable URL: {e}", url=url) from e

    if parsed.scheme not in ("http", "https"):
        raise InvalidUrlError("URL must use http or https", url=url)

    host = (parsed.hostname or "").lower()
    if host in DETAIL_HOSTS:
        return UrlKind.DETAIL
    if host in LISTING_HOSTS:
        return UrlKind.LISTING
    if host in SHORT_LINK_HOSTS:
        return UrlKind.SHORT_LINK
    raise InvalidUrlError(f"Unsupported host: {host or '<none>'}", url=url)


def extract_place_id(url: str) -> Optional[str]:
    """Numeric place identifier from a ``place/<id>`` or ``restaurant/<id>`` segment."""
    for pattern in _PLACE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def build_detail_url(place_id: str) -> str:
    """Mobile detail-page URL for a place identifier."""
    return DETAIL_URL_TEMPLATE.format(place_id=place_id)


def _is_detail_url(url: str) -> bool:
    return (urlparse(url).hostname or "").lower() in DETAIL_HOSTS


class UrlResolver:
    """
    Resolves an input URL to a detail-page URL.

    Short links are resolved with a single HEAD request whose redirect is
    read, not followed. Only one hop is taken.
    """

    def __init__(
        self,
        timeout: float = config.REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.transport = transport
        self.logger = LayerLogger("url_resolver")

    async def resolve(self, url: str) -> ResolvedUrl:
        """
        Resolve ``url`` to a fetchable detail URL.

        Raises:
            InvalidUrlError: unsupported URL, or listing URL without an id.
            RedirectResolutionError: short link without a usable Location.
            NetworkError: the HEAD request failed in transport.
        """
        kind = classify_url(url)
        self.logger.log_action("resolve_url", "started", url=url, kind=kind.value)

        if kind == UrlKind.DETAIL:
            self.logger.log_decision(
                decision="use_as_is",
                reason="URL is already a detail-page URL",
                url=url,
            )
            return ResolvedUrl(url=url, kind=kind, place_id=extract_place_id(url))

        if kind == UrlKind.LISTING:
            place_id = extract_place_id(url)
            if not place_id:
                raise InvalidUrlError("Listing URL carries no place id", url=url)
            detail_url = build_detail_url(place_id)
            self.logger.log_decision(
                decision="build_detail_url",
                reason="Listing URL mapped through place id",
                url=url,
                place_id=place_id,
                detail_url=detail_url,
            )
            return ResolvedUrl(url=detail_url, kind=kind, place_id=place_id)

        return await self._resolve_short_link(url)

    async def _resolve_short_link(self, url: str) -> ResolvedUrl:
        location = await self._read_location(url)
        if not location:
            raise RedirectResolutionError("Short link returned no redirect location", url=url)

        location = urljoin(url, location)

        if _is_detail_url(location):
            self.logger.log_decision(
                decision="use_redirect_target",
                reason="Redirect points at a detail page",
                url=url,
                location=location,
            )
            return ResolvedUrl(
                url=location,
                kind=UrlKind.SHORT_LINK,
                place_id=extract_place_id(location),
            )

        place_id = extract_place_id(location)
        if not place_id:
            raise RedirectResolutionError(
                f"Redirect target carries no place id: {location}", url=url
            )

        detail_url = build_detail_url(place_id)
        self.logger.log_decision(
            decision="build_detail_url",
            reason="Redirect target mapped through place id",
            url=url,
            location=location,
            place_id=place_id,
            detail_url=detail_url,
        )
        return ResolvedUrl(url=detail_url, kind=UrlKind.SHORT_LINK, place_id=place_id)

    async def _read_location(self, url: str) -> Optional[str]:
        """HEAD the short link without following redirects and return Location."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=False,
                transport=self.transport,
            ) as client:
                response = await client.head(url, headers={"User-Agent": config.USER_AGENT})
        except httpx.TransportError as e:
            self.logger.log_error(
                f"Short link request failed: {str(e)}",
                error_type="network_error",
                url=url,
            )
            raise NetworkError(f"Short link request failed: {e}", url=url) from e

        location = response.headers.get("location")
        self.logger.log_action(
            "resolve_short_link",
            "completed",
            url=url,
            status_code=response.status_code,
            location=location,
        )
        return location
