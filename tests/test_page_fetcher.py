import httpx
import pytest

from place_scraper.adapters.page_fetcher import PageFetcher
from place_scraper.errors import FetchError, NetworkError
from place_scraper.models.place import ResolvedUrl, UrlKind

from tests.conftest import DETAIL_URL


RESOLVED = ResolvedUrl(url=DETAIL_URL, kind=UrlKind.DETAIL, place_id="1")


@pytest.mark.asyncio
async def test_fetch_returns_document_and_sends_browser_headers(transport, router):
    router.add("GET", DETAIL_URL, httpx.Response(200, text="<html>ok</html>"))

    document = await PageFetcher(transport=transport).fetch(RESOLVED)

    assert document.text == "<html>ok</html>"
    assert document.status_code == 200
    headers = router.requests[0].headers
    assert "Mobile" in headers["user-agent"]
    assert headers["accept-language"].startswith("ko-KR")
    assert headers["referer"] == "https://m.naver.com/"


@pytest.mark.asyncio
async def test_non_2xx_raises_fetch_error(transport, router):
    router.add("GET", DETAIL_URL, httpx.Response(403, text="blocked"))

    with pytest.raises(FetchError) as exc_info:
        await PageFetcher(transport=transport).fetch(RESOLVED)

    assert exc_info.value.status == 403
    assert exc_info.value.http_status == 500


@pytest.mark.asyncio
async def test_timeout_raises_network_error(transport, router):
    router.add("GET", DETAIL_URL, httpx.ReadTimeout("slow"))

    with pytest.raises(NetworkError):
        await PageFetcher(transport=transport).fetch(RESOLVED)
    assert len(router.requests) == 1
