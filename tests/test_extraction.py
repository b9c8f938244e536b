import httpx
import pytest

from place_scraper.layers.extraction import PlaceExtractionLayer
from place_scraper.models.place import ExtractionSource, FailureEnvelope, PlaceEnvelope

from tests.conftest import DETAIL_URL, APOLLO_HTML, state_html


LISTING_URL = "https://map.naver.com/p/entry/place/1"
SHORT_LINK = "https://naver.me/5abcDEF"


@pytest.fixture
def layer(transport):
    return PlaceExtractionLayer(transport=transport)


class TestExtract:
    @pytest.mark.asyncio
    async def test_embedded_graph_record(self, layer, router):
        router.add("GET", DETAIL_URL, httpx.Response(200, text=APOLLO_HTML))

        place = await layer.extract(LISTING_URL)

        assert place.title == "Cafe X"
        assert place.road_address == "123 Road"
        assert [r.content for r in place.reviews] == ["정말 맛있어요"]
        assert place.source == ExtractionSource.EMBEDDED_GRAPH

    @pytest.mark.asyncio
    async def test_short_link_end_to_end(self, layer, router):
        router.add("HEAD", SHORT_LINK, httpx.Response(
            302, headers={"Location": "https://map.naver.com/p/entry/place/1?c=15"}
        ))
        router.add("GET", DETAIL_URL, httpx.Response(200, text=APOLLO_HTML))

        place = await layer.extract(SHORT_LINK)

        assert place.site_id == "1"
        assert [request.method for request in router.requests] == ["HEAD", "GET"]

    @pytest.mark.asyncio
    async def test_reviews_are_deduplicated(self, layer, router):
        state = {
            "PlaceDetailBase:1": {"__typename": "PlaceDetailBase", "id": "1", "name": "Cafe"},
            "VisitorReview:a": {"__typename": "VisitorReview", "id": "a", "body": "first"},
            "VisitorReview:b": {"__typename": "VisitorReview", "id": "b", "body": "second"},
            "VisitorReview:a2": {"__typename": "VisitorReview", "id": "a", "body": "again"},
        }
        router.add("GET", DETAIL_URL, httpx.Response(200, text=state_html(state)))

        place = await layer.extract(LISTING_URL)

        assert [(r.id, r.content) for r in place.reviews] == [("a", "first"), ("b", "second")]

    @pytest.mark.asyncio
    async def test_falls_back_to_markup_without_graph(self, layer, router):
        html = "<html><head><title>Best Noodles - SiteName</title></head><body></body></html>"
        router.add("GET", DETAIL_URL, httpx.Response(200, text=html))

        place = await layer.extract(LISTING_URL)

        assert place.title == "Best Noodles"
        assert place.reviews == []
        assert place.source == ExtractionSource.MARKUP_FALLBACK

    @pytest.mark.asyncio
    async def test_falls_back_to_markup_when_graph_has_no_place(self, layer, router):
        state = {"ROOT_QUERY": {"__typename": "Query"}}
        router.add("GET", DETAIL_URL, httpx.Response(200, text=state_html(state)))

        place = await layer.extract(LISTING_URL)

        assert place.title == "Ignored"
        assert place.source == ExtractionSource.MARKUP_FALLBACK


class TestRun:
    @pytest.mark.asyncio
    async def test_success_envelope(self, layer, router):
        router.add("GET", DETAIL_URL, httpx.Response(200, text=APOLLO_HTML))

        result = await layer.run(LISTING_URL)

        assert isinstance(result, PlaceEnvelope)
        body = result.to_response()
        assert body["originalUrl"] == LISTING_URL
        assert body["placeData"]["title"] == "Cafe X"
        assert body["placeData"]["roadAddress"] == "123 Road"
        assert body["placeData"]["reviews"] == [{"id": "9", "content": "정말 맛있어요"}]
        assert "phone" not in body["placeData"]

    @pytest.mark.asyncio
    async def test_no_record_is_failure_envelope(self, layer, router):
        router.add("GET", DETAIL_URL, httpx.Response(200, text="<html><body><p>nothing</p></body></html>"))

        result = await layer.run(LISTING_URL)

        assert isinstance(result, FailureEnvelope)
        assert result.error_kind == "NoRecordError"
        assert result.http_status == 500
        assert set(result.to_response()) == {"errorKind", "message"}

    @pytest.mark.asyncio
    async def test_invalid_url_is_client_error(self, layer, router):
        result = await layer.run("https://example.com/place/1")

        assert result.error_kind == "InvalidUrlError"
        assert result.http_status == 400
        assert router.requests == []

    @pytest.mark.asyncio
    async def test_missing_redirect_is_client_error(self, layer, router):
        router.add("HEAD", SHORT_LINK, httpx.Response(200))

        result = await layer.run(SHORT_LINK)

        assert result.error_kind == "RedirectResolutionError"
        assert result.http_status == 400

    @pytest.mark.asyncio
    async def test_fetch_error_is_server_error(self, layer, router):
        router.add("GET", DETAIL_URL, httpx.Response(503))

        result = await layer.run(LISTING_URL)

        assert result.error_kind == "FetchError"
        assert result.http_status == 500

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_converted(self, layer, router, monkeypatch):
        router.add("GET", DETAIL_URL, httpx.Response(200, text=APOLLO_HTML))

        def explode(document):
            raise RuntimeError("internal detail")

        monkeypatch.setattr(layer.fallback, "extract", explode)
        monkeypatch.setattr(layer.locator, "locate", lambda document: None)

        result = await layer.run(LISTING_URL)

        assert result.error_kind == "NoRecordError"
        assert "internal detail" not in result.message
