import json

import httpx
import pytest


DETAIL_URL = "https://m.place.naver.com/place/1/review/visitor?entry=ple"

APOLLO_HTML = (
    "<html><head><script>"
    'window.__APOLLO_STATE__ = {"PlaceDetailBase:1":{"__typename":"PlaceDetailBase","id":"1",'
    '"name":"Cafe X","roadAddress":"123 Road"},"VisitorReview:9":{"__typename":"VisitorReview",'
    '"id":"9","body":"정말 맛있어요"}};'
    "</script></head><body></body></html>"
)


def state_html(state, variable="__APOLLO_STATE__", extra=""):
    """Detail page markup embedding ``state`` the way the site does."""
    return (
        "<!DOCTYPE html><html><head><title>Ignored - 네이버 지도</title></head><body>"
        f"<script>window.{variable} = {json.dumps(state, ensure_ascii=False)};{extra}</script>"
        "</body></html>"
    )


class Router:
    """Records requests and answers them from a url -> response table."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, url, response):
        self.routes[(method, url)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, str(request.url)))
        if isinstance(response, Exception):
            raise response
        if response is None:
            return httpx.Response(404, text="not found")
        return response


@pytest.fixture
def router():
    return Router()


@pytest.fixture
def transport(router):
    return httpx.MockTransport(router)
