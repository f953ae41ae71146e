"""
Unit tests for UpstreamClient.
"""

import asyncio
import json

import httpx
import pytest
import respx

from service_proxy.app.adapters import UpstreamClient
from service_proxy.app.identity import IdentityRotator
from service_proxy.app.session import CookieJar
from shared.errors import NetworkFailure

BASE_URL = "https://upstream.test"
PATH = "/api/sportsbook/virtual/v1/seasons/list/actual"


class TestUpstreamClient:
    """Test cases for UpstreamClient."""

    @pytest.fixture
    def cookie_jar(self):
        return CookieJar()

    @pytest.fixture
    def client(self, cookie_jar):
        return UpstreamClient(
            BASE_URL,
            IdentityRotator(user_agents=["test-agent/1.0"], viewports=["1366x768"]),
            cookie_jar,
            timeout=15.0,
            max_body_bytes=1024,
        )

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_sends_identity_headers(self, client):
        route = respx.get(f"{BASE_URL}{PATH}").mock(
            return_value=httpx.Response(200, json={"odds": 1.5})
        )

        response = await client.fetch(PATH, {"page": "upcoming"})

        assert response.status_code == 200
        assert json.loads(response.body) == {"odds": 1.5}
        sent = route.calls.last.request
        assert sent.url.params["page"] == "upcoming"
        assert sent.headers["User-Agent"] == "test-agent/1.0"
        assert sent.headers["Viewport-Width"] == "1366x768"
        assert sent.headers["X-Pawa-Brand"] == "betpawa-zambia"
        assert sent.headers["Origin"] == BASE_URL
        assert sent.headers["Referer"] == f"{BASE_URL}/"
        assert "application/json" in sent.headers["Accept"]
        assert "Cookie" not in sent.headers

    @pytest.mark.asyncio
    @respx.mock
    async def test_cookies_carried_between_calls(self, client, cookie_jar):
        route = respx.get(f"{BASE_URL}{PATH}").mock(side_effect=[
            httpx.Response(200, json={}, headers=[("set-cookie", "sid=abc123; Path=/")]),
            httpx.Response(200, json={}),
        ])

        await client.fetch(PATH)
        await client.fetch(PATH)

        assert cookie_jar.snapshot() == {"sid": "abc123"}
        assert "Cookie" not in route.calls[0].request.headers
        assert route.calls[1].request.headers["Cookie"] == "sid=abc123"

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_status_returned_not_raised(self, client):
        respx.get(f"{BASE_URL}{PATH}").mock(return_value=httpx.Response(502, text="bad gateway"))

        response = await client.fetch(PATH)

        assert response.status_code == 502
        assert response.text == "bad gateway"

    @pytest.mark.asyncio
    @respx.mock
    async def test_connect_error_becomes_network_failure(self, client):
        respx.get(f"{BASE_URL}{PATH}").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(NetworkFailure) as exc_info:
            await client.fetch(PATH)

        assert exc_info.value.timed_out is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_becomes_network_failure(self, client):
        respx.get(f"{BASE_URL}{PATH}").mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(NetworkFailure) as exc_info:
            await client.fetch(PATH)

        assert exc_info.value.timed_out is True

    @pytest.mark.asyncio
    async def test_hard_timeout_bounds_slow_upstream(self, cookie_jar):
        async def stall(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        client = UpstreamClient(
            BASE_URL,
            IdentityRotator(),
            cookie_jar,
            timeout=0.05,
            transport=httpx.MockTransport(stall),
        )

        with pytest.raises(NetworkFailure) as exc_info:
            await client.fetch(PATH)

        assert exc_info.value.timed_out is True

    @pytest.mark.asyncio
    @respx.mock
    async def test_oversized_body_rejected(self, client):
        respx.get(f"{BASE_URL}{PATH}").mock(return_value=httpx.Response(200, content=b"x" * 4096))

        with pytest.raises(NetworkFailure):
            await client.fetch(PATH)

    @pytest.mark.asyncio
    @respx.mock
    async def test_content_type_exposed(self, client):
        respx.get(f"{BASE_URL}{PATH}").mock(
            return_value=httpx.Response(200, html="<html></html>")
        )

        response = await client.fetch(PATH)

        assert response.content_type.startswith("text/html")
