"""End-to-end acquisition scenarios against a fake site."""

import httpx
import pytest
from fastapi.testclient import TestClient

from lelang.acquire.orchestrator import acquire
from lelang.api.app import create_app
from lelang.core.types import Failure, Success

DATA_PATH = "/kemkes/dt/lelang"
PAGE_PATHS = ("/kemkes/lelang", "/kemkes/", "/kemkes/beranda", "/kemkes/login", "/")


class TestHarvestedTokenScenario:
    """Page fetch yields token and cookie; tokened POST returns data."""

    @pytest.mark.asyncio
    async def test_token_and_cookie_flow(self, settings, fake_site, token_page, token, listing):
        def data_post(request: httpx.Request) -> httpx.Response:
            form = fake_site.form(request)
            if form.get("authenticityToken") == token and request.headers.get("cookie") == "sid=xyz":
                return httpx.Response(200, json=listing)
            return httpx.Response(419, json={"error": "CSRF token mismatch"})

        fake_site.add(
            "GET",
            "/kemkes/lelang",
            lambda r: httpx.Response(200, text=token_page, headers={"Set-Cookie": "sid=xyz"}),
        )
        fake_site.add("GET", DATA_PATH, lambda r: httpx.Response(405, text="<h1>Method Not Allowed</h1>"))
        fake_site.add("POST", DATA_PATH, data_post)

        outcome = await acquire(2024, 1, 10, config=settings, transport=fake_site.transport)

        assert isinstance(outcome, Success)
        assert outcome.strategy_name == "Token from Different Pages"
        assert outcome.payload == listing
        assert outcome.metadata == {"year": 2024, "pageNumber": 1, "pageSize": 10}

    @pytest.mark.asyncio
    async def test_earlier_strategy_wins(self, settings, fake_site, listing):
        """Test a deployment accepting untokened requests stops at strategy one."""
        fake_site.add("POST", DATA_PATH, lambda r: httpx.Response(200, json=listing))

        outcome = await acquire(2024, 1, 10, config=settings, transport=fake_site.transport)

        assert outcome.strategy_name == "Without Token"
        assert len(fake_site.requests) == 1


class TestBlockedScenario:
    """Every strategy meets a challenge page or a timeout."""

    @pytest.mark.asyncio
    async def test_all_strategies_blocked(self, settings, fake_site, challenge_page):
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        def challenge(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, text=challenge_page)

        fake_site.add("POST", DATA_PATH, challenge)
        fake_site.add("GET", DATA_PATH, timeout)
        for path in PAGE_PATHS:
            fake_site.add("GET", path, challenge)

        outcome = await acquire(2024, 2, 25, config=settings, transport=fake_site.transport)

        assert isinstance(outcome, Failure)
        assert outcome.metadata == {"year": 2024, "pageNumber": 2, "pageSize": 25}
        assert outcome.last_error == "Blocked by anti-bot protection"
        assert "Blocked by anti-bot protection" in outcome.to_dict()["error"]
        assert [a.kind for a in outcome.attempts] == ["challenge", "timeout", "challenge", "challenge"]
        # Timeouts are retried in place, challenges are not
        assert len(fake_site.sent("GET", DATA_PATH)) == settings.retry_attempts
        assert len(fake_site.sent("POST", DATA_PATH)) == 2


class TestRoutingScenario:
    """Invalid requests are rejected before the core runs."""

    def test_year_1999_rejected(self, settings):
        calls = []

        async def acquire_double(*args):
            calls.append(args)
            raise AssertionError("acquire must not be called")

        client = TestClient(create_app(acquire_fn=acquire_double, config=settings))

        response = client.get("/api/lelang", params={"tahun": "1999", "page": "1", "limit": "10"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert calls == []

    def test_end_to_end_through_api(self, settings, fake_site, listing):
        async def acquire_fn(year, page, page_size, proxy=None):
            return await acquire(year, page, page_size, proxy, config=settings, transport=fake_site.transport)

        fake_site.add("POST", DATA_PATH, lambda r: httpx.Response(200, json=listing))
        client = TestClient(create_app(acquire_fn=acquire_fn, config=settings))

        response = client.get("/api/lelang", params={"tahun": "2024", "page": "2", "limit": "5"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == listing
        assert body["metadata"] == {"year": 2024, "pageNumber": 2, "pageSize": 5}
        assert fake_site.form(fake_site.requests[0])["start"] == "5"
