"""Pytest configuration and fixtures for Lelang tests."""

from typing import AsyncIterator, Callable, Mapping
from urllib.parse import parse_qs

import httpx
import pytest

from lelang.core.config import LelangSettings
from lelang.core.types import AcquisitionRequest

BASE_URL = "https://spse.example.test/kemkes"
TOKEN = "abc123def456"
TOKEN_PAGE = f"""<!DOCTYPE html>
<html>
<head><title>Daftar Lelang</title></head>
<body>
<table id="tbllelang"></table>
<script>
    authenticityToken = '{TOKEN}';
</script>
</body>
</html>"""
CHALLENGE_PAGE = """<!DOCTYPE html>
<html><head><title>Just a moment...</title></head>
<body><noscript>Enable JavaScript and cookies to continue</noscript></body>
</html>"""
LISTING = {
    "draw": 1,
    "recordsTotal": 2,
    "recordsFiltered": 2,
    "data": [
        ["10001", "Pengadaan Alat Kesehatan", "Kemenkes", "", "Rp 1.000.000", "2024"],
        ["10002", "Jasa Konsultansi", "Kemenkes", "", "Rp 2.000.000", "2024"],
    ],
}

Responder = Callable[[httpx.Request], httpx.Response]


class RawStream(httpx.AsyncByteStream):
    """Serve a body exactly as given, without content decoding."""

    def __init__(self, body: bytes) -> None:
        self.body = body

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self.body


def raw_response(
    status_code: int,
    body: bytes = b"",
    headers: Mapping[str, str] | httpx.Headers | None = None,
) -> httpx.Response:
    """A streamed response whose body reaches the client still encoded.

    Responses built with ``text=`` or ``json=`` are read on construction,
    and a read response cannot be streamed raw a second time.
    """
    return httpx.Response(status_code, headers=headers, stream=RawStream(body))


def form_of(request: httpx.Request) -> dict[str, str]:
    """Decode a url-encoded request body into a flat dict."""
    parsed = parse_qs(request.content.decode("utf-8"), keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items()}


class FakeSite:
    """Route httpx requests to canned responders and record them."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, Responder]] = []
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, responder: Responder) -> "FakeSite":
        self.routes.append((method, path, responder))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for method, path, responder in self.routes:
            if request.method == method and request.url.path == path:
                return self._streamed(responder(request))
        return raw_response(404, b"<html><body>Not Found</body></html>")

    @staticmethod
    def _streamed(response: httpx.Response) -> httpx.Response:
        if isinstance(response.stream, RawStream):
            return response
        return raw_response(response.status_code, response.content, response.headers)

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        return form_of(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def sent(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def settings() -> LelangSettings:
    """Settings with no waiting and short retry budgets."""
    return LelangSettings(
        base_url=BASE_URL,
        retry_attempts=2,
        retry_base_delay=0.0,
        retry_jitter=0.0,
        pre_post_delay_min=0.0,
        pre_post_delay_max=0.0,
        proxy=None,
    )


@pytest.fixture
def fake_site() -> FakeSite:
    """An empty fake site; every route answers 404 until added."""
    return FakeSite()


@pytest.fixture
def request_2024() -> AcquisitionRequest:
    """First page of 2024 with the default page size."""
    return AcquisitionRequest(year=2024, page_number=1, page_size=10)


@pytest.fixture
def token() -> str:
    return TOKEN


@pytest.fixture
def token_page() -> str:
    return TOKEN_PAGE


@pytest.fixture
def challenge_page() -> str:
    return CHALLENGE_PAGE


@pytest.fixture
def listing() -> dict:
    return LISTING


@pytest.fixture
def raw_reply() -> Callable[..., httpx.Response]:
    """Build responses with pre-encoded bodies (see :func:`raw_response`)."""
    return raw_response
