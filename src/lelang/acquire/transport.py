"""HTTP transport for the acquisition engine.

This module provides the TransportClient class: single GET and POST
calls over httpx with bounded timeouts, an optional forward proxy,
explicit redirect handling and fully buffered raw (still encoded)
bodies for the BodyDecoder.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping
from urllib.parse import urlencode, urljoin, urlsplit

import httpx

from lelang.core.config import LelangSettings, get_settings
from lelang.core.exceptions import TooManyRedirects, TransportError, TransportTimeout
from lelang.core.logging import event, get_logger
from lelang.core.types import HttpResponse

logger = get_logger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"
SUPPORTED_SCHEMES = ("http", "https")


class TransportClient:
    """Perform single HTTP requests for the acquisition strategies.

    Each call opens its own ``httpx.AsyncClient`` so no cookie jar or
    connection outlives the call; session state travels only in the
    headers the caller passes.

    Example:
        >>> client = TransportClient()
        >>> response = await client.get("https://example.com", {"Accept": "*/*"})
        >>> response.status_code
        200
    """

    def __init__(
        self,
        config: LelangSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        get_timeout: float | None = None,
        post_timeout: float | None = None,
        max_redirects: int | None = None,
    ) -> None:
        """Initialize TransportClient.

        Args:
            config: Lelang settings
            transport: Optional httpx transport (e.g. MockTransport in tests);
                when given, it carries every request and proxies are not used
            get_timeout: GET timeout in seconds, defaults to settings
            post_timeout: POST timeout in seconds, defaults to settings
            max_redirects: Redirect hops a GET may follow, defaults to settings
        """
        self.config = config or get_settings()
        self.transport = transport
        self.get_timeout = get_timeout if get_timeout is not None else self.config.get_timeout
        self.post_timeout = post_timeout if post_timeout is not None else self.config.post_timeout
        self.max_redirects = (
            max_redirects if max_redirects is not None else self.config.max_redirects
        )

    @asynccontextmanager
    async def _client(self, timeout: float, proxy: str | None) -> AsyncIterator[httpx.AsyncClient]:
        kwargs: dict[str, Any] = {"timeout": timeout, "follow_redirects": False}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        elif proxy:
            kwargs["proxy"] = proxy
        async with httpx.AsyncClient(**kwargs) as client:
            yield client

    async def _send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        timeout: float,
        proxy: str | None,
        content: bytes | None = None,
    ) -> HttpResponse:
        """Issue one request and buffer the raw body."""
        scheme = urlsplit(url).scheme.lower()
        if scheme not in SUPPORTED_SCHEMES:
            raise TransportError(f"Unsupported URL scheme: {scheme or '(none)'}", url=url, method=method)

        try:
            async with self._client(timeout, proxy) as client:
                async with client.stream(method, url, headers=dict(headers), content=content) as response:
                    body = b"".join([chunk async for chunk in response.aiter_raw()])
                    result = HttpResponse(
                        status_code=response.status_code,
                        headers=response.headers,
                        body=body,
                        url=url,
                    )
        except httpx.TimeoutException as e:
            raise TransportTimeout(
                f"{method} request timeout after {timeout:g}s",
                url=url,
                method=method,
            ) from e
        except httpx.TransportError as e:
            raise TransportError(f"{method} request error: {e}", url=url, method=method) from e

        logger.debug(
            "http.response",
            extra=event(method=method, url=url, status=result.status_code, bytes=len(body)),
        )
        return result

    async def get(
        self,
        url: str,
        headers: Mapping[str, str],
        proxy: str | None = None,
    ) -> HttpResponse:
        """GET ``url``, following at most ``max_redirects`` 301/302 hops.

        Raises:
            TransportTimeout: The request exceeded its deadline
            TransportError: Connection failure or unsupported scheme
            TooManyRedirects: Redirect chain longer than allowed
        """
        current = url
        hops = 0
        while True:
            response = await self._send("GET", current, headers, self.get_timeout, proxy)
            if not response.is_redirect:
                return response

            location = response.location
            if not location:
                raise TooManyRedirects(
                    f"Redirect {response.status_code} without Location header",
                    url=current,
                    method="GET",
                )
            if hops >= self.max_redirects:
                raise TooManyRedirects(
                    f"Redirect limit of {self.max_redirects} exceeded",
                    url=current,
                    method="GET",
                )

            hops += 1
            current = urljoin(current, location)
            logger.debug("http.redirect", extra=event(url=current, hop=hops))

    async def post(
        self,
        url: str,
        headers: Mapping[str, str],
        form: Mapping[str, Any],
        proxy: str | None = None,
    ) -> HttpResponse:
        """POST ``form`` url-encoded to ``url``. Redirects are not followed.

        Raises:
            TransportTimeout: The request exceeded its deadline
            TransportError: Connection failure or unsupported scheme
        """
        body = urlencode(form).encode("utf-8")
        request_headers = {
            **headers,
            "Content-Type": FORM_CONTENT_TYPE,
            "Content-Length": str(len(body)),
            "X-Requested-With": "XMLHttpRequest",
        }
        return await self._send("POST", url, request_headers, self.post_timeout, proxy, content=body)
