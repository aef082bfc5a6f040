"""Acquisition strategies.

Each strategy is a complete, independent recipe for obtaining one page
of listings. The orchestrator tries them in this order:

1. WithoutTokenStrategy - POST the form without ``authenticityToken``
2. ParameterizedGetStrategy - the same query as GET parameters
3. CommonTokensStrategy - POST with a list of placeholder tokens
4. HarvestedTokenStrategy - harvest a real token from a site page, then POST

Every network call goes through the RetryExecutor; every decoded body
is checked for an anti-bot challenge before it is parsed.
"""

import asyncio
import json
import random
from typing import Any

from lelang.acquire import site
from lelang.acquire.decoding import BodyDecoder
from lelang.acquire.retry import RetryExecutor, Sleep
from lelang.acquire.transport import TransportClient
from lelang.core.config import LelangSettings, get_settings
from lelang.core.exceptions import (
    ChallengeDetected,
    LelangError,
    ParseError,
    StrategyError,
    TokenNotFound,
)
from lelang.core.logging import event, get_logger
from lelang.core.types import AcquisitionRequest, HttpResponse, Session
from lelang.detect.challenge import ChallengeDetector
from lelang.detect.tokens import HtmlTokenExtractor

logger = get_logger(__name__)

COMMON_TOKENS: tuple[str, ...] = (
    "",
    "null",
    "undefined",
    "1",
    "test",
    "token",
    "csrf",
    "anonymous",
)


def is_valid_payload(payload: Any) -> bool:
    """Check for structured data with a ``data`` key and no error marker."""
    return isinstance(payload, dict) and "data" in payload and not payload.get("error")


class AcquisitionStrategy:
    """Base class for acquisition strategies.

    Subclasses set ``name`` and implement :meth:`execute`, using the
    request helpers here so retry, decoding and challenge detection
    apply uniformly.
    """

    name = "strategy"

    def __init__(
        self,
        transport: TransportClient | None = None,
        retry: RetryExecutor | None = None,
        decoder: BodyDecoder | None = None,
        detector: ChallengeDetector | None = None,
        extractor: HtmlTokenExtractor | None = None,
        config: LelangSettings | None = None,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the strategy.

        Args:
            transport: HTTP transport
            retry: Retry executor wrapping each network call
            decoder: Body decoder
            detector: Challenge detector
            extractor: Token extractor
            config: Lelang settings
            sleep: Awaitable sleep used for the pre-POST pause
            rng: Random source for the pre-POST pause
        """
        self.config = config or get_settings()
        self.transport = transport or TransportClient(config=self.config)
        self.retry = retry or RetryExecutor(config=self.config)
        self.decoder = decoder or BodyDecoder()
        self.detector = detector or ChallengeDetector()
        self.extractor = extractor or HtmlTokenExtractor(min_length=self.config.token_min_length)
        self.sleep = sleep or asyncio.sleep
        self.rng = rng or random.Random()

    @property
    def base_url(self) -> str:
        """Tenant root URL without a trailing slash."""
        return self.config.base_url.rstrip("/")

    async def execute(self, request: AcquisitionRequest) -> Any:
        """Acquire the page described by ``request``.

        Returns:
            Parsed payload

        Raises:
            LelangError: Any typed acquisition failure
        """
        raise NotImplementedError

    def headers(self, cookie: str | None = None) -> dict[str, str]:
        """Browser-like request headers, with ``Cookie`` when a session cookie is given."""
        headers = site.default_headers(self.config.user_agent)
        if cookie:
            headers["Cookie"] = cookie
        return headers

    def _proxy(self, request: AcquisitionRequest) -> str | None:
        return request.proxy or self.config.proxy

    def _read(self, response: HttpResponse) -> str:
        """Decode a body and reject challenge pages."""
        text = self.decoder.decode(response.body, response.content_encoding)
        marker = self.detector.detect(text)
        if marker:
            raise ChallengeDetected(url=response.url, marker=marker)
        return text

    async def get(self, url: str, request: AcquisitionRequest, cookie: str | None = None) -> tuple[HttpResponse, str]:
        headers = self.headers(cookie)
        proxy = self._proxy(request)
        response = await self.retry.run(lambda: self.transport.get(url, headers, proxy))
        return response, self._read(response)

    async def post(
        self,
        url: str,
        request: AcquisitionRequest,
        form: dict[str, Any],
        cookie: str | None = None,
    ) -> tuple[HttpResponse, str]:
        headers = self.headers(cookie)
        proxy = self._proxy(request)
        response = await self.retry.run(lambda: self.transport.post(url, headers, form, proxy))
        return response, self._read(response)

    def parse(self, response: HttpResponse, text: str, allow_raw: bool = False) -> Any:
        """Parse a JSON body.

        With ``allow_raw``, a successful non-JSON body that mentions
        ``data`` is accepted as ``{"data": <text>, "raw": True}``.

        Raises:
            ParseError: The body is not JSON and no raw fallback applies
        """
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            if allow_raw and response.is_success and "data" in text:
                return {"data": text, "raw": True}
            raise ParseError(
                f"JSON parse failed: {e.msg}",
                url=response.url,
                status_code=response.status_code,
                snippet=text[:500],
            ) from e

    async def post_listing(
        self,
        request: AcquisitionRequest,
        token: str | None = None,
        cookie: str | None = None,
    ) -> Any:
        """POST the DataTables form for ``request`` and parse the answer."""
        url = site.data_url(self.base_url, request.year)
        response, text = await self.post(url, request, site.build_payload(request, token), cookie)
        return self.parse(response, text, allow_raw=True)


class WithoutTokenStrategy(AcquisitionStrategy):
    """POST the standard form with the token field omitted."""

    name = "Without Token"

    async def execute(self, request: AcquisitionRequest) -> Any:
        return await self.post_listing(request)


class ParameterizedGetStrategy(AcquisitionStrategy):
    """Ask for the same page through GET query parameters."""

    name = "Alternative GET Method"

    async def execute(self, request: AcquisitionRequest) -> Any:
        response, text = await self.get(site.listing_get_url(self.base_url, request), request)
        return self.parse(response, text)


class CommonTokensStrategy(AcquisitionStrategy):
    """POST with placeholder tokens until one is accepted.

    A challenge page aborts the strategy: every later token would hit
    the same interstitial.
    """

    name = "Common Tokens"

    def __init__(self, *args: Any, tokens: tuple[str, ...] = COMMON_TOKENS, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.tokens = tokens

    async def execute(self, request: AcquisitionRequest) -> Any:
        for token in self.tokens:
            try:
                result = await self.post_listing(request, token=token)
            except ChallengeDetected:
                raise
            except LelangError as e:
                logger.info(
                    "token.rejected",
                    extra=event(strategy=self.name, token=token, kind=e.kind),
                )
                continue

            if is_valid_payload(result):
                logger.info("token.accepted", extra=event(strategy=self.name, token=token))
                return result
            logger.info(
                "token.rejected",
                extra=event(strategy=self.name, token=token, kind="invalid_payload"),
            )

        raise StrategyError("All common tokens failed", strategy=self.name)


class HarvestedTokenStrategy(AcquisitionStrategy):
    """Harvest a token and cookie from a site page, then POST with them."""

    name = "Token from Different Pages"

    async def harvest(self, request: AcquisitionRequest) -> Session:
        """Fetch candidate pages until one embeds a plausible token.

        Raises:
            ChallengeDetected: No token found and a page was a challenge
            TokenNotFound: No token found on any page
        """
        pages = site.candidate_pages(self.base_url)
        challenge: ChallengeDetected | None = None

        for page in pages:
            try:
                response, html = await self.get(page, request)
            except ChallengeDetected as e:
                challenge = e
                logger.info("page.challenge", extra=event(strategy=self.name, url=page))
                continue
            except LelangError as e:
                logger.info("page.failed", extra=event(strategy=self.name, url=page, kind=e.kind))
                continue

            match = self.extractor.match(html)
            if match is not None:
                logger.info(
                    "token.found",
                    extra=event(strategy=self.name, url=page, rule=match.rule),
                )
                return Session(token=match.token, cookie=response.session_cookie, base_url=self.base_url)
            logger.info("token.absent", extra=event(strategy=self.name, url=page))

        if challenge is not None:
            raise challenge
        raise TokenNotFound(pages=pages)

    async def execute(self, request: AcquisitionRequest) -> Any:
        session = await self.harvest(request)

        # Avoid uniform request timing before the data request
        await self.sleep(
            self.rng.uniform(self.config.pre_post_delay_min, self.config.pre_post_delay_max)
        )

        token, cookie = session.consume()
        return await self.post_listing(request, token=token, cookie=cookie)


DEFAULT_STRATEGIES: tuple[type[AcquisitionStrategy], ...] = (
    WithoutTokenStrategy,
    ParameterizedGetStrategy,
    CommonTokensStrategy,
    HarvestedTokenStrategy,
)
