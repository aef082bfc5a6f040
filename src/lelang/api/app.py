"""HTTP routing layer for Lelang.

A thin FastAPI app in front of :func:`lelang.acquire.acquire`. It
validates query parameters, calls the engine and maps the outcome to a
status code.

Run:
    uvicorn lelang.api.app:app

Endpoints:
    GET /            - Welcome text
    GET /health      - Health check
    GET /api/lelang  - Acquire one page (?tahun=2024&page=1&limit=10)
"""

from typing import Any, Awaitable, Callable, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from lelang._version import __version__
from lelang.core.config import LelangSettings, get_settings
from lelang.core.logging import event, get_logger
from lelang.core.types import AcquisitionOutcome

logger = get_logger(__name__)

AcquireFn = Callable[..., Awaitable[AcquisitionOutcome]]


def _parse_int(value: Optional[str]) -> Optional[int]:
    """Parse an integer query value, None when absent or non-numeric."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _positive_or(value: Optional[str], default: int) -> int:
    parsed = _parse_int(value)
    return parsed if parsed is not None and parsed >= 1 else default


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def create_app(
    acquire_fn: AcquireFn | None = None,
    config: LelangSettings | None = None,
) -> FastAPI:
    """Create the API application.

    Args:
        acquire_fn: Coroutine function with the signature of
            :func:`lelang.acquire.acquire`; tests pass a double
        config: Lelang settings

    Returns:
        Configured FastAPI app
    """
    settings = config or get_settings()

    if acquire_fn is None:
        from lelang.acquire.orchestrator import acquire

        async def acquire_fn(year: int, page: int, page_size: int, proxy: str | None = None) -> AcquisitionOutcome:
            return await acquire(year, page, page_size, proxy, config=settings)

    app = FastAPI(
        title="Lelang Scraper API",
        description="Tender listings acquired with fallback strategies",
        version=__version__,
    )

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        """Welcome text."""
        return "Welcome to the Lelang scraper API. Use the /api/lelang endpoint."

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.get("/api/lelang")
    async def lelang(
        tahun: Optional[str] = None,
        page: Optional[str] = None,
        limit: Optional[str] = None,
    ) -> JSONResponse:
        """Acquire one page of tender listings.

        Args:
            tahun: Listing year, required, within the configured range
            page: Page number, defaults to 1
            limit: Page size, defaults to the configured page size

        Returns:
            200 with the success body, 400 on invalid input,
            500 when every strategy failed
        """
        if not tahun:
            return _error(400, 'Parameter "tahun" is required.')

        year = _parse_int(tahun)
        if year is None or not settings.min_year <= year <= settings.max_year:
            return _error(400, 'Parameter "tahun" is invalid.')

        page_number = _positive_or(page, 1)
        page_size = _positive_or(limit, settings.default_page_size)

        logger.info(
            "api.request",
            extra=event(year=year, pageNumber=page_number, pageSize=page_size),
        )

        try:
            outcome = await acquire_fn(year, page_number, page_size, settings.proxy)
        except Exception:
            logger.exception("api.unhandled", extra=event(year=year))
            return _error(500, "Internal server error.")

        status_code = 200 if outcome.success else 500
        return JSONResponse(status_code=status_code, content=outcome.to_dict())

    return app


app = create_app()
