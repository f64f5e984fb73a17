"""FastAPI application factory and configuration."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST

from crateadapter import __version__
from crateadapter.adapter import CrateAdapter
from crateadapter.api.exceptions import CrateAdapterAPIException
from crateadapter.api.middleware import LoggingMiddleware, RequestIDMiddleware
from crateadapter.api.routers import health_router, remote_router
from crateadapter.config import Settings, get_settings
from crateadapter.logging_config import setup_logging
from crateadapter.metrics import PrometheusObserver
from crateadapter.store import CrateTransport

logger = structlog.get_logger(__name__)

LANDING_PAGE = """<html>
    <head><title>Crate.io Prometheus Adapter</title></head>
    <body>
    <h1>Crate.io Prometheus Adapter</h1>
    <p><a href="/metrics">Metrics</a></p>
    </body>
    </html>"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown tasks:
    - Startup: open the shared HTTP client and build the adapter, unless
      one was passed to ``create_app``
    - Shutdown: close the HTTP client

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    settings: Settings = app.state.settings
    logger.info(
        "application_starting",
        host=settings.adapter_host,
        port=settings.adapter_port,
        crate_url=settings.crate_url,
        table=settings.crate_table,
        version=__version__,
    )

    client: httpx.AsyncClient | None = None
    if getattr(app.state, "adapter", None) is None:
        client = httpx.AsyncClient(timeout=settings.crate_timeout_seconds)
        app.state.adapter = CrateAdapter(
            transport=CrateTransport(client, settings.crate_url),
            table=settings.crate_table,
            observer=app.state.observer,
        )
        logger.info("crate_transport_initialized", crate_url=settings.crate_url)

    yield

    logger.info("application_shutting_down")
    if client is not None:
        try:
            await client.aclose()
            app.state.adapter = None
            logger.info("crate_transport_closed")
        except Exception as e:
            logger.error("shutdown_error", error=str(e), exc_info=True)


def create_app(
    settings: Settings | None = None,
    adapter: CrateAdapter | None = None,
    observer: PrometheusObserver | None = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings to use instead of the global settings
        adapter: Pre-built adapter; when omitted one backed by CrateDB over
            HTTP is created at startup
        observer: Metrics observer; a fresh one with its own registry by default

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()
    setup_logging(settings)
    observer = observer or PrometheusObserver()

    app = FastAPI(
        title="Crate Remote Storage Adapter",
        description="Prometheus remote read/write adapter for CrateDB",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.observer = observer
    app.state.adapter = adapter

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(remote_router)

    @app.get("/", response_class=HTMLResponse, tags=["web"])
    async def index() -> HTMLResponse:
        """Serve the landing page."""
        return HTMLResponse(LANDING_PAGE)

    @app.get("/metrics", tags=["monitoring"])
    async def metrics(request: Request) -> Response:
        """Expose adapter metrics in the Prometheus text format."""
        return Response(
            content=request.app.state.observer.render(),
            media_type=CONTENT_TYPE_LATEST,
        )

    logger.debug("application_created", title=app.title, version=app.version)
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(CrateAdapterAPIException)
    async def api_exception_handler(
        request: Request,
        exc: CrateAdapterAPIException,
    ) -> JSONResponse:
        """Handle CrateAdapterAPIException and all subclasses."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.warning(
            "api_exception",
            path=request.url.path,
            status_code=exc.status_code,
            detail=exc.detail,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": request_id,
            },
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(
            "unexpected_error",
            path=request.url.path,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )


app = create_app()
