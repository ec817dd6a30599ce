"""
Guardian AI - FastAPI Application Factory
Main entry point for the Guardian API.

This creates and configures the FastAPI application with:
- REST routes (contracts, alerts, events, AI, monitor, scans)
- The static monitoring dashboard
- Middleware (CORS, correlation ID, request logging)
- Error handlers
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sentry_sdk._types import Event as SentryEvent

import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.exceptions import HTTPException as StarletteHTTPException

from guardian import __version__
from guardian.api.middleware import CorrelationIdMiddleware, RequestLoggingMiddleware
from guardian.config import Settings, get_settings
from guardian.immune import get_circuit_registry
from guardian.monitoring import configure_logging
from guardian.repositories import GuardianStorage, MemStorage
from guardian.services import (
    AnalysisService,
    BlockchainService,
    ContractScanner,
    LLMConfig,
    LLMService,
    MonitorService,
)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

# Configure logging early - before any other logging occurs
_settings = get_settings()


def _sentry_before_send(
    event: SentryEvent,
    hint: dict[str, Any],
) -> SentryEvent | None:
    """Drop health check noise."""
    request_data = event.get("request")
    if isinstance(request_data, dict) and "/health" in str(request_data.get("url", "")):
        return None
    return event


_sentry_initialized = False
if _settings.sentry_dsn:
    sentry_sdk.init(
        dsn=_settings.sentry_dsn,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        traces_sample_rate=0.1 if _settings.is_production else 1.0,
        environment=_settings.app_env,
        release=f"guardian-ai@{__version__}",
        send_default_pii=False,
        before_send=_sentry_before_send,
    )
    _sentry_initialized = True

configure_logging(
    level=_settings.log_level,
    json_output=_settings.is_production,
    include_timestamps=True,
    include_service_info=True,
    sanitize_logs=True,
)

logger = structlog.get_logger(__name__)

if _sentry_initialized:
    logger.info("sentry_initialized", environment=_settings.app_env)
else:
    logger.debug("sentry_not_configured", hint="Set SENTRY_DSN to enable error tracking")


class GuardianApp:
    """
    Guardian application container.

    Holds references to all services for dependency injection.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage: GuardianStorage | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._storage = storage

        # Initialized in initialize()
        self.storage: GuardianStorage | None = None
        self.llm: LLMService | None = None
        self.analysis: AnalysisService | None = None
        self.blockchain: BlockchainService | None = None
        self.monitor: MonitorService | None = None
        self.scanner: ContractScanner | None = None

        self.started_at: datetime | None = None
        self.is_ready: bool = False

    def _build_services(self) -> None:
        settings = self.settings

        self.storage = self._storage or MemStorage(settings)
        self.llm = LLMService(LLMConfig.from_settings(settings))
        self.analysis = AnalysisService(
            self.llm,
            self.storage,
            token_limit=settings.daily_token_limit,
        )
        self.blockchain = BlockchainService(
            self.storage,
            demo_mode=settings.demo_mode,
            rpc_url=settings.rpc_url,
        )
        self.monitor = MonitorService(
            self.storage,
            self.blockchain,
            self.analysis,
            security_check_interval_seconds=settings.security_check_interval_minutes * 60,
            ai_analysis_interval_seconds=settings.ai_analysis_interval_minutes * 60,
            event_poll_interval_seconds=settings.event_poll_interval_seconds,
        )
        self.scanner = ContractScanner()

    async def initialize(self) -> None:
        """Build services, connect the chain and start monitoring."""
        logger.info("guardian_initializing", environment=self.settings.app_env)

        self._build_services()
        if self.blockchain is None or self.monitor is None:
            raise RuntimeError("Guardian services were not built")

        blockchain_ready = await self.blockchain.initialize()
        logger.info(
            "blockchain_service_initialization",
            result="success" if blockchain_ready else "failed",
            demo_mode=self.blockchain.is_demo_mode,
        )

        # The API stays up even if monitoring cannot start
        if self.settings.monitor_autostart:
            if not await self.monitor.start():
                logger.error("monitor_autostart_failed")

        self.started_at = datetime.now(UTC)
        self.is_ready = True
        logger.info("guardian_ready")

    async def shutdown(self) -> None:
        """Stop monitoring and release network clients."""
        logger.info("guardian_shutting_down")
        self.is_ready = False

        if self.monitor is not None:
            try:
                await self.monitor.stop()
            except (RuntimeError, asyncio.CancelledError) as e:
                logger.warning("monitor_shutdown_failed", error=str(e))

        if self.llm is not None:
            await self.llm.close()

        if self.blockchain is not None:
            try:
                await self.blockchain.close()
            except (RuntimeError, OSError) as e:
                logger.warning("blockchain_shutdown_failed", error=str(e))

        logger.info("guardian_shutdown_complete")

    def get_status(self) -> dict[str, Any]:
        """Get current application status."""
        return {
            "status": "healthy" if self.is_ready else "starting",
            "version": __version__,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "uptimeSeconds": (
                (datetime.now(UTC) - self.started_at).total_seconds() if self.started_at else 0
            ),
            "demoMode": self.blockchain.is_demo_mode if self.blockchain else None,
            "monitorActive": self.monitor.is_active() if self.monitor else False,
            "aiConfigured": self.analysis.is_configured if self.analysis else False,
            "openCircuits": get_circuit_registry().get_open_circuits(),
        }


# Global app instance
guardian_app = GuardianApp()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize services on startup and shut them down on exit."""
    try:
        await guardian_app.initialize()
        yield
    finally:
        await guardian_app.shutdown()


def create_app(
    title: str = "Guardian AI",
    description: str = "Smart contract security monitoring with AI-assisted analysis",
    version: str = __version__,
    docs_url: str | None = "/docs",
    debug: bool = False,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        title: API title for documentation
        description: API description
        version: API version string
        docs_url: Swagger UI URL (None to disable)
        debug: Enable debug mode

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    if settings.is_production:
        docs_url = None

    app = FastAPI(
        title=title,
        description=description,
        version=version,
        docs_url=docs_url,
        redoc_url=None,
        debug=debug,
        lifespan=lifespan,
    )

    app.state.guardian = guardian_app

    cors_origins = settings.cors_origins_list
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "X-Correlation-ID"],
            expose_headers=["X-Correlation-ID", "X-Response-Time"],
        )

    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    # Exception handlers: every error body is {"message": ...}
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Location and message only; submitted values are not echoed back
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "type": error.get("type", "unknown"),
                "msg": error.get("msg", "Validation failed"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request data", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            path=str(request.url.path),
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error"},
        )

    # Include routers
    from guardian.api.routes import ai, alerts, contracts, events, monitor, scans

    app.include_router(contracts.router, prefix="/api/contracts", tags=["contracts"])
    app.include_router(alerts.router, prefix="/api/alerts", tags=["alerts"])
    app.include_router(events.router, prefix="/api/events", tags=["events"])
    app.include_router(ai.router, prefix="/api/ai", tags=["ai"])
    app.include_router(monitor.router, prefix="/api/monitor", tags=["monitor"])
    app.include_router(scans.router, prefix="/api/scans", tags=["scans"])

    @app.get("/health", include_in_schema=False)
    async def health(request: Request) -> dict[str, Any]:
        guardian = getattr(request.app.state, "guardian", None)
        if guardian is None:
            return {"status": "starting"}
        return guardian.get_status()

    @app.get("/", include_in_schema=False)
    async def dashboard() -> FileResponse:
        return FileResponse(STATIC_DIR / "index.html")

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    logger.info("fastapi_app_created", title=title, version=version, docs_url=docs_url)

    return app


# Default app for uvicorn
app = create_app()


def run_server(
    host: str | None = None,
    port: int | None = None,
    reload: bool = False,
) -> None:
    """
    Run the Guardian server.

    For development use:
        python -m guardian.api.app
    """
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "guardian.api.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server(reload=True)
