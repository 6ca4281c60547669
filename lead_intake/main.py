# lead_intake/main.py
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.exceptions import HTTPException as StarletteHTTPException

from lead_intake.core.config import IntakeConfig, Settings, settings as default_settings
from lead_intake.core.exceptions import (
    ConfigurationError,
    IntakeError,
    MethodNotAllowedError,
    ValidationError,
)
from lead_intake.core.logging import configure_structlog, get_structlog_logger, set_request_id
from lead_intake.middleware.request_id import RequestIdMiddleware
from lead_intake.routes import health_router, leads_router, optout_router
from lead_intake.routes.deps import IntakeState
from lead_intake.services.intake import IntakeOrchestrator
from lead_intake.services.row_store import RowStore, build_row_store

logger = get_structlog_logger(__name__)


def build_intake_state(s: Settings, store: Optional[RowStore] = None) -> IntakeState:
    """Resolve configuration and wire the pipeline once per process.

    A ConfigurationError does not stop the app from starting; it is kept and
    re-raised on every intake request so callers get a JSON 500.
    """
    try:
        config = IntakeConfig.from_settings(s)
        store = store or build_row_store(s)
    except ConfigurationError as e:
        logger.error("intake.misconfigured", error=e.message, details=e.details)
        return IntakeState(startup_error=e)

    return IntakeState(
        config=config,
        store=store,
        orchestrator=IntakeOrchestrator(config, store),
    )


def register_exception_handlers(app: FastAPI, s: Settings) -> None:
    @app.exception_handler(IntakeError)
    async def intake_exception_handler(request: Request, exc: IntakeError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "api.exception",
            status_code=exc.status_code,
            code=exc.code,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            errors.append({
                "loc": [str(part) for part in error.get("loc", [])],
                "msg": error.get("msg", "Validation error"),
                "type": error.get("type", "value_error"),
            })

        logger.warning(
            "validation.error",
            path=request.url.path,
            method=request.method,
            errors=errors,
        )

        err = ValidationError("Invalid request body", code="invalid_body", details={"errors": errors})
        return JSONResponse(status_code=err.status_code, content=err.to_response())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            content = MethodNotAllowedError().to_response()
        else:
            content = {"ok": False, "error": str(exc.detail), "detail": f"http_{exc.status_code}"}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = f"err_{int(time.time())}_{hash(str(exc)) % 10000:04d}"

        logger.error(
            "unhandled.exception",
            error_id=error_id,
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
            method=request.method,
            exc_info=exc,
        )

        detail = error_id if s.is_production else f"{type(exc).__name__}: {exc}"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": "Server error", "detail": detail},
            headers={"X-Error-ID": error_id},
        )


def create_app(s: Optional[Settings] = None, store: Optional[RowStore] = None) -> FastAPI:
    s = s or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("application.starting", environment=s.environment)
        yield
        set_request_id(None)
        logger.info("application.shutdown_complete")

    if s.sentry_dsn:
        sentry_sdk.init(
            dsn=s.sentry_dsn,
            environment=s.environment,
            integrations=[
                AsyncioIntegration(),
                FastApiIntegration(),
                StarletteIntegration(),
            ],
            traces_sample_rate=1.0 if s.is_development else 0.1,
            send_default_pii=False,
        )
        logger.info("sentry.initialized")

    app = FastAPI(
        title="Lead Intake API",
        version="1.0.0",
        description="Lead intake, opt-out suppression and buyer routing",
        docs_url="/docs" if s.is_development else None,
        redoc_url=None,
        openapi_url="/openapi.json" if s.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = s
    app.state.intake = build_intake_state(s, store)

    app.add_middleware(RequestIdMiddleware)
    register_exception_handlers(app, s)

    app.include_router(health_router)
    app.include_router(leads_router, tags=["leads"])
    app.include_router(optout_router, tags=["optout"])
    if s.api_prefix:
        app.include_router(leads_router, prefix=s.api_prefix, include_in_schema=False)
        app.include_router(optout_router, prefix=s.api_prefix, include_in_schema=False)

    if s.metrics_enabled and not s.is_testing:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    state = app.state.intake
    logger.info(
        "application.configured",
        environment=s.environment,
        dispatch_mode=state.config.dispatch_mode.value if state.config else None,
        row_store=state.store.backend if state.store else None,
    )
    return app


# Configure logging before creating app
configure_structlog()
app = create_app()
