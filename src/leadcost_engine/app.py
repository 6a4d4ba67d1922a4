"""FastAPI application factory for LeadCost-Engine."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadcost_engine.common.config import LeadCostSettings, get_settings
from leadcost_engine.common.exceptions import (
    LeadCostError,
    PersistenceError,
    UpstreamError,
    ValidationError,
)
from leadcost_engine.common.logging import get_logger, setup_logging
from leadcost_engine.common.schemas import ErrorResponse, HealthResponse
from leadcost_engine.engine import CostEngine

logger = get_logger("app")

ERROR_STATUS = {
    ValidationError: 400,
    UpstreamError: 502,
    PersistenceError: 503,
}


def _status_for(exc: LeadCostError) -> int:
    for exc_type, status in ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return status
    return 500


def create_app(
    settings: LeadCostSettings | None = None,
    engine: CostEngine | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or CostEngine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        setup_logging(settings.log_level)
        await engine.start()
        logger.info("LeadCost-Engine started (%s)", settings.environment)
        yield
        # Shutdown
        await engine.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LeadCostError)
    async def leadcost_error_handler(request: Request, exc: LeadCostError):
        status = _status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        body = ErrorResponse(error=exc.message, code=exc.code)
        return JSONResponse(status_code=status, content=body.model_dump())

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from leadcost_engine.activity.router import router as activity_router
    from leadcost_engine.costs.router import router as costs_router
    from leadcost_engine.usage.router import router as usage_router

    prefix = settings.api_prefix
    app.include_router(activity_router, prefix=prefix, tags=["activity"])
    app.include_router(usage_router, prefix=prefix, tags=["usage"])
    app.include_router(costs_router, prefix=prefix, tags=["costs"])

    return app
