"""FastAPI service for Medicare prior authorization decision support."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from priorauth import __version__, config
from priorauth.errors import (
    ChecksumError,
    DraftingRefusedError,
    FormatError,
    NotFoundError,
    TransportError,
)
from priorauth.orchestrator import CaseOrchestrator, SessionStore
from priorauth.rate_limit import limiter
from priorauth.routes import cases_router, validation_router
from priorauth.services import build_services

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build shared services on startup and close them on shutdown."""
    configure_logging()

    # Services injected before startup (tests) are left for the caller to close
    services = getattr(app.state, "services", None)
    owns_services = services is None
    if owns_services:
        services = build_services()
        app.state.services = services

    app.state.sessions = SessionStore(
        lambda: CaseOrchestrator(
            services,
            evaluator_timeout=config.EVALUATOR_TIMEOUT_SECONDS,
            cancel_on_medicare_advantage=config.CANCEL_ON_MEDICARE_ADVANTAGE,
        ),
        max_sessions=config.SESSION_MAX_COUNT,
        idle_ttl=config.SESSION_IDLE_TTL_SECONDS,
    )

    # Pre-load reference datasets if configured (reduces first-case latency)
    if config.PRELOAD_DATASETS:
        logger.info("Pre-loading reference datasets...")
        status = await services.datasets.preload()
        logger.info(f"Dataset preload finished: {status}")

    yield

    app.state.sessions = None
    if owns_services:
        await services.aclose()
        app.state.services = None


app = FastAPI(
    title="Medicare Prior Authorization Assistant",
    description="Eligibility, PA-required, coverage, NCCI and SAD determinations",
    version=__version__,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS configuration
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FormatError)
@app.exception_handler(ChecksumError)
async def invalid_input_handler(request: Request, exc: FormatError | ChecksumError):
    return JSONResponse(
        status_code=422,
        content={"error": exc.message, "field": exc.field, "type": type(exc).__name__},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=404,
        content={"error": exc.message, "suggestions": exc.suggestions},
    )


@app.exception_handler(TransportError)
async def transport_error_handler(request: Request, exc: TransportError):
    logger.warning(f"Upstream failure from {exc.service}: {exc.message}")
    return JSONResponse(
        status_code=502,
        content={"error": exc.message, "service": exc.service},
    )


@app.exception_handler(DraftingRefusedError)
async def drafting_refused_handler(request: Request, exc: DraftingRefusedError):
    return JSONResponse(status_code=409, content={"error": exc.message})


app.include_router(validation_router)
app.include_router(cases_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    services = app.state.services
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "datasets": {
            name.value: services.datasets.is_loaded(name)
            for name in services.datasets.loader.sources
        },
        "sessions": len(app.state.sessions),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
