"""NeonHub API application.

Entry point: uvicorn neonhub.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from neonhub.config import settings
from neonhub.errors import ConfigurationError, ProxyError

_processors = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]
if settings.APP_ENV == "development":
    _processors.append(structlog.dev.ConsoleRenderer())
else:
    _processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

structlog.configure(
    processors=_processors,
    wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
)

logger = structlog.get_logger()

VERSION = "0.1.0"

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"
CORS_ALLOW_METHODS = "GET, POST, DELETE, OPTIONS"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("app_startup", env=settings.APP_ENV)
    yield
    from neonhub.db.session import engine, service_engine

    await engine.dispose()
    await service_engine.dispose()
    logger.info("app_shutdown")


app = FastAPI(
    title="NeonHub API",
    description="GitHub sync proxy and Co-Pilot chat for the NeonHub dashboard",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.APP_ENV == "development" else None,
    redoc_url="/redoc" if settings.APP_ENV == "development" else None,
)


# --- CORS ---

def cors_headers(origin: str | None) -> dict[str, str]:
    """Exact-match allow-list. Unknown or absent origins get the default origin.

    Requests are never refused on CORS grounds; a disallowed browser origin
    simply receives headers addressed to someone else.
    """
    allowed = settings.allowed_origins
    if origin and origin in allowed:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
            "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
            "Access-Control-Allow-Credentials": "true",
            "Vary": "Origin",
        }
    return {
        "Access-Control-Allow-Origin": allowed[0] if allowed else "",
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Vary": "Origin",
    }


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    headers = cors_headers(request.headers.get("origin"))
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=headers)
    response = await call_next(request)
    response.headers.update(headers)
    return response


# --- Exception handlers ---

@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        # Deployment is missing a secret; the detail stays in the server log
        logger.error("configuration_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=exc.status_code, content={"error": ConfigurationError.message})
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
        headers=cors_headers(request.headers.get("origin")),
    )


# --- Routers ---

from neonhub.routers.copilot_chat import router as copilot_chat_router  # noqa: E402
from neonhub.routers.github_proxy import router as github_proxy_router  # noqa: E402
from neonhub.routers.repositories import router as repositories_router  # noqa: E402

app.include_router(github_proxy_router, prefix="/api", tags=["github"])
app.include_router(copilot_chat_router, prefix="/api", tags=["copilot"])
app.include_router(repositories_router, prefix="/api", tags=["repositories"])


# --- Health check ---

@app.get("/api/health")
async def health_check():
    return {"status": "ok", "version": VERSION}
