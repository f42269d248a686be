"""Profile Relay Server - FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from profilerelay.server.config import settings
from profilerelay.server.errors import RelayError, ValidationError
from profilerelay.server.routes import router
from profilerelay.server.upstream import UpstreamClient

logger = logging.getLogger(__name__)

SERVICE_NAME = "Profile Relay"
SERVICE_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage server lifecycle."""
    if not settings.klaviyo_private_api_key:
        logger.warning("KLAVIYO_PRIVATE_API_KEY is not set; upstream calls will be rejected")
    app.state.upstream = UpstreamClient(settings.upstream())
    logger.info("Upstream client initialized for %s", settings.klaviyo_api_base)

    yield

    await app.state.upstream.close()
    logger.info("Server shutdown complete")


app = FastAPI(
    title="Profile Relay Server",
    description="Relays anonymous visitor events and identify calls to the upstream profile store",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.allowed_origin],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

app.include_router(router)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Map relay failures to structured error responses."""
    if isinstance(exc, ValidationError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as ValidationError."""
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return await relay_error_handler(
        request, ValidationError("Invalid request body: " + "; ".join(problems))
    )


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "message": f"{SERVICE_NAME} is running",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/")
async def root() -> dict:
    """Service description."""
    return {
        "name": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "endpoints": {
            "track": "POST /track",
            "identify": "POST /identify",
            "health": "GET /health",
        },
    }


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run()
