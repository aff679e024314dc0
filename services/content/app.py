"""Content service FastAPI application.

Exposes the FastAPI app, attaches tracing middleware, includes content routes,
maps authoring errors to 422, and initializes the database on startup.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from packages.common.db import init_db
from packages.common.errors import ConfigurationError
from packages.common.tracing import trace_middleware
from .routes import router as content_router

app = FastAPI(title="trailhub Content Service", version="1.0.0")
app.middleware("http")(trace_middleware)
app.include_router(content_router)


@app.exception_handler(ConfigurationError)
async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    """Report corrupt authored content instead of computing on it."""
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.on_event("startup")
async def _init() -> None:
    """Initialize service dependencies at application startup."""
    await init_db()
