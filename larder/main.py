"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from larder.api import auth, households, invitations, locations, members, pantry, products
from larder.config import get_settings
from larder.exceptions import LarderError

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info(f"Starting Larder API ({settings.environment})")
    yield


app = FastAPI(
    title="Larder API",
    description="Shared household pantry tracking with product lookup by UPC",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(LarderError)
async def larder_error_handler(request: Request, exc: LarderError):
    """Render domain errors as JSON with their mapped status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_code, "detail": exc.message},
    )


# Register routers
app.include_router(auth.router)
app.include_router(households.router)
app.include_router(members.router)
app.include_router(invitations.router)
app.include_router(products.router)
app.include_router(locations.router)
app.include_router(pantry.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
