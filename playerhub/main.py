"""
Main FastAPI application for PlayerHub.
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, OperationalError, IntegrityError

from playerhub.config import get_settings
from playerhub.database import init_db, close_db, get_db_context
from playerhub.api import api_router
from playerhub.errors import PlayerHubError
from playerhub.sessions import SessionStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Initializes and cleans up resources.
    """
    settings = get_settings()

    # Initialize database
    logger.info("Initializing database...")
    await init_db()

    # Initialize session store
    logger.info(f"Initializing session store (ttl: {settings.session_ttl_seconds}s)...")
    store = SessionStore(ttl=timedelta(seconds=settings.session_ttl_seconds))
    app.state.session_store = store

    async with get_db_context() as db:
        purged = await store.purge_expired(db)
    if purged:
        logger.info(f"Purged {purged} expired sessions")

    logger.info("PlayerHub started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down...")
    app.state.session_store = None

    # Close database connections
    await close_db()

    logger.info("PlayerHub stopped.")


settings = get_settings()

# Create FastAPI application
app = FastAPI(
    title="PlayerHub",
    description="Gaming community backend: sign-in, sessions and player dashboard data",
    version="0.1.0",
    lifespan=lifespan,
)

# Credentialed requests cannot use a wildcard origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(PlayerHubError)
async def domain_error_handler(request: Request, exc: PlayerHubError):
    """Render domain errors as {message} with the error's status."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.__cause__ or exc}")

    content = {"message": exc.message}
    errors = getattr(exc, "errors", None)
    if errors:
        content["errors"] = errors

    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Reject malformed request bodies with 400 and per-field messages."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    message = errors[0]["message"] if errors else "Invalid request"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message, "errors": errors},
    )


# Database error exception handlers
@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    """Handle database connection/operational errors."""
    logger.error(f"Database operational error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"message": "Database connection error. Please try again later."},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Handle database integrity constraint violations."""
    logger.error(f"Database integrity error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"message": "The operation conflicts with existing data."},
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    """Handle general SQLAlchemy errors."""
    logger.error(f"Database error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Database error. Please try again later."},
    )


# Health check endpoint
@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "session_store_ready": getattr(request.app.state, "session_store", None) is not None,
    }


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "playerhub.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
