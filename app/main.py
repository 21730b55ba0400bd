# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Kanban Position API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
#   python -m app.main            # uses API_HOST / API_PORT
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    KanbanException,
    application_error_handler,
    kanban_exception_handler,
    validation_exception_handler,
)
from app.routers import boards, columns, health, positions, tasks
from lib.utils import ApplicationError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs the active configuration on startup and a notice on shutdown.
    """
    logger.info(f"Starting Kanban Position API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(
        f"Rebalance threshold: {settings.REBALANCE_THRESHOLD} chars, "
        f"max key length: {settings.MAX_KEY_LENGTH}, "
        f"max bulk keys: {settings.MAX_BULK_KEYS}"
    )

    yield

    logger.info("Shutting down Kanban Position API")


# Create FastAPI application
app = FastAPI(
    title="Kanban Position API",
    description="""
## Fractional-Index Ordering for Kanban Boards

Columns and tasks are ordered by a string `position` key. Moving an item
rewrites only that item's key: a new key is minted strictly between its new
neighbours, so siblings are never renumbered.

### How It Works

1. **Create a Board** - `POST /api/v1/boards`
2. **Add Columns and Tasks** - appended to the end unless a position is given
3. **Move** - send the neighbour ids (or a target index); the server mints the key
4. **Rebalance** - keys that grow past the threshold are rewritten automatically

### Concurrency

Send the item's `version` with a move. A stale version returns **409**;
re-fetch the siblings and recompute the move.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Boards",
            "description": "Create boards and manage their columns",
        },
        {
            "name": "Columns",
            "description": "Move columns and manage their tasks",
        },
        {
            "name": "Tasks",
            "description": "Move, copy, and delete tasks",
        },
        {
            "name": "Positions",
            "description": "Mint order keys without touching stored rows",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(KanbanException)
async def handle_kanban_exception(request: Request, exc: KanbanException):
    """Handle not-found and conflict errors."""
    return await kanban_exception_handler(request, exc)


@app.exception_handler(ApplicationError)
async def handle_application_error(request: Request, exc: ApplicationError):
    """Handle ordering errors raised by the allocator."""
    return await application_error_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Board endpoints
app.include_router(
    boards.router,
    prefix="/api/v1/boards",
    tags=["Boards"]
)

# Column endpoints
app.include_router(
    columns.router,
    prefix="/api/v1/columns",
    tags=["Columns"]
)

# Task endpoints
app.include_router(
    tasks.router,
    prefix="/api/v1/tasks",
    tags=["Tasks"]
)

# Key generation endpoints
app.include_router(
    positions.router,
    prefix="/api/v1/positions",
    tags=["Positions"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Kanban Position API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.is_development,
        log_level="debug" if settings.DEBUG else "info",
    )
