"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app
   - Tests build their own instance and inject a Database

2. Lifespan Events
   - startup: connect the Database, create tables, ping (failure is fatal)
   - shutdown: dispose of the connection pool

3. Middleware Stack
   - CORS: allow-list depends on ENV

4. Exception Handlers
   - Database and unexpected errors become JSON 500 responses
   - Unknown routes become a JSON 404 listing the available routes
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookstore.config import get_settings
from bookstore.database import Database
from bookstore.graphql import create_graphql_router
from bookstore.utils.dates import utc_now

# =============================================================================
# Logging Configuration
# =============================================================================
# Configure logging before creating the app
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

AVAILABLE_ROUTES = [
    "POST /graphql",
    "GET /graphql",
    "GET /health",
    "GET /",
    "GET /uploads/*",
]


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown

    A Database already placed on app.state (by tests) is reused.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name} ({settings.env})...")

    database = getattr(app.state, "database", None)
    if database is None:
        database = Database(
            settings.db_uri,
            echo=settings.debug,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
        app.state.database = database

    try:
        database.ping()
        database.create_tables()
    except SQLAlchemyError:
        logger.critical("Database is unreachable; refusing to start", exc_info=True)
        database.close()
        raise

    logger.info(f"GraphQL endpoint ready at http://{settings.host}:{settings.port}/graphql")

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    database.close()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Bookstore API

A GraphQL API for managing a bookstore catalog.

### Features
- **Books**: listings, search, stock and rating management
- **Categories**: hierarchy, breadcrumbs and ordering
- **Users**: registration, login and administration

### Authentication
Send `Authorization: Bearer <token>` with the token returned by
`register` or `login`.
        """,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Unknown routes get a JSON body listing what is available."""
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Route not found",
                    "message": f"The requested route {request.method} {request.url.path} does not exist",
                    "availableRoutes": AVAILABLE_ROUTES,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle SQLAlchemy database errors.

        Logs the actual error while hiding details from users in production.
        """
        logger.error(f"Database error: {exc}")
        content = {"error": "A database error occurred. Please try again later."}
        if settings.expose_error_details:
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        content = {"error": "Something went wrong!"}
        if settings.expose_error_details:
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    # -------------------------------------------------------------------------
    # GraphQL Endpoint
    # -------------------------------------------------------------------------
    graphql_router = create_graphql_router()
    app.include_router(graphql_router, prefix="/graphql", tags=["GraphQL"])

    # -------------------------------------------------------------------------
    # Static Uploads
    # -------------------------------------------------------------------------
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and the database is reachable.",
    )
    async def health_check(request: Request) -> dict:
        """
        Health check endpoint.

        Used by load balancers and monitoring systems.
        """
        database = getattr(request.app.state, "database", None)
        connected = database is not None and database.is_connected()
        return {
            "status": "OK",
            "message": f"{settings.app_name} is running",
            "timestamp": utc_now().isoformat(),
            "environment": settings.env,
            "database": "connected" if connected else "disconnected",
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and route information.",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "graphql": "/graphql",
            "health": "/health",
            "uploads": "/uploads",
            "availableRoutes": AVAILABLE_ROUTES,
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn bookstore.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m bookstore.main

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bookstore.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
