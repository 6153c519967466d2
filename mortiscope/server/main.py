"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request timing), registers the exception handlers and includes all API routers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mortiscope.core.database import init_db
from mortiscope.core.logging_config import get_logger, setup_logging
from mortiscope.core.monitoring import initialize_logfire

from .api.v1 import (
    account,
    analyze,
    annotation,
    auth,
    cases,
    dashboard,
    exports,
    health,
    images,
    results,
    uploads,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Prepares the database on startup. Tables are only created directly for local
    SQLite databases; everywhere else Alembic owns the schema.
    """
    try:
        logger.info(f"Starting up {constant.PROJECT_NAME} Server...")
        await init_db(create_tables=settings.database_url.startswith("sqlite"))
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    logger.info(f"Shutting down {constant.PROJECT_NAME} Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    MortiScope Server API

    Backend of the MortiScope forensic entomology platform: cases, image uploads,
    detection review, PMI analysis, exports and the dashboard.
    """,
    version=constant.API_VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

initialize_logfire(settings.logfire, app)
setup_exception_handlers(app)

app.add_middleware(LogfireMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=settings.cors.allow_methods,
    allow_headers=settings.cors.allow_headers,
)


app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth")
app.include_router(account.router, prefix=f"{constant.API_V1_STR}/account")
app.include_router(cases.router, prefix=f"{constant.API_V1_STR}/cases")
app.include_router(uploads.router, prefix=f"{constant.API_V1_STR}/uploads")
app.include_router(images.router, prefix=f"{constant.API_V1_STR}/images")
app.include_router(annotation.router, prefix=f"{constant.API_V1_STR}/annotation")
app.include_router(analyze.router, prefix=f"{constant.API_V1_STR}/analysis")
app.include_router(results.router, prefix=f"{constant.API_V1_STR}/results")
app.include_router(exports.router, prefix=f"{constant.API_V1_STR}/exports")
app.include_router(dashboard.router, prefix=f"{constant.API_V1_STR}/dashboard")
