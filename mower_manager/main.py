"""
Mower Manager API

Fleet records for a lawn-mower fleet, with full backup and restore of the
dataset (records plus attachment files) as a single ZIP archive.

Usage:
    uvicorn mower_manager.main:app --reload

API Docs:
    http://localhost:5000/docs
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mower_manager.config import get_settings
from mower_manager.api.v1.router import api_router
from mower_manager.db.database import init_db

logger = logging.getLogger("mower_manager")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    await init_db()
    logger.info("Database initialized")
    yield


def create_app() -> FastAPI:
    settings = get_settings()

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.setLevel(settings.log_level.upper())

    app = FastAPI(
        title="Mower Manager API",
        description="Fleet records with full backup and restore",
        version="1.3.4",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}:\n{traceback.format_exc()}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # Routes
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/")
    async def root():
        return {
            "name": "Mower Manager API",
            "version": "1.3.4",
            "docs": "/docs",
            "endpoints": {
                "mowers": "/api/v1/mowers",
                "attachments": "/api/v1/attachments",
                "backup": "/api/v1/backup",
                "restore": "/api/v1/restore",
                "events": "/api/v1/ws",
            },
        }

    return app


app = create_app()
