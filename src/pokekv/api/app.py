"""
FastAPI Application Factory.

Creates and configures the FastAPI application.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..core.config import Settings, get_settings
from ..core.logging import get_logger
from ..kv.base import KvStore
from ..kv.factory import open_store
from .endpoints import health, pokemons


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[KvStore] = None,
    title: str = "PokeKV API",
    version: str = __version__,
    description: str = "CRUD API for the pokemon collection",
) -> FastAPI:
    """
    Create and configure the FastAPI application.
    
    Args:
        settings: Application settings (defaults to get_settings())
        store: Pre-built store; when omitted one is opened from settings
            at startup and closed at shutdown
        title: API title
        version: API version
        description: API description
        
    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_store = store is None
        app.state.store = await open_store(settings) if owns_store else store
        logger.info("Store ready", backend=type(app.state.store).__name__)
        try:
            yield
        finally:
            if owns_store:
                await app.state.store.close()
    
    app = FastAPI(
        title=title,
        version=version,
        description=description,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    
    # CORS middleware - only enabled if origins are configured
    cors_origins = settings.api.get_cors_origins()
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["Content-Type"],
            expose_headers=["Location"],
        )
    
    # Include routers
    app.include_router(health.router, prefix="/api")
    app.include_router(pokemons.router, prefix="/api")
    
    # Static site last so it never shadows the API
    static_dir = settings.get_static_dir()
    if static_dir is not None and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info("Serving static files", directory=str(static_dir))
    else:
        @app.get("/")
        async def root():
            """Root endpoint with API info."""
            return {
                "name": title,
                "version": version,
                "docs": "/api/docs",
                "health": "/api/health"
            }
    
    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 8000,
    settings: Optional[Settings] = None,
) -> None:
    """
    Run the API server.
    
    Args:
        host: Server host address
        port: Server port
        settings: Application settings
    """
    import uvicorn
    
    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_config=None,
    )
