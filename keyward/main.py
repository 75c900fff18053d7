"""Keyward - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from . import __version__
from .api.auth import APIKeyMiddleware, get_auth_status, log_auth_status
from .api.routes import router
from .api.schemas import HealthResponse
from .auth.keys import APIKeyStore
from .config.settings import Settings, get_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("keyward")


def create_app(
    store: APIKeyStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create the application.

    Args:
        store: Key store to authenticate against. Defaults to one at the
               configured keys path.
        settings: Settings to read the auth override from. Defaults to
                  get_settings().
    """
    settings = settings or get_settings()
    store = store or APIKeyStore(settings.keys_path)
    skip_auth = settings.auth_disabled

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info(f"Starting Keyward v{__version__}")
        logger.info(f"API key store: {store.store_path}")
        log_auth_status(get_auth_status(store, skip_auth))
        yield
        logger.info("Shutting down Keyward")

    app = FastAPI(
        title="Keyward",
        description="API key authentication for the proxy service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.key_store = store
    app.state.skip_auth = skip_auth

    app.add_middleware(APIKeyMiddleware, store=store, skip_auth=skip_auth)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Simple health check endpoint."""
        return HealthResponse(status="ok", version=__version__)

    app.include_router(router)
    return app


def run(host: str | None = None, port: int | None = None):
    """Run the application (entry point for CLI)."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    logger.info(f"Starting server on {host}:{port}")

    uvicorn.run(
        create_app(settings=settings),
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
