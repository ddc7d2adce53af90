"""TMDb Caching Proxy - Main Entry Point."""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import (
    ALLOWED_HEADERS, ALLOWED_METHODS, ALLOWED_ORIGINS, CACHE_KEY_INCLUDE_AUTH,
    HOST, PORT, logger,
)
from handlers import router
from request_manager import RequestManager
from tmdb_client import TMDbClient


def create_app(
    manager: Optional[RequestManager] = None,
    tmdb: Optional[TMDbClient] = None,
    include_auth: bool = CACHE_KEY_INCLUDE_AUTH,
) -> FastAPI:
    """
    Build the proxy application.

    The request manager and upstream client are created once here and shared
    by every request through ``app.state``.
    """
    manager = manager if manager is not None else RequestManager()
    tmdb = tmdb if tmdb is not None else TMDbClient()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Proxy starting (cache size {manager.cache.capacity}, ttl {manager.cache.ttl}s, "
            f"auth-keyed cache {'on' if include_auth else 'off'})"
        )
        yield
        await tmdb.aclose()

    app = FastAPI(title="TMDb Caching Proxy", version="0.1.0", lifespan=lifespan)
    app.state.manager = manager
    app.state.tmdb = tmdb
    app.state.include_auth = include_auth

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )
    app.include_router(router)
    return app


def main():
    """Start the proxy server."""
    app = create_app()
    logger.info(f"Proxy listening on {HOST}:{PORT}")
    try:
        uvicorn.run(app, host=HOST, port=PORT, log_level="info")
    except KeyboardInterrupt:
        logger.info("Proxy stopped by user")
    except Exception as e:
        logger.error(f"Error running proxy: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
