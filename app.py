#!/usr/bin/env python3
"""
Main entry point for the dynamic QR code manager.

Concurrency: requests are handled on a single event loop (FastAPI + uvicorn);
store access and image rendering are awaited so slow I/O never blocks other
requests. Set WORKERS > 1 only with a shared SQL store (each worker has its own
connection pool; the memory store is per process).

Usage:
    python app.py

Environment variables:
    DATABASE_URL - memory://, sqlite:///path.db or postgresql://...
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Public origin for resolution URLs (optional)
    CUSTOM_SHORT_DOMAIN - Short domain serving ids at its root (optional)
    API_KEY - Shared secret for the management API
    ENVIRONMENT - development or production
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from dynqr.database import create_store
from dynqr.database.cache import RedisCache
from dynqr.service import QRCodeService
from dynqr.shortid import ShortIdGenerator
from dynqr.common.logging_config import setup_logging
from web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting QR code manager...")

    store = create_store(
        config.database_url,
        create_tables=config.create_tables,
        logger=logger,
    )

    # Initialize cache (optional)
    if config.redis_url:
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
        await cache.connect()
    else:
        logger.info("Redis caching disabled")
        cache = None

    service = QRCodeService(
        store=store,
        cache=cache,
        short_id_generator=ShortIdGenerator(),
        logger=logger,
        production=config.is_production,
        custom_short_domain=config.custom_short_domain,
        max_collision_retries=config.max_collision_retries,
    )

    app.state.service = service

    if not config.api_key and not config.allow_unauthenticated:
        logger.warning("API_KEY is not set: the management API will reject every request")
    elif config.allow_unauthenticated:
        logger.warning("ALLOW_UNAUTHENTICATED is on: the management API is open to anyone")

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down QR code manager...")
    await service.close()
    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Dynamic QR Code Manager")
    logger.info(f"Configuration: {config.safe_dump()}")

    # Service is created in the lifespan
    app = create_app(service_instance=None, config=config)
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level.lower(),
        access_log=True,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
