"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ordernum.api.v1 import health, orders
from ordernum.config import settings
from ordernum.db import async_session_maker, dispose_engine
from ordernum.logging import setup_logging
from ordernum.models.enums import OrderChannel
from ordernum.services.sequence.counter_store import ChannelCounterStore

# Configure logging before anything else
setup_logging()

logger = structlog.get_logger(__name__)


async def seed_counters() -> None:
    """Make sure every known channel has a counter row."""
    async with async_session_maker() as session:
        counters = ChannelCounterStore(session)
        for channel in OrderChannel:
            await counters.ensure(channel)
        await session.commit()
    logger.info("Channel counters ready", channels=[str(c) for c in OrderChannel])


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger.info("Starting Order Numbering API", debug=settings.debug)

    if settings.seed_counters_on_startup:
        await seed_counters()

    yield

    # Shutdown
    logger.info("Shutting down Order Numbering API")
    await dispose_engine()
    logger.info("Database connections disposed")


app = FastAPI(
    title="Order Numbering API",
    description="Order creation with per-channel sequential order numbers",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(orders.router, prefix="/api/v1", tags=["orders"])
