from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from commission_feed.core.config import get_settings
from commission_feed.core.logging import configure_logging, request_id_middleware
from commission_feed.transactions.feed import get_feed
from commission_feed.transactions.router import router as feed_router

logger = structlog.get_logger()

settings = get_settings()
configure_logging(settings.ENV, settings.DEBUG)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Keep the feed observed for as long as the application runs."""
    feed = get_feed()
    subscription = feed.subscribe()
    logger.info(
        "app.started",
        env=settings.ENV,
        source=feed.client.get_source_name(),
        base_url=settings.TRANSACTIONS_API_BASE_URL,
    )
    if feed.client.get_source_name() == "mock" and settings.ENV == "production":
        logger.warning("app.mock_client_in_production")

    yield

    await subscription.close()
    await feed.aclose()
    logger.info("app.stopped")


app = FastAPI(title="Commission Feed", version="0.1.0", lifespan=lifespan)
app.middleware("http")(request_id_middleware)
app.include_router(feed_router)


@app.get("/healthz")
def healthz():
    return {"status": "healthy", "env": settings.ENV}
