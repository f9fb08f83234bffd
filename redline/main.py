"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from temporalio.client import Client as TemporalClient

from redline.core.config import settings
from redline.core.logging import setup_logging
from redline.routes import comparisons_router, health_router
from redline.services.analysis_client import AnalysisClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup, cleanup on shutdown."""
    setup_logging()

    # Analysis client
    analysis_client = None
    if settings.OPENAI_API_KEY:
        analysis_client = AnalysisClient.from_settings(settings)
    else:
        logger.warning("OPENAI_API_KEY not set; comparison endpoint disabled")
    app.state.analysis_client = analysis_client

    # Temporal client - tolerate failure
    try:
        app.state.temporal = await TemporalClient.connect(
            settings.TEMPORAL_ADDRESS,
            namespace=settings.TEMPORAL_NAMESPACE,
        )
        logger.info("Connected to Temporal at %s", settings.TEMPORAL_ADDRESS)
    except Exception as e:
        logger.warning("Failed to connect to Temporal: %s", e)
        app.state.temporal = None

    yield

    if analysis_client is not None:
        await analysis_client.close()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# Register routers
app.include_router(health_router)
app.include_router(comparisons_router)
