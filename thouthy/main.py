"""FastAPI application for Thouthy."""

import logging
import os
from contextlib import asynccontextmanager

logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")

from fastapi import FastAPI

from thouthy.config import get_settings
from thouthy.models.thought import init_db
from thouthy.routers import api
from thouthy.services.store import get_thought_store
from thouthy.tracing import setup_tracing

logger = logging.getLogger(__name__)

_tracer_provider = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database and warm the score cache on startup."""
    await init_db()

    updated = await get_thought_store().refresh_powerful_scores()
    logger.info("Startup score refresh updated %d thoughts", updated)

    yield

    # Flush remaining traces
    if _tracer_provider:
        _tracer_provider.shutdown()


app = FastAPI(
    title="Thouthy",
    description="Capture thoughts and surface the ones that matter",
    version="0.1.0",
    lifespan=lifespan,
    root_path=os.environ.get("ROOT_PATH", ""),
)

app.include_router(api.router)

# Set up OpenTelemetry tracing
_tracer_provider = setup_tracing(app, get_settings().otlp_endpoint)
