"""
FastAPI application for the clip splitter.

Provides HTTP API for splitting videos into enriched short clips.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clipsplitter.api import routes
from clipsplitter.config import get_settings
from clipsplitter.logging_config import setup_logging
from clipsplitter.services.providers import ProcessingStrategy

# Configure logging before anything else
settings = get_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Resolves provider backends once and closes their clients on shutdown.
    """
    settings = get_settings()
    logger.info("Starting Clip Splitter API")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Inbox directory: {settings.inbox_dir}")
    logger.info(f"Output directory: {settings.output_dir}")
    logger.info(f"Max parallel segments: {settings.max_parallel_segments}")

    settings.temp_dir.mkdir(parents=True, exist_ok=True)

    strategy = ProcessingStrategy(settings)
    app.state.providers = strategy.build_providers()

    yield

    await app.state.providers.aclose()
    logger.info("Shutting down Clip Splitter API")


app = FastAPI(
    title="Clip Splitter API",
    description="API for splitting videos into enriched short clips",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes.router)


@app.get("/health")
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        Basic health status
    """
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clipsplitter.main:app",
        host="0.0.0.0",
        port=8801,
        reload=True,
    )
