"""clipqueue - FastAPI application fronting a single-session executor with a queue."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clipqueue.api.v1.health import router as health_root_router
from clipqueue.api.v1.router import v1_router
from clipqueue.config import settings
from clipqueue.executors.base import Executor
from clipqueue.executors.loader import load_executor
from clipqueue.jobs.in_process_queue import OperationQueue, QueueConfig
from clipqueue.storage.artifacts import ArtifactStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logger.info("Starting clipqueue on port %s", settings.port)

    executor = app.state.executor or load_executor(settings.executor_path)
    config = app.state.queue_config or QueueConfig.from_settings(settings)
    artifacts = ArtifactStore(
        app.state.artifacts_dir or settings.artifacts_dir,
        ttl_seconds=config.operation_ttl,
    )
    logger.info("Artifacts dir: %s", artifacts.base_dir)
    logger.info(
        "Queue: max %d pending, timeout %gs, retention %gs",
        config.max_queue_size, config.operation_timeout, config.operation_ttl,
    )

    queue = OperationQueue(executor, config=config, artifacts=artifacts)
    await queue.start()
    logger.info("Operation queue started")

    app.state.queue = queue
    app.state.artifacts = artifacts

    yield

    logger.info("Shutting down clipqueue")
    await queue.stop()
    await executor.close()
    artifacts.cleanup_expired()
    app.state.queue = None
    app.state.artifacts = None


def create_app(
    executor: Optional[Executor] = None,
    queue_config: Optional[QueueConfig] = None,
    artifacts_dir: Optional[str] = None,
) -> FastAPI:
    """Build the application. Arguments override the environment settings."""
    app = FastAPI(
        title="clipqueue",
        description="Queued access to a single slow video generation session",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.executor = executor
    app.state.queue_config = queue_config
    app.state.artifacts_dir = artifacts_dir
    app.state.queue = None
    app.state.artifacts = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount routers
    app.include_router(health_root_router, tags=["health"])  # GET /health at root
    app.include_router(v1_router)  # All /api/v1/* endpoints
    return app


app = create_app()
