"""
Main entrypoint for the CitySetu API.

This module assembles the FastAPI application: it sets up logging,
builds the document store and the record repository, registers the
JSON error handlers and mounts the routes under ``/api``.  The app is
instantiated at import time as ``app``, so it can be served with::

    uvicorn citysetu_api.app.main:app

The store is created once per application and closed on shutdown.
Tests and embedding code can pass their own ``settings`` or ``store``
to :func:`create_app`.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.router import router as api_router
from .core.config import Settings, settings as default_settings
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging
from .core.repository import RecordRepository
from .core.store import BlobStore, build_store

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[BlobStore] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use; defaults to the environment-derived
        module-level settings.
    store : Optional[BlobStore]
        Document store to use; defaults to the backend named by
        ``settings.storage_backend``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level, settings.log_file or None)

    store = store or build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "%s %s started with %s storage", settings.project_name, settings.api_version, type(store).__name__
        )
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title=settings.project_name, version=settings.api_version, lifespan=lifespan)
    # The public site and the admin dashboard are served from other origins.
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    app.state.settings = settings
    app.state.store = store
    app.state.repository = RecordRepository(
        store,
        data_dir=settings.data_dir,
        max_attempts=settings.write_retries,
        backoff=settings.retry_backoff,
    )
    app.state.started_at = time.monotonic()

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it.
app = create_app()
