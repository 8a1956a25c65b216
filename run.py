"""Entry point for running the CitySetu API.

Configuration (ADMIN_TOKEN, storage backend, GitHub repository
coordinates, HOST and PORT) is read from environment variables; see
``citysetu_api/app/core/config.py`` for the full list.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from citysetu_api.app.core.config import settings
from citysetu_api.app.main import app


async def main() -> None:
    """Serve the API with Uvicorn until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("Shutting down")
