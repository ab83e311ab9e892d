"""Entry point for the Event Planner API.

Starts the FastAPI application under uvicorn.  Configuration is read
from environment variables (see ``event_planner_api/app/core/config.py``);
``SECRET_KEY`` is required, ``HOST`` and ``PORT`` default to
``0.0.0.0`` and ``3000``.

Usage:
    SECRET_KEY=... python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from event_planner_api.app.core.config import settings
from event_planner_api.app.core.errors import ConfigurationError


async def run_api() -> None:
    """Serve the API until the process is stopped."""
    from event_planner_api.app.main import app

    config = Config(app=app, host=settings.host, port=settings.port, reload=False, log_level="info")
    server = Server(config)
    await server.serve()


def main() -> None:
    try:
        asyncio.run(run_api())
    except ConfigurationError as exc:
        logging.basicConfig(level=logging.INFO)
        logging.critical("Refusing to start: %s", exc)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
