"""
Main entrypoint for the Event Planner API.

This module assembles the FastAPI application: it validates settings,
sets up logging, registers the error handlers, includes the versioned
router and starts the reminder polling loop.  The ``create_app``
function builds the app, which is then instantiated at import time
as ``app`` so it can be served with uvicorn::

    uvicorn event_planner_api.app.main:app

The application refuses to start when ``SECRET_KEY`` is not set.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import Settings, settings
from .core.db import init_db
from .core.errors import AppError, AuthError, StoreError
from .core.logging_config import setup_logging
from .core.periodic import start_periodic_task, stop_periodic_tasks
from .services.reminder_service import ReminderService

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or "Invalid request"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": _describe_validation_error(exc)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = StoreError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    config : Optional[Settings]
        Settings to validate; defaults to the module level ``settings``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.

    Raises
    ------
    ConfigurationError
        If the settings are incomplete (for example no ``SECRET_KEY``).
    """
    config = config or settings
    config.validate()
    setup_logging(config.log_level, config.log_file or None, config.reminder_log_file or None)

    app = FastAPI(title=config.project_name, version=config.api_version, debug=config.debug)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(v1_router, prefix=config.api_prefix)

    @app.on_event("startup")
    async def startup_event() -> None:
        # Apply migrations before the reminder loop touches the database.
        init_db()
        if config.reminders_enabled:
            start_periodic_task(
                app,
                name="reminders",
                interval_seconds=config.reminder_poll_seconds,
                func=ReminderService.run_due,
                logger=logger,
            )

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        await stop_periodic_tasks(app, logger=logger)

    return app


# Create the application instance at import time so that uvicorn can
# discover it.  This fails fast when SECRET_KEY is missing.
app = create_app()
