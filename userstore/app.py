"""FastAPI application: wires the store, the flush scheduler and the routers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from userstore import __version__
from userstore.core.config import Settings, get_settings
from userstore.core.errors import StoreError, UserNotFoundError
from userstore.core.observability import setup_logging
from userstore.repositories.json_storage import JSONStorage
from userstore.repositories.user_store import UserStore
from userstore.routers import users as users_router
from userstore.schemas import message, validation_details
from userstore.services.flush_scheduler import FlushScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the data file, start flushing; on exit stop flushing with a final flush."""
    settings: Settings = app.state.settings
    if app.state.configure_logging:
        setup_logging(settings.log_level, settings.log_format)

    storage = JSONStorage(settings.data_file)
    # PersistenceLoadError propagates: the server must not start on an unreadable file.
    store = UserStore.from_storage(storage)
    scheduler = FlushScheduler(store, storage, settings.policy)
    app.state.store = store
    app.state.scheduler = scheduler

    scheduler.start()
    if settings.flush_on_signal:
        scheduler.install_signal_handler()
    scheduler.install_quit_handler()
    logger.info("userstore started (data_file=%s)", settings.data_file, extra={"path": settings.data_file})
    try:
        yield
    finally:
        logger.info("userstore shutting down")
        scheduler.stop()


async def not_found_handler(request: Request, exc: UserNotFoundError):
    return JSONResponse(status_code=404, content=message(str(exc)))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # The offending input is left out: it may not even be encodable.
    details = validation_details(exc.errors())
    logger.warning(
        "Invalid request on %s %s: %s", request.method, request.url.path,
        ", ".join(d["field"] for d in details),
        extra={"method": request.method, "url": request.url.path},
    )
    return JSONResponse(status_code=422, content=message("invalid request", details))


async def store_error_handler(request: Request, exc: StoreError):
    logger.error(
        "Store error on %s %s: %s", request.method, request.url.path, exc,
        extra={"method": request.method, "url": request.url.path},
    )
    return JSONResponse(status_code=500, content=message("internal error"))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path,
        extra={"method": request.method, "url": request.url.path},
    )
    return JSONResponse(status_code=500, content=message("internal error"))


def create_app(settings: Settings | None = None, *, configure_logging: bool = True) -> FastAPI:
    """Factory compatible with uvicorn (``--factory``) and tests."""
    app = FastAPI(title="userstore", version=__version__, lifespan=lifespan)
    app.state.settings = settings or get_settings()
    app.state.configure_logging = configure_logging

    app.add_exception_handler(UserNotFoundError, not_found_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(users_router.router)
    return app
