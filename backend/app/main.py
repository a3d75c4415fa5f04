import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import booking, health, schedules
from app.core.config import Settings, get_settings
from app.core.exceptions import AppError
from app.core.logging_config import setup_logging
from app.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware
from app.db.bootstrap import ensure_runtime_schema
from app.db.session import create_engine_from_settings, create_session_factory
from app.services.booking.coordinator import BookingCoordinator, campus_clock
from app.services.booking.locking import build_lock_strategy

logger = logging.getLogger("app")


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    field = None
    if errors:
        location = [str(part) for part in errors[0].get("loc", ()) if part != "body"]
        field = ".".join(location) or None
    message = f"Invalid value for field: {field}." if field else "Invalid request."
    return JSONResponse(status_code=400, content={"message": message, "details": {"field": field}})


def create_app(settings: Settings | None = None, *, clock: Callable[[], date] | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_engine_from_settings(settings)
        await ensure_runtime_schema(engine, create_missing=settings.auto_create_schema)
        session_factory = create_session_factory(engine)
        lock_strategy = build_lock_strategy(settings.booking_lock_strategy, engine.dialect.name)

        app.state.engine = engine
        app.state.session_factory = session_factory
        app.state.lock_strategy = lock_strategy
        app.state.booking_coordinator = BookingCoordinator(
            session_factory,
            lock_strategy,
            timeout_seconds=settings.booking_transaction_timeout_seconds,
            clock=clock or campus_clock(settings.campus_timezone),
        )
        logger.info("%s started", settings.project_name)
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("%s stopped", settings.project_name)

    app = FastAPI(title=settings.project_name, lifespan=lifespan)
    app.state.settings = settings
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
    app.include_router(booking.router, prefix=settings.api_prefix, tags=["booking"])
    app.include_router(schedules.router, prefix=settings.api_prefix, tags=["schedules"])

    @app.get("/")
    def root() -> dict:
        return {"message": "NoClash Timetable Conflict Checker API is running!"}

    return app


app = create_app()
