# booking/main.py
import datetime as dt
import logging
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from booking import holidays
from booking.db import make_engine
from booking.schemas import AppointmentOut, AppointmentRequest, ErrorResponse
from booking.settings import Settings, load_settings
from booking.store import AppointmentStore
from booking.validation import BookingRejected, InvalidJSON, OperatingWindow, validate

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message).model_dump(),
    )


def _operating_window(settings: Settings, today: Optional[dt.date]) -> OperatingWindow:
    today = today or settings.today
    if today is not None:   # pinned for tests / demos
        return OperatingWindow(year=settings.year, today=today)
    return OperatingWindow.for_year(settings.year)


def create_app(
    settings: Optional[Settings] = None,
    *,
    blocked_dates: Optional[Iterable[dt.date]] = None,
    today: Optional[dt.date] = None,
) -> FastAPI:
    """Build the booking API.

    ``blocked_dates`` skips the holiday fetch at startup and ``today`` pins
    the operating window; both exist so tests can run offline and
    deterministically. Served with
    ``uvicorn --factory booking.main:create_app``, it reads its settings from
    the environment at startup.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = make_engine(settings.database_url)
        store = AppointmentStore(engine)
        try:
            await store.create_schema()
            logger.info("Connected to database: %s", engine.url.render_as_string(hide_password=True))

            if blocked_dates is None:
                loaded = await holidays.fetch_public_holidays(
                    settings.year,
                    settings.country_code,
                    base_url=settings.holiday_api_url,
                    timeout=settings.holiday_api_timeout,
                )
                blocked = holidays.blocked_dates(loaded, settings.year)
            else:
                blocked = frozenset(blocked_dates)

            window = _operating_window(settings, today)
            logger.info(
                "Operating window: year %s, today %s, %d blocked dates",
                window.year, window.today.isoformat(), len(blocked),
            )

            app.state.store = store
            app.state.window = window
            app.state.blocked_dates = blocked
            yield
        finally:
            await engine.dispose()

    app = FastAPI(title="appointment-booking", lifespan=lifespan)

    # ---------- CORS ----------
    allow_any_origin = "*" in settings.cors_allow_origins

    @app.middleware("http")
    async def cors(request: Request, call_next):
        # every OPTIONS is answered here, preflight or not, with an empty 200
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)

        origin = request.headers.get("origin")
        if allow_any_origin:
            response.headers["Access-Control-Allow-Origin"] = "*"
        elif origin in settings.cors_allow_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.exception_handler(BookingRejected)
    async def booking_rejected(request: Request, exc: BookingRejected):
        logger.debug("Rejected appointment request: %s", exc.reason)
        return _error(exc.status_code, exc.reason, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405 and request.url.path == "/appointments":
            return _error(405, "method_not_allowed", "Only POST method is allowed")
        return await http_exception_handler(request, exc)

    @app.get("/")
    def root():
        return {"message": "Backend running"}

    # ---------- Routes ----------
    @app.post("/appointments", status_code=201)
    async def create_appointment(request: Request):
        try:
            body = await request.json()
        except ValueError as e:
            raise InvalidJSON() from e
        if body is None:    # a literal null decodes to an empty request
            body = {}
        if not isinstance(body, dict):
            raise InvalidJSON()
        try:
            req = AppointmentRequest.model_validate(body)
        except ValidationError as e:
            raise InvalidJSON() from e

        state = request.app.state
        store: AppointmentStore = state.store

        try:
            accepted = await validate(req, state.window, state.blocked_dates, store.exists)
        except SQLAlchemyError:
            logger.exception("Error checking existing appointments")
            return _error(500, "database_error", "Failed checking existing appointments")

        try:
            appointment = await store.insert(accepted.first_name, accepted.last_name, accepted.visit_date)
        except SQLAlchemyError:
            logger.exception("Error creating appointment")
            return _error(500, "database_error", "Failed to create appointment")

        logger.info("Created appointment %s for %s", appointment.id, appointment.visit_date.isoformat())
        out = AppointmentOut.model_validate(appointment)
        return JSONResponse(status_code=201, content=out.model_dump(mode="json", by_alias=True))

    return app
