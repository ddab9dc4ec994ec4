# booking/validation.py
"""Business rules deciding whether an appointment request may be booked.

The checks run in a fixed order and stop at the first failure, so a request
with several problems always reports the earliest one. Every failure is a
``BookingRejected`` subclass carrying a stable reason code, a human message
and the HTTP status it maps to.
"""
from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import AbstractSet, Awaitable, Callable, Optional

from booking.schemas import AppointmentRequest

DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

ExistsFn = Callable[[dt.date], Awaitable[bool]]


# ---------- Rejections ----------
class BookingRejected(Exception):
    reason = "rejected"
    status_code = 400
    message = "Appointment request rejected"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidJSON(BookingRejected):
    reason = "invalid_json"
    message = "Invalid JSON format"


class MissingFields(BookingRejected):
    reason = "missing_fields"
    message = "First name, last name, and visit date are required"


class InvalidDate(BookingRejected):
    reason = "invalid_date"
    message = "Visit date must be in YYYY-MM-DD format"


class InvalidYear(BookingRejected):
    reason = "invalid_year"

    def __init__(self, year: int):
        super().__init__(f"Appointments can only be scheduled for year {year}")


class PastDate(BookingRejected):
    reason = "past_date"
    message = "Visit date cannot be in the past"


class PublicHoliday(BookingRejected):
    reason = "public_holiday"
    message = "Appointments cannot be scheduled on public holidays"


class DuplicateAppointment(BookingRejected):
    reason = "duplicate_appointment"
    status_code = 409
    message = "An appointment is already scheduled for this date"


# ---------- Context ----------
@dataclass(frozen=True)
class OperatingWindow:
    """The single bookable year and the simulated "today" inside it."""

    year: int
    today: dt.date

    @classmethod
    def for_year(cls, year: int, now: Optional[dt.datetime] = None) -> "OperatingWindow":
        """Build a window whose today is the real day/month moved into ``year``.

        29 February in a non-leap operating year rolls over to 1 March.
        """
        now = now or dt.datetime.now(dt.timezone.utc)
        try:
            today = dt.date(year, now.month, now.day)
        except ValueError:
            today = dt.date(year, 3, 1)
        return cls(year=year, today=today)


@dataclass(frozen=True)
class AcceptedBooking:
    first_name: str
    last_name: str
    visit_date: dt.date


# ---------- Checks ----------
def parse_visit_date(value: str) -> dt.date:
    if not DATE_RE.fullmatch(value):
        raise InvalidDate()
    try:
        return dt.date.fromisoformat(value)
    except ValueError as e:
        raise InvalidDate() from e


def _check_fields(request: AppointmentRequest) -> None:
    if not request.first_name or not request.last_name or not request.visit_date:
        raise MissingFields()


def _check_year(visit_date: dt.date, window: OperatingWindow, blocked: AbstractSet[dt.date]) -> None:
    if visit_date.year != window.year:
        raise InvalidYear(window.year)


def _check_not_past(visit_date: dt.date, window: OperatingWindow, blocked: AbstractSet[dt.date]) -> None:
    # same-day bookings are allowed
    if visit_date < window.today:
        raise PastDate()


def _check_not_holiday(visit_date: dt.date, window: OperatingWindow, blocked: AbstractSet[dt.date]) -> None:
    if visit_date in blocked:
        raise PublicHoliday()


DATE_CHECKS = (
    ("invalid_year", _check_year),
    ("past_date", _check_not_past),
    ("public_holiday", _check_not_holiday),
)


async def validate(
    request: AppointmentRequest,
    window: OperatingWindow,
    blocked_dates: AbstractSet[dt.date],
    exists: ExistsFn,
) -> AcceptedBooking:
    """Run every check against ``request`` and return the booking to store.

    Raises the first ``BookingRejected`` that applies. Errors raised by
    ``exists`` itself are not rejections and propagate unchanged.
    """
    _check_fields(request)
    visit_date = parse_visit_date(request.visit_date)

    for _name, check in DATE_CHECKS:
        check(visit_date, window, blocked_dates)

    if await exists(visit_date):
        raise DuplicateAppointment()

    return AcceptedBooking(
        first_name=request.first_name,
        last_name=request.last_name,
        visit_date=visit_date,
    )
