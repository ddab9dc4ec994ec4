# booking/store.py
import datetime as dt
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from booking.db import Base, make_sessionmaker
from booking.models import Appointment
from booking.validation import DuplicateAppointment

logger = logging.getLogger(__name__)


class AppointmentStore:
    """Appointments table access.

    ``exists`` and ``insert`` each run in their own session. The UNIQUE
    constraint on ``visit_date`` is what actually prevents double bookings;
    a violation surfaces from ``insert`` as ``DuplicateAppointment``.
    """

    def __init__(self, engine: AsyncEngine, sessionmaker: async_sessionmaker[AsyncSession] | None = None):
        self.engine = engine
        self.sessionmaker = sessionmaker or make_sessionmaker(engine)

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def exists(self, visit_date: dt.date) -> bool:
        async with self.sessionmaker() as session:
            count = (await session.execute(
                select(func.count()).select_from(Appointment).where(Appointment.visit_date == visit_date)
            )).scalar_one()
        return count > 0

    async def insert(self, first_name: str, last_name: str, visit_date: dt.date) -> Appointment:
        async with self.sessionmaker() as session:
            appointment = Appointment(
                first_name=first_name,
                last_name=last_name,
                visit_date=visit_date,
            )
            session.add(appointment)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.info("Insert for %s lost to a concurrent booking", visit_date.isoformat())
                raise DuplicateAppointment() from e
        return appointment
