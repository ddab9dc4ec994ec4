import datetime as dt
from contextlib import ExitStack

import pytest
from fastapi.testclient import TestClient

from booking.main import create_app
from booking.settings import Settings

# GB public holidays for 2075 as returned by Nager.Date
HOLIDAYS_2075 = frozenset(
    dt.date.fromisoformat(d)
    for d in (
        "2075-01-01",
        "2075-01-02",
        "2075-03-18",
        "2075-04-05",
        "2075-04-08",
        "2075-05-06",
        "2075-05-27",
        "2075-07-12",
        "2075-08-05",
        "2075-08-26",
        "2075-12-02",
        "2075-12-25",
        "2075-12-26",
    )
)


@pytest.fixture
def database_url(tmp_path):
    # Each test gets its own SQLite file so bookings never leak between tests
    return f"sqlite+aiosqlite:///{tmp_path / 'appointments.db'}"


@pytest.fixture
def settings(database_url):
    return Settings(year=2075, database_url=database_url)


@pytest.fixture
def make_client(settings):
    with ExitStack() as stack:

        def _make(today=dt.date(2075, 1, 1), blocked_dates=HOLIDAYS_2075):
            app = create_app(settings, blocked_dates=blocked_dates, today=today)
            # entering the client runs the lifespan (schema, window)
            return stack.enter_context(TestClient(app))

        yield _make


@pytest.fixture
def client(make_client):
    return make_client()

