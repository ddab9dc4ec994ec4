# booking/holidays.py
import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

import httpx

logger = logging.getLogger(__name__)

NAGER_API_URL = "https://date.nager.at/api/v3"


class HolidayFetchError(RuntimeError):
    pass


@dataclass(frozen=True)
class PublicHoliday:
    date: dt.date
    local_name: str
    name: str = ""
    counties: tuple[str, ...] = field(default_factory=tuple)   # empty = nationwide


def _parse_holiday(item: dict) -> PublicHoliday:
    return PublicHoliday(
        date=dt.date.fromisoformat(item["date"]),  # YYYY-MM-DD
        local_name=item.get("localName") or "",
        name=item.get("name") or "",
        counties=tuple(item.get("counties") or ()),
    )


async def fetch_public_holidays(
    year: int,
    country_code: str,
    *,
    base_url: str = NAGER_API_URL,
    timeout: float = 20,
    client: Optional[httpx.AsyncClient] = None,
) -> list[PublicHoliday]:
    """Fetch the public holidays of ``country_code`` for ``year`` from Nager.Date."""
    url = f"{base_url.rstrip('/')}/PublicHolidays/{year}/{country_code}"
    logger.info("Loading public holidays for %s in %s...", year, country_code)

    try:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                resp = await own_client.get(url, timeout=timeout)
        else:
            resp = await client.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        raise HolidayFetchError(f"failed to fetch public holidays: {e}") from e

    if resp.status_code != 200:
        raise HolidayFetchError(f"public holiday API returned status: {resp.status_code}")

    try:
        data = resp.json()
        holidays = [_parse_holiday(item) for item in data]
    except (ValueError, KeyError, TypeError) as e:
        raise HolidayFetchError(f"failed to decode public holidays: {e}") from e

    for h in holidays:
        logger.info("Loaded holiday: %s - %s", h.date.isoformat(), h.local_name)
    logger.info("Successfully loaded %d public holidays for %s", len(holidays), year)
    return holidays


def blocked_dates(holidays: Iterable[PublicHoliday], year: int) -> frozenset[dt.date]:
    # Regional holidays (non-empty counties) block the whole service too
    return frozenset(h.date for h in holidays if h.date.year == year)
