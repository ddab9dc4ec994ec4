# booking/settings.py
from __future__ import annotations

import datetime as dt
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from booking.holidays import NAGER_API_URL


def _get_int(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected an integer.") from e


def _parse_origins(raw: str) -> tuple[str, ...]:
    # CORS_ALLOW_ORIGINS supports "*" or a comma-separated list.
    parts = [p.strip() for p in raw.split(",")]
    return tuple(p for p in parts if p) or ("*",)


def _parse_today(raw: str | None) -> dt.date | None:
    if not raw:
        return None
    try:
        return dt.date.fromisoformat(raw.strip())
    except ValueError as e:
        raise RuntimeError(f"Invalid APPOINTMENTS_TODAY value: {raw!r}. Expected YYYY-MM-DD.") from e


@dataclass(frozen=True)
class Settings:
    year: int = 2075
    # Pins the operating window's "today"; derived from the clock when unset.
    today: dt.date | None = None

    country_code: str = "GB"
    holiday_api_url: str = NAGER_API_URL
    holiday_api_timeout: float = 20

    database_url: str = "sqlite+aiosqlite:///./appointments.db"
    cors_allow_origins: tuple[str, ...] = ("*",)

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"


def load_settings(dotenv_path: str | None = None) -> Settings:
    # Prefer .env in repo root; dotenv_path allows overriding in tests.
    load_dotenv(dotenv_path=dotenv_path, override=False)

    year = _get_int("APPOINTMENTS_YEAR", "2075")
    if not 1 <= year <= 9999:
        raise RuntimeError(f"APPOINTMENTS_YEAR must be between 1 and 9999, got {year}")

    today = _parse_today(os.getenv("APPOINTMENTS_TODAY"))
    if today is not None and today.year != year:
        raise RuntimeError("APPOINTMENTS_TODAY must fall inside APPOINTMENTS_YEAR")

    timeout = _get_int("HOLIDAY_API_TIMEOUT", "20")
    if timeout < 1:
        raise RuntimeError("HOLIDAY_API_TIMEOUT must be >= 1")

    return Settings(
        year=year,
        today=today,
        country_code=os.getenv("HOLIDAY_COUNTRY_CODE", "GB").strip().upper(),
        holiday_api_url=os.getenv("HOLIDAY_API_URL", NAGER_API_URL),
        holiday_api_timeout=timeout,
        database_url=os.getenv("DATABASE_URL") or "sqlite+aiosqlite:///./appointments.db",
        cors_allow_origins=_parse_origins(os.getenv("CORS_ALLOW_ORIGINS", "*")),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_get_int("PORT", "8080"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
