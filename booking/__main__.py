import argparse
import dataclasses
import logging
import os

import uvicorn

from booking.main import create_app
from booking.settings import load_settings


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Civic appointment booking service")
    parser.add_argument("year", nargs="?", type=int, help="Operating year (overrides APPOINTMENTS_YEAR)")
    parser.add_argument("--host", help="Bind address (overrides HOST)")
    parser.add_argument("--port", type=int, help="Bind port (overrides PORT)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args(argv)

    settings = load_settings()
    overrides = {}
    if args.year is not None:
        if not 1 <= args.year <= 9999:
            parser.error(f"year must be between 1 and 9999, got {args.year}")
        overrides["year"] = args.year
        if settings.today is not None and settings.today.year != args.year:
            # a pinned today from the environment belongs to another year
            overrides["today"] = None
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    settings = dataclasses.replace(settings, **overrides)

    _setup_logging(settings.log_level)
    logging.getLogger(__name__).info("Starting server for year %s on %s:%s", settings.year, settings.host, settings.port)

    if args.reload:
        # The reloader re-imports the app in a child process, so the
        # overrides have to travel through the environment.
        os.environ["APPOINTMENTS_YEAR"] = str(settings.year)
        if settings.today is None:
            os.environ.pop("APPOINTMENTS_TODAY", None)
        uvicorn.run(
            "booking.main:create_app",
            factory=True,
            reload=True,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
        return 0

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
