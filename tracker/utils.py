"""Shared helpers: logging, ids and calendar arithmetic."""

import calendar
import logging
import random
import string
import time
from datetime import date, datetime, timezone

import colorlog


def get_logger(name: str, level: str | int | None = None) -> logging.Logger:
    """Get a logger with a colorized format for the tracker."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    if level is not None:
        logger.setLevel(level)
    return logger


def generate_id(prefix: str = "") -> str:
    """Time-based id with a random suffix, e.g. ``lq3x9c2ab4k7d1``."""
    stamp = _base36(int(time.time() * 1000))
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}{stamp}{suffix}"


def _base36(n: int) -> str:
    digits = string.digits + string.ascii_lowercase
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = digits[r] + out
    return out or "0"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def days_in_month(month: int, year: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(month: int, year: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, days_in_month(month, year))


def shift_month(month: int, year: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` calendar months from (month, year); delta may be negative."""
    index = year * 12 + (month - 1) + delta
    return index % 12 + 1, index // 12


def years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 -> Feb 28
        return day.replace(year=day.year - years, day=28)
