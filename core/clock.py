# core/clock.py
from datetime import date, datetime


def get_today() -> date:
    """Calendar date used by date-window rules; overridable as a dependency."""
    return date.today()


def get_now() -> datetime:
    return datetime.now()
