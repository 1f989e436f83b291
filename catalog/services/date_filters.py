
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo
from sqlalchemy import and_, extract
from catalog.core.settings import settings

DATE_PRESETS = ("today", "yesterday", "last7", "last30", "thisMonth", "prevMonth", "all")

# Older per-source routes used "7days"
_PRESET_ALIASES = {"7days": "last7"}

DateRange = Tuple[datetime, datetime]


def local_today(tz_name: Optional[str] = None) -> date:
    tz = ZoneInfo(tz_name or settings.timezone)
    return datetime.now(tz).date()


def _midnight(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, datetime.min.time()).replace(tzinfo=tz)


def _first_of_month(year: int, month: int) -> date:
    while month < 1:
        month += 12
        year -= 1
    while month > 12:
        month -= 12
        year += 1
    return date(year, month, 1)


def resolve_date_range(
    date_filter: Optional[str],
    today: Optional[date] = None,
    tz_name: Optional[str] = None,
) -> Optional[DateRange]:
    """Half-open [start, end) range for a named preset, or None for no constraint."""
    preset = _PRESET_ALIASES.get(date_filter, date_filter)
    if not preset or preset == "all" or preset not in DATE_PRESETS:
        return None

    tz = ZoneInfo(tz_name or settings.timezone)
    today = today or local_today(tz_name)
    tomorrow = today + timedelta(days=1)

    if preset == "today":
        start, end = today, tomorrow
    elif preset == "yesterday":
        start, end = today - timedelta(days=1), today
    elif preset == "last7":
        start, end = today - timedelta(days=7), tomorrow
    elif preset == "last30":
        start, end = today - timedelta(days=30), tomorrow
    elif preset == "thisMonth":
        start = _first_of_month(today.year, today.month)
        end = _first_of_month(today.year, today.month + 1)
    else:
        start = _first_of_month(today.year, today.month - 1)
        end = _first_of_month(today.year, today.month)

    return _midnight(start, tz), _midnight(end, tz)


def build_date_clause(
    model,
    date_filter: Optional[str],
    month: Optional[int],
    today: Optional[date] = None,
    tz_name: Optional[str] = None,
):
    """SQL condition on ``model.post_date``; a month always wins over the preset."""
    if month:
        year = (today or local_today(tz_name)).year
        return and_(
            extract("month", model.post_date) == month,
            extract("year", model.post_date) == year,
        )

    date_range = resolve_date_range(date_filter, today=today, tz_name=tz_name)
    if date_range is None:
        return None

    start, end = date_range
    return and_(model.post_date >= start, model.post_date < end)
