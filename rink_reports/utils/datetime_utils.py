"""
Timezone and report-window utilities.

Report windows run Monday 00:00 through Sunday 23:59:59.999999 UTC. A window
is named by a week id:

- ``current``: the week containing now
- ``week-N``: the week N weeks before the current one
- ``YYYY-Www``: week number W of the year, counted from the year's first Monday
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def now_utc() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _week_bounds(monday: date) -> tuple[datetime, datetime]:
    start = datetime.combine(monday, time.min).replace(tzinfo=timezone.utc)
    end = datetime.combine(monday + timedelta(days=6), time.max).replace(tzinfo=timezone.utc)
    return start, end


def _first_monday(year: int) -> date:
    jan_first = date(year, 1, 1)
    return jan_first + timedelta(days=(7 - jan_first.weekday()) % 7)


def week_window(week_id: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Resolve a week id to an inclusive (start, end) UTC window.

    Raises:
        ValueError: if the week id is not one of the supported forms.
    """
    reference = ensure_utc(now or now_utc()).date()

    if week_id == "current":
        return _week_bounds(_monday_of(reference))

    if week_id.startswith("week-"):
        weeks_back = week_id.split("-", 1)[1]
        if not weeks_back.isdigit():
            raise ValueError(f"Unsupported week id: {week_id}")
        target = reference - timedelta(weeks=int(weeks_back))
        return _week_bounds(_monday_of(target))

    if "-W" in week_id:
        year_part, week_part = week_id.split("-W", 1)
        if not (year_part.isdigit() and week_part.isdigit()) or int(week_part) < 1:
            raise ValueError(f"Unsupported week id: {week_id}")
        monday = _first_monday(int(year_part)) + timedelta(weeks=int(week_part) - 1)
        return _week_bounds(monday)

    raise ValueError(f"Unsupported week id: {week_id}")


def week_label(week_id: str) -> str:
    """Human-readable label for a week id."""
    if week_id == "current":
        return "This Week"
    if week_id == "week-1":
        return "Last Week"
    if week_id.startswith("week-"):
        return f"{week_id.split('-', 1)[1]} Weeks Ago"
    if "-W" in week_id:
        year_part, week_part = week_id.split("-W", 1)
        return f"Week {week_part}, {year_part}"
    return week_id


def current_week_id(now: datetime | None = None) -> str:
    """Week id (``YYYY-Www``) of the week containing ``now``.

    Counts weeks from the first Monday of the year so the id round-trips
    through week_window(). Days before the first Monday belong to the last
    week of the previous year.
    """
    today = ensure_utc(now or now_utc()).date()
    year = today.year
    first_monday = _first_monday(year)
    if today < first_monday:
        year -= 1
        first_monday = _first_monday(year)
    week_number = (today - first_monday).days // 7 + 1
    return f"{year}-W{week_number:02d}"
