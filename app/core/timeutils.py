from datetime import date, datetime, timedelta, timezone


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps (SQLite drops tzinfo on round-trip)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_day(ts: datetime, offset_minutes: int | None = None) -> date:
    """Calendar day of ``ts`` for a client whose UTC offset is ``offset_minutes``.

    The offset uses the browser convention: minutes to subtract from UTC to
    get local time, so UTC+7 is -420. ``None`` means UTC.
    """
    ts = ensure_utc(ts)
    return (ts - timedelta(minutes=offset_minutes or 0)).date()


def days_between(earlier: datetime, later: datetime, offset_minutes: int | None = None) -> int:
    """Whole local calendar days from ``earlier`` to ``later``."""
    return (local_day(later, offset_minutes) - local_day(earlier, offset_minutes)).days
